"""Per-run state shared by the compiler stages.

A fresh GenerationContext is created for every compilation, so nothing
leaks between two documents compiled by the same process.
"""

from enum import IntEnum

from api_model_compiler.config import CompilerConfig
from api_model_compiler.gen_logging import get_logger
from api_model_compiler.parser.base import SchemaNode

from .model import Model
from .naming import camelize

logger = get_logger(__name__)


class Stage(IntEnum):
    CREATED = 0
    OPERATIONS = 1
    RESOLVE = 2
    CROSS_REFERENCE = 3
    LINK = 4


class StageOrderError(RuntimeError):
    """A pipeline stage was entered out of order."""


class NameRegistry:
    """Synthetic placeholder name -> friendly name.

    Keys and values are stored camelized (``body_3`` -> ``Body3``). Entries are
    written while request bodies and responses are parsed; once frozen the
    registry is read-only and further writes are ignored.
    """

    def __init__(self):
        self._names: dict[str, str] = {}
        self._frozen = False

    def register(self, synthetic: str, friendly: str) -> None:
        if self._frozen:
            logger.warning("Name registry is frozen, ignoring %s -> %s", synthetic, friendly)
            return
        key = camelize(synthetic)
        if key in self._names:
            # First hint wins when two operations share a placeholder
            return
        self._names[key] = camelize(friendly)
        logger.debug("name hint %s -> %s", key, self._names[key])

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, synthetic: str) -> str | None:
        return self._names.get(camelize(synthetic))

    def __contains__(self, synthetic: str) -> bool:
        return camelize(synthetic) in self._names

    def __len__(self) -> int:
        return len(self._names)

    def prefix_match(self, classname: str) -> tuple[str, str] | None:
        """Longest registered name that prefixes ``classname`` at a word boundary.

        ``Body3Incident`` matches ``Body3`` but ``Body31`` does not.
        """
        best = None
        for key, friendly in self._names.items():
            if classname == key or not classname.startswith(key):
                continue
            rest = classname[len(key):]
            if not rest[0].isupper():
                continue
            if best is None or len(key) > len(best[0]):
                best = (key, friendly)
        return best


class GenerationContext:
    """Configuration, schema table and patch tables for a single run."""

    def __init__(self, config: CompilerConfig, schemas: dict[str, SchemaNode] | None = None):
        self.config = config
        self.schemas: dict[str, SchemaNode] = dict(schemas or {})
        self.names = NameRegistry()
        self.renames: dict[str, str] = {}
        self._synthetic: dict[str, Model] = {}
        self.stage = Stage.CREATED

    def enter(self, stage: Stage) -> None:
        if stage < self.stage:
            raise StageOrderError(f"Cannot enter {stage.name} after {self.stage.name}")
        if stage > self.stage + 1:
            raise StageOrderError(f"Cannot enter {stage.name} before {Stage(self.stage + 1).name}")
        self.stage = stage
        if stage >= Stage.CROSS_REFERENCE:
            self.names.freeze()

    def add_synthetic(self, model: Model) -> Model:
        """Keep the first synthetic model registered under a name."""
        existing = self._synthetic.get(model.name)
        if existing is not None:
            return existing
        self._synthetic[model.name] = model
        return model

    def get_synthetic(self, name: str) -> Model | None:
        return self._synthetic.get(name)

    def synthetic_models(self) -> list[Model]:
        return list(self._synthetic.values())
