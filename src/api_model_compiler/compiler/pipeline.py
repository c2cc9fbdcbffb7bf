"""Runs the compiler stages in order over one document."""

from api_model_compiler.config import CompilerConfig, load_config
from api_model_compiler.gen_logging import get_logger
from api_model_compiler.parser.base import ApiDocument

from .context import GenerationContext, Stage
from .model import CompiledApi
from .naming import normalize_version
from .operations import OperationBuilder
from .registry import ModelRegistry
from .resolver import SchemaResolver
from .linker import OperationLinker

logger = get_logger(__name__)


class ModelCompiler:
    """Compile an ApiDocument into the enriched model the renderer consumes.

    Every call gets its own GenerationContext, so compiling the same document
    twice gives the same result and the document itself is never modified.
    """

    def __init__(self, config: CompilerConfig | None = None):
        self.config = config or load_config()

    def compile(self, document: ApiDocument) -> CompiledApi:
        document = document.model_copy(deep=True)
        context = GenerationContext(self.config, document.schemas)
        resolver = SchemaResolver(context)

        context.enter(Stage.OPERATIONS)
        operations = OperationBuilder(context, resolver).build_all(document.operations)

        context.enter(Stage.RESOLVE)
        registry = ModelRegistry(context)
        for name, schema in context.schemas.items():
            registry.add(resolver.resolve_model(name, schema))
        registry.add_all(context.synthetic_models())
        logger.info("resolved %d schemas into %d models", len(context.schemas), len(registry))

        context.enter(Stage.CROSS_REFERENCE)
        registry.cross_reference()

        context.enter(Stage.LINK)
        tags = OperationLinker(context, registry).link(operations)

        return CompiledApi(
            title=document.title,
            version=normalize_version(document.version, self.config.package_version),
            models_file=self.config.models_file,
            models=registry.models(),
            removed_models=[m.name for m in registry.removed()],
            operations=operations,
            tags=tags,
        )
