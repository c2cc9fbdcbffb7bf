"""Per-property rewrites applied right after a property is resolved.

Rules run in a fixed order and the whole list is repeated until a pass
changes nothing, so a rule can match the output of an earlier one (a
pointer-sized ``score`` becomes ``i64`` and then ``f32``).
"""

from typing import Callable

from api_model_compiler.config import CompilerConfig
from api_model_compiler.gen_logging import get_logger
from api_model_compiler.parser.base import SchemaNode

from .model import Property
from .naming import to_model_name
from .types import DATETIME_TYPE, OPEN_MAP_TYPE, OPEN_OBJECT, POINTER_SIZED_INT, is_primitive

logger = get_logger(__name__)

MAX_PASSES = 4

ResolveFn = Callable[..., Property]


class PropertyEnricher:
    def __init__(self, config: CompilerConfig):
        self.config = config
        self.rules: list[Callable[[Property], bool]] = [
            self._open_object,
            self._date_time,
            self._pointer_sized_int,
            self._name_override,
            self._field_correction,
        ]

    def enrich(self, prop: Property) -> Property:
        for _ in range(MAX_PASSES):
            changed = False
            for rule in self.rules:
                changed = rule(prop) or changed
            if not changed:
                break
        return prop

    # -- rules ----------------------------------------------------------------

    def _open_object(self, prop: Property) -> bool:
        if prop.datatype != OPEN_OBJECT:
            return False
        prop.datatype = OPEN_MAP_TYPE
        return True

    def _date_time(self, prop: Property) -> bool:
        if prop.data_format != "date-time" or prop.container or prop.datatype == DATETIME_TYPE:
            return False
        prop.datatype = DATETIME_TYPE
        return True

    def _pointer_sized_int(self, prop: Property) -> bool:
        if prop.datatype != POINTER_SIZED_INT:
            return False
        prop.datatype = "i64"
        return True

    def _name_override(self, prop: Property) -> bool:
        override = self.config.name_overrides.get(prop.base_name)
        if override is None or prop.name == override:
            return False
        prop.name = override
        return True

    def _field_correction(self, prop: Property) -> bool:
        for correction in self.config.field_corrections:
            if correction.matches(prop.base_name, prop.datatype):
                logger.debug("corrected %s: %s -> %s", prop.base_name, prop.datatype, correction.replacement)
                prop.datatype = correction.replacement
                return True
        return False

    # -- map-shaped objects ---------------------------------------------------

    @staticmethod
    def is_map_like(schema: SchemaNode) -> bool:
        """Fixed properties plus ``additionalProperties: true``."""
        return schema.kind == "map" and bool(schema.properties) and schema.is_open_map

    def map_entries(self, schema: SchemaNode, resolve: ResolveFn, owner: str | None = None) -> list[Property]:
        """Documented entries table for a map-like schema."""
        entries = []
        for key, sub_schema in schema.properties.items():
            entry = resolve(key, sub_schema, owner=owner, required=key in schema.required)
            if entry.data_format != "date-time" and not is_primitive(entry.datatype):
                entry.datatype = to_model_name(entry.datatype)
            entries.append(entry)
        return entries

    def apply_map_shape(self, prop: Property, schema: SchemaNode, resolve: ResolveFn, owner: str | None = None) -> bool:
        if not self.is_map_like(schema):
            return False
        prop.datatype = OPEN_MAP_TYPE
        prop.container = "map"
        prop.meta.map_entries = self.map_entries(schema, resolve, owner=owner)
        return True
