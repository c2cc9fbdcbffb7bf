"""Model index and the whole-document cross-reference pass."""

import re

from api_model_compiler.gen_logging import get_logger

from .context import GenerationContext
from .model import DefaultImpl, Model, Property
from .naming import rename_identifiers, underscore
from .types import DATETIME_TYPE, INTEGER_TYPES, OPEN_OBJECT, map_of, vec_of

logger = get_logger(__name__)

RESPONSE_PLACEHOLDER = re.compile(r"^inline_response_\d+(_\d+)?$")
BODY_PLACEHOLDER = re.compile(r"^Body\d+$")
COMPOSITION_PREFIXES = ("OneOf", "AnyOf")
REFERENCE_SUFFIX = "Reference"


class ModelRegistry:
    """All Models of one document, keyed by raw schema name.

    Removed Models stay in the index so operations can still look them up.
    """

    def __init__(self, context: GenerationContext):
        self.context = context
        self.config = context.config
        self._models: dict[str, Model] = {}
        self._cross_referenced = False

    def add(self, model: Model) -> Model:
        existing = self._models.get(model.name)
        if existing is not None:
            logger.debug("model %s already registered, keeping the first", model.name)
            return existing
        self._models[model.name] = model
        return model

    def add_all(self, models) -> None:
        for model in models:
            self.add(model)

    def get(self, name: str) -> Model | None:
        return self._models.get(name)

    def lookup(self, classname: str) -> Model | None:
        for model in self._models.values():
            if model.classname == classname:
                return model
        return None

    def models(self) -> list[Model]:
        return [m for m in self._models.values() if not m.removed]

    def removed(self) -> list[Model]:
        return [m for m in self._models.values() if m.removed]

    def __len__(self) -> int:
        return len(self._models)

    def cross_reference(self) -> None:
        if self._cross_referenced:
            return
        self._cross_referenced = True
        self.context.names.freeze()

        for model in self._models.values():
            self._classify(model)
        self._prune()
        self._rename()
        for model in self.models():
            self._synthesize_defaults(model)
            self._deoptionalize(model)
        self._flatten_references()
        logger.info("cross-referenced %d models (%d removed)", len(self._models), len(self.removed()))

    # -- classify -------------------------------------------------------------

    def _classify(self, model: Model) -> None:
        meta = model.meta
        if model.data_type == OPEN_OBJECT:
            model.data_type = model.classname

        wrapper_flags = {
            "bool": "is_bool",
            "String": "is_string",
            DATETIME_TYPE: "is_datetime",
        }
        flag = wrapper_flags.get(model.data_type)
        if model.data_type in INTEGER_TYPES:
            flag = "is_integer"
        if model.is_enum:
            flag = None
            meta.is_enum = True
        if flag is not None:
            setattr(meta, flag, True)
            meta.has_vars = True
        if model.container == "array":
            meta.is_array = True
            meta.has_vars = True

        for prop in model.vars:
            prop_meta = prop.meta
            enum_vars = prop.allowable_values.enum_vars if prop.allowable_values else []
            if prop.base_name == prop.name:
                prop_meta.serde_no_rename = True
            if prop.datatype == "String" and prop.allowable_values is None:
                prop_meta.is_string = True
                meta.has_string = True
            if enum_vars and prop.base_name != "type":
                prop_meta.is_enum = True
            if any(var.value == "" for var in enum_vars):
                prop_meta.has_empty_enum = True

    # -- prune ----------------------------------------------------------------

    def _prune(self) -> None:
        for model in self._models.values():
            if RESPONSE_PLACEHOLDER.match(model.name) and model.name not in self.context.names:
                logger.debug("pruning response placeholder %s", model.name)
                self._remove(model)
            elif model.meta.resolution_failed and not model.vars and model.container is None:
                logger.info("pruning %s: composition could not be resolved", model.name)
                self._remove(model)

    @staticmethod
    def _remove(model: Model) -> None:
        model.removed = True
        model.meta.noop = True

    # -- rename ---------------------------------------------------------------

    def _rename(self) -> None:
        taken = {m.classname for m in self.models()}
        renames = self.context.renames

        for model in self.models():
            target = self._friendly_classname(model)
            if target is None or target == model.classname:
                continue
            if target in taken:
                candidate = target if target.endswith("Enum") else f"{target}Enum"
                if candidate in taken:
                    logger.info("cannot rename %s to %s: name already taken", model.classname, target)
                    continue
                target = candidate
            logger.debug("renaming %s -> %s", model.classname, target)
            taken.discard(model.classname)
            taken.add(target)
            renames[model.classname] = target
            model.classname = target

        if renames:
            for model in self._models.values():
                self._apply_renames(model, renames)

    def _friendly_classname(self, model: Model) -> str | None:
        classname = model.classname
        for prefix in COMPOSITION_PREFIXES:
            if classname.startswith(prefix) and len(classname) > len(prefix):
                classname = classname[len(prefix):]
                break

        suffix = "Enum" if model.is_composition else ""
        names = self.context.names
        friendly = names.get(classname)
        if friendly is not None:
            if BODY_PLACEHOLDER.match(classname):
                model.meta.body_model = True
            return friendly + suffix

        match = names.prefix_match(classname)
        if match is not None:
            key, friendly = match
            return friendly + classname[len(key):] + suffix

        if classname != model.classname:
            return classname
        return None

    def _apply_renames(self, model: Model, renames: dict[str, str]) -> None:
        if model.data_type:
            model.data_type = rename_identifiers(model.data_type, renames)
        if model.container_inner:
            model.container_inner = rename_identifiers(model.container_inner, renames)
        if model.meta.pagination_inner:
            model.meta.pagination_inner = rename_identifiers(model.meta.pagination_inner, renames)
        if model.allowable_values:
            for variant in model.allowable_values.variants:
                variant.datatype = rename_identifiers(variant.datatype, renames)
        for prop in model.vars:
            _rename_property(prop, renames)

    # -- defaults -------------------------------------------------------------

    def _synthesize_defaults(self, model: Model) -> None:
        defaults = {d.field: d for d in self.config.discriminator_defaults}
        for prop in model.vars:
            default = defaults.get(prop.name)
            if default is None:
                continue
            if prop.allowable_values and prop.allowable_values.enum_vars:
                prop.meta.is_enum = True
                continue

            value = underscore(model.name) if default.value == "snake_name" else model.name
            prop.meta.is_required = True
            prop.meta.has_default_impl = True
            prop.meta.default_impl = value

            impl = DefaultImpl(key=default.field, value=value)
            if impl not in model.meta.default_impl:
                model.meta.default_impl.append(impl)
            model.meta.has_default_impl = True

    def _deoptionalize(self, model: Model) -> None:
        for prop in model.vars:
            if prop.required:
                if self._has_default(prop) and not self.config.is_reference_override(model.classname):
                    prop.meta.is_required = True
            elif not prop.meta.is_required:
                prop.meta.skip_serializing_if_none = self.config.skip_serializing_if_none

    def _has_default(self, prop: Property) -> bool:
        return prop.datatype not in self.config.no_default_types

    # -- reference stubs ------------------------------------------------------

    def _flatten_references(self) -> None:
        live = {m.classname for m in self.models()}
        for model in self.models():
            if model.container_inner is not None and not self.config.is_reference_override(model.classname):
                resolved = _dereference(model.container_inner, live)
                if resolved is not None:
                    model.container_inner = resolved
                    model.data_type = _wrap(model.container, resolved, model.data_type)
            for prop in model.vars:
                if self.config.is_reference_override(model.classname, prop.base_name):
                    continue
                for target in (prop, prop.items):
                    if target is None:
                        continue
                    resolved = _dereference(target.datatype, live)
                    if resolved is not None:
                        logger.debug("%s.%s: %s -> %s", model.classname, prop.base_name, target.datatype, resolved)
                        target.datatype = resolved
                if prop.items is not None:
                    prop.datatype = _wrap(prop.container, prop.items.datatype, prop.datatype)


def _wrap(container: str | None, inner: str, current: str) -> str:
    if container == "array":
        return vec_of(inner)
    if container == "map":
        return map_of(inner)
    return current


def _dereference(datatype: str, live: set[str]) -> str | None:
    if not datatype.endswith(REFERENCE_SUFFIX) or datatype == REFERENCE_SUFFIX:
        return None
    stem = datatype[: -len(REFERENCE_SUFFIX)]
    return stem if stem in live else None


def _rename_property(prop: Property, renames: dict[str, str]) -> None:
    prop.datatype = rename_identifiers(prop.datatype, renames)
    if prop.items is not None:
        _rename_property(prop.items, renames)
    if prop.allowable_values:
        for variant in prop.allowable_values.variants:
            variant.datatype = rename_identifiers(variant.datatype, renames)
    for entry in prop.meta.map_entries:
        _rename_property(entry, renames)
