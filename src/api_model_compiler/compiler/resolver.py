"""Schema composition resolver.

Turns SchemaNodes into Model and Property records. ``allOf`` chains are
flattened into a single ordered property list, ``oneOf``/``anyOf`` become
variant lists, and inline objects are hoisted into their own Models.

Nothing here raises on bad input: an unknown reference degrades to the
``Value`` fallback (annotated with the reason) and a composition whose
bases all fail to resolve yields an empty Model flagged
``resolution_failed``, which the registry prunes later.
"""

from typing import Literal

from pydantic import BaseModel

from api_model_compiler.gen_logging import get_logger
from api_model_compiler.parser.base import SchemaNode

from .context import GenerationContext
from .enrichment import PropertyEnricher
from .model import AllowableValues, EnumVar, Model, Property, Variant
from .naming import split_reference, to_enum_var_name, to_model_name, to_var_name, upper_snake
from .types import FALLBACK_TYPE, OPEN_MAP_TYPE, OPEN_OBJECT, is_primitive, map_of, primitive_type, vec_of

logger = get_logger(__name__)


class Flattened(BaseModel):
    """Merged ``allOf`` members, in declaration order."""

    kind: Literal["flattened"] = "flattened"
    properties: dict[str, SchemaNode] = {}
    required: list[str] = []
    bases: list[str] = []
    unresolved: list[str] = []


class Variants(BaseModel):
    kind: Literal["variants"] = "variants"
    values: AllowableValues


class Unresolved(BaseModel):
    kind: Literal["unresolved"] = "unresolved"
    reason: str


class SchemaResolver:
    """Resolves schemas against the document's schema table."""

    def __init__(self, context: GenerationContext, enricher: PropertyEnricher | None = None):
        self.context = context
        self.config = context.config
        self.schemas = context.schemas
        self.enricher = enricher or PropertyEnricher(context.config)

    # -- models ---------------------------------------------------------------

    def resolve_model(self, name: str, schema: SchemaNode) -> Model:
        if name in self.config.denylist:
            logger.info("%s is denylisted, emitting a placeholder model", name)
            return self._placeholder(name, schema)

        model = Model(
            name=name,
            classname=to_model_name(name),
            title=schema.title,
            description=schema.description,
        )

        if schema.ref:
            model.data_type = self.resolve_property(name, schema).datatype
        elif schema.kind == "composed":
            self._resolve_composed_model(model, schema)
        elif self.enricher.is_map_like(schema):
            model.vars = self.enricher.map_entries(schema, self.resolve_property, owner=name)
            model.container = "map"
            model.container_inner = FALLBACK_TYPE
            model.data_type = OPEN_MAP_TYPE
            model.meta.map_like = True
        elif schema.kind in ("array", "map"):
            wrapper = self.resolve_property(name, schema)
            model.container = wrapper.container
            model.container_inner = wrapper.items.datatype if wrapper.items else FALLBACK_TYPE
            model.data_type = wrapper.datatype
        elif schema.kind == "primitive":
            model.data_type = self.resolve_property(name, schema).datatype
            if schema.enum:
                model.is_enum = True
                model.allowable_values = self._enum_values(schema.enum)
        else:
            model.vars = self._resolve_vars(name, schema.properties, schema.required)
            model.data_type = OPEN_OBJECT
        return model

    def _placeholder(self, name: str, schema: SchemaNode) -> Model:
        model = Model(
            name=name,
            classname=to_model_name(name),
            title=schema.title,
            description=schema.description,
        )
        model.meta.placeholder = True
        return model

    def _resolve_vars(self, owner: str, properties: dict[str, SchemaNode], required: list[str]) -> list[Property]:
        return [
            self.resolve_property(prop_name, prop_schema, owner=owner, required=prop_name in required)
            for prop_name, prop_schema in properties.items()
        ]

    def _resolve_composed_model(self, model: Model, schema: SchemaNode) -> None:
        if schema.all_of:
            result = self.flatten(model.name, schema)
            if isinstance(result, Unresolved):
                logger.info("%s: allOf could not be resolved (%s)", model.name, result.reason)
                model.meta.resolution_failed = True
                model.meta.unresolved_bases = [result.reason]
                return
            model.vars = self._resolve_vars(model.name, result.properties, result.required)
            model.data_type = OPEN_OBJECT
            model.meta.composed_bases = result.bases
            model.meta.unresolved_bases = result.unresolved
            if any(base in self.config.pagination_bases for base in result.bases):
                for var in model.vars:
                    if var.container == "array" and var.items is not None:
                        model.meta.pagination_inner = var.items.datatype
                        break
            return

        members = schema.one_of or schema.any_of
        if not members:
            model.vars = self._resolve_vars(model.name, schema.properties, schema.required)
            model.data_type = OPEN_OBJECT
            return

        model.is_enum = True
        model.allowable_values = self.resolve_variants(model.name, members).values
        model.meta.is_untagged = model.allowable_values.kind == "untagged"

    # -- allOf ----------------------------------------------------------------

    def flatten(self, name: str, schema: SchemaNode, visited: frozenset[str] = frozenset()) -> Flattened | Unresolved:
        """Merge every ``allOf`` member of ``schema``; the first writer of a field wins."""
        visited = visited | {name}
        result = Flattened()

        for member in schema.all_of:
            if member.ref:
                sub = self._flatten_reference(member.ref, visited)
            elif member.kind == "composed" and member.all_of:
                sub = self.flatten(name, member, visited)
            else:
                sub = Flattened(properties=dict(member.properties), required=list(member.required))

            if isinstance(sub, Unresolved):
                logger.debug("%s: skipping allOf member (%s)", name, sub.reason)
                result.unresolved.append(sub.reason)
                continue
            self._merge(name, result, sub)

        self._merge(name, result, Flattened(properties=dict(schema.properties), required=list(schema.required)))

        if not result.properties and result.unresolved:
            return Unresolved(reason="; ".join(result.unresolved))
        return result

    def _flatten_reference(self, ref: str, visited: frozenset[str]) -> Flattened | Unresolved:
        target_name, path = split_reference(ref)
        if target_name in visited:
            return Unresolved(reason=f"cyclic reference {ref}")
        target = self.schemas.get(target_name)
        if target is None:
            return Unresolved(reason=f"unknown schema {target_name}")

        node = self._walk(target, path) if path else target
        if node is None or not _has_shape(node):
            # Malformed deep path: fall back to the parent schema it names
            node = target

        if node.ref:
            sub = self._flatten_reference(node.ref, visited | {target_name})
        elif node.kind == "composed" and node.all_of:
            sub = self.flatten(target_name, node, visited)
        else:
            sub = Flattened(properties=dict(node.properties), required=list(node.required))

        if isinstance(sub, Flattened):
            sub.bases.insert(0, target_name)
        return sub

    @staticmethod
    def _walk(node: SchemaNode, path: list[str]) -> SchemaNode | None:
        """Follow ``allOf/0/properties/field``-style segments; None when the path breaks."""
        i = 0
        try:
            while i < len(path) and node is not None:
                segment = path[i]
                if segment in ("allOf", "oneOf", "anyOf"):
                    members = {"allOf": node.all_of, "oneOf": node.one_of, "anyOf": node.any_of}[segment]
                    node = members[int(path[i + 1])]
                    i += 2
                elif segment == "properties":
                    node = node.properties.get(path[i + 1])
                    i += 2
                elif segment == "items":
                    node = node.items
                    i += 1
                else:
                    return None
        except (IndexError, ValueError):
            return None
        return node

    @staticmethod
    def _merge(name: str, into: Flattened, sub: Flattened) -> None:
        for key, value in sub.properties.items():
            if key in into.properties:
                logger.debug("%s: field %s already merged, keeping the first", name, key)
                continue
            into.properties[key] = value
        for key in sub.required:
            if key not in into.required:
                into.required.append(key)
        into.bases.extend(b for b in sub.bases if b not in into.bases)
        into.unresolved.extend(sub.unresolved)

    # -- oneOf / anyOf --------------------------------------------------------

    def resolve_variants(self, name: str, members: list[SchemaNode], owner: str | None = None) -> Variants:
        """Variant list for a union; pure references make it untagged."""
        untagged = all(member.ref for member in members)
        variants: list[Variant] = []
        seen: set[str] = set()

        for member in members:
            if member.ref:
                variant = self._reference_variant(member.ref)
            else:
                sub = self.resolve_property(f"{name}_sub_{len(variants)}", member, owner=owner)
                variant = Variant(
                    name=upper_snake(sub.datatype),
                    datatype=sub.datatype,
                    container=sub.container,
                    is_model=not is_primitive(sub.datatype),
                    unresolved=sub.meta.unresolved,
                )

            # Several members can collapse onto the same type (Value, HashMap...)
            if variant.datatype in seen:
                logger.debug("%s: dropping duplicate variant %s", name, variant.datatype)
                continue
            seen.add(variant.datatype)
            variants.append(variant)

        return Variants(values=AllowableValues(kind="untagged" if untagged else "complex", variants=variants))

    def _reference_variant(self, ref: str) -> Variant:
        target, _ = split_reference(ref)
        if target in self.schemas:
            return Variant(name=upper_snake(target), datatype=to_model_name(target), is_model=True)
        logger.debug("unresolved union member %s", ref)
        return Variant(name=upper_snake(target), datatype=FALLBACK_TYPE, unresolved=f"unknown schema {target}")

    # -- properties -----------------------------------------------------------

    def resolve_property(
        self,
        name: str,
        schema: SchemaNode,
        owner: str | None = None,
        required: bool = False,
    ) -> Property:
        """Resolve and enrich a single property.

        ``owner`` is the schema the property belongs to; inline objects are
        hoisted as ``<owner>_<name>``.
        """
        prop = Property(
            base_name=name,
            name=to_var_name(name),
            datatype=FALLBACK_TYPE,
            data_format=schema.format,
            description=schema.description,
            required=required,
        )

        if schema.ref:
            self._resolve_reference(prop, schema.ref)
        elif schema.kind == "array":
            self._resolve_array(prop, schema, owner)
        elif schema.kind == "map":
            if not self.enricher.apply_map_shape(prop, schema, self.resolve_property, owner=_inline_name(owner, name)):
                self._resolve_map(prop, schema, owner)
        elif schema.kind == "composed":
            self._resolve_composed_property(prop, schema, owner)
        elif schema.kind == "primitive":
            prop.datatype = primitive_type(schema.type, schema.format)
            if schema.enum:
                prop.allowable_values = self._enum_values(schema.enum)
        elif schema.properties:
            prop.datatype = self._hoist(_inline_name(owner, name), schema)
        else:
            prop.datatype = OPEN_OBJECT

        return self.enricher.enrich(prop)

    def _resolve_reference(self, prop: Property, ref: str) -> None:
        target, _ = split_reference(ref)
        if target not in self.schemas:
            logger.debug("%s: unknown reference %s, using %s", prop.base_name, ref, FALLBACK_TYPE)
            prop.datatype = FALLBACK_TYPE
            prop.meta.unresolved = f"unknown schema {target}"
            return
        prop.datatype = to_model_name(target)

    def _resolve_array(self, prop: Property, schema: SchemaNode, owner: str | None) -> None:
        items_schema = schema.items or SchemaNode()
        # Without an owner the inline item would be hoisted under the array's own name
        item_name = prop.base_name if owner else f"{prop.base_name}_inner"
        items = self.resolve_property(item_name, items_schema, owner=owner)
        items.base_name = prop.base_name
        items.name = prop.name

        prop.items = items
        prop.container = "array"
        prop.datatype = vec_of(items.datatype)
        if items.allowable_values is not None and items.allowable_values.is_composition:
            prop.allowable_values = items.allowable_values
            prop.meta.is_enum = True
            prop.meta.is_untagged = items.meta.is_untagged

    def _resolve_map(self, prop: Property, schema: SchemaNode, owner: str | None) -> None:
        prop.container = "map"
        additional = schema.additional_properties
        if isinstance(additional, SchemaNode):
            value_name = prop.base_name if owner else f"{prop.base_name}_value"
            inner = self.resolve_property(value_name, additional, owner=owner)
            inner.base_name = prop.base_name
            inner.name = prop.name
            prop.items = inner
            prop.datatype = map_of(inner.datatype)
        else:
            prop.datatype = OPEN_MAP_TYPE

    def _resolve_composed_property(self, prop: Property, schema: SchemaNode, owner: str | None) -> None:
        if schema.all_of:
            # allOf around a single reference is only there to attach a description
            if len(schema.all_of) == 1 and schema.all_of[0].ref and not schema.properties:
                self._resolve_reference(prop, schema.all_of[0].ref)
                return
            prop.datatype = self._hoist(_inline_name(owner, prop.base_name), schema)
            return

        members = schema.one_of or schema.any_of
        if not members:
            prop.datatype = OPEN_OBJECT
            return

        values = self.resolve_variants(prop.base_name, members, owner=owner).values
        prefix = "OneOf" if schema.one_of else "AnyOf"
        if values.kind == "untagged":
            synthetic = prefix + "".join(variant.datatype for variant in values.variants)
        else:
            synthetic = prefix + to_model_name(_inline_name(owner, prop.base_name))

        union = Model(
            name=synthetic,
            classname=synthetic,
            description=schema.description,
            is_enum=True,
            allowable_values=values,
        )
        union.meta.is_untagged = values.kind == "untagged"
        self.context.add_synthetic(union)

        prop.datatype = synthetic
        prop.allowable_values = values
        prop.meta.is_enum = True
        prop.meta.is_untagged = values.kind == "untagged"

    def _hoist(self, name: str, schema: SchemaNode) -> str:
        """Register an inline object as its own Model and return its classname."""
        existing = self.context.get_synthetic(name)
        if existing is not None:
            return existing.classname
        model = self.context.add_synthetic(self.resolve_model(name, schema))
        return model.classname

    @staticmethod
    def _enum_values(values: list) -> AllowableValues:
        return AllowableValues(
            kind="enum",
            enum_vars=[EnumVar(name=to_enum_var_name(v), value=v) for v in values],
        )


def _inline_name(owner: str | None, name: str) -> str:
    return f"{owner}_{name}" if owner else name


def _has_shape(node: SchemaNode) -> bool:
    return bool(node.ref or node.properties or (node.kind == "composed" and node.all_of))
