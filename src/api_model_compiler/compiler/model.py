"""Enriched model handed to the renderer.

Each record carries a typed metadata object instead of a free-form
extension bag. Every metadata field has the namespaced alias the templates
read, so ``meta.extensions()`` (or ``model_dump(by_alias=True)``) produces
the familiar ``x-rustgen-*`` / ``x-codegen-*`` mapping.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

ContainerKind = Literal["array", "map"]


class _Meta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def extensions(self) -> dict[str, Any]:
        """Only the annotations that were actually set, keyed by namespaced name."""
        return self.model_dump(by_alias=True, exclude_defaults=True)


class EnumVar(BaseModel):
    name: str
    value: Any


class Variant(BaseModel):
    """One arm of a synthesized sum type."""

    name: str
    datatype: str
    container: ContainerKind | None = None
    is_model: bool = False
    unresolved: str | None = None


class AllowableValues(BaseModel):
    """Enum values, untagged reference variants, or complex (inline) variants."""

    kind: Literal["enum", "untagged", "complex"]
    enum_vars: list[EnumVar] = []
    variants: list[Variant] = []

    @property
    def count(self) -> int:
        return len(self.enum_vars) if self.kind == "enum" else len(self.variants)

    @property
    def is_composition(self) -> bool:
        return self.kind in ("untagged", "complex")


class DefaultImpl(BaseModel):
    key: str
    value: str


class PropertyMeta(_Meta):
    is_required: bool = Field(False, alias="x-rustgen-is-required")
    has_default_impl: bool = Field(False, alias="x-rustgen-has-default-impl")
    default_impl: str | None = Field(None, alias="x-rustgen-default-impl")
    is_enum: bool = Field(False, alias="is-enum")
    is_untagged: bool = Field(False, alias="x-rustgen-is-untagged")
    has_empty_enum: bool = Field(False, alias="x-rustgen-has-empty-enum")
    serde_no_rename: bool = Field(False, alias="x-rustgen-serde-no-rename")
    is_string: bool = Field(False, alias="x-rustgen-is-string")
    skip_serializing_if_none: bool = Field(False, alias="x-rustgen-skip-serializing-if-none")
    map_entries: list["Property"] = Field([], alias="x-rustgen-map-entries")
    unresolved: str | None = Field(None, alias="x-rustgen-unresolved")


class ModelMeta(_Meta):
    has_vars: bool = Field(False, alias="has-vars")
    is_enum: bool = Field(False, alias="is-enum")
    is_bool: bool = Field(False, alias="x-rustgen-is-bool")
    is_integer: bool = Field(False, alias="x-rustgen-is-integer")
    is_string: bool = Field(False, alias="x-rustgen-is-string")
    is_datetime: bool = Field(False, alias="x-rustgen-is-datetime")
    is_array: bool = Field(False, alias="x-rustgen-is-array")
    is_untagged: bool = Field(False, alias="x-rustgen-is-untagged")
    has_string: bool = Field(False, alias="x-rustgen-has-string")
    map_like: bool = Field(False, alias="x-rustgen-map-like")
    noop: bool = Field(False, alias="x-rustgen-noop")
    body_model: bool = Field(False, alias="x-rustgen-body-model")
    placeholder: bool = Field(False, alias="x-rustgen-placeholder")
    has_default_impl: bool = Field(False, alias="x-rustgen-has-default-impl")
    default_impl: list[DefaultImpl] = Field([], alias="x-rustgen-default-impl")
    pagination_inner: str | None = Field(None, alias="x-codegen-pagination-response-inner")
    single_response_key: str | None = Field(None, alias="x-codegen-single-response-key")
    single_response_datatype: str | None = Field(None, alias="x-codegen-single-response-datatype")
    resolution_failed: bool = Field(False, alias="x-rustgen-resolution-failed")
    unresolved_bases: list[str] = Field([], alias="x-rustgen-unresolved-bases")
    composed_bases: list[str] = Field([], alias="x-rustgen-composed-bases")


class ParameterMeta(_Meta):
    list_container_string: bool = Field(False, alias="x-codegen-list-container-string")
    ignore: bool = Field(False, alias="x-codegen-ignore")
    is_map_container: bool = Field(False, alias="x-codegen-is-map-container")


class ResponseMeta(_Meta):
    pagination_inner: str | None = Field(None, alias="x-codegen-pagination-response-inner")


class OperationMeta(_Meta):
    is_list_fn: bool = Field(False, alias="x-codegen-is-list-fn")
    response_plural: str | None = Field(None, alias="x-codegen-response-plural")
    response_plural_snake_case: str | None = Field(None, alias="x-codegen-response-plural-snake-case")
    response_single: str | None = Field(None, alias="x-codegen-response-single")
    single_response_datatype: str | None = Field(None, alias="x-codegen-single-response-datatype")
    single_response_key: str | None = Field(None, alias="x-codegen-single-response-key")
    response_empty_default: bool = Field(False, alias="x-codegen-response-empty-default")
    has_optional_query_params: bool = Field(False, alias="x-codegen-has-optional-query-params")
    has_string_params: bool = Field(False, alias="x-codegen-has-string-params")


class Property(BaseModel):
    base_name: str  # wire name
    name: str  # identifier
    datatype: str
    data_format: str | None = None
    container: ContainerKind | None = None
    items: "Property | None" = None
    allowable_values: AllowableValues | None = None
    description: str | None = None
    required: bool = False
    meta: PropertyMeta = Field(default_factory=PropertyMeta)


class Model(BaseModel):
    name: str  # raw schema name
    classname: str
    title: str | None = None
    description: str | None = None
    vars: list[Property] = []
    is_enum: bool = False
    allowable_values: AllowableValues | None = None
    data_type: str | None = None  # aliased type for scalar / wrapper models
    container: ContainerKind | None = None
    container_inner: str | None = None
    removed: bool = False
    meta: ModelMeta = Field(default_factory=ModelMeta)

    @computed_field
    @property
    def required_vars(self) -> list[Property]:
        return [v for v in self.vars if v.required]

    @property
    def is_composition(self) -> bool:
        return self.allowable_values is not None and self.allowable_values.is_composition

    def var(self, base_name: str) -> Property | None:
        for prop in self.vars:
            if prop.base_name == base_name:
                return prop
        return None


class Parameter(BaseModel):
    base_name: str
    param_name: str
    location: str
    datatype: str
    required: bool = False
    description: str = ""
    container: ContainerKind | None = None
    items_datatype: str | None = None
    is_string: bool = False
    is_uuid: bool = False
    meta: ParameterMeta = Field(default_factory=ParameterMeta)

    @property
    def is_list_container(self) -> bool:
        return self.container == "array"


class Response(BaseModel):
    code: str
    message: str = ""
    datatype: str | None = None
    is_default: bool = False
    meta: ResponseMeta = Field(default_factory=ResponseMeta)


class Operation(BaseModel):
    operation_id: str
    nickname: str
    method: str
    path: str
    summary: str = ""
    notes: str | None = None
    tags: list[str] = []
    body_param: Parameter | None = None
    query_params: list[Parameter] = []
    path_params: list[Parameter] = []
    header_params: list[Parameter] = []
    responses: list[Response] = []
    meta: OperationMeta = Field(default_factory=OperationMeta)

    @property
    def primary_response(self) -> Response | None:
        for response in self.responses:
            if response.is_default:
                return response
        return None


class TagGroup(BaseModel):
    base_name: str
    classname: str
    operations: list[str] = []


class CompiledApi(BaseModel):
    """Everything the renderer needs for one document."""

    title: str = ""
    version: str = ""
    models_file: str = "models.rs"
    models: list[Model] = []
    removed_models: list[str] = []
    operations: list[Operation] = []
    tags: list[TagGroup] = []

    def model(self, classname: str) -> Model | None:
        for model in self.models:
            if model.classname == classname:
                return model
        return None

    def operation(self, operation_id: str) -> Operation | None:
        for operation in self.operations:
            if operation.operation_id == operation_id:
                return operation
        return None


for _cls in (PropertyMeta, Property, Model, CompiledApi):
    _cls.model_rebuild(force=True)
