"""Raw schema graph produced by the document loader.

The loader converts OpenAPI 3.x and Swagger 2.0 documents into these models;
the compiler walks them without ever mutating them.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

SchemaKind = Literal["object", "array", "map", "primitive", "composed"]


class DocumentError(ValueError):
    """Raised when a file is not a readable OpenAPI/Swagger document."""


class SchemaNode(BaseModel):
    """A single schema: a definition, a property, or an inline fragment."""

    kind: SchemaKind = "object"
    type: str | None = None  # string / integer / number / boolean / object / array
    format: str | None = None
    ref: str | None = None  # "#/components/schemas/Tag", or a deep path like "Tag/allOf/0"
    title: str | None = None
    description: str | None = None
    properties: dict[str, "SchemaNode"] = {}
    required: list[str] = []
    items: "SchemaNode | None" = None
    additional_properties: "bool | SchemaNode | None" = None
    all_of: list["SchemaNode"] = []
    one_of: list["SchemaNode"] = []
    any_of: list["SchemaNode"] = []
    enum: list[Any] = []
    nullable: bool = False
    extensions: dict[str, Any] = {}

    @property
    def is_open_map(self) -> bool:
        """True for ``additionalProperties: true`` (any value allowed)."""
        return self.additional_properties is True


class ParamDef(BaseModel):
    """A query, path or header parameter."""

    name: str
    location: str  # query / path / header / cookie
    required: bool = False
    description: str = ""
    schema_: SchemaNode = Field(default_factory=lambda: SchemaNode(kind="primitive", type="string"))


class BodyDef(BaseModel):
    """A request body.

    ``schema_name`` is set when the body is a reference or when its inline
    schema was hoisted into the document under a synthetic ``body_<n>`` name.
    """

    schema_: SchemaNode
    schema_name: str | None = None
    description: str = ""
    required: bool = False
    content_type: str = "application/json"
    extensions: dict[str, Any] = {}


class ResponseDef(BaseModel):
    """A response; ``schema_name`` mirrors :class:`BodyDef`."""

    code: str
    description: str = ""
    schema_: SchemaNode | None = None
    schema_name: str | None = None
    is_default: bool = False  # primary response: first 2xx, else "default"
    extensions: dict[str, Any] = {}


class OperationDef(BaseModel):
    operation_id: str
    method: str
    path: str
    summary: str = ""
    notes: str | None = None
    tags: list[str] = []
    parameters: list[ParamDef] = []
    request_body: BodyDef | None = None
    responses: list[ResponseDef] = []


class ApiDocument(BaseModel):
    """A parsed document: schema definitions plus operations."""

    title: str = ""
    version: str = ""
    schemas: dict[str, SchemaNode] = {}
    operations: list[OperationDef] = []
