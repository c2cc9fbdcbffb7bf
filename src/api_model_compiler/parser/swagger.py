"""OpenAPI / Swagger document parser.

Parses OpenAPI 3.x and Swagger 2.0 documents into an ApiDocument. Inline
request bodies and responses are hoisted into the schema table under the
synthetic names the compiler later renames (``body_<n>``,
``inline_response_<code>[_<n>]``). Shared parameters, request bodies and
responses given as local ``$ref``s are followed before parsing.
"""

from pathlib import Path
from typing import Any

import yaml

from api_model_compiler.compiler.naming import ref_name

from .base import ApiDocument, BodyDef, DocumentError, OperationDef, ParamDef, ResponseDef, SchemaNode

HTTP_METHODS = ("get", "post", "put", "delete", "patch", "head", "options")
PRIMITIVE_TYPES = ("string", "integer", "number", "boolean")


def parse_openapi(file_path: Path) -> ApiDocument:
    """Parse an OpenAPI/Swagger file into an ApiDocument."""
    try:
        text = file_path.read_text(encoding="utf-8")
        doc = yaml.safe_load(text)
    except (OSError, yaml.YAMLError) as e:
        raise DocumentError(f"Cannot read {file_path}: {e}") from e
    if not isinstance(doc, dict) or not ("openapi" in doc or "swagger" in doc):
        raise DocumentError(f"{file_path} is not an OpenAPI or Swagger document")
    return parse_openapi_dict(doc)


def parse_openapi_dict(doc: dict) -> ApiDocument:
    """Parse an already-loaded OpenAPI/Swagger mapping."""
    raw_schemas = doc.get("components", {}).get("schemas") or doc.get("definitions") or {}
    schemas = {name: convert_schema(raw) for name, raw in raw_schemas.items()}
    hoister = _InlineHoister(schemas)

    operations = []
    for path, methods in (doc.get("paths") or {}).items():
        shared_params = methods.get("parameters", [])
        for method, operation in methods.items():
            if method.lower() not in HTTP_METHODS:
                continue
            operations.append(_parse_operation(doc, path, method, operation, shared_params, hoister))

    info = doc.get("info", {})
    return ApiDocument(
        title=info.get("title", ""),
        version=str(info.get("version", "")),
        schemas=schemas,
        operations=operations,
    )


def convert_schema(raw: Any) -> SchemaNode:
    """Convert a raw schema mapping into a SchemaNode."""
    if not isinstance(raw, dict):
        return SchemaNode()

    common = {
        "title": raw.get("title"),
        "description": raw.get("description"),
        "format": raw.get("format"),
        "enum": raw.get("enum", []),
        "nullable": raw.get("nullable", False) or raw.get("x-nullable", False),
        "extensions": {k: v for k, v in raw.items() if k.startswith("x-")},
    }

    if "$ref" in raw:
        return SchemaNode(kind="object", ref=raw["$ref"], **common)

    if any(key in raw for key in ("allOf", "oneOf", "anyOf")):
        return SchemaNode(
            kind="composed",
            type=raw.get("type"),
            properties=_convert_properties(raw),
            required=raw.get("required", []),
            all_of=[convert_schema(s) for s in raw.get("allOf", [])],
            one_of=[convert_schema(s) for s in raw.get("oneOf", [])],
            any_of=[convert_schema(s) for s in raw.get("anyOf", [])],
            **common,
        )

    schema_type = raw.get("type")
    if schema_type == "array" or "items" in raw:
        return SchemaNode(kind="array", type="array", items=convert_schema(raw.get("items", {})), **common)

    additional = raw.get("additionalProperties")
    if additional is True or isinstance(additional, dict):
        return SchemaNode(
            kind="map",
            type="object",
            properties=_convert_properties(raw),
            required=raw.get("required", []),
            additional_properties=True if additional is True or additional == {} else convert_schema(additional),
            **common,
        )

    if schema_type in PRIMITIVE_TYPES:
        return SchemaNode(kind="primitive", type=schema_type, **common)

    return SchemaNode(
        kind="object",
        type="object",
        properties=_convert_properties(raw),
        required=raw.get("required", []),
        additional_properties=False if additional is False else None,
        **common,
    )


def _convert_properties(raw: dict) -> dict[str, SchemaNode]:
    return {name: convert_schema(prop) for name, prop in (raw.get("properties") or {}).items()}


def _parse_operation(doc: dict, path: str, method: str, operation: dict, shared_params: list, hoister) -> OperationDef:
    raw_params = [_follow_ref(doc, p) for p in shared_params + operation.get("parameters", [])]
    params = [_parse_parameter(p) for p in raw_params if p.get("in") != "body"]

    body_raw = _follow_ref(doc, operation.get("requestBody"))
    body_schema = None
    content_type = "application/json"
    if body_raw:
        body_schema, content_type = _pick_content(body_raw.get("content", {}))
    else:
        # Swagger 2.0 body parameter
        for p in raw_params:
            if p.get("in") == "body":
                body_raw = p
                body_schema = p.get("schema")
                break

    request_body = None
    if body_raw is not None and body_schema is not None:
        request_body = hoister.body(body_raw, body_schema, content_type)

    return OperationDef(
        operation_id=operation.get("operationId") or f"{method.lower()}{path.replace('/', '_')}",
        method=method.upper(),
        path=path,
        summary=operation.get("summary", ""),
        notes=operation.get("description"),
        tags=operation.get("tags", []),
        parameters=params,
        request_body=request_body,
        responses=_parse_responses(doc, operation.get("responses", {}), hoister),
    )


def _parse_parameter(p: dict) -> ParamDef:
    if "name" not in p:
        raise DocumentError(f"Parameter without a name: {p}")
    raw_schema = p.get("schema")
    if raw_schema is None:
        # Swagger 2.0 keeps type/format/items on the parameter itself
        raw_schema = {k: v for k, v in p.items() if k in ("type", "format", "items", "enum")}
    return ParamDef(
        name=p["name"],
        location=p.get("in", "query"),
        required=p.get("required", False),
        description=p.get("description", ""),
        schema_=convert_schema(raw_schema or {"type": "string"}),
    )


def _follow_ref(doc: dict, obj: Any) -> Any:
    """Replace a shared parameter, request body or response ``$ref`` with its target.

    ``#/components/parameters/limit`` and Swagger 2 ``#/parameters/limit`` are
    looked up in the loaded document. Sibling ``x-`` keys of the reference win.
    """
    seen = set()
    while isinstance(obj, dict) and "$ref" in obj:
        ref = obj["$ref"]
        if not ref.startswith("#/") or ref in seen:
            raise DocumentError(f"Cannot resolve reference {ref}")
        seen.add(ref)
        target = doc
        for part in ref[2:].split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            if not isinstance(target, dict) or part not in target:
                raise DocumentError(f"Cannot resolve reference {ref}")
            target = target[part]
        extensions = {k: v for k, v in obj.items() if k.startswith("x-")}
        obj = {**target, **extensions} if isinstance(target, dict) else target
    return obj


def _pick_content(content: dict) -> tuple[dict | None, str]:
    for content_type in ("application/json", "multipart/form-data"):
        if content_type in content:
            return content[content_type].get("schema"), content_type
    # Fallback: first available schema
    for content_type, ct_data in content.items():
        return ct_data.get("schema"), content_type
    return None, "application/json"


def _parse_responses(doc: dict, responses: dict, hoister) -> list[ResponseDef]:
    codes = [str(code) for code in responses]
    success = sorted(c for c in codes if c.startswith("2"))
    primary = success[0] if success else ("default" if "default" in codes else None)

    result = []
    for code, resp in responses.items():
        code = str(code)
        resp = _follow_ref(doc, resp) or {}
        if "content" in resp:
            raw_schema, _ = _pick_content(resp["content"])
        else:
            raw_schema = resp.get("schema")
        result.append(hoister.response(code, resp, raw_schema, is_default=code == primary))
    return result


class _InlineHoister:
    """Moves inline body/response schemas into the schema table.

    Numbering follows the base parser convention the renamer expects:
    bodies are ``body_1``, ``body_2``...; responses are
    ``inline_response_200``, then ``inline_response_200_1``...
    """

    def __init__(self, schemas: dict[str, SchemaNode]):
        self.schemas = schemas
        self._bodies = 0
        self._responses: dict[str, int] = {}

    def body(self, body_raw: dict, raw_schema: dict, content_type: str) -> BodyDef:
        extensions = {k: v for k, v in body_raw.items() if k.startswith("x-")}
        node = convert_schema(raw_schema)
        name = ref_name(node.ref) if node.ref else None
        if name is None and _is_hoistable(node):
            self._bodies += 1
            name = f"body_{self._bodies}"
            self.schemas[name] = node
        return BodyDef(
            schema_=node,
            schema_name=name,
            description=body_raw.get("description", ""),
            required=body_raw.get("required", False),
            content_type=content_type,
            extensions=extensions,
        )

    def response(self, code: str, resp: dict, raw_schema: dict | None, is_default: bool) -> ResponseDef:
        extensions = {k: v for k, v in resp.items() if k.startswith("x-")}
        node = convert_schema(raw_schema) if raw_schema is not None else None
        name = ref_name(node.ref) if node is not None and node.ref else None
        if node is not None and name is None and _is_hoistable(node):
            count = self._responses.get(code, 0)
            self._responses[code] = count + 1
            name = f"inline_response_{code}" if count == 0 else f"inline_response_{code}_{count}"
            self.schemas[name] = node
        return ResponseDef(
            code=code,
            description=resp.get("description", ""),
            schema_=node,
            schema_name=name,
            is_default=is_default,
            extensions=extensions,
        )


def _is_hoistable(node: SchemaNode) -> bool:
    if node.kind == "composed":
        return True
    return node.kind in ("object", "map") and bool(node.properties)
