from api_model_compiler.compiler.context import GenerationContext
from api_model_compiler.compiler.operations import OperationBuilder
from api_model_compiler.compiler.resolver import SchemaResolver
from api_model_compiler.config import load_config
from api_model_compiler.parser.swagger import parse_openapi_dict


def _build(doc: dict, **overrides):
    document = parse_openapi_dict(doc)
    context = GenerationContext(load_config(**overrides), document.schemas)
    builder = OperationBuilder(context, SchemaResolver(context))
    return builder.build_all(document.operations), context


def _doc(operation: dict, path: str = "/things", method: str = "post") -> dict:
    return {
        "openapi": "3.0.0",
        "info": {"title": "t", "version": "1"},
        "paths": {path: {method: operation}},
        "components": {"schemas": {"Thing": {"type": "object", "properties": {"id": {"type": "string"}}}}},
    }


class TestOperationIds:
    def test_group_prefix_dropped(self):
        ops, _ = _build(_doc({"operationId": "things/createThing", "responses": {}}))
        assert ops[0].operation_id == "createThing"
        assert ops[0].nickname == "create_thing"


class TestParameters:
    def test_classification(self):
        ops, _ = _build(_doc({
            "operationId": "listThings",
            "parameters": [
                {"name": "id", "in": "path", "required": True, "schema": {"type": "string", "format": "uuid"}},
                {"name": "include[]", "in": "query", "schema": {"type": "array", "items": {"type": "string"}}},
                {"name": "ref", "in": "query", "schema": {"type": "string"}},
                {"name": "X-Trace", "in": "header", "schema": {"type": "string"}},
                {"name": "session", "in": "cookie", "schema": {"type": "string"}},
            ],
            "responses": {},
        }, path="/things/{id}", method="get"))
        op = ops[0]
        path_id = op.path_params[0]
        assert (path_id.datatype, path_id.is_uuid, path_id.required) == ("Uuid", True, True)

        include, ref = op.query_params
        assert include.param_name == "include"
        assert include.container == "array"
        assert include.items_datatype == "String"
        assert ref.param_name == "git_ref"
        assert ref.is_string is True

        assert [p.base_name for p in op.header_params] == ["X-Trace"]


class TestBodies:
    def test_hoisted_body_registers_hint(self):
        ops, context = _build(_doc({
            "operationId": "createThing",
            "requestBody": {
                "x-codegen-operation-name": "CreateThing",
                "content": {"application/json": {"schema": {"type": "object", "properties": {"thing": {"$ref": "#/components/schemas/Thing"}}}}},
            },
            "responses": {},
        }))
        assert ops[0].body_param.datatype == "Body1"
        assert context.names.get("body_1") == "CreateThing"

    def test_referenced_body_registers_nothing(self):
        ops, context = _build(_doc({
            "operationId": "createThing",
            "requestBody": {
                "x-codegen-operation-name": "CreateThing",
                "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Thing"}}},
            },
            "responses": {},
        }))
        assert ops[0].body_param.datatype == "Thing"
        assert len(context.names) == 0

    def test_open_object_body_is_map_container(self):
        ops, _ = _build(_doc({
            "operationId": "putThing",
            "requestBody": {"content": {"application/json": {"schema": {"type": "object"}}}},
            "responses": {},
        }))
        body = ops[0].body_param
        assert body.datatype == "HashMap<String, Value>"
        assert body.meta.is_map_container is True


class TestResponses:
    def test_hoisted_response_registers_hint(self):
        ops, context = _build(_doc({
            "operationId": "getThing",
            "responses": {"200": {
                "description": "ok",
                "x-codegen-operation-name": "GetThing",
                "content": {"application/json": {"schema": {"type": "object", "properties": {"thing": {"$ref": "#/components/schemas/Thing"}}}}},
            }},
        }, method="get"))
        response = ops[0].responses[0]
        assert response.datatype == "InlineResponse200"
        assert response.message == "ok"
        assert response.is_default is True
        assert context.names.get("inline_response_200") == "GetThingResponse"

    def test_inline_array_response(self):
        ops, _ = _build(_doc({
            "operationId": "listThings",
            "responses": {"200": {"description": "ok", "content": {"application/json": {
                "schema": {"type": "array", "items": {"$ref": "#/components/schemas/Thing"}},
            }}}},
        }, method="get"))
        assert ops[0].responses[0].datatype == "Vec<Thing>"

    def test_response_type_override(self):
        doc = _doc({
            "operationId": "putActions",
            "responses": {"200": {"description": "ok", "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Thing"}}}}},
        }, method="put")
        ops, _ = _build(doc, response_type_overrides={"Thing": "ThingRepository"})
        assert ops[0].responses[0].datatype == "ThingRepository"

    def test_no_content(self):
        ops, _ = _build(_doc({"operationId": "deleteThing", "responses": {"204": {"description": "gone"}}}, method="delete"))
        assert ops[0].responses[0].datatype is None
