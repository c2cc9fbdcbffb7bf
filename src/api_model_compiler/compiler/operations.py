"""Turns parsed operation definitions into Operation records.

Runs before schema resolution: the operation-name hints found on request
bodies and responses are what the registry later uses to give the hoisted
``body_<n>`` / ``inline_response_<code>`` models readable names.
"""

import re

from api_model_compiler.gen_logging import get_logger
from api_model_compiler.parser.base import BodyDef, OperationDef, ParamDef, ResponseDef

from .context import GenerationContext
from .model import Operation, Parameter, Response
from .naming import to_model_name, to_operation_id, underscore
from .resolver import SchemaResolver

logger = get_logger(__name__)

BODY_NAME = re.compile(r"^body_\d+$")
RESPONSE_NAME = re.compile(r"^inline_response_\d+(_\d+)?$")


class OperationBuilder:
    def __init__(self, context: GenerationContext, resolver: SchemaResolver):
        self.context = context
        self.config = context.config
        self.resolver = resolver

    def build_all(self, definitions: list[OperationDef]) -> list[Operation]:
        operations = [self.build(d) for d in definitions]
        logger.info("built %d operations, %d name hints", len(operations), len(self.context.names))
        return operations

    def build(self, definition: OperationDef) -> Operation:
        operation_id = to_operation_id(definition.operation_id)
        operation = Operation(
            operation_id=operation_id,
            nickname=underscore(operation_id),
            method=definition.method,
            path=definition.path,
            summary=definition.summary,
            notes=definition.notes,
            tags=list(definition.tags),
        )

        by_location = {
            "query": operation.query_params,
            "path": operation.path_params,
            "header": operation.header_params,
        }
        for param_def in definition.parameters:
            target = by_location.get(param_def.location)
            if target is None:
                logger.debug("%s: skipping %s parameter %s", operation_id, param_def.location, param_def.name)
                continue
            target.append(self.build_parameter(param_def))

        if definition.request_body is not None:
            operation.body_param = self.build_body(operation_id, definition.request_body)
        operation.responses = [self.build_response(operation_id, r) for r in definition.responses]
        return operation

    def build_parameter(self, param_def: ParamDef) -> Parameter:
        prop = self.resolver.resolve_property(param_def.name, param_def.schema_)
        return Parameter(
            base_name=param_def.name,
            param_name=prop.name,
            location=param_def.location,
            datatype=prop.datatype,
            required=param_def.required,
            description=param_def.description,
            container=prop.container,
            items_datatype=prop.items.datatype if prop.items else None,
            is_string=prop.datatype == "String",
            is_uuid=prop.datatype == "Uuid" or prop.data_format == "uuid",
        )

    def build_body(self, operation_id: str, body: BodyDef) -> Parameter:
        if body.schema_name:
            datatype = to_model_name(body.schema_name)
        else:
            datatype = self.resolver.resolve_property("body", body.schema_, owner=operation_id).datatype

        param = Parameter(
            base_name="body",
            param_name="body",
            location="body",
            datatype=datatype,
            required=body.required,
            description=body.description,
        )
        # from_json needs an unqualified type, so open-object bodies are flagged
        if body.schema_.kind in ("object", "map") and datatype.startswith("HashMap"):
            param.container = "map"
            param.meta.is_map_container = True

        hint = body.extensions.get(self.config.operation_name_extension)
        if hint and body.schema_name and BODY_NAME.match(body.schema_name):
            self.context.names.register(body.schema_name, str(hint))
        return param

    def build_response(self, operation_id: str, definition: ResponseDef) -> Response:
        datatype = None
        if definition.schema_name:
            datatype = to_model_name(definition.schema_name)
        elif definition.schema_ is not None:
            datatype = self.resolver.resolve_property("response", definition.schema_, owner=operation_id).datatype
        if datatype is not None:
            datatype = self.config.response_type_overrides.get(datatype, datatype)

        hint = definition.extensions.get(self.config.operation_name_extension)
        if hint and definition.schema_name and RESPONSE_NAME.match(definition.schema_name):
            self.context.names.register(definition.schema_name, f"{hint}Response")

        return Response(
            code=definition.code,
            message=definition.description,
            datatype=datatype,
            is_default=definition.is_default,
        )
