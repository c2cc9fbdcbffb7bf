"""Attaches response, pagination and query-parameter hints to operations."""

from api_model_compiler.gen_logging import get_logger

from .context import GenerationContext
from .model import Operation, TagGroup
from .naming import camelize, rename_identifiers, underscore
from .registry import ModelRegistry

logger = get_logger(__name__)

FENCE = "```"
NOCOMPILE = "nocompile"
DOC_LINE_BREAK = "\n    /// "


class OperationLinker:
    def __init__(self, context: GenerationContext, registry: ModelRegistry):
        self.context = context
        self.config = context.config
        self.registry = registry

    def link(self, operations: list[Operation]) -> list[TagGroup]:
        for operation in operations:
            self.link_operation(operation)
        return group_by_tag(operations)

    def link_operation(self, operation: Operation) -> None:
        renames = self.context.renames
        if operation.body_param is not None:
            operation.body_param.datatype = rename_identifiers(operation.body_param.datatype, renames)
        for response in operation.responses:
            if response.datatype:
                response.datatype = rename_identifiers(response.datatype, renames)

        self._link_primary_response(operation)
        self._classify_query_params(operation)
        if operation.notes:
            operation.notes = rewrite_notes(operation.notes)

    def _link_primary_response(self, operation: Operation) -> None:
        primary = operation.primary_response
        if primary is None or not primary.datatype:
            operation.meta.response_empty_default = True
            return

        # Removed placeholders still describe the response shape
        model = self.registry.lookup(primary.datatype)
        if model is None:
            return

        inner = model.meta.pagination_inner
        if inner is None:
            for var in model.vars:
                if var.container == "array" and var.items is not None:
                    inner = var.items.datatype
                    break

        meta = operation.meta
        if inner is not None:
            primary.meta.pagination_inner = inner
            meta.is_list_fn = True
            meta.response_plural = primary.datatype.replace("Response", "ListResponse")
            meta.response_plural_snake_case = underscore(primary.datatype.replace("Response", ""))
            meta.response_single = inner
            logger.debug("%s: list endpoint over %s", operation.operation_id, inner)
            return

        if len(model.vars) == 1:
            var = model.vars[0]
            target = self.registry.lookup(var.datatype)
            if target is not None and not target.removed:
                model.meta.single_response_key = var.base_name
                model.meta.single_response_datatype = var.datatype
                meta.single_response_key = var.base_name
                meta.single_response_datatype = var.datatype

    def _classify_query_params(self, operation: Operation) -> None:
        has_optional = True
        has_string = False
        for param in operation.query_params:
            if param.is_list_container and param.items_datatype == "String":
                param.meta.list_container_string = True
            if param.base_name in self.config.ignored_query_params:
                param.meta.ignore = True
            if param.required:
                has_optional = False
            if param.is_string or param.is_uuid:
                has_string = True
        operation.meta.has_optional_query_params = has_optional
        operation.meta.has_string_params = has_string


def rewrite_notes(notes: str) -> str:
    """Mark opening code fences ``nocompile`` and indent line breaks for doc comments."""
    lines = []
    in_block = False
    for line in notes.split("\n"):
        stripped = line.strip()
        if stripped.startswith(FENCE):
            if not in_block:
                indent = line[: len(line) - len(line.lstrip())]
                lang = stripped[len(FENCE):].strip()
                if not lang.endswith(NOCOMPILE):
                    lang = f"{lang},{NOCOMPILE}" if lang else NOCOMPILE
                line = f"{indent}{FENCE}{lang}"
            in_block = not in_block
        lines.append(line)
    return DOC_LINE_BREAK.join(lines)


def group_by_tag(operations: list[Operation]) -> list[TagGroup]:
    groups: dict[str, TagGroup] = {}
    for operation in operations:
        tag = operation.tags[0] if operation.tags else "default"
        group = groups.get(tag)
        if group is None:
            group = groups[tag] = TagGroup(base_name=underscore(tag), classname=camelize(tag))
        group.operations.append(operation.operation_id)
    return list(groups.values())
