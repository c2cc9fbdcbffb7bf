"""Identifier helpers shared by every compiler stage."""

import re

RUST_KEYWORDS = frozenset({
    "as", "async", "await", "break", "const", "continue", "crate", "dyn", "else", "enum",
    "extern", "false", "fn", "for", "if", "impl", "in", "let", "loop", "match", "mod",
    "move", "mut", "pub", "ref", "return", "self", "static", "struct", "super", "trait",
    "true", "type", "unsafe", "use", "where", "while", "abstract", "become", "box", "do",
    "final", "macro", "override", "priv", "typeof", "unsized", "virtual", "yield", "try",
})

_WORD_SPLIT = re.compile(r"[^A-Za-z0-9]+")
_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CASE_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")
_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def camelize(name: str) -> str:
    """``inline_response_200_1`` -> ``InlineResponse2001``; inner capitals are kept."""
    parts = [p for p in _WORD_SPLIT.split(name) if p]
    return "".join(p[0].upper() + p[1:] for p in parts)


def underscore(name: str) -> str:
    """``EscalationPolicy`` -> ``escalation_policy``."""
    s = _ACRONYM_BOUNDARY.sub(r"\1_\2", name)
    s = _CASE_BOUNDARY.sub(r"\1_\2", s)
    s = _WORD_SPLIT.sub("_", s)
    return s.lower()


def upper_snake(name: str) -> str:
    """Variant name for a type or value: ``Vec<FooBar>`` -> ``VEC_FOO_BAR``."""
    return underscore(name).strip("_").upper()


def ref_name(ref: str) -> str:
    """Final schema name of a reference: ``#/components/schemas/Tag`` -> ``Tag``."""
    for prefix in ("#/components/schemas/", "#/definitions/"):
        if ref.startswith(prefix):
            return ref[len(prefix):]
    return ref


def split_reference(ref: str) -> tuple[str, list[str]]:
    """Split a reference into its schema name and any trailing path.

    ``Parent/allOf/0/properties/field`` -> ``("Parent", ["allOf", "0", "properties", "field"])``
    """
    head, *path = ref_name(ref).split("/")
    return head, path


def to_model_name(name: str) -> str:
    """Classname for a schema; reserved words and leading digits get a ``Model`` prefix."""
    model = camelize(name)
    if not model:
        return "Object"
    if model[0].isdigit() or model.lower() in RUST_KEYWORDS:
        return f"Model{model}"
    return model


def to_var_name(name: str, overrides: dict[str, str] | None = None) -> str:
    if overrides and name in overrides:
        return overrides[name]
    var = underscore(name).strip("_")
    if not var:
        return "_"
    # Leading underscores are kept as a single one: "_type" stays "_type"
    if name.startswith("_") or var in RUST_KEYWORDS or var[0].isdigit():
        return f"_{var}"
    return var


def to_enum_var_name(value) -> str:
    name = upper_snake(str(value))
    if not name:
        return "EMPTY"
    if name[0].isdigit():
        return f"_{name}"
    return name


def to_operation_id(operation_id: str) -> str:
    """Drop a leading ``group/`` qualifier: ``incidents/list_incidents`` -> ``list_incidents``."""
    return re.sub(r"[a-zA-Z0-9]+/", "", operation_id, count=1)


def rename_identifiers(datatype: str, renames: dict[str, str]) -> str:
    """Apply a classname rename map to every identifier inside a datatype."""
    if not renames:
        return datatype
    return _IDENTIFIER.sub(lambda m: renames.get(m.group(0), m.group(0)), datatype)


def normalize_version(version: str, package_version: str) -> str:
    """Pad a document version to three components.

    Missing components come from the same positions of the package version:
    ``"2"`` with package version ``"0.4.1"`` -> ``"2.4.1"``.
    """
    components = [c for c in version.split(".") if c] if version else []
    fill = [c for c in package_version.split(".") if c]
    while len(components) < 3:
        position = len(components)
        components.append(fill[position] if position < len(fill) else "0")
    return ".".join(components)
