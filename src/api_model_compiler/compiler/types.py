"""Schema type -> target type declarations."""

FALLBACK_TYPE = "Value"
OPEN_OBJECT = "object"
OPEN_MAP_TYPE = "HashMap<String, Value>"
DATETIME_TYPE = "DateTime<Utc>"
POINTER_SIZED_INT = "isize"

_TYPE_MAPPING = {
    "string": {
        None: "String",
        "date": "String",
        "date-time": "chrono::DateTime<chrono::Utc>",
        "byte": "String",
        "binary": "Vec<u8>",
        "uuid": "Uuid",
    },
    "integer": {
        None: POINTER_SIZED_INT,
        "int32": "i32",
        "int64": "i64",
    },
    "number": {
        None: "f64",
        "float": "f32",
        "double": "f64",
    },
    "boolean": {
        None: "bool",
    },
}

PRIMITIVE_TYPES = frozenset({
    "String", "bool", "i32", "i64", POINTER_SIZED_INT, "f32", "f64", "Vec<u8>", "Uuid",
    FALLBACK_TYPE, DATETIME_TYPE, "chrono::DateTime<chrono::Utc>",
})
INTEGER_TYPES = frozenset({"i32", "i64", POINTER_SIZED_INT})


def primitive_type(schema_type: str | None, schema_format: str | None = None) -> str:
    """Declaration for a primitive schema; unknown formats fall back to the bare type."""
    formats = _TYPE_MAPPING.get(schema_type or "string")
    if formats is None:
        return OPEN_OBJECT
    return formats.get(schema_format, formats[None])


def vec_of(inner: str) -> str:
    return f"Vec<{inner}>"


def map_of(inner: str) -> str:
    return f"HashMap<String, {inner}>"


def is_primitive(datatype: str) -> bool:
    return datatype in PRIMITIVE_TYPES or datatype.startswith(("Vec<", "HashMap<"))
