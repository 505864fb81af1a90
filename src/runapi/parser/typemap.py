"""Go type token to documentation type mapping."""

from functools import lru_cache

INT_TYPES = {"int", "int8", "int16", "int32", "uint", "uint8", "uint16", "uint32", "byte", "rune"}
LONG_TYPES = {"int64", "uint64"}


@lru_cache(maxsize=1024)
def map_request_type(go_type: str) -> str:
    """Map a Go type token to a request parameter type."""
    go_type = go_type.removeprefix("*")
    if go_type.startswith("[]"):
        return "array"
    if go_type == "string":
        return "string"
    if go_type in INT_TYPES:
        return "int"
    if go_type in LONG_TYPES:
        return "long"
    if go_type == "float32":
        return "float"
    if go_type == "float64":
        return "double"
    if go_type == "bool":
        return "boolean"
    if go_type == "file":
        return "file"
    # interface{}, any and custom structs
    return "object"


@lru_cache(maxsize=1024)
def map_response_type(go_type: str) -> str:
    """Map a Go type token to a response parameter type."""
    go_type = go_type.removeprefix("*")
    if go_type.startswith("[]"):
        return "array"
    if go_type == "string":
        return "string"
    if go_type in INT_TYPES:
        return "int"
    if go_type in LONG_TYPES:
        return "long"
    if go_type in ("float32", "float64"):
        return "number"
    if go_type == "bool":
        return "boolean"
    return "object"
