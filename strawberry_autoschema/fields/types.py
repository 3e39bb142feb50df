import re
from typing import Any, Optional

from strawberry_autoschema.domain import SimpleField

_STRING_TYPE = re.compile(r"char|text", re.IGNORECASE)
_INT_TYPE = re.compile(r"^int", re.IGNORECASE)
_FLOAT_TYPE = re.compile(r"float|double", re.IGNORECASE)
_BOOL_TYPE = re.compile(r"^bool", re.IGNORECASE)


def resolve_scalar_type(storage_type: str) -> type:
    """Map a storage type such as ``varchar(40)`` or ``integer`` to a python scalar.

    Anything not recognized is exposed as a string.
    """
    if _STRING_TYPE.search(storage_type):
        return str
    if _INT_TYPE.search(storage_type):
        return int
    if _FLOAT_TYPE.search(storage_type):
        return float
    if _BOOL_TYPE.search(storage_type):
        return bool
    return str


def resolve_field_type(field: SimpleField) -> type:
    return resolve_scalar_type(field.type)


def resolve_input_type(field: SimpleField) -> Any:
    """Type of `field` in a create input: required unless the store can fill it."""
    type_ = resolve_field_type(field)
    return type_ if field.is_required else Optional[type_]


def list_type(type_: Any) -> Any:
    """A nullable list of nullable items, ``[T]`` in GraphQL."""
    return Optional[list[Optional[type_]]]
