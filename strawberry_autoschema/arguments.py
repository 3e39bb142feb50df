from collections.abc import Mapping
from enum import Enum
from typing import Any, Optional

from strawberry import UNSET
from strawberry.annotation import StrawberryAnnotation
from strawberry.types import has_object_definition
from strawberry.types.arguments import StrawberryArgument

from .naming import to_python_name

WHERE_ARG = "where"
DATA_ARG = "data"
LIMIT_ARG = "limit"
OFFSET_ARG = "offset"
ORDER_BY_ARG = "orderBy"
FIRST_ARG = "first"
AFTER_ARG = "after"
CREATE_ARG = "create"
UPDATE_ARG = "update"

OrderBy = Optional[list[Optional[str]]]


def argument(
    name: str,
    type_: Any,
    *,
    is_list: bool = False,
    is_optional: bool = False,
    default: object = UNSET,
    description: Optional[str] = None,
) -> StrawberryArgument:
    argument_type = type_
    if is_list:
        argument_type = list[Optional[type_]]
    if is_optional:
        argument_type = Optional[argument_type]  # noqa: UP045

    return StrawberryArgument(
        default=default,
        description=description,
        graphql_name=name,
        python_name=to_python_name(name),
        type_annotation=StrawberryAnnotation(argument_type),
    )


def list_options_arguments() -> list[StrawberryArgument]:
    return [
        argument(LIMIT_ARG, int, is_optional=True),
        argument(OFFSET_ARG, int, is_optional=True),
        argument(ORDER_BY_ARG, str, is_list=True, is_optional=True),
    ]


def connection_options_arguments() -> list[StrawberryArgument]:
    return [
        argument(FIRST_ARG, int, is_optional=True),
        argument(AFTER_ARG, str, is_optional=True),
        argument(ORDER_BY_ARG, str, is_list=True, is_optional=True),
    ]


def parse_input(value: Any) -> Any:
    """Convert strawberry input objects into plain data.

    Input objects become dicts keyed by their GraphQL field names, fields left
    unset by the caller are omitted. Explicit nulls are kept.
    """
    if has_object_definition(value):
        definition = value.__strawberry_definition__
        data = {}
        for f in definition.fields:
            field_value = getattr(value, f.python_name, UNSET)
            if field_value is UNSET:
                continue
            data[f.graphql_name or f.python_name] = parse_input(field_value)
        return data

    if isinstance(value, (list, tuple)):
        return [parse_input(v) for v in value]

    if isinstance(value, Mapping):
        return {k: parse_input(v) for k, v in value.items() if v is not UNSET}

    if isinstance(value, Enum):
        return value.value

    return value


def parse_arguments(kwargs: Mapping[str, Any], *names: str) -> dict[str, Any]:
    """Pick the given resolver arguments that were actually provided."""
    options = {}
    for name in names:
        value = kwargs.get(to_python_name(name), UNSET)
        if value is UNSET:
            continue
        options[name] = parse_input(value)
    return options
