"""Names of every generated type and root field.

These names are part of the published API, consumers depend on them.
"""

from __future__ import annotations

import keyword
import re
from typing import TYPE_CHECKING, Union

from strawberry.utils.str_converters import capitalize_first
from typing_extensions import TypeAlias

if TYPE_CHECKING:
    from .domain import Model, RelatedField

Named: TypeAlias = Union["Model", "RelatedField"]

_WORD_SEPARATOR = re.compile(r"[_\-\s]+")


def to_pascal_case(name: str) -> str:
    """Convert ``user_posts``, ``user-posts`` or ``userPosts`` to ``UserPosts``."""
    parts = _WORD_SEPARATOR.split(name)
    return "".join(capitalize_first(part) for part in parts if part)


def lower_first(name: str) -> str:
    return name[:1].lower() + name[1:]


def to_python_name(name: str) -> str:
    """Python attribute name for a GraphQL name.

    GraphQL names may clash with python keywords (``from``, ``class``...).
    """
    return f"{name}_" if keyword.iskeyword(name) else name


def _pascal_name(input_: Named) -> str:
    from .domain import RelatedField

    if isinstance(input_, RelatedField):
        return input_.pascal_name
    return input_.name


def get_type_name(input_: Named) -> str:
    return _pascal_name(input_)


def get_edge_type_name(model: Model) -> str:
    return f"{model.name}Edge"


def get_connection_type_name(model: Model) -> str:
    return f"{model.name}Connection"


def get_filter_type_name(input_: Named) -> str:
    return f"Filter{_pascal_name(input_)}Input"


def get_find_type_name(model: Model) -> str:
    return f"Find{model.name}Input"


def get_create_type_name(model: Model) -> str:
    return f"Create{model.name}Input"


def get_update_type_name(model: Model) -> str:
    return f"Update{model.name}Input"


def get_upsert_type_name(model: Model) -> str:
    return f"Upsert{model.name}Input"


def get_create_parent_type_name(model: Model) -> str:
    return f"Create{model.name}ParentInput"


def get_update_parent_type_name(model: Model) -> str:
    return f"Upsert{model.name}ParentInput"


def get_connect_child_type_name(field: RelatedField) -> str:
    return f"Connect{field.pascal_name}Input"


def get_create_child_type_name(field: RelatedField, qualifier: str = "") -> str:
    return f"Create{qualifier}{field.pascal_name}Input"


def get_update_child_type_name(field: RelatedField, qualifier: str = "") -> str:
    return f"Update{qualifier}{field.pascal_name}Input"


def get_update_child_fields_type_name(field: RelatedField) -> str:
    return f"Update{field.pascal_name}InputFields"


def get_upsert_child_type_name(field: RelatedField) -> str:
    return f"Upsert{field.pascal_name}Input"


def get_create_many_child_type_name(field: RelatedField) -> str:
    return get_create_child_type_name(field, "Many")


def get_update_many_child_type_name(field: RelatedField) -> str:
    return get_update_child_type_name(field, "Many")


def get_list_field_name(model: Model) -> str:
    return model.plural_name


def get_connection_field_name(model: Model) -> str:
    return f"{model.plural_name}Connection"


def get_single_field_name(model: Model) -> str:
    return lower_first(model.name)


def get_mutation_field_name(action: str, model: Model) -> str:
    return f"{action}{model.name}"
