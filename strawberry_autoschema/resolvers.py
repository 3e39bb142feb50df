from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from strawberry.types.nodes import SelectedField

from .exceptions import AccessorNotFoundError

if TYPE_CHECKING:
    from strawberry.types import Info

    from .accessor import Accessor, QueryOptions, Record, Where


def get_value(record: Record | Any, name: str) -> Any:
    """Read a field from a record, records may be mappings or plain objects."""
    if record is None:
        return None
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def get_accessor(info: Info, key: str = "accessor") -> Accessor:
    """Return the data accessor from Info.

    The context may be an object with an ``accessor`` attribute or a mapping
    with an ``accessor`` key.
    """
    context = info.context
    try:
        accessor = getattr(context, key)
    except AttributeError:
        accessor = context.get(key) if isinstance(context, Mapping) else None

    if accessor is None:
        raise AccessorNotFoundError(key)

    return accessor


def selects_only(info: Info, field_name: str) -> bool:
    """Check if every occurrence of the current field selects `field_name` alone.

    Fragments, aliases of other fields or ``__typename`` all count as
    something else being requested.
    """
    selected_fields = info.selected_fields
    if not selected_fields:
        return False

    for selected in selected_fields:
        selections = selected.selections
        if len(selections) != 1:
            return False

        selection = selections[0]
        if not isinstance(selection, SelectedField) or selection.name != field_name:
            return False

    return True


def merge_where(where: Where | None, clause: Where) -> Where:
    """Add `clause` to a filter, keeping both when they constrain the same keys."""
    if not where:
        return dict(clause)
    if any(key in where for key in clause):
        return {"AND": [where, clause]}
    return {**where, **clause}


def get_query_options(options: Mapping[str, Any]) -> QueryOptions:
    """Translate parsed list arguments into accessor query options."""
    query_options: QueryOptions = {"where": options.get("where") or {}}
    for name, key in (("limit", "limit"), ("offset", "offset"), ("orderBy", "order_by")):
        if options.get(name) is not None:
            query_options[key] = options[name]
    return query_options
