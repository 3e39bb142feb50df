"""Filter and unique-lookup input types.

Every model gets a ``Filter<Model>Input`` with comparison operators for its
scalar fields, nested filters for its foreign keys and ``_some``/``_none``
existence filters for its relations, all composable with ``AND``, ``OR``
and ``NOT``. Models also get a ``Find<Model>Input`` restricted to the fields
able to identify a single record.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, cast

from .domain import FieldKind
from .fields.types import resolve_field_type
from .naming import get_filter_type_name, get_find_type_name
from .registry import FieldDef, FieldMap, exclude

if TYPE_CHECKING:
    from .domain import ForeignKeyField, RelatedField, SimpleField
    from .registry import BuildContext

logger = logging.getLogger(__name__)

AND = "AND"
OR = "OR"
NOT = "NOT"

LT = "lt"
LE = "le"
GE = "ge"
GT = "gt"
NE = "ne"
IN = "in"
LIKE = "like"
NULL = "null"
SOME = "some"
NONE = "none"

COMPARISON_OPERATORS = (LT, LE, GE, GT, NE)
BOOLEAN_OPERATORS = (AND, OR, NOT)
_ALL_OPERATORS = frozenset({*COMPARISON_OPERATORS, IN, LIKE, NULL, SOME, NONE})


def operator_field_name(field_name: str, operator: str) -> str:
    return f"{field_name}_{operator}"


def split_operator(name: str) -> tuple[str, Optional[str]]:
    """Split ``age_lt`` into ``("age", "lt")``, plain field names have no operator."""
    field_name, sep, operator = name.rpartition("_")
    if sep and field_name and operator in _ALL_OPERATORS:
        return field_name, operator
    return name, None


def _optional(name: str, type_: Any) -> FieldDef:
    return FieldDef(name, Optional[type_], required=False)


def boolean_operator_fields(filter_cls: type) -> FieldMap:
    return {op: _optional(op, list[Optional[filter_cls]]) for op in BOOLEAN_OPERATORS}


def scalar_filter_fields(field: SimpleField) -> FieldMap:
    type_ = resolve_field_type(field)
    fields = {field.name: _optional(field.name, type_)}
    for op in COMPARISON_OPERATORS:
        name = operator_field_name(field.name, op)
        fields[name] = _optional(name, type_)

    name = operator_field_name(field.name, NULL)
    fields[name] = _optional(name, bool)
    name = operator_field_name(field.name, IN)
    fields[name] = _optional(name, list[Optional[type_]])
    if type_ is str:
        name = operator_field_name(field.name, LIKE)
        fields[name] = _optional(name, type_)

    return fields


def _filter_type_fields(ctx: BuildContext, model_name: str):
    handle = ctx.filter_types[model_name]

    def fields() -> FieldMap:
        return {**ctx.filter_fields[model_name], **boolean_operator_fields(handle.cls)}

    return fields


def _relation_filter_type_fields(ctx: BuildContext, key: tuple[str, str]):
    handle = ctx.relation_filter_types[key]
    model_name, field_name = key
    back_reference = cast(
        "RelatedField", ctx.domain.model(model_name).get_field(field_name)
    ).referencing_field

    def fields() -> FieldMap:
        return {
            **exclude(ctx.filter_fields[back_reference.model.name], back_reference.name),
            **boolean_operator_fields(handle.cls),
        }

    return fields


def create_filter_types(ctx: BuildContext) -> None:
    # Pass 1: scalar fields, every filter type exists afterwards
    for model in ctx.domain:
        filter_fields: FieldMap = {}
        find_fields: FieldMap = {}
        for f in model:
            if f.kind is not FieldKind.SIMPLE:
                continue
            f = cast("SimpleField", f)
            filter_fields.update(scalar_filter_fields(f))
            if f.is_unique():
                find_fields[f.name] = _optional(f.name, resolve_field_type(f))

        ctx.filter_fields[model.name] = filter_fields
        ctx.find_fields[model.name] = find_fields
        ctx.filter_types[model.name] = ctx.allocate(
            get_filter_type_name(model), is_input=True
        )
        ctx.filter_types[model.name].fields = _filter_type_fields(ctx, model.name)
        ctx.find_types[model.name] = ctx.allocate(
            get_find_type_name(model),
            lambda fields=find_fields: fields,
            is_input=True,
        )

    logger.debug("Allocated %d filter types", len(ctx.filter_types))

    # Pass 2: foreign keys filter on the referenced model
    for model in ctx.domain:
        for f in model:
            if f.kind is not FieldKind.FOREIGN_KEY:
                continue
            f = cast("ForeignKeyField", f)
            referenced = f.referenced_field.model
            ctx.filter_fields[model.name][f.name] = _optional(
                f.name, ctx.filter_type(referenced)
            )
            if f.is_unique():
                ctx.find_fields[model.name][f.name] = _optional(
                    f.name, ctx.find_type(referenced)
                )

    # Pass 3: relations filter on the records pointing back
    for model in ctx.domain:
        for f in model:
            if f.kind is not FieldKind.RELATED:
                continue
            f = cast("RelatedField", f)
            key = ctx.relation_key(f)
            handle = ctx.allocate(get_filter_type_name(f), is_input=True)
            ctx.relation_filter_types[key] = handle
            handle.fields = _relation_filter_type_fields(ctx, key)

            for op in (SOME, NONE):
                name = operator_field_name(f.name, op)
                ctx.filter_fields[model.name][name] = _optional(name, handle.cls)

    logger.debug("Allocated %d relation filter types", len(ctx.relation_filter_types))
