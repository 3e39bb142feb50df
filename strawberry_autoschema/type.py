"""Object, relation, edge and connection types.

Every model gets an object type named after it. Reverse relations get a
relation type repeating the target model's fields without the foreign key
leading back, so a relation cannot be traversed straight back the way it
came. Many-to-many relations resolve directly to the far model's type.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, cast

from .arguments import WHERE_ARG, argument, list_options_arguments
from .domain import FieldKind
from .fields.relations import ForeignKeyObjectField, RelationField, ThroughRelationField
from .fields.types import list_type, resolve_field_type
from .naming import get_connection_type_name, get_edge_type_name, get_type_name
from .pagination import CURSOR_FIELD, EDGES_FIELD, NODE_FIELD, PAGE_INFO_FIELD, PageInfo
from .registry import FieldDef, FieldMap, exclude_back_reference

if TYPE_CHECKING:
    from .domain import ForeignKeyField, Model, RelatedField, SimpleField
    from .registry import BuildContext

logger = logging.getLogger(__name__)


def _scalar_field(field: SimpleField) -> FieldDef:
    return FieldDef(field.name, Optional[resolve_field_type(field)])


def _foreign_key_field(ctx: BuildContext, field: ForeignKeyField) -> FieldDef:
    return FieldDef(
        field.name,
        Optional[ctx.object_type(field.referenced_field.model)],
        field_cls=ForeignKeyObjectField,
        options={"domain_field": field},
    )


def _relation_field(ctx: BuildContext, field: RelatedField) -> FieldDef:
    if field.through_field is not None:
        far_model = field.through_field.referenced_field.model
        return FieldDef(
            field.name,
            list_type(ctx.object_type(far_model)),
            field_cls=ThroughRelationField,
            arguments=[
                argument(WHERE_ARG, ctx.filter_type(far_model), is_optional=True),
                *list_options_arguments(),
            ],
            options={"domain_field": field},
        )

    key = ctx.relation_key(field)
    relation_cls = ctx.relation_object_types[key].cls
    return FieldDef(
        field.name,
        Optional[relation_cls] if field.is_to_one else list_type(relation_cls),
        field_cls=RelationField,
        arguments=[
            argument(WHERE_ARG, ctx.relation_filter_types[key].cls, is_optional=True),
            *list_options_arguments(),
        ],
        options={"domain_field": field},
    )


def _relation_object_type_fields(ctx: BuildContext, field: RelatedField):
    def fields() -> FieldMap:
        target = field.referencing_field.model
        return exclude_back_reference(ctx.object_fields[target.name], field)

    return fields


def _edge_type_fields(ctx: BuildContext, model: Model):
    def fields() -> FieldMap:
        return {
            NODE_FIELD: FieldDef(NODE_FIELD, Optional[ctx.object_type(model)]),
            CURSOR_FIELD: FieldDef(CURSOR_FIELD, Optional[str]),
        }

    return fields


def _connection_type_fields(ctx: BuildContext, model: Model):
    def fields() -> FieldMap:
        return {
            PAGE_INFO_FIELD: FieldDef(PAGE_INFO_FIELD, Optional[PageInfo]),
            EDGES_FIELD: FieldDef(EDGES_FIELD, list_type(ctx.edge_types[model.name].cls)),
            model.plural_name: FieldDef(model.plural_name, list_type(ctx.object_type(model))),
        }

    return fields


def create_object_types(ctx: BuildContext) -> None:
    # Allocate everything first, field maps may point at any of these
    for model in ctx.domain:
        ctx.object_types[model.name] = ctx.allocate(
            get_type_name(model),
            lambda name=model.name: ctx.object_fields[name],
            description=model.description,
        )
        if ctx.settings["GENERATE_CONNECTIONS"]:
            ctx.edge_types[model.name] = ctx.allocate(
                get_edge_type_name(model), _edge_type_fields(ctx, model)
            )
            ctx.connection_types[model.name] = ctx.allocate(
                get_connection_type_name(model), _connection_type_fields(ctx, model)
            )

    for model in ctx.domain:
        for f in model:
            if f.kind is not FieldKind.RELATED:
                continue
            f = cast("RelatedField", f)
            if f.through_field is not None:
                continue
            ctx.relation_object_types[ctx.relation_key(f)] = ctx.allocate(
                get_type_name(f), _relation_object_type_fields(ctx, f)
            )

    for model in ctx.domain:
        fields: FieldMap = {}
        for f in model:
            if f.kind is FieldKind.FOREIGN_KEY:
                fields[f.name] = _foreign_key_field(ctx, cast("ForeignKeyField", f))
            elif f.kind is FieldKind.SIMPLE:
                fields[f.name] = _scalar_field(cast("SimpleField", f))
            else:
                fields[f.name] = _relation_field(ctx, cast("RelatedField", f))
        ctx.object_fields[model.name] = fields

    logger.debug(
        "Allocated %d object types and %d relation types",
        len(ctx.object_types),
        len(ctx.relation_object_types),
    )
