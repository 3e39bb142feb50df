"""Input types of the create, update and upsert mutations.

Inputs nest: a foreign key takes a parent shape (connect to an existing
record, create or upsert one) and a relation takes a child shape whose
operations depend on the cardinality of the relation:

==========================  ======================  ==============================
relation                    create                  update
==========================  ======================  ==============================
to-one (unique foreign key) connect, create         connect, create, upsert, update
to-many                     connect, create, upsert adds update, delete, disconnect
many-to-many                same as to-many, on the far model's own input types
==========================  ======================  ==============================

Nested children never repeat the foreign key leading back to their parent,
the parent provides it.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any, Optional, cast

from strawberry_autoschema.arguments import CREATE_ARG, DATA_ARG, UPDATE_ARG, WHERE_ARG
from strawberry_autoschema.domain import FieldKind
from strawberry_autoschema.fields.types import (
    list_type,
    resolve_field_type,
    resolve_input_type,
)
from strawberry_autoschema.naming import (
    get_connect_child_type_name,
    get_create_child_type_name,
    get_create_many_child_type_name,
    get_create_parent_type_name,
    get_create_type_name,
    get_update_child_fields_type_name,
    get_update_child_type_name,
    get_update_many_child_type_name,
    get_update_parent_type_name,
    get_update_type_name,
    get_upsert_child_type_name,
    get_upsert_type_name,
)
from strawberry_autoschema.registry import FieldDef, FieldMap, exclude_back_reference

if TYPE_CHECKING:
    from strawberry_autoschema.domain import (
        ForeignKeyField,
        Model,
        RelatedField,
        SimpleField,
    )
    from strawberry_autoschema.registry import BuildContext, TypeHandle

logger = logging.getLogger(__name__)

CONNECT = "connect"
CREATE = CREATE_ARG
UPDATE = UPDATE_ARG
UPSERT = "upsert"
DELETE = "delete"
DISCONNECT = "disconnect"


def _optional(name: str, type_: Any) -> FieldDef:
    return FieldDef(name, Optional[type_], required=False)


def _list(name: str, type_: Any) -> FieldDef:
    return FieldDef(name, list_type(type_), required=False)


def _static(fields: FieldMap):
    return lambda: fields


def _parent_fields(ctx: BuildContext, model: Model, *, update: bool):
    def fields() -> FieldMap:
        result = {
            CONNECT: _optional(CONNECT, ctx.find_type(model)),
            CREATE: _optional(CREATE, ctx.create_types[model.name].cls),
        }
        if update:
            result[UPDATE] = _optional(UPDATE, ctx.update_types[model.name].cls)
        result[UPSERT] = _optional(UPSERT, ctx.upsert_types[model.name].cls)
        return result

    return fields


@dataclasses.dataclass
class _ChildTypes:
    """The input types a relation's nested operations are made of."""

    connect: type
    create: type
    update_fields: type
    upsert: type
    update: type


def _direct_child_types(ctx: BuildContext, field: RelatedField) -> _ChildTypes:
    target = field.referencing_field.model

    def fields_of(fields_map: dict[str, FieldMap]):
        return lambda: exclude_back_reference(fields_map[target.name], field)

    if field.is_to_one:
        connect = ctx.allocate(
            get_connect_child_type_name(field), fields_of(ctx.find_fields), is_input=True
        )
        ctx.connect_child_types[ctx.relation_key(field)] = connect
        connect_cls = connect.cls
    else:
        connect_cls = ctx.find_type(target)

    create = ctx.allocate(
        get_create_child_type_name(field), fields_of(ctx.create_fields), is_input=True
    )
    update_fields = ctx.allocate(
        get_update_child_fields_type_name(field),
        fields_of(ctx.update_fields),
        is_input=True,
    )
    upsert = ctx.allocate(
        get_upsert_child_type_name(field),
        _static({
            CREATE: FieldDef(CREATE, create.cls),
            UPDATE: FieldDef(UPDATE, update_fields.cls),
        }),
        is_input=True,
    )

    if field.is_to_one:
        # A single child is updated in place, there is nothing to look up
        update: TypeHandle = ctx.allocate(
            get_update_child_type_name(field), fields_of(ctx.update_fields), is_input=True
        )
    else:
        update = ctx.allocate(
            get_update_child_type_name(field),
            _static({
                WHERE_ARG: FieldDef(WHERE_ARG, connect_cls),
                DATA_ARG: FieldDef(DATA_ARG, update_fields.cls),
            }),
            is_input=True,
        )

    return _ChildTypes(connect_cls, create.cls, update_fields.cls, upsert.cls, update.cls)


def _through_child_types(ctx: BuildContext, field: RelatedField) -> _ChildTypes:
    assert field.through_field is not None
    far_model = field.through_field.referenced_field.model
    update_cls = ctx.update_types[far_model.name].cls
    update = ctx.allocate(
        get_update_child_type_name(field),
        _static({
            WHERE_ARG: FieldDef(WHERE_ARG, ctx.find_type(far_model)),
            DATA_ARG: FieldDef(DATA_ARG, update_cls),
        }),
        is_input=True,
    )
    return _ChildTypes(
        ctx.find_type(far_model),
        ctx.create_types[far_model.name].cls,
        update_cls,
        ctx.upsert_types[far_model.name].cls,
        update.cls,
    )


def _child_inputs(ctx: BuildContext, field: RelatedField) -> tuple[type, type]:
    """Allocate the create and update side inputs of a relation."""
    if field.through_field is not None:
        child = _through_child_types(ctx, field)
    else:
        child = _direct_child_types(ctx, field)

    if field.is_to_one:
        create_side = ctx.allocate(
            get_create_child_type_name(field, "One"),
            _static({
                CONNECT: _optional(CONNECT, child.connect),
                CREATE: _optional(CREATE, child.create),
            }),
            is_input=True,
        )
        update_side = ctx.allocate(
            get_update_child_type_name(field, "One"),
            _static({
                CONNECT: _optional(CONNECT, child.connect),
                CREATE: _optional(CREATE, child.create),
                UPSERT: _optional(UPSERT, child.upsert),
                UPDATE: _optional(UPDATE, child.update),
            }),
            is_input=True,
        )
        return create_side.cls, update_side.cls

    create_side = ctx.allocate(
        get_create_many_child_type_name(field),
        _static({
            CONNECT: _list(CONNECT, child.connect),
            CREATE: _list(CREATE, child.create),
            UPSERT: _list(UPSERT, child.upsert),
        }),
        is_input=True,
    )
    update_side = ctx.allocate(
        get_update_many_child_type_name(field),
        _static({
            CONNECT: _list(CONNECT, child.connect),
            CREATE: _list(CREATE, child.create),
            UPSERT: _list(UPSERT, child.upsert),
            UPDATE: _list(UPDATE, child.update),
            DELETE: _list(DELETE, child.connect),
            DISCONNECT: _list(DISCONNECT, child.connect),
        }),
        is_input=True,
    )
    return create_side.cls, update_side.cls


def create_mutation_input_types(ctx: BuildContext) -> None:
    for model in ctx.domain:
        ctx.create_types[model.name] = ctx.allocate(
            get_create_type_name(model),
            lambda name=model.name: ctx.create_fields[name],
            is_input=True,
        )
        ctx.update_types[model.name] = ctx.allocate(
            get_update_type_name(model),
            lambda name=model.name: ctx.update_fields[name],
            is_input=True,
        )

    for model in ctx.domain:
        ctx.upsert_types[model.name] = ctx.allocate(
            get_upsert_type_name(model),
            _static({
                CREATE: FieldDef(CREATE, ctx.create_types[model.name].cls),
                UPDATE: FieldDef(UPDATE, ctx.update_types[model.name].cls),
            }),
            is_input=True,
        )
        ctx.create_parent_types[model.name] = ctx.allocate(
            get_create_parent_type_name(model),
            _parent_fields(ctx, model, update=False),
            is_input=True,
        )
        ctx.update_parent_types[model.name] = ctx.allocate(
            get_update_parent_type_name(model),
            _parent_fields(ctx, model, update=True),
            is_input=True,
        )

    for model in ctx.domain:
        create_fields: FieldMap = {}
        update_fields: FieldMap = {}
        for f in model:
            if f.kind is FieldKind.FOREIGN_KEY:
                referenced = cast("ForeignKeyField", f).referenced_field.model
                create_fields[f.name] = _optional(
                    f.name, ctx.create_parent_types[referenced.name].cls
                )
                update_fields[f.name] = _optional(
                    f.name, ctx.update_parent_types[referenced.name].cls
                )
            elif f.kind is FieldKind.SIMPLE:
                f = cast("SimpleField", f)
                create_fields[f.name] = FieldDef(
                    f.name, resolve_input_type(f), required=f.is_required
                )
                update_fields[f.name] = _optional(f.name, resolve_field_type(f))
            else:
                create_cls, update_cls = _child_inputs(ctx, cast("RelatedField", f))
                create_fields[f.name] = _optional(f.name, create_cls)
                update_fields[f.name] = _optional(f.name, update_cls)

        ctx.create_fields[model.name] = create_fields
        ctx.update_fields[model.name] = update_fields

    logger.debug(
        "Allocated mutation inputs for %d models and %d connect types",
        len(ctx.create_types),
        len(ctx.connect_child_types),
    )
