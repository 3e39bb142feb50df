from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from strawberry_autoschema.arguments import (
    CREATE_ARG,
    DATA_ARG,
    UPDATE_ARG,
    WHERE_ARG,
    argument,
    parse_arguments,
)
from strawberry_autoschema.fields.base import AutoSchemaField
from strawberry_autoschema.naming import get_mutation_field_name
from strawberry_autoschema.registry import FieldDef, FieldMap

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from graphql.pyutils import AwaitableOrValue
    from strawberry.types import Info

    from strawberry_autoschema.accessor import Accessor, Record
    from strawberry_autoschema.domain import Model
    from strawberry_autoschema.registry import BuildContext


class AutoSchemaMutation(AutoSchemaField):
    """Base of the root mutation fields, each one maps to one accessor write."""

    argument_names: tuple[str, ...] = ()

    def get_result(
        self,
        source: Any,
        info: Info | None,
        args: list[Any],
        kwargs: dict[str, Any],
    ) -> AwaitableOrValue[Any]:
        assert info
        assert self.model is not None
        return self.resolver(
            self.get_accessor(info),
            self.model,
            parse_arguments(kwargs, *self.argument_names),
        )

    def resolver(
        self,
        accessor: Accessor,
        model: Model,
        arguments: dict[str, Any],
    ) -> Awaitable[Record]:
        raise NotImplementedError


class CreateMutation(AutoSchemaMutation):
    argument_names = (DATA_ARG,)

    def resolver(self, accessor, model, arguments):
        return accessor.create(model, arguments[DATA_ARG])


class UpdateMutation(AutoSchemaMutation):
    argument_names = (WHERE_ARG, DATA_ARG)

    def resolver(self, accessor, model, arguments):
        return accessor.update(model, arguments[DATA_ARG], arguments[WHERE_ARG])


class UpsertMutation(AutoSchemaMutation):
    argument_names = (CREATE_ARG, UPDATE_ARG)

    def resolver(self, accessor, model, arguments):
        return accessor.upsert(model, arguments[CREATE_ARG], arguments[UPDATE_ARG])


class DeleteMutation(AutoSchemaMutation):
    argument_names = (WHERE_ARG,)

    def resolver(self, accessor, model, arguments):
        return accessor.delete(model, arguments[WHERE_ARG])


def create_mutation_fields(ctx: BuildContext) -> FieldMap:
    fields: FieldMap = {}
    for model in ctx.domain:
        object_cls = Optional[ctx.object_type(model)]
        create_cls = ctx.create_types[model.name].cls
        update_cls = ctx.update_types[model.name].cls
        find_cls = ctx.find_type(model)

        for action, field_cls, arguments in (
            ("create", CreateMutation, [argument(DATA_ARG, create_cls)]),
            (
                "update",
                UpdateMutation,
                [argument(WHERE_ARG, find_cls), argument(DATA_ARG, update_cls)],
            ),
            (
                "upsert",
                UpsertMutation,
                [argument(CREATE_ARG, create_cls), argument(UPDATE_ARG, update_cls)],
            ),
            ("delete", DeleteMutation, [argument(WHERE_ARG, find_cls)]),
        ):
            name = get_mutation_field_name(action, model)
            fields[name] = FieldDef(
                name,
                object_cls,
                field_cls=field_cls,
                arguments=arguments,
                options={"model": model},
            )

    return fields
