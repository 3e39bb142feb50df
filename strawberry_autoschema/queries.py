"""Root query fields.

Every model is published three ways: a filtered list (``<pluralName>``), a
cursor paginated connection (``<pluralName>Connection``) and a single record
looked up by one of its unique fields (``<camelName>``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from .arguments import (
    LIMIT_ARG,
    OFFSET_ARG,
    ORDER_BY_ARG,
    WHERE_ARG,
    argument,
    connection_options_arguments,
    list_options_arguments,
    parse_arguments,
)
from .fields.base import AutoSchemaField
from .fields.types import list_type
from .naming import get_connection_field_name, get_list_field_name, get_single_field_name
from .pagination import ConnectionField
from .registry import FieldDef, FieldMap
from .resolvers import get_query_options

if TYPE_CHECKING:
    from graphql.pyutils import AwaitableOrValue
    from strawberry.types import Info

    from .registry import BuildContext


class ListField(AutoSchemaField):
    def get_result(
        self,
        source: Any,
        info: Info | None,
        args: list[Any],
        kwargs: dict[str, Any],
    ) -> AwaitableOrValue[Any]:
        assert info
        assert self.model is not None
        options = parse_arguments(kwargs, WHERE_ARG, LIMIT_ARG, OFFSET_ARG, ORDER_BY_ARG)
        return self.get_accessor(info).query(self.model, get_query_options(options))


class SingleField(AutoSchemaField):
    def get_result(
        self,
        source: Any,
        info: Info | None,
        args: list[Any],
        kwargs: dict[str, Any],
    ) -> AwaitableOrValue[Any]:
        assert info
        assert self.model is not None
        options = parse_arguments(kwargs, WHERE_ARG)
        return self.get_accessor(info).get(self.model, options[WHERE_ARG])


def create_query_fields(ctx: BuildContext) -> FieldMap:
    fields: FieldMap = {}
    for model in ctx.domain:
        object_cls = ctx.object_type(model)

        name = get_list_field_name(model)
        fields[name] = FieldDef(
            name,
            list_type(object_cls),
            field_cls=ListField,
            arguments=[
                argument(WHERE_ARG, ctx.filter_type(model), is_optional=True),
                *list_options_arguments(),
            ],
            options={"model": model},
        )

        if ctx.settings["GENERATE_CONNECTIONS"]:
            name = get_connection_field_name(model)
            fields[name] = FieldDef(
                name,
                Optional[ctx.connection_types[model.name].cls],
                field_cls=ConnectionField,
                arguments=[
                    argument(WHERE_ARG, ctx.filter_type(model), is_optional=True),
                    *connection_options_arguments(),
                ],
                options={
                    "model": model,
                    "default_limit": ctx.settings["PAGINATION_DEFAULT_LIMIT"],
                },
            )

        name = get_single_field_name(model)
        fields[name] = FieldDef(
            name,
            Optional[object_cls],
            field_cls=SingleField,
            arguments=[argument(WHERE_ARG, ctx.find_type(model))],
            options={"model": model},
        )

    return fields
