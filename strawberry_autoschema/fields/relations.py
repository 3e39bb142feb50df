from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, cast

from strawberry_autoschema.arguments import (
    LIMIT_ARG,
    OFFSET_ARG,
    ORDER_BY_ARG,
    WHERE_ARG,
    parse_arguments,
)
from strawberry_autoschema.filters import SOME, operator_field_name
from strawberry_autoschema.resolvers import (
    get_query_options,
    get_value,
    merge_where,
    selects_only,
)

from .base import AutoSchemaField

if TYPE_CHECKING:
    from graphql.pyutils import AwaitableOrValue
    from strawberry.types import Info

    from strawberry_autoschema.accessor import Record
    from strawberry_autoschema.domain import ForeignKeyField, RelatedField

_LIST_ARGS = (WHERE_ARG, LIMIT_ARG, OFFSET_ARG, ORDER_BY_ARG)


def _is_plain_lookup(options: dict[str, Any]) -> bool:
    """Whether no list argument narrows or orders the related records."""
    return (
        not options.get(WHERE_ARG)
        and not options.get(ORDER_BY_ARG)
        and options.get(LIMIT_ARG) is None
        and options.get(OFFSET_ARG) is None
    )


class ForeignKeyObjectField(AutoSchemaField):
    """The record a foreign key points to.

    When the query only asks for the referenced field, which the source
    record already holds, a stub record is returned without fetching.
    """

    @property
    def foreign_key(self) -> ForeignKeyField:
        return cast("ForeignKeyField", self.domain_field)

    def get_result(
        self,
        source: Any,
        info: Info | None,
        args: list[Any],
        kwargs: dict[str, Any],
    ) -> AwaitableOrValue[Any]:
        foreign_key = self.foreign_key
        referenced = foreign_key.referenced_field
        value = get_value(source, foreign_key.name)
        if value is None:
            return None

        assert info
        if selects_only(info, referenced.name):
            return value if isinstance(value, Mapping) else {referenced.name: value}

        if isinstance(value, Mapping):
            value = value.get(referenced.name)

        return self.get_accessor(info).load(referenced, value)


class RelationField(AutoSchemaField):
    """Records of another model whose foreign key points at the source record."""

    @property
    def relation(self) -> RelatedField:
        return cast("RelatedField", self.domain_field)

    def get_result(
        self,
        source: Any,
        info: Info | None,
        args: list[Any],
        kwargs: dict[str, Any],
    ) -> AwaitableOrValue[Any]:
        assert info
        relation = self.relation
        back_reference = relation.referencing_field
        parent_value = get_value(source, back_reference.referenced_field.name)
        if parent_value is None:
            return None if relation.is_to_one else []

        options = parse_arguments(kwargs, *_LIST_ARGS)
        accessor = self.get_accessor(info)

        if relation.is_to_one and _is_plain_lookup(options):
            result = accessor.load(back_reference, parent_value)
        else:
            query_options = get_query_options(options)
            referenced_name = back_reference.referenced_field.name
            query_options["where"] = merge_where(
                query_options["where"],
                {back_reference.name: {referenced_name: parent_value}},
            )
            result = accessor.query(back_reference.model, query_options)

        if not relation.is_to_one:
            return result

        async def first() -> Record | None:
            rows = await result
            if isinstance(rows, list):
                return rows[0] if rows else None
            return rows

        return first()


class ThroughRelationField(AutoSchemaField):
    """Far side records of a many-to-many relation, skipping the join model."""

    @property
    def relation(self) -> RelatedField:
        return cast("RelatedField", self.domain_field)

    def get_result(
        self,
        source: Any,
        info: Info | None,
        args: list[Any],
        kwargs: dict[str, Any],
    ) -> AwaitableOrValue[Any]:
        assert info
        relation = self.relation
        back_reference = relation.referencing_field
        through = relation.through_field
        assert through is not None

        parent_value = get_value(source, back_reference.referenced_field.name)
        if parent_value is None:
            return []

        query_options = get_query_options(parse_arguments(kwargs, *_LIST_ARGS))
        # Far records having a join record that points back at the parent
        join_filter = {
            back_reference.name: {back_reference.referenced_field.name: parent_value}
        }
        query_options["where"] = merge_where(
            query_options["where"],
            {operator_field_name(through.related_field.name, SOME): join_filter},
        )
        far_model = through.referenced_field.model
        return self.get_accessor(info).query(far_model, query_options)
