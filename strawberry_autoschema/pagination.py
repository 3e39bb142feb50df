from __future__ import annotations

from collections.abc import Awaitable, Sequence
from typing import TYPE_CHECKING, Any, Optional

import strawberry

from .arguments import AFTER_ARG, FIRST_ARG, ORDER_BY_ARG, WHERE_ARG, parse_arguments
from .fields.base import AutoSchemaField

if TYPE_CHECKING:
    from graphql.pyutils import AwaitableOrValue
    from strawberry.types import Info
    from typing_extensions import Self

    from .accessor import CursorOptions, Edge
    from .domain import Model

PAGE_INFO_FIELD = "pageInfo"
EDGES_FIELD = "edges"
NODE_FIELD = "node"
CURSOR_FIELD = "cursor"


@strawberry.type
class PageInfo:
    start_cursor: Optional[str] = strawberry.field(name="startCursor")
    end_cursor: Optional[str] = strawberry.field(name="endCursor")
    has_next_page: Optional[bool] = strawberry.field(name="hasNextPage")


def build_connection(
    model: Model,
    edges: Sequence[Edge],
    limit: Optional[int],
) -> dict[str, Any]:
    """Turn up to ``limit + 1`` edges into a connection page.

    The row past ``limit`` only signals that another page exists, it is
    not part of the page.
    """
    has_next_page = limit is not None and len(edges) > limit
    if limit is not None:
        edges = edges[:limit]

    page_info = PageInfo(
        start_cursor=edges[0][CURSOR_FIELD] if edges else None,
        end_cursor=edges[-1][CURSOR_FIELD] if edges else None,
        has_next_page=has_next_page,
    )
    return {
        PAGE_INFO_FIELD: page_info,
        EDGES_FIELD: list(edges),
        model.plural_name: [edge[NODE_FIELD] for edge in edges],
    }


class ConnectionField(AutoSchemaField):
    """Cursor paginated records of a model."""

    def __init__(self, *args, default_limit: Optional[int] = None, **kwargs):
        self.default_limit = default_limit
        super().__init__(*args, **kwargs)

    def __copy__(self) -> Self:
        new_field = super().__copy__()
        new_field.default_limit = self.default_limit
        return new_field

    def get_result(
        self,
        source: Any,
        info: Info | None,
        args: list[Any],
        kwargs: dict[str, Any],
    ) -> AwaitableOrValue[Any]:
        assert info
        assert self.model is not None
        options = parse_arguments(kwargs, WHERE_ARG, FIRST_ARG, AFTER_ARG, ORDER_BY_ARG)

        limit = options.get(FIRST_ARG)
        if limit is None:
            limit = self.default_limit
        if limit is not None and limit < 0:
            raise ValueError(f'"{FIRST_ARG}" must be a non-negative integer, got {limit}')

        cursor_options: CursorOptions = {
            "where": options.get(WHERE_ARG) or {},
            "order_by": options.get(ORDER_BY_ARG),
            "limit": limit,
            "cursor": options.get(AFTER_ARG),
        }
        return self.resolve_connection(
            self.get_accessor(info).cursor_query(self.model, cursor_options),
            limit,
        )

    async def resolve_connection(
        self,
        edges: Awaitable[list[Edge]],
        limit: Optional[int],
    ) -> dict[str, Any]:
        assert self.model is not None
        return build_connection(self.model, await edges, limit)
