"""The data-access contract generated resolvers rely on.

Nothing in this package talks to storage. Every resolver receives an
`Accessor` from the execution context and delegates to it, passing the model
(or field) involved and the argument payload as plain dictionaries.

Implementations must coalesce identical concurrent `load` calls within one
request, otherwise a selection touching many rows that reference the same
record issues one fetch per row. `strawberry.dataloader.DataLoader` is the
usual way of doing so, see `strawberry_autoschema.memory.MemoryAccessor`.
"""

from __future__ import annotations

from collections.abc import Awaitable, Mapping
from typing import TYPE_CHECKING, Any, Optional, Union

from typing_extensions import Protocol, TypeAlias, TypedDict

if TYPE_CHECKING:
    from .domain import Model, SimpleField

#: A stored row, keyed by field name. Foreign keys hold the referenced value.
Record: TypeAlias = Mapping[str, Any]
Where: TypeAlias = dict[str, Any]


class QueryOptions(TypedDict, total=False):
    where: Where
    limit: Optional[int]
    offset: Optional[int]
    #: Field names, prefixed with ``-`` for descending order
    order_by: Optional[list[str]]


class CursorOptions(TypedDict, total=False):
    where: Where
    order_by: Optional[list[str]]
    #: Page size, the executor returns up to ``limit + 1`` rows
    limit: Optional[int]
    #: Opaque cursor of the last row of the previous page
    cursor: Optional[str]


class Edge(TypedDict):
    node: Record
    cursor: str


class Accessor(Protocol):
    def load(
        self,
        field: SimpleField,
        value: Any,
    ) -> Awaitable[Union[Record, list[Record], None]]:
        """Fetch the record(s) whose `field` equals `value`.

        Unique fields resolve to one record or `None`, others to a list.
        """
        ...

    def query(self, model: Model, options: QueryOptions) -> Awaitable[list[Record]]: ...

    def get(self, model: Model, where: Where) -> Awaitable[Optional[Record]]: ...

    def create(self, model: Model, data: dict[str, Any]) -> Awaitable[Record]: ...

    def update(
        self,
        model: Model,
        data: dict[str, Any],
        where: Where,
    ) -> Awaitable[Record]: ...

    def upsert(
        self,
        model: Model,
        create: dict[str, Any],
        update: dict[str, Any],
    ) -> Awaitable[Record]: ...

    def delete(self, model: Model, where: Where) -> Awaitable[Record]: ...

    def cursor_query(
        self,
        model: Model,
        options: CursorOptions,
    ) -> Awaitable[list[Edge]]:
        """Return at most ``limit + 1`` edges ordered by ``order_by``.

        The extra row lets the connection resolver detect a next page.
        """
        ...
