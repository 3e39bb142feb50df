"""An in-memory implementation of the data access contract.

`MemoryStore` keeps rows as plain dicts, `MemoryAccessor` answers the
generated resolvers from it. It supports the whole filter algebra, ordering,
cursors and the nested mutation inputs, which makes it handy for tests,
prototypes and as a reference for real implementations.

Create one `MemoryAccessor` per request and put it in the context::

    store = MemoryStore(domain)
    result = await schema.execute(query, context_value={"accessor": MemoryAccessor(store)})

Deleting a record deletes the records whose required foreign keys point at
it and nulls out the nullable ones.
"""

from __future__ import annotations

import contextlib
import functools
import logging
import re
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any, Optional, Union, cast

from strawberry.dataloader import DataLoader
from strawberry.relay import from_base64, to_base64

from .arguments import DATA_ARG, WHERE_ARG
from .domain import FieldKind
from .filters import (
    AND,
    GE,
    GT,
    IN,
    LE,
    LIKE,
    LT,
    NE,
    NONE,
    NOT,
    NULL,
    OR,
    SOME,
    split_operator,
)
from .mutations.inputs import CONNECT, CREATE, DELETE, DISCONNECT, UPDATE, UPSERT

if TYPE_CHECKING:
    from .accessor import CursorOptions, Edge, QueryOptions, Record, Where
    from .domain import Domain, ForeignKeyField, Model, RelatedField, SimpleField

logger = logging.getLogger(__name__)

Row = dict[str, Any]


class RecordNotFoundError(LookupError):
    """No record matches the lookup of a write operation."""

    def __init__(self, model_name: str, where: Mapping[str, Any]):
        self.model_name = model_name
        self.where = where
        super().__init__(f"No {model_name} matches {dict(where)!r}")


def _like_to_regex(pattern: str) -> re.Pattern:
    parts = []
    for char in pattern:
        if char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def _compare(operator: str, value: Any, expected: Any) -> bool:
    if operator == NULL:
        return (value is None) is bool(expected)
    if operator == NE:
        return value != expected
    if operator == IN:
        return value in (expected or ())
    if value is None:
        return False
    if operator == LT:
        return value < expected
    if operator == LE:
        return value <= expected
    if operator == GE:
        return value >= expected
    if operator == GT:
        return value > expected
    if operator == LIKE:
        return _like_to_regex(expected).fullmatch(str(value)) is not None

    raise ValueError(f'Unsupported filter operator "{operator}"')


def _sort_key(value: Any) -> tuple[bool, Any]:
    return (value is not None, value)


class MemoryStore:
    """Rows of every model of a domain, shared by all accessors."""

    def __init__(self, domain: Domain):
        self.domain = domain
        self.rows: dict[str, list[Row]] = {model.name: [] for model in domain}
        self.counters: dict[str, int] = {model.name: 0 for model in domain}

    def _model(self, model: Union[Model, str]) -> Model:
        return self.domain.model(model) if isinstance(model, str) else model

    def all(self, model: Union[Model, str]) -> list[Row]:
        return self.rows[self._model(model).name]

    def insert(self, model: Union[Model, str], values: Mapping[str, Any]) -> Row:
        """Store a row, foreign keys hold the referenced value."""
        model = self._model(model)
        row: Row = {}
        for f in model:
            if f.kind is FieldKind.RELATED:
                continue
            f = cast("SimpleField", f)
            value = values.get(f.name)
            if f.name not in values and f.has_default:
                value = f.default
            if isinstance(value, Mapping) and f.kind is FieldKind.FOREIGN_KEY:
                value = value.get(cast("ForeignKeyField", f).referenced_field.name)
            if value is None and f.auto_increment:
                value = self.counters[model.name] + 1
            if f.auto_increment and isinstance(value, int):
                self.counters[model.name] = max(self.counters[model.name], value)
            if value is None and f.is_required:
                raise ValueError(f'A value is required for "{f.qualified_name}"')
            row[f.name] = value

        unknown = set(values) - set(row)
        if unknown:
            raise ValueError(
                f"Unknown fields for {model.name}: " + ", ".join(sorted(unknown))
            )

        self.check_unique(model, row)
        self.rows[model.name].append(row)
        return row

    def check_unique(self, model: Model, row: Row) -> None:
        for f in model:
            if f.kind is FieldKind.RELATED or not f.is_unique():
                continue
            value = row.get(f.name)
            if value is None:
                continue
            for other in self.rows[model.name]:
                if other is not row and other.get(f.name) == value:
                    raise ValueError(
                        f'A {model.name} with {f.name}={value!r} already exists'
                    )

    def remove(self, model: Model, row: Row) -> None:
        """Remove a row, cascading to the rows referencing it."""
        rows = self.rows[model.name]
        if not any(r is row for r in rows):
            return
        self.rows[model.name] = [r for r in rows if r is not row]

        for f in model:
            # Many-to-many fields share the foreign key of a reverse field
            if f.kind is not FieldKind.RELATED or cast("RelatedField", f).through:
                continue
            back_reference = cast("RelatedField", f).referencing_field
            value = row.get(back_reference.referenced_field.name)
            for other in list(self.rows[back_reference.model.name]):
                if other.get(back_reference.name) != value:
                    continue
                if back_reference.nullable:
                    other[back_reference.name] = None
                else:
                    self.remove(back_reference.model, other)

    @contextlib.contextmanager
    def atomic(self) -> Iterator[None]:
        """Undo every change made inside the block when it raises."""
        rows = {name: [dict(r) for r in rows] for name, rows in self.rows.items()}
        counters = dict(self.counters)
        try:
            yield
        except BaseException:
            self.rows = rows
            self.counters = counters
            raise


class MemoryAccessor:
    """Per request accessor over a `MemoryStore`.

    Point loads go through one `DataLoader` per field, so identical loads
    issued while resolving a request are fetched once. Writes reset them.
    """

    def __init__(self, store: MemoryStore):
        self.store = store
        self.domain = store.domain
        self._loaders: dict[tuple[str, str], DataLoader] = {}

    # Reads

    def load(self, field: SimpleField, value: Any):
        key = (field.model.name, field.name)
        loader = self._loaders.get(key)
        if loader is None:
            loader = DataLoader(load_fn=functools.partial(self._batch_load, field))
            self._loaders[key] = loader
        return loader.load(value)

    async def _batch_load(
        self,
        field: SimpleField,
        keys: list[Any],
    ) -> list[Union[Record, list[Record], None]]:
        rows = self.store.all(field.model)
        results: list[Union[Record, list[Record], None]] = []
        for key in keys:
            matches = [dict(r) for r in rows if r.get(field.name) == key]
            if field.is_unique():
                results.append(matches[0] if matches else None)
            else:
                results.append(matches)

        logger.debug("Loaded %d keys of %s", len(keys), field.qualified_name)
        return results

    async def query(self, model: Model, options: QueryOptions) -> list[Record]:
        rows = self._select(model, options.get("where"), options.get("order_by"))
        offset = options.get("offset") or 0
        limit = options.get("limit")
        rows = rows[offset:] if limit is None else rows[offset : offset + limit]
        return [dict(r) for r in rows]

    async def get(self, model: Model, where: Where) -> Optional[Record]:
        row = self._find(model, where)
        return dict(row) if row is not None else None

    async def cursor_query(self, model: Model, options: CursorOptions) -> list[Edge]:
        rows = self._select(model, options.get("where"), options.get("order_by"))
        key_name = model.key_field().name

        cursor = options.get("cursor")
        if cursor:
            type_name, key = from_base64(cursor)
            positions = [
                i for i, r in enumerate(rows) if str(r.get(key_name)) == key
            ]
            if type_name != model.name or not positions:
                raise ValueError(f'Invalid cursor "{cursor}"')
            rows = rows[positions[0] + 1 :]

        limit = options.get("limit")
        if limit is not None:
            rows = rows[: limit + 1]

        return [
            {"node": dict(r), "cursor": to_base64(model.name, r.get(key_name))}
            for r in rows
        ]

    # Writes

    async def create(self, model: Model, data: dict[str, Any]) -> Record:
        with self._write():
            row = self._create(model, data)
        logger.debug("Created %s %r", model.name, row.get(model.key_field().name))
        return dict(row)

    async def update(self, model: Model, data: dict[str, Any], where: Where) -> Record:
        with self._write():
            row = self._update(model, self._get(model, where), data)
        logger.debug("Updated %s %r", model.name, row.get(model.key_field().name))
        return dict(row)

    async def upsert(
        self,
        model: Model,
        create: dict[str, Any],
        update: dict[str, Any],
    ) -> Record:
        with self._write():
            row = self._upsert(model, create, update)
        logger.debug("Upserted %s %r", model.name, row.get(model.key_field().name))
        return dict(row)

    async def delete(self, model: Model, where: Where) -> Record:
        with self._write():
            row = self._get(model, where)
            self.store.remove(model, row)
        logger.debug("Deleted %s %r", model.name, row.get(model.key_field().name))
        return dict(row)

    @contextlib.contextmanager
    def _write(self) -> Iterator[None]:
        self._loaders.clear()
        with self.store.atomic():
            yield

    # Filtering

    def _select(
        self,
        model: Model,
        where: Optional[Where],
        order_by: Optional[list[str]],
    ) -> list[Row]:
        rows = [r for r in self.store.all(model) if self._matches(model, r, where)]
        for entry in reversed(order_by or []):
            if not entry:
                continue
            descending = entry.startswith("-")
            name = entry.lstrip("-")
            f = model.get_field(name)
            if f is None or f.kind is FieldKind.RELATED:
                raise ValueError(f'Cannot order {model.plural_name} by "{name}"')
            rows.sort(key=lambda r: _sort_key(r.get(name)), reverse=descending)
        return rows

    def _matches(
        self,
        model: Model,
        row: Row,
        where: Optional[Mapping[str, Any]],
    ) -> bool:
        for name, expected in (where or {}).items():
            if not self._matches_clause(model, row, name, expected):
                return False
        return True

    def _matches_clause(self, model: Model, row: Row, name: str, expected: Any) -> bool:
        if name in (AND, OR, NOT):
            clauses = [w for w in expected or () if w is not None]
            if name == AND:
                return all(self._matches(model, row, w) for w in clauses)
            if name == OR:
                return not clauses or any(self._matches(model, row, w) for w in clauses)
            return not any(self._matches(model, row, w) for w in clauses)

        f = model.get_field(name)
        operator = None
        if f is None:
            field_name, operator = split_operator(name)
            f = model.get_field(field_name)
        if f is None or (operator is None and f.kind is FieldKind.RELATED):
            raise ValueError(f'Unknown filter "{name}" for {model.name}')

        if f.kind is FieldKind.RELATED:
            if operator not in (SOME, NONE):
                raise ValueError(f'Unknown filter "{name}" for {model.name}')
            if expected is None:
                return True
            found = any(
                self._matches(f_model, other, expected)
                for f_model, other in self._related_rows(cast("RelatedField", f), row)
            )
            return found if operator == SOME else not found

        value = row.get(f.name)
        if operator is None:
            if f.kind is FieldKind.FOREIGN_KEY and isinstance(expected, Mapping):
                foreign_key = cast("ForeignKeyField", f)
                referenced = self._referenced_row(foreign_key, value)
                if referenced is None:
                    return False
                return self._matches(
                    foreign_key.referenced_field.model, referenced, expected
                )
            return value == expected

        if expected is None and operator != NULL:
            return True
        return _compare(operator, value, expected)

    def _related_rows(
        self,
        field: RelatedField,
        row: Row,
    ) -> Iterator[tuple[Model, Row]]:
        back_reference = field.referencing_field
        value = row.get(back_reference.referenced_field.name)
        if value is None:
            return
        for other in self.store.all(back_reference.model):
            if other.get(back_reference.name) == value:
                yield back_reference.model, other

    def _referenced_row(self, field: ForeignKeyField, value: Any) -> Optional[Row]:
        if value is None:
            return None
        referenced = field.referenced_field
        for other in self.store.all(referenced.model):
            if other.get(referenced.name) == value:
                return other
        return None

    def _find(self, model: Model, where: Optional[Mapping[str, Any]]) -> Optional[Row]:
        if not where:
            raise ValueError(f"A lookup of {model.name} needs at least one field")
        for row in self.store.all(model):
            if self._matches(model, row, where):
                return row
        return None

    def _get(self, model: Model, where: Mapping[str, Any]) -> Row:
        row = self._find(model, where)
        if row is None:
            raise RecordNotFoundError(model.name, where)
        return row

    def _find_existing(self, model: Model, data: Mapping[str, Any]) -> Optional[Row]:
        """Find the row sharing a unique value with `data`."""
        for f in model:
            if f.kind is FieldKind.RELATED or not f.is_unique():
                continue
            value = data.get(f.name)
            if f.kind is FieldKind.FOREIGN_KEY and isinstance(value, Mapping):
                value = self._connected_value(cast("ForeignKeyField", f), value)
            if value is None:
                continue
            for row in self.store.all(model):
                if row.get(f.name) == value:
                    return row
        return None

    def _connected_value(
        self,
        field: ForeignKeyField,
        payload: Mapping[str, Any],
    ) -> Any:
        """Referenced value a parent input points to, writing nothing."""
        referenced = field.referenced_field
        if payload.get(CONNECT) is None:
            return payload.get(referenced.name)
        parent = self._find(referenced.model, payload[CONNECT])
        return None if parent is None else parent.get(referenced.name)

    # Nested writes

    def _split(self, model: Model, data: Mapping[str, Any]):
        values: Row = {}
        parents: dict[ForeignKeyField, Any] = {}
        children: dict[RelatedField, Any] = {}
        for name, value in data.items():
            f = model.get_field(name)
            if f is None:
                raise ValueError(f'Unknown field "{name}" for {model.name}')
            if f.kind is FieldKind.RELATED:
                children[cast("RelatedField", f)] = value
            elif f.kind is FieldKind.FOREIGN_KEY and isinstance(value, Mapping):
                parents[cast("ForeignKeyField", f)] = value
            else:
                values[name] = value
        return values, parents, children

    def _create(
        self,
        model: Model,
        data: Mapping[str, Any],
        links: Optional[Mapping[str, Any]] = None,
    ) -> Row:
        values, parents, children = self._split(model, data)
        for f, payload in parents.items():
            values[f.name] = self._parent_value(f, payload, None)
        values.update(links or {})

        row = self.store.insert(model, values)
        for relation, payload in children.items():
            if payload is not None:
                self._apply_children(relation, row, payload)
        return row

    def _update(self, model: Model, row: Row, data: Mapping[str, Any]) -> Row:
        values, parents, children = self._split(model, data)
        for f, payload in parents.items():
            values[f.name] = self._parent_value(f, payload, row.get(f.name))

        for name, value in values.items():
            f = cast("SimpleField", model.get_field(name))
            if value is None and not f.nullable:
                raise ValueError(f'"{f.qualified_name}" cannot be null')
        row.update(values)
        self.store.check_unique(model, row)

        for relation, payload in children.items():
            if payload is not None:
                self._apply_children(relation, row, payload)
        return row

    def _upsert(
        self,
        model: Model,
        create: Mapping[str, Any],
        update: Mapping[str, Any],
        links: Optional[Mapping[str, Any]] = None,
    ) -> Row:
        row = self._find_existing(model, create)
        if row is None:
            return self._create(model, create, links)
        return self._update(model, row, {**update, **(links or {})})

    def _parent_value(
        self,
        field: ForeignKeyField,
        payload: Mapping[str, Any],
        current: Any,
    ) -> Any:
        """Resolve a parent input to the value stored in the foreign key."""
        parent_model = field.referenced_field.model
        parent: Optional[Row] = None
        if payload.get(CONNECT) is not None:
            parent = self._get(parent_model, payload[CONNECT])
        elif payload.get(CREATE) is not None:
            parent = self._create(parent_model, payload[CREATE])
        elif payload.get(UPDATE) is not None:
            parent = self._referenced_row(field, current)
            if parent is None:
                raise RecordNotFoundError(
                    parent_model.name, {field.referenced_field.name: current}
                )
            self._update(parent_model, parent, payload[UPDATE])
        elif payload.get(UPSERT) is not None:
            upsert = payload[UPSERT]
            parent = self._referenced_row(field, current)
            if parent is None:
                parent = self._upsert(parent_model, upsert[CREATE], upsert[UPDATE])
            else:
                self._update(parent_model, parent, upsert[UPDATE])
        else:
            return current

        return parent.get(field.referenced_field.name)

    def _apply_children(
        self,
        relation: RelatedField,
        parent: Row,
        payload: Mapping[str, Any],
    ) -> None:
        if relation.through_field is not None:
            self._apply_through_children(relation, parent, payload)
        elif relation.is_to_one:
            self._apply_one_child(relation, parent, payload)
        else:
            self._apply_many_children(relation, parent, payload)

    def _current_children(self, relation: RelatedField, parent: Row) -> list[Row]:
        return [row for _, row in self._related_rows(relation, parent)]

    def _child_link(self, relation: RelatedField, parent: Row) -> dict[str, Any]:
        back_reference = relation.referencing_field
        return {back_reference.name: parent.get(back_reference.referenced_field.name)}

    def _unlink(self, relation: RelatedField, child: Row) -> None:
        back_reference = relation.referencing_field
        if not back_reference.nullable:
            raise ValueError(
                f'Cannot disconnect a {back_reference.model.name}, '
                f'"{back_reference.qualified_name}" is required'
            )
        child[back_reference.name] = None

    def _apply_one_child(
        self,
        relation: RelatedField,
        parent: Row,
        payload: Mapping[str, Any],
    ) -> None:
        child_model = relation.referencing_field.model
        link = self._child_link(relation, parent)
        current = next(iter(self._current_children(relation, parent)), None)

        if payload.get(CONNECT) is not None:
            child = self._get(child_model, payload[CONNECT])
            if current is not None and current is not child:
                self._unlink(relation, current)
            child.update(link)
            self.store.check_unique(child_model, child)
        elif payload.get(CREATE) is not None:
            if current is not None:
                self._unlink(relation, current)
            self._create(child_model, payload[CREATE], link)
        elif payload.get(UPSERT) is not None:
            upsert = payload[UPSERT]
            if current is None:
                self._create(child_model, upsert[CREATE], link)
            else:
                self._update(child_model, current, upsert[UPDATE])
        elif payload.get(UPDATE) is not None:
            if current is None:
                raise RecordNotFoundError(child_model.name, link)
            self._update(child_model, current, payload[UPDATE])

    def _apply_many_children(
        self,
        relation: RelatedField,
        parent: Row,
        payload: Mapping[str, Any],
    ) -> None:
        child_model = relation.referencing_field.model
        link = self._child_link(relation, parent)

        def find_child(where: Mapping[str, Any]) -> Row:
            for child in self._current_children(relation, parent):
                if self._matches(child_model, child, where):
                    return child
            raise RecordNotFoundError(child_model.name, {**where, **link})

        for where in payload.get(CONNECT) or ():
            child = self._get(child_model, where)
            child.update(link)
        for data in payload.get(CREATE) or ():
            self._create(child_model, data, link)
        for upsert in payload.get(UPSERT) or ():
            self._upsert(child_model, upsert[CREATE], upsert[UPDATE], link)
        for entry in payload.get(UPDATE) or ():
            self._update(child_model, find_child(entry[WHERE_ARG]), entry[DATA_ARG])
        for where in payload.get(DELETE) or ():
            self.store.remove(child_model, find_child(where))
        for where in payload.get(DISCONNECT) or ():
            self._unlink(relation, find_child(where))

    def _apply_through_children(
        self,
        relation: RelatedField,
        parent: Row,
        payload: Mapping[str, Any],
    ) -> None:
        back_reference = relation.referencing_field
        through = cast("ForeignKeyField", relation.through_field)
        join_model = back_reference.model
        far_model = through.referenced_field.model
        parent_value = parent.get(back_reference.referenced_field.name)

        def joins() -> list[Row]:
            return self._current_children(relation, parent)

        def link(far: Row) -> None:
            far_value = far.get(through.referenced_field.name)
            if not any(j.get(through.name) == far_value for j in joins()):
                self.store.insert(
                    join_model,
                    {back_reference.name: parent_value, through.name: far_value},
                )

        def find_far(where: Mapping[str, Any]) -> tuple[Row, list[Row]]:
            far = self._get(far_model, where)
            far_value = far.get(through.referenced_field.name)
            links = [j for j in joins() if j.get(through.name) == far_value]
            if not links:
                raise RecordNotFoundError(far_model.name, where)
            return far, links

        for where in payload.get(CONNECT) or ():
            link(self._get(far_model, where))
        for data in payload.get(CREATE) or ():
            link(self._create(far_model, data))
        for upsert in payload.get(UPSERT) or ():
            link(self._upsert(far_model, upsert[CREATE], upsert[UPDATE]))
        for entry in payload.get(UPDATE) or ():
            far, _ = find_far(entry[WHERE_ARG])
            self._update(far_model, far, entry[DATA_ARG])
        for where in payload.get(DELETE) or ():
            far, _ = find_far(where)
            self.store.remove(far_model, far)
        for where in payload.get(DISCONNECT) or ():
            _, links = find_far(where)
            for join in links:
                self.store.remove(join_model, join)
