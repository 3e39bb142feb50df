"""Build-scoped registries and two-phase type allocation.

Generated types reference each other freely (a `Post` has an `author: User`
and a `User` has `posts: [Post]`), so every type is first allocated as an
empty placeholder class and only turned into a strawberry type once every
placeholder exists. Field maps are thunks called at that point.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, Optional

import strawberry

from .exceptions import ConfigurationError
from .fields.base import AutoSchemaField, ValueField, field

if TYPE_CHECKING:
    from strawberry.types.arguments import StrawberryArgument

    from .domain import Domain, Field, Model, RelatedField
    from .settings import AutoSchemaSettings

logger = logging.getLogger(__name__)

FieldMap = dict[str, "FieldDef"]


@dataclasses.dataclass(frozen=True)
class FieldDef:
    """Everything needed to create a generated field.

    The same definition may end up on several types (a relation type repeats
    most fields of its target), so `build` returns a new field every time.
    """

    name: str
    type_: Any
    field_cls: type[AutoSchemaField] = ValueField
    arguments: Sequence[StrawberryArgument] = ()
    required: bool = True
    description: Optional[str] = None
    options: Mapping[str, Any] = dataclasses.field(default_factory=dict)

    def build(self, accessor_key: str) -> AutoSchemaField:
        return field(
            self.name,
            self.type_,
            field_cls=self.field_cls,
            arguments=self.arguments,
            required=self.required,
            description=self.description,
            accessor_key=accessor_key,
            **self.options,
        )


def exclude(fields: Mapping[str, FieldDef], *names: str) -> FieldMap:
    return {k: v for k, v in fields.items() if k not in names}


def exclude_back_reference(
    fields: Mapping[str, FieldDef],
    relation: RelatedField,
) -> FieldMap:
    """Fields of the records on the other side of `relation`, minus the foreign key.

    A type left without fields keeps the foreign key when it is unique.
    """
    back_reference = relation.referencing_field
    result = exclude(fields, back_reference.name)
    if not result and back_reference.is_unique() and back_reference.name in fields:
        result[back_reference.name] = fields[back_reference.name]
    return result


def _placeholder(name: str) -> type:
    return type(name, (), {"__module__": __name__, "__annotations__": {}})


class TypeHandle:
    """A named type whose fields are not known yet.

    `cls` can be used in annotations right away, `finalize` fills it with
    the fields returned by the thunk and processes it with strawberry.
    """

    def __init__(
        self,
        name: str,
        fields: Optional[Callable[[], Mapping[str, FieldDef]]] = None,
        *,
        is_input: bool = False,
        description: Optional[str] = None,
    ):
        self.name = name
        self.fields = fields
        self.is_input = is_input
        self.description = description
        self.cls = _placeholder(name)
        self._finalized = False

    def __repr__(self) -> str:
        kind = "input" if self.is_input else "type"
        return f"<TypeHandle {kind} {self.name}>"

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    def finalize(self, accessor_key: str = "accessor") -> type:
        if self._finalized:
            return self.cls

        if self.fields is None:
            raise ConfigurationError(
                f'Type "{self.name}" was allocated but never populated'
            )

        field_map = self.fields()
        if not field_map:
            raise ConfigurationError(f'Type "{self.name}" would not have any field')

        cls = self.cls
        cls_annotations = cls.__dict__.get("__annotations__", {})
        cls.__annotations__ = cls_annotations
        for field_def in field_map.values():
            new_field = field_def.build(accessor_key)
            cls_annotations[new_field.python_name] = field_def.type_
            setattr(cls, new_field.python_name, new_field)

        strawberry.type(
            cls,
            name=self.name,
            is_input=self.is_input,
            description=self.description,
        )
        self._finalized = True
        return cls


class BuildContext:
    """State of one schema build, threaded through every generation pass."""

    def __init__(self, domain: Domain, settings: AutoSchemaSettings):
        self.domain = domain
        self.settings = settings
        self.handles: dict[str, TypeHandle] = {}

        # Filter pass
        self.filter_types: dict[str, TypeHandle] = {}
        self.filter_fields: dict[str, FieldMap] = {}
        self.find_types: dict[str, TypeHandle] = {}
        self.find_fields: dict[str, FieldMap] = {}
        self.relation_filter_types: dict[tuple[str, str], TypeHandle] = {}

        # Object pass
        self.object_types: dict[str, TypeHandle] = {}
        self.object_fields: dict[str, FieldMap] = {}
        self.relation_object_types: dict[tuple[str, str], TypeHandle] = {}
        self.edge_types: dict[str, TypeHandle] = {}
        self.connection_types: dict[str, TypeHandle] = {}

        # Mutation input pass
        self.create_types: dict[str, TypeHandle] = {}
        self.create_fields: dict[str, FieldMap] = {}
        self.update_types: dict[str, TypeHandle] = {}
        self.update_fields: dict[str, FieldMap] = {}
        self.upsert_types: dict[str, TypeHandle] = {}
        self.create_parent_types: dict[str, TypeHandle] = {}
        self.update_parent_types: dict[str, TypeHandle] = {}
        self.connect_child_types: dict[tuple[str, str], TypeHandle] = {}

    @property
    def accessor_key(self) -> str:
        return self.settings["ACCESSOR_CONTEXT_KEY"]

    def allocate(
        self,
        name: str,
        fields: Optional[Callable[[], Mapping[str, FieldDef]]] = None,
        *,
        is_input: bool = False,
        description: Optional[str] = None,
    ) -> TypeHandle:
        if name in self.handles:
            raise ConfigurationError(
                f'Two generated types would be named "{name}"',
                suggestion="Rename one of the models or relations involved",
            )

        handle = TypeHandle(name, fields, is_input=is_input, description=description)
        self.handles[name] = handle
        return handle

    def object_type(self, model: Model) -> type:
        return self.object_types[model.name].cls

    def filter_type(self, model: Model) -> type:
        return self.filter_types[model.name].cls

    def find_type(self, model: Model) -> type:
        return self.find_types[model.name].cls

    def relation_key(self, field: Field) -> tuple[str, str]:
        return (field.model.name, field.name)

    def finalize(self) -> None:
        for handle in list(self.handles.values()):
            handle.finalize(self.accessor_key)

        logger.debug("Finalized %d generated types", len(self.handles))
