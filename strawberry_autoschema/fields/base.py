from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from strawberry import UNSET
from strawberry.annotation import StrawberryAnnotation
from strawberry.types.field import StrawberryField

from strawberry_autoschema.naming import to_python_name
from strawberry_autoschema.resolvers import get_accessor, get_value

if TYPE_CHECKING:
    from graphql.pyutils import AwaitableOrValue
    from strawberry.types import Info
    from strawberry.types.arguments import StrawberryArgument
    from typing_extensions import Self

    from strawberry_autoschema.accessor import Accessor
    from strawberry_autoschema.domain import Field, Model


class AutoSchemaField(StrawberryField):
    """Base of every generated field.

    Generated fields never have a resolver function. Their value comes from
    `get_result`, which receives the already converted arguments, so
    subclasses only override that. By default the value is read from the
    source record.
    """

    def __init__(
        self,
        *args,
        accessor_key: str = "accessor",
        model: Model | None = None,
        domain_field: Field | None = None,
        **kwargs,
    ):
        self.accessor_key = accessor_key
        self.model = model
        self.domain_field = domain_field
        super().__init__(*args, **kwargs)

    def __copy__(self) -> Self:
        new_field = super().__copy__()
        new_field.accessor_key = self.accessor_key
        new_field.model = self.model
        new_field.domain_field = self.domain_field
        return new_field

    @property
    def is_basic_field(self) -> bool:
        """Mark this field as not basic.

        Generated fields need `info` in `get_result`, so always return False here.
        """
        return False

    def get_accessor(self, info: Info) -> Accessor:
        return get_accessor(info, self.accessor_key)

    def get_result(
        self,
        source: Any,
        info: Info | None,
        args: list[Any],
        kwargs: dict[str, Any],
    ) -> AwaitableOrValue[Any]:
        return get_value(source, self.graphql_name or self.python_name)


class ValueField(AutoSchemaField):
    """Passthrough of a value already present on the source record."""


def field(
    name: str,
    type_: Any,
    *,
    field_cls: type[AutoSchemaField] = ValueField,
    arguments: Sequence[StrawberryArgument] = (),
    required: bool = True,
    description: str | None = None,
    **kwargs,
) -> AutoSchemaField:
    """Create a generated field named `name` of GraphQL type `type_`.

    `required` only matters for input fields, optional ones default to UNSET
    so that missing values can be told apart from explicit nulls.
    """
    new_field = field_cls(
        python_name=to_python_name(name),
        graphql_name=name,
        type_annotation=StrawberryAnnotation(type_),
        description=description,
        default=dataclasses.MISSING if required else UNSET,
        **kwargs,
    )
    if arguments:
        new_field.arguments = list(arguments)
    return new_field
