"""The relational domain model a schema is generated from.

A `Domain` is an ordered list of `Model` instances. Each model has ordered
fields of three kinds, distinguished by their `kind` tag:

* `SimpleField`: a stored scalar column.
* `ForeignKeyField`: a `SimpleField` referencing a unique field of another model.
* `RelatedField`: a virtual field, either the reverse side of a foreign key
  (generated automatically) or a many-to-many relation declared `through` a
  join model.

Building a `Domain` links every reference and validates the whole model, so
an invalid description never gets as far as type generation.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, ClassVar, cast

from .exceptions import (
    ConfigurationError,
    DuplicateFieldError,
    InvalidReferenceError,
    MissingKeyFieldError,
    UnresolvedRelationError,
)
from .naming import lower_first, to_pascal_case

__all__ = [
    "Domain",
    "Field",
    "FieldKind",
    "ForeignKeyField",
    "Model",
    "RelatedField",
    "SimpleField",
]

logger = logging.getLogger(__name__)


class FieldKind(enum.Enum):
    SIMPLE = "simple"
    FOREIGN_KEY = "foreign_key"
    RELATED = "related"


@dataclasses.dataclass(eq=False)
class Field:
    kind: ClassVar[FieldKind]

    name: str
    model: Model = dataclasses.field(init=False, repr=False)

    def is_unique(self) -> bool:
        return False

    @property
    def qualified_name(self) -> str:
        return f"{self.model.name}.{self.name}"


@dataclasses.dataclass(eq=False)
class SimpleField(Field):
    kind: ClassVar[FieldKind] = FieldKind.SIMPLE

    #: Storage type as declared by the database, e.g. ``varchar(255)``
    type: str = "varchar"
    nullable: bool = False
    auto_increment: bool = False
    unique: bool = False
    primary_key: bool = False
    has_default: bool = False
    #: Value stored when a record is created without one, if `has_default`
    default: Any = None

    def is_unique(self) -> bool:
        return self.primary_key or self.unique

    @property
    def is_required(self) -> bool:
        """Whether a value has to be supplied when creating a record."""
        return not (self.nullable or self.auto_increment or self.has_default)


@dataclasses.dataclass(eq=False)
class ForeignKeyField(SimpleField):
    kind: ClassVar[FieldKind] = FieldKind.FOREIGN_KEY

    # Empty means "same as the referenced field"
    type: str = ""
    #: ``"Model"`` (its key field) or ``"Model.field"``
    references: str = ""
    #: Name of the reverse field generated on the referenced model
    related_name: str | None = None

    referenced_field: SimpleField = dataclasses.field(init=False, repr=False)
    related_field: RelatedField = dataclasses.field(init=False, repr=False)


@dataclasses.dataclass(eq=False)
class RelatedField(Field):
    kind: ClassVar[FieldKind] = FieldKind.RELATED

    #: ``"JoinModel.field"``, the join model foreign key reaching the far model
    through: str | None = None
    #: Join model foreign key pointing back at this model, found when omitted
    via: str | None = None

    #: The foreign key this field is the reverse of
    referencing_field: ForeignKeyField = dataclasses.field(init=False, repr=False)
    #: For many-to-many relations, the join model foreign key to the far model
    through_field: ForeignKeyField | None = dataclasses.field(
        default=None, init=False, repr=False
    )

    @property
    def pascal_name(self) -> str:
        return to_pascal_case(self.model.name) + to_pascal_case(self.name)

    @property
    def is_to_one(self) -> bool:
        return self.through_field is None and self.referencing_field.is_unique()

    @property
    def target_model(self) -> Model:
        """The model whose records this field resolves to."""
        if self.through_field is not None:
            return self.through_field.referenced_field.model
        return self.referencing_field.model


@dataclasses.dataclass(eq=False)
class Model:
    name: str
    fields: list[Field] = dataclasses.field(default_factory=list)
    plural_name: str = ""
    description: str | None = None

    def __post_init__(self):
        if not self.plural_name:
            self.plural_name = f"{lower_first(self.name)}s"

        fields, self.fields = self.fields, []
        for field in fields:
            self.add_field(field)

    def __iter__(self) -> Iterator[Field]:
        return iter(self.fields)

    def add_field(self, field: Field) -> None:
        if self.get_field(field.name) is not None:
            raise DuplicateFieldError(self.name, field.name)

        field.model = self
        self.fields.append(field)

    def get_field(self, name: str) -> Field | None:
        for field in self.fields:
            if field.name == name:
                return field
        return None

    def key_field(self) -> SimpleField:
        keys = [
            f
            for f in self.fields
            if isinstance(f, SimpleField) and f.primary_key
        ]
        if len(keys) != 1:
            raise MissingKeyFieldError(self.name, [f.name for f in keys])
        return keys[0]


_MODEL_KEYS = frozenset({"name", "plural_name", "description", "fields", "relations"})
_FIELD_KEYS = frozenset({
    "name",
    "type",
    "nullable",
    "auto_increment",
    "unique",
    "primary_key",
    "default",
    "references",
    "related_name",
})
_RELATION_KEYS = frozenset({"name", "through", "via"})


def _check_keys(data: Mapping[str, Any], allowed: frozenset[str], where: str):
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{where} must be a mapping, got {type(data).__name__}")

    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ConfigurationError(f"Unknown keys in {where}: " + ", ".join(unknown))

    if not data.get("name"):
        raise ConfigurationError(f'{where} is missing a "name"')


def _field_from_config(data: Mapping[str, Any], model_name: str) -> SimpleField:
    _check_keys(data, _FIELD_KEYS, f'a field of model "{model_name}"')
    options = {
        "nullable": bool(data.get("nullable", False)),
        "auto_increment": bool(data.get("auto_increment", False)),
        "unique": bool(data.get("unique", False)),
        "primary_key": bool(data.get("primary_key", False)),
        "has_default": "default" in data,
        "default": data.get("default"),
    }
    if data.get("references"):
        return ForeignKeyField(
            data["name"],
            type=data.get("type", ""),
            references=data["references"],
            related_name=data.get("related_name"),
            **options,
        )

    if "related_name" in data:
        raise ConfigurationError(
            f'Field "{model_name}.{data["name"]}" sets "related_name" '
            'but does not reference another model'
        )

    return SimpleField(data["name"], type=data.get("type", "varchar"), **options)


def _model_from_config(data: Mapping[str, Any]) -> Model:
    _check_keys(data, _MODEL_KEYS, "a model")
    name = data["name"]
    fields: list[Field] = [_field_from_config(f, name) for f in data.get("fields", ())]
    for relation in data.get("relations", ()):
        _check_keys(relation, _RELATION_KEYS, f'a relation of model "{name}"')
        if not relation.get("through"):
            raise UnresolvedRelationError(
                name,
                relation["name"],
                'declared relations need a "through" join field',
            )
        fields.append(
            RelatedField(
                relation["name"],
                through=relation["through"],
                via=relation.get("via"),
            )
        )

    return Model(
        name,
        fields=fields,
        plural_name=data.get("plural_name", ""),
        description=data.get("description"),
    )


class Domain:
    """A validated, fully linked set of models."""

    def __init__(self, models: Iterable[Model]):
        self.models: list[Model] = list(models)
        if not self.models:
            raise ConfigurationError("The domain does not define any model")

        self._models: dict[str, Model] = {}
        for model in self.models:
            if model.name in self._models:
                raise ConfigurationError(f'Model "{model.name}" is defined more than once')
            self._models[model.name] = model

        # Order matters: through relations need linked foreign keys
        for model in self.models:
            model.key_field()
        self._link_foreign_keys()
        self._link_through_fields()

        logger.debug(
            "Linked domain with %d models and %d fields",
            len(self.models),
            sum(len(m.fields) for m in self.models),
        )

    def __iter__(self) -> Iterator[Model]:
        return iter(self.models)

    def __len__(self) -> int:
        return len(self.models)

    def get_model(self, name: str) -> Model | None:
        return self._models.get(name)

    def model(self, name: str) -> Model:
        model = self._models.get(name)
        if model is None:
            raise KeyError(name)
        return model

    @classmethod
    def from_config(cls, data: Mapping[str, Any]) -> Domain:
        """Build a domain from a plain description.

        ``data`` is usually loaded from JSON or YAML, see the README for the format.
        """
        if not isinstance(data, Mapping) or set(data) - {"models"}:
            raise ConfigurationError('A domain description must be a mapping with "models"')

        return cls(_model_from_config(m) for m in data.get("models", ()))

    def _resolve_reference(self, field: ForeignKeyField) -> SimpleField:
        model_name, _, field_name = field.references.partition(".")
        target = self._models.get(model_name)
        if target is None:
            raise InvalidReferenceError(
                field.model.name, field.name, f'unknown model "{model_name}"'
            )

        if not field_name:
            return target.key_field()

        referenced = target.get_field(field_name)
        if referenced is None:
            raise InvalidReferenceError(
                field.model.name,
                field.name,
                f'model "{model_name}" has no field "{field_name}"',
            )
        if not isinstance(referenced, SimpleField):
            raise InvalidReferenceError(
                field.model.name,
                field.name,
                f'"{referenced.qualified_name}" is not a stored field',
            )
        if not referenced.is_unique():
            raise InvalidReferenceError(
                field.model.name,
                field.name,
                f'"{referenced.qualified_name}" is neither a key nor unique',
            )

        return referenced

    def _link_foreign_keys(self):
        foreign_keys = [
            cast("ForeignKeyField", f)
            for model in self.models
            for f in model.fields
            if f.kind is FieldKind.FOREIGN_KEY
        ]
        for field in foreign_keys:
            referenced = self._resolve_reference(field)
            if isinstance(referenced, ForeignKeyField):
                raise InvalidReferenceError(
                    field.model.name,
                    field.name,
                    f'"{referenced.qualified_name}" is itself a foreign key',
                )

            field.referenced_field = referenced
            if not field.type:
                field.type = referenced.type

            related_name = field.related_name or (
                lower_first(field.model.name)
                if field.is_unique()
                else field.model.plural_name
            )
            related = RelatedField(related_name)
            related.referencing_field = field
            referenced.model.add_field(related)
            field.related_field = related

    def _link_through_fields(self):
        for model in self.models:
            for field in model.fields:
                if field.kind is not FieldKind.RELATED:
                    continue

                related = cast("RelatedField", field)
                if related.through is None:
                    if not hasattr(related, "referencing_field"):
                        raise UnresolvedRelationError(
                            model.name, related.name, "no foreign key points at it"
                        )
                    continue

                self._link_through_field(related)

    def _link_through_field(self, field: RelatedField):
        model = field.model
        join_name, _, through_name = (field.through or "").partition(".")
        join = self._models.get(join_name)
        if join is None or not through_name:
            raise UnresolvedRelationError(
                model.name, field.name, f'unknown join field "{field.through}"'
            )

        through = join.get_field(through_name)
        if through is None or through.kind is not FieldKind.FOREIGN_KEY:
            raise UnresolvedRelationError(
                model.name,
                field.name,
                f'"{field.through}" is not a foreign key',
            )
        through = cast("ForeignKeyField", through)

        if field.via is not None:
            candidates = [join.get_field(field.via)]
        else:
            candidates = [
                f
                for f in join.fields
                if f is not through and f.kind is FieldKind.FOREIGN_KEY
            ]
        candidates = [
            f
            for f in candidates
            if isinstance(f, ForeignKeyField) and f.referenced_field.model is model
        ]
        if len(candidates) != 1:
            raise UnresolvedRelationError(
                model.name,
                field.name,
                f'expected exactly one foreign key from "{join.name}" to "{model.name}", '
                f"found {len(candidates)}",
            )

        field.referencing_field = candidates[0]
        field.through_field = through
