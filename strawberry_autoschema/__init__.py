from .accessor import Accessor, CursorOptions, Edge, QueryOptions
from .domain import Domain, Field, FieldKind, ForeignKeyField, Model, RelatedField, SimpleField
from .exceptions import (
    AccessorNotFoundError,
    ConfigurationError,
    DuplicateFieldError,
    InvalidReferenceError,
    MissingKeyFieldError,
    UnresolvedRelationError,
)
from .memory import MemoryAccessor, MemoryStore, RecordNotFoundError
from .pagination import PageInfo
from .schema import SchemaBuilder, create_schema
from .settings import AutoSchemaSettings, autoschema_settings

__all__ = [
    "Accessor",
    "AccessorNotFoundError",
    "AutoSchemaSettings",
    "ConfigurationError",
    "CursorOptions",
    "Domain",
    "DuplicateFieldError",
    "Edge",
    "Field",
    "FieldKind",
    "ForeignKeyField",
    "InvalidReferenceError",
    "MemoryAccessor",
    "MemoryStore",
    "MissingKeyFieldError",
    "Model",
    "PageInfo",
    "QueryOptions",
    "RecordNotFoundError",
    "RelatedField",
    "SchemaBuilder",
    "SimpleField",
    "UnresolvedRelationError",
    "autoschema_settings",
    "create_schema",
]
