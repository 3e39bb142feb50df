"""Code for building the schema generation settings."""

from collections.abc import Mapping
from typing import Any, Optional, cast

from typing_extensions import TypedDict

from .exceptions import ConfigurationError


class AutoSchemaSettings(TypedDict):
    """Dictionary defining the shape the ``settings`` argument should have.

    All settings are optional and have defaults as described in their docstrings and
    defined in `DEFAULT_AUTOSCHEMA_SETTINGS`.
    """

    #: The default page size for connection fields when `first` is not provided.
    #: Can be set to `None` to set it to unlimited.
    PAGINATION_DEFAULT_LIMIT: Optional[int]

    #: If True, a `<pluralName>Connection` query field is generated for every model.
    GENERATE_CONNECTIONS: bool

    #: If True, the `Mutation` root type is generated.
    GENERATE_MUTATIONS: bool

    #: Name of the attribute (or key) of the execution context holding the
    #: data accessor.
    ACCESSOR_CONTEXT_KEY: str


DEFAULT_AUTOSCHEMA_SETTINGS = AutoSchemaSettings(
    PAGINATION_DEFAULT_LIMIT=None,
    GENERATE_CONNECTIONS=True,
    GENERATE_MUTATIONS=True,
    ACCESSOR_CONTEXT_KEY="accessor",
)


def autoschema_settings(
    overrides: Optional[Mapping[str, Any]] = None,
) -> AutoSchemaSettings:
    """Get schema generation settings.

    Return the defaults updated with `overrides`. Unknown keys raise a
    `ConfigurationError` instead of being silently ignored.
    """
    overrides = overrides or {}
    unknown = sorted(set(overrides) - set(DEFAULT_AUTOSCHEMA_SETTINGS))
    if unknown:
        raise ConfigurationError(
            "Unknown settings: " + ", ".join(unknown),
            suggestion="Valid settings are "
            + ", ".join(sorted(DEFAULT_AUTOSCHEMA_SETTINGS)),
        )

    limit = overrides.get("PAGINATION_DEFAULT_LIMIT")
    if limit is not None and (not isinstance(limit, int) or limit < 0):
        raise ConfigurationError(
            f"PAGINATION_DEFAULT_LIMIT must be a non-negative integer, got {limit!r}"
        )

    return cast(
        "AutoSchemaSettings",
        {**DEFAULT_AUTOSCHEMA_SETTINGS, **overrides},
    )
