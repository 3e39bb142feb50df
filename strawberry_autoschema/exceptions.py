from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING

from strawberry.exceptions.exception import StrawberryException

if TYPE_CHECKING:
    from strawberry.exceptions.exception_source import ExceptionSource


class ConfigurationError(StrawberryException):
    """The domain model (or the settings) cannot produce a schema.

    Raised while building, before anything is published.
    """

    def __init__(self, message: str, *, suggestion: str | None = None):
        self.message = message
        self.rich_message = f"[bold red]{message}"
        self.annotation_message = "invalid domain model"
        if suggestion is not None:
            self.suggestion = suggestion

        super().__init__(self.message)

    @cached_property
    def exception_source(self) -> ExceptionSource | None:  # pragma: no cover
        # Domain models are data, there is no python source to point at
        return None


class MissingKeyFieldError(ConfigurationError):
    def __init__(self, model_name: str, found: list[str] | None = None):
        self.model_name = model_name
        if found:
            message = (
                f'Model "{model_name}" declares more than one primary key: '
                + ", ".join(found)
            )
        else:
            message = f'Model "{model_name}" has no key field'

        super().__init__(
            message,
            suggestion='Mark exactly one field with "primary_key": true',
        )


class InvalidReferenceError(ConfigurationError):
    def __init__(self, model_name: str, field_name: str, reason: str):
        self.model_name = model_name
        self.field_name = field_name
        super().__init__(f'Invalid reference "{model_name}.{field_name}": {reason}')


class UnresolvedRelationError(ConfigurationError):
    def __init__(self, model_name: str, field_name: str, reason: str):
        self.model_name = model_name
        self.field_name = field_name
        super().__init__(
            f'Cannot resolve relation "{model_name}.{field_name}": {reason}'
        )


class DuplicateFieldError(ConfigurationError):
    def __init__(self, model_name: str, field_name: str):
        self.model_name = model_name
        self.field_name = field_name
        super().__init__(
            f'Model "{model_name}" defines "{field_name}" more than once',
            suggestion='Set "related_name" on the foreign key to rename the reverse field',
        )


class AccessorNotFoundError(RuntimeError):
    """The execution context does not carry a data accessor."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(
            f'No data accessor found in the execution context (looked for "{key}")'
        )
