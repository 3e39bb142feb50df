from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

import strawberry
from strawberry.schema.config import StrawberryConfig

from .domain import Domain
from .filters import create_filter_types
from .mutations.fields import create_mutation_fields
from .mutations.inputs import create_mutation_input_types
from .queries import create_query_fields
from .registry import BuildContext
from .settings import AutoSchemaSettings, autoschema_settings
from .type import create_object_types

logger = logging.getLogger(__name__)

QUERY_TYPE_NAME = "Query"
MUTATION_TYPE_NAME = "Mutation"


class SchemaBuilder:
    """Generate a strawberry schema from a domain model.

    Generation runs entirely in the constructor: filters first, then object
    and connection types, then mutation inputs, and finally the root fields.
    Any problem with the domain raises before a schema is created.
    """

    def __init__(
        self,
        domain: Union[Domain, Mapping[str, Any]],
        settings: Optional[Mapping[str, Any]] = None,
    ):
        if not isinstance(domain, Domain):
            domain = Domain.from_config(domain)

        self.domain = domain
        self.settings: AutoSchemaSettings = autoschema_settings(settings)
        self.context = ctx = BuildContext(domain, self.settings)

        create_filter_types(ctx)
        create_object_types(ctx)

        query_fields = create_query_fields(ctx)
        query = ctx.allocate(QUERY_TYPE_NAME, lambda: query_fields)

        mutation = None
        if self.settings["GENERATE_MUTATIONS"]:
            create_mutation_input_types(ctx)
            mutation_fields = create_mutation_fields(ctx)
            mutation = ctx.allocate(MUTATION_TYPE_NAME, lambda: mutation_fields)

        ctx.finalize()

        self.schema = strawberry.Schema(
            query=query.cls,
            mutation=mutation.cls if mutation is not None else None,
            config=StrawberryConfig(auto_camel_case=False),
        )
        logger.info(
            "Generated a schema with %d types for %d models",
            len(ctx.handles),
            len(domain),
        )

    @property
    def type_names(self) -> list[str]:
        return list(self.context.handles)

    def get_schema(self) -> strawberry.Schema:
        return self.schema


def create_schema(
    data: Union[Domain, Mapping[str, Any]],
    settings: Optional[Mapping[str, Any]] = None,
) -> strawberry.Schema:
    """Generate the schema of a `Domain` or of a domain description."""
    return SchemaBuilder(data, settings).get_schema()
