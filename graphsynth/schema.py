"""Entry point: compile client schema descriptions into a ``strawberry.Schema``."""
from __future__ import annotations

from typing import Any, Iterable, Optional

import strawberry
from strawberry.schema.config import StrawberryConfig

from .registry import OutputMode, SchemaGenerator

__all__ = ['OutputMode', 'generate_schema']


def generate_schema(
    client_schemas: Iterable[Any],
    mode: OutputMode | str = OutputMode.RELAY,
    strawberry_config: Optional[StrawberryConfig] = None,
) -> strawberry.Schema:
    """Build the GraphQL API for ``client_schemas``.

    ``client_schemas`` may hold ``EntitySchema`` objects or mappings in the
    JSON shape (``modelName`` plus ``fields``). Each call is an independent
    build with its own types and enum cache.

    Execute with a request context carrying the backend::

        schema = generate_schema(schemas, mode=OutputMode.SIMPLE)
        await schema.execute(query, context_value=RequestContext(backend=backend))
    """
    return SchemaGenerator(client_schemas, mode=mode).to_strawberry(strawberry_config=strawberry_config)
