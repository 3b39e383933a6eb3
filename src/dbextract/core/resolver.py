"""Derive working connections from logical ones."""

from __future__ import annotations

from dbextract.core.connections import (
    DEFAULT_SCHEMA,
    LogicalConnection,
    WorkingConnection,
)


def resolve_schema(schema_name: str | None) -> str:
    """Return the schema name, or `main` when it is blank."""
    if schema_name is None or not schema_name.strip():
        return DEFAULT_SCHEMA
    return schema_name


def resolve_working_connection(
    logical: LogicalConnection,
    working_url: str | None,
    attached_catalog: str,
    *,
    engine_dialect: str | None = None,
) -> WorkingConnection:
    """
    Build the working connection used for metadata queries.

    The attached catalog name replaces the configured database name, since a
    lifecycle step may attach under a different name than requested.

    Args:
        logical: Caller-supplied connection (left untouched).
        working_url: Engine URL or path of the active session.
        attached_catalog: Catalog name the session actually resolves.
        engine_dialect: Dialect of the session engine; defaults to the
            logical connection's dialect.
    """
    return WorkingConnection(
        name=logical.name,
        dialect=engine_dialect or logical.dialect,
        source_dialect=logical.dialect,
        catalog=attached_catalog,
        schema=resolve_schema(logical.schema_name),
        url=working_url,
        user_name=logical.user_name,
        password=logical.password,
        tables=logical.tables,
    )
