"""Per-dialect generators.

A generator turns a LogicalConnection into a Database. Session based
generators own the DuckDB session for the duration of one call: it is opened
at the start of `generate`, `validate` or `execute_sql` and closed on every
exit path.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Callable, Protocol

import duckdb
from databricks.sdk.errors import DatabricksError, NotFound, PermissionDenied
from loguru import logger

from dbextract.core.adapters.unitycatalog import UnityCatalogAdapter
from dbextract.core.auth import get_client
from dbextract.core.connections import LogicalConnection, WorkingConnection
from dbextract.core.errors import ConfigurationError, ConnectivityError
from dbextract.core.identifiers import validate_identifier
from dbextract.core.lifecycle import (
    LAKEHOUSE_EXTENSION,
    CatalogLifecycle,
    validate_lakehouse_config,
)
from dbextract.core.models import Database, Table, View
from dbextract.core.orchestrator import (
    ExtractionOrchestrator,
    apply_allow_list,
    dedupe,
    query_lakehouse_tables,
)
from dbextract.core.registry import ExtractorRegistry
from dbextract.core.resolver import resolve_schema, resolve_working_connection
from dbextract.core.session import (
    Session,
    SessionFactory,
    fetch_all,
    open_duckdb,
    resolve_database_path,
    session_scope,
)

ENGINE_DIALECT = "duckdb"


@dataclass(frozen=True)
class QueryResult:
    """Column names and rows of an ad-hoc query."""

    columns: list[str]
    rows: list[tuple]


class Generator(Protocol):
    """Interface every dialect generator implements."""

    def generate(self, connection: LogicalConnection) -> Database:
        """Extract the full schema model for a connection."""
        ...

    def validate(self, connection: LogicalConnection) -> Database:
        """Check that the connection can be set up; returns an empty model."""
        ...

    def execute_sql(self, connection: LogicalConnection, sql: str) -> QueryResult:
        """Run an ad-hoc statement in the prepared session."""
        ...


class SessionGenerator:
    """
    Base class for generators working through a DuckDB session.

    Subclasses implement `check_config`, `database_path` and `prepare`; this
    class handles session scope, orchestration and result assembly.
    """

    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        registry: ExtractorRegistry | None = None,
        *,
        timeout: float | None = None,
    ) -> None:
        self.session_factory = session_factory or self._default_session_factory()
        self.registry = registry
        self.timeout = timeout

    def _default_session_factory(self) -> SessionFactory:
        return open_duckdb

    def check_config(self, connection: LogicalConnection) -> None:
        """Validate connection fields before a session is opened."""

    def database_path(self, connection: LogicalConnection) -> str:
        """Return the DuckDB database path to open."""
        return resolve_database_path(connection)

    def prepare(
        self, session: Session, connection: LogicalConnection, database_path: str
    ) -> WorkingConnection:
        """Bring the session into extraction context and return the working connection."""
        raise NotImplementedError

    def orchestrator(self) -> ExtractionOrchestrator:
        return ExtractionOrchestrator(self.registry)

    def generate(self, connection: LogicalConnection) -> Database:
        self.check_config(connection)
        path = self.database_path(connection)
        with session_scope(self.session_factory, path, timeout=self.timeout) as session:
            working = self.prepare(session, connection, path)
            return self.orchestrator().extract(working, session)

    def validate(self, connection: LogicalConnection) -> Database:
        self.check_config(connection)
        path = self.database_path(connection)
        with session_scope(self.session_factory, path, timeout=self.timeout) as session:
            working = self.prepare(session, connection, path)
        return Database(
            name=f"{connection.dialect}:{working.catalog}",
            database_type=connection.dialect,
        )

    def execute_sql(self, connection: LogicalConnection, sql: str) -> QueryResult:
        self.check_config(connection)
        path = self.database_path(connection)
        with session_scope(self.session_factory, path, timeout=self.timeout) as session:
            self.prepare(session, connection, path)
            logger.info("Executing SQL: {}", sql)
            try:
                cursor = session.execute(sql)
                description = cursor.description or []
                rows = cursor.fetchall() if description else []
            except duckdb.Error as exc:
                raise ConnectivityError(str(exc)) from exc
        return QueryResult(columns=[d[0] for d in description], rows=rows)


class DuckLakeGenerator(SessionGenerator):
    """Extracts a DuckLake catalog attached to an in-memory or local DuckDB session."""

    def check_config(self, connection: LogicalConnection) -> None:
        validate_lakehouse_config(connection)

    def database_path(self, connection: LogicalConnection) -> str:
        path = resolve_database_path(connection)
        metadata = connection.ducklake_metadata_db or ""
        if metadata.startswith(f"{LAKEHOUSE_EXTENSION}:"):
            metadata = metadata[len(LAKEHOUSE_EXTENSION) + 1 :]
        # The session database must never be the metadata store itself.
        if path == metadata.strip():
            raise ConfigurationError(
                "The DuckDB session database must not be the DuckLake metadata store "
                f"('{path}'); leave url empty for an in-memory session."
            )
        return path

    def prepare(
        self, session: Session, connection: LogicalConnection, database_path: str
    ) -> WorkingConnection:
        catalog = CatalogLifecycle(session).setup(connection)
        return resolve_working_connection(
            connection, database_path, catalog, engine_dialect=ENGINE_DIALECT
        )

    def orchestrator(self) -> ExtractionOrchestrator:
        return ExtractionOrchestrator(self.registry, native_tables=query_lakehouse_tables)


class DuckDbGenerator(SessionGenerator):
    """Extracts a plain DuckDB database file, opened read-only."""

    def _default_session_factory(self) -> SessionFactory:
        return partial(open_duckdb, read_only=True)

    def check_config(self, connection: LogicalConnection) -> None:
        if connection.database_name:
            validate_identifier(connection.database_name, "databaseName")
        validate_identifier(resolve_schema(connection.schema_name), "schemaName")

    def prepare(
        self, session: Session, connection: LogicalConnection, database_path: str
    ) -> WorkingConnection:
        catalog = connection.database_name
        if not catalog:
            try:
                catalog = fetch_all(session, "SELECT current_database()")[0][0]
            except duckdb.Error as exc:
                raise ConnectivityError(str(exc)) from exc
        return resolve_working_connection(
            connection, database_path, catalog, engine_dialect=ENGINE_DIALECT
        )


class UnityCatalogGenerator:
    """
    Extracts a Unity Catalog schema through the Databricks SDK.

    The connection url is the workspace host and the password an access
    token; without them the Databricks unified auth chain is used.
    """

    def __init__(self, client_factory: Callable[..., object] = get_client) -> None:
        self.client_factory = client_factory

    def _adapter(self, connection: LogicalConnection) -> UnityCatalogAdapter:
        client = self.client_factory(
            connection.databricks_profile, host=connection.url, token=connection.password
        )
        return UnityCatalogAdapter(client)

    def _target(self, connection: LogicalConnection) -> tuple[str, str]:
        catalog = validate_identifier(connection.database_name, "databaseName")
        schema = validate_identifier(resolve_schema(connection.schema_name), "schemaName")
        return catalog, schema

    def generate(self, connection: LogicalConnection) -> Database:
        catalog, schema = self._target(connection)
        adapter = self._adapter(connection)
        try:
            items = adapter.list_tables(catalog=catalog, schema=schema)
        except NotFound as exc:
            raise ConnectivityError(f"Schema '{catalog}.{schema}' does not exist.") from exc
        except PermissionDenied as exc:
            raise ConnectivityError(
                f"No permission to access schema '{catalog}.{schema}'."
            ) from exc
        except DatabricksError as exc:
            raise ConnectivityError(
                f"Databricks request for '{catalog}.{schema}' failed: {exc}"
            ) from exc

        tables = [i for i in items if isinstance(i, Table)]
        views = [i for i in items if isinstance(i, View)]
        tables = apply_allow_list(dedupe(tables), connection.tables)
        logger.info(
            "Extracted {} tables and {} views from {}.{}",
            len(tables),
            len(views),
            catalog,
            schema,
        )
        return Database(
            name=f"{connection.dialect}:{catalog}",
            database_type=connection.dialect,
            tables=tables,
            views=dedupe(views),
        )

    def validate(self, connection: LogicalConnection) -> Database:
        catalog, schema = self._target(connection)
        try:
            self._adapter(connection).get_schema(catalog, schema)
        except NotFound as exc:
            raise ConnectivityError(f"Schema '{catalog}.{schema}' does not exist.") from exc
        except PermissionDenied as exc:
            raise ConnectivityError(
                f"No permission to access schema '{catalog}.{schema}'."
            ) from exc
        except DatabricksError as exc:
            raise ConnectivityError(
                f"Databricks request for '{catalog}.{schema}' failed: {exc}"
            ) from exc
        return Database(
            name=f"{connection.dialect}:{catalog}", database_type=connection.dialect
        )

    def execute_sql(self, connection: LogicalConnection, sql: str) -> QueryResult:
        raise ConfigurationError("SQL execution is not supported for Databricks connections.")


GENERATORS: dict[str, type] = {
    "ducklake": DuckLakeGenerator,
    "duckdb": DuckDbGenerator,
    "databricks": UnityCatalogGenerator,
}


def get_generator(dialect: str, *, timeout: float | None = None) -> Generator:
    """
    Return a generator for the dialect tag (case-insensitive).

    timeout only applies to session based generators.
    """
    factory = GENERATORS.get((dialect or "").strip().lower())
    if factory is None:
        raise ConfigurationError(
            f"Unsupported dialect '{dialect}'. "
            f"Expected one of: {', '.join(sorted(GENERATORS))}."
        )
    if issubclass(factory, SessionGenerator):
        return factory(timeout=timeout)
    return factory()
