"""Extraction orchestration.

Runs table, view and column extraction against an active session:

  1) resolve extractors for the working dialect
  2) discover tables through a fallback chain:
       native system-catalog query -> registry extractor -> information_schema
  3) drop lakehouse bookkeeping tables, duplicates and names outside the
     allow-list
  4) attach columns to tables, then discover views and attach their columns;
     a failed column lookup only empties that one relation
  5) assemble the Database result

Extraction failures degrade to empty collections with a warning. Configuration
and connectivity errors are not caught here.
"""

from __future__ import annotations

from typing import Callable, Iterable, Sequence, TypeVar

import duckdb
from loguru import logger

from dbextract.core.connections import WorkingConnection
from dbextract.core.errors import ExtractionError
from dbextract.core.extractors.base import (
    ColumnExtractor,
    TableExtractor,
    ViewExtractor,
)
from dbextract.core.identifiers import quote_identifier, validate_identifier
from dbextract.core.models import Database, Table, View
from dbextract.core.registry import ExtractorRegistry, default_registry
from dbextract.core.session import Session, fetch_all

NativeTableQuery = Callable[[WorkingConnection, Session], list[Table]]

T = TypeVar("T", Table, View)

LAKEHOUSE_METADATA_TABLES = frozenset(
    {
        "ducklake_column",
        "ducklake_column_tag",
        "ducklake_data_file",
        "ducklake_delete_file",
        "ducklake_file_column_statistics",
        "ducklake_file_partition_value",
        "ducklake_files_scheduled_for_deletion",
        "ducklake_inlined_data_tables",
        "ducklake_metadata",
        "ducklake_partition_column",
        "ducklake_partition_info",
        "ducklake_schema",
        "ducklake_snapshot",
        "ducklake_snapshot_changes",
        "ducklake_table",
        "ducklake_table_column_stats",
        "ducklake_table_stats",
        "ducklake_tag",
        "ducklake_view",
        "ducklake_schema_settings",
        "ducklake_table_settings",
    }
)

_INFORMATION_SCHEMA_TABLES_SQL = (
    "SELECT table_name FROM information_schema.tables "
    "WHERE table_catalog = ? AND table_schema = ? AND table_type = 'BASE TABLE' "
    "ORDER BY table_name"
)


def metadata_catalog_name(catalog: str) -> str:
    """Return the name DuckLake attaches its metadata store under."""
    return f"__ducklake_metadata_{catalog}"


def query_lakehouse_tables(connection: WorkingConnection, session: Session) -> list[Table]:
    """
    List live user tables straight from the DuckLake bookkeeping tables.

    Joins `ducklake_table` with `ducklake_schema` in the metadata catalog and
    keeps rows whose snapshot range is still open.
    """
    catalog = validate_identifier(connection.catalog, "databaseName")
    meta = quote_identifier(metadata_catalog_name(catalog))
    sql = (
        f"SELECT t.table_name FROM {meta}.main.ducklake_table t "
        f"JOIN {meta}.main.ducklake_schema s ON t.schema_id = s.schema_id "
        "WHERE s.schema_name = ? AND t.end_snapshot IS NULL AND s.end_snapshot IS NULL "
        "ORDER BY t.table_name"
    )
    try:
        rows = fetch_all(session, sql, [connection.schema])
    except duckdb.Error as exc:
        raise ExtractionError(f"DuckLake metadata query failed: {exc}") from exc
    return [Table(name=row[0], schema=connection.schema) for row in rows if row[0]]


def query_information_schema_tables(
    connection: WorkingConnection, session: Session
) -> list[Table]:
    """List base tables of catalog.schema from `information_schema.tables`."""
    try:
        rows = fetch_all(
            session,
            _INFORMATION_SCHEMA_TABLES_SQL,
            [connection.catalog, connection.schema],
        )
    except duckdb.Error as exc:
        raise ExtractionError(f"information_schema table query failed: {exc}") from exc
    return [Table(name=row[0], schema=connection.schema) for row in rows if row[0]]


def filter_metadata_tables(items: Iterable[T]) -> list[T]:
    """
    Drop lakehouse bookkeeping entries and entries without a name.

    Order of the remaining entries is preserved.
    """
    return [
        item
        for item in items
        if item is not None
        and item.name
        and item.name not in LAKEHOUSE_METADATA_TABLES
    ]


def dedupe(items: Iterable[T]) -> list[T]:
    """Keep the first entry per (schema, name)."""
    seen: set[tuple[str | None, str]] = set()
    out: list[T] = []
    for item in items:
        if item.key in seen:
            continue
        seen.add(item.key)
        out.append(item)
    return out


def apply_allow_list(items: Iterable[T], allow_list: Sequence[str]) -> list[T]:
    """Keep only allow-listed names; an empty allow-list keeps everything."""
    if not allow_list:
        return list(items)
    allow = set(allow_list)
    return [item for item in items if item.name in allow]


class ExtractionOrchestrator:
    """
    Runs the extraction pipeline for one working connection.

    Args:
        registry: Extractor registry; defaults to the built-in registry.
        native_tables: Optional dialect-native table query tried before the
            registry extractor (e.g. `query_lakehouse_tables`).
    """

    def __init__(
        self,
        registry: ExtractorRegistry | None = None,
        *,
        native_tables: NativeTableQuery | None = None,
    ) -> None:
        self.registry = registry or default_registry()
        self.native_tables = native_tables

    def extract(self, connection: WorkingConnection, session: Session) -> Database:
        """Extract tables, views and columns into a Database."""
        binding = self.registry.binding(connection.dialect)
        where = f"{connection.catalog}.{connection.schema}"

        tables = self.discover_tables(connection, session, binding.table)
        tables = filter_metadata_tables(tables)
        tables = apply_allow_list(dedupe(tables), connection.tables)
        if tables:
            logger.info("Extracted {} user tables from {}", len(tables), where)
        else:
            logger.warning("No user tables found in {}", where)

        self._attach_columns(binding.column, connection, session, tables, "table")

        views = self.discover_views(connection, session, binding.view)
        logger.info("Extracted {} views from {}", len(views), where)
        self._attach_columns(binding.column, connection, session, views, "view")

        return Database(
            name=f"{connection.source_dialect}:{connection.catalog}",
            database_type=connection.source_dialect,
            tables=tables,
            views=views,
        )

    def discover_tables(
        self,
        connection: WorkingConnection,
        session: Session,
        extractor: TableExtractor,
    ) -> list[Table]:
        """
        Try each table discovery step in turn.

        Returns the first non-empty result, or an empty list when every step
        is empty or fails.
        """
        steps: list[tuple[str, NativeTableQuery]] = []
        if self.native_tables is not None:
            steps.append(("native metadata query", self.native_tables))
        steps.append((type(extractor).__name__, extractor.extract))
        steps.append(("information_schema fallback", query_information_schema_tables))

        for label, step in steps:
            try:
                tables = step(connection, session)
            except ExtractionError as exc:
                logger.warning("Table discovery via {} failed: {}", label, exc)
                continue
            if tables:
                logger.debug("Table discovery via {} found {} tables", label, len(tables))
                return tables
            logger.info("Table discovery via {} returned no tables", label)

        logger.warning(
            "All table discovery steps came back empty for {}.{}",
            connection.catalog,
            connection.schema,
        )
        return []

    def discover_views(
        self,
        connection: WorkingConnection,
        session: Session,
        extractor: ViewExtractor,
    ) -> list[View]:
        """Run the view extractor once; failures give an empty list."""
        try:
            views = extractor.extract(connection, session)
        except ExtractionError as exc:
            logger.warning("View extractor failed; continuing with empty view set: {}", exc)
            return []
        return dedupe(filter_metadata_tables(views))

    def _attach_columns(
        self,
        extractor: ColumnExtractor,
        connection: WorkingConnection,
        session: Session,
        items: Sequence[Table | View],
        kind: str,
    ) -> None:
        # one call per item so a failing relation leaves the others intact
        for item in items:
            try:
                extractor.extract(connection, session, [item])
            except ExtractionError as exc:
                item.columns = []
                logger.warning(
                    "Column extraction for {} {}.{} failed: {}",
                    kind,
                    item.schema or connection.schema,
                    item.name,
                    exc,
                )
