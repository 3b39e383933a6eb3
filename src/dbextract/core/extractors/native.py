"""DuckDB extractors built on the `duckdb_*()` metadata table functions."""

from __future__ import annotations

from typing import Sequence

import duckdb
from loguru import logger

from dbextract.core.connections import WorkingConnection
from dbextract.core.errors import ExtractionError
from dbextract.core.extractors.base import Capability
from dbextract.core.models import Column, Table, View
from dbextract.core.session import Session, fetch_all


class DuckDbTablesExtractor:
    """List persistent, non-internal tables via `duckdb_tables()`."""

    capability = Capability.TABLE
    dialects = ("duckdb",)

    _SQL = (
        "SELECT table_name FROM duckdb_tables() "
        "WHERE database_name = ? AND schema_name = ? "
        "AND NOT internal AND NOT temporary "
        "ORDER BY table_name"
    )

    def extract(self, connection: WorkingConnection, session: Session) -> list[Table]:
        try:
            rows = fetch_all(session, self._SQL, [connection.catalog, connection.schema])
        except duckdb.Error as exc:
            raise ExtractionError(f"duckdb_tables() failed: {exc}") from exc
        return [Table(name=row[0], schema=connection.schema) for row in rows if row[0]]


class DuckDbViewExtractor:
    """List user views with their SQL via `duckdb_views()`."""

    capability = Capability.VIEW
    dialects = ("duckdb",)

    _SQL = (
        "SELECT view_name, sql FROM duckdb_views() "
        "WHERE database_name = ? AND schema_name = ? "
        "AND NOT internal AND NOT temporary "
        "ORDER BY view_name"
    )

    def extract(self, connection: WorkingConnection, session: Session) -> list[View]:
        try:
            rows = fetch_all(session, self._SQL, [connection.catalog, connection.schema])
        except duckdb.Error as exc:
            raise ExtractionError(f"duckdb_views() failed: {exc}") from exc
        return [
            View(name=name, schema=connection.schema, code=sql)
            for name, sql in rows
            if name
        ]


class DuckDbColumnsExtractor:
    """
    Attach columns via `duckdb_columns()`, ordered by column index.

    A failed lookup leaves that item without columns; the others still load.
    """

    capability = Capability.COLUMN
    dialects = ("duckdb",)

    _SQL = (
        "SELECT column_name, data_type, is_nullable, column_index, column_default "
        "FROM duckdb_columns() "
        "WHERE database_name = ? AND schema_name = ? AND table_name = ? "
        "ORDER BY column_index"
    )

    def extract(
        self,
        connection: WorkingConnection,
        session: Session,
        items: Sequence[Table | View],
    ) -> None:
        for item in items:
            schema = item.schema or connection.schema
            try:
                rows = fetch_all(
                    session, self._SQL, [connection.catalog, schema, item.name]
                )
            except duckdb.Error as exc:
                logger.warning(
                    "duckdb_columns() failed for {}.{}: {}", schema, item.name, exc
                )
                item.columns = []
                continue
            item.columns = [
                Column(
                    name=name,
                    type_name=data_type,
                    nullable=bool(is_nullable),
                    ordinal_position=int(index),
                    default_value=default,
                )
                for name, data_type, is_nullable, index, default in rows
            ]
