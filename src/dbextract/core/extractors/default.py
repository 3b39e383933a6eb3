"""Default extractors built on `information_schema`.

These serve every dialect that has no dedicated extractor registered. They only
rely on the standard `information_schema.tables` and
`information_schema.columns` views.
"""

from __future__ import annotations

from typing import Sequence

import duckdb
from loguru import logger

from dbextract.core.connections import WorkingConnection
from dbextract.core.errors import ExtractionError
from dbextract.core.extractors.base import Capability
from dbextract.core.models import Column, Table, View
from dbextract.core.session import Session, fetch_all

_TABLES_SQL = (
    "SELECT table_name FROM information_schema.tables "
    "WHERE table_catalog = ? AND table_schema = ? AND table_type = ? "
    "ORDER BY table_name"
)

_COLUMNS_SQL = (
    "SELECT column_name, data_type, is_nullable, ordinal_position, column_default "
    "FROM information_schema.columns "
    "WHERE table_catalog = ? AND table_schema = ? AND table_name = ? "
    "ORDER BY ordinal_position"
)


def _list_names(
    session: Session, connection: WorkingConnection, table_type: str
) -> list[str]:
    try:
        rows = fetch_all(
            session, _TABLES_SQL, [connection.catalog, connection.schema, table_type]
        )
    except duckdb.Error as exc:
        raise ExtractionError(
            f"information_schema lookup of {table_type} failed: {exc}"
        ) from exc
    return [row[0] for row in rows if row[0]]


def _to_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().upper() in {"YES", "Y", "TRUE", "1"}
    return bool(value)


class DefaultTablesExtractor:
    """List base tables from `information_schema.tables`."""

    capability = Capability.TABLE
    dialects: tuple[str, ...] = ()
    default = True

    def extract(self, connection: WorkingConnection, session: Session) -> list[Table]:
        return [
            Table(name=name, schema=connection.schema)
            for name in _list_names(session, connection, "BASE TABLE")
        ]


class DefaultViewExtractor:
    """List views from `information_schema.tables`."""

    capability = Capability.VIEW
    dialects: tuple[str, ...] = ()
    default = True

    def extract(self, connection: WorkingConnection, session: Session) -> list[View]:
        return [
            View(name=name, schema=connection.schema)
            for name in _list_names(session, connection, "VIEW")
        ]


class DefaultColumnsExtractor:
    """
    Attach columns from `information_schema.columns`, ordered by position.

    A failed lookup leaves that item without columns; the others still load.
    """

    capability = Capability.COLUMN
    dialects: tuple[str, ...] = ()
    default = True

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
                    session, _COLUMNS_SQL, [connection.catalog, schema, item.name]
                )
            except duckdb.Error as exc:
                logger.warning("Column lookup for {}.{} failed: {}", schema, item.name, exc)
                item.columns = []
                continue
            item.columns = [
                Column(
                    name=name,
                    type_name=data_type,
                    nullable=_to_bool(is_nullable),
                    ordinal_position=int(position),
                    default_value=default,
                )
                for name, data_type, is_nullable, position, default in rows
            ]
