"""Extractor capability interfaces.

Each extractor implements exactly one capability and declares the dialect
tags it serves. The registry reads these declarations once at startup.
"""

from __future__ import annotations

from enum import Enum
from typing import ClassVar, Protocol, Sequence

from dbextract.core.connections import WorkingConnection
from dbextract.core.models import Table, View
from dbextract.core.session import Session


class Capability(str, Enum):
    """Kind of metadata an extractor produces."""

    TABLE = "table"
    VIEW = "view"
    COLUMN = "column"


class TableExtractor(Protocol):
    """Discovers base tables in the working catalog and schema."""

    capability: ClassVar[Capability]
    dialects: ClassVar[tuple[str, ...]]

    def extract(self, connection: WorkingConnection, session: Session) -> list[Table]:
        """Return the tables visible in `connection.catalog.connection.schema`."""
        ...


class ViewExtractor(Protocol):
    """Discovers views in the working catalog and schema."""

    capability: ClassVar[Capability]
    dialects: ClassVar[tuple[str, ...]]

    def extract(self, connection: WorkingConnection, session: Session) -> list[View]:
        """Return the views visible in `connection.catalog.connection.schema`."""
        ...


class ColumnExtractor(Protocol):
    """Attaches ordered columns to already discovered tables or views."""

    capability: ClassVar[Capability]
    dialects: ClassVar[tuple[str, ...]]

    def extract(
        self,
        connection: WorkingConnection,
        session: Session,
        items: Sequence[Table | View],
    ) -> None:
        """Fill `columns` on every item in place."""
        ...

