"""Output formatting utilities for the CLI."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
    }
)

console = Console(theme=_THEME)


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages and tables."""

    def info(self, msg: str) -> None:
        """Print an info message."""
        console.print(f"[title]›[/] {msg}")

    @contextmanager
    def status(self, msg: str):
        """Show a transient status spinner while work is in progress."""
        with console.status(msg, spinner="dots"):
            yield

    def success(self, msg: str) -> None:
        """Print a success message."""
        console.print(f"[ok]✓[/] {msg}")

    def warn(self, msg: str) -> None:
        """Print a warning message."""
        console.print(f"[warn]⚠[/] {msg}")

    def error(self, msg: str) -> None:
        """Print an error message."""
        console.print(f"[err]✗[/] {msg}")

    def header(self, title: str) -> None:
        """Print a header message."""
        console.print(f"[title]{title}[/]")

    def connections_table(self, connections: Iterable[Any], title: str = "Connections") -> None:
        """
        Expects objects with .name .dialect .database_name .schema_name
        (like dbextract.core.connections.LogicalConnection)
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Name", style="ok", no_wrap=True)
        t.add_column("Dialect")
        t.add_column("Database", style="meta")
        t.add_column("Schema", style="meta")

        for c in connections:
            t.add_row(
                c.name,
                c.dialect,
                str(c.database_name or ""),
                str(c.schema_name or ""),
            )

        console.print(t)

    def relations_table(self, database: Any, title: str = "Tables and views") -> None:
        """
        Render tables and views of an extracted Database with column counts.
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Name", style="ok")
        t.add_column("Schema", style="meta")
        t.add_column("Type", style="meta")
        t.add_column("Columns", justify="right")

        for item in [*database.tables, *database.views]:
            t.add_row(
                item.name,
                str(item.schema or ""),
                str(item.type or ""),
                str(len(item.columns)),
            )

        console.print(t)

    def extraction_results_table(
        self, results: Iterable[Any], title: str = "Extraction results"
    ) -> None:
        """
        Expects objects with .connection .database and optional .error
        (e.g. dbextract.core.batch.ExtractionResult)
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Connection", style="ok", no_wrap=True)
        t.add_column("Model", style="meta")
        t.add_column("Tables", justify="right")
        t.add_column("Views", justify="right")
        t.add_column("Result")

        for r in results:
            db = r.database
            err = getattr(r, "error", None)
            t.add_row(
                r.connection.name,
                db.name if db else "",
                str(len(db.tables)) if db else "-",
                str(len(db.views)) if db else "-",
                "[ok]OK[/]" if not err else f"[err]FAIL[/] {err}",
            )

        console.print(t)

    def query_table(self, columns: list[str], rows: Iterable[tuple], title: str = "Result") -> None:
        """Render an ad-hoc query result."""
        t = Table(title=title, show_lines=False)
        for name in columns:
            t.add_column(str(name))

        for row in rows:
            t.add_row(*("NULL" if v is None else str(v) for v in row))

        console.print(t)


out = Out()
