"""Core result model for extracted schema metadata.

These models describe tables, views and columns independently of the engine
they were read from. They are free of DuckDB, Databricks SDK and CLI types so
downstream generators can consume them directly.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field


@dataclass(frozen=True)
class Column:
    """A single column of a table or view."""

    name: str
    type_name: str | None = None
    nullable: bool = True
    ordinal_position: int = 0
    default_value: str | None = None


@dataclass
class Table:
    """
    A base table discovered in a schema.

    Columns are attached after discovery by a column extractor, so the
    instance is mutable.
    """

    name: str
    schema: str | None = None
    type: str = "TABLE"
    columns: list[Column] = field(default_factory=list)

    @property
    def key(self) -> tuple[str | None, str]:
        return (self.schema, self.name)


@dataclass
class View:
    """A view discovered in a schema, with its defining SQL when known."""

    name: str
    schema: str | None = None
    type: str = "VIEW"
    code: str | None = None
    columns: list[Column] = field(default_factory=list)

    @property
    def key(self) -> tuple[str | None, str]:
        return (self.schema, self.name)


@dataclass
class Database:
    """Root of an extraction result."""

    name: str
    database_type: str | None = None
    tables: list[Table] = field(default_factory=list)
    views: list[View] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        """Return a plain mapping suitable for YAML/JSON serialization."""
        return asdict(self)
