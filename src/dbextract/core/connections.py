"""Connection value types.

A LogicalConnection is what the caller configured. A WorkingConnection is the
dialect-resolved view the extractors address their metadata queries with.
Both are immutable; the engine derives new values instead of rewriting the
caller's connection.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Mapping

from dbextract.core.errors import ConfigurationError

DEFAULT_SCHEMA = "main"

# Config files use the camelCase keys of the original connection format.
_CONFIG_KEYS = {
    "name": "name",
    "dbType": "dialect",
    "databaseName": "database_name",
    "schemaName": "schema_name",
    "url": "url",
    "userName": "user_name",
    "password": "password",
    "tables": "tables",
    "duckdbDatabasePath": "duckdb_database_path",
    "ducklakeDataPath": "ducklake_data_path",
    "ducklakeMetadataDb": "ducklake_metadata_db",
    "s3Region": "s3_region",
    "s3AccessKeyId": "s3_access_key_id",
    "s3SecretAccessKey": "s3_secret_access_key",
    "databricksProfile": "databricks_profile",
}


@dataclass(frozen=True)
class LogicalConnection:
    """
    Caller-supplied connection settings.

    Attributes:
        name: Display name of the connection.
        dialect: Dialect tag (e.g. `ducklake`, `duckdb`, `databricks`).
        database_name: Target database or catalog name.
        schema_name: Schema to extract; blank means `main`.
        url: Endpoint URL (DuckDB path or Databricks host).
        user_name: Optional user name.
        password: Optional password or token.
        tables: Table allow-list; empty means all tables.
        duckdb_database_path: DuckDB session database path.
        ducklake_data_path: DuckLake data path (local or remote URI).
        ducklake_metadata_db: DuckLake metadata-store location.
        s3_region: Optional S3 region for remote data paths.
        s3_access_key_id: Optional S3 access key.
        s3_secret_access_key: Optional S3 secret key.
        databricks_profile: Optional ~/.databrickscfg profile for Databricks
            connections; url and password override its host and token.
    """

    name: str
    dialect: str
    database_name: str | None = None
    schema_name: str | None = None
    url: str | None = None
    user_name: str | None = None
    password: str | None = field(default=None, repr=False)
    tables: tuple[str, ...] = ()
    duckdb_database_path: str | None = None
    ducklake_data_path: str | None = None
    ducklake_metadata_db: str | None = None
    s3_region: str | None = None
    s3_access_key_id: str | None = None
    s3_secret_access_key: str | None = field(default=None, repr=False)
    databricks_profile: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> LogicalConnection:
        """Build a connection from a config mapping (camelCase or snake_case keys)."""
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in data.items():
            attr = _CONFIG_KEYS.get(key, key)
            if attr not in known:
                raise ConfigurationError(f"Unknown connection field '{key}'.")
            values[attr] = value

        if not values.get("name"):
            raise ConfigurationError("Connection is missing 'name'.")
        if not values.get("dialect"):
            raise ConfigurationError(
                f"Connection '{values['name']}' is missing 'dbType'."
            )

        tables = values.get("tables") or ()
        if isinstance(tables, str):
            tables = (tables,)
        values["tables"] = tuple(str(t) for t in tables)

        for attr, value in list(values.items()):
            if attr != "tables" and value is not None:
                values[attr] = str(value)
        return cls(**values)

    def to_template_values(self) -> dict[str, str]:
        """Return config-keyed field values used for `${...}` templating."""
        out: dict[str, str] = {}
        for key, attr in _CONFIG_KEYS.items():
            value = getattr(self, attr)
            if value is None or attr == "tables":
                continue
            out[key] = value
        return out


@dataclass(frozen=True)
class WorkingConnection:
    """Dialect-resolved connection used to address metadata queries."""

    name: str
    dialect: str
    source_dialect: str
    catalog: str
    schema: str = DEFAULT_SCHEMA
    url: str | None = None
    user_name: str | None = None
    password: str | None = field(default=None, repr=False)
    tables: tuple[str, ...] = ()
