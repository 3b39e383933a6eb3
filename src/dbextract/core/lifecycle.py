"""DuckLake catalog lifecycle.

Drives a DuckDB session from a bare connection to an active lakehouse
catalog:

    UNATTACHED -> EXTENSION_READY -> ATTACHED -> ACTIVE

Every step may be repeated against the same session or metadata store. An
`INSTALL` that fails is ignored (the extension is usually already present) and
an `ATTACH` of an already attached catalog counts as success.
"""

from __future__ import annotations

from enum import Enum

import duckdb
from loguru import logger

from dbextract.core.connections import LogicalConnection
from dbextract.core.errors import AttachConflict, ConfigurationError, ConnectivityError
from dbextract.core.identifiers import escape_literal, quote_identifier, validate_identifier
from dbextract.core.resolver import resolve_schema
from dbextract.core.session import Session, fetch_all

LAKEHOUSE_EXTENSION = "ducklake"
REMOTE_STORAGE_EXTENSION = "httpfs"
REMOTE_SCHEMES = ("s3://", "s3a://", "s3n://", "gs://", "gcs://", "r2://")

# Engine messages for a catalog that is already attached. DuckDB gives no
# error code for this, so the text is the only signal.
_ATTACH_CONFLICT_MARKERS = ("already exists", "Catalog with name")

# (setting, masked in logs); setting names match LogicalConnection fields.
_REMOTE_SETTINGS = (
    ("s3_region", False),
    ("s3_access_key_id", True),
    ("s3_secret_access_key", True),
)


class LifecycleState(str, Enum):
    """Progress of a session through the catalog lifecycle."""

    UNATTACHED = "UNATTACHED"
    EXTENSION_READY = "EXTENSION_READY"
    ATTACHED = "ATTACHED"
    ACTIVE = "ACTIVE"


def _require(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise ConfigurationError(f"{field} is required for DuckLake connections")
    return value


def validate_lakehouse_config(connection: LogicalConnection) -> tuple[str, str]:
    """
    Check a DuckLake connection before touching the engine.

    Returns:
        The validated (catalog, schema) pair.

    Raises:
        ConfigurationError: If the database name, data path or metadata store
            is blank, or the catalog/schema name is not a safe identifier.
    """
    catalog = _require(connection.database_name, "databaseName")
    _require(connection.ducklake_data_path, "ducklakeDataPath")
    _require(connection.ducklake_metadata_db, "ducklakeMetadataDb")
    validate_identifier(catalog, "databaseName")
    schema = validate_identifier(resolve_schema(connection.schema_name), "schemaName")
    return catalog, schema


def is_remote_path(path: str | None) -> bool:
    """Return True if the data path points at remote object storage."""
    return bool(path) and path.strip().lower().startswith(REMOTE_SCHEMES)


def is_attach_conflict(exc: BaseException) -> bool:
    """Return True if an ATTACH failure means the catalog is already attached."""
    message = str(exc) or ""
    return any(marker in message for marker in _ATTACH_CONFLICT_MARKERS)


def build_attach_sql(catalog: str, metadata_db: str, data_path: str) -> str:
    """Return the ATTACH statement for a DuckLake catalog."""
    return (
        f"ATTACH {escape_literal(f'{LAKEHOUSE_EXTENSION}:{metadata_db}')} "
        f"AS {quote_identifier(catalog)} (DATA_PATH {escape_literal(data_path)})"
    )


class CatalogLifecycle:
    """Attaches and activates a DuckLake catalog on one DuckDB session."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.state = LifecycleState.UNATTACHED

    def setup(self, connection: LogicalConnection) -> str:
        """
        Run the full lifecycle and return the attached catalog name.

        Configuration is validated before any statement is issued.

        Raises:
            ConfigurationError: Missing or unsafe connection fields.
            ConnectivityError: Any engine failure other than an already
                attached catalog or an already installed extension.
        """
        catalog, schema = validate_lakehouse_config(connection)

        self.load_extensions(connection)
        self.attach(connection, catalog)
        self.activate(catalog, schema)

        self._log_database_list()
        self._log_catalog_tables(catalog, schema)
        return catalog

    def load_extensions(self, connection: LogicalConnection) -> None:
        """Install/load the lakehouse extension and, for remote data, httpfs."""
        self._install(LAKEHOUSE_EXTENSION)
        self._execute(f"LOAD {LAKEHOUSE_EXTENSION}")

        if is_remote_path(connection.ducklake_data_path):
            self._install(REMOTE_STORAGE_EXTENSION)
            self._execute(f"LOAD {REMOTE_STORAGE_EXTENSION}")
            for setting, secret in _REMOTE_SETTINGS:
                value = getattr(connection, setting)
                if value is None or not value.strip():
                    continue
                shown = "'***'" if secret else escape_literal(value)
                self._execute(
                    f"SET {setting} = {escape_literal(value)}",
                    display=f"SET {setting} = {shown}",
                )

        self.state = LifecycleState.EXTENSION_READY

    def attach(self, connection: LogicalConnection, catalog: str) -> None:
        """Attach the catalog; an already attached catalog is accepted."""
        if self.state == LifecycleState.UNATTACHED:
            raise RuntimeError("Extensions must be loaded before attaching a catalog.")

        sql = build_attach_sql(
            catalog, connection.ducklake_metadata_db, connection.ducklake_data_path
        )
        try:
            self._attach(sql)
        except AttachConflict:
            logger.info("Catalog '{}' already attached, continuing.", catalog)
        self.state = LifecycleState.ATTACHED

    def activate(self, catalog: str, schema: str) -> None:
        """Make catalog.schema the default resolution context."""
        if self.state not in (LifecycleState.ATTACHED, LifecycleState.ACTIVE):
            raise RuntimeError("Catalog must be attached before it can be used.")
        self._execute(f"USE {quote_identifier(catalog)}.{quote_identifier(schema)}")
        self.state = LifecycleState.ACTIVE

    def _attach(self, sql: str) -> None:
        logger.info("Attaching DuckLake catalog: {}", sql)
        try:
            self.session.execute(sql)
        except duckdb.Error as exc:
            if is_attach_conflict(exc):
                raise AttachConflict(str(exc)) from exc
            raise ConnectivityError(str(exc)) from exc

    def _install(self, extension: str) -> None:
        try:
            self.session.execute(f"INSTALL {extension}")
        except duckdb.Error as exc:
            logger.debug("INSTALL {} failed, assuming installed: {}", extension, exc)

    def _execute(self, sql: str, *, display: str | None = None) -> None:
        logger.debug("Executing: {}", display or sql)
        try:
            self.session.execute(sql)
        except duckdb.Error as exc:
            raise ConnectivityError(str(exc)) from exc

    def _log_database_list(self) -> None:
        try:
            rows = fetch_all(self.session, "PRAGMA database_list")
        except duckdb.Error as exc:
            logger.debug("Could not list attached databases: {}", exc)
            return
        for row in rows:
            logger.debug("database_list: {}", row)

    def _log_catalog_tables(self, catalog: str, schema: str) -> None:
        sql = (
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_catalog = ? AND table_schema = ? ORDER BY table_name"
        )
        try:
            rows = fetch_all(self.session, sql, [catalog, schema])
        except duckdb.Error as exc:
            logger.warning("Could not enumerate tables via information_schema: {}", exc)
            return
        logger.info("DuckLake tables visible in {}.{}: {}", catalog, schema, len(rows))
