"""Connection config file loading.

The config file is YAML with a `connections` list. `${VAR}` references are
substituted from the environment before parsing. After parsing, path, URL and
S3 fields of each connection are substituted again against that connection's
own fields, so `url: jdbc:duckdb:${duckdbDatabasePath}` resolves.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping

import yaml
from loguru import logger

from dbextract.core.connections import LogicalConnection
from dbextract.core.errors import ConfigurationError

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")

# Fields re-templated against the connection's own values.
_TEMPLATED_FIELDS = (
    "url",
    "duckdb_database_path",
    "ducklake_data_path",
    "ducklake_metadata_db",
    "s3_region",
    "s3_access_key_id",
    "s3_secret_access_key",
)


@dataclass(frozen=True)
class Config:
    """Parsed config file."""

    connections: tuple[LogicalConnection, ...] = ()

    def get_connection(self, name: str) -> LogicalConnection:
        """Return the connection with the given name."""
        for connection in self.connections:
            if connection.name == name:
                return connection
        known = ", ".join(c.name for c in self.connections) or "none"
        raise ConfigurationError(f"Unknown connection '{name}' (configured: {known}).")


def substitute(text: str, values: Mapping[str, str]) -> str:
    """Replace `${name}` with values[name]; unknown names are left as written."""
    return _PLACEHOLDER.sub(lambda m: values.get(m.group(1), m.group(0)), text)


def _template_connection(connection: LogicalConnection) -> LogicalConnection:
    values = connection.to_template_values()
    updates = {}
    for attr in _TEMPLATED_FIELDS:
        value = getattr(connection, attr)
        if value is not None:
            updates[attr] = substitute(value, values)
    return replace(connection, **updates)


def parse_config(text: str, env: Mapping[str, str] | None = None) -> Config:
    """Parse config text, substituting `${VAR}` from env (default: os.environ)."""
    text = substitute(text, os.environ if env is None else env)
    try:
        raw = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid config YAML: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError("Config must be a mapping with a 'connections' list.")

    items = raw.get("connections") or []
    if not isinstance(items, list):
        raise ConfigurationError("'connections' must be a list.")

    connections = []
    for item in items:
        if not isinstance(item, dict):
            raise ConfigurationError("Every connection must be a mapping.")
        connections.append(_template_connection(LogicalConnection.from_mapping(item)))
    return Config(connections=tuple(connections))


def load_config(path: str | Path, env: Mapping[str, str] | None = None) -> Config:
    """Read and parse a config file."""
    path = Path(path)
    try:
        text = path.read_text()
    except OSError as exc:
        raise ConfigurationError(f"Could not read config file '{path}': {exc}") from exc
    config = parse_config(text, env)
    logger.info("Loaded {} connection(s) from {}", len(config.connections), path)
    return config
