"""Application context management for the CLI."""

from dataclasses import dataclass
from pathlib import Path

from dbextract.cli.common.exits import EXIT_CONFIG, die
from dbextract.core.config import Config, load_config
from dbextract.core.connections import LogicalConnection
from dbextract.core.errors import ConfigurationError


@dataclass
class AppContext:
    """Application context holding the parsed config and selected connections."""

    config_path: Path
    config: Config
    connections: list[LogicalConnection]


def build_context(config_path: Path, sources: list[str] | None = None) -> AppContext:
    """Load the config file and select connections by name (all when none given).

    Args:
        config_path: Path of the YAML connections file.
        sources: Optional connection names to select.

    Returns:
        AppContext: Context with the parsed config and selected connections.
    """
    try:
        config = load_config(config_path)
        if sources:
            connections = [config.get_connection(name) for name in sources]
        else:
            connections = list(config.connections)
    except ConfigurationError as exc:
        die(str(exc), code=EXIT_CONFIG)

    if not connections:
        die(f"No connections configured in {config_path}.", code=EXIT_CONFIG)
    return AppContext(config_path=config_path, config=config, connections=connections)
