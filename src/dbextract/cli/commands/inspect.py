"""Commands for inspecting configured connections."""

from pathlib import Path

import typer

from dbextract.cli.common.context import build_context
from dbextract.cli.common.exits import EXIT_CONFIG, EXIT_FAILURE, exit_from_exc
from dbextract.cli.common.options import ConfigOpt, TimeoutOpt
from dbextract.cli.common.output import out
from dbextract.core.errors import ConfigurationError, DbExtractError
from dbextract.core.generators import get_generator


def connections(config: Path = ConfigOpt):
    """List the connections defined in the config file."""
    appctx = build_context(config)
    out.header("Connections")
    out.info(f"Config: {appctx.config_path} | Connections: {len(appctx.connections)}")
    out.connections_table(appctx.connections)


def sql(
    query: str = typer.Argument(..., help="SQL statement to run"),
    config: Path = ConfigOpt,
    source: str = typer.Option(..., "--source", "-s", help="Connection name"),
    timeout: float | None = TimeoutOpt,
):
    """Run a SQL statement in the prepared session of a connection."""
    appctx = build_context(config, [source])
    connection = appctx.connections[0]

    try:
        with out.status("Running query..."):
            result = get_generator(connection.dialect, timeout=timeout).execute_sql(
                connection, query
            )
    except ConfigurationError as exc:
        exit_from_exc(exc, message=str(exc), code=EXIT_CONFIG)
    except DbExtractError as exc:
        exit_from_exc(exc, message=f"Query failed: {exc}", code=EXIT_FAILURE)

    if not result.columns:
        out.success("Statement executed.")
        raise typer.Exit(0)

    out.query_table(result.columns, result.rows, title=connection.name)
    out.info(f"Rows: {len(result.rows)}")
