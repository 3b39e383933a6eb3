"""CLI application for schema metadata extraction."""

import typer

from dbextract.cli.commands import extract as extract_cmd
from dbextract.cli.commands import inspect as inspect_cmd
from dbextract.cli.common.options import LogFileOpt, LogLevelOpt
from dbextract.core.logs import configure_logging

app = typer.Typer(
    help="dbextract - schema metadata extraction for DuckDB, DuckLake and Unity Catalog",
    no_args_is_help=True,
)


@app.callback()
def _init(log_level: str = LogLevelOpt, log_file: str | None = LogFileOpt):
    """Configure logging before any command runs."""
    configure_logging(log_level, log_file)


app.command("extract")(extract_cmd.extract)
app.command("validate")(extract_cmd.validate)
app.command("sql")(inspect_cmd.sql)
app.command("connections")(inspect_cmd.connections)


if __name__ == "__main__":
    app()
