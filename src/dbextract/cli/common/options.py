"""Common CLI options for the CLI."""

import typer

ConfigOpt = typer.Option(
    ...,
    "--config",
    "-c",
    help="Connections config file (YAML)",
    envvar="DBEXTRACT_CONFIG",
)

SourceOpt = typer.Option(
    [],
    "--source",
    "-s",
    help="Connection name to use. This is reusable; default is all connections.",
    show_default=False,
)

OutputOpt = typer.Option(
    None,
    "--output",
    "-o",
    help="Directory to write <connection>/model.yaml files to",
)

ParallelOpt = typer.Option(
    1,
    "--parallel",
    "-n",
    help="Number of connections to extract in parallel",
)

TimeoutOpt = typer.Option(
    None,
    "--timeout",
    help="Interrupt engine calls after this many seconds",
)

LogLevelOpt = typer.Option(
    "WARNING",
    "--log-level",
    help="Log level (DEBUG, INFO, WARNING, ERROR)",
)

LogFileOpt = typer.Option(
    None,
    "--log-file",
    help="Also write logs to this file",
)
