"""Commands for extracting and validating connection schemas."""

from functools import partial
from pathlib import Path

import typer

from dbextract.cli.common.context import build_context
from dbextract.cli.common.exits import EXIT_CONFIG, EXIT_FAILURE
from dbextract.cli.common.options import (
    ConfigOpt,
    OutputOpt,
    ParallelOpt,
    SourceOpt,
    TimeoutOpt,
)
from dbextract.cli.common.output import out
from dbextract.core.batch import extract_connections
from dbextract.core.errors import ConfigurationError, DbExtractError
from dbextract.core.export import write_model
from dbextract.core.generators import get_generator


def extract(
    config: Path = ConfigOpt,
    source: list[str] = SourceOpt,
    output: Path | None = OutputOpt,
    parallel: int = ParallelOpt,
    timeout: float | None = TimeoutOpt,
):
    """Extract tables, views and columns for the configured connections."""
    appctx = build_context(config, source)

    if parallel < 1:
        out.error("--parallel must be >= 1")
        raise typer.Exit(EXIT_CONFIG)

    with out.status(f"Extracting {len(appctx.connections)} connection(s)..."):
        results = extract_connections(
            appctx.connections,
            parallel,
            generator_for=partial(get_generator, timeout=timeout),
        )

    out.extraction_results_table(results)

    for r in results:
        if r.database is None:
            continue
        out.header(r.database.name)
        if not r.database.tables:
            out.warn(f"No tables found for '{r.connection.name}'.")
        out.relations_table(r.database, title=f"{r.connection.name}")
        if output:
            path = write_model(r.database, output, r.connection.name)
            out.info(f"Model written to {path}")

    failed = [r for r in results if not r.ok]
    if failed:
        out.error(f"Extraction failed for {len(failed)} connection(s).")
        raise typer.Exit(EXIT_FAILURE)

    out.success(f"Extracted {len(results)} connection(s).")


def validate(
    config: Path = ConfigOpt,
    source: list[str] = SourceOpt,
    timeout: float | None = TimeoutOpt,
):
    """Check that each connection can be opened and its catalog set up."""
    appctx = build_context(config, source)
    failures = 0
    config_failures = 0

    for connection in appctx.connections:
        try:
            with out.status(f"Validating '{connection.name}'..."):
                database = get_generator(connection.dialect, timeout=timeout).validate(
                    connection
                )
        except ConfigurationError as exc:
            config_failures += 1
            out.error(f"{connection.name}: {exc}")
            continue
        except DbExtractError as exc:
            failures += 1
            out.error(f"{connection.name}: {exc}")
            continue
        out.success(f"{connection.name}: {database.name}")

    if config_failures:
        raise typer.Exit(EXIT_CONFIG)
    if failures:
        raise typer.Exit(EXIT_FAILURE)
