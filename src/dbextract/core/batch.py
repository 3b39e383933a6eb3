"""Concurrent extraction of independent connections.

Each logical connection runs through its own generator and engine session, so
connections can be extracted in parallel. Within one connection everything
stays sequential.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Sequence

from loguru import logger

from dbextract.core.connections import LogicalConnection
from dbextract.core.errors import DbExtractError
from dbextract.core.generators import Generator, get_generator
from dbextract.core.models import Database


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of extracting a single connection."""

    connection: LogicalConnection
    database: Database | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _extract_one(
    connection: LogicalConnection,
    generator_for: Callable[[str], Generator],
) -> ExtractionResult:
    try:
        database = generator_for(connection.dialect).generate(connection)
    except DbExtractError as exc:  # keep the batch going; surface per-connection errors
        logger.error("Extraction of '{}' failed: {}", connection.name, exc)
        return ExtractionResult(connection=connection, error=str(exc))
    return ExtractionResult(connection=connection, database=database)


def extract_connections(
    connections: Sequence[LogicalConnection],
    max_parallel: int,
    *,
    generator_for: Callable[[str], Generator] = get_generator,
) -> list[ExtractionResult]:
    """
    Extract multiple connections in parallel.

    Args:
        connections: Logical connections to extract.
        max_parallel: Maximum number of connections extracted concurrently.
        generator_for: Returns the generator for a dialect tag.

    Returns:
        One ExtractionResult per connection, in input order.
    """
    if max_parallel < 1:
        raise ValueError("max_parallel must be >= 1")
    if not connections:
        return []

    with ThreadPoolExecutor(max_workers=max_parallel) as pool:
        futures = [pool.submit(_extract_one, c, generator_for) for c in connections]
        return [f.result() for f in futures]
