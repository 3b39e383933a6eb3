"""DuckDB session handling.

Sessions are scoped resources: every generator opens one through
`session_scope`, which closes it on every exit path and optionally interrupts
long-running engine calls after a timeout.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Protocol, Sequence

import duckdb
from loguru import logger

from dbextract.core.connections import LogicalConnection
from dbextract.core.errors import ConnectivityError

IN_MEMORY = ":memory:"
_URL_PREFIXES = ("jdbc:duckdb:", "duckdb:")


class Session(Protocol):
    """The subset of a DB-API style connection the engine relies on."""

    def execute(self, query: str, parameters: Sequence[Any] | None = None) -> Any:
        """Run a statement and return a cursor exposing `fetchall()`."""
        ...

    def close(self) -> None:
        """Release the session."""
        ...


SessionFactory = Callable[[str], Session]


def fetch_all(
    session: Session, query: str, parameters: Sequence[Any] | None = None
) -> list[tuple]:
    """Run a query and return all rows as tuples."""
    return session.execute(query, parameters).fetchall()


def _strip_prefix(value: str) -> str:
    for prefix in _URL_PREFIXES:
        if value.startswith(prefix):
            return value[len(prefix) :]
    return value


def resolve_database_path(connection: LogicalConnection) -> str:
    """
    Return the DuckDB database path for a session.

    Rules:
      - `url` wins when set; a `jdbc:duckdb:` or `duckdb:` prefix is dropped
      - otherwise `duckdb_database_path`, with the same prefix handling
      - otherwise an in-memory database
    """
    for candidate in (connection.url, connection.duckdb_database_path):
        if candidate and candidate.strip():
            path = _strip_prefix(candidate.strip())
            return path or IN_MEMORY
    return IN_MEMORY


def open_duckdb(database_path: str, *, read_only: bool = False) -> duckdb.DuckDBPyConnection:
    """Open a DuckDB connection, mapping engine failures to ConnectivityError."""
    read_only = read_only and database_path != IN_MEMORY
    logger.info("Opening DuckDB session: {}", database_path)
    try:
        return duckdb.connect(database=database_path, read_only=read_only)
    except duckdb.Error as exc:
        raise ConnectivityError(
            f"Could not open DuckDB database '{database_path}': {exc}"
        ) from exc


def _close(session: Session) -> None:
    try:
        session.close()
    except duckdb.Error as exc:
        logger.warning("Closing DuckDB session failed: {}", exc)


@contextmanager
def session_scope(
    factory: SessionFactory,
    database_path: str,
    *,
    timeout: float | None = None,
) -> Iterator[Session]:
    """
    Open a session and close it on exit, whatever happens inside the block.

    When timeout is set, a timer calls `session.interrupt()` once it expires
    and the block ends with a ConnectivityError even if the interrupted step
    was absorbed by a fallback.
    """
    session = factory(database_path)
    expired = threading.Event()
    timer: threading.Timer | None = None

    if timeout:

        def _on_timeout() -> None:
            expired.set()
            logger.warning("Engine call exceeded {}s, interrupting session", timeout)
            session.interrupt()

        timer = threading.Timer(timeout, _on_timeout)
        timer.daemon = True
        timer.start()

    try:
        yield session
    except Exception as exc:
        if expired.is_set():
            raise ConnectivityError(
                f"Engine call interrupted after {timeout}s timeout: {exc}"
            ) from exc
        raise
    else:
        if expired.is_set():
            raise ConnectivityError(f"Engine call interrupted after {timeout}s timeout.")
    finally:
        if timer is not None:
            timer.cancel()
        _close(session)
