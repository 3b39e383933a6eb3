import pytest

from dbextract.core.connections import LogicalConnection
from dbextract.core.errors import ConnectivityError
from dbextract.core.session import (
    IN_MEMORY,
    fetch_all,
    open_duckdb,
    resolve_database_path,
    session_scope,
)


@pytest.mark.parametrize(
    "url, duckdb_path, expected",
    [
        (None, None, IN_MEMORY),
        ("  ", None, IN_MEMORY),
        ("jdbc:duckdb:", None, IN_MEMORY),
        ("jdbc:duckdb:/tmp/a.duckdb", "/tmp/b.duckdb", "/tmp/a.duckdb"),
        (None, "duckdb:/tmp/b.duckdb", "/tmp/b.duckdb"),
        ("/tmp/c.duckdb", None, "/tmp/c.duckdb"),
    ],
)
def test_resolve_database_path(url, duckdb_path, expected):
    connection = LogicalConnection(
        name="x", dialect="duckdb", url=url, duckdb_database_path=duckdb_path
    )
    assert resolve_database_path(connection) == expected


def test_session_scope_closes_on_success(fake_session):
    session = fake_session()
    with session_scope(lambda path: session, IN_MEMORY) as opened:
        assert opened is session
    assert session.closed


def test_session_scope_closes_on_error(fake_session):
    session = fake_session()
    with pytest.raises(ValueError):
        with session_scope(lambda path: session, IN_MEMORY):
            raise ValueError("boom")
    assert session.closed


def test_session_scope_without_timeout_never_interrupts(fake_session):
    session = fake_session()
    with session_scope(lambda path: session, IN_MEMORY, timeout=5):
        pass
    assert not session.interrupted.is_set()


def test_open_duckdb_in_memory_ignores_read_only():
    con = open_duckdb(IN_MEMORY, read_only=True)
    try:
        assert fetch_all(con, "SELECT 1 + ?", [1]) == [(2,)]
    finally:
        con.close()


def test_open_duckdb_maps_engine_errors(tmp_path):
    with pytest.raises(ConnectivityError, match="missing.duckdb"):
        open_duckdb(str(tmp_path / "missing.duckdb"), read_only=True)
