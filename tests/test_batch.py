import threading
from types import SimpleNamespace

import duckdb
import pytest
from databricks.sdk.errors import InternalError

from dbextract.core.batch import extract_connections
from dbextract.core.connections import LogicalConnection
from dbextract.core.errors import ConnectivityError
from dbextract.core.generators import UnityCatalogGenerator, get_generator
from dbextract.core.models import Database


class _GeneratorStub:
    def generate(self, connection: LogicalConnection) -> Database:
        if connection.name == "broken":
            raise ConnectivityError("cannot open database")
        return Database(name=f"{connection.dialect}:{connection.name}")


def _connections(*names):
    return [LogicalConnection(name=n, dialect="duckdb") for n in names]


def test_extract_connections_rejects_non_positive_parallel():
    with pytest.raises(ValueError, match="max_parallel"):
        extract_connections(_connections("a"), 0, generator_for=lambda d: _GeneratorStub())


def test_extract_connections_returns_empty_on_empty_input():
    assert extract_connections([], 2, generator_for=lambda d: _GeneratorStub()) == []


def test_extract_connections_keeps_input_order_and_captures_errors():
    results = extract_connections(
        _connections("a", "broken", "c"), 3, generator_for=lambda d: _GeneratorStub()
    )

    assert [r.connection.name for r in results] == ["a", "broken", "c"]
    assert [r.ok for r in results] == [True, False, True]
    assert results[0].database.name == "duckdb:a"
    assert results[1].database is None
    assert "cannot open database" in results[1].error


def test_extract_connections_runs_in_parallel():
    barrier = threading.Barrier(2, timeout=5)

    class _Waiting(_GeneratorStub):
        def generate(self, connection):
            barrier.wait()
            return super().generate(connection)

    results = extract_connections(_connections("a", "b"), 2, generator_for=lambda d: _Waiting())

    assert all(r.ok for r in results)


def test_unexpected_errors_propagate():
    class _Buggy:
        def generate(self, connection):
            raise KeyError("bug")

    with pytest.raises(KeyError):
        extract_connections(_connections("a"), 1, generator_for=lambda d: _Buggy())


def test_databricks_outage_is_recorded_per_connection(tmp_path):
    db_path = tmp_path / "shop.duckdb"
    con = duckdb.connect(str(db_path))
    con.execute("CREATE TABLE orders (id INTEGER)")
    con.close()

    def list_tables(catalog_name, schema_name):
        raise InternalError("backend unavailable")

    client = SimpleNamespace(tables=SimpleNamespace(list=list_tables))

    def generator_for(dialect):
        if dialect == "databricks":
            return UnityCatalogGenerator(client_factory=lambda *_, **__: client)
        return get_generator(dialect)

    connections = [
        LogicalConnection(name="uc", dialect="databricks", database_name="main"),
        LogicalConnection(name="shop", dialect="duckdb", url=str(db_path)),
    ]

    results = extract_connections(connections, 2, generator_for=generator_for)

    assert [r.ok for r in results] == [False, True]
    assert "backend unavailable" in results[0].error
    assert [t.name for t in results[1].database.tables] == ["orders"]
