import pytest

from dbextract.core.connections import LogicalConnection
from dbextract.core.resolver import resolve_schema, resolve_working_connection


@pytest.mark.parametrize("value", [None, "", "   "])
def test_resolve_schema_defaults_to_main(value):
    assert resolve_schema(value) == "main"


def test_resolve_schema_keeps_explicit_schema():
    assert resolve_schema("raw") == "raw"


def test_resolve_working_connection_uses_attached_catalog_and_engine_dialect():
    logical = LogicalConnection(
        name="lake",
        dialect="ducklake",
        database_name="requested",
        tables=("orders",),
        password="secret",
    )

    working = resolve_working_connection(
        logical, ":memory:", "attached", engine_dialect="duckdb"
    )

    assert working.catalog == "attached"
    assert working.schema == "main"
    assert working.dialect == "duckdb"
    assert working.source_dialect == "ducklake"
    assert working.url == ":memory:"
    assert working.tables == ("orders",)
    assert working.password == "secret"
    # the caller's connection is untouched
    assert logical.database_name == "requested"
    assert logical.dialect == "ducklake"


def test_resolve_working_connection_defaults_to_logical_dialect():
    logical = LogicalConnection(name="db", dialect="duckdb", schema_name="raw")

    working = resolve_working_connection(logical, "/tmp/db.duckdb", "db")

    assert working.dialect == "duckdb"
    assert working.schema == "raw"


def test_passwords_are_hidden_from_repr():
    logical = LogicalConnection(
        name="db", dialect="duckdb", password="pw", s3_secret_access_key="sk"
    )
    assert "pw" not in repr(logical)
    assert "sk" not in repr(logical)
