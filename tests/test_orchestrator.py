import duckdb
import pytest

from dbextract.core.connections import WorkingConnection
from dbextract.core.errors import ExtractionError
from dbextract.core.extractors.base import Capability
from dbextract.core.extractors.default import DefaultColumnsExtractor
from dbextract.core.extractors.native import DuckDbColumnsExtractor
from dbextract.core.models import Column, Table, View
from dbextract.core.orchestrator import (
    LAKEHOUSE_METADATA_TABLES,
    ExtractionOrchestrator,
    apply_allow_list,
    dedupe,
    filter_metadata_tables,
    metadata_catalog_name,
    query_lakehouse_tables,
)
from dbextract.core.registry import build_registry

WORKING = WorkingConnection(
    name="sales", dialect="stub", source_dialect="ducklake", catalog="sales"
)


class _Tables:
    capability = Capability.TABLE
    dialects = ()
    default = True
    result: list = []
    error: Exception | None = None

    def extract(self, connection, session):
        if self.error is not None:
            raise self.error
        return [Table(name=n, schema=connection.schema) for n in self.result]


class _Views:
    capability = Capability.VIEW
    dialects = ()
    default = True

    def extract(self, connection, session):
        return [View(name="v_orders", schema=connection.schema, code="SELECT 1")]


class _FailingViews(_Views):
    def extract(self, connection, session):
        raise ExtractionError("views unavailable")


class _Columns:
    capability = Capability.COLUMN
    dialects = ()
    default = True

    def extract(self, connection, session, items):
        for item in items:
            item.columns = [Column(name="id", type_name="BIGINT", ordinal_position=1)]


def _orchestrator(tables=_Tables, views=_Views, columns=_Columns, native=None):
    return ExtractionOrchestrator(build_registry([tables, views, columns]), native_tables=native)


def test_filter_metadata_tables_keeps_user_tables_in_order():
    items = [
        Table(name="orders"),
        Table(name="ducklake_snapshot"),
        Table(name="customers"),
        Table(name=""),
        Table(name="ducklake_table"),
        Table(name="ducklake_metadata_notes"),
    ]

    assert [t.name for t in filter_metadata_tables(items)] == [
        "orders",
        "customers",
        "ducklake_metadata_notes",
    ]


def test_metadata_table_set_is_complete():
    assert len(LAKEHOUSE_METADATA_TABLES) == 21
    assert {"ducklake_snapshot", "ducklake_data_file", "ducklake_view"} <= LAKEHOUSE_METADATA_TABLES


def test_dedupe_keeps_first_per_schema_and_name():
    items = [Table(name="a", schema="main"), Table(name="a", schema="raw"), Table(name="a", schema="main")]
    assert [(t.schema, t.name) for t in dedupe(items)] == [("main", "a"), ("raw", "a")]


def test_apply_allow_list():
    items = [Table(name="a"), Table(name="b")]
    assert apply_allow_list(items, ()) == items
    assert [t.name for t in apply_allow_list(items, ("b", "zzz"))] == ["b"]


def test_native_query_wins_when_it_returns_tables(fake_session):
    native_calls = []

    def native(connection, session):
        native_calls.append(connection.catalog)
        return [Table(name="orders", schema="main")]

    class _Unused(_Tables):
        error = AssertionError("registry extractor must not run")

    db = _orchestrator(tables=_Unused, native=native).extract(WORKING, fake_session())

    assert native_calls == ["sales"]
    assert [t.name for t in db.tables] == ["orders"]


def test_fallback_reaches_information_schema(fake_session, log_records):
    def native(connection, session):
        raise ExtractionError("no metadata catalog")

    class _Empty(_Tables):
        result = []

    session = fake_session(rows={"information_schema.tables": [("customers",), ("orders",)]})

    db = _orchestrator(tables=_Empty, native=native).extract(WORKING, session)

    assert [t.name for t in db.tables] == ["customers", "orders"]
    assert all(t.columns for t in db.tables)
    assert any(
        "no metadata catalog" in r["message"] for r in log_records if r["level"].name == "WARNING"
    )


def test_registry_extractor_runs_after_failed_native(fake_session):
    def native(connection, session):
        raise ExtractionError("boom")

    class _Found(_Tables):
        result = ["orders", "ducklake_snapshot", "orders"]

    db = _orchestrator(tables=_Found, native=native).extract(WORKING, fake_session())

    assert [t.name for t in db.tables] == ["orders"]


def test_all_steps_empty_gives_empty_tables(fake_session):
    class _Empty(_Tables):
        result = []

    db = _orchestrator(tables=_Empty).extract(WORKING, fake_session())

    assert db.tables == []
    assert [v.name for v in db.views] == ["v_orders"]


def test_view_failure_keeps_tables_and_columns(fake_session, log_records):
    class _Found(_Tables):
        result = ["orders"]

    db = _orchestrator(tables=_Found, views=_FailingViews).extract(WORKING, fake_session())

    assert [t.name for t in db.tables] == ["orders"]
    assert db.tables[0].columns[0].name == "id"
    assert db.views == []
    assert any("empty view set" in r["message"] for r in log_records)


def test_allow_list_limits_tables(fake_session):
    class _Found(_Tables):
        result = ["orders", "customers", "payments"]

    working = WorkingConnection(
        name="sales",
        dialect="stub",
        source_dialect="ducklake",
        catalog="sales",
        tables=("payments", "orders"),
    )

    db = _orchestrator(tables=_Found).extract(working, fake_session())

    assert [t.name for t in db.tables] == ["orders", "payments"]


def test_database_is_named_after_source_dialect_and_catalog(fake_session):
    class _Found(_Tables):
        result = ["orders"]

    db = _orchestrator(tables=_Found).extract(WORKING, fake_session())

    assert db.name == "ducklake:sales"
    assert db.database_type == "ducklake"


def test_query_lakehouse_tables_reads_metadata_catalog(fake_session):
    session = fake_session(rows={"ducklake_table": [("orders",), ("customers",)]})

    tables = query_lakehouse_tables(WORKING, session)

    assert [t.name for t in tables] == ["orders", "customers"]
    assert '"__ducklake_metadata_sales".main.ducklake_table' in session.statements[0]
    assert session.parameters[0] == ["main"]


def test_query_lakehouse_tables_maps_engine_errors(fake_session):
    session = fake_session(errors={"ducklake_table": duckdb.CatalogException("missing")})

    with pytest.raises(ExtractionError, match="missing"):
        query_lakehouse_tables(WORKING, session)


def test_metadata_catalog_name():
    assert metadata_catalog_name("sales") == "__ducklake_metadata_sales"


def test_filter_drops_every_bookkeeping_table():
    user = ["orders", "customers", "payments"]
    names = []
    for i, meta in enumerate(sorted(LAKEHOUSE_METADATA_TABLES)):
        if i % 7 == 0:
            names.append(user[i // 7])
        names.append(meta)

    result = filter_metadata_tables([Table(name=n) for n in names])

    assert [t.name for t in result] == user


def test_information_schema_skipped_when_registry_extractor_finds_tables(fake_session):
    class _Found(_Tables):
        result = ["orders"]

    session = fake_session(rows={"information_schema.tables": [("stale",)]})

    db = _orchestrator(tables=_Found).extract(WORKING, session)

    assert [t.name for t in db.tables] == ["orders"]
    assert not any("information_schema.tables" in s for s in session.statements)


class _ColumnSession:
    """Answers column lookups, failing for one table name."""

    def __init__(self, failing: str):
        self.failing = failing
        self._rows = []

    def execute(self, query, parameters=None):
        if parameters and parameters[-1] == self.failing:
            raise duckdb.CatalogException(f"Table {self.failing} was dropped")
        self._rows = [("id", "BIGINT", True, 1, None)]
        return self

    def fetchall(self):
        return list(self._rows)


@pytest.mark.parametrize("extractor", [DuckDbColumnsExtractor, DefaultColumnsExtractor])
def test_column_lookup_failure_only_empties_that_table(extractor, log_records):
    tables = [Table(name=n, schema="main") for n in ("a", "b", "c")]

    extractor().extract(WORKING, _ColumnSession("b"), tables)

    assert [(t.name, len(t.columns)) for t in tables] == [("a", 1), ("b", 0), ("c", 1)]
    assert any("main.b" in r["message"] for r in log_records if r["level"].name == "WARNING")


def test_failing_column_extractor_keeps_other_tables(fake_session):
    class _Found(_Tables):
        result = ["a", "b", "c"]

    class _PickyColumns(_Columns):
        def extract(self, connection, session, items):
            if any(item.name == "b" for item in items):
                raise ExtractionError("b is gone")
            super().extract(connection, session, items)

    db = _orchestrator(tables=_Found, columns=_PickyColumns).extract(WORKING, fake_session())

    assert [(t.name, len(t.columns)) for t in db.tables] == [("a", 1), ("b", 0), ("c", 1)]
