import sys

import duckdb
import pytest
import yaml
from loguru import logger
from typer.testing import CliRunner

from dbextract.cli.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def config_file(tmp_path):
    db_path = tmp_path / "shop.duckdb"
    con = duckdb.connect(str(db_path))
    con.execute("CREATE TABLE orders (id INTEGER, amount DOUBLE)")
    con.close()

    path = tmp_path / "connections.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "connections": [
                    {"name": "shop", "dbType": "duckdb", "url": str(db_path)},
                    {"name": "gone", "dbType": "duckdb", "url": str(tmp_path / "gone.duckdb")},
                ]
            }
        )
    )
    return path


def test_connections_lists_configured_connections(config_file):
    result = runner.invoke(app, ["connections", "-c", str(config_file)])

    assert result.exit_code == 0
    assert "shop" in result.output
    assert "gone" in result.output


def test_extract_writes_models(config_file, tmp_path):
    out_dir = tmp_path / "models"

    result = runner.invoke(
        app, ["extract", "-c", str(config_file), "-s", "shop", "-o", str(out_dir)]
    )

    assert result.exit_code == 0, result.output
    model = yaml.safe_load((out_dir / "shop" / "model.yaml").read_text())
    assert model["name"] == "duckdb:shop"
    assert [t["name"] for t in model["tables"]] == ["orders"]


def test_extract_exits_1_when_a_connection_fails(config_file):
    result = runner.invoke(app, ["extract", "-c", str(config_file), "-n", "2"])
    assert result.exit_code == 1


def test_unknown_source_exits_2(config_file):
    result = runner.invoke(app, ["extract", "-c", str(config_file), "-s", "nope"])
    assert result.exit_code == 2


def test_missing_config_exits_2(tmp_path):
    result = runner.invoke(app, ["validate", "-c", str(tmp_path / "missing.yaml")])
    assert result.exit_code == 2


def test_validate_reports_failures(config_file):
    ok = runner.invoke(app, ["validate", "-c", str(config_file), "-s", "shop"])
    failed = runner.invoke(app, ["validate", "-c", str(config_file), "-s", "gone"])

    assert ok.exit_code == 0
    assert failed.exit_code == 1


def test_sql_prints_query_result(config_file):
    result = runner.invoke(
        app, ["sql", "SELECT 40 + 2 AS answer", "-c", str(config_file), "-s", "shop"]
    )

    assert result.exit_code == 0, result.output
    assert "answer" in result.output
    assert "42" in result.output
