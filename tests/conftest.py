from __future__ import annotations

import sys
import threading
from pathlib import Path

import pytest

# Ensure tests always import the local src tree, not an older installed wheel.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

from loguru import logger  # noqa: E402


class FakeSession:
    """
    Records executed statements and answers them from canned data.

    `rows` and `errors` map a SQL substring to the rows returned or the
    exception raised by the first statement containing it.
    """

    def __init__(self, rows=None, errors=None, description=None):
        self.rows = dict(rows or {})
        self.errors = dict(errors or {})
        self.description = description
        self.statements: list[str] = []
        self.parameters: list[object] = []
        self.closed = False
        self.interrupted = threading.Event()
        self._result: list[tuple] = []

    def execute(self, query, parameters=None):
        self.statements.append(query)
        self.parameters.append(parameters)
        for marker, exc in self.errors.items():
            if marker in query:
                raise exc
        self._result = []
        for marker, rows in self.rows.items():
            if marker in query:
                self._result = list(rows)
                break
        return self

    def fetchall(self):
        return list(self._result)

    def interrupt(self):
        self.interrupted.set()

    def close(self):
        self.closed = True


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def log_records():
    records: list[dict] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)
