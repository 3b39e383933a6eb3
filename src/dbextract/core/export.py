"""YAML export of extracted models."""

from __future__ import annotations

from pathlib import Path

import yaml

from dbextract.core.models import Database

MODEL_FILE = "model.yaml"


def model_to_yaml(database: Database) -> str:
    """Render a Database as YAML, keeping field order."""
    return yaml.safe_dump(database.to_dict(), sort_keys=False, allow_unicode=True)


def write_model(database: Database, output_dir: str | Path, connection_name: str) -> Path:
    """Write `<output_dir>/<connection_name>/model.yaml` and return its path."""
    target = Path(output_dir) / connection_name
    target.mkdir(parents=True, exist_ok=True)
    path = target / MODEL_FILE
    path.write_text(model_to_yaml(database))
    return path
