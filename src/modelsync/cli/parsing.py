"""Input parsing utilities for CLI commands."""

import json
from pathlib import Path
from typing import Any


def read_json_file(path: str | Path) -> Any:
    """Read a JSON document from file.

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If file contains invalid JSON
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with file_path.open("r", encoding="utf-8") as f:
        return json.load(f)


def load_entity_specs(path: str | Path) -> list[dict[str, Any]]:
    """Read entity specs from a models file.

    Accepts either a JSON list of entity specs or an object with an
    "entities" list.

    Raises:
        ValueError: If the document has neither shape
    """
    data = read_json_file(path)
    if isinstance(data, dict):
        data = data.get("entities")
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise ValueError(
            f"Invalid models file: {path}. Expected a list of entities or {{\"entities\": [...]}}"
        )
    return data


def parse_where(conditions: list[str] | None) -> dict[str, Any]:
    """Parse ``name=value`` filters. Values are JSON when possible, else strings."""
    where: dict[str, Any] = {}
    for condition in conditions or []:
        if "=" not in condition:
            raise ValueError(f"Invalid filter: '{condition}'. Expected format: name=value")
        key, value = condition.split("=", 1)
        try:
            where[key] = json.loads(value)
        except json.JSONDecodeError:
            where[key] = value
    return where
