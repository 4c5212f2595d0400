"""
Schema validation for storysync.

JSON Schema checks at every data boundary: the assistant's todo payloads,
the persisted tracker state, and the project config.

Two styles are offered:
  - validate() / validate_before_write() raise ValidationError, for data we
    produce ourselves and must never write out invalid.
  - check() / parse_todo_payload() / load_json_checked() return Ok | Invalid,
    for external input where malformed data is expected and recoverable.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema

from storysync.lib.types import TodoItem


class ValidationError(Exception):
    """Schema validation failed."""

    def __init__(self, schema_name: str, message: str, path: str = None):
        self.schema_name = schema_name
        self.path = path
        super().__init__(f"[{schema_name}] {message}" + (f" at {path}" if path else ""))


@dataclass(frozen=True)
class Ok:
    value: Any


@dataclass(frozen=True)
class Invalid:
    reason: str


# Cache loaded schemas
_schema_cache: dict[str, dict] = {}


def _get_schemas_dir() -> Path:
    """Get path to schemas directory."""
    return Path(__file__).parent.parent / "schemas"


def _load_schema(schema_name: str) -> dict:
    """Load schema by name, with caching."""
    if schema_name not in _schema_cache:
        schema_path = _get_schemas_dir() / f"{schema_name}.schema.json"
        if not schema_path.exists():
            raise ValidationError(schema_name, f"Schema file not found: {schema_path}")
        _schema_cache[schema_name] = json.loads(schema_path.read_text(encoding="utf-8"))
    return _schema_cache[schema_name]


def validate(data: Any, schema_name: str) -> None:
    """
    Validate data against named schema.

    Args:
        data: Value to validate
        schema_name: Schema name (e.g., "todo_list", "tracker_state", "config")

    Raises:
        ValidationError: If validation fails
    """
    schema = _load_schema(schema_name)

    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        path = ".".join(str(p) for p in e.absolute_path) if e.absolute_path else "(root)"
        raise ValidationError(schema_name, e.message, path) from None


def validate_before_write(data: Any, schema_name: str, filepath: Path) -> None:
    """
    Validate data before writing to file. Ensures we never write invalid data.

    Raises:
        ValidationError: If data doesn't match schema
    """
    try:
        validate(data, schema_name)
    except ValidationError as e:
        raise ValidationError(
            schema_name,
            f"Refusing to write invalid data to {filepath}: {e}"
        ) from None


def check(data: Any, schema_name: str) -> Ok | Invalid:
    """Validate without raising. Returns Ok(data) or Invalid(reason)."""
    try:
        validate(data, schema_name)
    except ValidationError as e:
        return Invalid(str(e))
    return Ok(data)


def parse_todo_payload(payload: Any) -> Ok | Invalid:
    """Parse the assistant's todo list.

    Accepts a list of {id, content, status, priority} dicts, or a dict
    wrapping one under "todos". Returns Ok(list[TodoItem]) or Invalid.
    """
    if isinstance(payload, dict) and "todos" in payload:
        payload = payload["todos"]

    result = check(payload, "todo_list")
    if isinstance(result, Invalid):
        return result
    return Ok([TodoItem.from_dict(item) for item in payload])


def load_json_checked(filepath: Path, schema_name: str) -> Ok | Invalid:
    """Load a JSON file and check it against a schema. Never raises for bad input."""
    path = Path(filepath)
    if not path.exists():
        return Invalid(f"File not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        return Invalid(f"Unreadable file {path}: {e}")
    except json.JSONDecodeError as e:
        return Invalid(f"Invalid JSON in {path}: {e}")

    return check(data, schema_name)
