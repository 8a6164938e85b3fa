"""Content validation helpers.

Static content (quests, dialogue scripts, NPC behavior tables) is checked
against JSON schemas before it is parsed, so structural mistakes fail at load
time rather than in the middle of a conversation.
"""
import json
from pathlib import Path
from typing import Any, Dict, Union

import jsonschema


def validate_schema(payload: Any, schema: Dict[str, Any], what: str = "content") -> bool:
    """Validate payload against a JSON schema.

    Raises:
        ValueError: If the payload does not match, with the failing path
    """
    try:
        jsonschema.validate(payload, schema)
    except jsonschema.ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ValueError(f"Invalid {what} at {where}: {e.message}") from e
    return True


def schema_errors(payload: Any, schema: Dict[str, Any]) -> list:
    """All schema violations as readable strings (empty if valid)."""
    validator = jsonschema.Draft7Validator(schema)
    errors = []
    for error in sorted(validator.iter_errors(payload), key=lambda e: list(e.absolute_path)):
        where = "/".join(str(p) for p in error.absolute_path) or "<root>"
        errors.append(f"{where}: {error.message}")
    return errors


def load_json(path: Union[str, Path]) -> Any:
    """Read a JSON content file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the JSON is malformed
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Content file not found: {path}")
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {file_path.name}: {e}")
