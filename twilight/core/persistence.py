"""Save/Load helpers for the interaction core.

The tracker and the NPC registry each export plain dicts; this module wraps
them in one versioned JSON document. Static content is never saved, only
progress (chain state, behavior state, friendship points, positions).
"""
from __future__ import annotations
import json
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Union

logger = logging.getLogger(__name__)

# Save format version - increment when making breaking changes
SAVE_VERSION = 1


class SaveError(Exception):
    """Exception raised for save/load operations."""
    pass


def serialize_engine_state(tracker, registry=None) -> Dict[str, Any]:
    """Compose the tracker and registry state into one save document."""
    return {
        "_save_metadata": {
            "version": SAVE_VERSION,
            "timestamp": time.time(),
            "date_saved": datetime.now().isoformat(),
        },
        "quests": tracker.export_state(),
        "npcs": registry.save_state() if registry is not None else {"npcs": {}},
    }


def restore_engine_state(data: Dict[str, Any], tracker, registry=None) -> None:
    """Apply a save document to a freshly bootstrapped tracker and registry.

    Both halves are parsed before either is applied, so a malformed document
    leaves the current progress untouched.

    Raises:
        SaveError: If the document comes from a newer save format
        KeyError, TypeError, ValueError: If the document is malformed
    """
    metadata = data.get("_save_metadata", {})
    save_version = metadata.get("version", 0)
    if save_version > SAVE_VERSION:
        raise SaveError(f"Save file version {save_version} is newer than supported version {SAVE_VERSION}")

    quests = tracker.parse_state(data.get("quests", {}))
    npcs = registry.parse_state(data.get("npcs", {})) if registry is not None else None

    tracker.apply_state(quests)
    if registry is not None:
        registry.apply_state(npcs)


def save_document(path: Union[str, Path], tracker, registry=None) -> Path:
    """Write the engine state to a JSON file.

    Returns:
        Path to the save file

    Raises:
        SaveError: If the save operation fails
    """
    filepath = Path(path)
    try:
        save_data = serialize_engine_state(tracker, registry)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(save_data, f, indent=2, ensure_ascii=False)
    except (OSError, TypeError, ValueError) as e:
        raise SaveError(f"Failed to save game: {e}") from e
    logger.info(f"Saved engine state to {filepath}")
    return filepath


def load_document(path: Union[str, Path], tracker, registry=None) -> Dict[str, Any]:
    """Read a save file and restore it into tracker and registry.

    Returns:
        The raw save document

    Raises:
        SaveError: If the file is missing, unreadable or too new
    """
    filepath = Path(path)
    if not filepath.exists():
        raise SaveError(f"Save file not found: {filepath}")
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            save_data = json.load(f)
    except (OSError, ValueError) as e:
        raise SaveError(f"Failed to load game: {e}") from e

    if not isinstance(save_data, dict):
        raise SaveError(f"Failed to load game: {filepath.name} is not a save document")

    try:
        restore_engine_state(save_data, tracker, registry)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise SaveError(f"Failed to load game: {e}") from e
    return save_data
