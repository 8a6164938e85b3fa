"""Central configuration for the Twilight interaction core.

Tunable parameters of the dialogue/quest/behavior engine live here (frame
timing, friendship thresholds, strictness, logging). Every value has a sane
default and can be overridden through environment variables.
"""
from __future__ import annotations
import logging
import os
from pathlib import Path


def _get_int_env(name: str, default: int, minval: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = int(raw)
        if minval is not None and v < minval:
            return default
        return v
    except ValueError:
        return default


def _get_float_env(name: str, default: float, minval: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = float(raw)
        if minval is not None and v < minval:
            return default
        return v
    except ValueError:
        return default


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    return val in {"1", "true", "yes", "on"}


# ---------------- NPC animation ----------------
# Milliseconds per animation frame when a state definition omits it
NPC_FRAME_MS: int = _get_int_env("TW_NPC_FRAME_MS", 280, minval=1)

# How close (tiles) the player must be to talk to an NPC
DEFAULT_INTERACTION_RADIUS: float = _get_float_env("TW_INTERACTION_RADIUS", 1.5, minval=0.0)

# Sustained time out of the recovery radius before a proximity state recovers
DEFAULT_RECOVERY_DELAY_MS: int = _get_int_env("TW_RECOVERY_DELAY_MS", 500, minval=0)


# ---------------- Friendship ----------------
# Points -> tier thresholds (100 points per level, levels 1-9)
ACQUAINTANCE_THRESHOLD: int = _get_int_env("TW_ACQUAINTANCE_THRESHOLD", 300, minval=0)
GOOD_FRIEND_THRESHOLD: int = _get_int_env("TW_GOOD_FRIEND_THRESHOLD", 600, minval=ACQUAINTANCE_THRESHOLD)
MAX_FRIENDSHIP_POINTS: int = _get_int_env("TW_MAX_FRIENDSHIP_POINTS", 900, minval=GOOD_FRIEND_THRESHOLD)


# ---------------- Content ----------------
DEFAULT_ASSETS_DIR = Path(__file__).resolve().parent / "assets"


def get_assets_dir() -> Path:
    """Content directory used by the bootstrap. Var: TW_ASSETS_DIR."""
    raw = os.getenv("TW_ASSETS_DIR")
    if raw is None or not raw.strip():
        return DEFAULT_ASSETS_DIR
    return Path(raw.strip())


def get_strict_mode() -> bool:
    """Raise on invariant violations instead of logging them (default: False). Var: TW_STRICT."""
    return _get_bool_env("TW_STRICT", False)


# ---------------- Logging ----------------

def get_log_level() -> int:
    """Log level name for the engine loggers. Var: TW_LOG_LEVEL (default WARNING)."""
    raw = os.getenv("TW_LOG_LEVEL", "WARNING").strip().upper()
    level = logging.getLevelName(raw)
    if not isinstance(level, int):
        return logging.WARNING
    return level


def configure_logging() -> None:
    """Attach a basic stream handler honouring TW_LOG_LEVEL."""
    logging.basicConfig(
        level=get_log_level(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


__all__ = [
    # NPC
    "NPC_FRAME_MS", "DEFAULT_INTERACTION_RADIUS", "DEFAULT_RECOVERY_DELAY_MS",
    # Friendship
    "ACQUAINTANCE_THRESHOLD", "GOOD_FRIEND_THRESHOLD", "MAX_FRIENDSHIP_POINTS",
    # Content
    "DEFAULT_ASSETS_DIR", "get_assets_dir", "get_strict_mode",
    # Logging
    "get_log_level", "configure_logging",
]
