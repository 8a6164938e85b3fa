"""Twilight interaction core: dialogue resolution, quest chains and NPC behavior."""

__version__ = "0.1.0"
