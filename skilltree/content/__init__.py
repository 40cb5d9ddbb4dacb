"""Pre-built content for skilltree."""

from skilltree.content.arcane_tree import (
    STAT_IDS,
    create_arcane_config,
    create_arcane_resources,
    create_arcane_skills,
    create_arcane_stats,
)

__all__ = [
    "STAT_IDS",
    "create_arcane_config",
    "create_arcane_resources",
    "create_arcane_skills",
    "create_arcane_stats",
]
