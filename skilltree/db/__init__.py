"""
Storage layer for skilltree.

Provides interfaces and implementations for:
- Progression stores: skill_id -> level persistence
- Cost catalogs and payment contexts (interfaces only; see models/services)

Implementations:
- InMemoryProgressStore: For testing (no external dependencies)
- DoltProgressStore: For production (requires a running Dolt SQL server)
"""

from __future__ import annotations

from skilltree.db.dolt import (
    DoltConnection,
    DoltProgressStore,
    init_dolt_schema,
)
from skilltree.db.interfaces import CostCatalog, ProgressionStore, SkillContext
from skilltree.db.memory import InMemoryProgressStore

__all__ = [
    # Protocol interfaces
    "CostCatalog",
    "ProgressionStore",
    "SkillContext",
    # In-memory implementations (for testing)
    "InMemoryProgressStore",
    # Real database implementations
    "DoltConnection",
    "DoltProgressStore",
    "init_dolt_schema",
]
