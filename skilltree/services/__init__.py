"""
Service layer for skilltree.

Services own runtime state (skill levels, balances, stat modifiers) and
expose the operations that change it.
"""

from __future__ import annotations

from skilltree.services.effects import SkillEffectBridge, resolve_value_by_level
from skilltree.services.session import SessionConfig, SkillTreeSession
from skilltree.services.skill_graph import (
    PrerequisiteCycleError,
    SkillConfigurationError,
    SkillGraphService,
    SkillNode,
    SkillNotFoundError,
)
from skilltree.services.stats import StatAggregator
from skilltree.services.wallet import WalletContext

__all__ = [
    "PrerequisiteCycleError",
    "SessionConfig",
    "SkillConfigurationError",
    "SkillEffectBridge",
    "SkillGraphService",
    "SkillNode",
    "SkillNotFoundError",
    "SkillTreeSession",
    "StatAggregator",
    "WalletContext",
    "resolve_value_by_level",
]
