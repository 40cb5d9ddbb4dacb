"""
Core Data Models for skilltree.

These models define the shapes the engine works with: skill, cost and
effect definitions, the resource catalog and stat modifiers.
"""

from skilltree.models.catalog import ResourceCatalog, ResourceEntry, create_catalog
from skilltree.models.skill import (
    STAT_TARGET,
    CostDefinition,
    CostType,
    EffectDefinition,
    ModifierOperation,
    Skill,
    SkillDefinition,
    SkillState,
    SkillUpgradeResult,
    create_skill,
    gold_cost,
    stat_effect,
)
from skilltree.models.stats import EffectModifier, StatDefinition

__all__ = [
    # Skill
    "STAT_TARGET",
    "CostDefinition",
    "CostType",
    "EffectDefinition",
    "ModifierOperation",
    "Skill",
    "SkillDefinition",
    "SkillState",
    "SkillUpgradeResult",
    "create_skill",
    "gold_cost",
    "stat_effect",
    # Catalog
    "ResourceCatalog",
    "ResourceEntry",
    "create_catalog",
    # Stats
    "EffectModifier",
    "StatDefinition",
]
