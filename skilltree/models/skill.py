"""
Skill Definition Models for skilltree.

Static configuration for upgradeable skills:
- Cost definitions (what an upgrade charges)
- Effect definitions (what a level contributes to stats)
- Skill definitions (the node in the prerequisite graph)
- Skill snapshots (read-only view of a skill's runtime state)
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, model_validator


# =============================================================================
# Enumerations
# =============================================================================


class CostType(str, Enum):
    """Kinds of resource a cost can draw from."""

    CURRENCY = "currency"
    ITEM = "item"
    ENERGY = "energy"


class ModifierOperation(str, Enum):
    """How a modifier combines into a stat's final value."""

    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"


class SkillUpgradeResult(str, Enum):
    """Outcome of an upgrade attempt. Only SUCCESS changes state."""

    SUCCESS = "success"
    PREREQUISITE_NOT_MET = "prerequisite_not_met"
    MAXED = "maxed"
    CANNOT_AFFORD = "cannot_afford"
    TRANSACTION_FAILED = "transaction_failed"


# Effect target tag interpreted by the stat bridge
STAT_TARGET = "Stat"


# =============================================================================
# Costs and Effects
# =============================================================================


class CostDefinition(BaseModel):
    """A single line of an upgrade cost."""

    model_config = {"frozen": True}

    key: str = Field(description="Resource key (e.g., 'gold')")
    cost_type: CostType = Field(default=CostType.CURRENCY, description="Resource type")
    amount: int = Field(default=0, description="Amount charged; must be > 0 to be chargeable")


class EffectDefinition(BaseModel):
    """
    A per-level contribution of a skill to a target.

    Only effects whose target_type is "Stat" are routed into the stat
    aggregator; any other tag is carried along untouched.
    """

    model_config = {"frozen": True}

    target_type: str = Field(default=STAT_TARGET, description="Target tag ('Stat', ...)")
    stat_id: str = Field(default="", description="Target stat id")
    operation: ModifierOperation = ModifierOperation.ADD
    value: float = Field(default=0.0, description="Magnitude per level")

    @property
    def targets_stat(self) -> bool:
        """Whether this effect feeds the stat system."""
        return self.target_type.strip().lower() == STAT_TARGET.lower()


# =============================================================================
# Skill Definition
# =============================================================================


class SkillDefinition(BaseModel):
    """
    Immutable configuration for one skill.

    Upgrade costs are the same for every level. Prerequisites are skill ids
    that must each be at level 1 or higher before this skill can be upgraded.
    """

    model_config = {"frozen": True}

    skill_id: str = Field(description="Unique skill id")
    max_level: int = Field(default=1, description="Highest reachable level (>= 1)")
    prerequisite_ids: tuple[str, ...] = Field(
        default=(), description="Ids of skills that unlock this one"
    )
    upgrade_costs: tuple[CostDefinition, ...] = Field(
        default=(), description="Cost charged for each level"
    )
    effects: tuple[EffectDefinition, ...] = Field(
        default=(), description="Effects applied per level"
    )
    display_name: str = ""
    description: str = ""

    @property
    def is_discrete(self) -> bool:
        """A single-level skill: either owned or not."""
        return self.max_level == 1


class Skill(BaseModel):
    """
    Snapshot of a skill's runtime state.

    Handed out by the graph service; mutating the service never changes a
    snapshot that has already been returned.
    """

    model_config = {"frozen": True}

    skill_id: str
    level: int = Field(ge=0)
    max_level: int = Field(ge=1)
    prerequisite_ids: tuple[str, ...] = ()
    upgrade_costs: tuple[CostDefinition, ...] = ()
    effects: tuple[EffectDefinition, ...] = ()
    display_name: str = ""

    @model_validator(mode="after")
    def validate_level(self) -> Skill:
        """Ensure level doesn't exceed max_level."""
        if self.level > self.max_level:
            raise ValueError(
                f"level ({self.level}) cannot exceed max_level ({self.max_level})"
            )
        return self

    @property
    def is_maxed(self) -> bool:
        return self.level >= self.max_level

    @property
    def is_discrete(self) -> bool:
        return self.max_level == 1


class SkillState(BaseModel):
    """Gating flags for one skill against a given payment context."""

    skill: Skill
    is_locked: bool = Field(description="True if prerequisites are not met")
    can_afford: bool = Field(default=False, description="Context can pay the next level")
    can_upgrade: bool = Field(default=False, description="Unlocked, not maxed and affordable")

    @property
    def is_unlocked(self) -> bool:
        return not self.is_locked

    @property
    def is_maxed(self) -> bool:
        return self.skill.is_maxed


# =============================================================================
# Factory Functions
# =============================================================================


def create_skill(
    skill_id: str,
    max_level: int = 1,
    prerequisites: list[str] | None = None,
    costs: list[CostDefinition] | None = None,
    effects: list[EffectDefinition] | None = None,
    display_name: str = "",
    description: str = "",
) -> SkillDefinition:
    """
    Create a skill definition.

    Args:
        skill_id: Unique id
        max_level: Highest reachable level
        prerequisites: Ids of prerequisite skills
        costs: Cost charged per level
        effects: Per-level effects
        display_name: Human readable name (defaults to the id)
        description: Free text description

    Returns:
        Configured SkillDefinition
    """
    return SkillDefinition(
        skill_id=skill_id,
        max_level=max_level,
        prerequisite_ids=tuple(prerequisites or ()),
        upgrade_costs=tuple(costs or ()),
        effects=tuple(effects or ()),
        display_name=display_name or skill_id,
        description=description,
    )


def gold_cost(amount: int, key: str = "gold") -> CostDefinition:
    """Shorthand for a currency cost line."""
    return CostDefinition(key=key, cost_type=CostType.CURRENCY, amount=amount)


def stat_effect(
    stat_id: str,
    operation: ModifierOperation,
    value: float,
) -> EffectDefinition:
    """Shorthand for an effect targeting a stat."""
    return EffectDefinition(
        target_type=STAT_TARGET,
        stat_id=stat_id,
        operation=operation,
        value=value,
    )
