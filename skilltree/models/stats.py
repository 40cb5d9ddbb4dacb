"""
Stat Models for skilltree.

Base stat declarations and the modifiers that skills contribute.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from skilltree.models.skill import ModifierOperation


class StatDefinition(BaseModel):
    """A stat and its base value."""

    stat_id: str
    base_value: float = 0.0


class EffectModifier(BaseModel):
    """A single (source, operation, value) contribution to one stat."""

    model_config = {"frozen": True}

    source_id: str = Field(description="Who contributed this modifier (e.g., a skill id)")
    stat_id: str = Field(description="Stat being modified")
    operation: ModifierOperation
    value: float
