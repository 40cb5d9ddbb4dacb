"""
Skill Effect Bridge for skilltree.

Listens to the skill graph and keeps a stat aggregator in sync: each skill
is a modifier source, and its stat effects are re-applied at the skill's
current level whenever that level changes.
"""

from __future__ import annotations

from collections.abc import Callable

from skilltree.models.skill import ModifierOperation, Skill
from skilltree.services.skill_graph import SkillGraphService
from skilltree.services.stats import StatAggregator, is_approximately_zero


def resolve_value_by_level(operation: ModifierOperation, base_value: float, level: int) -> float:
    """
    Scale an effect's magnitude to a skill level.

    Add/Subtract grow linearly (value * level); Multiply/Divide compound
    (value ** level). Level 0 resolves to 0, meaning "no modifier".
    """
    if level <= 0:
        return 0.0

    if operation in (ModifierOperation.ADD, ModifierOperation.SUBTRACT):
        return base_value * level
    if operation in (ModifierOperation.MULTIPLY, ModifierOperation.DIVIDE):
        return base_value**level
    raise ValueError(f"Unknown modifier operation: {operation}")


class SkillEffectBridge:
    """
    Routes skill stat effects into a StatAggregator.

    Bind once the service exists; unbind to stop listening. A reset revokes
    every skill as a source rather than replaying per-skill changes.
    """

    def __init__(self, service: SkillGraphService, stats: StatAggregator) -> None:
        self._service = service
        self._stats = stats
        self._unsubscribers: list[Callable[[], None]] = []

    @property
    def is_bound(self) -> bool:
        return bool(self._unsubscribers)

    def bind(self) -> None:
        """Subscribe to the service and apply every skill's current level."""
        if self.is_bound:
            return

        self._unsubscribers = [
            self._service.on_level_changed(self.reapply_skill),
            self._service.on_levels_reset(self._handle_levels_reset),
        ]
        self.sync_all_skills()

    def unbind(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def sync_all_skills(self) -> None:
        for skill in self._service.get_all_skills():
            self.reapply_skill(skill)

    def _handle_levels_reset(self) -> None:
        for skill in self._service.get_all_skills():
            self._stats.remove_modifiers_by_source(skill.skill_id)

    def reapply_skill(self, skill: Skill) -> None:
        """Replace a skill's modifiers with ones matching its level."""
        self._stats.remove_modifiers_by_source(skill.skill_id)
        if skill.level <= 0:
            return

        for effect in skill.effects:
            if not effect.targets_stat:
                continue
            if not effect.stat_id.strip():
                continue

            value = resolve_value_by_level(effect.operation, effect.value, skill.level)
            if is_approximately_zero(value):
                continue

            self._stats.apply_modifier(
                skill.skill_id,
                effect.stat_id.strip(),
                effect.operation,
                value,
            )
