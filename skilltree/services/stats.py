"""
Stat Aggregation Service for skilltree.

Keeps base values and per-source modifiers for every stat and combines
them on demand:

    final = (base + sum(add) - sum(subtract)) * prod(multiply) / prod(divide)

Additive modifiers always apply before multiplicative ones, regardless of
the order modifiers were applied in.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable

from skilltree.models.skill import ModifierOperation
from skilltree.models.stats import EffectModifier, StatDefinition

logger = logging.getLogger(__name__)

StatChangedListener = Callable[[str, float], None]

# Tolerance used for "is this effectively zero"
ZERO_TOLERANCE = 1e-6


def is_approximately_zero(value: float) -> bool:
    return math.isclose(value, 0.0, abs_tol=ZERO_TOLERANCE)


def _normalize(identifier: str | None) -> str | None:
    """Trimmed, case-folded id; None for blank input."""
    if identifier is None:
        return None
    identifier = identifier.strip()
    if not identifier:
        return None
    return identifier.lower()


def evaluate(base_value: float, modifiers: Iterable[EffectModifier]) -> float:
    """
    Combine a base value with a list of modifiers.

    Args:
        base_value: The stat's base value
        modifiers: Modifiers targeting the stat

    Returns:
        (base + adds - subtracts) * multiplies / divides
    """
    add = 0.0
    subtract = 0.0
    multiply = 1.0
    divide = 1.0

    for modifier in modifiers:
        if modifier.operation == ModifierOperation.ADD:
            add += modifier.value
        elif modifier.operation == ModifierOperation.SUBTRACT:
            subtract += modifier.value
        elif modifier.operation == ModifierOperation.MULTIPLY:
            multiply *= modifier.value
        elif modifier.operation == ModifierOperation.DIVIDE:
            if not is_approximately_zero(modifier.value):
                divide *= modifier.value
        else:
            raise ValueError(f"Unknown modifier operation: {modifier.operation}")

    return (base_value + add - subtract) * multiply / divide


class StatAggregator:
    """
    Base values and modifiers per stat.

    Stat and source ids are trimmed and case-insensitive. Stats spring into
    existence on first use with a base value of 0.
    """

    def __init__(self, base_stats: Iterable[StatDefinition] | None = None) -> None:
        self._base_values: dict[str, float] = {}
        self._modifiers_by_stat: dict[str, list[EffectModifier]] = {}
        self._listeners: list[StatChangedListener] = []
        if base_stats is not None:
            self.rebuild_base_stats(base_stats)

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def on_stat_changed(self, listener: StatChangedListener) -> Callable[[], None]:
        """
        Register a listener called with (stat_id, final_value).

        Returns:
            Callable that unregisters the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _raise_changed(self, stat_id: str) -> None:
        value = self.get_final_value(stat_id)
        for listener in list(self._listeners):
            listener(stat_id, value)

    # -------------------------------------------------------------------------
    # Base values
    # -------------------------------------------------------------------------

    def rebuild_base_stats(self, base_stats: Iterable[StatDefinition]) -> None:
        """Replace every base value. Blank stat ids are skipped."""
        self._base_values.clear()
        for stat in base_stats:
            stat_id = _normalize(stat.stat_id)
            if stat_id is None:
                continue
            self._base_values[stat_id] = stat.base_value

    def set_base_value(self, stat_id: str, base_value: float) -> None:
        normalized = _normalize(stat_id)
        if normalized is None:
            return
        self._base_values[normalized] = base_value
        self._raise_changed(normalized)

    def get_base_value(self, stat_id: str) -> float:
        normalized = _normalize(stat_id)
        if normalized is None or normalized not in self._base_values:
            return 0.0
        return self._base_values[normalized]

    # -------------------------------------------------------------------------
    # Modifiers
    # -------------------------------------------------------------------------

    def get_final_value(self, stat_id: str) -> float:
        """
        Final value of a stat.

        Blank ids read as 0. A stat with no modifiers returns its base value.
        """
        normalized = _normalize(stat_id)
        if normalized is None:
            return 0.0

        base_value = self.get_base_value(normalized)
        modifiers = self._modifiers_by_stat.get(normalized)
        if not modifiers:
            return base_value
        return evaluate(base_value, modifiers)

    def get_modifiers(self, stat_id: str) -> list[EffectModifier]:
        """Copy of the modifiers on a stat, in application order."""
        normalized = _normalize(stat_id)
        if normalized is None or normalized not in self._modifiers_by_stat:
            return []
        return list(self._modifiers_by_stat[normalized])

    def stat_ids(self) -> list[str]:
        """Every stat with a base value or a modifier."""
        known = dict.fromkeys(self._base_values)
        known.update(dict.fromkeys(self._modifiers_by_stat))
        return list(known)

    def apply_modifier(
        self,
        source_id: str,
        stat_id: str,
        operation: ModifierOperation,
        value: float,
    ) -> bool:
        """
        Append one modifier to a stat.

        Modifiers with a blank source or stat id, and divide modifiers with a
        zero value, are dropped silently.

        Returns:
            True if the modifier was recorded
        """
        source = _normalize(source_id)
        stat = _normalize(stat_id)
        if source is None or stat is None:
            return False

        if operation == ModifierOperation.DIVIDE and is_approximately_zero(value):
            logger.debug("Dropped zero divide modifier from %s on %s", source, stat)
            return False

        modifier = EffectModifier(source_id=source, stat_id=stat, operation=operation, value=value)
        self._modifiers_by_stat.setdefault(stat, []).append(modifier)
        self._raise_changed(stat)
        return True

    def remove_modifiers_by_source(self, source_id: str) -> list[str]:
        """
        Remove every modifier a source contributed, across all stats.

        One change notification fires per stat that actually lost a modifier.

        Returns:
            Ids of the stats that changed
        """
        source = _normalize(source_id)
        if source is None:
            return []

        changed: list[str] = []
        for stat_id, modifiers in self._modifiers_by_stat.items():
            kept = [m for m in modifiers if m.source_id != source]
            if len(kept) != len(modifiers):
                self._modifiers_by_stat[stat_id] = kept
                changed.append(stat_id)

        for stat_id in changed:
            self._raise_changed(stat_id)
        return changed
