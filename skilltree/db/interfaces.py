"""
Interface definitions for skilltree.

Uses Protocol classes to define the contracts the engine consumes.
Implementations can use real storage or in-memory versions for testing.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from skilltree.models.skill import CostDefinition, CostType


class ProgressionStore(Protocol):
    """
    Interface for skill level persistence.

    The graph service calls load_all once at construction and save_all after
    every successful upgrade or reset. It never calls clear.
    """

    def get_level(self, skill_id: str) -> int:
        """Get the stored level of one skill (0 if never saved)."""
        ...

    def load_all(self, skill_ids: Iterable[str]) -> dict[str, int]:
        """Get stored levels for the given ids; missing ids map to 0."""
        ...

    def save_all(self, levels: Mapping[str, int]) -> None:
        """Persist a full skill_id -> level map."""
        ...

    def clear(self, skill_ids: Iterable[str]) -> None:
        """Forget stored levels for the given ids."""
        ...


class CostCatalog(Protocol):
    """
    Interface for the registry of legal resource keys.

    Pure lookup, no mutation.
    """

    def is_defined(self, cost: CostDefinition) -> bool:
        """Check whether a cost's (type, key) pair is declared."""
        ...

    def get_keys(self, cost_type: CostType) -> set[str]:
        """All declared keys of a resource type."""
        ...


class SkillContext(Protocol):
    """
    Interface for the payment side of an upgrade.

    try_pay must be safe to call without a preceding can_pay and must debit
    all costs or none.
    """

    def can_pay(self, costs: Iterable[CostDefinition]) -> bool:
        """Check whether the whole cost list is affordable."""
        ...

    def try_pay(self, costs: Iterable[CostDefinition]) -> bool:
        """Pay the whole cost list atomically; False means nothing was charged."""
        ...
