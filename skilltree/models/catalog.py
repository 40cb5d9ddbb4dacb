"""
Resource Catalog Models for skilltree.

The catalog is the registry of legal resource keys per cost type. Wallets
seed their ledgers from it and skill costs are checked against it.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from skilltree.models.skill import CostDefinition, CostType

logger = logging.getLogger(__name__)


class ResourceEntry(BaseModel):
    """One declared resource."""

    model_config = {"frozen": True}

    key: str = Field(description="Resource key, case-insensitive")
    cost_type: CostType = CostType.CURRENCY
    display_name: str = ""


class ResourceCatalog:
    """
    Lookup of defined (cost type, key) pairs.

    Keys are trimmed and compared case-insensitively. Blank keys are skipped;
    a repeated (type, key) pair keeps the first entry.
    """

    def __init__(self, entries: list[ResourceEntry] | None = None) -> None:
        self._defined: set[tuple[CostType, str]] = set()
        # Original casing of each key, per type, in declaration order
        self._keys_by_type: dict[CostType, dict[str, str]] = {t: {} for t in CostType}
        self._display_names: dict[tuple[CostType, str], str] = {}

        for entry in entries or []:
            key = entry.key.strip()
            if not key:
                continue

            ident = (entry.cost_type, key.lower())
            if ident in self._defined:
                logger.warning(
                    "Duplicate resource in catalog: %s/%s. First wins.",
                    entry.cost_type.value,
                    key,
                )
                continue

            self._defined.add(ident)
            self._keys_by_type[entry.cost_type][key.lower()] = key
            self._display_names[ident] = entry.display_name or key

    def is_defined(self, cost: CostDefinition) -> bool:
        """Check whether a cost references a declared resource."""
        key = cost.key.strip()
        if not key:
            return False
        return (cost.cost_type, key.lower()) in self._defined

    def get_keys(self, cost_type: CostType) -> set[str]:
        """All declared keys of a cost type."""
        return set(self._keys_by_type[cost_type].values())

    def display_name(self, cost_type: CostType, key: str) -> str:
        """Display name for a key, falling back to the key itself."""
        ident = (cost_type, key.strip().lower())
        if ident in self._display_names:
            return self._display_names[ident]
        return key

    def __len__(self) -> int:
        return len(self._defined)


def create_catalog(
    currencies: list[str] | None = None,
    items: list[str] | None = None,
    energies: list[str] | None = None,
) -> ResourceCatalog:
    """
    Build a catalog from plain key lists.

    Args:
        currencies: Currency keys
        items: Item keys
        energies: Energy keys

    Returns:
        ResourceCatalog with every key declared
    """
    entries: list[ResourceEntry] = []
    for cost_type, keys in (
        (CostType.CURRENCY, currencies),
        (CostType.ITEM, items),
        (CostType.ENERGY, energies),
    ):
        entries.extend(ResourceEntry(key=k, cost_type=cost_type) for k in keys or [])
    return ResourceCatalog(entries)
