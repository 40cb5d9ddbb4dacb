"""
Wallet Context for skilltree.

A multi-currency balance ledger implementing the SkillContext payment
protocol. Payment is all-or-nothing across the whole cost list.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from skilltree.db.interfaces import CostCatalog
from skilltree.models.skill import CostDefinition, CostType

logger = logging.getLogger(__name__)


class WalletContext:
    """
    Currency ledger seeded from a cost catalog.

    Only Currency keys declared in the catalog are tracked. Keys are trimmed
    and case-insensitive. Balances never go negative.
    """

    def __init__(
        self,
        catalog: CostCatalog,
        initial_balances: Mapping[str, int] | None = None,
    ) -> None:
        """
        Create a wallet.

        Args:
            catalog: Catalog declaring the legal currency keys
            initial_balances: Starting amounts; negative amounts floor at 0

        Raises:
            ValueError: An initial balance names an unknown currency
        """
        if catalog is None:
            raise ValueError("A cost catalog is required.")

        # Lowercased key -> balance, and lowercased key -> display casing
        self._balances: dict[str, int] = {}
        self._names: dict[str, str] = {}

        for key in sorted(catalog.get_keys(CostType.CURRENCY)):
            normalized = key.strip().lower()
            self._balances[normalized] = 0
            self._names[normalized] = key.strip()

        for key, amount in (initial_balances or {}).items():
            normalized = key.strip().lower()
            if normalized not in self._balances:
                raise ValueError(f"Unknown currency key: '{key}'")
            self._balances[normalized] = max(0, amount)

    # -------------------------------------------------------------------------
    # Balances
    # -------------------------------------------------------------------------

    def get_balance(self, key: str) -> int:
        """Balance of a currency; blank or unknown keys read as 0."""
        if not key or not key.strip():
            return 0
        normalized = key.strip().lower()
        if normalized not in self._balances:
            return 0
        return self._balances[normalized]

    def balances(self) -> dict[str, int]:
        """Copy of every balance keyed by the catalog's spelling."""
        return {self._names[k]: v for k, v in self._balances.items()}

    def add(self, key: str, amount: int) -> None:
        """
        Credit a currency.

        Non-positive amounts and blank keys are ignored.

        Raises:
            ValueError: The currency is not in the catalog
        """
        if amount <= 0 or not key or not key.strip():
            return

        normalized = key.strip().lower()
        if normalized not in self._balances:
            raise ValueError(f"Currency '{key.strip()}' is not defined in catalog.")

        self._balances[normalized] += amount
        logger.debug("Credited %d %s", amount, self._names[normalized])

    # -------------------------------------------------------------------------
    # Payment protocol
    # -------------------------------------------------------------------------

    def can_pay(self, costs: Iterable[CostDefinition] | None) -> bool:
        """Check whether the whole cost list is affordable."""
        required = self._build_requirements(costs)
        return required is not None and self._has_enough(required)

    def try_pay(self, costs: Iterable[CostDefinition] | None) -> bool:
        """
        Pay the whole cost list.

        Re-checks affordability itself, so it is safe without a preceding
        can_pay. Either every key is debited or none is.

        Returns:
            True if paid, False if nothing was charged
        """
        required = self._build_requirements(costs)
        if required is None or not self._has_enough(required):
            return False

        for key, amount in required.items():
            self._balances[key] -= amount
        return True

    def _build_requirements(
        self,
        costs: Iterable[CostDefinition] | None,
    ) -> dict[str, int] | None:
        """
        Sum the cost list per currency key.

        Returns:
            Required amount per key, or None if any line is not chargeable
            (non-currency, blank key, non-positive amount, unknown key)
        """
        required: dict[str, int] = {}
        if costs is None:
            return required

        for cost in costs:
            if cost.cost_type != CostType.CURRENCY:
                return None
            if not cost.key or not cost.key.strip() or cost.amount <= 0:
                return None

            key = cost.key.strip().lower()
            if key not in self._balances:
                return None

            already = required[key] if key in required else 0
            required[key] = already + cost.amount

        return required

    def _has_enough(self, required: Mapping[str, int]) -> bool:
        for key, amount in required.items():
            if self._balances[key] < amount:
                return False
        return True
