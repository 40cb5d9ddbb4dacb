"""
Skill Tree Session for skilltree.

Composition root wiring catalog, progression store, graph service, wallet
and (optionally) the stat system into one object.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from pydantic import BaseModel, Field

from skilltree.db.interfaces import ProgressionStore
from skilltree.db.memory import InMemoryProgressStore
from skilltree.models.catalog import ResourceCatalog, ResourceEntry
from skilltree.models.skill import SkillDefinition, SkillUpgradeResult
from skilltree.models.stats import StatDefinition
from skilltree.services.effects import SkillEffectBridge
from skilltree.services.skill_graph import SkillGraphService
from skilltree.services.stats import StatAggregator
from skilltree.services.wallet import WalletContext


class SessionConfig(BaseModel):
    """Declarative description of a session."""

    skills: list[SkillDefinition] = Field(default_factory=list)
    resources: list[ResourceEntry] = Field(default_factory=list)
    initial_balances: dict[str, int] = Field(default_factory=dict)
    base_stats: list[StatDefinition] = Field(default_factory=list)
    validate_costs: bool = Field(
        default=True, description="Reject skills whose costs are not in the catalog"
    )


class SkillTreeSession:
    """
    A ready-to-use skill tree.

    Exposes the service, wallet, catalog and store, plus a stat aggregator
    already bound to the service through a SkillEffectBridge.
    """

    def __init__(
        self,
        skill_data: Sequence[SkillDefinition],
        catalog: ResourceCatalog,
        initial_balances: Mapping[str, int] | None = None,
        store: ProgressionStore | None = None,
        base_stats: Sequence[StatDefinition] | None = None,
        validate_costs: bool = True,
    ) -> None:
        if catalog is None:
            raise ValueError("A resource catalog is required.")

        self.store: ProgressionStore = store if store is not None else InMemoryProgressStore()
        self.catalog = catalog
        self.service = SkillGraphService(
            skill_data,
            self.store,
            catalog if validate_costs else None,
        )
        self.wallet = WalletContext(catalog, initial_balances)
        self.stats = StatAggregator(base_stats)
        self.effects = SkillEffectBridge(self.service, self.stats)
        self.effects.bind()

    @classmethod
    def from_config(
        cls,
        config: SessionConfig,
        store: ProgressionStore | None = None,
    ) -> SkillTreeSession:
        return cls(
            config.skills,
            ResourceCatalog(config.resources),
            initial_balances=config.initial_balances,
            store=store,
            base_stats=config.base_stats,
            validate_costs=config.validate_costs,
        )

    def upgrade(self, skill_id: str) -> SkillUpgradeResult:
        """Upgrade a skill paying from this session's wallet."""
        return self.service.try_upgrade(skill_id, self.wallet)

    def reset(self) -> None:
        self.service.reset_progression()

    def close(self) -> None:
        """Detach the stat bridge from the service."""
        self.effects.unbind()
