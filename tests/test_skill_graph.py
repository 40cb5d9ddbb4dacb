"""
Tests for the Skill Graph Service.

Tests for construction-time validation, prerequisite gating, the upgrade
transaction and change notifications.
"""

from __future__ import annotations

from collections.abc import Iterable

import pytest

from skilltree.db.memory import InMemoryProgressStore
from skilltree.models import (
    CostDefinition,
    CostType,
    Skill,
    SkillUpgradeResult,
    create_catalog,
    create_skill,
    gold_cost,
)
from skilltree.services.skill_graph import (
    PrerequisiteCycleError,
    SkillConfigurationError,
    SkillGraphService,
    SkillNode,
    SkillNotFoundError,
    find_prerequisite_cycle,
)
from skilltree.services.wallet import WalletContext


class FakeContext:
    """Payment context with scripted answers that records its calls."""

    def __init__(self, can_pay: bool = True, try_pay: bool = True) -> None:
        self._can_pay = can_pay
        self._try_pay = try_pay
        self.calls: list[str] = []

    def can_pay(self, costs: Iterable[CostDefinition]) -> bool:
        self.calls.append("can_pay")
        return self._can_pay

    def try_pay(self, costs: Iterable[CostDefinition]) -> bool:
        self.calls.append("try_pay")
        return self._try_pay


def make_skill(skill_id: str, max_level: int = 1, prerequisites: list[str] | None = None):
    return create_skill(skill_id, max_level=max_level, prerequisites=prerequisites, costs=[gold_cost(10)])


@pytest.fixture
def store() -> InMemoryProgressStore:
    return InMemoryProgressStore()


# =============================================================================
# SkillNode
# =============================================================================


class TestSkillNode:
    """Tests for the SkillNode entity."""

    def test_level_clamped_on_creation(self):
        """Test that out-of-range levels are clamped into [0, max_level]."""
        definition = make_skill("a", max_level=3)
        assert SkillNode(definition, 7).level == 3
        assert SkillNode(definition, -2).level == 0

    def test_increase_level_stops_at_max(self):
        """Test that increase_level is a no-op at max level."""
        node = SkillNode(make_skill("a", max_level=2), 1)
        node.increase_level()
        assert node.level == 2
        assert node.is_maxed is True
        node.increase_level()
        assert node.level == 2

    def test_set_level_clamps(self):
        """Test that set_level clamps like construction."""
        node = SkillNode(make_skill("a", max_level=2))
        node.set_level(5)
        assert node.level == 2
        node.set_level(-1)
        assert node.level == 0

    def test_snapshot_is_detached(self):
        """Test that a snapshot does not follow later level changes."""
        node = SkillNode(make_skill("a", max_level=3))
        snapshot = node.snapshot()
        node.increase_level()
        assert snapshot.level == 0
        assert node.snapshot().level == 1


# =============================================================================
# Construction
# =============================================================================


class TestConstruction:
    """Tests for configuration validation at construction."""

    def test_rejects_null_entry(self, store):
        """Test that a None entry aborts construction."""
        with pytest.raises(SkillConfigurationError, match="null entry"):
            SkillGraphService([make_skill("a"), None], store)

    def test_rejects_blank_id(self, store):
        """Test that a whitespace-only id aborts construction."""
        with pytest.raises(SkillConfigurationError, match="empty skill_id"):
            SkillGraphService([make_skill("   ")], store)

    def test_rejects_duplicate_id(self, store):
        """Test that duplicate ids abort construction."""
        with pytest.raises(SkillConfigurationError, match="Duplicated skill id: a"):
            SkillGraphService([make_skill("a"), make_skill("a")], store)

    def test_rejects_invalid_max_level(self, store):
        """Test that max_level below 1 aborts construction."""
        with pytest.raises(SkillConfigurationError, match="invalid max_level"):
            SkillGraphService([make_skill("a", max_level=0)], store)

    def test_rejects_unknown_prerequisite(self, store):
        """Test that a dangling prerequisite id aborts construction."""
        with pytest.raises(SkillConfigurationError, match="unknown prerequisite id 'ghost'"):
            SkillGraphService([make_skill("a", prerequisites=["ghost"])], store)

    def test_rejects_two_node_cycle(self, store):
        """Test that A <-> B is reported with both nodes."""
        skills = [make_skill("A", prerequisites=["B"]), make_skill("B", prerequisites=["A"])]
        with pytest.raises(PrerequisiteCycleError) as exc_info:
            SkillGraphService(skills, store)

        assert exc_info.value.cycle == ["A", "B", "A"]
        assert "A -> B -> A" in str(exc_info.value)

    def test_rejects_long_cycle_naming_every_node(self, store):
        """Test that a cycle reached through a tail reports only the cycle."""
        skills = [
            make_skill("entry", prerequisites=["c1"]),
            make_skill("c1", prerequisites=["c2"]),
            make_skill("c2", prerequisites=["c3"]),
            make_skill("c3", prerequisites=["c1"]),
        ]
        with pytest.raises(PrerequisiteCycleError) as exc_info:
            SkillGraphService(skills, store)

        assert exc_info.value.cycle == ["c1", "c2", "c3", "c1"]

    def test_rejects_self_prerequisite(self, store):
        """Test that a skill requiring itself is a cycle."""
        with pytest.raises(PrerequisiteCycleError, match="a -> a"):
            SkillGraphService([make_skill("a", prerequisites=["a"])], store)

    def test_cycle_is_a_configuration_error(self):
        """Test that cycle errors can be caught as configuration errors."""
        assert issubclass(PrerequisiteCycleError, SkillConfigurationError)
        assert issubclass(SkillConfigurationError, ValueError)

    def test_diamond_is_not_a_cycle(self, store):
        """Test that shared prerequisites are accepted."""
        skills = [
            make_skill("root"),
            make_skill("left", prerequisites=["root"]),
            make_skill("right", prerequisites=["root"]),
            make_skill("top", prerequisites=["left", "right"]),
        ]
        service = SkillGraphService(skills, store)
        assert len(service.get_all_skills()) == 4

    def test_deep_chain_does_not_recurse(self, store):
        """Test that a chain deeper than the recursion limit validates."""
        skills = [make_skill("s0")]
        for i in range(1, 3000):
            skills.append(make_skill(f"s{i}", prerequisites=[f"s{i - 1}"]))

        service = SkillGraphService(skills, store)
        assert service.has_skill("s2999")

    def test_levels_loaded_and_clamped(self):
        """Test that stored levels are hydrated and clamped."""
        store = InMemoryProgressStore({"a": 9, "b": -3})
        service = SkillGraphService(
            [make_skill("a", max_level=2), make_skill("b", max_level=2), make_skill("c")],
            store,
        )

        assert service.get_levels() == {"a": 2, "b": 0, "c": 0}

    def test_construction_is_deterministic(self):
        """Test that two services from the same inputs agree."""
        skills = [make_skill("a", max_level=3), make_skill("b", prerequisites=["a"])]
        store = InMemoryProgressStore({"a": 2})

        first = SkillGraphService(skills, store)
        second = SkillGraphService(skills, store)

        assert first.get_levels() == second.get_levels()
        assert first.get_all_skills() == second.get_all_skills()

    def test_invalid_config_never_touches_store(self):
        """Test that validation happens before levels are loaded."""

        class ExplodingStore(InMemoryProgressStore):
            def load_all(self, skill_ids):
                raise AssertionError("store should not be read")

        with pytest.raises(SkillConfigurationError):
            SkillGraphService([make_skill("a", prerequisites=["missing"])], ExplodingStore())

    def test_catalog_rejects_undefined_cost(self, store):
        """Test that costs outside the catalog abort construction."""
        catalog = create_catalog(currencies=["gold"])
        skill = create_skill(
            "a", costs=[CostDefinition(key="gems", cost_type=CostType.CURRENCY, amount=1)]
        )
        with pytest.raises(SkillConfigurationError, match="undefined cost currency/'gems'"):
            SkillGraphService([skill], store, catalog)

    def test_catalog_accepts_defined_costs(self, store):
        """Test that a catalog covering every cost is accepted."""
        catalog = create_catalog(currencies=["Gold"])
        service = SkillGraphService([make_skill("a")], store, catalog)
        assert service.has_skill("a")


# =============================================================================
# Queries
# =============================================================================


class TestQueries:
    """Tests for lookups and prerequisite checks."""

    def test_get_skill_by_id(self, store):
        """Test fetching a snapshot by id."""
        service = SkillGraphService([make_skill("a", max_level=4)], store)
        skill = service.get_skill_by_id("a")
        assert isinstance(skill, Skill)
        assert skill.skill_id == "a"
        assert skill.max_level == 4
        assert skill.level == 0

    def test_get_skill_by_unknown_id(self, store):
        """Test that unknown ids raise SkillNotFoundError."""
        service = SkillGraphService([make_skill("a")], store)
        with pytest.raises(SkillNotFoundError, match="Skill not found: zzz"):
            service.get_skill_by_id("zzz")

    def test_not_found_is_key_error(self, store):
        """Test that lookups fail with a KeyError subclass."""
        service = SkillGraphService([make_skill("a")], store)
        with pytest.raises(KeyError):
            service.are_prerequisites_met("zzz")

    def test_get_all_skills_keeps_definition_order(self, store):
        """Test that skills come back in the order they were defined."""
        service = SkillGraphService([make_skill("z"), make_skill("a"), make_skill("m")], store)
        assert [s.skill_id for s in service.get_all_skills()] == ["z", "a", "m"]

    def test_prerequisites_met_without_prerequisites(self, store):
        """Test that a root skill is always unlocked."""
        service = SkillGraphService([make_skill("a")], store)
        assert service.are_prerequisites_met("a") is True

    def test_prerequisites_need_level_one_only(self):
        """Test that level 1 of a multi-level prerequisite unlocks dependents."""
        store = InMemoryProgressStore({"root": 1})
        service = SkillGraphService(
            [make_skill("root", max_level=5), make_skill("child", prerequisites=["root"])],
            store,
        )
        assert service.are_prerequisites_met("child") is True

    def test_all_prerequisites_required(self):
        """Test that one missing prerequisite keeps a skill locked."""
        store = InMemoryProgressStore({"left": 1})
        service = SkillGraphService(
            [
                make_skill("left"),
                make_skill("right"),
                make_skill("top", prerequisites=["left", "right"]),
            ],
            store,
        )
        assert service.are_prerequisites_met("top") is False

    def test_blank_id_rejected(self, store):
        """Test that blank ids are argument errors."""
        service = SkillGraphService([make_skill("a")], store)
        with pytest.raises(ValueError, match="cannot be empty"):
            service.are_prerequisites_met("  ")

    def test_get_state_flags(self):
        """Test locked/affordable/upgradeable flags."""
        store = InMemoryProgressStore({"maxed": 1})
        service = SkillGraphService(
            [
                make_skill("root"),
                make_skill("child", prerequisites=["root"]),
                make_skill("maxed"),
            ],
            store,
        )
        context = FakeContext(can_pay=True)

        root = service.get_state("root", context)
        assert root.is_unlocked and root.can_afford and root.can_upgrade

        child = service.get_state("child", context)
        assert child.is_locked
        assert child.can_afford is False
        assert child.can_upgrade is False

        maxed = service.get_state("maxed", context)
        assert maxed.is_maxed
        assert maxed.can_upgrade is False

    def test_get_state_skips_affordability_when_locked(self, store):
        """Test that locked skills never consult the context."""
        service = SkillGraphService(
            [make_skill("root"), make_skill("child", prerequisites=["root"])], store
        )
        context = FakeContext()
        service.get_state("child", context)
        assert context.calls == []


# =============================================================================
# Upgrades
# =============================================================================


class TestTryUpgrade:
    """Tests for the upgrade transaction."""

    def test_success_increases_level_and_saves(self, store):
        """Test a successful upgrade."""
        service = SkillGraphService([make_skill("fireball")], store)

        result = service.try_upgrade("fireball", FakeContext())

        assert result == SkillUpgradeResult.SUCCESS
        assert service.get_skill_by_id("fireball").level == 1
        assert store.save_all_calls == 1
        assert store.last_saved == {"fireball": 1}

    def test_success_saves_full_level_map(self):
        """Test that save_all receives every skill, not just the upgraded one."""
        store = InMemoryProgressStore({"b": 2})
        service = SkillGraphService(
            [make_skill("a"), make_skill("b", max_level=3), make_skill("c")], store
        )

        service.try_upgrade("a", FakeContext())

        assert store.last_saved == {"a": 1, "b": 2, "c": 0}

    def test_prerequisite_not_met(self, store):
        """Test that a locked skill is refused before anything else."""
        service = SkillGraphService(
            [make_skill("root"), make_skill("child", prerequisites=["root"])], store
        )
        context = FakeContext()

        result = service.try_upgrade("child", context)

        assert result == SkillUpgradeResult.PREREQUISITE_NOT_MET
        assert service.get_skill_by_id("child").level == 0
        assert store.save_all_calls == 0
        assert context.calls == []

    def test_maxed(self):
        """Test that a maxed skill is refused without consulting the context."""
        store = InMemoryProgressStore({"fireball": 5})
        service = SkillGraphService([make_skill("fireball", max_level=5)], store)
        context = FakeContext(can_pay=False, try_pay=False)

        result = service.try_upgrade("fireball", context)

        assert result == SkillUpgradeResult.MAXED
        assert service.get_skill_by_id("fireball").level == 5
        assert store.save_all_calls == 0
        assert context.calls == []

    def test_cannot_afford(self, store):
        """Test that an unaffordable upgrade never attempts payment."""
        service = SkillGraphService([make_skill("fireball")], store)
        context = FakeContext(can_pay=False, try_pay=True)

        result = service.try_upgrade("fireball", context)

        assert result == SkillUpgradeResult.CANNOT_AFFORD
        assert service.get_skill_by_id("fireball").level == 0
        assert store.save_all_calls == 0
        assert context.calls == ["can_pay"]

    def test_transaction_failed(self, store):
        """Test that a rejected payment leaves the level unchanged."""
        service = SkillGraphService([make_skill("fireball")], store)
        context = FakeContext(can_pay=True, try_pay=False)

        result = service.try_upgrade("fireball", context)

        assert result == SkillUpgradeResult.TRANSACTION_FAILED
        assert service.get_skill_by_id("fireball").level == 0
        assert store.save_all_calls == 0
        assert context.calls == ["can_pay", "try_pay"]

    def test_unknown_skill(self, store):
        """Test that upgrading an unknown id raises."""
        service = SkillGraphService([make_skill("a")], store)
        with pytest.raises(SkillNotFoundError):
            service.try_upgrade("nope", FakeContext())

    def test_multi_level_upgrade_until_maxed(self, store):
        """Test repeated upgrades stop at max level."""
        service = SkillGraphService([make_skill("a", max_level=3)], store)
        context = FakeContext()

        results = [service.try_upgrade("a", context) for _ in range(4)]

        assert results == [
            SkillUpgradeResult.SUCCESS,
            SkillUpgradeResult.SUCCESS,
            SkillUpgradeResult.SUCCESS,
            SkillUpgradeResult.MAXED,
        ]
        assert service.get_skill_by_id("a").level == 3
        assert store.save_all_calls == 3


class TestNotifications:
    """Tests for level-changed and levels-reset notifications."""

    def test_success_notifies_once_with_updated_skill(self, store):
        """Test one level-changed event carrying the new level."""
        service = SkillGraphService([make_skill("fireball")], store)
        received: list[Skill] = []
        service.on_level_changed(received.append)

        service.try_upgrade("fireball", FakeContext())

        assert len(received) == 1
        assert received[0].skill_id == "fireball"
        assert received[0].level == 1

    @pytest.mark.parametrize(
        ("can_pay", "try_pay"),
        [(False, True), (True, False)],
    )
    def test_failures_do_not_notify(self, store, can_pay, try_pay):
        """Test that refused upgrades raise no events."""
        service = SkillGraphService([make_skill("fireball")], store)
        received: list[Skill] = []
        service.on_level_changed(received.append)

        service.try_upgrade("fireball", FakeContext(can_pay=can_pay, try_pay=try_pay))

        assert received == []

    def test_unsubscribe(self, store):
        """Test that the returned callable removes the listener."""
        service = SkillGraphService([make_skill("a", max_level=2)], store)
        received: list[Skill] = []
        unsubscribe = service.on_level_changed(received.append)

        service.try_upgrade("a", FakeContext())
        unsubscribe()
        service.try_upgrade("a", FakeContext())

        assert len(received) == 1

    def test_listener_sees_persisted_state(self, store):
        """Test that listeners run after the levels were saved."""
        service = SkillGraphService([make_skill("a")], store)
        saved_at_notify: list[int] = []
        service.on_level_changed(lambda _: saved_at_notify.append(store.save_all_calls))

        service.try_upgrade("a", FakeContext())

        assert saved_at_notify == [1]


class TestResetProgression:
    """Tests for bulk reset."""

    def test_reset_zeroes_levels_and_saves_once(self):
        """Test that reset clears every level with one save."""
        store = InMemoryProgressStore({"a": 1, "b": 2})
        service = SkillGraphService([make_skill("a"), make_skill("b", max_level=2)], store)

        service.reset_progression()

        assert service.get_levels() == {"a": 0, "b": 0}
        assert store.save_all_calls == 1
        assert store.last_saved == {"a": 0, "b": 0}

    def test_reset_notifies_once(self):
        """Test one reset event and no per-skill events."""
        store = InMemoryProgressStore({"a": 1, "b": 1})
        service = SkillGraphService([make_skill("a"), make_skill("b")], store)
        resets: list[None] = []
        changes: list[Skill] = []
        service.on_levels_reset(lambda: resets.append(None))
        service.on_level_changed(changes.append)

        service.reset_progression()

        assert len(resets) == 1
        assert changes == []


class TestFindPrerequisiteCycle:
    """Tests for the standalone cycle finder."""

    def test_acyclic_returns_none(self):
        definitions = {
            "a": make_skill("a"),
            "b": make_skill("b", prerequisites=["a"]),
        }
        assert find_prerequisite_cycle(definitions) is None

    def test_reports_first_cycle_in_definition_order(self):
        definitions = {
            "x": make_skill("x", prerequisites=["y"]),
            "y": make_skill("y", prerequisites=["x"]),
            "p": make_skill("p", prerequisites=["q"]),
            "q": make_skill("q", prerequisites=["p"]),
        }
        assert find_prerequisite_cycle(definitions) == ["x", "y", "x"]


class TestWalletScenario:
    """Tests driving the service with a real wallet."""

    def test_root_then_child(self, store):
        """Test gating and payment across a two-skill chain."""
        service = SkillGraphService(
            [make_skill("root"), make_skill("child", prerequisites=["root"])],
            store,
        )
        wallet = WalletContext(create_catalog(currencies=["gold"]), {"gold": 20})

        assert service.try_upgrade("child", wallet) == SkillUpgradeResult.PREREQUISITE_NOT_MET
        assert service.try_upgrade("root", wallet) == SkillUpgradeResult.SUCCESS
        assert wallet.get_balance("gold") == 10
        assert service.try_upgrade("child", wallet) == SkillUpgradeResult.SUCCESS
        assert wallet.get_balance("gold") == 0
        assert service.try_upgrade("child", wallet) == SkillUpgradeResult.MAXED
