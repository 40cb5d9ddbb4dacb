"""
Skill Graph Service for skilltree.

Owns every skill node, validates the prerequisite graph once at
construction and drives the level state machine:
- Prerequisite gating (a prerequisite counts once its level is >= 1)
- Upgrade transactions (check, pay, then mutate)
- Bulk reset
- Change notifications for listeners such as the stat bridge
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from enum import IntEnum

from skilltree.db.interfaces import CostCatalog, ProgressionStore, SkillContext
from skilltree.models.skill import (
    Skill,
    SkillDefinition,
    SkillState,
    SkillUpgradeResult,
)

logger = logging.getLogger(__name__)

LevelChangedListener = Callable[[Skill], None]
LevelsResetListener = Callable[[], None]


# =============================================================================
# Errors
# =============================================================================


class SkillConfigurationError(ValueError):
    """Skill data is inconsistent; the service refuses to start."""


class PrerequisiteCycleError(SkillConfigurationError):
    """The prerequisite relation contains a cycle."""

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        super().__init__(f"Skill prerequisite cycle detected: {' -> '.join(cycle)}")


class SkillNotFoundError(KeyError):
    """No skill with the requested id."""

    def __init__(self, skill_id: str) -> None:
        self.skill_id = skill_id
        super().__init__(f"Skill not found: {skill_id}")

    def __str__(self) -> str:
        return str(self.args[0])


# =============================================================================
# Skill Node
# =============================================================================


class SkillNode:
    """
    Runtime entity for one skill: its definition plus its current level.

    The node keeps its level inside [0, max_level]. Only the graph service
    holds nodes; everything else sees Skill snapshots.
    """

    __slots__ = ("definition", "_level")

    def __init__(self, definition: SkillDefinition, level: int = 0) -> None:
        self.definition = definition
        self._level = self._clamp(level)

    @property
    def skill_id(self) -> str:
        return self.definition.skill_id

    @property
    def level(self) -> int:
        return self._level

    @property
    def max_level(self) -> int:
        return self.definition.max_level

    @property
    def is_maxed(self) -> bool:
        return self._level >= self.definition.max_level

    def increase_level(self) -> None:
        """Raise the level by one; no-op when already maxed."""
        if self.is_maxed:
            return
        self._level += 1

    def set_level(self, level: int = 0) -> None:
        self._level = self._clamp(level)

    def _clamp(self, level: int) -> int:
        return max(0, min(level, self.definition.max_level))

    def snapshot(self) -> Skill:
        """Immutable copy of the node's current state."""
        definition = self.definition
        return Skill(
            skill_id=definition.skill_id,
            level=self._level,
            max_level=definition.max_level,
            prerequisite_ids=definition.prerequisite_ids,
            upgrade_costs=definition.upgrade_costs,
            effects=definition.effects,
            display_name=definition.display_name or definition.skill_id,
        )


# =============================================================================
# Graph validation
# =============================================================================


class _Visit(IntEnum):
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


def _validate_definitions(
    definitions: Iterable[SkillDefinition | None],
) -> list[SkillDefinition]:
    """Reject null entries, blank ids, duplicate ids and bad max levels."""
    validated: list[SkillDefinition] = []
    seen: set[str] = set()

    for index, definition in enumerate(definitions):
        if definition is None:
            raise SkillConfigurationError(f"Skill list contains a null entry at index {index}.")

        if not definition.skill_id or not definition.skill_id.strip():
            raise SkillConfigurationError(f"Skill at index {index} has an empty skill_id.")

        if definition.skill_id in seen:
            raise SkillConfigurationError(f"Duplicated skill id: {definition.skill_id}")

        if definition.max_level < 1:
            raise SkillConfigurationError(
                f"Skill '{definition.skill_id}' has invalid max_level {definition.max_level}."
            )

        seen.add(definition.skill_id)
        validated.append(definition)

    return validated


def _validate_prerequisite_ids(definitions: dict[str, SkillDefinition]) -> None:
    for definition in definitions.values():
        for prerequisite_id in definition.prerequisite_ids:
            if prerequisite_id not in definitions:
                raise SkillConfigurationError(
                    f"Skill '{definition.skill_id}' has unknown prerequisite id "
                    f"'{prerequisite_id}'."
                )


def find_prerequisite_cycle(definitions: dict[str, SkillDefinition]) -> list[str] | None:
    """
    Find a cycle in the prerequisite relation.

    Three-colour depth-first search driven by an explicit stack, so deep
    chains don't hit the recursion limit. Nodes are visited in definition
    order and prerequisites in declaration order, which keeps the reported
    cycle deterministic.

    Args:
        definitions: Skill definitions keyed by id; every prerequisite id must
            be a key

    Returns:
        The cycle as a path that starts and ends on the same id
        (e.g., ["A", "B", "A"]), or None if the graph is acyclic
    """
    state: dict[str, _Visit] = {skill_id: _Visit.UNVISITED for skill_id in definitions}

    for root_id in definitions:
        if state[root_id] != _Visit.UNVISITED:
            continue

        path: list[str] = [root_id]
        stack: list[Iterator[str]] = [iter(definitions[root_id].prerequisite_ids)]
        state[root_id] = _Visit.IN_PROGRESS

        while stack:
            prerequisite_id = next(stack[-1], None)

            if prerequisite_id is None:
                # All prerequisites of the top node explored
                stack.pop()
                state[path.pop()] = _Visit.DONE
                continue

            prerequisite_state = state[prerequisite_id]
            if prerequisite_state == _Visit.IN_PROGRESS:
                start = path.index(prerequisite_id)
                return path[start:] + [prerequisite_id]

            if prerequisite_state == _Visit.UNVISITED:
                state[prerequisite_id] = _Visit.IN_PROGRESS
                path.append(prerequisite_id)
                stack.append(iter(definitions[prerequisite_id].prerequisite_ids))

    return None


# =============================================================================
# Skill Graph Service
# =============================================================================


class SkillGraphService:
    """
    Service owning the skill graph and every skill's level.

    Construction validates the whole configuration; a service that exists is
    always consistent. Levels change only through try_upgrade and
    reset_progression.
    """

    def __init__(
        self,
        skill_data: Iterable[SkillDefinition],
        store: ProgressionStore,
        catalog: CostCatalog | None = None,
    ) -> None:
        """
        Build and validate the graph, then hydrate levels from the store.

        Args:
            skill_data: Skill definitions in display order
            store: Progression store for loading and saving levels
            catalog: If given, every upgrade cost must be defined in it

        Raises:
            SkillConfigurationError: Invalid, duplicate, dangling or cyclic data
        """
        if skill_data is None:
            raise SkillConfigurationError("Skill data is required.")
        if store is None:
            raise SkillConfigurationError("Progression store is required.")

        self._store = store
        self._level_changed_listeners: list[LevelChangedListener] = []
        self._levels_reset_listeners: list[LevelsResetListener] = []

        definitions = {d.skill_id: d for d in _validate_definitions(skill_data)}
        _validate_prerequisite_ids(definitions)

        cycle = find_prerequisite_cycle(definitions)
        if cycle is not None:
            raise PrerequisiteCycleError(cycle)

        if catalog is not None:
            self._validate_costs(definitions, catalog)

        saved_levels = store.load_all(list(definitions))
        self._nodes: dict[str, SkillNode] = {}
        for skill_id, definition in definitions.items():
            level = saved_levels[skill_id] if skill_id in saved_levels else 0
            self._nodes[skill_id] = SkillNode(definition, level)

        logger.debug("Skill graph ready with %d skills", len(self._nodes))

    @staticmethod
    def _validate_costs(definitions: dict[str, SkillDefinition], catalog: CostCatalog) -> None:
        for definition in definitions.values():
            for cost in definition.upgrade_costs:
                if not catalog.is_defined(cost):
                    raise SkillConfigurationError(
                        f"Skill '{definition.skill_id}' has undefined cost "
                        f"{cost.cost_type.value}/'{cost.key}'."
                    )

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def on_level_changed(self, listener: LevelChangedListener) -> Callable[[], None]:
        """
        Register a listener for successful upgrades.

        Returns:
            Callable that unregisters the listener
        """
        self._level_changed_listeners.append(listener)
        return lambda: self._remove_listener(self._level_changed_listeners, listener)

    def on_levels_reset(self, listener: LevelsResetListener) -> Callable[[], None]:
        """
        Register a listener for progression resets.

        Returns:
            Callable that unregisters the listener
        """
        self._levels_reset_listeners.append(listener)
        return lambda: self._remove_listener(self._levels_reset_listeners, listener)

    @staticmethod
    def _remove_listener(listeners: list, listener: Callable) -> None:
        if listener in listeners:
            listeners.remove(listener)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def _get_node(self, skill_id: str) -> SkillNode:
        if skill_id not in self._nodes:
            raise SkillNotFoundError(skill_id)
        return self._nodes[skill_id]

    def get_skill_by_id(self, skill_id: str) -> Skill:
        """Snapshot of one skill. Raises SkillNotFoundError for unknown ids."""
        return self._get_node(skill_id).snapshot()

    def get_all_skills(self) -> list[Skill]:
        """Snapshots of every skill in definition order."""
        return [node.snapshot() for node in self._nodes.values()]

    def get_levels(self) -> dict[str, int]:
        """Current skill_id -> level map."""
        return {skill_id: node.level for skill_id, node in self._nodes.items()}

    def has_skill(self, skill_id: str) -> bool:
        return skill_id in self._nodes

    def are_prerequisites_met(self, skill_id: str) -> bool:
        """
        Check whether every prerequisite of a skill has level >= 1.

        Raises:
            ValueError: Blank skill id
            SkillNotFoundError: Unknown skill id
        """
        if not skill_id or not skill_id.strip():
            raise ValueError("Skill id cannot be empty or whitespace.")
        return self._prerequisites_met(self._get_node(skill_id))

    def _prerequisites_met(self, node: SkillNode) -> bool:
        for prerequisite_id in node.definition.prerequisite_ids:
            prerequisite = self._nodes.get(prerequisite_id)
            if prerequisite is None:
                return False
            # TODO: tiered prerequisites (require prerequisite.is_maxed) once
            # definitions can declare a required level.
            if prerequisite.level < 1:
                return False
        return True

    def get_state(self, skill_id: str, context: SkillContext) -> SkillState:
        """
        Compute the gating flags of one skill.

        Affordability is only evaluated for unlocked, non-maxed skills.
        """
        node = self._get_node(skill_id)
        is_locked = not self._prerequisites_met(node)
        can_afford = (
            not is_locked
            and not node.is_maxed
            and context.can_pay(node.definition.upgrade_costs)
        )
        return SkillState(
            skill=node.snapshot(),
            is_locked=is_locked,
            can_afford=can_afford,
            can_upgrade=can_afford,
        )

    def get_all_states(self, context: SkillContext) -> list[SkillState]:
        """Gating flags for every skill in definition order."""
        return [self.get_state(skill_id, context) for skill_id in self._nodes]

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def try_upgrade(self, skill_id: str, context: SkillContext) -> SkillUpgradeResult:
        """
        Attempt to raise a skill by one level.

        Checks run in a fixed order: prerequisites, max level, affordability,
        then payment. The level changes only after payment succeeds, so a
        refused upgrade never leaves a partial charge or a changed level.

        Args:
            skill_id: Skill to upgrade
            context: Payment context charged for the upgrade

        Returns:
            SkillUpgradeResult describing the outcome

        Raises:
            SkillNotFoundError: Unknown skill id
        """
        if context is None:
            raise ValueError("A payment context is required.")

        node = self._get_node(skill_id)
        costs = node.definition.upgrade_costs

        if not self._prerequisites_met(node):
            logger.debug("Upgrade of %s refused: prerequisites not met", skill_id)
            return SkillUpgradeResult.PREREQUISITE_NOT_MET

        if node.is_maxed:
            logger.debug("Upgrade of %s refused: already at level %d", skill_id, node.level)
            return SkillUpgradeResult.MAXED

        if not context.can_pay(costs):
            logger.debug("Upgrade of %s refused: cannot afford", skill_id)
            return SkillUpgradeResult.CANNOT_AFFORD

        if not context.try_pay(costs):
            logger.warning("Upgrade of %s failed: payment rejected after affordability check", skill_id)
            return SkillUpgradeResult.TRANSACTION_FAILED

        node.increase_level()
        self.save_progression()
        logger.info("Upgraded %s to level %d/%d", skill_id, node.level, node.max_level)

        snapshot = node.snapshot()
        for listener in list(self._level_changed_listeners):
            listener(snapshot)

        return SkillUpgradeResult.SUCCESS

    def save_progression(self) -> None:
        """Persist the full level map with one store call."""
        self._store.save_all(self.get_levels())

    def reset_progression(self) -> None:
        """Set every skill to level 0, persist once and notify once."""
        for node in self._nodes.values():
            node.set_level(0)

        self.save_progression()
        logger.info("Skill progression reset (%d skills)", len(self._nodes))

        for listener in list(self._levels_reset_listeners):
            listener()
