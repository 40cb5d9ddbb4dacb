"""
Arcane Tree for skilltree.

A small pre-built skill tree with two currencies and six stats, used by the
REPL and as a realistic fixture in tests.

    core_attunement
    ├── ember_bolt ──────────┐
    │   └── flame_wave       ├── phoenix_core
    └── arcane_efficiency    │
        └── mana_barrier ────┘
"""

from __future__ import annotations

from skilltree.models import (
    CostDefinition,
    CostType,
    ModifierOperation,
    ResourceEntry,
    SkillDefinition,
    StatDefinition,
    create_skill,
    stat_effect,
)
from skilltree.services.session import SessionConfig

GOLD = "gold"
ESSENCE = "essence"

STAT_IDS = (
    "mana_regen",
    "spell_power",
    "mana_cost_ratio",
    "aoe_damage",
    "shield_value",
    "spell_crit",
)


def _gold(amount: int) -> CostDefinition:
    return CostDefinition(key=GOLD, cost_type=CostType.CURRENCY, amount=amount)


def _essence(amount: int) -> CostDefinition:
    return CostDefinition(key=ESSENCE, cost_type=CostType.CURRENCY, amount=amount)


def create_arcane_skills() -> list[SkillDefinition]:
    """The six skills of the arcane tree, roots first."""
    return [
        create_skill(
            "core_attunement",
            max_level=3,
            costs=[_gold(50)],
            effects=[stat_effect("mana_regen", ModifierOperation.ADD, 1.5)],
            display_name="Core Attunement",
            description="Tune your core to ambient mana.",
        ),
        create_skill(
            "ember_bolt",
            max_level=5,
            prerequisites=["core_attunement"],
            costs=[_gold(40)],
            effects=[stat_effect("spell_power", ModifierOperation.ADD, 4.0)],
            display_name="Ember Bolt",
            description="A searing bolt that grows hotter with practice.",
        ),
        create_skill(
            "arcane_efficiency",
            max_level=3,
            prerequisites=["core_attunement"],
            costs=[_gold(60)],
            effects=[stat_effect("mana_cost_ratio", ModifierOperation.MULTIPLY, 0.9)],
            display_name="Arcane Efficiency",
            description="Each rank trims ten percent off mana costs.",
        ),
        create_skill(
            "flame_wave",
            max_level=3,
            prerequisites=["ember_bolt"],
            costs=[_gold(80), _essence(1)],
            effects=[
                stat_effect("aoe_damage", ModifierOperation.ADD, 12.0),
                stat_effect("spell_power", ModifierOperation.MULTIPLY, 1.05),
            ],
            display_name="Flame Wave",
            description="Release a ring of fire around you.",
        ),
        create_skill(
            "mana_barrier",
            max_level=2,
            prerequisites=["arcane_efficiency"],
            costs=[_gold(70), _essence(1)],
            effects=[
                stat_effect("shield_value", ModifierOperation.ADD, 25.0),
                stat_effect("mana_regen", ModifierOperation.SUBTRACT, 0.5),
            ],
            display_name="Mana Barrier",
            description="Convert part of your regeneration into a shield.",
        ),
        create_skill(
            "phoenix_core",
            max_level=1,
            prerequisites=["flame_wave", "mana_barrier"],
            costs=[_gold(200), _essence(5)],
            effects=[
                stat_effect("spell_crit", ModifierOperation.ADD, 0.15),
                stat_effect("spell_power", ModifierOperation.MULTIPLY, 1.25),
            ],
            display_name="Phoenix Core",
            description="Rise from every spell stronger than before.",
        ),
    ]


def create_arcane_resources() -> list[ResourceEntry]:
    return [
        ResourceEntry(key=GOLD, cost_type=CostType.CURRENCY, display_name="Gold"),
        ResourceEntry(key=ESSENCE, cost_type=CostType.CURRENCY, display_name="Essence"),
    ]


def create_arcane_stats() -> list[StatDefinition]:
    return [
        StatDefinition(stat_id="mana_regen", base_value=5.0),
        StatDefinition(stat_id="spell_power", base_value=100.0),
        StatDefinition(stat_id="mana_cost_ratio", base_value=1.0),
        StatDefinition(stat_id="aoe_damage", base_value=0.0),
        StatDefinition(stat_id="shield_value", base_value=0.0),
        StatDefinition(stat_id="spell_crit", base_value=0.05),
    ]


def create_arcane_config(gold: int = 300, essence: int = 2) -> SessionConfig:
    """
    Session config for the arcane tree.

    Args:
        gold: Starting gold
        essence: Starting essence

    Returns:
        SessionConfig ready for SkillTreeSession.from_config
    """
    return SessionConfig(
        skills=create_arcane_skills(),
        resources=create_arcane_resources(),
        initial_balances={GOLD: gold, ESSENCE: essence},
        base_stats=create_arcane_stats(),
    )
