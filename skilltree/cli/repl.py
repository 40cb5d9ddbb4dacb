"""
Interactive REPL for skilltree.

A text console for poking at a skill tree: upgrade skills, top up the
wallet, reset progression and watch stats change.
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from skilltree.content import STAT_IDS, create_arcane_config
from skilltree.db.dolt import DoltConnection, DoltProgressStore, init_dolt_schema
from skilltree.db.interfaces import ProgressionStore
from skilltree.models.skill import SkillUpgradeResult
from skilltree.services.session import SessionConfig, SkillTreeSession
from skilltree.services.skill_graph import SkillNotFoundError


@dataclass
class ReplState:
    """Current state of the console session."""

    session: SkillTreeSession
    running: bool = True
    stat_log: list[str] = field(default_factory=list)
    """Stat change lines collected since the last command."""


@dataclass
class Command:
    """A REPL command."""

    name: str
    aliases: list[str]
    description: str
    handler: Callable[[ReplState, list[str]], str]


class SkillTreeREPL:
    """
    Interactive REPL over a SkillTreeSession.

    Commands may be typed with or without a leading slash.
    """

    def __init__(self, stat_ids: tuple[str, ...] = STAT_IDS) -> None:
        self.stat_ids = stat_ids
        self.commands: dict[str, Command] = {}
        self._register_commands()

    def _register_commands(self) -> None:
        """Register all commands."""
        commands = [
            Command(
                name="quit",
                aliases=["exit", "q"],
                description="Exit the console",
                handler=self._cmd_quit,
            ),
            Command(
                name="help",
                aliases=["?", "h"],
                description="Show available commands",
                handler=self._cmd_help,
            ),
            Command(
                name="skills",
                aliases=["tree", "ls"],
                description="List skills with level and gating state",
                handler=self._cmd_skills,
            ),
            Command(
                name="upgrade",
                aliases=["up", "u"],
                description="Upgrade a skill: upgrade <skill_id>",
                handler=self._cmd_upgrade,
            ),
            Command(
                name="reset",
                aliases=[],
                description="Reset every skill to level 0",
                handler=self._cmd_reset,
            ),
            Command(
                name="add",
                aliases=["give"],
                description="Add currency: add <key> <amount>",
                handler=self._cmd_add,
            ),
            Command(
                name="wallet",
                aliases=["w"],
                description="Show balances",
                handler=self._cmd_wallet,
            ),
            Command(
                name="stats",
                aliases=["s"],
                description="Show final stat values",
                handler=self._cmd_stats,
            ),
        ]

        for cmd in commands:
            self.commands[cmd.name] = cmd
            for alias in cmd.aliases:
                self.commands[alias] = cmd

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def _cmd_quit(self, state: ReplState, args: list[str]) -> str:
        state.running = False
        return "Goodbye!"

    def _cmd_help(self, state: ReplState, args: list[str]) -> str:
        lines = [
            "Available Commands:",
            "-" * 40,
        ]

        seen = set()
        for cmd in self.commands.values():
            if cmd.name not in seen:
                aliases = f" ({', '.join(cmd.aliases)})" if cmd.aliases else ""
                lines.append(f"  {cmd.name}{aliases} - {cmd.description}")
                seen.add(cmd.name)

        return "\n".join(lines)

    def _cmd_skills(self, state: ReplState, args: list[str]) -> str:
        session = state.session
        lines = []
        for skill_state in session.service.get_all_states(session.wallet):
            skill = skill_state.skill
            if skill_state.is_maxed:
                status = "MAXED"
            elif skill_state.is_locked:
                status = "locked"
            elif skill_state.can_upgrade:
                status = "ready"
            else:
                status = "cannot afford"

            costs = ", ".join(f"{c.amount} {c.key}" for c in skill.upgrade_costs) or "free"
            lines.append(
                f"  {skill.skill_id:<20} {skill.level}/{skill.max_level}  [{status}]  cost: {costs}"
            )
        return "\n".join(lines)

    def _cmd_upgrade(self, state: ReplState, args: list[str]) -> str:
        if not args:
            return "Usage: upgrade <skill_id>"

        skill_id = args[0]
        try:
            result = state.session.upgrade(skill_id)
        except SkillNotFoundError:
            return f"Unknown skill: {skill_id}"

        level = state.session.service.get_skill_by_id(skill_id).level
        messages = {
            SkillUpgradeResult.SUCCESS: f"Upgraded {skill_id} to level {level}.",
            SkillUpgradeResult.PREREQUISITE_NOT_MET: f"{skill_id} is locked: prerequisites not met.",
            SkillUpgradeResult.MAXED: f"{skill_id} is already at max level ({level}).",
            SkillUpgradeResult.CANNOT_AFFORD: f"Not enough resources to upgrade {skill_id}.",
            SkillUpgradeResult.TRANSACTION_FAILED: f"Payment for {skill_id} failed; nothing changed.",
        }
        return self._with_stat_log(state, messages[result])

    def _cmd_reset(self, state: ReplState, args: list[str]) -> str:
        state.session.reset()
        return self._with_stat_log(state, "Progression reset.")

    def _cmd_add(self, state: ReplState, args: list[str]) -> str:
        if len(args) != 2:
            return "Usage: add <key> <amount>"

        key, raw_amount = args
        try:
            amount = int(raw_amount)
        except ValueError:
            return f"Amount must be a whole number, got '{raw_amount}'."

        try:
            state.session.wallet.add(key, amount)
        except ValueError as e:
            return str(e)
        return self._cmd_wallet(state, [])

    def _cmd_wallet(self, state: ReplState, args: list[str]) -> str:
        balances = state.session.wallet.balances()
        parts = [f"{key}={amount}" for key, amount in balances.items()]
        return "Wallet: " + ", ".join(parts)

    def _cmd_stats(self, state: ReplState, args: list[str]) -> str:
        stats = state.session.stats
        return "\n".join(
            f"  {stat_id:<16} {stats.get_final_value(stat_id):.3f}" for stat_id in self.stat_ids
        )

    # -------------------------------------------------------------------------
    # Input handling
    # -------------------------------------------------------------------------

    def _with_stat_log(self, state: ReplState, message: str) -> str:
        if not state.stat_log:
            return message
        lines = [message, *state.stat_log]
        state.stat_log.clear()
        return "\n".join(lines)

    def _parse_command(self, text: str) -> tuple[str, list[str]]:
        """Parse a command into name and arguments."""
        parts = text.lstrip("/").split()
        if not parts:
            return "", []
        return parts[0].lower(), parts[1:]

    def process_input(self, text: str, state: ReplState) -> str:
        """Process one line of input and return the response."""
        text = text.strip()
        if not text:
            return ""

        cmd_name, args = self._parse_command(text)
        if cmd_name not in self.commands:
            return f"Unknown command '{cmd_name}'. Type help for commands."
        return self.commands[cmd_name].handler(state, args)

    def create_state(self, session: SkillTreeSession) -> ReplState:
        state = ReplState(session=session)
        session.stats.on_stat_changed(
            lambda stat_id, value: state.stat_log.append(f"  {stat_id} -> {value:.3f}")
        )
        return state

    def run(self, session: SkillTreeSession) -> None:
        """Run the main loop until quit or end of input."""
        state = self.create_state(session)

        print("skilltree console. Type help for commands.\n")
        print(self._cmd_wallet(state, []))
        print(self._cmd_skills(state, []))
        print()

        while state.running:
            try:
                user_input = input("> ").strip()
                if not user_input:
                    continue

                response = self.process_input(user_input, state)
                if response:
                    print(response)
                    print()

            except KeyboardInterrupt:
                print("\n")
                state.running = False
            except EOFError:
                print("\n")
                state.running = False

        session.close()


def run_console(
    config: SessionConfig | None = None,
    store: ProgressionStore | None = None,
) -> None:
    """
    Run the skilltree console.

    Args:
        config: Session configuration (defaults to the arcane tree)
        store: Progression store (defaults to in-memory)
    """
    session = SkillTreeSession.from_config(config or create_arcane_config(), store=store)
    SkillTreeREPL().run(session)


def main(argv: list[str] | None = None) -> None:
    """Command line entry point."""
    parser = argparse.ArgumentParser(description="skilltree console")
    parser.add_argument("--gold", type=int, default=300, help="Starting gold")
    parser.add_argument("--essence", type=int, default=2, help="Starting essence")
    parser.add_argument(
        "--dolt",
        action="store_true",
        help="Persist levels to Dolt (DOLT_HOST, DOLT_PORT, ... from environment)",
    )
    parser.add_argument("--profile", default="default", help="Save profile for --dolt")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    progress_store: ProgressionStore | None = None
    if args.dolt:
        connection = DoltConnection()
        init_dolt_schema(connection)
        progress_store = DoltProgressStore(connection, profile_id=args.profile)

    run_console(create_arcane_config(gold=args.gold, essence=args.essence), progress_store)


if __name__ == "__main__":
    main()
