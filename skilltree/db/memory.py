"""
In-memory implementation of the progression store.

Stores everything in a dictionary, making tests fast and isolated from
actual database infrastructure.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping


class InMemoryProgressStore:
    """
    In-memory implementation of ProgressionStore.

    Counts save_all calls and keeps the last saved map so tests can assert
    on persistence behaviour.
    """

    def __init__(self, levels: Mapping[str, int] | None = None) -> None:
        self._levels: dict[str, int] = dict(levels or {})
        self.save_all_calls = 0
        self.last_saved: dict[str, int] = {}

    def get_level(self, skill_id: str) -> int:
        """Get the stored level of one skill (0 if never saved)."""
        if skill_id in self._levels:
            return self._levels[skill_id]
        return 0

    def load_all(self, skill_ids: Iterable[str]) -> dict[str, int]:
        """Get stored levels for the given ids; missing ids map to 0."""
        return {skill_id: self.get_level(skill_id) for skill_id in skill_ids}

    def save_all(self, levels: Mapping[str, int]) -> None:
        """Persist a full skill_id -> level map."""
        self.save_all_calls += 1
        self.last_saved = dict(levels)
        self._levels.update(levels)

    def clear(self, skill_ids: Iterable[str]) -> None:
        """Forget stored levels for the given ids."""
        for skill_id in skill_ids:
            self._levels.pop(skill_id, None)

    def snapshot(self) -> dict[str, int]:
        """Copy of everything currently stored."""
        return dict(self._levels)
