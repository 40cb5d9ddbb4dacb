"""
Dolt-backed progression store for skilltree.

Uses mysql-connector-python to connect to a Dolt SQL server. Each save is
committed so a player's progression history can be branched and diffed
like any other Dolt data.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from typing import Any

import mysql.connector
from mysql.connector.cursor import MySQLCursor


class DoltConnection:
    """
    Connection manager for Dolt database.

    Unset arguments fall back to DOLT_HOST, DOLT_PORT, DOLT_USER,
    DOLT_PASSWORD and DOLT_DATABASE.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        user: str | None = None,
        password: str | None = None,
        database: str | None = None,
    ) -> None:
        self.config = {
            "host": host or os.getenv("DOLT_HOST", "localhost"),
            "port": port or int(os.getenv("DOLT_PORT", "3306")),
            "user": user or os.getenv("DOLT_USER", "root"),
            "password": password if password is not None else os.getenv("DOLT_PASSWORD", ""),
            "database": database or os.getenv("DOLT_DATABASE", "skilltree"),
            "autocommit": True,
        }
        self._connection: Any = None

    def get_connection(self) -> Any:
        """Get or create a database connection."""
        if self._connection is None or not self._connection.is_connected():
            self._connection = mysql.connector.connect(**self.config)
        return self._connection

    def close(self) -> None:
        """Close the database connection."""
        if self._connection and self._connection.is_connected():
            self._connection.close()
            self._connection = None


class DoltProgressStore:
    """
    Dolt implementation of the ProgressionStore interface.

    Levels are stored one row per (profile, skill). The profile id lets
    several save slots share one database.
    """

    def __init__(
        self,
        connection: DoltConnection,
        profile_id: str = "default",
        commit_on_save: bool = True,
    ) -> None:
        self._conn = connection
        self.profile_id = profile_id
        self.commit_on_save = commit_on_save

    def _execute(
        self,
        query: str,
        params: tuple[Any, ...] | None = None,
        fetch: bool = True,
    ) -> list[dict[str, Any]]:
        """Execute a query and return results as list of dicts."""
        conn = self._conn.get_connection()
        cursor: MySQLCursor = conn.cursor(dictionary=True)
        try:
            cursor.execute(query, params or ())
            if fetch:
                results = cursor.fetchall()
                return [dict(row) for row in results]  # type: ignore[arg-type]
            return []
        finally:
            cursor.close()

    def _execute_proc(self, proc_name: str, args: tuple[Any, ...] = ()) -> None:
        """Execute a Dolt stored procedure."""
        conn = self._conn.get_connection()
        cursor: MySQLCursor = conn.cursor(dictionary=True)
        try:
            cursor.callproc(proc_name, args)
            for result in cursor.stored_results():
                result.fetchall()
        finally:
            cursor.close()

    def get_level(self, skill_id: str) -> int:
        """Get the stored level of one skill (0 if never saved)."""
        result = self._execute(
            "SELECT level FROM skill_levels WHERE profile_id = %s AND skill_id = %s",
            (self.profile_id, skill_id),
        )
        if not result:
            return 0
        return int(result[0]["level"])

    def load_all(self, skill_ids: Iterable[str]) -> dict[str, int]:
        """Get stored levels for the given ids; missing ids map to 0."""
        ids = list(skill_ids)
        levels = {skill_id: 0 for skill_id in ids}
        if not ids:
            return levels

        placeholders = ", ".join(["%s"] * len(ids))
        rows = self._execute(
            f"SELECT skill_id, level FROM skill_levels "
            f"WHERE profile_id = %s AND skill_id IN ({placeholders})",
            (self.profile_id, *ids),
        )
        for row in rows:
            levels[row["skill_id"]] = int(row["level"])
        return levels

    def save_all(self, levels: Mapping[str, int]) -> None:
        """Persist a full skill_id -> level map."""
        if not levels:
            return

        query = """
            INSERT INTO skill_levels (profile_id, skill_id, level)
            VALUES (%s, %s, %s)
            ON DUPLICATE KEY UPDATE level = VALUES(level)
        """
        conn = self._conn.get_connection()
        cursor: MySQLCursor = conn.cursor()
        try:
            cursor.executemany(
                query,
                [(self.profile_id, skill_id, level) for skill_id, level in levels.items()],
            )
        finally:
            cursor.close()

        if self.commit_on_save:
            self._execute_proc(
                "dolt_commit",
                ("-Am", f"Save skill levels for {self.profile_id}", "--allow-empty"),
            )

    def clear(self, skill_ids: Iterable[str]) -> None:
        """Forget stored levels for the given ids."""
        ids = list(skill_ids)
        if not ids:
            return

        placeholders = ", ".join(["%s"] * len(ids))
        self._execute(
            f"DELETE FROM skill_levels WHERE profile_id = %s AND skill_id IN ({placeholders})",
            (self.profile_id, *ids),
            fetch=False,
        )


# =============================================================================
# Schema Initialization
# =============================================================================

DOLT_SCHEMA = """
-- Skill levels per profile
CREATE TABLE IF NOT EXISTS skill_levels (
    profile_id VARCHAR(64) NOT NULL,
    skill_id VARCHAR(128) NOT NULL,
    level INT NOT NULL DEFAULT 0,
    updated_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP,
    PRIMARY KEY (profile_id, skill_id)
);
"""


def init_dolt_schema(connection: DoltConnection) -> None:
    """Initialize the Dolt database schema."""
    conn = connection.get_connection()
    cursor = conn.cursor()
    try:
        for statement in DOLT_SCHEMA.split(";"):
            statement = statement.strip()
            if statement:
                cursor.execute(statement)
        conn.commit()
    finally:
        cursor.close()
