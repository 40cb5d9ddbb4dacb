#!/usr/bin/env python3
"""
Database health check and initialization script.

Usage:
    python scripts/check_db.py          # Check connectivity
    python scripts/check_db.py --init   # Initialize the skill_levels table

Connection settings come from DOLT_HOST, DOLT_PORT, DOLT_USER,
DOLT_PASSWORD and DOLT_DATABASE.
"""

from __future__ import annotations

import argparse
import os
import sys

# Add the repository root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def check_dolt() -> bool:
    """Check Dolt database connectivity."""
    from skilltree.db import DoltConnection

    conn = DoltConnection()
    print(f"Checking Dolt at {conn.config['host']}:{conn.config['port']}...")

    try:
        db_conn = conn.get_connection()
        if db_conn.is_connected():
            print("  Dolt: Connected")
            conn.close()
            return True
        else:
            print("  Dolt: Connection failed")
            return False
    except Exception as e:
        print(f"  Dolt: Error - {e}")
        return False


def init_dolt() -> bool:
    """Initialize Dolt schema."""
    from skilltree.db import DoltConnection, init_dolt_schema

    print("Initializing Dolt schema...")

    try:
        conn = DoltConnection()
        init_dolt_schema(conn)
        conn.close()
        print("  Dolt schema initialized")
        return True
    except Exception as e:
        print(f"  Dolt init error: {e}")
        return False


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Check and initialize the skilltree database")
    parser.add_argument("--init", action="store_true", help="Initialize database schema")
    args = parser.parse_args()

    print("skilltree Database Check")
    print("=" * 40)

    dolt_ok = check_dolt()

    if args.init and dolt_ok:
        print()
        print("Schema Initialization")
        print("=" * 40)
        dolt_ok = init_dolt()

    print()
    print("Summary")
    print("=" * 40)
    print(f"  Dolt:  {'OK' if dolt_ok else 'FAILED'}")

    return 0 if dolt_ok else 1


if __name__ == "__main__":
    sys.exit(main())
