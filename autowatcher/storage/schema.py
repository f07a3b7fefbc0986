"""SQLite schema initialization for auto-watcher storage."""

import sqlite3
from pathlib import Path


def prepare_db_path(db_path: str) -> Path:
    """Create parent directories for file-backed SQLite paths."""
    path = Path(db_path)
    if str(path) != ":memory:":
        path.parent.mkdir(parents=True, exist_ok=True)
    return path


def init_db(db_path: str) -> None:
    """
    Create rule and installation tables when absent.

    Args:
        db_path: SQLite file path.
    Side effects:
        Creates SQLite file, schema, and indexes.
    """
    path = prepare_db_path(db_path)
    with sqlite3.connect(path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS watcher_rules (
                id TEXT PRIMARY KEY,
                project_id TEXT NOT NULL,
                team_id TEXT NOT NULL,
                watcher_user_ids_json TEXT NOT NULL,
                active INTEGER NOT NULL DEFAULT 1,
                created_by TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS installations (
                installation_id TEXT PRIMARY KEY,
                ones_base_url TEXT NOT NULL,
                access_token TEXT NOT NULL,
                payload_json TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_watcher_rules_active ON watcher_rules(active, updated_at DESC)"
        )
