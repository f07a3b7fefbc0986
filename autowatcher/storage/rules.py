"""Watcher rule persistence: a single active rule, upserted in place."""

import json
import sqlite3
import uuid
from contextlib import closing
from datetime import datetime, timezone

from autowatcher.storage.schema import init_db
from autowatcher.storage.types import WatcherRule, WatcherRuleInput

_RULE_COLUMNS = (
    "id, project_id, team_id, watcher_user_ids_json, active, created_by, created_at, updated_at"
)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_watcher_ids(values: list[str] | None) -> list[str]:
    """Strip, drop blanks and duplicates while keeping first-seen order."""
    cleaned = (str(value).strip() for value in values or [])
    return list(dict.fromkeys(value for value in cleaned if value))


def _row_to_rule(row: sqlite3.Row) -> WatcherRule:
    try:
        watcher_ids = json.loads(row["watcher_user_ids_json"] or "[]")
    except ValueError:
        watcher_ids = []
    return WatcherRule(
        id=row["id"],
        project_id=row["project_id"],
        team_id=row["team_id"],
        watcher_user_ids=[str(item) for item in watcher_ids] if isinstance(watcher_ids, list) else [],
        active=bool(row["active"]),
        created_by=row["created_by"] or "",
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _select_active(conn: sqlite3.Connection) -> sqlite3.Row | None:
    return conn.execute(
        f"SELECT {_RULE_COLUMNS} FROM watcher_rules WHERE active = 1 ORDER BY updated_at DESC LIMIT 1"
    ).fetchone()


def get_active_rule(db_path: str) -> WatcherRule | None:
    """Return the active watcher rule, or None when no rule was saved yet."""
    init_db(db_path)
    with closing(sqlite3.connect(db_path)) as conn:
        conn.row_factory = sqlite3.Row
        row = _select_active(conn)
    return _row_to_rule(row) if row else None


def save_rule(db_path: str, rule_input: WatcherRuleInput, created_by: str | None = None) -> WatcherRule:
    """
    Overwrite the active rule, or create it when none exists.

    The lookup and the write share one IMMEDIATE transaction, so concurrent
    saves serialize and never leave two active rows.

    Args:
        db_path: SQLite path.
        rule_input: New project, team and watcher list.
        created_by: User recorded only when the rule is first created.
    Returns:
        The saved rule as read back from the database.
    """
    init_db(db_path)
    now = _utc_now_iso()
    watcher_json = json.dumps(normalize_watcher_ids(rule_input.watcher_user_ids))
    with closing(sqlite3.connect(db_path, isolation_level=None)) as conn:
        conn.row_factory = sqlite3.Row
        conn.execute("BEGIN IMMEDIATE")
        try:
            existing = _select_active(conn)
            if existing is None:
                rule_id = str(uuid.uuid4())
                conn.execute(
                    f"""
                    INSERT INTO watcher_rules ({_RULE_COLUMNS})
                    VALUES (?, ?, ?, ?, 1, ?, ?, ?)
                    """,
                    (
                        rule_id,
                        rule_input.project_id,
                        rule_input.team_id,
                        watcher_json,
                        created_by or "",
                        now,
                        now,
                    ),
                )
            else:
                rule_id = existing["id"]
                conn.execute(
                    """
                    UPDATE watcher_rules
                    SET project_id = ?, team_id = ?, watcher_user_ids_json = ?, active = 1,
                        created_by = CASE WHEN created_by = '' THEN ? ELSE created_by END,
                        updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        rule_input.project_id,
                        rule_input.team_id,
                        watcher_json,
                        created_by or "",
                        now,
                        rule_id,
                    ),
                )
            row = conn.execute(
                f"SELECT {_RULE_COLUMNS} FROM watcher_rules WHERE id = ?", (rule_id,)
            ).fetchone()
            conn.execute("COMMIT")
        except Exception:
            conn.execute("ROLLBACK")
            raise
    return _row_to_rule(row)
