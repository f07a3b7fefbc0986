"""Installation persistence for lifecycle callbacks and event lookups."""

import json
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from typing import Any

from autowatcher.storage.schema import init_db
from autowatcher.storage.types import InstallationContext


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _text(payload: dict[str, Any], *keys: str) -> str:
    """Return the first non-empty string value among candidate keys."""
    for key in keys:
        value = payload.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def parse_installation(payload: dict[str, Any]) -> InstallationContext:
    """Normalize an install callback body into an InstallationContext."""
    installation_id = _text(payload, "installation_id", "installationID")
    if not installation_id:
        raise ValueError("installation_id is required.")
    return InstallationContext(
        installation_id=installation_id,
        ones_base_url=_text(payload, "ones_base_url", "base_url").rstrip("/"),
        access_token=_text(payload, "access_token", "token"),
    )


def save_installation(db_path: str, payload: dict[str, Any]) -> InstallationContext:
    """
    Insert or refresh one installation keyed by installation_id.

    The raw callback body is kept in payload_json as a record of what the
    platform sent; lookups only read the credential columns.

    Raises:
        ValueError: When installation_id is missing from payload.
    """
    installation = parse_installation(payload)
    init_db(db_path)
    now = _utc_now_iso()
    with closing(sqlite3.connect(db_path)) as conn, conn:
        conn.execute(
            """
            INSERT INTO installations (
                installation_id, ones_base_url, access_token, payload_json, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(installation_id) DO UPDATE SET
                ones_base_url = excluded.ones_base_url,
                access_token = excluded.access_token,
                payload_json = excluded.payload_json,
                updated_at = excluded.updated_at
            """,
            (
                installation.installation_id,
                installation.ones_base_url,
                installation.access_token,
                json.dumps(payload, ensure_ascii=True, default=str),
                now,
                now,
            ),
        )
    return installation


def get_installation(db_path: str, installation_id: str) -> InstallationContext | None:
    """Return stored installation for a subscriber id, or None when unknown."""
    if not installation_id:
        return None
    init_db(db_path)
    with closing(sqlite3.connect(db_path)) as conn:
        conn.row_factory = sqlite3.Row
        row = conn.execute(
            """
            SELECT installation_id, ones_base_url, access_token
            FROM installations
            WHERE installation_id = ?
            """,
            (installation_id,),
        ).fetchone()
    if row is None:
        return None
    return InstallationContext(
        installation_id=row["installation_id"],
        ones_base_url=row["ones_base_url"],
        access_token=row["access_token"],
    )
