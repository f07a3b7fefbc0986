"""
autowatcher/shared.py
Shared environment helpers for the auto-watcher service.
Exports: build_db_path, build_manifest_path, public_base_url, settings_token, openapi_timeout_seconds
"""

import os

DEFAULT_DB_PATH = "data/autowatcher.db"
DEFAULT_MANIFEST_PATH = "manifest.json"
DEFAULT_OPENAPI_TIMEOUT_SECONDS = 20


def build_db_path() -> str:
    """Return configured SQLite path for rules and installations."""
    return os.getenv("AUTOWATCHER_DB_PATH", DEFAULT_DB_PATH)


def build_manifest_path() -> str:
    """Return configured path of the app manifest file."""
    return os.getenv("AUTOWATCHER_MANIFEST_PATH", DEFAULT_MANIFEST_PATH)


def public_base_url() -> str:
    """Return the public base URL advertised in the manifest."""
    return os.getenv("BASE_URL", "").strip()


def settings_token() -> str:
    """Return the optional shared token guarding settings endpoints."""
    return os.getenv("AUTOWATCHER_SETTINGS_TOKEN", "").strip()


def openapi_timeout_seconds() -> int:
    """Return configured upstream call timeout (positive integer seconds)."""
    raw_value = os.getenv(
        "AUTOWATCHER_OPENAPI_TIMEOUT", str(DEFAULT_OPENAPI_TIMEOUT_SECONDS)
    ).strip()
    try:
        seconds = int(raw_value)
    except ValueError as exc:
        raise RuntimeError(
            "Invalid AUTOWATCHER_OPENAPI_TIMEOUT: expected a positive integer."
        ) from exc
    if seconds <= 0:
        raise RuntimeError(
            "Invalid AUTOWATCHER_OPENAPI_TIMEOUT: expected a positive integer."
        )
    return seconds
