"""Shared pytest fixtures for the auto-watcher test suite."""

import pytest


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch, tmp_path):
    """Point storage at a temp SQLite file and clear optional settings auth."""
    monkeypatch.setenv("AUTOWATCHER_DB_PATH", str(tmp_path / "autowatcher.db"))
    monkeypatch.delenv("AUTOWATCHER_SETTINGS_TOKEN", raising=False)
    monkeypatch.delenv("AUTOWATCHER_OPENAPI_TIMEOUT", raising=False)
