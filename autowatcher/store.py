"""
autowatcher/store.py
Facade for auto-watcher SQLite storage helpers.
Exports: init_db, get_active_rule, save_rule, save_installation, get_installation
"""

from autowatcher.storage.installations import get_installation, save_installation
from autowatcher.storage.rules import get_active_rule, save_rule
from autowatcher.storage.schema import init_db
from autowatcher.storage.types import InstallationContext, WatcherRule, WatcherRuleInput

__all__ = [
    "InstallationContext",
    "WatcherRule",
    "WatcherRuleInput",
    "init_db",
    "get_active_rule",
    "save_rule",
    "save_installation",
    "get_installation",
]
