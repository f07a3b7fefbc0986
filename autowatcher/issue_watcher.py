"""
autowatcher/issue_watcher.py
Issue-created auto-watcher public wrapper.
Exports: handle_issue_created(payload) -> Outcome
"""

import logging
from typing import Any

from autowatcher.engine.context import parse_issue_created_event
from autowatcher.engine.outcome import REASON_UNKNOWN_ERROR, Outcome
from autowatcher.engine.runner import WatcherEngineRuntime, run_issue_watcher
from autowatcher.ones.issues import add_issue_watchers, get_issue_details
from autowatcher.shared import build_db_path
from autowatcher.store import get_active_rule, get_installation

logger = logging.getLogger(__name__)


def build_runtime() -> WatcherEngineRuntime:
    """Wire the SQLite stores and ONES OpenAPI calls for one invocation."""
    db_path = build_db_path()
    return WatcherEngineRuntime(
        get_active_rule=lambda: get_active_rule(db_path),
        get_installation=lambda subscriber_id: get_installation(db_path, subscriber_id),
        get_issue_details=get_issue_details,
        add_issue_watchers=add_issue_watchers,
    )


def handle_issue_created(payload: dict[str, Any]) -> Outcome:
    """Process one event callback body; never raises.

    Args:
        payload: Event callback JSON body.
    Returns:
        Outcome describing what happened; unexpected faults become failed/unknown_error.
    """
    try:
        event = parse_issue_created_event(payload)
        return run_issue_watcher(event=event, runtime=build_runtime(), logger=logger)
    except Exception:
        logger.exception("Unexpected failure while handling issue created event.")
        return Outcome.failed(REASON_UNKNOWN_ERROR)
