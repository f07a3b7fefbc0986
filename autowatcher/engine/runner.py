"""Issue watcher engine: match one issue-created event against the active rule."""

from dataclasses import dataclass
import logging
from typing import Any, Callable

from autowatcher.engine import outcome as oc
from autowatcher.engine.context import ISSUE_CREATED_EVENT_TYPE, IssueCreatedEvent
from autowatcher.ones.client import OpenApiError
from autowatcher.ones.issues import extract_project
from autowatcher.storage.types import InstallationContext, WatcherRule


@dataclass
class WatcherEngineRuntime:
    """Collaborators the engine reads from and acts through."""

    get_active_rule: Callable[[], WatcherRule | None]
    get_installation: Callable[[str], InstallationContext | None]
    get_issue_details: Callable[[InstallationContext, str, str, str], Any]
    add_issue_watchers: Callable[[InstallationContext, str, str, list[str]], Any]


def _resolve_project(
    *,
    event: IssueCreatedEvent,
    installation: InstallationContext,
    team_id: str,
    runtime: WatcherEngineRuntime,
    logger: logging.Logger,
) -> tuple[str, oc.Outcome | None]:
    """Return (project_id, None) or ("", early outcome) when it cannot be determined."""
    issue_id = event.event_data.issue_id
    try:
        details = runtime.get_issue_details(
            installation, event.event_data.trigger_user_id, issue_id, team_id
        )
    except OpenApiError as exc:
        logger.error("Failed to lookup project for issue %s: %s", issue_id, exc)
        return "", oc.Outcome.ignored(oc.REASON_LOOKUP_FAILED)
    project_id, project_name = extract_project(details)
    if not project_id:
        logger.info("Project lookup returned no project for issue %s.", issue_id)
        return "", oc.Outcome.ignored(oc.REASON_MISSING_PROJECT)
    suffix = f" ({project_name})" if project_name else ""
    logger.info("Resolved project for issue %s: %s%s", issue_id, project_id, suffix)
    return project_id, None


def run_issue_watcher(
    *,
    event: IssueCreatedEvent,
    runtime: WatcherEngineRuntime,
    logger: logging.Logger,
) -> oc.Outcome:
    """
    Decide whether the active rule applies to an event and add its watchers.

    Every early exit is returned as an Outcome. Only OpenApiError from the
    two upstream calls is converted here; any other exception propagates to
    the caller.

    Args:
        event: Parsed issue-created callback.
        runtime: Rule, installation and OpenAPI collaborators.
        logger: Logger for decision trail.
    Returns:
        processed, or ignored/failed with a reason code.
    """
    logger.info("Issue created event received: %s type=%s", event.event_id, event.event_type)
    if event.event_type != ISSUE_CREATED_EVENT_TYPE:
        logger.warning("Unsupported event type: %s", event.event_type)
        return oc.Outcome.ignored(oc.REASON_UNSUPPORTED_EVENT)

    rule = runtime.get_active_rule()
    if rule is None:
        logger.info("No active watcher rule found; skipping event.")
        return oc.Outcome.ignored(oc.REASON_NO_RULE)

    installation = runtime.get_installation(event.subscriber_id)
    if installation is None:
        logger.error("Installation not found for subscriber: %s", event.subscriber_id)
        return oc.Outcome.failed(oc.REASON_MISSING_INSTALLATION)

    team_id = event.event_data.team_id or rule.team_id
    if not team_id:
        logger.error("Missing team ID for event %s.", event.event_id)
        return oc.Outcome.failed(oc.REASON_MISSING_TEAM)

    issue_id = event.event_data.issue_id
    if not issue_id:
        logger.warning("Missing issue ID in event %s; skipping event.", event.event_id)
        return oc.Outcome.ignored(oc.REASON_MISSING_ISSUE)

    project_id, early = _resolve_project(
        event=event,
        installation=installation,
        team_id=team_id,
        runtime=runtime,
        logger=logger,
    )
    if early is not None:
        return early

    if rule.project_id != project_id:
        logger.info("Rule not applicable for project: %s", project_id)
        return oc.Outcome.ignored(oc.REASON_PROJECT_MISMATCH)

    if not rule.watcher_user_ids:
        logger.info("Watcher rule has no users; skipping event.")
        return oc.Outcome.ignored(oc.REASON_EMPTY_WATCHERS)

    watcher_ids = list(rule.watcher_user_ids)
    try:
        runtime.add_issue_watchers(installation, issue_id, team_id, watcher_ids)
    except OpenApiError as exc:
        logger.error("Failed to add watchers for issue %s: %s", issue_id, exc)
        return oc.Outcome.failed(oc.REASON_OPENAPI_ERROR)
    logger.info("Added watchers to issue %s: %s", issue_id, ", ".join(watcher_ids))
    return oc.Outcome.processed()
