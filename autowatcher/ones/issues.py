"""
autowatcher/ones/issues.py
ONES issue operations used by the watcher engine and lifecycle callbacks.
Exports: extract_project, get_issue_details, add_issue_watchers, list_teams
"""

import logging
from typing import Any
from urllib.parse import quote, urlencode

from autowatcher.ones.client import OpenApiError, call_openapi
from autowatcher.shared import openapi_timeout_seconds
from autowatcher.storage.types import InstallationContext

logger = logging.getLogger(__name__)

HTTP_CONFLICT = 409


def safe_dict(value: Any) -> dict[str, Any]:
    """Return dict value or empty dict."""
    return value if isinstance(value, dict) else {}


def extract_project(details: Any) -> tuple[str, str]:
    """
    Pull (project_id, project_name) out of an issue details response.

    Accepts the project at the top level (`{"project": {...}}`) or nested
    under `data` (`{"data": {"project": {...}}}`). Any non-null top-level
    project wins, even an empty or malformed one; `data.project` is read
    only when the top-level field is missing or null.

    Returns:
        Tuple of id and name as strings; empty strings when absent.
    """
    response = safe_dict(details)
    top_level = response.get("project")
    if top_level is None:
        project = safe_dict(safe_dict(response.get("data")).get("project"))
    else:
        project = safe_dict(top_level)
    project_id = project.get("id")
    project_name = project.get("name")
    return (
        str(project_id).strip() if project_id is not None else "",
        str(project_name).strip() if project_name is not None else "",
    )


def _issue_path(issue_id: str, team_id: str, suffix: str = "") -> str:
    query = urlencode({"teamID": team_id})
    return f"/openapi/v2/project/issues/{quote(issue_id, safe='')}{suffix}?{query}"


def get_issue_details(
    installation: InstallationContext,
    acting_user_id: str,
    issue_id: str,
    team_id: str,
) -> Any:
    """Fetch issue details scoped to a team, acting as the triggering user."""
    return call_openapi(
        installation,
        acting_user_id,
        _issue_path(issue_id, team_id),
        "GET",
        timeout=openapi_timeout_seconds(),
    )


def add_issue_watchers(
    installation: InstallationContext,
    issue_id: str,
    team_id: str,
    watcher_ids: list[str],
) -> Any:
    """
    Add watchers to an issue.

    A 409 Conflict means the users already watch the issue; it is absorbed
    so repeated deliveries of the same event stay successful.

    Raises:
        OpenApiError: Any other upstream failure.
    """
    try:
        return call_openapi(
            installation,
            "",
            _issue_path(issue_id, team_id, "/watchers"),
            "POST",
            {"watchers": list(watcher_ids)},
            timeout=openapi_timeout_seconds(),
        )
    except OpenApiError as exc:
        if exc.status != HTTP_CONFLICT:
            raise
        logger.info("Watchers already present on issue %s; treating conflict as success.", issue_id)
        return {}


def list_teams(installation: InstallationContext) -> Any:
    """Return teams visible to the installation."""
    return call_openapi(
        installation,
        "",
        "/openapi/v2/account/teams",
        "GET",
        timeout=openapi_timeout_seconds(),
    )
