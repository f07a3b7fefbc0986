"""Issue-created webhook payload parsing helpers."""

from dataclasses import dataclass, field
from typing import Any

ISSUE_CREATED_EVENT_TYPE = "ones:project:issue:created"


def safe_dict(value: Any) -> dict[str, Any]:
    """Return dict value or empty dict."""
    return value if isinstance(value, dict) else {}


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


@dataclass
class IssueEventData:
    """The `eventData` block of an issue-created callback."""

    issue_id: str = ""
    team_id: str = ""
    trigger_user_id: str = ""
    organization_id: str = ""
    scope_id: str = ""


@dataclass
class IssueCreatedEvent:
    """Normalized issue-created callback."""

    event_id: str
    event_type: str
    timestamp: int | None
    subscriber_id: str
    event_data: IssueEventData = field(default_factory=IssueEventData)


def _timestamp(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_issue_created_event(payload: dict[str, Any]) -> IssueCreatedEvent:
    """Normalize an event callback body; missing fields become empty strings."""
    payload = safe_dict(payload)
    data = safe_dict(payload.get("eventData"))
    return IssueCreatedEvent(
        event_id=_text(payload.get("eventID")),
        event_type=_text(payload.get("eventType")),
        timestamp=_timestamp(payload.get("timestamp")),
        subscriber_id=_text(payload.get("subscriberID")),
        event_data=IssueEventData(
            issue_id=_text(data.get("issueID")),
            team_id=_text(data.get("teamID")),
            trigger_user_id=_text(data.get("triggerUserID")),
            organization_id=_text(data.get("organizationID")),
            scope_id=_text(data.get("scopeID")),
        ),
    )
