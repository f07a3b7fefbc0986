"""Outcome values returned for every processed issue-created event."""

from dataclasses import dataclass

STATUS_PROCESSED = "processed"
STATUS_IGNORED = "ignored"
STATUS_FAILED = "failed"

REASON_UNSUPPORTED_EVENT = "unsupported_event"
REASON_NO_RULE = "no_rule"
REASON_MISSING_INSTALLATION = "missing_installation"
REASON_MISSING_TEAM = "missing_team"
REASON_MISSING_ISSUE = "missing_issue"
REASON_MISSING_PROJECT = "missing_project"
REASON_LOOKUP_FAILED = "lookup_failed"
REASON_PROJECT_MISMATCH = "project_mismatch"
REASON_EMPTY_WATCHERS = "empty_watchers"
REASON_OPENAPI_ERROR = "openapi_error"
REASON_UNKNOWN_ERROR = "unknown_error"


@dataclass(frozen=True)
class Outcome:
    """Status tag plus reason code (reason is None only when processed)."""

    status: str
    reason: str | None = None

    @classmethod
    def processed(cls) -> "Outcome":
        return cls(STATUS_PROCESSED)

    @classmethod
    def ignored(cls, reason: str) -> "Outcome":
        return cls(STATUS_IGNORED, reason)

    @classmethod
    def failed(cls, reason: str) -> "Outcome":
        return cls(STATUS_FAILED, reason)

    def to_dict(self) -> dict[str, str]:
        if self.reason is None:
            return {"status": self.status}
        return {"status": self.status, "reason": self.reason}
