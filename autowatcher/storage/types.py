"""Dataclasses used by the SQLite storage layer."""

from dataclasses import dataclass, field


@dataclass
class WatcherRuleInput:
    """Editable fields of the watcher rule, as submitted from the settings page."""

    project_id: str
    team_id: str
    watcher_user_ids: list[str] = field(default_factory=list)


@dataclass
class WatcherRule:
    """The persisted watcher-assignment rule."""

    id: str
    project_id: str
    team_id: str
    watcher_user_ids: list[str]
    active: bool
    created_by: str
    created_at: str
    updated_at: str


@dataclass
class InstallationContext:
    """Per-tenant credentials needed to call the ONES OpenAPI."""

    installation_id: str
    ones_base_url: str
    access_token: str
