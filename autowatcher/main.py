"""
autowatcher/main.py
FastAPI application: all endpoints for the auto-watcher app.
Endpoints: GET /health, GET /, POST /install_cb, POST /enabled_cb, POST /settingPage/entries,
GET/PUT /settings/watcher-rule, POST /event_cb
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any
import hmac
import json
import logging
import time

from fastapi import FastAPI, HTTPException, Request
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from autowatcher.engine.outcome import STATUS_FAILED
from autowatcher.issue_watcher import handle_issue_created
from autowatcher.ones.client import OpenApiError
from autowatcher.ones.issues import list_teams
from autowatcher.shared import build_db_path, build_manifest_path, public_base_url, settings_token
from autowatcher.store import (
    WatcherRule,
    WatcherRuleInput,
    get_active_rule,
    get_installation,
    init_db,
    save_installation,
    save_rule,
)

logger = logging.getLogger(__name__)
load_dotenv()

SETTINGS_PAGE_URL = "/static/settings-page.html"


def initialize_storage() -> None:
    """Initialize SQLite schema at app startup (best-effort)."""
    try:
        init_db(build_db_path())
    except Exception:
        logger.exception("Failed to initialize auto-watcher storage.")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """FastAPI lifespan hook for startup/shutdown side effects."""
    initialize_storage()
    yield


app = FastAPI(title="Auto Watcher", lifespan=lifespan)


class WatcherRuleRequest(BaseModel):
    projectId: str = Field(min_length=1, pattern=r"\S")
    teamId: str = Field(min_length=1, pattern=r"\S")
    watcherUserIds: list[str] = Field(default_factory=list)


@app.get("/health")
def health_check() -> dict[str, str]:
    """Return service health status."""
    return {"status": "ok"}


@app.get("/")
def get_manifest() -> dict[str, Any]:
    """
    Serve the app manifest with the public base URL filled in.

    Raises:
        HTTPException 500: Manifest missing, unreadable, or without an id.
    """
    manifest_path = Path(build_manifest_path())
    try:
        manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
        if not isinstance(manifest, dict) or not manifest.get("id"):
            raise ValueError("Missing required field: id")
    except (OSError, ValueError) as exc:
        logger.error("Failed to read manifest file %s: %s", manifest_path, exc)
        raise HTTPException(status_code=500, detail="Failed to read manifest file") from exc
    manifest["base_url"] = public_base_url()
    return manifest


@app.post("/install_cb")
def install_callback(payload: dict[str, Any]) -> dict[str, Any]:
    """
    Persist installation credentials sent by the platform.

    Raises:
        HTTPException 400: installation_id missing.
        HTTPException 500: Persistence failure.
    """
    logger.info("Receive install callback installation id: %s", payload.get("installation_id"))
    try:
        installation = save_installation(build_db_path(), payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Install callback failed.")
        raise HTTPException(status_code=500, detail=f"Save install callback info failed: {exc}") from exc
    logger.info("Saved install callback info: %s", installation.installation_id)
    return {"installation_id": installation.installation_id, "time_stamp": int(time.time())}


@app.post("/enabled_cb")
def enabled_callback(payload: dict[str, Any]) -> dict[str, str]:
    """
    Confirm the installation can reach the OpenAPI once the app is enabled.

    Raises:
        HTTPException 404: Unknown installation.
        HTTPException 500: OpenAPI failure.
    """
    installation_id = str(payload.get("installation_id", "")).strip()
    logger.info("Receive enabled callback installation id: %s", installation_id)
    installation = get_installation(build_db_path(), installation_id)
    if installation is None:
        raise HTTPException(status_code=404, detail=f"Installation not found: {installation_id}")
    try:
        teams = list_teams(installation)
    except OpenApiError as exc:
        raise HTTPException(status_code=500, detail=f"Enabled callback failed: {exc}") from exc
    logger.info("Organization enabled, teams: %s", json.dumps(teams, default=str))
    return {"status": "success", "message": "ok"}


@app.post("/settingPage/entries")
def setting_page_entries(payload: dict[str, Any]) -> dict[str, list[dict[str, str]]]:
    """Return the settings page entries shown in the platform admin UI."""
    logger.info("Handle setting page entries, info: %s", json.dumps(payload, default=str))
    return {"entries": [{"title": "Rule settings", "page_url": SETTINGS_PAGE_URL}]}


@app.get("/settings/watcher-rule")
def get_watcher_rule(request: Request) -> dict[str, Any]:
    """Return the active rule, or an inactive empty rule when none is saved."""
    _verify_settings_token(request)
    rule = get_active_rule(build_db_path())
    if rule is None:
        return {
            "id": "",
            "projectId": "",
            "teamId": "",
            "watcherUserIds": [],
            "active": False,
            "createdBy": "",
            "createdAt": "",
            "updatedAt": "",
        }
    return _rule_to_dto(rule)


@app.put("/settings/watcher-rule")
def put_watcher_rule(payload: WatcherRuleRequest, request: Request) -> dict[str, Any]:
    """
    Save the watcher rule, overwriting the active one.

    Raises:
        HTTPException 401: Settings token configured and not matched.
        HTTPException 500: Persistence failure.
    """
    _verify_settings_token(request)
    created_by = request.headers.get("X-User-ID", "").strip() or None
    rule_input = WatcherRuleInput(
        project_id=payload.projectId.strip(),
        team_id=payload.teamId.strip(),
        watcher_user_ids=payload.watcherUserIds,
    )
    try:
        saved = save_rule(build_db_path(), rule_input, created_by=created_by)
    except Exception as exc:
        logger.exception("Failed to save watcher rule.")
        raise HTTPException(status_code=500, detail=f"Save watcher rule failed: {exc}") from exc
    logger.info(
        "Watcher rule saved: project=%s team=%s watchers=%d",
        saved.project_id,
        saved.team_id,
        len(saved.watcher_user_ids),
    )
    return _rule_to_dto(saved)


@app.post("/event_cb")
def event_callback(payload: dict[str, Any]) -> dict[str, str]:
    """
    Handle an issue-created event.

    Always answers 200 so the platform does not redeliver; failures are
    reported in the body and in logs.
    """
    outcome = handle_issue_created(payload)
    if outcome.status == STATUS_FAILED:
        logger.error("Event %s failed: %s", payload.get("eventID"), outcome.reason)
    return outcome.to_dict()


def _rule_to_dto(rule: WatcherRule) -> dict[str, Any]:
    return {
        "id": rule.id,
        "projectId": rule.project_id,
        "teamId": rule.team_id,
        "watcherUserIds": list(rule.watcher_user_ids),
        "active": rule.active,
        "createdBy": rule.created_by,
        "createdAt": rule.created_at,
        "updatedAt": rule.updated_at,
    }


def _verify_settings_token(request: Request) -> None:
    """
    Validate optional bearer token for settings endpoints.

    Raises:
        HTTPException 401: When configured token is missing or incorrect.
    """
    expected = settings_token()
    if not expected:
        return
    scheme, _, provided = request.headers.get("Authorization", "").strip().partition(" ")
    if scheme != "Bearer" or not hmac.compare_digest(provided.strip().encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Unauthorized settings request.")
