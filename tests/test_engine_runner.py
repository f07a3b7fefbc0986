"""Unit tests for the issue watcher engine decision flow."""

import logging
from unittest.mock import MagicMock

import pytest

LOGGER = logging.getLogger("test-engine")


def _rule(project_id="P1", team_id="T1", watchers=None):
    from autowatcher.storage.types import WatcherRule

    return WatcherRule(
        id="rule-1",
        project_id=project_id,
        team_id=team_id,
        watcher_user_ids=["U1", "U2"] if watchers is None else watchers,
        active=True,
        created_by="alice",
        created_at="2026-01-01T00:00:00+00:00",
        updated_at="2026-01-01T00:00:00+00:00",
    )


def _installation():
    from autowatcher.storage.types import InstallationContext

    return InstallationContext(installation_id="sub-1", ones_base_url="https://ones.test", access_token="tok")


def _event(event_type="ones:project:issue:created", **data):
    from autowatcher.engine.context import parse_issue_created_event

    event_data = {"issueID": "I1", "teamID": "T1", "triggerUserID": "trigger-user"}
    event_data.update(data)
    return parse_issue_created_event(
        {
            "eventID": "evt-1",
            "eventType": event_type,
            "timestamp": 1700000000,
            "subscriberID": "sub-1",
            "eventData": event_data,
        }
    )


def _build_runtime(rule=None, installation=None, details=None):
    from autowatcher.engine.runner import WatcherEngineRuntime

    return WatcherEngineRuntime(
        get_active_rule=MagicMock(return_value=rule),
        get_installation=MagicMock(return_value=installation),
        get_issue_details=MagicMock(return_value={"project": {"id": "P1", "name": "Core"}} if details is None else details),
        add_issue_watchers=MagicMock(return_value={}),
    )


def _run(event, runtime):
    from autowatcher.engine.runner import run_issue_watcher

    return run_issue_watcher(event=event, runtime=runtime, logger=LOGGER)


def test_matching_project_adds_rule_watchers():
    runtime = _build_runtime(rule=_rule(), installation=_installation())

    outcome = _run(_event(), runtime)

    assert outcome.to_dict() == {"status": "processed"}
    runtime.get_issue_details.assert_called_once_with(runtime.get_installation.return_value, "trigger-user", "I1", "T1")
    runtime.add_issue_watchers.assert_called_once_with(
        runtime.get_installation.return_value, "I1", "T1", ["U1", "U2"]
    )


def test_unsupported_event_type_makes_no_calls():
    runtime = _build_runtime(rule=_rule(), installation=_installation())

    outcome = _run(_event(event_type="ones:project:issue:updated"), runtime)

    assert outcome.to_dict() == {"status": "ignored", "reason": "unsupported_event"}
    runtime.get_active_rule.assert_not_called()
    runtime.get_installation.assert_not_called()
    runtime.get_issue_details.assert_not_called()
    runtime.add_issue_watchers.assert_not_called()


def test_no_active_rule_is_ignored_without_upstream_calls():
    runtime = _build_runtime(rule=None, installation=_installation())

    outcome = _run(_event(), runtime)

    assert outcome.to_dict() == {"status": "ignored", "reason": "no_rule"}
    runtime.get_issue_details.assert_not_called()
    runtime.add_issue_watchers.assert_not_called()


def test_missing_installation_fails():
    runtime = _build_runtime(rule=_rule(), installation=None)

    outcome = _run(_event(), runtime)

    assert outcome.to_dict() == {"status": "failed", "reason": "missing_installation"}
    runtime.get_installation.assert_called_once_with("sub-1")
    runtime.get_issue_details.assert_not_called()


def test_missing_team_everywhere_fails():
    runtime = _build_runtime(rule=_rule(team_id=""), installation=_installation())

    outcome = _run(_event(teamID=""), runtime)

    assert outcome.to_dict() == {"status": "failed", "reason": "missing_team"}
    runtime.get_issue_details.assert_not_called()


def test_rule_team_used_when_event_has_none():
    runtime = _build_runtime(rule=_rule(team_id="T1"), installation=_installation())

    _run(_event(teamID=None), runtime)

    assert runtime.get_issue_details.call_args.args[3] == "T1"
    assert runtime.add_issue_watchers.call_args.args[2] == "T1"


def test_event_team_takes_precedence_over_rule_team():
    runtime = _build_runtime(rule=_rule(team_id="T1"), installation=_installation())

    outcome = _run(_event(teamID="T2"), runtime)

    assert outcome.status == "processed"
    assert runtime.get_issue_details.call_args.args[3] == "T2"
    assert runtime.add_issue_watchers.call_args.args[2] == "T2"


def test_missing_issue_is_ignored_without_lookup():
    runtime = _build_runtime(rule=_rule(), installation=_installation())

    outcome = _run(_event(issueID=""), runtime)

    assert outcome.to_dict() == {"status": "ignored", "reason": "missing_issue"}
    runtime.get_issue_details.assert_not_called()
    runtime.add_issue_watchers.assert_not_called()


def test_missing_trigger_user_uses_empty_acting_user():
    runtime = _build_runtime(rule=_rule(), installation=_installation())

    _run(_event(triggerUserID=None), runtime)

    assert runtime.get_issue_details.call_args.args[1] == ""


@pytest.mark.parametrize("details", [{}, {"project": {}}, {"data": {}}, {"project": {"name": "No id"}}, "oops"])
def test_lookup_without_project_is_ignored(details):
    runtime = _build_runtime(rule=_rule(), installation=_installation(), details=details)

    outcome = _run(_event(), runtime)

    assert outcome.to_dict() == {"status": "ignored", "reason": "missing_project"}
    runtime.add_issue_watchers.assert_not_called()


def test_nested_data_project_is_accepted():
    runtime = _build_runtime(rule=_rule(), installation=_installation(), details={"data": {"project": {"id": "P1"}}})

    assert _run(_event(), runtime).status == "processed"


def test_lookup_failure_is_ignored_not_raised():
    from autowatcher.ones.client import OpenApiError

    runtime = _build_runtime(rule=_rule(), installation=_installation())
    runtime.get_issue_details.side_effect = OpenApiError("boom", path="/x", status=500)

    outcome = _run(_event(), runtime)

    assert outcome.to_dict() == {"status": "ignored", "reason": "lookup_failed"}
    runtime.add_issue_watchers.assert_not_called()


def test_project_mismatch_is_ignored():
    runtime = _build_runtime(rule=_rule(project_id="P1"), installation=_installation(), details={"project": {"id": "P2"}})

    outcome = _run(_event(), runtime)

    assert outcome.to_dict() == {"status": "ignored", "reason": "project_mismatch"}
    runtime.add_issue_watchers.assert_not_called()


def test_project_match_is_exact_string():
    runtime = _build_runtime(rule=_rule(project_id="P1"), installation=_installation(), details={"project": {"id": "P10"}})

    assert _run(_event(), runtime).reason == "project_mismatch"


def test_empty_watcher_list_is_ignored():
    runtime = _build_runtime(rule=_rule(watchers=[]), installation=_installation())

    outcome = _run(_event(), runtime)

    assert outcome.to_dict() == {"status": "ignored", "reason": "empty_watchers"}
    runtime.add_issue_watchers.assert_not_called()


def test_add_watchers_failure_is_reported():
    from autowatcher.ones.client import OpenApiError

    runtime = _build_runtime(rule=_rule(), installation=_installation())
    runtime.add_issue_watchers.side_effect = OpenApiError("denied", path="/x", status=403)

    outcome = _run(_event(), runtime)

    assert outcome.to_dict() == {"status": "failed", "reason": "openapi_error"}


def test_reprocessing_same_event_stays_processed():
    runtime = _build_runtime(rule=_rule(), installation=_installation())
    event = _event()

    first = _run(event, runtime)
    second = _run(event, runtime)

    assert first.status == second.status == "processed"
    assert runtime.add_issue_watchers.call_count == 2


def test_non_transport_lookup_error_propagates():
    runtime = _build_runtime(rule=_rule(), installation=_installation())
    runtime.get_issue_details.side_effect = RuntimeError("Invalid AUTOWATCHER_OPENAPI_TIMEOUT")

    with pytest.raises(RuntimeError, match="AUTOWATCHER_OPENAPI_TIMEOUT"):
        _run(_event(), runtime)
    runtime.add_issue_watchers.assert_not_called()


def test_non_transport_add_watchers_error_propagates():
    runtime = _build_runtime(rule=_rule(), installation=_installation())
    runtime.add_issue_watchers.side_effect = TypeError("bad argument")

    with pytest.raises(TypeError):
        _run(_event(), runtime)
