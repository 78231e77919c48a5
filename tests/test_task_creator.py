"""
Tests for the task-creation pipeline.

The task client is replaced with a fake; a client factory that fails the
test proves validation failures never reach the network.
"""

import logging
from dataclasses import replace

import pytest

from taskdesk.integrations.asana_writer import (
    AsanaAPIError,
    AsanaConfigError,
    AsanaPermalinkError,
    AsanaRateLimitError,
    Permalink,
)
from taskdesk.models import ResolvedTaskRequest, TaskRequest
from taskdesk.registry import Policy, Registry, RegistryStore, UnknownPolicy
from taskdesk.resilience import RetryPolicy
from taskdesk.task_creator import TaskCreator, describe_api_error
from tests.conftest import FIXED_TODAY

PERMALINK = "https://app.asana.com/0/1100000000000101/9001"


class FakeAsana:
    """Records every call; create outcomes are scripted."""

    def __init__(self, create_outcomes=("9001",)):
        self.create_outcomes = list(create_outcomes)
        self.payloads = []

    def create_task(self, payload):
        self.payloads.append(payload)
        outcome = self.create_outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def fetch_permalink(self, task_gid):
        return Permalink(url=PERMALINK, assignee_name="Adi Ramirez")


def no_network():
    raise AssertionError("task client must not be built for an invalid request")


def make_creator(store, client=None, factory=None, sleeps=None):
    return TaskCreator(
        store=store,
        client_factory=factory or (lambda: client),
        retry_policy=RetryPolicy(
            max_attempts=2,
            sleep=sleeps.append if sleeps is not None else (lambda seconds: None),
        ),
        today=lambda: FIXED_TODAY,
    )


def with_policy(registry: Registry, **policy) -> RegistryStore:
    return RegistryStore.from_snapshot(replace(registry, policy=Policy(**policy)))


# =============================================================================
# END TO END
# =============================================================================


class TestEndToEnd:
    REQUEST = {
        "project": "rev ops",
        "assignee": "me",
        "title": "email leadership",
        "due_on": "next Friday",
    }

    def test_resolved_request(self, store, revops):
        resolved = make_creator(store, factory=no_network).prepare(self.REQUEST)

        assert isinstance(resolved, ResolvedTaskRequest)
        assert resolved.project is revops
        assert resolved.assignee.email == "adi@opus.test"
        assert resolved.title == "email leadership"
        assert resolved.notes.startswith("Context: Revenue Operations.")
        assert "Loop in Humberto before sending." in resolved.notes
        assert resolved.due_on == "2026-10-16"

    def test_creates_one_task(self, store):
        client = FakeAsana()

        result = make_creator(store, client).create_task(self.REQUEST)

        assert result["success"] is True
        assert result["taskId"] == "9001"
        assert result["permalink"] == PERMALINK
        assert result["details"] == {
            "project": "Revenue Operations",
            "assignee": "Adi Ramirez",
            "title": "email leadership",
            "dueDate": "2026-10-16",
        }
        assert result["message"] == (
            "✅ Created: email leadership · Project: Revenue Operations · "
            f"Assignee: Adi Ramirez · Due: 2026-10-16 · Link: {PERMALINK}"
        )
        assert len(client.payloads) == 1
        payload = client.payloads[0]
        assert payload["assignee"] == "adi@opus.test"
        assert payload["projects"] == ["1100000000000101"]
        assert payload["due_on"] == "2026-10-16"

    def test_accepts_task_request_model(self, store):
        client = FakeAsana()
        request = TaskRequest(project="Revenue Operations", assignee="gabe", title="board report")

        result = make_creator(store, client).create_task(request)

        assert result["success"] is True
        assert result["details"]["title"] == "Prepare board report"
        # No due date given: project SLA (2 days)
        assert result["details"]["dueDate"] == "2026-10-16"

    def test_unparseable_due_date_uses_default(self, store):
        client = FakeAsana()
        request = {
            "project": "onboarding",
            "assignee": "janelle",
            "title": "Acme kickoff",
            "due_on": "whenever works",
        }

        result = make_creator(store, client).create_task(request)

        assert result["details"]["dueDate"] == "2026-10-21"
        assert client.payloads[0]["notes"] == "No additional notes."

    def test_out_of_range_due_date_uses_default(self, store):
        client = FakeAsana()
        request = dict(self.REQUEST, due_on="in 99999999 days")

        result = make_creator(store, client).create_task(request)

        assert result["success"] is True
        # Project SLA (2 days)
        assert result["details"]["dueDate"] == "2026-10-16"
        assert client.payloads[0]["due_on"] == "2026-10-16"


# =============================================================================
# VALIDATION FAILURES
# =============================================================================


class TestUnknownReferences:
    def test_unknown_project_ask_lists_projects(self, store):
        result = make_creator(store, factory=no_network).create_task(
            {"project": "marketing", "assignee": "me", "title": "Draft launch plan"}
        )

        assert result["success"] is False
        assert result["error"] == (
            'I don\'t recognize the project "marketing". Available projects are: '
            "Revenue Operations (rev ops), Client Onboarding (onboarding). "
            "Which one did you mean?"
        )
        assert "Legacy Migration" not in result["error"]

    def test_unknown_project_reject(self, registry):
        store = with_policy(registry, on_unknown_project=UnknownPolicy.REJECT)

        result = make_creator(store, factory=no_network).create_task(
            {"project": "marketing", "assignee": "me", "title": "Draft launch plan"}
        )

        assert result["error"].startswith('Project "marketing" not found in registry.')

    def test_unknown_person_ask(self, store):
        result = make_creator(store, factory=no_network).create_task(
            {"project": "rev ops", "assignee": "sammy", "title": "Draft launch plan"}
        )

        assert result["error"] == (
            'I don\'t recognize "sammy". Available people are: Adi Ramirez (me), '
            "Gabriel Ortiz (gabe), Janelle Hall (janelle@opus.test). Who did you mean?"
        )

    def test_unknown_person_reject(self, registry):
        store = with_policy(registry, on_unknown_person=UnknownPolicy.REJECT)

        result = make_creator(store, factory=no_network).create_task(
            {"project": "rev ops", "assignee": "nobody", "title": "x"}
        )

        assert result["error"].startswith('Person "nobody" not found in registry.')

    def test_empty_registry_rejects(self):
        store = RegistryStore.from_snapshot(Registry.empty())

        result = make_creator(store, factory=no_network).create_task(
            {"project": "rev ops", "assignee": "me", "title": "x"}
        )

        assert result == {
            "success": False,
            "error": 'Project "rev ops" not found in registry. Available projects: none',
        }


class TestPermission:
    def test_assignee_not_allowed(self, store):
        result = make_creator(store, factory=no_network).create_task(
            {"project": "rev ops", "assignee": "janelle", "title": "Review pipeline"}
        )

        assert result["success"] is False
        assert result["error"] == (
            "Janelle Hall cannot be assigned to tasks in Revenue Operations. "
            "Allowed assignees: Adi Ramirez (me), Gabriel Ortiz (gabe)"
        )

    def test_resolved_request_enforces_permission(self, registry, revops):
        janelle = registry.person_by_email("janelle@opus.test")
        with pytest.raises(ValueError):
            ResolvedTaskRequest(
                project=revops, assignee=janelle, title="t", notes="n", due_on="2026-10-16"
            )


class TestInvalidRequests:
    @pytest.mark.parametrize(
        "request_data",
        [
            {"project": "rev ops", "assignee": "me"},
            {"project": "rev ops", "assignee": "me", "title": "   "},
            {"project": "", "assignee": "me", "title": "x"},
            {"project": "rev ops", "assignee": "me", "title": "x", "tasks": ["a", "b"]},
        ],
    )
    def test_rejected_before_resolution(self, store, request_data):
        result = make_creator(store, factory=no_network).create_task(request_data)

        assert result["success"] is False
        assert result["error"].startswith("Invalid task request:")


# =============================================================================
# SERVICE FAILURES
# =============================================================================


class TestServiceFailures:
    REQUEST = {"project": "rev ops", "assignee": "me", "title": "Send recap"}

    def test_rate_limit_retried_then_created(self, store):
        sleeps = []
        client = FakeAsana([AsanaRateLimitError(retry_after=3), "9002"])

        result = make_creator(store, client, sleeps=sleeps).create_task(self.REQUEST)

        assert result["success"] is True
        assert result["taskId"] == "9002"
        assert sleeps == [3.5]

    def test_rate_limit_exhausted(self, store):
        client = FakeAsana([AsanaRateLimitError(retry_after=1)] * 2)

        result = make_creator(store, client).create_task(self.REQUEST)

        assert result == {
            "success": False,
            "error": "Failed to create task: Asana rate limit reached. "
            "Please wait a moment and try again.",
        }

    def test_missing_token(self, store):
        def factory():
            raise AsanaConfigError("ASANA_ACCESS_TOKEN not configured")

        result = make_creator(store, factory=factory).create_task(self.REQUEST)

        assert result["error"] == (
            "Failed to create task: Asana connection not configured. "
            "Please check environment settings."
        )

    def test_auth_failure_not_retried(self, store):
        client = FakeAsana([AsanaAPIError("Asana API error 401", status=401), "never"])

        result = make_creator(store, client).create_task(self.REQUEST)

        assert "authentication failed" in result["error"]
        assert len(client.payloads) == 1

    def test_permalink_failure_reported(self, store):
        client = FakeAsana()
        client.fetch_permalink = lambda gid: (_ for _ in ()).throw(
            AsanaPermalinkError("No permalink returned from Asana")
        )

        result = make_creator(store, client).create_task(self.REQUEST)

        assert result == {
            "success": False,
            "error": "Failed to create task: No permalink returned from Asana",
        }
        assert len(client.payloads) == 1

    @pytest.mark.parametrize(
        "error,hint",
        [
            (AsanaAPIError("x", status=403), "authentication failed"),
            (AsanaAPIError("x", status=404), "Project or workspace not found"),
            (AsanaAPIError("Asana API error 500: boom", status=500), "Asana API error 500"),
        ],
    )
    def test_describe_api_error(self, error, hint):
        assert hint in describe_api_error(error)


class TestLogging:
    def test_invocation_id_bound_during_call(self, store, caplog):
        from taskdesk.observability import get_invocation_id

        seen = []

        class Client(FakeAsana):
            def create_task(self, payload):
                seen.append(get_invocation_id())
                return super().create_task(payload)

        with caplog.at_level(logging.INFO, logger="taskdesk"):
            make_creator(store, Client()).create_task(
                TestServiceFailures.REQUEST, invocation_id="inv-test-1"
            )

        assert seen == ["inv-test-1"]
        assert get_invocation_id() is None
        assert any("Task created: 9001" in r.getMessage() for r in caplog.records)

    def test_token_never_logged(self, store, caplog, monkeypatch):
        monkeypatch.setenv("ASANA_ACCESS_TOKEN", "secret-token-xyz")
        with caplog.at_level(logging.DEBUG):
            make_creator(store, FakeAsana()).create_task(TestServiceFailures.REQUEST)
        assert "secret-token-xyz" not in caplog.text
