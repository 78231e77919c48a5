"""
TaskCreator - the one entry point for creating an Asana task from a request.

Pipeline:
    resolve project → resolve person → check permission → refine title
    → synthesize notes → normalize due date → create (with retry)
    → permalink → confirmation

Every resolution/permission failure returns before the task client is even
constructed, so validation failures never reach the network. The public
methods never raise; they return

    {"success": True, "message", "taskId", "permalink", "details"}
    {"success": False, "error"}
"""

import logging
from collections.abc import Callable
from datetime import date
from typing import Any

from pydantic import ValidationError

from .due_dates import format_due_date, get_default_due_date, local_today
from .integrations.asana_writer import (
    AsanaAPIError,
    AsanaConfigError,
    AsanaRateLimitError,
    AsanaWriter,
    MaxRetriesExceeded,
)
from .models import ResolvedTaskRequest, TaskRequest
from .observability import InvocationContext
from .registry import Registry, RegistryStore, UnknownPolicy, get_registry_store
from .resilience import RetryPolicy, create_with_retry
from .resolve import (
    allowed_assignees_for_project,
    available_people,
    available_projects,
    is_assignee_allowed,
    resolve_person,
    resolve_project,
)
from .task_rules import refine_title, synthesize_notes

logger = logging.getLogger(__name__)


class TaskValidationError(Exception):
    """Request cannot be turned into a task; the message is user-facing."""

    pass


def failure(error: str) -> dict:
    return {"success": False, "error": error}


def _listing(labels: list[str]) -> str:
    return ", ".join(labels) or "none"


def _validation_message(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "request"
        parts.append(f"{loc}: {err.get('msg')}")
    return "Invalid task request: " + "; ".join(parts)


def describe_api_error(error: AsanaAPIError) -> str:
    """Short hint for an Asana failure."""
    if isinstance(error, AsanaConfigError):
        return "Asana connection not configured. Please check environment settings."
    if isinstance(error, (AsanaRateLimitError, MaxRetriesExceeded)):
        return "Asana rate limit reached. Please wait a moment and try again."
    if error.status in (401, 403):
        return "Asana authentication failed. Please check access token permissions."
    if error.status == 404:
        return "Project or workspace not found in Asana. Please verify the project ID."
    return str(error)


def confirmation_line(resolved: ResolvedTaskRequest, permalink: str) -> str:
    return (
        f"✅ Created: {resolved.title} · Project: {resolved.project.name} · "
        f"Assignee: {resolved.assignee.name} · Due: {resolved.due_on} · Link: {permalink}"
    )


class TaskCreator:
    """Resolve, validate and create one task per call."""

    def __init__(
        self,
        store: RegistryStore | None = None,
        client_factory: Callable[[], AsanaWriter] | None = None,
        retry_policy: RetryPolicy | None = None,
        today: Callable[[], date] | None = None,
    ):
        """
        Args:
            store: Registry store (process-wide store by default)
            client_factory: Builds the task client; only called after validation
            retry_policy: Rate-limit retry policy
            today: Date source; defaults to today in the registry timezone
        """
        self.store = store or get_registry_store()
        self.client_factory = client_factory or AsanaWriter
        self.retry_policy = retry_policy or RetryPolicy()
        self.today = today

    def _today(self, registry: Registry) -> date:
        if self.today is not None:
            return self.today()
        return local_today(registry.meta.timezone)

    def resolve_request(self, request: TaskRequest) -> ResolvedTaskRequest:
        """
        Turn a loose request into a ResolvedTaskRequest.

        Raises:
            TaskValidationError: unknown project/person or assignee not allowed
        """
        registry = self.store.load()

        project = resolve_project(registry, request.project)
        if project is None:
            projects = _listing(available_projects(registry))
            logger.info(f"Unknown project {request.project!r}")
            if registry.policy.on_unknown_project == UnknownPolicy.ASK:
                raise TaskValidationError(
                    f'I don\'t recognize the project "{request.project}". '
                    f"Available projects are: {projects}. Which one did you mean?"
                )
            raise TaskValidationError(
                f'Project "{request.project}" not found in registry. '
                f"Available projects: {projects}"
            )

        person = resolve_person(registry, request.assignee)
        if person is None:
            people = _listing(available_people(registry))
            logger.info(f"Unknown person {request.assignee!r}")
            if registry.policy.on_unknown_person == UnknownPolicy.ASK:
                raise TaskValidationError(
                    f'I don\'t recognize "{request.assignee}". '
                    f"Available people are: {people}. Who did you mean?"
                )
            raise TaskValidationError(
                f'Person "{request.assignee}" not found in registry. Available people: {people}'
            )

        if not is_assignee_allowed(person, project):
            logger.warning(f"{person.email} not allowed on project {project.id}")
            allowed = _listing(allowed_assignees_for_project(registry, project))
            raise TaskValidationError(
                f"{person.name} cannot be assigned to tasks in {project.name}. "
                f"Allowed assignees: {allowed}"
            )

        # Title first: notes rules scan the refined title
        title = refine_title(project, request.title)
        notes = synthesize_notes(project, request.notes, title)

        today = self._today(registry)
        due_on = format_due_date(request.due_on, today=today) or get_default_due_date(
            project, registry, today=today
        )

        return ResolvedTaskRequest(
            project=project,
            assignee=person,
            title=title,
            notes=notes,
            due_on=due_on,
        )

    def prepare(self, request: TaskRequest | dict[str, Any]) -> ResolvedTaskRequest | dict:
        """Resolve without creating. Returns the failure envelope on error."""
        try:
            if not isinstance(request, TaskRequest):
                request = TaskRequest.model_validate(request)
            return self.resolve_request(request)
        except ValidationError as e:
            return failure(_validation_message(e))
        except TaskValidationError as e:
            return failure(str(e))

    def create_task(
        self,
        request: TaskRequest | dict[str, Any],
        invocation_id: str | None = None,
    ) -> dict:
        """Create exactly one task. Never raises."""
        with InvocationContext(invocation_id):
            resolved = self.prepare(request)
            if isinstance(resolved, dict):
                return resolved

            try:
                client = self.client_factory()
                result = create_with_retry(client, resolved.to_payload(), self.retry_policy)
            except AsanaAPIError as e:
                logger.error(f"Task creation failed: {e}")
                return failure(f"Failed to create task: {describe_api_error(e)}")

            logger.info(
                f"Task created: {result.task_id} in {resolved.project.id}",
                extra={"task_id": result.task_id, "assignee": result.assignee_name},
            )
            return {
                "success": True,
                "message": confirmation_line(resolved, result.permalink),
                "taskId": result.task_id,
                "permalink": result.permalink,
                "details": {
                    "project": resolved.project.name,
                    "assignee": resolved.assignee.name,
                    "title": resolved.title,
                    "dueDate": resolved.due_on,
                },
            }


_creator: TaskCreator | None = None


def get_task_creator() -> TaskCreator:
    """Get or create the process-wide TaskCreator."""
    global _creator
    if _creator is None:
        _creator = TaskCreator()
    return _creator
