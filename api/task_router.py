"""
Task Router - FastAPI endpoints for the tool-calling layer.

Endpoints:
- POST /tasks/asana - create one task from a loose request
- POST /tasks/asana/preview - resolve a request without creating anything
- GET /registry/projects - active projects
- GET /registry/people - active people
- POST /registry/refresh - reload the registry document now
"""

import logging

from fastapi import APIRouter, Header

from taskdesk.models import ResolvedTaskRequest, TaskRequest
from taskdesk.task_creator import TaskCreator, get_task_creator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tasks"])

_creator: TaskCreator | None = None


def get_creator() -> TaskCreator:
    """Creator used by the routes; tests swap it with set_creator()."""
    return _creator or get_task_creator()


def set_creator(creator: TaskCreator | None) -> None:
    global _creator
    _creator = creator


@router.post("/tasks/asana")
def create_asana_task(
    request: TaskRequest,
    x_invocation_id: str | None = Header(default=None),
) -> dict:
    """
    Create a task in Asana using the registry allowlist.

    Always 200: failures come back as {"success": false, "error": ...}
    so the assistant can relay them verbatim.
    """
    return get_creator().create_task(request, invocation_id=x_invocation_id)


@router.post("/tasks/asana/preview")
def preview_asana_task(request: TaskRequest) -> dict:
    """Resolve a request exactly as create would, without calling Asana."""
    resolved = get_creator().prepare(request)
    if isinstance(resolved, ResolvedTaskRequest):
        return {"success": True, "details": resolved.summary()}
    return resolved


@router.get("/registry/projects")
def list_registry_projects() -> dict:
    registry = get_creator().store.load()
    return {
        "projects": [
            {"id": p.id, "name": p.name, "aliases": list(p.aliases), "type": p.type}
            for p in registry.active_projects()
        ]
    }


@router.get("/registry/people")
def list_registry_people() -> dict:
    registry = get_creator().store.load()
    return {
        "people": [
            {"email": p.email, "name": p.name, "aliases": list(p.aliases), "role": p.role}
            for p in registry.active_people()
        ]
    }


@router.post("/registry/refresh")
def refresh_registry() -> dict:
    registry = get_creator().store.refresh()
    logger.info(f"Registry refreshed via API: v{registry.version}")
    return {
        "version": registry.version,
        "projects": len(registry.projects),
        "people": len(registry.people),
    }
