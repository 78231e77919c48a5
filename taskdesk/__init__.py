# taskdesk - Registry-driven Asana task creation
"""
Exports for the CLI, the API routers and other consumers.
"""

from .due_dates import format_due_date, get_default_due_date
from .models import ResolvedTaskRequest, TaskRequest, TaskResult
from .registry import Registry, RegistryStore, get_registry_store
from .resilience import RetryPolicy, create_with_retry
from .resolve import is_assignee_allowed, resolve_person, resolve_project
from .task_creator import TaskCreator, get_task_creator
from .task_rules import refine_title, synthesize_notes

__all__ = [
    "Registry",
    "RegistryStore",
    "get_registry_store",
    "resolve_person",
    "resolve_project",
    "is_assignee_allowed",
    "refine_title",
    "synthesize_notes",
    "format_due_date",
    "get_default_due_date",
    "TaskRequest",
    "ResolvedTaskRequest",
    "TaskResult",
    "RetryPolicy",
    "create_with_retry",
    "TaskCreator",
    "get_task_creator",
]
