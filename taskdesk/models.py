"""
Request/result types for one task creation.

TaskRequest is the inbound shape from the tool-calling layer (validated with
pydantic). ResolvedTaskRequest and TaskResult are internal, frozen, and only
built from already-validated parts.
"""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from .registry import Person, Project
from .resolve import is_assignee_allowed


class TaskRequest(BaseModel):
    """One task, as the user loosely described it."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    project: str = Field(..., min_length=1, description="Project name or alias from user input")
    assignee: str = Field(
        ..., min_length=1, description="Person name, email, or alias from user input"
    )
    title: str = Field(
        ..., min_length=1, description="Task title - should be clear and action-oriented"
    )
    notes: str | None = Field(default=None, description="Task description/notes from user input")
    due_on: str | None = Field(
        default=None,
        description='Due date from user input (e.g., "tomorrow", "next Friday", "2026-11-02")',
    )


@dataclass(frozen=True)
class ResolvedTaskRequest:
    """A request ready to send: registry entities, refined text, ISO due date."""

    project: Project
    assignee: Person
    title: str
    notes: str
    due_on: str

    def __post_init__(self):
        if not is_assignee_allowed(self.assignee, self.project):
            raise ValueError(
                f"{self.assignee.email} is not an allowed assignee for project {self.project.id}"
            )

    def to_payload(self) -> dict:
        """Body of the Asana create-task call (without the `data` envelope)."""
        return {
            "name": self.title,
            "notes": self.notes,
            "assignee": self.assignee.email,
            "due_on": self.due_on,
            "projects": [self.project.id],
        }

    def summary(self) -> dict:
        return {
            "project": self.project.name,
            "assignee": self.assignee.name,
            "title": self.title,
            "notes": self.notes,
            "dueDate": self.due_on,
        }


@dataclass(frozen=True)
class TaskResult:
    """What Asana handed back for a created task."""

    task_id: str
    permalink: str
    assignee_name: str | None = None
