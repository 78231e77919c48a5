"""Registry resolution for task-creation requests.

Maps free-text references to registry entities:
- "me" / "adi" / "adi@opus.com" / "Adi Ramirez" / "Ramirez" → Person
- "Revenue Operations" / "rev ops" / "...pipeline cleanup..." → Project

Only active entities are eligible and nothing outside the registry is ever
looked up. A miss is a plain None; the caller applies registry policy.
"""

import logging

from .registry import Person, Project, Registry

logger = logging.getLogger(__name__)


def _normalize(query: str | None) -> str:
    return (query or "").strip().lower()


def _person_match_reason(person: Person, query: str) -> str | None:
    if person.email.lower() == query:
        return "email"
    if any(alias.lower() == query for alias in person.aliases):
        return "alias"
    name = person.name.lower()
    if name == query:
        return "name"
    if query in name.split():
        return "name_part"
    return None


def _project_match_reason(project: Project, query: str) -> str | None:
    if project.name.lower() == query:
        return "name"
    if any(alias.lower() == query for alias in project.aliases):
        return "alias"
    if any(kw and kw.lower() in query for kw in project.routing_keywords):
        return "routing_keyword"
    return None


def resolve_person(registry: Registry, query: str | None) -> Person | None:
    """
    Resolve a person reference.

    Each active person is checked in registry order against email, alias,
    full name, then single name token. The first person with any match wins.
    """
    query = _normalize(query)
    if not query:
        return None

    for person in registry.active_people():
        reason = _person_match_reason(person, query)
        if reason:
            logger.debug(f"Resolved person {query!r} -> {person.email} ({reason})")
            return person
    return None


def resolve_project(registry: Registry, query: str | None) -> Project | None:
    """
    Resolve a project reference.

    Each active project is checked in registry order against name, alias,
    then "a routing keyword occurs inside the query". The first project with
    any match wins.
    """
    query = _normalize(query)
    if not query:
        return None

    for project in registry.active_projects():
        reason = _project_match_reason(project, query)
        if reason:
            logger.debug(f"Resolved project {query!r} -> {project.id} ({reason})")
            return project
    return None


def is_assignee_allowed(person: Person, project: Project) -> bool:
    """True if the person's email is on the project's allowed_assignees list."""
    return person.email.lower() in project.allowed_assignees


def available_projects(registry: Registry) -> list[str]:
    """Labels of every active project, for clarifying questions."""
    return [p.label() for p in registry.active_projects()]


def available_people(registry: Registry) -> list[str]:
    """Labels of every active person, for clarifying questions."""
    return [p.label() for p in registry.active_people()]


def allowed_assignees_for_project(registry: Registry, project: Project) -> list[str]:
    """Allowed assignees in declared order, as labels (raw email if unknown)."""
    labels = []
    for email in project.assignee_order:
        person = registry.person_by_email(email)
        labels.append(person.label() if person else email)
    return labels
