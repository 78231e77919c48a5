"""
Registry Store - the allowlist of projects, people and policy.

The registry document (JSON or YAML) is the only source of entities a task
can be created for. Everything here is read-only once parsed: entity
dataclasses are frozen and collections are tuples/frozensets.

RegistryStore caches one parsed Registry for a TTL and re-reads the file
lazily on the next load() after expiry. A missing or malformed document
never raises out of load(); callers get Registry.empty(), which resolves
nothing and rejects every unknown reference.
"""

import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

import yaml

from taskdesk import config, paths

logger = logging.getLogger(__name__)

REQUIRED_SECTIONS = ("version", "meta", "people", "projects")


class RegistryFormatError(ValueError):
    """Raised when a registry document violates the expected schema."""

    pass


class UnknownPolicy(StrEnum):
    """What to do when a project/person reference does not resolve."""

    ASK = "ask"
    REJECT = "reject"

    @classmethod
    def parse(cls, value: Any) -> "UnknownPolicy":
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.REJECT


# =============================================================================
# ENTITIES
# =============================================================================


def _str_tuple(values: Any) -> tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        raise RegistryFormatError(f"expected a list of strings, got {values!r}")
    return tuple(str(v) for v in values)


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


@dataclass(frozen=True)
class Person:
    email: str
    name: str
    aliases: tuple[str, ...] = ()
    role: str = ""
    department: str = ""
    active: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> "Person":
        return cls(
            email=str(data["email"]),
            name=str(data["name"]),
            aliases=_str_tuple(data.get("aliases")),
            role=str(data.get("role") or ""),
            department=str(data.get("department") or ""),
            active=bool(data.get("active", True)),
        )

    def label(self) -> str:
        """'Name (first alias)' or 'Name (email)' for listings."""
        return f"{self.name} ({self.aliases[0] if self.aliases else self.email})"


@dataclass(frozen=True)
class NoteRule:
    """`{when: {contains_any: [...]}, then: {append_note: ...}}` as data."""

    contains_any: tuple[str, ...]
    append_note: str

    @classmethod
    def from_dict(cls, data: dict) -> "NoteRule":
        when = data.get("when") or {}
        then = data.get("then") or {}
        return cls(
            contains_any=_str_tuple(when.get("contains_any")),
            append_note=str(then.get("append_note") or ""),
        )

    def matches(self, text: str) -> bool:
        """True if any trigger keyword occurs in `text` (case-insensitive)."""
        haystack = text.lower()
        return any(kw and kw.lower() in haystack for kw in self.contains_any)


@dataclass(frozen=True)
class ProjectContext:
    summary: str = ""
    title_rules: tuple[str, ...] = ()
    notes_template: str | None = None
    rules: tuple[NoteRule, ...] = ()
    sla_due_days: int | None = None
    escalation_contact: str | None = None
    primary_contact: dict | None = None

    @classmethod
    def from_dict(cls, data: dict | None) -> "ProjectContext":
        data = data or {}
        guidance = data.get("task_guidance") or {}
        sla = data.get("sla") or {}
        return cls(
            summary=str(data.get("summary") or ""),
            title_rules=_str_tuple(guidance.get("title_rules")),
            notes_template=guidance.get("notes_template") or None,
            rules=tuple(NoteRule.from_dict(r) for r in data.get("rules") or []),
            sla_due_days=_optional_int(sla.get("default_due_days_from_now")),
            escalation_contact=sla.get("escalation_contact"),
            primary_contact=data.get("primary_contact"),
        )


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    aliases: tuple[str, ...] = ()
    type: str = ""
    description: str = ""
    owners: tuple[str, ...] = ()
    allowed_assignees: frozenset[str] = frozenset()
    # Declared order, for listings
    assignee_order: tuple[str, ...] = ()
    routing_keywords: tuple[str, ...] = ()
    due_days_from_now: int | None = None
    notes_guidance: str = ""
    context: ProjectContext = field(default_factory=ProjectContext)
    sections: tuple[dict, ...] = ()
    custom_fields: tuple[dict, ...] = ()
    active: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        defaults = data.get("defaults") or {}
        allowed = tuple(
            dict.fromkeys(e.lower() for e in _str_tuple(data.get("allowed_assignees")))
        )
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            aliases=_str_tuple(data.get("aliases")),
            type=str(data.get("type") or ""),
            description=str(data.get("description") or ""),
            owners=_str_tuple(data.get("owners")),
            allowed_assignees=frozenset(allowed),
            assignee_order=allowed,
            routing_keywords=_str_tuple(data.get("routing_keywords")),
            due_days_from_now=_optional_int(defaults.get("due_days_from_now")),
            notes_guidance=str(data.get("notes_guidance") or ""),
            context=ProjectContext.from_dict(data.get("context")),
            sections=tuple(data.get("sections") or ()),
            custom_fields=tuple(data.get("custom_fields") or ()),
            active=bool(data.get("active", True)),
        )

    def label(self) -> str:
        """'Name (first alias)' for listings."""
        return f"{self.name} ({self.aliases[0] if self.aliases else 'no alias'})"


@dataclass(frozen=True)
class Template:
    title_prefix: str = ""
    description_template: str = ""


@dataclass(frozen=True)
class Policy:
    allow_general_chat: bool = True
    one_task_per_message: bool = True
    on_unknown_project: UnknownPolicy = UnknownPolicy.REJECT
    on_unknown_person: UnknownPolicy = UnknownPolicy.REJECT


@dataclass(frozen=True)
class Defaults:
    default_project_id: str | None = None
    default_assignee_email: str = ""
    default_due_days_from_now: int | None = config.FALLBACK_DUE_DAYS


@dataclass(frozen=True)
class Meta:
    workspace_gid: str = ""
    timezone: str = config.FALLBACK_TIMEZONE
    date_format: str = "YYYY-MM-DD"


@dataclass(frozen=True)
class Registry:
    version: str
    meta: Meta = field(default_factory=Meta)
    policy: Policy = field(default_factory=Policy)
    defaults: Defaults = field(default_factory=Defaults)
    people: tuple[Person, ...] = ()
    projects: tuple[Project, ...] = ()
    templates: dict[str, Template] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "Registry":
        """Safe fallback: nothing resolves, unknown references are rejected."""
        return cls(version="1.0")

    @classmethod
    def from_dict(cls, data: Any) -> "Registry":
        if not isinstance(data, dict):
            raise RegistryFormatError("registry document must be a mapping")
        missing = [key for key in REQUIRED_SECTIONS if data.get(key) is None]
        if missing:
            raise RegistryFormatError(f"missing required sections: {', '.join(missing)}")

        try:
            meta = data["meta"]
            policy = data.get("policy") or {}
            defaults = data.get("defaults") or {}
            return cls(
                version=str(data["version"]),
                meta=Meta(
                    workspace_gid=str(meta.get("workspace_gid") or ""),
                    timezone=str(meta.get("timezone") or config.FALLBACK_TIMEZONE),
                    date_format=str(meta.get("date_format") or "YYYY-MM-DD"),
                ),
                policy=Policy(
                    allow_general_chat=bool(policy.get("allow_general_chat", True)),
                    one_task_per_message=bool(policy.get("one_task_per_message", True)),
                    on_unknown_project=UnknownPolicy.parse(policy.get("on_unknown_project")),
                    on_unknown_person=UnknownPolicy.parse(policy.get("on_unknown_person")),
                ),
                defaults=Defaults(
                    default_project_id=defaults.get("default_project_id"),
                    default_assignee_email=str(defaults.get("default_assignee_email") or ""),
                    default_due_days_from_now=_optional_int(
                        defaults.get("default_due_days_from_now")
                    ),
                ),
                people=tuple(Person.from_dict(p) for p in data["people"]),
                projects=tuple(Project.from_dict(p) for p in data["projects"]),
                templates={
                    str(key): Template(
                        title_prefix=str(value.get("title_prefix") or ""),
                        description_template=str(value.get("description_template") or ""),
                    )
                    for key, value in (data.get("templates") or {}).items()
                },
            )
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise RegistryFormatError(f"malformed registry entry: {e!r}") from e

    def active_people(self) -> list[Person]:
        return [p for p in self.people if p.active]

    def active_projects(self) -> list[Project]:
        return [p for p in self.projects if p.active]

    def person_by_email(self, email: str) -> Person | None:
        email = email.lower()
        for person in self.people:
            if person.email.lower() == email:
                return person
        return None


# =============================================================================
# LOADING
# =============================================================================


def load_registry_file(path: Path) -> Registry:
    """
    Parse a registry document. JSON for `.json`, YAML otherwise.

    Raises:
        OSError: file missing/unreadable
        RegistryFormatError: document does not match the registry schema
    """
    with open(path, encoding="utf-8") as f:
        try:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        except (UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise RegistryFormatError(f"cannot parse {path.name}: {e}") from e
    return Registry.from_dict(data)


class RegistryStore:
    """
    TTL-cached access to the registry.

    The cached (registry, loaded_at) pair is replaced in one assignment, so
    concurrent refreshes race harmlessly: the last write wins and every
    reader sees a complete snapshot.
    """

    def __init__(
        self,
        path: Path | str | None = None,
        ttl_seconds: float | None = config.REGISTRY_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            path: Registry document. Defaults to paths.registry_path() at load time.
            ttl_seconds: Cache lifetime. None never expires.
            clock: Monotonic time source.
        """
        self.path = Path(path) if path else None
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._cached: tuple[Registry, float] | None = None
        self._pinned = False

    @classmethod
    def from_snapshot(cls, registry: Registry) -> "RegistryStore":
        """A store that always serves `registry` and never touches the filesystem."""
        store = cls(ttl_seconds=None)
        store._cached = (registry, store.clock())
        store._pinned = True
        return store

    def _expired(self, loaded_at: float) -> bool:
        if self.ttl_seconds is None:
            return False
        return self.clock() - loaded_at >= self.ttl_seconds

    def load(self) -> Registry:
        """Return the cached registry, reloading it if the TTL has passed."""
        cached = self._cached
        if cached is not None and (self._pinned or not self._expired(cached[1])):
            return cached[0]
        return self.refresh()

    def refresh(self) -> Registry:
        """Re-read the registry document now. Falls back to Registry.empty()."""
        if self._pinned and self._cached is not None:
            return self._cached[0]

        path = self.path or paths.registry_path()
        try:
            registry = load_registry_file(path)
        except (OSError, RegistryFormatError) as e:
            # Not cached: the next load() tries the file again
            logger.warning(f"Failed to load registry from {path}: {e}. Using empty registry.")
            return Registry.empty()

        self._cached = (registry, self.clock())
        logger.info(
            f"Loaded registry v{registry.version}: "
            f"{len(registry.projects)} projects, {len(registry.people)} people"
        )
        return registry


_store: RegistryStore | None = None


def get_registry_store() -> RegistryStore:
    """Get or create the process-wide registry store."""
    global _store
    if _store is None:
        _store = RegistryStore()
    return _store
