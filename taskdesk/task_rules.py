"""
Project rules applied to a task before it is created.

Two steps, always in this order:
1. refine_title: enforce "start with a verb" style title rules.
2. synthesize_notes: fill the project's notes template, append the notes of
   every keyword rule that fires, and prepend the project's notes guidance.

Rule keyword matching scans the *refined* title, so the order matters.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from .registry import Project

EMPTY_NOTES = "No additional notes."

ACTION_VERBS = frozenset(
    {
        "create",
        "send",
        "email",
        "confirm",
        "schedule",
        "deliver",
        "complete",
        "review",
        "update",
        "fix",
        "implement",
        "analyze",
        "prepare",
        "draft",
        "finalize",
        "submit",
        "approve",
        "coordinate",
    }
)

# First hit wins; "Complete" when nothing matches
VERB_HINTS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("email", "send"), "Send"),
    (("meeting", "call"), "Schedule"),
    (("document", "report"), "Prepare"),
)
DEFAULT_VERB = "Complete"

PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


def _requires_verb(rule: str) -> bool:
    return "verb" in rule.lower()


def infer_verb(title: str) -> str:
    """Pick an opening verb from keywords in the title."""
    lowered = title.lower()
    for keywords, verb in VERB_HINTS:
        if any(kw in lowered for kw in keywords):
            return verb
    return DEFAULT_VERB


def starts_with_action_verb(title: str) -> bool:
    words = title.split()
    return bool(words) and words[0].lower() in ACTION_VERBS


def refine_title(project: Project, raw_title: str) -> str:
    """
    Apply the project's title rules.

    Only the "start with a strong verb" rule changes the title; at most one
    verb is ever prepended. Other rules (deliverable, recipient, customer
    name) need context a title alone does not carry and are left as-is.
    """
    title = raw_title.strip()
    rules = project.context.title_rules
    if not rules or starts_with_action_verb(title):
        return title

    if any(_requires_verb(rule) for rule in rules):
        return f"{infer_verb(title)} {title}"
    return title


# =============================================================================
# NOTES TEMPLATE
# =============================================================================


@dataclass(frozen=True)
class NotesContext:
    """What a placeholder can draw on."""

    title: str
    raw_notes: str

    def notes_or(self, fallback: str) -> str:
        return self.raw_notes or fallback


def _tbd(ctx: NotesContext) -> str:
    return "TBD"


PLACEHOLDERS: dict[str, Callable[[NotesContext], str]] = {
    "goal": lambda ctx: ctx.notes_or("As specified in title"),
    "details": lambda ctx: ctx.notes_or("See task title for details"),
    "acceptance_criteria": lambda ctx: "Task completed as specified",
    "acceptance": lambda ctx: "Task completed successfully",
    "customer": _tbd,
    "objective": lambda ctx: ctx.title,
    "dependencies": lambda ctx: "None identified",
    "focus": lambda ctx: ctx.notes_or(ctx.title),
    "dates": _tbd,
    "issue": lambda ctx: ctx.notes_or("As described"),
    "impact": _tbd,
    "steps": _tbd,
    "owner": lambda ctx: "Assigned person",
    "company": _tbd,
    "stack": _tbd,
    "pains": _tbd,
    "timeline": _tbd,
    "budget": _tbd,
}


def render_template(template: str, ctx: NotesContext) -> str:
    """Replace every known {placeholder}; unknown tokens are left untouched."""

    def _sub(match: re.Match) -> str:
        resolver = PLACEHOLDERS.get(match.group(1))
        return resolver(ctx) if resolver else match.group(0)

    return PLACEHOLDER_RE.sub(_sub, template)


def _join(head: str, tail: str) -> str:
    head = head.strip()
    return f"{head}\n\n{tail}" if head else tail


def synthesize_notes(project: Project, raw_notes: str | None, refined_title: str) -> str:
    """
    Build the final task notes for a project.

    Args:
        project: Resolved project
        raw_notes: Notes as the user gave them (may be empty)
        refined_title: Output of refine_title()

    Returns:
        Notes text; "No additional notes." when everything is empty.
    """
    raw_notes = raw_notes or ""
    context = project.context
    notes = raw_notes

    if context.notes_template:
        notes = render_template(
            context.notes_template,
            NotesContext(title=refined_title, raw_notes=raw_notes),
        )

    scanned = f"{refined_title} {raw_notes}".lower()
    for rule in context.rules:
        if rule.append_note and rule.matches(scanned):
            notes = _join(notes, rule.append_note)

    guidance = project.notes_guidance
    if guidance and guidance not in notes:
        notes = notes.strip()
        notes = f"{guidance}\n\n{notes}" if notes else guidance

    return notes.strip() or EMPTY_NOTES
