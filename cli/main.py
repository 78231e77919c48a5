#!/usr/bin/env python3
"""
taskdesk CLI - create registry-checked Asana tasks from the terminal.

Commands:
- create   (one task; --dry-run resolves without calling Asana)
- projects (active registry projects)
- people   (active registry people)
- due      (show how a due-date phrase normalizes)
- serve    (run the API server)
"""

import argparse
import json
import sys

from taskdesk import config
from taskdesk.due_dates import format_due_date, get_default_due_date, local_today
from taskdesk.models import ResolvedTaskRequest
from taskdesk.observability import configure_logging
from taskdesk.registry import RegistryStore, get_registry_store
from taskdesk.resolve import resolve_project
from taskdesk.task_creator import TaskCreator


def print_header(text: str):
    """Print a section header."""
    print(f"\n{'═' * 50}")
    print(f"  {text}")
    print(f"{'═' * 50}")


def print_table(headers: list, rows: list, widths: list = None):
    """Print a simple table."""
    if not widths:
        widths = [max(len(str(row[i])) for row in [headers] + rows) for i in range(len(headers))]

    header_str = " │ ".join(str(h).ljust(w) for h, w in zip(headers, widths))
    print(header_str)
    print("─" * len(header_str))

    for row in rows:
        print(" │ ".join(str(c)[:w].ljust(w) for c, w in zip(row, widths)))


def _store(args) -> RegistryStore:
    if args.registry:
        return RegistryStore(path=args.registry)
    return get_registry_store()


def cmd_create(args) -> int:
    """Create (or preview) one task."""
    creator = TaskCreator(store=_store(args))
    request = {
        "project": args.project,
        "assignee": args.assignee,
        "title": args.title,
        "notes": args.notes,
        "due_on": args.due,
    }

    if args.dry_run:
        resolved = creator.prepare(request)
        if isinstance(resolved, ResolvedTaskRequest):
            result = {"success": True, "details": resolved.summary()}
        else:
            result = resolved
    else:
        result = creator.create_task(request)

    if args.json:
        print(json.dumps(result, indent=2, ensure_ascii=False))
    elif not result["success"]:
        print(f"✗ {result['error']}")
    elif args.dry_run:
        details = result["details"]
        print_header("Dry run - nothing created")
        for key in ("project", "assignee", "title", "dueDate"):
            print(f"  {key}: {details[key]}")
        print("\n  notes:")
        for line in details["notes"].splitlines():
            print(f"    {line}")
    else:
        print(result["message"])

    return 0 if result["success"] else 1


def cmd_projects(args) -> int:
    registry = _store(args).load()
    projects = registry.active_projects()
    if not projects:
        print("No active projects in registry.")
        return 0
    print_header(f"Projects ({len(projects)})")
    rows = [
        [p.name, ", ".join(p.aliases) or "-", p.type or "-", len(p.allowed_assignees)]
        for p in projects
    ]
    print_table(["Name", "Aliases", "Type", "Assignees"], rows)
    return 0


def cmd_people(args) -> int:
    registry = _store(args).load()
    people = registry.active_people()
    if not people:
        print("No active people in registry.")
        return 0
    print_header(f"People ({len(people)})")
    rows = [[p.name, p.email, ", ".join(p.aliases) or "-", p.role or "-"] for p in people]
    print_table(["Name", "Email", "Aliases", "Role"], rows)
    return 0


def cmd_due(args) -> int:
    registry = _store(args).load()
    today = local_today(registry.meta.timezone)
    phrase = " ".join(args.phrase)
    due = format_due_date(phrase, today=today)
    if due:
        print(due)
        return 0

    if args.project:
        project = resolve_project(registry, args.project)
        if project is None:
            print(f"✗ Unknown project {args.project!r}")
            return 1
        print(f"{get_default_due_date(project, registry, today=today)} (default for {project.name})")
        return 0

    print(f"✗ Could not understand {phrase!r}")
    return 1


def cmd_serve(args) -> int:
    from api.server import run

    run(host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="taskdesk - registry-driven Asana task creation"
    )
    parser.add_argument("--registry", help="Registry document (JSON or YAML)")
    parser.add_argument("--log-level", default=config.LOG_LEVEL)

    subparsers = parser.add_subparsers(dest="command", required=True)

    p = subparsers.add_parser("create", help="Create one task")
    p.add_argument("--project", "-p", required=True, help="Project name or alias")
    p.add_argument("--assignee", "-a", required=True, help="Person name, email, or alias")
    p.add_argument("--title", "-t", required=True, help="Task title")
    p.add_argument("--notes", "-n", help="Task notes")
    p.add_argument("--due", "-d", help='Due date ("tomorrow", "next friday", "2026-11-02")')
    p.add_argument("--dry-run", action="store_true", help="Resolve only, do not call Asana")
    p.add_argument("--json", action="store_true", help="Output JSON")

    subparsers.add_parser("projects", help="List registry projects")
    subparsers.add_parser("people", help="List registry people")

    p = subparsers.add_parser("due", help="Normalize a due-date phrase")
    p.add_argument("phrase", nargs="+", help="Due-date phrase")
    p.add_argument("--project", help="Show this project's default when the phrase is not understood")

    p = subparsers.add_parser("serve", help="Run the API server")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8420)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    commands = {
        "create": cmd_create,
        "projects": cmd_projects,
        "people": cmd_people,
        "due": cmd_due,
        "serve": cmd_serve,
    }
    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
