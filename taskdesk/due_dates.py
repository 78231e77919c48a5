"""Due-date normalization for task creation.

Turns what the user said ("tomorrow", "next Friday", "in 5 days",
"Sep 25", "2026-11-02") into an ISO date, or computes the project's
default when nothing usable was given. Returned dates are never in the past.
"""

import logging
import re
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from . import config
from .registry import Project, Registry

logger = logging.getLogger(__name__)

IN_DAYS_RE = re.compile(r"in (\d+) days?")
ORDINAL_RE = re.compile(r"\b(\d{1,2})(st|nd|rd|th)\b")

MONDAY = 0
FRIDAY = 4

# Formats that carry a year
DATED_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%b %d %Y",
    "%B %d %Y",
    "%d %b %Y",
    "%d %B %Y",
)

# Month/day only; the current year is filled in
UNDATED_FORMATS = (
    "%m/%d",
    "%b %d",
    "%B %d",
    "%d %b",
    "%d %B",
)


def local_today(timezone_name: str | None = None) -> date:
    """Today's date in the given IANA timezone (local date if unknown)."""
    if timezone_name:
        try:
            return datetime.now(ZoneInfo(timezone_name)).date()
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone {timezone_name!r}; using local date")
    return date.today()


def days_until(weekday: int, today: date) -> int:
    """Days to the next `weekday` strictly after today (7 if today is that day)."""
    return (weekday - today.weekday()) % 7 or 7


def _with_year(d: date, year: int) -> date:
    try:
        return d.replace(year=year)
    except ValueError:
        # Feb 29 in a non-leap year
        return d.replace(year=year, day=28)


def _clean(text: str) -> str:
    text = text.replace(",", " ")
    text = ORDINAL_RE.sub(r"\1", text)
    text = re.sub(r"\bsept\b", "sep", text, flags=re.IGNORECASE)
    return " ".join(text.split())


def parse_date(text: str, today: date) -> date | None:
    """
    Parse an absolute date expression.

    Year-less forms get today's year. A past result is moved to the current
    year and, if still past, one year further.
    """
    cleaned = _clean(text)
    parsed: date | None = None

    for fmt in DATED_FORMATS:
        try:
            parsed = datetime.strptime(cleaned, fmt).date()
            break
        except ValueError:
            continue

    if parsed is None:
        for fmt in UNDATED_FORMATS:
            try:
                # Parsed in a leap year so "Feb 29" is accepted
                parsed = datetime.strptime(f"{cleaned} 2000", f"{fmt} %Y").date()
                parsed = _with_year(parsed, today.year)
                break
            except ValueError:
                continue

    if parsed is None:
        return None

    if parsed < today:
        parsed = _with_year(parsed, today.year)
        if parsed < today:
            parsed = _with_year(parsed, today.year + 1)
    return parsed


def format_due_date(phrase: str | None, today: date | None = None) -> str | None:
    """
    Normalize a due-date phrase.

    Examples (today = Wed 2026-10-14):
        "today"       -> 2026-10-14
        "tomorrow"    -> 2026-10-15
        "next week"   -> 2026-10-19 (next Monday)
        "next friday" -> 2026-10-16
        "in 5 days"   -> 2026-10-19
        "Sep 25"      -> 2027-09-25

    Returns ISO date string or None when nothing is recognized.
    """
    if not phrase:
        return None

    today = today or date.today()
    text = phrase.strip().lower()

    if "today" in text:
        return today.isoformat()
    if "tomorrow" in text:
        return (today + timedelta(days=1)).isoformat()
    if "next week" in text or "next monday" in text:
        return (today + timedelta(days=days_until(MONDAY, today))).isoformat()
    if "next friday" in text:
        return (today + timedelta(days=days_until(FRIDAY, today))).isoformat()

    match = IN_DAYS_RE.search(text)
    if match:
        try:
            return (today + timedelta(days=int(match.group(1)))).isoformat()
        except OverflowError:
            logger.info(f"Due date {phrase!r} is out of range; using default")
            return None

    parsed = parse_date(phrase.strip(), today)
    if parsed is None:
        logger.info(f"Unrecognized due date {phrase!r}; using default")
        return None
    return parsed.isoformat()


def default_due_offset(project: Project, registry: Registry) -> int:
    """Project SLA > project default > registry default > hard fallback."""
    for days in (
        project.context.sla_due_days,
        project.due_days_from_now,
        registry.defaults.default_due_days_from_now,
    ):
        if days is not None:
            return days
    return config.FALLBACK_DUE_DAYS


def get_default_due_date(project: Project, registry: Registry, today: date | None = None) -> str:
    """Due date when the request names none (or nothing parseable)."""
    today = today or date.today()
    return (today + timedelta(days=default_due_offset(project, registry))).isoformat()
