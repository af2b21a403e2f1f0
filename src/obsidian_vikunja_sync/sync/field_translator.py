"""Bidirectional value mapping between task notes and Vikunja tasks.

Every function here is pure. Values that cannot be translated resolve to
``None`` (or the documented default) instead of raising; callers treat
``None`` as "unset".

Some mappings are deliberately lossy:

- priority: ``high`` and ``critical`` both come back as ``high``
- recurrence: only the frequency survives, the rest of the rule is dropped
- reminders relative to ``end_date`` have no local equivalent
"""

from __future__ import annotations

import hashlib
import re
from datetime import date, datetime, time, timezone
from typing import Any

from obsidian_vikunja_sync.domain.entities.task import LocalTask, Reminder, ReminderType
from obsidian_vikunja_sync.vikunja.models import VikunjaReminder, VikunjaTask

# Time of day used when a date-only value is sent to Vikunja. Noon UTC keeps
# the calendar day stable for every timezone between UTC-12 and UTC+11.
NEUTRAL_HOUR = 12

# Vikunja reports unset dates as 0001-01-01T00:00:00Z
UNSET_YEAR_CUTOFF = 1970

PRIORITY_TO_REMOTE: dict[str, int] = {
    "": 0,
    "none": 0,
    "unset": 0,
    "low": 1,
    "normal": 2,
    "medium": 2,
    "high": 4,
    "critical": 5,
    "urgent": 5,
}

DAY_SECONDS = 86_400

RECURRENCE_SECONDS: tuple[tuple[str, int], ...] = (
    ("FREQ=DAILY", DAY_SECONDS),
    ("FREQ=WEEKLY", 7 * DAY_SECONDS),
    ("FREQ=MONTHLY", 30 * DAY_SECONDS),
    ("FREQ=YEARLY", 365 * DAY_SECONDS),
)

# Relative width of the band accepted around each recurrence count
RECURRENCE_TOLERANCE = 0.10

REPEAT_MODE_DEFAULT = 0
REPEAT_MODE_MONTHLY = 1

RELATED_TO_REMOTE = {"due": "due_date", "scheduled": "start_date"}
RELATED_TO_LOCAL = {v: k for k, v in RELATED_TO_REMOTE.items()}

_DURATION_RE = re.compile(
    r"^(?P<sign>[+-])?P"
    r"(?:(?P<weeks>\d+)W)?"
    r"(?:(?P<days>\d+)D)?"
    r"(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?)?$"
)


# ---------------------------------------------------------------------------
# Dates


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def parse_local_date(value: Any) -> date | None:
    """Read a frontmatter date; datetimes are truncated to their date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or value == "":
        return None
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def date_to_remote(value: date | None) -> str | None:
    """Map a date-only value to a Vikunja datetime at the neutral hour."""
    if value is None:
        return None
    return f"{value.isoformat()}T{NEUTRAL_HOUR:02d}:00:00Z"


def remote_to_date(value: str | None) -> date | None:
    """Map a Vikunja datetime to a date-only value.

    The calendar day is taken in the offset the datetime was reported in;
    the sentinel zero/epoch-era year means "unset".
    """
    parsed = _parse_datetime(value)
    if parsed is None or parsed.year <= UNSET_YEAR_CUTOFF:
        return None
    return parsed.date()


def datetime_to_remote(value: Any) -> str | None:
    """Map a local datetime to RFC 3339, preserving the time of day.

    Naive values are interpreted in the machine's local timezone.
    """
    parsed = _parse_datetime(value)
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def remote_to_datetime(value: str | None) -> str | None:
    parsed = _parse_datetime(value)
    if parsed is None or parsed.year <= UNSET_YEAR_CUTOFF:
        return None
    return parsed.isoformat()


# ---------------------------------------------------------------------------
# Priority


def priority_to_remote(priority: str | None) -> int:
    """Map a local priority to Vikunja's 0-5 scale; unknown values become 0."""
    return PRIORITY_TO_REMOTE.get((priority or "").strip().lower(), 0)


def remote_to_priority(priority: Any) -> str:
    """Bucket a Vikunja priority: 0 none, 1 low, 2 normal, 3 and up high."""
    try:
        value = int(priority)
    except (TypeError, ValueError):
        return "none"
    if value <= 0:
        return "none"
    if value == 1:
        return "low"
    if value == 2:
        return "normal"
    return "high"


# ---------------------------------------------------------------------------
# Recurrence


def recurrence_to_remote(rule: str | None) -> tuple[int, int] | None:
    """Map an RRULE string to ``(repeat_after, repeat_mode)``.

    Returns None when the rule names none of the supported frequencies.
    """
    if not rule:
        return None
    upper = rule.upper()
    for token, seconds in RECURRENCE_SECONDS:
        if token in upper:
            return seconds, REPEAT_MODE_DEFAULT
    return None


def remote_to_recurrence(repeat_after: Any, repeat_mode: Any = REPEAT_MODE_DEFAULT) -> str | None:
    if repeat_mode == REPEAT_MODE_MONTHLY:
        return "FREQ=MONTHLY"
    try:
        seconds = int(repeat_after or 0)
    except (TypeError, ValueError):
        return None
    if seconds <= 0:
        return None
    for token, target in RECURRENCE_SECONDS:
        if abs(seconds - target) <= target * RECURRENCE_TOLERANCE:
            return token
    return None


# ---------------------------------------------------------------------------
# Reminders


def parse_duration(value: str | None) -> int | None:
    """Parse an ISO-8601 duration such as ``-PT15M`` into signed seconds."""
    if not value:
        return None
    match = _DURATION_RE.match(value.strip().upper())
    if not match or value.strip().upper() in ("P", "-P", "+P", "PT", "-PT", "+PT"):
        return None
    parts = {k: int(v) for k, v in match.groupdict().items() if k != "sign" and v}
    seconds = (
        parts.get("weeks", 0) * 7 * DAY_SECONDS
        + parts.get("days", 0) * DAY_SECONDS
        + parts.get("hours", 0) * 3600
        + parts.get("minutes", 0) * 60
        + parts.get("seconds", 0)
    )
    return -seconds if match.group("sign") == "-" else seconds


def format_duration(seconds: int) -> str:
    """Format signed seconds as an ISO-8601 duration."""
    if seconds == 0:
        return "PT0M"
    sign = "-" if seconds < 0 else ""
    remaining = abs(seconds)
    days, remaining = divmod(remaining, DAY_SECONDS)
    hours, remaining = divmod(remaining, 3600)
    minutes, secs = divmod(remaining, 60)

    text = f"{sign}P"
    if days:
        text += f"{days}D"
    if hours or minutes or secs:
        text += "T"
        if hours:
            text += f"{hours}H"
        if minutes:
            text += f"{minutes}M"
        if secs:
            text += f"{secs}S"
    return text


def reminder_to_remote(reminder: Reminder) -> dict[str, Any] | None:
    if reminder.type is ReminderType.RELATIVE:
        relative_to = RELATED_TO_REMOTE.get(reminder.related_to or "")
        period = parse_duration(reminder.offset)
        if relative_to is None or period is None:
            return None
        return {"relative_period": period, "relative_to": relative_to}

    absolute = datetime_to_remote(reminder.absolute_time)
    if absolute is None:
        return None
    return {"reminder": absolute}


def synthesize_reminder_id(
    kind: ReminderType,
    related_to: str | None,
    offset: str | None,
    absolute_time: str | None,
) -> str:
    """Derive a stable reminder id from its content.

    Vikunja reminders have no identity that survives a re-read, so the id is
    a function of what the reminder says.
    """
    key = f"{kind.value}|{related_to or ''}|{offset or ''}|{absolute_time or ''}"
    return "rem_" + hashlib.sha1(key.encode("utf-8")).hexdigest()[:8]


def remote_to_reminder(remote: VikunjaReminder) -> Reminder | None:
    if remote.is_relative:
        related_to = RELATED_TO_LOCAL.get(remote.relative_to or "")
        if related_to is None:
            return None
        offset = format_duration(remote.relative_period)
        return Reminder(
            id=synthesize_reminder_id(ReminderType.RELATIVE, related_to, offset, None),
            type=ReminderType.RELATIVE,
            related_to=related_to,
            offset=offset,
        )

    absolute = remote_to_datetime(remote.reminder)
    if absolute is None:
        return None
    return Reminder(
        id=synthesize_reminder_id(ReminderType.ABSOLUTE, None, None, absolute),
        type=ReminderType.ABSOLUTE,
        absolute_time=absolute,
    )


def reminders_to_remote(reminders: list[Reminder]) -> list[dict[str, Any]]:
    mapped = (reminder_to_remote(r) for r in reminders)
    return [m for m in mapped if m is not None]


def reminder_key(reminder: Reminder) -> tuple | None:
    """Content identity of a reminder as Vikunja stores it.

    Relative reminders are keyed on their anchor and offset only; Vikunja
    also reports the computed ``reminder`` time for them, which follows the
    task dates and is not part of the reminder itself.
    """
    mapped = reminder_to_remote(reminder)
    if mapped is None:
        return None
    if "reminder" in mapped:
        return (ReminderType.ABSOLUTE.value, mapped["reminder"])
    return (ReminderType.RELATIVE.value, mapped["relative_to"], mapped["relative_period"])


def remote_reminders_equal(local: list[Reminder], remote: list[VikunjaReminder]) -> bool:
    """Compare reminder sets by content, ignoring ids, descriptions and order."""
    left = sorted(k for k in map(reminder_key, local) if k is not None)
    converted = [r for r in map(remote_to_reminder, remote) if r is not None]
    right = sorted(k for k in map(reminder_key, converted) if k is not None)
    return left == right


def merge_remote_reminders(
    local: list[Reminder], remote: list[VikunjaReminder]
) -> list[Reminder]:
    """Local reminder list matching ``remote``.

    A remote reminder whose content matches an existing local one keeps the
    local entry with its id and description; only new reminders get a
    synthesized id.
    """
    unclaimed: dict[tuple, list[Reminder]] = {}
    for reminder in local:
        key = reminder_key(reminder)
        if key is not None:
            unclaimed.setdefault(key, []).append(reminder)

    merged: list[Reminder] = []
    for reminder in map(remote_to_reminder, remote):
        if reminder is None:
            continue
        candidates = unclaimed.get(reminder_key(reminder))
        merged.append(candidates.pop(0) if candidates else reminder)
    return merged


# ---------------------------------------------------------------------------
# Labels


def tags_to_label_titles(tags: list[str], task_tag: str) -> list[str]:
    """Tags that become Vikunja labels: everything except the task marker tag."""
    titles: list[str] = []
    seen: set[str] = set()
    for tag in tags:
        title = tag.strip().lstrip("#")
        if not title or title.lower() == task_tag.lower() or title.lower() in seen:
            continue
        seen.add(title.lower())
        titles.append(title)
    return titles


def label_titles_to_tags(titles: list[str], task_tag: str) -> list[str]:
    tags = [task_tag]
    for title in titles:
        if title.lower() != task_tag.lower() and title not in tags:
            tags.append(title)
    return tags


def labels_match_tags(titles: list[str], tags: list[str], task_tag: str) -> bool:
    wanted = {t.lower() for t in tags_to_label_titles(tags, task_tag)}
    return wanted == {t.lower() for t in titles}


# ---------------------------------------------------------------------------
# Whole records


def is_done(status: str | None, done_status: str = "done") -> bool:
    return (status or "").strip().lower() == done_status.lower()


def task_to_payload(
    task: LocalTask, description_html: str, done_status: str = "done"
) -> dict[str, Any]:
    """Build the create/update body for a task note."""
    recurrence = recurrence_to_remote(task.recurrence)
    payload: dict[str, Any] = {
        "title": task.title,
        "description": description_html,
        "done": is_done(task.status, done_status),
        "priority": priority_to_remote(task.priority),
        "due_date": date_to_remote(task.due),
        "start_date": date_to_remote(task.scheduled),
        "repeat_after": recurrence[0] if recurrence else 0,
        "repeat_mode": recurrence[1] if recurrence else REPEAT_MODE_DEFAULT,
        "reminders": reminders_to_remote(task.reminders),
    }
    return payload


def remote_to_local_task(
    remote: VikunjaTask,
    path: str,
    body: str,
    *,
    task_tag: str,
    done_status: str,
    open_status: str,
    synced_at: int,
) -> LocalTask:
    """Synthesize a new task note from a Vikunja task.

    Project links are left empty; relations are resolved separately once
    every fetched task has a local counterpart.
    """
    reminders = [r for r in map(remote_to_reminder, remote.reminders) if r is not None]
    return LocalTask(
        path=path,
        title=remote.title,
        status=done_status if remote.done else open_status,
        priority=remote_to_priority(remote.priority),
        due=remote_to_date(remote.due_date),
        scheduled=remote_to_date(remote.start_date),
        recurrence=remote_to_recurrence(remote.repeat_after, remote.repeat_mode),
        tags=label_titles_to_tags(remote.label_titles, task_tag),
        reminders=reminders,
        external_id=remote.id,
        last_sync=synced_at,
        body=body,
    )
