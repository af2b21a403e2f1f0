"""YAML frontmatter parsing for task notes."""

from __future__ import annotations

from typing import Any

import frontmatter as frontmatter_lib

from obsidian_vikunja_sync.domain.entities.task import LocalTask, Reminder, ReminderType
from obsidian_vikunja_sync.error_codes import ErrorCode
from obsidian_vikunja_sync.exceptions import TaskFileError
from obsidian_vikunja_sync.sync.field_translator import parse_local_date
from obsidian_vikunja_sync.utils.logging import get_logger

logger = get_logger(__name__)

# Frontmatter keys owned by the sync engine
VIKUNJA_ID_FIELD = "vikunja_id"
LAST_SYNC_FIELD = "vikunja_last_sync"
IGNORE_FIELD = "vikunja_ignore"


def split_frontmatter(content: str, path: str) -> tuple[dict[str, Any], str]:
    """Split note content into its frontmatter mapping and body.

    Raises:
        TaskFileError: If the YAML block is malformed
    """
    try:
        post = frontmatter_lib.loads(content)
    except Exception as e:
        msg = f"Invalid YAML in {path}: {e}"
        raise TaskFileError(
            msg,
            error_code=ErrorCode.VLT_FRONTMATTER_INVALID.value,
            context={"path": path},
        ) from e
    metadata = post.metadata if isinstance(post.metadata, dict) else {}
    return dict(metadata), post.content


def is_task_frontmatter(data: dict[str, Any], task_tag: str) -> bool:
    tags = normalize_string_list(data.get("tags"))
    wanted = task_tag.lower()
    return any(tag.lstrip("#").lower() == wanted for tag in tags)


def parse_task(data: dict[str, Any], body: str, path: str) -> LocalTask:
    """Build a LocalTask from parsed frontmatter."""
    title = data.get("title")
    if not title:
        title = path.rsplit("/", 1)[-1]
        if title.endswith(".md"):
            title = title[:-3]

    return LocalTask(
        path=path,
        title=str(title),
        status=str(data.get("status") or "open"),
        priority=str(data.get("priority") or "none"),
        due=parse_local_date(data.get("due")),
        scheduled=parse_local_date(data.get("scheduled")),
        recurrence=str(data["recurrence"]) if data.get("recurrence") else None,
        tags=normalize_string_list(data.get("tags")),
        projects=normalize_link_list(data.get("projects")),
        reminders=_parse_reminders(data.get("reminders"), path),
        external_id=_parse_int(data.get(VIKUNJA_ID_FIELD)),
        last_sync=_parse_int(data.get(LAST_SYNC_FIELD)),
        ignore=bool(data.get(IGNORE_FIELD)),
        body=body,
    )


def task_to_frontmatter(task: LocalTask) -> dict[str, Any]:
    """Serialize the structured fields of a task for writing.

    Unset optional fields map to None, which the writer removes.
    """
    return {
        "title": task.title,
        "status": task.status,
        "priority": task.priority,
        "due": task.due.isoformat() if task.due else None,
        "scheduled": task.scheduled.isoformat() if task.scheduled else None,
        "recurrence": task.recurrence,
        "tags": list(task.tags),
        "projects": list(task.projects) or None,
        "reminders": [r.to_frontmatter() for r in task.reminders] or None,
        VIKUNJA_ID_FIELD: task.external_id,
        LAST_SYNC_FIELD: task.last_sync,
    }


def _parse_int(value: Any) -> int | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_reminders(value: Any, path: str) -> list[Reminder]:
    if not isinstance(value, list):
        return []

    reminders: list[Reminder] = []
    for index, item in enumerate(value):
        if not isinstance(item, dict):
            continue
        try:
            kind = ReminderType(str(item.get("type", "")).lower())
        except ValueError:
            logger.debug("reminder_type_unknown", path=path, index=index)
            continue
        reminders.append(
            Reminder(
                id=str(item.get("id") or f"rem_{index}"),
                type=kind,
                related_to=item.get("relatedTo"),
                offset=item.get("offset"),
                absolute_time=str(item["absoluteTime"]) if item.get("absoluteTime") else None,
                description=item.get("description"),
            )
        )
    return reminders


def normalize_string_list(value: Any) -> list[str]:
    """Normalize a value into a list of non-empty strings."""
    if value is None:
        return []
    items = value if isinstance(value, list) else [value]

    normalized: list[str] = []
    for item in items:
        if item is None:
            continue
        text = str(item).strip()
        if text:
            normalized.append(text)
    return normalized


def normalize_link_list(value: Any) -> list[str]:
    """Normalize project references into wikilink strings.

    Unquoted ``[[link]]`` in YAML parses as a nested list; it is folded back
    into its wikilink form.
    """
    if value is None:
        return []
    items = value if isinstance(value, list) else [value]

    normalized: list[str] = []
    for item in items:
        if item is None:
            continue
        if isinstance(item, list):
            while isinstance(item, list) and item:
                item = item[0]
            if item is None or isinstance(item, list):
                continue
            text = f"[[{str(item).strip()}]]"
        else:
            text = str(item).strip()
        if text:
            normalized.append(text)
    return normalized
