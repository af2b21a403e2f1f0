"""Write updates to task note frontmatter while preserving structure."""

import os
import re
import tempfile
from datetime import date, datetime
from io import StringIO
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML

from obsidian_vikunja_sync.error_codes import ErrorCode
from obsidian_vikunja_sync.exceptions import TaskFileError
from obsidian_vikunja_sync.utils.logging import get_logger

logger = get_logger(__name__)

_FRONTMATTER_RE = re.compile(r"^---[ \t]*\n(?:(.*?)\n)?---[ \t]*(?:\n|$)", re.DOTALL)


def _yaml() -> YAML:
    yaml = YAML()
    yaml.preserve_quotes = True
    yaml.indent(mapping=2, sequence=4, offset=2)
    yaml.width = 4096
    return yaml


def _to_yaml_value(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _dump(data: Any) -> str:
    output = StringIO()
    _yaml().dump(data, output)
    return output.getvalue()


def split_raw(content: str) -> tuple[str | None, str]:
    """Split raw note text into frontmatter text (None if absent) and body."""
    match = _FRONTMATTER_RE.match(content)
    if not match:
        return None, content
    return match.group(1) or "", content[match.end():]


def render_task_file(frontmatter: dict[str, Any], body: str) -> str:
    """Render a complete note from a frontmatter mapping and a body.

    Keys whose value is None are left out.
    """
    data = {k: _to_yaml_value(v) for k, v in frontmatter.items() if v is not None}
    text = f"---\n{_dump(data)}---\n"
    if body:
        text += body if body.startswith("\n") else f"\n{body}"
        if not text.endswith("\n"):
            text += "\n"
    return text


def write_atomic(file_path: Path, content: str) -> None:
    """Replace a file's content in one rename so readers never see a partial write."""
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{file_path.name}.", suffix=".tmp", dir=file_path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                handle.write(content)
            os.replace(tmp_name, file_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as e:
        msg = f"Failed to write {file_path}: {e}"
        raise TaskFileError(
            msg,
            error_code=ErrorCode.VLT_WRITE_FAILED.value,
            context={"path": str(file_path)},
        ) from e


def _read(file_path: Path) -> str:
    try:
        return file_path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        msg = f"Task note not found: {file_path}"
        raise TaskFileError(
            msg,
            error_code=ErrorCode.VLT_FILE_NOT_FOUND.value,
            context={"path": str(file_path)},
        ) from e
    except (OSError, UnicodeDecodeError) as e:
        msg = f"Failed to read {file_path}: {e}"
        raise TaskFileError(
            msg,
            error_code=ErrorCode.VLT_FILE_NOT_FOUND.value,
            context={"path": str(file_path)},
        ) from e


def update_frontmatter(file_path: Path, updates: dict[str, Any]) -> None:
    """
    Update specific fields in a note's YAML frontmatter while preserving structure.

    Uses ruamel.yaml to maintain formatting, comments, and field order. A value
    of None removes the key. A note without frontmatter gets a new block.

    Args:
        file_path: Path to the markdown file
        updates: Dict of field names to new values

    Raises:
        TaskFileError: If the note cannot be read, parsed or written
    """
    content = _read(file_path)
    frontmatter_text, body = split_raw(content)

    yaml = _yaml()
    try:
        data = yaml.load(StringIO(frontmatter_text or "")) or {}
    except Exception as e:
        msg = f"Invalid YAML in {file_path}: {e}"
        raise TaskFileError(
            msg,
            error_code=ErrorCode.VLT_FRONTMATTER_INVALID.value,
            context={"path": str(file_path)},
        ) from e
    if not isinstance(data, dict):
        msg = f"Frontmatter of {file_path} is not a mapping"
        raise TaskFileError(
            msg,
            error_code=ErrorCode.VLT_FRONTMATTER_INVALID.value,
            context={"path": str(file_path)},
        )

    for key, value in updates.items():
        if value is None:
            data.pop(key, None)
        else:
            data[key] = _to_yaml_value(value)

    if frontmatter_text is None and body and not body.startswith("\n"):
        body = f"\n{body}"
    write_atomic(file_path, f"---\n{_dump(data)}---\n{body}")
    logger.debug("frontmatter_updated", file=str(file_path), fields=list(updates))


def replace_body(file_path: Path, body: str) -> None:
    """Overwrite the body of a note, leaving its frontmatter block untouched."""
    content = _read(file_path)
    match = _FRONTMATTER_RE.match(content)
    head = content[: match.end()] if match else ""
    if head and not head.endswith("\n"):
        head += "\n"
    if head and body and not body.startswith("\n"):
        body = f"\n{body}"
    if body and not body.endswith("\n"):
        body += "\n"
    write_atomic(file_path, head + body)
    logger.debug("body_replaced", file=str(file_path))
