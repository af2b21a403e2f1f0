"""Task note store backed by markdown files in an Obsidian vault."""

from __future__ import annotations

import re
from collections.abc import Callable
from pathlib import Path, PurePosixPath
from typing import Any

from obsidian_vikunja_sync.domain.entities.task import (
    ChangeKind,
    LocalTask,
    MutationOrigin,
    TaskChangeEvent,
)
from obsidian_vikunja_sync.domain.interfaces.task_store import ChangeListener, ITaskStore
from obsidian_vikunja_sync.error_codes import ErrorCode
from obsidian_vikunja_sync.exceptions import TaskFileError
from obsidian_vikunja_sync.obsidian.frontmatter import (
    is_task_frontmatter,
    parse_task,
    split_frontmatter,
    task_to_frontmatter,
)
from obsidian_vikunja_sync.obsidian.frontmatter_writer import (
    render_task_file,
    replace_body,
    update_frontmatter,
    write_atomic,
)
from obsidian_vikunja_sync.obsidian.links import parse_link_to_path
from obsidian_vikunja_sync.sync.link_index import ExternalIdIndex
from obsidian_vikunja_sync.utils.logging import get_logger

logger = get_logger(__name__)

# Characters Obsidian refuses in file names
_UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|#^\[\]]+')
_MAX_STEM_LENGTH = 120

Fingerprint = tuple[int, int]


def sanitize_filename(title: str) -> str:
    """Turn a task title into a safe note file stem."""
    stem = _UNSAFE_FILENAME_RE.sub(" ", title)
    stem = re.sub(r"\s+", " ", stem).strip().strip(".")
    return stem[:_MAX_STEM_LENGTH].rstrip() or "Untitled task"


def iter_markdown_files(vault_path: Path):
    """Yield markdown files of a vault, skipping hidden directories."""
    for md_file in vault_path.rglob("*.md"):
        relative = md_file.relative_to(vault_path)
        if any(part.startswith(".") for part in relative.parts):
            continue
        yield md_file


class VaultTaskStore(ITaskStore):
    """Reads and writes task notes in a vault directory.

    The store keeps the Vikunja id index current on every write it performs
    and on every change reported by the vault watcher. For each write it
    remembers the resulting file fingerprint (mtime and size) together with
    the write's origin, so the watcher's later report of the same
    modification is attributed to that origin instead of to the user.
    """

    def __init__(
        self,
        vault_path: Path,
        task_tag: str = "task",
        tasks_folder: str = "TaskNotes/Tasks",
    ):
        self.vault_path = Path(vault_path)
        self.task_tag = task_tag
        self.tasks_folder = tasks_folder.strip("/")
        self._index = ExternalIdIndex()
        self._written: dict[str, tuple[MutationOrigin, Fingerprint]] = {}
        self._listeners: list[ChangeListener] = []

    # Paths

    def _abs(self, path: str) -> Path:
        return self.vault_path / PurePosixPath(path)

    def _rel(self, file_path: Path) -> str:
        return file_path.relative_to(self.vault_path).as_posix()

    def _fingerprint(self, path: str) -> Fingerprint | None:
        try:
            stat = self._abs(path).stat()
        except OSError:
            return None
        return stat.st_mtime_ns, stat.st_size

    # Reads

    def _read_task(self, path: str) -> LocalTask | None:
        file_path = self._abs(path)
        try:
            content = file_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            msg = f"Failed to read {path}: {e}"
            raise TaskFileError(
                msg,
                error_code=ErrorCode.VLT_FILE_NOT_FOUND.value,
                context={"path": path},
            ) from e

        data, body = split_frontmatter(content, path)
        if not is_task_frontmatter(data, self.task_tag):
            return None
        return parse_task(data, body, path)

    async def list_task_paths(self) -> list[str]:
        paths: list[str] = []
        for md_file in sorted(iter_markdown_files(self.vault_path)):
            path = self._rel(md_file)
            try:
                task = self._read_task(path)
            except TaskFileError as e:
                logger.warning("task_note_unreadable", path=path, error=str(e))
                continue
            if task is not None:
                paths.append(path)
        return paths

    async def get_task(self, path: str) -> LocalTask | None:
        return self._read_task(path)

    async def read_body(self, path: str) -> str:
        file_path = self._abs(path)
        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            msg = f"Failed to read {path}: {e}"
            raise TaskFileError(
                msg,
                error_code=ErrorCode.VLT_FILE_NOT_FOUND.value,
                context={"path": path},
            ) from e
        _, body = split_frontmatter(content, path)
        return body

    # Writes

    def _read_quietly(self, path: str) -> LocalTask | None:
        try:
            return self._read_task(path)
        except TaskFileError as e:
            logger.debug("task_note_unreadable", path=path, error=str(e))
            return None

    def _after_write(
        self,
        path: str,
        kind: ChangeKind,
        origin: MutationOrigin,
        task: LocalTask | None = None,
    ) -> None:
        fingerprint = self._fingerprint(path)
        if fingerprint is not None:
            self._written[path] = (origin, fingerprint)
        self._reindex(path, self._read_quietly(path))
        self._emit(TaskChangeEvent(path=path, kind=kind, origin=origin, task=task))

    async def update_fields(
        self, path: str, updates: dict[str, Any], *, origin: MutationOrigin
    ) -> None:
        update_frontmatter(self._abs(path), updates)
        self._after_write(path, ChangeKind.MODIFIED, origin)

    async def write_body(self, path: str, body: str, *, origin: MutationOrigin) -> None:
        replace_body(self._abs(path), body)
        self._after_write(path, ChangeKind.MODIFIED, origin)

    async def create_task(self, task: LocalTask, *, origin: MutationOrigin) -> str:
        path = self._unique_path(sanitize_filename(task.title))
        task.path = path
        write_atomic(self._abs(path), render_task_file(task_to_frontmatter(task), task.body))
        logger.debug("task_note_written", path=path, origin=origin.value)
        self._after_write(path, ChangeKind.CHANGED, origin, task)
        return path

    def _unique_path(self, stem: str) -> str:
        folder = PurePosixPath(self.tasks_folder) if self.tasks_folder else PurePosixPath()
        candidate = (folder / f"{stem}.md").as_posix()
        counter = 2
        while self._abs(candidate).exists():
            candidate = (folder / f"{stem} {counter}.md").as_posix()
            counter += 1
        return candidate

    # Lookup

    async def _ensure_index(self) -> None:
        if self._index.built:
            return
        pairs: list[tuple[str, int | None]] = []
        for path in await self.list_task_paths():
            task = self._read_task(path)
            if task is not None:
                pairs.append((path, task.external_id))
        self._index.rebuild(pairs)

    def _reindex(self, path: str, task: LocalTask | None) -> None:
        if not self._index.built:
            return
        if task is None:
            self._index.remove(path)
        else:
            self._index.set(path, task.external_id)

    async def find_by_external_id(self, external_id: int) -> LocalTask | None:
        await self._ensure_index()
        path = self._index.get(external_id)
        if path is None:
            return None
        task = self._read_task(path)
        if task is not None and task.external_id == external_id:
            return task

        # Stale entry: the note changed without the watcher noticing
        logger.debug("external_id_index_stale", vikunja_id=external_id, path=path)
        self._index.built = False
        await self._ensure_index()
        path = self._index.get(external_id)
        return self._read_task(path) if path else None

    async def resolve_link(self, link: str, source_path: str) -> str | None:
        target = parse_link_to_path(link)
        if not target:
            return None
        if not target.endswith(".md"):
            target += ".md"

        source_dir = PurePosixPath(source_path).parent
        for candidate in (PurePosixPath(target), source_dir / target):
            if self._abs(candidate.as_posix()).is_file():
                return candidate.as_posix()

        # Obsidian resolves bare note names anywhere in the vault
        name = PurePosixPath(target).name
        matches = sorted(
            self._rel(f) for f in iter_markdown_files(self.vault_path) if f.name == name
        )
        return matches[0] if matches else None

    # Notifications

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: TaskChangeEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    def handle_file_change(self, path: str) -> None:
        """Report a modification detected on disk.

        A change whose fingerprint matches the store's own last write keeps
        that write's origin and is reported as a file modification. Anything
        else is a local edit; when the file parses as a task note it is
        reported as a changed record carrying the parsed task, which covers
        notes created or edited outside the sync engine.
        """
        origin = MutationOrigin.LOCAL_EDIT
        recorded = self._written.pop(path, None)
        if recorded is not None and recorded[1] == self._fingerprint(path):
            origin = recorded[0]

        task = self._read_quietly(path)
        self._reindex(path, task)
        logger.debug("vault_file_modified", path=path, origin=origin.value)
        if origin is MutationOrigin.LOCAL_EDIT and task is not None:
            self._emit(
                TaskChangeEvent(path=path, kind=ChangeKind.CHANGED, origin=origin, task=task)
            )
        else:
            self._emit(TaskChangeEvent(path=path, kind=ChangeKind.MODIFIED, origin=origin))

    def handle_file_removed(self, path: str) -> None:
        self._written.pop(path, None)
        self._index.remove(path)
        logger.debug("vault_file_removed", path=path)
