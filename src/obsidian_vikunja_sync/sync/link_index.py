"""Incrementally maintained index from Vikunja task id to note path."""

from __future__ import annotations

from collections.abc import Iterable

from obsidian_vikunja_sync.utils.logging import get_logger

logger = get_logger(__name__)


class ExternalIdIndex:
    """Maps ``vikunja_id`` to the path of the note holding it.

    At most one note may hold a given id. When a second note claims an id
    that is already indexed, the first holder is kept and the conflict is
    logged.
    """

    def __init__(self) -> None:
        self._by_id: dict[int, str] = {}
        self._by_path: dict[str, int] = {}
        self.built = False

    def rebuild(self, pairs: Iterable[tuple[str, int | None]]) -> None:
        self._by_id.clear()
        self._by_path.clear()
        for path, external_id in pairs:
            self.set(path, external_id)
        self.built = True
        logger.debug("external_id_index_built", entries=len(self))

    def set(self, path: str, external_id: int | None) -> None:
        previous = self._by_path.get(path)
        if previous is not None and previous != external_id:
            self._by_path.pop(path, None)
            if self._by_id.get(previous) == path:
                del self._by_id[previous]

        if external_id is None:
            return

        holder = self._by_id.get(external_id)
        if holder is not None and holder != path:
            logger.warning(
                "duplicate_vikunja_id",
                vikunja_id=external_id,
                path=path,
                existing_path=holder,
            )
            return

        self._by_id[external_id] = path
        self._by_path[path] = external_id

    def remove(self, path: str) -> None:
        external_id = self._by_path.pop(path, None)
        if external_id is not None and self._by_id.get(external_id) == path:
            del self._by_id[external_id]

    def get(self, external_id: int) -> str | None:
        return self._by_id.get(external_id)

    def __len__(self) -> int:
        return len(self._by_id)
