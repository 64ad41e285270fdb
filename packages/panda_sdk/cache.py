"""In-memory cache of next-entry arguments per author and target."""

from __future__ import annotations

from packages.panda_sdk.domain import CacheKey, LogPosition


class LogPositionCache:
    """Single-use slots holding the position of the next entry.

    A slot is keyed by ``(author, target)`` where target is a schema id or a
    document id. ``get`` consumes the slot so one position is never used to
    sign two entries. ``set`` overwrites. The cache does no locking: callers
    publishing to the same key must serialize among themselves.
    """

    def __init__(self) -> None:
        self._slots: dict[CacheKey, LogPosition] = {}

    def get(self, author: str, target: str) -> LogPosition | None:
        """Return and remove the cached position, or ``None`` on a miss."""
        return self._slots.pop(CacheKey(author, target), None)

    def set(self, author: str, target: str, position: LogPosition) -> None:
        """Store the position for the next entry, replacing any previous one."""
        self._slots[CacheKey(author, target)] = position

    def clear(self) -> None:
        self._slots.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._slots

    def __len__(self) -> int:
        return len(self._slots)
