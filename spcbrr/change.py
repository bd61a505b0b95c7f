"""Whether something was modified or not."""

from __future__ import annotations

from enum import Enum


class Change(Enum):
    """A change marker; combining with ``|`` yields MODIFIED if either side is."""

    UNMODIFIED = 0
    MODIFIED = 1

    def __or__(self, other: object) -> "Change":
        if not isinstance(other, Change):
            return NotImplemented
        if self is Change.MODIFIED or other is Change.MODIFIED:
            return Change.MODIFIED
        return Change.UNMODIFIED