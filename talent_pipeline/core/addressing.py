"""
Nested Collection Addressing Module

Requirements inside a client record, and candidates and applications inside a
requirement, are addressed by their zero-based position in the parent list at
the moment of the read that produced it. Deleting at position i shifts every
later entry down by one, so a position cached before a deletion may now name a
different entry or run past the end.

Each helper takes an optional `uid`: the uid the caller saw at that position.
When given, a mismatch raises StaleReferenceError instead of silently acting on
whatever entry has moved into that slot. Out-of-range positions (including
negative ones, which Python would otherwise count from the end) raise
NotFoundError.
"""
from typing import List, Optional, TypeVar

from talent_pipeline.core.errors import NotFoundError, StaleReferenceError

T = TypeVar("T")


def resolve(items: List[T], position: int, uid: Optional[str] = None, kind: str = "Entry") -> T:
    """Return the entry at `position`, checking it is still the one identified by `uid`."""
    if not isinstance(position, int) or isinstance(position, bool) or not 0 <= position < len(items):
        raise NotFoundError(f"{kind} not found at position {position}")
    item = items[position]
    if uid is not None and getattr(item, "uid", None) != uid:
        raise StaleReferenceError(
            f"{kind} at position {position} has changed since it was read; reload and try again"
        )
    return item


def position_of(items: List[T], uid: str, kind: str = "Entry") -> int:
    """Re-resolve a uid to its current position."""
    for position, item in enumerate(items):
        if getattr(item, "uid", None) == uid:
            return position
    raise NotFoundError(f"{kind} {uid} no longer exists")


def append(items: List[T], item: T) -> int:
    """Add at the end and return the new entry's position."""
    items.append(item)
    return len(items) - 1


def replace_at(items: List[T], position: int, item: T, uid: Optional[str] = None, kind: str = "Entry") -> T:
    """Swap the entry at `position` in place. Returns the entry that was there."""
    previous = resolve(items, position, uid, kind)
    items[position] = item
    return previous


def remove_at(items: List[T], position: int, uid: Optional[str] = None, kind: str = "Entry") -> T:
    """Delete the entry at `position`; later entries shift down by one."""
    resolve(items, position, uid, kind)
    return items.pop(position)
