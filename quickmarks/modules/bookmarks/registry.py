"""BookmarkRegistry — the nine-slot bookmark table.

The registry is the only owner of "where are the bookmarks". Everything
else (renderer, commands, the host adapter) receives snapshots and reacts
to the ``bookmarks:changed`` event.
"""

import enum
import logging
from dataclasses import dataclass, replace

log = logging.getLogger("quickmarks.bookmarks.registry")

FIRST_SLOT = 1
LAST_SLOT = 9
SLOTS = range(FIRST_SLOT, LAST_SLOT + 1)


class InvalidSlotError(ValueError):
    """Raised for a slot number outside 1..9."""


@dataclass(frozen=True)
class Position:
    """Location inside a document: paragraph line and character column."""

    line: int
    column: int = 0

    def __post_init__(self):
        if self.line < 0 or self.column < 0:
            raise ValueError("Position must be non-negative: (%s, %s)"
                             % (self.line, self.column))


@dataclass(frozen=True)
class Bookmark:
    document_id: str
    position: Position

    @property
    def line(self):
        return self.position.line

    def same_line(self, document_id, position):
        """True for the same document and line; the column is ignored."""
        return (self.document_id == document_id
                and self.position.line == position.line)


@dataclass(frozen=True)
class LineEdit:
    """Coarse edit: *delta* lines inserted (>0) or removed (<0) after *line*."""

    line: int
    delta: int


class ToggleResult(enum.Enum):
    ADDED = "added"
    REMOVED = "removed"
    MOVED = "moved"


def validate_slot(slot):
    """Return *slot* if it is an int in 1..9, else raise InvalidSlotError."""
    if isinstance(slot, bool) or not isinstance(slot, int):
        raise InvalidSlotError("Bookmark slot must be an integer, got %r" % (slot,))
    if slot not in SLOTS:
        raise InvalidSlotError("Bookmark slot must be in %d..%d, got %d"
                               % (FIRST_SLOT, LAST_SLOT, slot))
    return slot


class BookmarkRegistry:
    """Fixed table of slots 1..9, each empty or holding one Bookmark.

    Every mutation is announced on the event bus (when one is given) as
    ``bookmarks:changed`` with ``slot``, ``previous`` and ``current``
    (either may be None), so listeners can refresh the old and the new
    document.
    """

    def __init__(self, events=None):
        self._slots = dict.fromkeys(SLOTS)
        self._events = events

    # ── Queries ──────────────────────────────────────────────────────

    def get(self, slot):
        return self._slots[validate_slot(slot)]

    def items(self):
        """Snapshot of occupied slots as [(slot, bookmark)], in slot order."""
        return [(slot, bm) for slot, bm in self._slots.items() if bm is not None]

    def for_document(self, document_id):
        return [(slot, bm) for slot, bm in self.items()
                if bm.document_id == document_id]

    def document_ids(self):
        return {bm.document_id for _, bm in self.items()}

    def __len__(self):
        return len(self.items())

    def __iter__(self):
        return iter(self.items())

    # ── Mutations ────────────────────────────────────────────────────

    def toggle(self, slot, document_id, position):
        """Create, remove or move the bookmark in *slot*.

        Empty slot: create. Same document and same line: remove.
        Anything else: overwrite with the new location.
        """
        existing = self.get(slot)
        if existing is None:
            self.set(slot, document_id, position)
            return ToggleResult.ADDED
        if existing.same_line(document_id, position):
            self.remove(slot)
            return ToggleResult.REMOVED
        self.set(slot, document_id, position)
        return ToggleResult.MOVED

    def set(self, slot, document_id, position):
        """Put a new bookmark in *slot*, replacing whatever was there."""
        bookmark = Bookmark(document_id, position)
        self._replace(validate_slot(slot), bookmark)
        return bookmark

    def remove(self, slot):
        """Empty *slot*. Returns the removed bookmark, or None."""
        previous = self.get(slot)
        if previous is not None:
            self._replace(slot, None)
        return previous

    def clear(self):
        for slot, _ in self.items():
            self.remove(slot)

    def rebase(self, document_id, edit):
        """Shift this document's bookmarks to follow *edit*.

        Bookmarks at or above ``edit.line`` stay put, bookmarks inside a
        removed range collapse onto ``edit.line``, the rest shift by
        ``edit.delta``. Returns the list of slots that moved.
        """
        if not edit.delta:
            return []
        moved = []
        for slot, bm in self.for_document(document_id):
            if bm.line <= edit.line:
                continue
            target = bm.line + edit.delta
            if target <= edit.line:
                position = Position(edit.line, 0)
            else:
                position = replace(bm.position, line=target)
            self._replace(slot, Bookmark(document_id, position))
            moved.append(slot)
        if moved:
            log.debug("Rebased slots %s in %s by %+d after line %d",
                      moved, document_id, edit.delta, edit.line)
        return moved

    def rename_document(self, old_id, new_id):
        """Re-point bookmarks after a document got a new id (e.g. Save As)."""
        moved = []
        for slot, bm in self.for_document(old_id):
            self._replace(slot, Bookmark(new_id, bm.position))
            moved.append(slot)
        return moved

    def _replace(self, slot, bookmark):
        previous = self._slots[slot]
        self._slots[slot] = bookmark
        log.debug("Slot %d: %s -> %s", slot, previous, bookmark)
        if self._events is not None:
            self._events.emit("bookmarks:changed", slot=slot,
                              previous=previous, current=bookmark)
