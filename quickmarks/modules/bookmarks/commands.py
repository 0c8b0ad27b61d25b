"""Toggle / go-to command handlers for the nine bookmark slots."""

import logging
import re

from quickmarks.modules.bookmarks.registry import InvalidSlotError, validate_slot
from quickmarks.modules.core.services.document import DocumentOpenError

log = logging.getLogger("quickmarks.bookmarks.commands")

_ACTION_RE = re.compile(r"^(toggle|goto)_(\d+)$")


def parse_action(action):
    """Split "toggle_3" / "goto_3" into ("toggle", 3). None if not a slot action."""
    m = _ACTION_RE.match(action or "")
    if not m:
        return None
    return m.group(1), int(m.group(2))


class BookmarkCommands:
    """User-facing actions on top of the registry and the document service."""

    def __init__(self, registry, doc_svc):
        self._registry = registry
        self._doc_svc = doc_svc

    def toggle_bookmark(self, slot):
        """Toggle *slot* at the cursor of the active document.

        Returns the ToggleResult, or None when no document is active.
        """
        validate_slot(slot)
        doc = self._doc_svc.get_active_document()
        if doc is None:
            log.debug("Toggle bookmark %d: no active document", slot)
            return None
        position = self._doc_svc.get_cursor_position(doc)
        if position is None:
            log.debug("Toggle bookmark %d: no cursor in active document", slot)
            return None

        document_id = self._doc_svc.document_id(doc)
        result = self._registry.toggle(slot, document_id, position)
        log.info("Bookmark %d %s at %s line %d",
                 slot, result.value, document_id, position.line)
        return result

    def go_to_bookmark(self, slot):
        """Reveal the location stored in *slot*.

        Returns the bookmark on success, None when the slot is empty or
        the document could not be opened (the user is told either way).
        """
        bookmark = self._registry.get(slot)
        if bookmark is None:
            self._doc_svc.show_info("Bookmark %d not found." % slot)
            return None

        try:
            doc = self._doc_svc.open_document(bookmark.document_id)
        except DocumentOpenError as e:
            log.error("Cannot open %s for bookmark %d: %s",
                      bookmark.document_id, slot, e)
            self._doc_svc.show_error(
                "Bookmark %d: cannot open %s (%s)" % (slot, bookmark.document_id, e))
            return None

        self._doc_svc.select_position(doc, bookmark.position)
        return bookmark

    def run(self, action):
        """Dispatch a "toggle_<n>" / "goto_<n>" action. Returns False if unknown."""
        parsed = parse_action(action)
        if parsed is None:
            return False
        kind, slot = parsed
        try:
            if kind == "toggle":
                self.toggle_bookmark(slot)
            else:
                self.go_to_bookmark(slot)
        except InvalidSlotError as e:
            log.warning("Ignoring action %s: %s", action, e)
        return True
