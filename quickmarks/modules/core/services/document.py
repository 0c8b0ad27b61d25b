"""DocumentService — the Writer side of QuickMarks.

Everything that touches UNO lives here: finding the active document and
its cursor, opening/focusing documents, moving the view cursor, showing
notices, applying marker batches and turning LibreOffice document events
into event bus events.

Lines are body-text paragraph indexes (the same numbering the paragraph
enumeration yields); columns are character offsets inside the paragraph.

Writer has no overlay decorations, so a marker batch is applied as text
bookmarks named ``"QuickMarks 3: [3] Bookmark 3"`` spanning the bookmarked
paragraph. Writer shows the name on hover and in the Navigator. Markers
are found again by their reserved name prefix, so stale ones are removed
even after a restart. They are stripped before every save and put back
afterwards; they never reach the file.
"""

import logging
import re
import threading

from quickmarks.framework.service_base import ServiceBase
from quickmarks.framework.uno_context import get_ctx
from quickmarks.modules.bookmarks.registry import LineEdit, Position

log = logging.getLogger("quickmarks.document")

WRITER_SERVICE = "com.sun.star.text.TextDocument"

# com.sun.star.frame.InfobarType
INFOBAR_INFO = 0
INFOBAR_DANGER = 3
INFOBAR_ID = "quickmarks.notice"

_ACTIVATE_EVENTS = ("OnFocus",)
_OPEN_EVENTS = ("OnLoad", "OnNew")
_VIEW_EVENTS = ("OnLoad", "OnNew", "OnViewCreated", "OnViewClosed")
_CLOSE_EVENTS = ("OnUnload",)
_SAVE_AS_EVENTS = ("OnSaveAsDone", "OnSaveToDone")
_SAVE_EVENTS = ("OnSave", "OnSaveAs", "OnSaveTo")
_SAVE_DONE_EVENTS = ("OnSaveDone", "OnSaveAsDone", "OnSaveToDone",
                     "OnSaveFailed", "OnSaveAsFailed", "OnSaveToFailed")

MARKER_PREFIX = "QuickMarks "
_MARKER_RE = re.compile(r"^QuickMarks ([1-9]): ")


class DocumentOpenError(Exception):
    """Raised when a bookmarked document cannot be focused or loaded."""


def derive_line_edit(old_count, new_count, cursor_line):
    """Guess the LineEdit behind a paragraph count change.

    Typing inserts at the cursor: after inserting *delta* paragraphs the
    cursor sits on the last new one, after removing it sits on the line
    the removed ones were joined into. Returns None when nothing moved.
    """
    if old_count is None or cursor_line is None:
        return None
    delta = new_count - old_count
    if not delta:
        return None
    line = cursor_line - delta if delta > 0 else cursor_line
    return LineEdit(line=max(0, line), delta=delta)


def marker_name(highlight, label):
    return "%s%d: %s %s" % (MARKER_PREFIX, highlight.slot, label.text, highlight.hover)


def marker_slot(name):
    """Slot of a marker bookmark name, None for any other bookmark."""
    m = _MARKER_RE.match(name or "")
    return int(m.group(1)) if m else None


class DocumentService(ServiceBase):
    name = "document"

    def __init__(self):
        self._desktop = None
        self._events = None
        self._broadcaster = None
        self._global_listener = None
        self._modify_listeners = {}  # id(model) -> (model, listener)
        self._para_counts = {}       # id(model) -> paragraph count
        self._known_ids = {}         # id(model) -> document_id
        self._batches = {}           # id(model) -> last RenderedMarkerSet
        self._saving = set()         # id(model) while a save is running
        self._applying = False
        self._notice_timer = None
        self.notice_timeout = 4

    def initialize(self, ctx):
        self._install_global_listener(ctx)

    def set_events(self, events):
        self._events = events

    def shutdown(self):
        if self._notice_timer is not None:
            self._notice_timer.cancel()
        for model, listener in list(self._modify_listeners.values()):
            try:
                model.removeModifyListener(listener)
            except Exception:
                log.debug("removeModifyListener failed", exc_info=True)
        self._modify_listeners.clear()
        if self._broadcaster is not None and self._global_listener is not None:
            try:
                self._broadcaster.removeDocumentEventListener(self._global_listener)
            except Exception:
                log.debug("removeDocumentEventListener failed", exc_info=True)
        self._broadcaster = None
        self._global_listener = None

    # ── Desktop / documents ───────────────────────────────────────────

    def _get_desktop(self):
        if self._desktop is None:
            ctx = get_ctx()
            if ctx:
                self._desktop = ctx.getServiceManager().createInstanceWithContext(
                    "com.sun.star.frame.Desktop", ctx)
        return self._desktop

    def is_writer(self, model):
        try:
            return model.supportsService(WRITER_SERVICE)
        except Exception:
            return False

    def get_active_document(self):
        """Return the active Writer model, or None."""
        desktop = self._get_desktop()
        if desktop is None:
            return None
        try:
            model = desktop.getCurrentComponent()
        except Exception:
            return None
        return model if model is not None and self.is_writer(model) else None

    def _iter_documents(self):
        desktop = self._get_desktop()
        if desktop is None:
            return
        enum = desktop.getComponents().createEnumeration()
        while enum.hasMoreElements():
            model = enum.nextElement()
            if self.is_writer(model):
                yield model

    def get_visible_documents(self):
        """Writer models with at least one visible frame."""
        visible = []
        for model in self._iter_documents():
            try:
                window = model.getCurrentController().getFrame().getContainerWindow()
                if window.isVisible():
                    visible.append(model)
            except Exception:
                log.debug("Skipping document without a frame", exc_info=True)
        return visible

    def document_id(self, model):
        """Stable id for a document: its URL, or a runtime id while unsaved."""
        try:
            url = model.getURL()
        except Exception:
            url = ""
        if url:
            return url
        try:
            return "private:untitled/%s" % model.RuntimeUID
        except Exception:
            return "private:untitled/%s" % id(model)

    def find_document(self, document_id):
        for model in self._iter_documents():
            if self.document_id(model) == document_id:
                return model
        return None

    def open_document(self, document_id):
        """Focus the document if open, else load it. Raises DocumentOpenError."""
        model = self.find_document(document_id)
        if model is not None:
            try:
                frame = model.getCurrentController().getFrame()
                frame.getContainerWindow().toFront()
                frame.activate()
            except Exception as e:
                raise DocumentOpenError(str(e)) from e
            return model

        if document_id.startswith("private:"):
            raise DocumentOpenError("document was closed without being saved")
        desktop = self._get_desktop()
        if desktop is None:
            raise DocumentOpenError("no desktop available")
        try:
            model = desktop.loadComponentFromURL(document_id, "_default", 0, ())
        except Exception as e:
            raise DocumentOpenError(str(e)) from e
        if model is None:
            raise DocumentOpenError("LibreOffice could not load the document")
        return model

    # ── Paragraph addressing ─────────────────────────────────────────

    def _paragraphs(self, model):
        enum = model.getText().createEnumeration()
        paras = []
        while enum.hasMoreElements():
            paras.append(enum.nextElement())
        return paras

    def paragraph_count(self, model):
        try:
            return len(self._paragraphs(model))
        except Exception:
            return None

    def get_cursor_position(self, model):
        """Position of the view cursor, or None outside the body text."""
        try:
            text = model.getText()
            start = model.getCurrentController().getViewCursor().getStart()
            for index, para in enumerate(self._paragraphs(model)):
                if not para.supportsService("com.sun.star.text.Paragraph"):
                    continue
                if (text.compareRegionStarts(start, para.getStart()) <= 0
                        and text.compareRegionStarts(start, para.getEnd()) >= 0):
                    cursor = text.createTextCursorByRange(para.getStart())
                    cursor.gotoRange(start, True)
                    return Position(index, len(cursor.getString()))
        except Exception:
            log.debug("Cursor is not in the body text", exc_info=True)
        return None

    def _paragraph_at(self, model, line):
        paras = self._paragraphs(model)
        if not paras:
            return None
        return paras[min(line, len(paras) - 1)]

    def select_position(self, model, position):
        """Collapse the selection at *position* and scroll it into view."""
        try:
            para = self._paragraph_at(model, position.line)
            if para is None:
                return
            text = model.getText()
            cursor = text.createTextCursorByRange(para.getStart())
            length = len(para.getString()) if hasattr(para, "getString") else 0
            cursor.goRight(min(position.column, length), False)
            view_cursor = model.getCurrentController().getViewCursor()
            view_cursor.gotoRange(cursor, False)
        except Exception:
            log.exception("Failed to move the cursor to line %d", position.line)

    # ── Markers ──────────────────────────────────────────────────────

    def apply_markers(self, model, markers):
        """Replace every marker bookmark in the document with *markers*.

        While the document is being saved the batch is only remembered;
        it is written once the save has finished.
        """
        self._batches[id(model)] = markers
        if id(model) in self._saving:
            return
        self._write_marks(model, zip(markers.highlights, markers.labels))

    def markers_intact(self, model, markers):
        """True if the document shows exactly *markers*, each on its paragraph."""
        expected = {marker_name(h, l): h.start.line
                    for h, l in zip(markers.highlights, markers.labels)}
        try:
            bookmarks = model.getBookmarks()
            present = {n for n in bookmarks.getElementNames() if marker_slot(n)}
            if present != set(expected):
                return False
            text = model.getText()
            for name, line in expected.items():
                para = self._paragraph_at(model, line)
                anchor = bookmarks.getByName(name).getAnchor()
                if para is None or text.compareRegionStarts(
                        anchor.getStart(), para.getStart()) != 0:
                    return False
        except Exception:
            log.debug("Cannot inspect markers", exc_info=True)
            return False
        return True

    def clear_markers(self, model):
        """Strip all marker bookmarks, keeping the modified flag."""
        self._write_marks(model, ())

    def _write_marks(self, model, pairs):
        try:
            was_modified = model.isModified()
        except Exception:
            was_modified = True

        self._applying = True
        undo = self._lock_undo(model)
        try:
            model.lockControllers()
            try:
                self._remove_marks(model)
                for highlight, label in pairs:
                    self._insert_mark(model, highlight, label)
            finally:
                model.unlockControllers()
            if not was_modified:
                model.setModified(False)
        except Exception:
            log.exception("Failed to apply markers to %s", self.document_id(model))
        finally:
            if undo is not None:
                undo.unlock()
            self._applying = False

    def _lock_undo(self, model):
        """Keep marker churn out of the user's undo stack."""
        try:
            undo = model.getUndoManager()
            undo.lock()
        except Exception:
            log.debug("No undo manager to lock", exc_info=True)
            return None
        return undo

    def _insert_mark(self, model, highlight, label):
        para = self._paragraph_at(model, highlight.start.line)
        if para is None or not para.supportsService("com.sun.star.text.Paragraph"):
            return None
        name = marker_name(highlight, label)
        text = model.getText()
        bookmark = model.createInstance("com.sun.star.text.Bookmark")
        bookmark.Name = name
        cursor = text.createTextCursorByRange(para.getStart())
        cursor.gotoRange(para.getEnd(), True)
        text.insertTextContent(cursor, bookmark, True)
        return name

    def _remove_marks(self, model):
        bookmarks = model.getBookmarks()
        text = model.getText()
        for name in bookmarks.getElementNames():
            if marker_slot(name):
                text.removeTextContent(bookmarks.getByName(name))

    # ── Notices ──────────────────────────────────────────────────────

    def show_info(self, message):
        self._show_notice(message, INFOBAR_INFO)

    def show_error(self, message):
        self._show_notice(message, INFOBAR_DANGER)

    def _show_notice(self, message, kind):
        """Non-blocking infobar on the current frame, hidden after a timeout."""
        log.info("Notice: %s", message)
        controller = self._current_controller()
        if controller is None or not hasattr(controller, "appendInfobar"):
            return
        try:
            if controller.hasInfobar(INFOBAR_ID):
                controller.removeInfobar(INFOBAR_ID)
            controller.appendInfobar(INFOBAR_ID, "QuickMarks", message, kind, (), True)
        except Exception:
            log.exception("Failed to show infobar")
            return
        self._schedule_notice_removal(controller)

    def _current_controller(self):
        desktop = self._get_desktop()
        if desktop is None:
            return None
        try:
            frame = desktop.getCurrentFrame()
            return frame.getController() if frame is not None else None
        except Exception:
            return None

    def _schedule_notice_removal(self, controller):
        from quickmarks.framework.main_thread import post_to_main_thread

        def remove():
            try:
                if controller.hasInfobar(INFOBAR_ID):
                    controller.removeInfobar(INFOBAR_ID)
            except Exception:
                log.debug("Infobar already gone", exc_info=True)

        if self._notice_timer is not None:
            self._notice_timer.cancel()
        if not self.notice_timeout or self.notice_timeout <= 0:
            return
        self._notice_timer = threading.Timer(
            self.notice_timeout, post_to_main_thread, args=(remove,))
        self._notice_timer.daemon = True
        self._notice_timer.start()

    # ── Document events ──────────────────────────────────────────────

    def _install_global_listener(self, ctx):
        if ctx is None or self._global_listener is not None:
            return
        try:
            import unohelper
            from com.sun.star.document import XDocumentEventListener
        except ImportError:
            return

        service = self

        class _GlobalListener(unohelper.Base, XDocumentEventListener):
            def documentEventOccured(self, event):
                service.on_document_event(event.EventName, event.Source)

            def disposing(self, source):
                pass

        try:
            self._broadcaster = ctx.getValueByName(
                "/singletons/com.sun.star.frame.theGlobalEventBroadcaster")
            self._global_listener = _GlobalListener()
            self._broadcaster.addDocumentEventListener(self._global_listener)
            log.info("Document event listener installed")
        except Exception:
            log.exception("Failed to install document event listener")
            return

        for model in self._iter_documents():
            self._watch(model)

    def on_document_event(self, event_name, model):
        """Translate a LibreOffice document event into event bus events."""
        if model is None or not self.is_writer(model) or self._events is None:
            return
        if event_name == "OnLoad" and self._has_marks(model):
            # Left in the file by a session that did not strip them.
            self.clear_markers(model)
        if event_name in _OPEN_EVENTS:
            self._watch(model)
        if event_name in _SAVE_EVENTS:
            self._saving.add(id(model))
            self.clear_markers(model)
        if event_name in _SAVE_DONE_EVENTS:
            self._restore_after_save(model)
        if event_name in _SAVE_AS_EVENTS:
            self._check_renamed(model)
        if event_name in _ACTIVATE_EVENTS:
            self._events.emit("document:activated", doc=model)
        if event_name in _VIEW_EVENTS:
            self._events.emit("document:visible_changed",
                              docs=self.get_visible_documents())
        if event_name in _CLOSE_EVENTS:
            document_id = self._known_ids.get(id(model)) or self.document_id(model)
            self._unwatch(model)
            self._events.emit("document:closed", doc=model, document_id=document_id)

    def on_document_modified(self, model):
        """Modify-listener hook: emit document:changed with a coarse LineEdit."""
        if self._applying or self._events is None:
            return
        new_count = self.paragraph_count(model)
        old_count = self._para_counts.get(id(model))
        edit = None
        if new_count is not None:
            self._para_counts[id(model)] = new_count
            position = self.get_cursor_position(model)
            edit = derive_line_edit(old_count, new_count,
                                    position.line if position else None)
        self._events.emit("document:changed", doc=model, edit=edit)

    def _restore_after_save(self, model):
        self._saving.discard(id(model))
        markers = self._batches.get(id(model))
        if markers:
            self._write_marks(model, zip(markers.highlights, markers.labels))

    def _has_marks(self, model):
        try:
            return any(marker_slot(n) for n in model.getBookmarks().getElementNames())
        except Exception:
            return False

    def _check_renamed(self, model):
        old_id = self._known_ids.get(id(model))
        new_id = self.document_id(model)
        self._known_ids[id(model)] = new_id
        if old_id and old_id != new_id:
            self._events.emit("document:renamed", doc=model,
                              old_id=old_id, new_id=new_id)

    def _watch(self, model):
        key = id(model)
        self._known_ids[key] = self.document_id(model)
        self._para_counts[key] = self.paragraph_count(model)
        if key in self._modify_listeners:
            return
        try:
            import unohelper
            from com.sun.star.util import XModifyListener
        except ImportError:
            return

        service = self

        class _ModifyListener(unohelper.Base, XModifyListener):
            def modified(self, event):
                service.on_document_modified(event.Source)

            def disposing(self, source):
                pass

        listener = _ModifyListener()
        try:
            model.addModifyListener(listener)
            self._modify_listeners[key] = (model, listener)
        except Exception:
            log.exception("Failed to watch document for edits")

    def _unwatch(self, model):
        key = id(model)
        self._batches.pop(key, None)
        self._saving.discard(key)
        self._para_counts.pop(key, None)
        self._known_ids.pop(key, None)
        entry = self._modify_listeners.pop(key, None)
        if entry is not None:
            try:
                model.removeModifyListener(entry[1])
            except Exception:
                log.debug("removeModifyListener failed", exc_info=True)
