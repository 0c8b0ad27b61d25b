"""Bookmarks module — nine numbered bookmarks and their markers."""

import logging

from quickmarks.framework.module_base import ModuleBase

log = logging.getLogger("quickmarks.bookmarks")

_STYLE_KEYS = ("highlight_color", "border", "label_color",
               "label_format", "hover_format")


class BookmarksModule(ModuleBase):
    """Owns the BookmarkRegistry and keeps every document's markers current.

    Marker refreshes are driven entirely by events: registry mutations
    (``bookmarks:changed``) and the document events the document service
    emits.
    """

    def initialize(self, services):
        from .commands import BookmarkCommands
        from .registry import BookmarkRegistry
        from .renderer import MarkerRenderer, MarkerStyle

        self._services = services
        self._doc_svc = services.document
        self._events = services.events
        self._cfg = services.config.proxy_for(self.name)

        self.registry = BookmarkRegistry(self._events)
        self.renderer = MarkerRenderer(MarkerStyle.from_config(self._cfg))
        self.commands = BookmarkCommands(self.registry, self._doc_svc)
        self._doc_svc.notice_timeout = self._cfg.get("notice_timeout", 4)
        self._deferred = None  # document ids awaiting one refresh

        services.register_instance("bookmarks", self.registry)

        self._subscriptions = [
            ("bookmarks:changed", self._on_bookmarks_changed),
            ("document:activated", self._on_document_activated),
            ("document:visible_changed", self._on_visible_changed),
            ("document:changed", self._on_document_changed),
            ("document:closed", self._on_document_closed),
            ("document:renamed", self._on_document_renamed),
            ("config:changed", self._on_config_changed),
        ]
        for event, handler in self._subscriptions:
            self._events.subscribe(event, handler)

    def start(self, services):
        for doc in self._doc_svc.get_visible_documents():
            self.refresh(doc)

    def shutdown(self):
        for event, handler in getattr(self, "_subscriptions", []):
            self._events.unsubscribe(event, handler)
        self._subscriptions = []
        for doc in self._doc_svc.get_visible_documents():
            document_id = self._doc_svc.document_id(doc)
            self._doc_svc.apply_markers(doc, self.renderer.refresh(document_id, ()))
        self.renderer.reset()
        self.registry.clear()

    # ── Actions ──────────────────────────────────────────────────────

    def on_action(self, action):
        if not self.commands.run(action):
            super().on_action(action)

    # ── Refresh ──────────────────────────────────────────────────────

    def refresh(self, doc):
        """Recompute and apply the markers of one open document."""
        document_id = self._doc_svc.document_id(doc)
        return self.renderer.render(
            document_id, self.registry,
            lambda markers: self._doc_svc.apply_markers(doc, markers))

    def refresh_document_id(self, document_id):
        """Refresh *document_id* if it is open; closed documents have no markers."""
        doc = self._doc_svc.find_document(document_id)
        if doc is None:
            self.renderer.invalidate(document_id)
            return None
        return self.refresh(doc)

    # ── Event handlers ───────────────────────────────────────────────

    def _on_bookmarks_changed(self, slot=None, previous=None, current=None, **_kw):
        affected = []
        for bm in (previous, current):
            if bm is not None and bm.document_id not in affected:
                affected.append(bm.document_id)
        if self._deferred is not None:
            self._deferred.update(affected)
            return
        for document_id in affected:
            self.refresh_document_id(document_id)

    def _on_document_activated(self, doc=None, **_kw):
        if doc is not None:
            self.refresh(doc)

    def _on_visible_changed(self, docs=None, **_kw):
        for doc in docs or ():
            self.refresh(doc)

    def _on_document_changed(self, doc=None, edit=None, **_kw):
        if doc is None:
            return
        document_id = self._doc_svc.document_id(doc)
        if edit is not None and self._cfg.get("track_edits", False):
            # One refresh for all slots the edit moved.
            self._deferred = pending = set()
            try:
                moved = self.registry.rebase(document_id, edit)
            finally:
                self._deferred = None
            if moved:
                for pending_id in pending:
                    self.refresh_document_id(pending_id)
                return
        applied = self.renderer.applied(document_id)
        if applied is not None and self._doc_svc.markers_intact(doc, applied):
            return
        # The edit deleted or displaced marker anchors.
        self.renderer.invalidate(document_id)
        self.refresh(doc)

    def _on_document_closed(self, document_id=None, **_kw):
        if document_id:
            self.renderer.invalidate(document_id)

    def _on_document_renamed(self, old_id=None, new_id=None, **_kw):
        if old_id and new_id:
            self.registry.rename_document(old_id, new_id)
            self.renderer.invalidate(old_id)

    def _on_config_changed(self, key=None, **_kw):
        if not key or not key.startswith(self.name + "."):
            return
        field = key[len(self.name) + 1:]
        if field == "notice_timeout":
            self._doc_svc.notice_timeout = self._cfg.get("notice_timeout", 4)
        elif field in _STYLE_KEYS:
            from .renderer import MarkerStyle
            self.renderer.reset(MarkerStyle.from_config(self._cfg))
            for doc in self._doc_svc.get_visible_documents():
                self.refresh(doc)
