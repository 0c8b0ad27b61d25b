"""Lightweight synchronous event bus for inter-module communication."""

import logging
import weakref

log = logging.getLogger("quickmarks.events")


class EventBus:
    """Publish/subscribe event bus.

    All callbacks run synchronously on the calling thread, in subscription
    order. Exceptions in subscribers are logged but never propagated to the
    emitter, so one broken listener cannot stop a marker refresh.

    Usage::

        bus = EventBus()
        bus.subscribe("bookmarks:changed", my_callback)
        bus.emit("bookmarks:changed", slot=3, previous=None, current=bm)

    Weak references are supported to avoid keeping listener objects alive::

        bus.subscribe("document:closed", obj.on_close, weak=True)
    """

    def __init__(self):
        self._subscribers = {}  # event -> list of (callback, is_weakref)

    def subscribe(self, event, callback, weak=False):
        """Register *callback* for *event*.

        Args:
            event:    Event name (e.g. "document:activated").
            callback: Callable invoked with the emitted kwargs.
            weak:     If True and *callback* is a bound method, hold only a
                      weak reference. The subscription disappears once the
                      owning object is garbage-collected.
        """
        subs = self._subscribers.setdefault(event, [])
        if weak and hasattr(callback, "__self__"):
            ref = weakref.WeakMethod(callback, lambda r: self._cleanup(event, r))
            subs.append((ref, True))
        else:
            subs.append((callback, False))

    def unsubscribe(self, event, callback):
        """Remove *callback* from *event*. Unknown callbacks are ignored."""
        subs = self._subscribers.get(event)
        if not subs:
            return
        self._subscribers[event] = [
            (cb, is_weak)
            for cb, is_weak in subs
            if self._resolve(cb, is_weak) != callback
        ]

    def emit(self, event, **data):
        """Emit *event*, calling all subscribers with **data as kwargs."""
        subs = self._subscribers.get(event)
        if not subs:
            return

        dead = []
        # Iterate over a copy: handlers may subscribe/unsubscribe while running.
        for entry in list(subs):
            cb, is_weak = entry
            resolved = self._resolve(cb, is_weak)
            if resolved is None:
                dead.append(entry)
                continue
            try:
                resolved(**data)
            except Exception:
                log.exception("Error in event handler for %s", event)

        if dead:
            self._subscribers[event] = [
                e for e in self._subscribers.get(event, []) if e not in dead
            ]

    def has_subscribers(self, event):
        return bool(self._subscribers.get(event))

    def clear(self):
        """Drop every subscription (used on extension unload)."""
        self._subscribers.clear()

    def _resolve(self, cb, is_weak):
        if is_weak:
            return cb()
        return cb

    def _cleanup(self, event, ref):
        """Called when a weakref target is garbage-collected."""
        subs = self._subscribers.get(event)
        if subs:
            self._subscribers[event] = [
                (cb, w) for cb, w in subs if cb is not ref
            ]
