"""EventBusService — wraps the framework EventBus as a named service."""

from quickmarks.framework.event_bus import EventBus
from quickmarks.framework.service_base import ServiceBase


class EventBusService(ServiceBase, EventBus):
    """Singleton event bus exposed as a service.

    Modules access it as ``services.events``. Event names used across the
    extension:

    - ``document:activated``       doc
    - ``document:visible_changed`` docs
    - ``document:changed``         doc, edit (LineEdit or None)
    - ``document:closed``          doc, document_id
    - ``document:renamed``         doc, old_id, new_id
    - ``bookmarks:changed``        slot, previous, current
    - ``config:changed``           key, value, old_value
    """

    name = "events"

    def __init__(self):
        ServiceBase.__init__(self)
        EventBus.__init__(self)

    def shutdown(self):
        self.clear()
