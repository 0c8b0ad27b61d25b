"""Base class for all services."""

from abc import ABC


class ServiceBase(ABC):
    """Abstract base for services registered in the ServiceRegistry.

    Services provide horizontal capabilities (document access, config,
    events) that modules consume.

    Attributes:
        name: Unique service identifier (e.g. "document", "config").
    """

    name: str = None

    def initialize(self, ctx):
        """Called once during bootstrap with the UNO component context.

        Override to perform setup that requires UNO (desktop access,
        global event broadcaster, etc.). Not called outside LibreOffice.
        """

    def shutdown(self):
        """Called on extension unload. Override to clean up."""
