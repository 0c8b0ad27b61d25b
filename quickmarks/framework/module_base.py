"""Base class for all modules."""

import logging
from abc import ABC

log = logging.getLogger("quickmarks.module_base")


class ModuleBase(ABC):
    """Base class for all QuickMarks modules.

    Modules declare their manifest in module.yaml (config, requires,
    provides_services, actions, shortcuts). This class handles the runtime
    behavior: initialization, event wiring, action dispatch and shutdown.

    The ``name`` attribute is set from _manifest.py at load time; it does
    NOT need to be set in the subclass.
    """

    name: str = None

    def initialize(self, services):
        """Phase 1: called in dependency order during bootstrap.

        Register services, wire event subscriptions, create internal
        objects. Services of modules this one ``requires`` are available.

        Args:
            services: ServiceRegistry with attribute access to all
                      registered services (services.config, services.events …).
        """

    def start(self, services):
        """Phase 2: called after ALL modules have initialized.

        Safe for UNO operations that need the other modules in place
        (document listeners, initial marker refresh). Called in dependency
        order.
        """

    def shutdown(self):
        """Release listeners and state.

        Called in reverse dependency order on extension unload."""

    # ── Action dispatch ──────────────────────────────────────────────

    def on_action(self, action):
        """Handle an action dispatched from menu/shortcut. Override in subclass."""
        log.warning("Unhandled action '%s' on module '%s'", action, self.name)
