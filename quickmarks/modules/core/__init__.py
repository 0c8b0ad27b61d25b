"""Core module — provides fundamental services."""

import logging

from quickmarks.framework.module_base import ModuleBase

log = logging.getLogger("quickmarks.core")


class CoreModule(ModuleBase):

    def initialize(self, services):
        from quickmarks.modules.core.services.config import ConfigService
        from quickmarks.modules.core.services.document import DocumentService
        from quickmarks.modules.core.services.events import EventBusService

        events = EventBusService()
        document = DocumentService()
        document.set_events(events)

        services.register(ConfigService())
        services.register(events)
        services.register(document)

        self._services = services
        events.subscribe("config:changed", self._on_config_changed)

    def start(self, services):
        from quickmarks.framework.logging import set_log_level

        level = services.config.get("core.log_level")
        if level:
            set_log_level(level)

    def _on_config_changed(self, key=None, value=None, **_kw):
        if key == "core.log_level" and value:
            from quickmarks.framework.logging import set_log_level
            set_log_level(value)
            log.info("Log level set to %s", value)
