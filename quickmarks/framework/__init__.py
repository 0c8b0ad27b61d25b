"""QuickMarks framework — base classes, registries, event bus."""

from quickmarks.framework.module_base import ModuleBase
from quickmarks.framework.service_base import ServiceBase
from quickmarks.framework.service_registry import ServiceRegistry
from quickmarks.framework.event_bus import EventBus

__all__ = [
    "ModuleBase",
    "ServiceBase",
    "ServiceRegistry",
    "EventBus",
]
