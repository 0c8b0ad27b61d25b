"""ConfigService — namespaced config on top of LO's configuration registry.

Each module's config lives in the LO registry under
``/org.quickmarks.<module>.<module>/<module>`` (schemas generated at build
time). Values written during the session are also kept in memory, so the
service keeps working when UNO is unavailable (tests, headless runs).

Lookup order: session value, LO registry, manifest default.

Access control:
  - Read own keys: always OK
  - Read other module's public keys: OK
  - Read other module's private keys: ConfigAccessError
  - Write own keys: OK
  - Write other module's keys: ConfigAccessError
"""

import logging
import os

from quickmarks.framework.config_schema import registry_names
from quickmarks.framework.service_base import ServiceBase
from quickmarks.framework.uno_context import get_ctx

log = logging.getLogger("quickmarks.config")

ENV_OVERRIDES = "QUICKMARKS_SET_CONFIG"


class ConfigAccessError(Exception):
    """Raised when a module tries to access a private config key."""


class ConfigService(ServiceBase):
    name = "config"

    def __init__(self):
        self._defaults = {}   # "module.key" -> default value
        self._manifest = {}   # "module.key" -> field schema
        self._session = {}    # "module.key" -> value set this session
        self._module_names = set()
        self._events = None

    def set_events(self, events):
        """Wire the event bus (called during bootstrap after events service)."""
        self._events = events

    def set_manifest(self, manifest):
        """Load config schemas from the merged manifest.

        Args:
            manifest: dict of {module_name: module_dict} from _manifest.py.
        """
        self._module_names = set(manifest.keys())
        for mod_name, mod_data in manifest.items():
            for field_name, schema in (mod_data.get("config") or {}).items():
                full_key = f"{mod_name}.{field_name}"
                self._defaults[full_key] = schema.get("default")
                self._manifest[full_key] = schema

        self._apply_env_overrides()

    def register_default(self, key, default):
        """Register a single default value."""
        self._defaults[key] = default

    # ── Read/Write ────────────────────────────────────────────────────

    def get(self, key, caller_module=None):
        """Get a config value, falling back to the manifest default."""
        self._check_read_access(key, caller_module)
        if key in self._session:
            return self._session[key]
        val = self._registry_read(key)
        if val is not None:
            return val
        return self._defaults.get(key)

    def get_dict(self):
        """Return all known config values as a flat dict (no access control)."""
        return {key: self.get(key) for key in set(self._defaults) | set(self._session)}

    def set(self, key, value, caller_module=None):
        """Set a config value and emit ``config:changed`` if it differs."""
        self._check_write_access(key, caller_module)
        old_value = self.get(key)
        self._session[key] = value
        self._registry_write(key, value)

        if self._events and value != old_value:
            self._events.emit(
                "config:changed", key=key, value=value, old_value=old_value)

    def remove(self, key, caller_module=None):
        """Reset a config key to its default."""
        self._check_write_access(key, caller_module)
        old_value = self.get(key)
        self._session.pop(key, None)
        default = self._defaults.get(key)
        if default is not None:
            self._registry_write(key, default)
        if self._events and default != old_value:
            self._events.emit(
                "config:changed", key=key, value=default, old_value=old_value)

    # ── Access control ────────────────────────────────────────────────

    def _check_read_access(self, key, caller_module):
        if caller_module is None or "." not in key:
            return
        module, _ = self._parse_key(key)
        if module == caller_module:
            return
        if not self._manifest.get(key, {}).get("public", False):
            raise ConfigAccessError(
                f"Module '{caller_module}' cannot read private config '{key}'")

    def _check_write_access(self, key, caller_module):
        if caller_module is None or "." not in key:
            return
        module, _ = self._parse_key(key)
        if module != caller_module:
            raise ConfigAccessError(
                f"Module '{caller_module}' cannot write to '{key}'")

    # ── Environment overrides ────────────────────────────────────────

    def _apply_env_overrides(self):
        """Apply overrides from QUICKMARKS_SET_CONFIG ("key=value,key=value").

        Values are coerced to the type declared in the module schema and
        held for the session (they are not written to the LO registry).
        """
        raw = os.environ.get(ENV_OVERRIDES, "").strip()
        if not raw:
            return

        count = 0
        for pair in raw.split(","):
            if "=" not in pair:
                continue
            key, raw_value = (part.strip() for part in pair.split("=", 1))
            value = self.coerce_value(key, raw_value)
            self._session[key] = value
            count += 1
            log.info("Config override: %s = %r", key, value)

        if count:
            log.info("Applied %d config override(s) from %s", count, ENV_OVERRIDES)

    def coerce_value(self, key, raw):
        """Coerce a string to the type declared in the manifest schema."""
        declared_type = self._manifest.get(key, {}).get("type", "string")
        if declared_type == "boolean":
            return raw.lower() in ("true", "1", "yes", "on")
        try:
            if declared_type == "int":
                return int(raw)
            if declared_type == "float":
                return float(raw)
        except ValueError:
            log.warning("Cannot coerce %r to %s for %s", raw, declared_type, key)
        return raw

    # ── Key parsing ────────────────────────────────────────────────────

    def _parse_key(self, key):
        """Split a full key into (module_name, field_name).

        Longest-prefix match against known module names, so dotted module
        names split correctly. Falls back to a first-dot split.
        """
        if self._module_names:
            parts = key.split(".")
            for i in range(len(parts) - 1, 0, -1):
                candidate = ".".join(parts[:i])
                if candidate in self._module_names:
                    return candidate, ".".join(parts[i:])
        return tuple(key.split(".", 1))

    # ── LO Registry I/O ──────────────────────────────────────────────

    def _registry_nodepath(self, key):
        module_name, field_name = self._parse_key(key)
        safe, package = registry_names(module_name)
        return f"/{package}.{safe}/{safe}", field_name

    def _registry_access(self, ctx, nodepath, service):
        from com.sun.star.beans import PropertyValue
        provider = ctx.ServiceManager.createInstanceWithContext(
            "com.sun.star.configuration.ConfigurationProvider", ctx)
        args = (PropertyValue("nodepath", 0, nodepath, 0),)
        return provider.createInstanceWithArguments(service, args)

    def _registry_read(self, key):
        ctx = get_ctx()
        if not ctx or "." not in key:
            return None
        nodepath, field_name = self._registry_nodepath(key)
        try:
            access = self._registry_access(
                ctx, nodepath, "com.sun.star.configuration.ConfigurationAccess")
            val = access.getPropertyValue(field_name)
        except Exception:
            log.debug("Registry read failed: %s (path=%s)", key, nodepath)
            return None
        return self._coerce_registry_value(val, self._manifest.get(key, {}))

    def _registry_write(self, key, value):
        ctx = get_ctx()
        if not ctx or "." not in key:
            return
        nodepath, field_name = self._registry_nodepath(key)
        try:
            update = self._registry_access(
                ctx, nodepath,
                "com.sun.star.configuration.ConfigurationUpdateAccess")
            update.setPropertyValue(field_name, value)
            update.commitChanges()
            log.debug("Registry set: %s = %r (path=%s)", key, value, nodepath)
        except Exception:
            log.exception("Failed to write registry: %s = %r", key, value)

    def _coerce_registry_value(self, val, schema):
        if val is None:
            return None
        declared_type = schema.get("type", "string")
        try:
            if declared_type == "boolean":
                return bool(val)
            if declared_type == "int":
                return int(val)
            if declared_type == "float":
                return float(val)
            return str(val)
        except (ValueError, TypeError):
            return val

    # ── Module proxy factory ──────────────────────────────────────────

    def proxy_for(self, module_name):
        """Create a ModuleConfigProxy scoped to *module_name*."""
        return ModuleConfigProxy(self, module_name)


class ModuleConfigProxy:
    """Scoped config access for a single module.

    ``get("track_edits")`` (no dot) is prefixed with the module name, e.g.
    ``"bookmarks.track_edits"``. Cross-module reads need the full key.
    """

    __slots__ = ("_config", "_module")

    def __init__(self, config_service, module_name):
        self._config = config_service
        self._module = module_name

    def _full(self, key):
        return key if "." in key else f"{self._module}.{key}"

    def get(self, key, default=None):
        val = self._config.get(self._full(key), caller_module=self._module)
        return val if val is not None else default

    def set(self, key, value):
        self._config.set(self._full(key), value, caller_module=self._module)

    def remove(self, key):
        self._config.remove(self._full(key), caller_module=self._module)
