"""QuickMarks entry point — bootstraps the module framework.

Responsibilities:
1. Resolve module load order from the dependency graph (_manifest.py)
2. Initialize core services first, then all other modules
3. Route menu/shortcut commands ("bookmarks.toggle_3") to their module
4. Register the UNO job component (OnStartApp + command dispatch)

This file is the single entry point registered in META-INF/manifest.xml.
"""

import importlib
import logging
import os
import sys
import threading

log = logging.getLogger("quickmarks.main")

# Extension identifier (matches description.xml)
EXTENSION_ID = "org.extension.quickmarks"
IMPLEMENTATION_NAME = "org.extension.quickmarks.Main"

# ── Framework state ───────────────────────────────────────────────────

_services = None
_modules = []
_init_lock = threading.Lock()
_initialized = False


def _ensure_extension_on_path(ctx):
    """Add the extension's install directory to sys.path."""
    try:
        import uno
        pip = ctx.getValueByName(
            "/singletons/com.sun.star.deployment.PackageInformationProvider")
        ext_url = pip.getPackageLocation(EXTENSION_ID)
        if ext_url.startswith("file://"):
            ext_url = str(uno.fileUrlToSystemPath(ext_url))
        if ext_url and ext_url not in sys.path:
            sys.path.insert(0, ext_url)
    except Exception:
        log.debug("Extension location lookup failed", exc_info=True)

    # The quickmarks package itself must be importable as "quickmarks.xxx"
    parent = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    if parent not in sys.path:
        sys.path.insert(0, parent)


def _load_manifest():
    """Return module descriptors in dependency order."""
    try:
        from quickmarks._manifest import MODULES
        return _topo_sort(MODULES)
    except ImportError:
        log.warning("_manifest.py not found — using module.yaml discovery")
        return _fallback_discover_modules()


def _fallback_discover_modules():
    """Discover modules by scanning quickmarks/modules/*/module.yaml (dev mode)."""
    import yaml

    modules_dir = os.path.join(os.path.dirname(__file__), "modules")
    if not os.path.isdir(modules_dir):
        return []

    result = []
    for entry in sorted(os.listdir(modules_dir)):
        yaml_path = os.path.join(modules_dir, entry, "module.yaml")
        if not os.path.isfile(yaml_path):
            continue
        try:
            with open(yaml_path, encoding="utf-8") as f:
                manifest = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            log.exception("Failed to load %s", yaml_path)
            continue
        manifest.setdefault("name", entry)
        result.append(manifest)

    return _topo_sort(result)


def _topo_sort(modules):
    """Topological sort of modules by 'requires' dependencies (core first)."""
    by_name = {m["name"]: m for m in modules}
    provides = {}
    for m in modules:
        for svc in m.get("provides_services", []):
            provides[svc] = m["name"]

    visited = set()
    order = []

    def visit(name):
        if name in visited:
            return
        visited.add(name)
        m = by_name.get(name)
        if m is None:
            return
        for req in m.get("requires", []):
            provider = provides.get(req, req)
            if provider in by_name:
                visit(provider)
        order.append(m)

    if "core" in by_name:
        visit("core")
    for name in by_name:
        visit(name)

    return order


def _import_module_class(module_manifest):
    """Import and return the ModuleBase subclass for a module."""
    from quickmarks.framework.module_base import ModuleBase

    name = module_manifest["name"]
    package = "quickmarks.modules.%s" % name.replace(".", "_")
    try:
        mod = importlib.import_module(package)
    except ImportError:
        log.exception("Failed to import module: %s", name)
        return None
    for attr in dir(mod):
        obj = getattr(mod, attr)
        if (isinstance(obj, type) and issubclass(obj, ModuleBase)
                and obj is not ModuleBase):
            return obj
    return None


def get_services():
    """Return the ServiceRegistry (lazy-init)."""
    if _services is None:
        bootstrap()
    return _services


def get_module(name):
    for mod in _modules:
        if mod.name == name:
            return mod
    return None


def bootstrap(ctx=None, manifests=None):
    """Initialize the entire framework. Idempotent.

    Args:
        ctx:       UNO component context, None outside LibreOffice.
        manifests: module descriptors to load instead of _manifest.py.
    """
    global _services, _modules, _initialized

    if _initialized:
        return

    with _init_lock:
        if _initialized:
            return

        if ctx:
            from quickmarks.framework.logging import setup_logging
            from quickmarks.framework.uno_context import set_fallback_ctx
            setup_logging()
            set_fallback_ctx(ctx)
            _ensure_extension_on_path(ctx)

        from quickmarks.framework.service_registry import ServiceRegistry

        _services = ServiceRegistry()
        _modules = []

        manifests = _topo_sort(manifests) if manifests is not None else _load_manifest()
        manifest_dict = {m["name"]: m for m in manifests}
        config_svc = None

        for manifest in manifests:
            name = manifest["name"]
            cls = _import_module_class(manifest)
            if cls is None:
                log.warning("Skipping module with no class: %s", name)
                continue

            instance = cls()
            instance.name = name

            try:
                instance.initialize(_services)
                log.info("Module initialized: %s", name)
            except Exception:
                log.exception("Failed to initialize module: %s", name)
                continue

            _modules.append(instance)

            # Config defaults must be loaded before later modules read them.
            if name == "core":
                config_svc = _services.get("config")
                if config_svc:
                    config_svc.set_manifest(manifest_dict)
                    log.info("Config defaults loaded for %d modules",
                             len(manifest_dict))
                    events_svc = _services.get("events")
                    if events_svc:
                        config_svc.set_events(events_svc)

        if ctx:
            _services.initialize_all(ctx)

        for mod in _modules:
            try:
                mod.start(_services)
            except Exception:
                log.exception("Failed to start module: %s", mod.name)

        _initialized = True
        log.info("Framework bootstrap complete: %d modules", len(_modules))


def dispatch(command):
    """Route "module.action" to the module's on_action(). Returns True if routed."""
    bootstrap()
    module_name, sep, action = (command or "").rpartition(".")
    if not sep:
        log.info("Unroutable command: %r", command)
        return False
    mod = get_module(module_name)
    if mod is None:
        log.warning("No module for command: %s", command)
        return False
    try:
        mod.on_action(action)
    except Exception:
        log.exception("Action failed: %s", command)
    return True


def shutdown():
    """Shut down all modules and services."""
    global _initialized, _services, _modules

    for mod in reversed(_modules):
        try:
            mod.shutdown()
        except Exception:
            log.exception("Error shutting down module: %s", mod.name)

    if _services:
        _services.shutdown_all()

    _services = None
    _modules = []
    _initialized = False


# ── UNO component registration ────────────────────────────────────────

try:
    import unohelper
    from com.sun.star.task import XJobExecutor, XJob

    class MainJob(unohelper.Base, XJobExecutor, XJob):
        """UNO Job component — OnStartApp bootstrap and command dispatch."""

        def __init__(self, ctx):
            self.ctx = ctx

        def execute(self, args):
            """Called by the Jobs framework on OnStartApp."""
            try:
                bootstrap(self.ctx)
            except Exception:
                log.exception("MainJob.execute bootstrap FAILED")
            return ()

        def trigger(self, args):
            """Dispatch "bookmarks.toggle_3"-style commands from menus/shortcuts."""
            try:
                bootstrap(self.ctx)
                dispatch(args if isinstance(args, str) else "")
            except Exception:
                log.exception("MainJob.trigger FAILED")

    g_ImplementationHelper = unohelper.ImplementationHelper()
    g_ImplementationHelper.addImplementation(
        MainJob, IMPLEMENTATION_NAME, ("com.sun.star.task.Job",))

except ImportError as e:
    log.debug("UNO not available (not inside LO): %s", e)
