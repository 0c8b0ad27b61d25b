"""Global UNO component context provider.

Services are singletons that outlive the UNO component that created them,
so the ctx passed during bootstrap can become stale.
``uno.getComponentContext()`` always returns the current global context.

All services that need UNO access should call ``get_ctx()`` rather than
storing a ctx reference from ``initialize()``. Outside LibreOffice (unit
tests, manifest generation) it returns the fallback, normally None.
"""

import logging

log = logging.getLogger("quickmarks.context")

_fallback_ctx = None


def set_fallback_ctx(ctx):
    """Store a fallback ctx for use when the uno module is not available."""
    global _fallback_ctx
    _fallback_ctx = ctx


def get_ctx():
    """Return the current valid UNO component context, or None."""
    try:
        import uno
        ctx = uno.getComponentContext()
        if ctx is not None:
            return ctx
    except ImportError:
        pass
    return _fallback_ctx
