"""Run UNO calls on the VCL main thread.

UNO is not thread-safe. The timer that hides a notice fires on its own
thread, so its UNO work is queued and handed to the VCL event loop via
``com.sun.star.awt.AsyncCallback``. Outside LibreOffice (tests, headless
without a toolkit) the function is simply called.
"""

import logging
import queue
import threading

log = logging.getLogger("quickmarks.framework.main_thread")

_pending = queue.Queue()  # (fn, args, kwargs)
_lock = threading.Lock()
_async_callback = None
_callback = None
_resolved = False


def _resolve_async_callback():
    """AsyncCallback service, created once; None when unavailable."""
    global _async_callback, _callback, _resolved
    with _lock:
        if _resolved:
            return _async_callback
        _resolved = True
        try:
            import uno
        except ImportError:
            return None
        try:
            ctx = uno.getComponentContext()
            service = ctx.ServiceManager.createInstanceWithContext(
                "com.sun.star.awt.AsyncCallback", ctx)
            if service is None:
                raise RuntimeError("AsyncCallback service missing")
            _callback = _create_callback()
            _async_callback = service
        except Exception as exc:
            log.warning("Posting to the main thread disabled: %s", exc)
        return _async_callback


def _create_callback():
    import unohelper
    from com.sun.star.awt import XCallback

    class _RunPending(unohelper.Base, XCallback):
        def notify(self, _data):
            try:
                fn, args, kwargs = _pending.get_nowait()
            except queue.Empty:
                return
            try:
                fn(*args, **kwargs)
            except Exception:
                log.exception("Posted call %r failed", fn)
            if not _pending.empty():
                _request_callback()

    return _RunPending()


def _request_callback():
    import uno
    try:
        _async_callback.addCallback(_callback, uno.Any("void", None))
    except Exception:
        log.exception("Could not schedule main-thread callback")


def post_to_main_thread(fn, *args, **kwargs):
    """Run fn(*args, **kwargs) on the main thread without waiting for it."""
    on_main = threading.current_thread() is threading.main_thread()
    if on_main or _resolve_async_callback() is None:
        fn(*args, **kwargs)
        return
    _pending.put((fn, args, kwargs))
    _request_callback()
