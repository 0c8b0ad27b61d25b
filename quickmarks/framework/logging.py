"""Logging for QuickMarks.

setup_logging() configures the ``quickmarks`` logger hierarchy with a
FileHandler to ~/quickmarks.log. All modules that call
``logging.getLogger("quickmarks.xxx")`` inherit this handler automatically.
"""

import logging
import os

LOG_PATH = os.path.join(os.path.expanduser("~"), "quickmarks.log")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s — %(message)s"

# LibreOffice config uses WARN; logging knows WARNING.
_LEVEL_ALIASES = {"WARN": "WARNING"}

_setup_done = False


def _numeric_level(level):
    name = str(level or "").upper()
    name = _LEVEL_ALIASES.get(name, name)
    return getattr(logging, name, logging.DEBUG)


def setup_logging(level="DEBUG", path=None):
    """Configure the ``quickmarks`` logger hierarchy.

    Forces a FileHandler on the ``quickmarks`` logger (not root), so it
    works regardless of root logger state set by other extensions.
    Truncates the log file on startup (mode ``"w"``) for clean sessions.

    No-op if already done, or if the logger already has handlers.
    """
    global _setup_done
    if _setup_done:
        return
    _setup_done = True

    logger = logging.getLogger("quickmarks")
    if logger.handlers:
        return

    logger.propagate = False

    handler = logging.FileHandler(path or LOG_PATH, mode="w", encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(_numeric_level(level))


def set_log_level(level):
    """Change the ``quickmarks`` logger level at runtime."""
    logging.getLogger("quickmarks").setLevel(_numeric_level(level))
