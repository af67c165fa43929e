"""
lograg/logging_config.py
------------------------
Centralized logging configuration for the log triage assistant.

All modules import `get_logger(__name__)` to obtain a named logger under
the `lograg` namespace. The CLI, the FastAPI service and the Streamlit UI
share the same handler and format.

Log levels:
    DEBUG   — internal state (chunk counts, retrieval scores, prompt sizes)
    INFO    — pipeline events (document added, step started, analysis done)
    WARNING — recoverable issues (empty data directory, unknown citations)
    ERROR   — failures that propagate to the caller

To change the level at runtime:
    import logging
    logging.getLogger("lograg").setLevel(logging.DEBUG)

or set LOGRAG_LOG_LEVEL=DEBUG before start-up.
"""

import logging
import os
import sys


# ── Configuration ──────────────────────────────────────────────────────────────

_LOG_FORMAT  = "%(asctime)s [%(levelname)-8s] %(name)s — %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_ROOT_NAME   = "lograg"
_NAMESPACES  = (_ROOT_NAME, "app", "service", "validator")


def _level_from_env(default: int) -> int:
    name = os.environ.get("LOGRAG_LOG_LEVEL", "").strip().upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def configure_logging(level: int = logging.INFO) -> None:
    """
    Attaches a stdout StreamHandler to each top-level logger of the project.

    Safe to call multiple times — handlers are not duplicated.

    Args:
        level: Logging level used when LOGRAG_LOG_LEVEL is not set.
    """
    level   = _level_from_env(level)
    handler = None

    for name in _NAMESPACES:
        logger = logging.getLogger(name)
        if logger.handlers:
            continue
        if handler is None:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(level)
        logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """
    Returns a logger for the calling module.

    Args:
        name: Typically __name__ of the calling module.
    """
    configure_logging()
    return logging.getLogger(name)
