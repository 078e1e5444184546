"""
Logging package for ``family_graph``.

Modules call ``get_logger("<short name>")``; the logger is namespaced under
``family_graph`` and gains its own file next to the master log.
"""

from .logger import (
    get_logger,
    list_active_loggers,
    log_debug,
    log_error,
    log_info,
    log_warning,
    set_debug,
)

__all__ = [
    "get_logger",
    "list_active_loggers",
    "log_debug",
    "log_error",
    "log_info",
    "log_warning",
    "set_debug",
]
