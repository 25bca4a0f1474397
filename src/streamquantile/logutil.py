"""Project-wide logging utilities.

All modules log through children of the ``streamquantile`` logger. The parent
is configured lazily with a stderr handler at WARNING, so flush records
(DEBUG) stay silent unless an application or ``--verbose`` asks for them.
Applications that already configured the package logger keep their handlers.
"""
from __future__ import annotations

import logging
from typing import Optional

_ROOT = "streamquantile"
_CONFIGURED = False


def _configure_root() -> logging.Logger:
    global _CONFIGURED
    root = logging.getLogger(_ROOT)
    if not _CONFIGURED:
        if not root.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("[%(name)s] %(levelname)s: %(message)s"))
            root.addHandler(handler)
        if root.level == logging.NOTSET:
            root.setLevel(logging.WARNING)
        _CONFIGURED = True
    return root


def get_logger(component: Optional[str] = None) -> logging.Logger:
    root = _configure_root()
    return root.getChild(component) if component else root


def set_verbose(enabled: bool) -> None:
    _configure_root().setLevel(logging.DEBUG if enabled else logging.WARNING)


__all__ = ["get_logger", "set_verbose"]
