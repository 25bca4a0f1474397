"""Exceptions raised by streamquantile."""
from __future__ import annotations


class ConfigError(ValueError):
    """Invalid target, invalid stream configuration or untracked query rank."""


__all__ = ["ConfigError"]
