"""Metrics helper for Stream.

Provides a lightweight, dependency-free snapshot of internal counters suitable
for logging or JSON output. Never flushes or otherwise mutates the stream.
"""
from __future__ import annotations

from typing import Dict, Any

from .stream import Stream


def stream_metrics(stream: Stream) -> Dict[str, Any]:
    size = len(stream)
    count = stream.count
    return {
        "count": count,
        "pending": stream.pending,
        "samples": size,
        "compression": size / count if count else 0.0,
        "batch_size": stream.config.batch_size,
        "targets": [{"quantile": t.quantile, "error": t.error} for t in stream.targets],
    }

__all__ = ["stream_metrics"]
