"""Package metadata and public API for streamquantile.

Expose a single source of truth for the version. Prefer reading from
importlib.metadata so that an editable install or wheel always reports
the version declared in pyproject.toml. Fallback to a hardcoded string
to avoid import errors when metadata is unavailable (e.g. direct source
usage without installation).
"""

from __future__ import annotations

from importlib import metadata as _metadata

from .config import StreamConfig
from .errors import ConfigError
from .stream import Sample, Stream, new_stream
from .targets import Target, invariant, new_target

__all__ = [
	"__version__",
	"ConfigError",
	"Sample",
	"Stream",
	"StreamConfig",
	"Target",
	"invariant",
	"new_stream",
	"new_target",
]

_FALLBACK_VERSION = "0.1.0"  # MUST match pyproject.toml [project].version

try:  # pragma: no cover - success path covered indirectly via CLI test
	__version__ = _metadata.version("streamquantile")  # type: ignore[assignment]
except _metadata.PackageNotFoundError:  # pragma: no cover - source checkout without install
	__version__ = _FALLBACK_VERSION
