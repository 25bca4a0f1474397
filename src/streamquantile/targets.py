"""Tracked quantile targets and the error invariant shared by all of them.

A target pairs a quantile rank with the error margin tolerated on it. The
invariant f(r, n) bounds how much rank uncertainty a sample at rank r may
carry while every target stays within its margin (Cormode, Korn,
Muthukrishnan & Srivastava, "Effective computation of biased quantiles over
data streams", 2005).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from .errors import ConfigError


def _coefficient(error: float, share: float) -> float:
    if error == 0.0:
        return 0.0
    if share == 0.0:
        return math.inf
    return 2.0 * error / share


@dataclass(frozen=True)
class Target:
    quantile: float  # rank in [0,1]
    error: float  # tolerated rank error, as a fraction of items seen
    u: float  # 2*error/quantile, used above the lower tail
    v: float  # 2*error/(1-quantile), used inside the lower tail

    @classmethod
    def create(cls, quantile: float, error: float) -> "Target":
        if not 0.0 <= quantile <= 1.0:
            raise ConfigError(f"quantile must be in [0,1]: {quantile}")
        if not 0.0 <= error <= 1.0:
            raise ConfigError(f"quantile error must be in [0,1]: {error}")
        quantile = float(quantile)
        error = float(error)
        return cls(
            quantile=quantile,
            error=error,
            u=_coefficient(error, quantile),
            v=_coefficient(error, 1.0 - quantile),
        )


def new_target(quantile: float, error: float) -> Target:
    """Build a validated target; raises ConfigError when either argument is outside [0,1]."""
    return Target.create(quantile, error)


def invariant(targets: Sequence[Target], count: int, r: float) -> float:
    """Return the largest rank slack allowed at rank ``r`` after ``count`` items.

    Each target contributes its own bound; the tightest one wins.
    """
    n = float(count)
    bound = math.inf
    for target in targets:
        if r < target.error * n:
            candidate = target.v * (n - r)
        else:
            candidate = target.u * r if r > 0 else 0.0
        if candidate < bound:
            bound = candidate
    return bound


__all__ = ["Target", "invariant", "new_target"]
