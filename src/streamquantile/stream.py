"""Biased quantile summary over an unbounded stream of floats.

Observations are buffered and merged into an ordered list of samples in
batches. Each flush walks the old summary and the sorted batch together
once, inserting new samples and folding a sample into its right neighbour
whenever the combined rank uncertainty stays under the invariant.

Not safe for concurrent use: callers sharing a stream across threads must
serialize observe/flush/query themselves.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Sequence, Tuple

from .config import StreamConfig
from .errors import ConfigError
from .logutil import get_logger
from .targets import Target, invariant

_LOG = get_logger("stream")


@dataclass
class Sample:
    value: float
    # Difference between the lowest possible rank of this sample and its predecessor's.
    g: float
    # Admitted uncertainty on the rank of this sample.
    delta: int


class Stream:
    """Tracks a fixed set of targets over a stream of observations."""

    def __init__(self, targets: Sequence[Target], config: StreamConfig | None = None) -> None:
        self._cfg = config or StreamConfig()
        if self._cfg.batch_size < 1:
            raise ConfigError(f"batch_size must be >= 1: {self._cfg.batch_size}")
        if not targets:
            raise ConfigError("at least one target is required")
        for target in targets:
            if not isinstance(target, Target):
                raise ConfigError(f"expected a Target, got {type(target).__name__}")
        self._targets: Tuple[Target, ...] = tuple(targets)
        self._ranks = frozenset(t.quantile for t in self._targets)
        self._samples: List[Sample] = []
        self._count: int = 0  # items merged into the summary
        self._buffer: List[float] = []
        # Reused by flush() to build the next summary; swapped with _samples.
        self._scratch: List[Sample] = []

    @property
    def targets(self) -> Tuple[Target, ...]:
        return self._targets

    @property
    def config(self) -> StreamConfig:
        return self._cfg

    @property
    def count(self) -> int:
        """Number of observations merged into the summary (excludes pending ones)."""
        return self._count

    @property
    def pending(self) -> int:
        return len(self._buffer)

    @property
    def samples(self) -> Tuple[Sample, ...]:
        """Copy of the current summary; pending observations are not included."""
        return tuple(replace(s) for s in self._samples)

    def __len__(self) -> int:
        return len(self._samples)

    def _invariant(self, r: float) -> float:
        return invariant(self._targets, self._count, r)

    def observe(self, value: float) -> None:
        """Add one observation, merging the buffer once it reaches the batch size.

        Raises ValueError for NaN, which has no rank among the other values.
        """
        value = float(value)
        if math.isnan(value):
            raise ValueError("cannot observe NaN")
        self._buffer.append(value)
        if len(self._buffer) >= self._cfg.batch_size:
            self.flush()

    def observe_many(self, values: Iterable[float]) -> None:
        for value in values:
            self.observe(value)

    def _commit(self, sample: Sample, prev_rank: float) -> float:
        """Fold ``sample`` into the last committed one or append it; return the new prev_rank."""
        out = self._scratch
        if not out:
            out.append(sample)
            return prev_rank
        last = out[-1]
        if last.g + sample.g + sample.delta <= self._invariant(prev_rank):
            last.g += sample.g
            last.value = sample.value
            last.delta = sample.delta
            return prev_rank
        out.append(sample)
        return prev_rank + last.g

    def _insert_delta(self, rank: float) -> int:
        bound = self._invariant(rank)
        if bound == math.inf:
            bound = float(self._count)
        return int(math.floor(bound)) - 1

    def flush(self) -> None:
        """Merge buffered observations into the summary, compressing as it goes."""
        if not self._buffer:
            return
        batch = self._buffer
        batch.sort()
        old = self._samples
        before = len(old)
        self._scratch.clear()
        prev_rank = 0.0
        idx = 0
        for value in batch:
            while idx < len(old) and old[idx].value <= value:
                prev_rank = self._commit(old[idx], prev_rank)
                idx += 1
            if idx == 0 or idx == len(old):
                delta = 0
            else:
                delta = self._insert_delta(prev_rank + old[idx].g)
            prev_rank = self._commit(Sample(value=value, g=1.0, delta=delta), prev_rank)
            self._count += 1
        while idx < len(old):
            prev_rank = self._commit(old[idx], prev_rank)
            idx += 1
        self._samples, self._scratch = self._scratch, old
        self._scratch.clear()
        merged = len(batch)
        batch.clear()
        _LOG.debug(
            "flushed %d values: samples %d -> %d (count=%d)",
            merged,
            before,
            len(self._samples),
            self._count,
        )

    def query(self, quantile: float) -> float:
        """Return the value at ``quantile``, one of the configured target ranks.

        Pending observations are flushed first. An empty stream yields 0.0.
        """
        if isinstance(quantile, bool) or quantile not in self._ranks:
            raise ConfigError(f"quantile {quantile} is not a tracked target")
        self.flush()
        samples = self._samples
        if not samples:
            return 0.0
        rank = quantile * self._count
        threshold = rank + self._invariant(rank) / 2.0
        r = 0.0
        for i in range(1, len(samples) - 1):
            prev = samples[i - 1]
            r += prev.g
            current = samples[i]
            if r + current.g + current.delta > threshold:
                return prev.value
        return samples[-1].value


def new_stream(targets: Sequence[Target], config: Optional[StreamConfig] = None) -> Stream:
    return Stream(targets, config)


__all__ = ["Sample", "Stream", "new_stream"]
