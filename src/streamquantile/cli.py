import argparse
import json
import math
import random
import sys
import time
import tracemalloc
from typing import Any, Dict, Iterable, Iterator, List, Optional, TextIO

from . import __version__
from .config import StreamConfig
from .errors import ConfigError
from .logutil import get_logger, set_verbose
from .metrics import stream_metrics
from .stream import Stream
from .targets import Target, new_target

DEFAULT_TARGETS = ["0.5:0.005", "0.9:0.005", "0.99:0.001"]


def parse_target(text: str) -> Target:
    """Parse ``Q:E`` (quantile and error) into a Target."""
    quantile, sep, error = text.partition(":")
    if not sep:
        raise ConfigError(f"target must look like Q:E, got {text!r}")
    try:
        q = float(quantile)
        e = float(error)
    except ValueError as exc:
        raise ConfigError(f"target must look like Q:E, got {text!r}") from exc
    return new_target(q, e)


def build_stream(args: argparse.Namespace) -> Stream:
    texts = args.target or DEFAULT_TARGETS
    targets = [parse_target(s) for s in texts]
    return Stream(targets, StreamConfig(batch_size=args.batch_size))


def iter_values(handle: TextIO) -> Iterator[float]:
    log = get_logger("cli")
    for lineno, line in enumerate(handle, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            value = float(line)
        except ValueError:
            log.warning("skipped malformed value on line %d: %r", lineno, line[:80])
            continue
        if math.isnan(value):
            log.warning("skipped NaN on line %d", lineno)
            continue
        yield value


def _quantile_report(stream: Stream) -> Dict[str, float]:
    return {f"{t.quantile:g}": stream.query(t.quantile) for t in stream.targets}


def cmd_summarize(args: argparse.Namespace) -> int:
    stream = build_stream(args)
    if args.file in (None, "-"):
        stream.observe_many(iter_values(sys.stdin))
    else:
        try:
            with open(args.file, "r", encoding="utf-8", errors="replace") as fh:
                stream.observe_many(iter_values(fh))
        except FileNotFoundError:
            print(f"[streamquantile] input not found: {args.file}", file=sys.stderr)
            return 2
    quantiles = _quantile_report(stream)
    summary: Dict[str, Any] = {"quantiles": quantiles, "metrics": stream_metrics(stream)}
    if args.out:
        with open(args.out, "w", encoding="utf-8") as oh:
            json.dump(summary, oh, indent=2)
        print(f"Wrote summary JSON to {args.out}")
    elif args.json:
        print(json.dumps(summary, indent=2))
    else:
        print(f"Observed: {stream.count}  samples kept: {len(stream)}")
        for t in stream.targets:
            print(f"  q={t.quantile:<8g} err={t.error:<8g} value={quantiles[f'{t.quantile:g}']:g}")
    return 0


def synthetic_values(n: int, distribution: str, seed: int) -> List[float]:
    rng = random.Random(seed)
    if distribution == "normal":
        return [rng.gauss(3.0, 1.0) for _ in range(n)]
    return [rng.random() for _ in range(n)]


def run_bench(stream: Stream, values: Iterable[float]) -> Dict[str, Any]:
    data = list(values)
    tracemalloc.start()
    start = time.perf_counter()
    stream.observe_many(data)
    stream.flush()
    observe_elapsed = time.perf_counter() - start
    _, peak = tracemalloc.get_traced_memory()
    tracemalloc.stop()

    start = time.perf_counter()
    for t in stream.targets:
        stream.query(t.quantile)
    query_elapsed = time.perf_counter() - start

    counted = len(data)
    return {
        "values": counted,
        "observe_seconds": observe_elapsed,
        "values_per_sec": counted / observe_elapsed if observe_elapsed else float("inf"),
        "query_seconds": query_elapsed,
        "peak_mem_bytes": peak,
        "metrics": stream_metrics(stream),
    }


def cmd_bench(args: argparse.Namespace) -> int:
    stream = build_stream(args)
    result = run_bench(stream, synthetic_values(args.values, args.distribution, args.seed))
    if args.json:
        print(json.dumps(result, indent=2))
        return 0
    print(
        f"Processed {result['values']} values in {result['observe_seconds']:.3f}s -> "
        f"{result['values_per_sec']:,.0f} values/sec"
    )
    print(f"Queried {len(stream.targets)} targets in {result['query_seconds'] * 1000:.3f} ms")
    print(f"Peak mem ~{result['peak_mem_bytes']/1024/1024:.2f} MB; samples kept: {len(stream)}")
    return 0


def _add_stream_options(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--target",
        action="append",
        metavar="Q:E",
        help=f"Quantile and error to track (repeatable, default {' '.join(DEFAULT_TARGETS)})",
    )
    p.add_argument("--batch-size", type=int, default=StreamConfig.batch_size, help="Observations buffered per merge")
    p.add_argument("--json", action="store_true", help="Print machine-readable JSON")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="streamquantile", description="Approximate biased quantiles over a stream of numbers.")
    # Global --version (argparse will exit 0 before validating subcommands)
    parser.add_argument(
        "--version",
        action="version",
        version=f"streamquantile {__version__}",
        help="Show version and exit",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log flush activity to stderr")
    sub = parser.add_subparsers(dest="cmd")

    summarize_parser = sub.add_parser("summarize", help="Summarize numbers read one per line")
    summarize_parser.add_argument("file", nargs="?", help="Input file (default: stdin)")
    summarize_parser.add_argument("--out", help="Write the JSON summary to this file")
    _add_stream_options(summarize_parser)
    summarize_parser.set_defaults(func=cmd_summarize)

    bench_parser = sub.add_parser("bench", help="Run a quick throughput benchmark on synthetic data")
    bench_parser.add_argument("--values", type=int, default=10000, help="Synthetic values to observe")
    bench_parser.add_argument("--distribution", choices=["uniform", "normal"], default="uniform")
    bench_parser.add_argument("--seed", type=int, default=42)
    _add_stream_options(bench_parser)
    bench_parser.set_defaults(func=cmd_bench)

    # Simple 'version' subcommand for shells/users preferring explicit command
    version_parser = sub.add_parser("version", help="Show version and exit")
    version_parser.set_defaults(func=lambda _: (print(f"streamquantile {__version__}"), 0)[1])

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "cmd", None):  # No subcommand provided
        parser.print_help()
        return 0
    if args.verbose:
        set_verbose(True)
    try:
        return args.func(args)
    except ConfigError as exc:
        print(f"[streamquantile] invalid configuration: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
