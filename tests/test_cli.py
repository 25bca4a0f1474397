import json
import re
import subprocess
import sys
import tempfile
from pathlib import Path

import streamquantile


def run_cli(*args, stdin=None):
    return subprocess.run(
        [sys.executable, "-m", "streamquantile.cli", *args],
        input=stdin,
        capture_output=True,
        text=True,
        timeout=60,
    )


def test_cli_version_matches_package():
    proc = run_cli("--version")
    assert proc.returncode == 0
    out = (proc.stdout + proc.stderr).strip()
    m = re.match(r"streamquantile\s+(\d+\.\d+\.\d+)", out)
    assert m, f"Unexpected version output: {out}"
    assert m.group(1) == streamquantile.__version__


def test_version_subcommand():
    proc = run_cli("version")
    assert proc.returncode == 0
    assert proc.stdout.startswith("streamquantile ")


def test_summarize_stdin_json():
    values = "\n".join(str(i) for i in range(1, 101)) + "\n"
    proc = run_cli("summarize", "--target", "0.5:0.005", "--target", "0.9:0.005", "--json", stdin=values)
    assert proc.returncode == 0, proc.stderr
    data = json.loads(proc.stdout)
    assert data["quantiles"] == {"0.5": 50.0, "0.9": 90.0}
    assert data["metrics"]["count"] == 100
    assert data["metrics"]["pending"] == 0


def test_summarize_file_skips_malformed_lines():
    with tempfile.TemporaryDirectory() as d:
        src = Path(d) / "values.txt"
        src.write_text("30\n\nnot-a-number\n10\n20\n40\n")
        out = Path(d) / "summary.json"
        proc = run_cli("summarize", str(src), "--target", "0.5:0.05", "--out", str(out))
        assert proc.returncode == 0, proc.stderr
        assert "skipped malformed value on line 3" in proc.stderr
        data = json.loads(out.read_text())
        assert data["metrics"]["count"] == 4
        assert data["quantiles"]["0.5"] == 20.0


def test_summarize_plain_output():
    proc = run_cli("summarize", "--target", "0.5:0.05", stdin="7\n")
    assert proc.returncode == 0, proc.stderr
    assert "Observed: 1" in proc.stdout
    assert "value=7" in proc.stdout


def test_summarize_missing_file():
    proc = run_cli("summarize", "/nonexistent/values.txt")
    assert proc.returncode == 2
    assert "input not found" in proc.stderr


def test_invalid_target_exit_code():
    proc = run_cli("summarize", "--target", "1.5:0.01", stdin="1\n")
    assert proc.returncode == 2
    assert "invalid configuration" in proc.stderr


def test_bench_subcommand_smoke():
    proc = run_cli("bench", "--values", "5000", "--distribution", "normal")
    assert proc.returncode == 0, proc.stderr
    m = re.search(r"Processed\s+5000\s+values in .*? -> \d+[,.]?\d* values/sec", proc.stdout)
    assert m, f"Missing throughput output. Got: {proc.stdout}"


def test_bench_json():
    proc = run_cli("bench", "--values", "2000", "--json", "--batch-size", "100")
    assert proc.returncode == 0, proc.stderr
    data = json.loads(proc.stdout)
    assert data["values"] == 2000
    assert data["metrics"]["count"] == 2000
    assert data["metrics"]["batch_size"] == 100


def test_verbose_logs_flushes():
    values = "\n".join(str(i) for i in range(1, 21)) + "\n"
    proc = run_cli("-v", "summarize", "--target", "0.5:0.05", stdin=values)
    assert proc.returncode == 0, proc.stderr
    assert "flushed 20 values" in proc.stderr


def test_quiet_by_default():
    proc = run_cli("summarize", "--target", "0.5:0.05", stdin="1\n2\n")
    assert proc.returncode == 0, proc.stderr
    assert "flushed" not in proc.stderr
