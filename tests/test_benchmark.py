"""Smoke tests for the benchmark harness."""

import os
import random
import sys

os.environ.setdefault("MPLBACKEND", "Agg")

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "benchmark")))
import run_benchmark  # noqa: E402


def test_prepare_elements_are_disjoint():
    inserted, absent = run_benchmark.prepare_elements(random.Random(0), 50, 200)
    assert len(inserted) == 50
    assert len(absent) == 200
    assert not set(inserted) & set(absent)


def test_benchmark_filter_rounds():
    rows = run_benchmark.benchmark_filter(100, 0.01, 100, 500, compress_rounds=2, seed=3)
    assert [r["round"] for r in rows] == [0, 1, 2]
    assert [r["bits"] for r in rows] == [1024, 512, 256]
    fprs = [r["fpr"] for r in rows]
    assert fprs == sorted(fprs)
    assert all(r["memory_kb"] > 0 for r in rows)


def test_full_benchmark_report_and_plot(tmp_path, capsys):
    summary = run_benchmark.run_full_benchmark(
        capacity=100, error_rate=0.05, n_insert=50, n_query=300, compress_rounds=1, num_runs=2
    )
    assert len(summary) == 2
    assert summary[0]["fpr_mean"] <= summary[1]["fpr_mean"]

    text = run_benchmark.print_results(summary)
    assert "Empirical FPR" in text
    assert "BENCHMARK RESULTS" in capsys.readouterr().out

    plot_path = run_benchmark.plot_results(summary, str(tmp_path / "plots" / "bench.png"))
    assert os.path.getsize(plot_path) > 0
