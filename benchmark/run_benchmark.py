# benchmark/run_benchmark.py
"""
Benchmark for the saltbloom filter.

- Random byte-string elements, inserted up to the configured capacity
- Disjoint random absent elements to measure the empirical false positive rate
- Repeated compress() rounds: FPR, bits and estimated FPR after each halving
- Insert / query throughput and process RSS (psutil)
- Multiple runs aggregated as mean ± std (numpy), printed with tabulate
- Plot of FPR and bit width per compression round (matplotlib)
"""

import logging
import os
import random
import sys
import time
from typing import Dict, List, Set

import matplotlib.pyplot as plt
import numpy as np
import psutil

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))
from saltbloom.bloom.bloom_filter import BloomFilter  # noqa: E402
from saltbloom.bloom.bloom_params import required_salts  # noqa: E402
from saltbloom.config import configure_logging  # noqa: E402

logger = logging.getLogger(__name__)


def generate_element(rng: random.Random, length: int = 16) -> bytes:
    """Random byte string of the given length."""
    return rng.getrandbits(length * 8).to_bytes(length, "big")


def prepare_elements(rng: random.Random, n_insert: int, n_query: int) -> tuple[List[bytes], List[bytes]]:
    """Inserted elements, plus query elements guaranteed to be absent from them."""
    inserted: Set[bytes] = set()
    while len(inserted) < n_insert:
        inserted.add(generate_element(rng))

    absent: List[bytes] = []
    while len(absent) < n_query:
        e = generate_element(rng)
        if e not in inserted:
            absent.append(e)
    return list(inserted), absent


def false_positive_rate(bf: BloomFilter, absent: List[bytes]) -> float:
    return sum(1 for e in absent if bf.exists(e)) / len(absent)


def benchmark_filter(
    capacity: int,
    error_rate: float,
    n_insert: int,
    n_query: int,
    compress_rounds: int,
    seed: int = 0,
) -> List[Dict[str, float]]:
    """One run: insert, query, then compress and re-query each round."""
    rng = random.Random(seed)
    elements, absent = prepare_elements(rng, n_insert, n_query)
    bf = BloomFilter(capacity, error_rate, [rng.getrandbits(32) for _ in range(required_salts(capacity, error_rate))])

    start_insert = time.perf_counter()
    bf.insert_many(elements)
    insert_duration = time.perf_counter() - start_insert

    rows = []
    for rnd in range(compress_rounds + 1):
        if rnd > 0:
            bf.compress()
        start_query = time.perf_counter()
        fpr = false_positive_rate(bf, absent)
        query_duration = time.perf_counter() - start_query

        missing = sum(1 for e in elements if not bf.exists(e))
        if missing:
            raise RuntimeError(f"{missing} inserted elements reported missing after {rnd} compressions")

        rows.append({
            "round": rnd,
            "bits": bf.bits,
            "fpr": fpr,
            "estimated_fpr": bf.estimate_fpr(),
            "insert_qps": len(elements) / max(1e-9, insert_duration),
            "query_qps": len(absent) / max(1e-9, query_duration),
            "memory_kb": psutil.Process().memory_info().rss / 1024,
        })
    return rows


def run_full_benchmark(
    capacity: int = 1000,
    error_rate: float = 0.01,
    n_insert: int = 1000,
    n_query: int = 10_000,
    compress_rounds: int = 4,
    num_runs: int = 3,
) -> List[Dict[str, float]]:
    """Run num_runs independent runs; return mean/std per compression round."""
    runs = []
    for run in range(1, num_runs + 1):
        logger.info("[Benchmark] run %d/%d", run, num_runs)
        runs.append(benchmark_filter(capacity, error_rate, n_insert, n_query, compress_rounds, seed=run))

    summary = []
    for rnd in range(compress_rounds + 1):
        per_round = [r[rnd] for r in runs]
        fprs = [r["fpr"] for r in per_round]
        query_qps = [r["query_qps"] for r in per_round]
        memories = [r["memory_kb"] for r in per_round]
        summary.append({
            "round": rnd,
            "bits": per_round[0]["bits"],
            "fpr_mean": float(np.mean(fprs)),
            "fpr_std": float(np.std(fprs)),
            "estimated_fpr_mean": float(np.mean([r["estimated_fpr"] for r in per_round])),
            "insert_qps_mean": float(np.mean([r["insert_qps"] for r in per_round])),
            "query_qps_mean": float(np.mean(query_qps)),
            "query_qps_std": float(np.std(query_qps)),
            "memory_mean": float(np.mean(memories)),
        })
    return summary


def print_results(summary: List[Dict[str, float]]) -> str:
    """Print (and return) the results table."""
    from tabulate import tabulate

    table = []
    for s in summary:
        table.append([
            s["round"],
            f"{s['bits']:,}",
            f"{s['fpr_mean']:.4%} ± {s['fpr_std']:.4%}",
            f"{s['estimated_fpr_mean']:.4%}",
            f"{s['query_qps_mean']:,.0f} ± {s['query_qps_std']:,.0f} qps",
            f"{s['memory_mean']:,.0f} KB",
        ])

    text = tabulate(
        table,
        headers=["Compressions", "Bits", "Empirical FPR", "Estimated FPR", "Query throughput", "RSS"],
        tablefmt="github",
    )
    print("\n=== BENCHMARK RESULTS (mean ± std) ===")
    print(text)
    return text


def plot_results(summary: List[Dict[str, float]], plot_path: str = "plots/benchmark_compress.png") -> str:
    """Plot empirical/estimated FPR and bit width against compression rounds."""
    rounds = [s["round"] for s in summary]
    fpr_means = [s["fpr_mean"] * 100 for s in summary]
    fpr_stds = [s["fpr_std"] * 100 for s in summary]
    est = [s["estimated_fpr_mean"] * 100 for s in summary]
    bits = [s["bits"] for s in summary]

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 5))

    ax1.errorbar(rounds, fpr_means, yerr=fpr_stds, capsize=5, marker="o", label="empirical")
    ax1.plot(rounds, est, marker="x", linestyle="--", label="estimated")
    ax1.set_xlabel("Compressions")
    ax1.set_ylabel("False Positive Rate (%)")
    ax1.set_title("False Positive Rate")
    ax1.legend()

    ax2.bar(rounds, bits, color="green", alpha=0.8)
    ax2.set_xlabel("Compressions")
    ax2.set_ylabel("Bits")
    ax2.set_title("Filter width")

    plt.suptitle("saltbloom: accuracy vs. space under compression")
    plt.tight_layout()

    os.makedirs(os.path.dirname(plot_path) or ".", exist_ok=True)
    plt.savefig(plot_path, dpi=200)
    plt.close(fig)
    logger.info("[Benchmark] plot saved to %s", plot_path)
    return plot_path


if __name__ == "__main__":
    configure_logging()
    results = run_full_benchmark(
        capacity=10_000,
        error_rate=0.01,
        n_insert=10_000,
        n_query=50_000,
        compress_rounds=5,
        num_runs=3,
    )
    print_results(results)
    plot_results(results)
