"""Tests for per-filter counters."""

import dataclasses

from saltbloom.bloom.bloom_filter import BloomFilter
from saltbloom.metrics.metrics import Metrics


def test_metrics_counters():
    m = Metrics()
    assert m.exceeded_ratio() == 0.0
    m.record_insertion(True)
    m.record_insertion(False)
    m.record_merge()
    m.record_compression()
    assert m.insertions == 2
    assert m.capacity_exceeded == 1
    assert m.exceeded_ratio() == 0.5
    assert m.merges == 1 and m.compressions == 1


def test_filter_records_metrics():
    bf = BloomFilter(2, 0.01, [1, 2, 3])
    bf.insert(b"a")
    bf.insert(b"b")
    bf.compress()
    assert bf.metrics.insertions == 2
    assert bf.metrics.capacity_exceeded == 1
    assert bf.metrics.compressions == 1


def test_exists_leaves_metrics_untouched():
    bf = BloomFilter(10, 0.01, [1, 2, 3])
    bf.insert(b"a")
    before = dataclasses.replace(bf.metrics)
    assert bf.exists(b"a")
    assert not bf.exists(b"zzz")
    assert b"a" in bf
    assert bf.metrics == before
