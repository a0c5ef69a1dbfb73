"""Counters kept per filter; only mutating operations record here."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Metrics:
    insertions: int = 0
    capacity_exceeded: int = 0
    merges: int = 0
    compressions: int = 0

    def record_insertion(self, within_capacity: bool) -> None:
        self.insertions += 1
        if not within_capacity:
            self.capacity_exceeded += 1

    def record_merge(self) -> None:
        self.merges += 1

    def record_compression(self) -> None:
        self.compressions += 1

    def exceeded_ratio(self) -> float:
        if self.insertions == 0:
            return 0.0
        return self.capacity_exceeded / float(self.insertions)
