"""Statistics records gathered per simulation phase."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .access import NUM_ACCESS_TYPES

__all__ = ["CpuStats", "CacheStats", "DramStats", "PhaseInfo", "PhaseStats"]

_NUM_BRANCH_TYPES = 8


@dataclass
class CpuStats:
    """Counters for one core over one phase."""

    name: str = ""
    begin_instrs: int = 0
    begin_cycles: int = 0
    end_instrs: int = 0
    end_cycles: int = 0
    rob_stall_cycles: int = 0
    total_rob_occupancy_at_branch_mispredict: int = 0
    total_branch_types: List[int] = field(default_factory=lambda: [0] * _NUM_BRANCH_TYPES)
    branch_type_misses: List[int] = field(default_factory=lambda: [0] * _NUM_BRANCH_TYPES)

    def instrs(self) -> int:
        return self.end_instrs - self.begin_instrs

    def cycles(self) -> int:
        return self.end_cycles - self.begin_cycles


def _per_type_per_cpu(num_cpus: int) -> List[List[int]]:
    return [[0] * num_cpus for _ in range(NUM_ACCESS_TYPES)]


@dataclass
class CacheStats:
    """Counters for one cache; hits and misses are indexed [access type][cpu]."""

    name: str = ""
    num_cpus: int = 1
    pf_requested: int = 0
    pf_issued: int = 0
    pf_useful: int = 0
    pf_useless: int = 0
    pf_fill: int = 0
    hits: List[List[int]] = field(default_factory=list)
    misses: List[List[int]] = field(default_factory=list)
    avg_miss_latency: float = 0.0
    total_miss_latency: int = 0

    def __post_init__(self):
        if self.num_cpus < 1:
            raise ValueError("a cache serves at least one cpu")
        if not self.hits:
            self.hits = _per_type_per_cpu(self.num_cpus)
        if not self.misses:
            self.misses = _per_type_per_cpu(self.num_cpus)


@dataclass
class DramStats:
    """Counters for one DRAM channel."""

    name: str = ""
    dbus_cycle_congested: int = 0
    dbus_count_congested: int = 0
    wq_row_buffer_hit: int = 0
    wq_row_buffer_miss: int = 0
    rq_row_buffer_hit: int = 0
    rq_row_buffer_miss: int = 0
    wq_full: int = 0


@dataclass
class PhaseInfo:
    """Description of one simulation phase."""

    name: str = ""
    is_warmup: bool = False
    length: int = 0
    trace_index: List[int] = field(default_factory=list)
    trace_names: List[str] = field(default_factory=list)


@dataclass
class PhaseStats:
    """All statistics collected at the end of one phase."""

    name: str = ""
    trace_names: List[str] = field(default_factory=list)
    roi_cpu_stats: List[CpuStats] = field(default_factory=list)
    sim_cpu_stats: List[CpuStats] = field(default_factory=list)
    roi_cache_stats: List[CacheStats] = field(default_factory=list)
    sim_cache_stats: List[CacheStats] = field(default_factory=list)
    roi_dram_stats: List[DramStats] = field(default_factory=list)
    sim_dram_stats: List[DramStats] = field(default_factory=list)
    roi_slow_dram_stats: List[DramStats] = field(default_factory=list)
    sim_slow_dram_stats: List[DramStats] = field(default_factory=list)