import pytest

from champsim.access import AccessType
from champsim.stats import CacheStats, CpuStats, DramStats, PhaseInfo, PhaseStats


def test_cpu_stats_instrs_and_cycles():
    stats = CpuStats(begin_instrs=100, end_instrs=350, begin_cycles=40, end_cycles=1040)
    assert stats.instrs() == 350 - 100
    assert stats.cycles() == 1040 - 40


def test_cpu_stats_defaults_are_zero():
    stats = CpuStats()
    assert stats.instrs() == 0
    assert stats.cycles() == 0
    assert stats.total_branch_types == [0] * 8
    assert stats.branch_type_misses == [0] * 8


def test_cpu_stats_lists_are_independent():
    a, b = CpuStats(), CpuStats()
    a.total_branch_types[3] += 1
    assert b.total_branch_types[3] == 0


def test_cache_stats_shape():
    stats = CacheStats(name="LLC", num_cpus=4)
    assert len(stats.hits) == len(AccessType)
    assert all(len(row) == 4 for row in stats.hits)
    assert all(len(row) == 4 for row in stats.misses)
    stats.hits[AccessType.LOAD][2] += 1
    assert stats.hits[AccessType.RFO][2] == 0
    assert stats.misses[AccessType.LOAD][2] == 0


def test_cache_stats_rejects_no_cpus():
    with pytest.raises(ValueError):
        CacheStats(num_cpus=0)


def test_phase_stats_holds_records():
    phase = PhaseStats(
        name="roi",
        trace_names=["t0"],
        roi_cpu_stats=[CpuStats(name="cpu0")],
        roi_dram_stats=[DramStats(name="chan0", wq_full=2)],
    )
    assert phase.roi_cpu_stats[0].name == "cpu0"
    assert phase.roi_dram_stats[0].wq_full == 2
    assert phase.sim_slow_dram_stats == []


def test_phase_info_fields():
    info = PhaseInfo(name="Warmup", is_warmup=True, length=1000, trace_index=[0, 1], trace_names=["a", "b"])
    assert info.is_warmup
    assert info.trace_index == [0, 1]
    assert PhaseInfo().trace_names == []