# tests/analysis/test_metrics.py
"""
y86_core_tracer.analysis.metricsモジュールの単体テスト。
"""
import pytest

from y86_core_tracer.analysis.metrics import PerformanceMetrics, compute_performance_metrics
from y86_core_tracer.arch.y86.isa import Icode
from y86_core_tracer.core.snapshot import (
    MODE_PIPELINE, MODE_SEQUENTIAL, ConditionFlags, ControlFlags, CycleRecord, StageView,
)

# @intent:test_suite サイクルレコード列からCPI、分岐予測ミス、ストールを集計する処理を検証します。


def make_record(writeback=None, execute=None, e_cnd=None, stall=False, mode=MODE_PIPELINE) -> CycleRecord:
    return CycleRecord(
        index=0,
        timestamp=0,
        mode=mode,
        fetch=StageView(stage="fetch"),
        decode=StageView(stage="decode"),
        execute=StageView(stage="execute", icode=execute),
        memory=StageView(stage="memory"),
        writeback=StageView(stage="writeback", icode=writeback),
        control=ControlFlags(f_stall=stall, d_stall=stall, e_bubble=stall),
        flags=ConditionFlags(e_cnd=e_cnd),
    )


class TestComputePerformanceMetrics:
    """
    compute_performance_metricsのテスト。
    """
    # @intent:test_case_retired ライトバックに現れたNOP以外の既知の命令のみ数えることを検証します。
    def test_retired_instructions(self):
        records = [
            make_record(writeback=None),
            make_record(writeback=Icode.NOP),
            make_record(writeback=Icode.IRMOVQ),
            make_record(writeback=Icode.HALT),
        ]
        metrics = compute_performance_metrics(records)

        assert metrics.total_cycles == 4
        assert metrics.retired_instructions == 2
        assert metrics.cpi == pytest.approx(2.0)

    # @intent:test_case_mispredict 分岐不成立のJXXを予測ミスとして数え、ストールから除外することを検証します。
    def test_mispredictions_and_stalls(self):
        records = [
            make_record(execute=Icode.JXX, e_cnd=False, stall=True),
            make_record(execute=Icode.JXX, e_cnd=True),
            make_record(execute=Icode.JXX, e_cnd=None),
            make_record(stall=True),
            make_record(writeback=Icode.OPQ),
        ]
        metrics = compute_performance_metrics(records)

        assert metrics.mispredictions == 1
        assert metrics.data_hazard_stall_cycles == 1
        assert metrics.branch_penalty_cycles == 2
        assert metrics.branch_penalty_percent == pytest.approx(40.0)

    # @intent:test_case_sequential 逐次実行モデルでは分岐予測ミスを数えないことを検証します。
    def test_sequential_has_no_mispredictions(self):
        records = [make_record(execute=Icode.JXX, e_cnd=False, mode=MODE_SEQUENTIAL)]
        assert compute_performance_metrics(records).mispredictions == 0

    # @intent:test_case_empty リタイア命令がない場合はCPIがNoneになることを検証します。
    def test_empty(self):
        metrics = compute_performance_metrics([])

        assert metrics == PerformanceMetrics()
        assert metrics.cpi is None
        assert metrics.to_dict() == {
            "totalCycles": 0,
            "retiredInstructions": 0,
            "mispredictions": 0,
            "dataHazardStallCycles": 0,
            "branchPenaltyCycles": 0,
            "branchPenaltyPercent": 0.0,
            "cpi": None,
        }
