# y86_core_tracer/analysis/metrics.py
"""
パイプラインの性能指標の集計。
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from y86_core_tracer.arch.y86.isa import Icode
from y86_core_tracer.core.snapshot import MODE_PIPELINE, CycleRecord

# @intent:constant 分岐予測ミス1回あたりのペナルティサイクル数。
BRANCH_MISPREDICT_PENALTY = 2


@dataclass(frozen=True)
class PerformanceMetrics:
    total_cycles: int = 0
    retired_instructions: int = 0
    mispredictions: int = 0
    data_hazard_stall_cycles: int = 0

    @property
    def branch_penalty_cycles(self) -> int:
        return self.mispredictions * BRANCH_MISPREDICT_PENALTY

    @property
    def branch_penalty_percent(self) -> float:
        if self.total_cycles == 0:
            return 0.0
        return self.branch_penalty_cycles / self.total_cycles * 100

    # @intent:responsibility CPI（総サイクル数 / リタイア命令数）を返します。リタイア命令がなければNoneです。
    @property
    def cpi(self) -> Optional[float]:
        if not self.retired_instructions:
            return None
        return self.total_cycles / self.retired_instructions

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalCycles": self.total_cycles,
            "retiredInstructions": self.retired_instructions,
            "mispredictions": self.mispredictions,
            "dataHazardStallCycles": self.data_hazard_stall_cycles,
            "branchPenaltyCycles": self.branch_penalty_cycles,
            "branchPenaltyPercent": self.branch_penalty_percent,
            "cpi": self.cpi,
        }


# @intent:post-condition 逐次実行モデルは分岐予測を行わないため常にFalseです。
def is_branch_mispredict(record: CycleRecord) -> bool:
    return record.mode == MODE_PIPELINE and record.execute.icode == Icode.JXX and record.flags.e_cnd is False


# @intent:responsibility サイクルレコード列から性能指標を集計します。
def compute_performance_metrics(records: Sequence[CycleRecord]) -> PerformanceMetrics:
    """
    リタイア命令: ライトバックステージに現れたNOP以外の既知の命令。
    分岐予測ミス: 実行ステージがJXXでe_Cndが0のサイクル。
    データハザードによるストール: F_stall, D_stall, E_bubbleが同時に立つサイクル（分岐予測ミスのサイクルを除く）。
    """
    retired = 0
    mispredictions = 0
    stall_cycles = 0

    for record in records:
        writeback = record.writeback.icode
        if writeback is not None and writeback != Icode.NOP:
            retired += 1

        mispredict = is_branch_mispredict(record)
        if mispredict:
            mispredictions += 1

        control = record.control
        if control.f_stall and control.d_stall and control.e_bubble and not mispredict:
            stall_cycles += 1

    return PerformanceMetrics(
        total_cycles=len(records),
        retired_instructions=retired,
        mispredictions=mispredictions,
        data_hazard_stall_cycles=stall_cycles,
    )
