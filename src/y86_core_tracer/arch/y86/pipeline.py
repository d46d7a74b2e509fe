# y86_core_tracer/arch/y86/pipeline.py
"""
Y86-64 パイプライン(PIPE)モデルのサイクルデコーダ。

フェッチ/デコード/実行/メモリ/ライトバックの5ステージそれぞれの命令と、
ストール/バブル制御、条件コード、フォワーディング用のレジスタ番号をトレースから読み出します。
"""
from enum import Enum
from typing import List, Optional, Sequence, Type

from y86_core_tracer.arch.y86.isa import icode_name, stat_name
from y86_core_tracer.common.types import REGISTER_NAMES, SignalValue, to_bool
from y86_core_tracer.core.decoder import AbstractCycleDecoder
from y86_core_tracer.core.snapshot import (
    MODE_PIPELINE, ConditionFlags, ControlFlags, CycleMeta, CycleRecord, Forwarding,
    RegisterSlot, StageView, StatusView,
)
from y86_core_tracer.trace.sampler import RawCycleSnapshot


# @intent:map パイプラインモデルのトレースから追跡する論理信号。値はトレース上の信号名です。
class PipelineSignal(Enum):
    CLOCK = "clock"

    F_ICODE = "f_icode"
    D_ICODE = "D_icode"
    E_ICODE = "E_icode"
    M_ICODE = "M_icode"
    W_ICODE = "W_icode"

    F_IFUN = "f_ifun"
    D_IFUN = "D_ifun"
    E_IFUN = "E_ifun"
    M_IFUN = "M_ifun"

    F_STAT = "f_stat"
    D_STAT = "D_stat"
    E_STAT = "E_stat"
    M_STAT = "M_stat"
    W_STAT = "W_stat"
    MEM_STAT = "m_stat"

    F_PC = "f_pc"
    F_PRED_PC = "f_predPC"
    FETCH_REG_PRED_PC = "F_predPC"
    D_PC = "D_pc"
    E_PC = "E_pc"
    M_PC = "M_pc"
    W_PC = "W_pc"

    CC = "cc"
    NEW_CC = "new_cc"
    SET_CC = "set_cc"
    E_CND = "e_Cnd"
    M_CND = "M_Cnd"

    INSTR_VALID = "instr_valid"
    IMEM_ERROR = "imem_error"

    F_STALL = "F_stall"
    F_BUBBLE = "F_bubble"
    D_STALL = "D_stall"
    D_BUBBLE = "D_bubble"
    E_STALL = "E_stall"
    E_BUBBLE = "E_bubble"
    M_STALL = "M_stall"
    M_BUBBLE = "M_bubble"
    W_STALL = "W_stall"
    W_BUBBLE = "W_bubble"

    # フォワーディング（デコード済みのソース/デスティネーション番号）
    D_SRC_A = "d_srcA"
    D_SRC_B = "d_srcB"
    E_DST_E = "e_dstE"
    E_DST_M = "E_dstM"
    M_DST_E = "M_dstE"
    M_DST_M = "M_dstM"
    W_DST_E = "W_dstE"
    W_DST_M = "W_dstM"

    # レジスタファイルのタップ
    RAX = "rax"
    RCX = "rcx"
    RDX = "rdx"
    RBX = "rbx"
    RSP = "rsp"
    RBP = "rbp"
    RSI = "rsi"
    RDI = "rdi"
    R8 = "r8"
    R9 = "r9"
    R10 = "r10"
    R11 = "r11"
    R12 = "r12"
    R13 = "r13"
    R14 = "r14"


# @intent:responsibility パイプラインモデルの生スナップショットをサイクルレコードに変換します。
class PipelineCycleDecoder(AbstractCycleDecoder):
    """
    フォワーディング情報は命令の意味から再計算せず、トレース上のデコード済み信号をそのまま読み出します。
    """

    @property
    def signal_enum(self) -> Type[Enum]:
        return PipelineSignal

    @property
    def clock_signals(self) -> Sequence[Enum]:
        return (PipelineSignal.CLOCK,)

    def _stage(
        self,
        snapshot: RawCycleSnapshot,
        stage: str,
        icode: PipelineSignal,
        pc: PipelineSignal,
        stat: PipelineSignal,
        ifun: Optional[PipelineSignal] = None,
    ) -> StageView:
        icode_value = snapshot.get(icode)
        return StageView(
            stage=stage,
            icode=icode_value,
            icode_name=icode_name(icode_value),
            ifun=snapshot.get(ifun) if ifun is not None else None,
            pc=snapshot.get(pc),
            status=self._status(snapshot.get(stat)),
        )

    @staticmethod
    def _status(value: SignalValue) -> StatusView:
        return StatusView(raw=value, name=stat_name(value))

    def _flag(self, snapshot: RawCycleSnapshot, signal: PipelineSignal) -> Optional[bool]:
        return to_bool(snapshot.get(signal))

    def _slot(self, snapshot: RawCycleSnapshot, signal: PipelineSignal) -> RegisterSlot:
        return RegisterSlot(raw=snapshot.get(signal))

    def _decode(self, snapshot: RawCycleSnapshot) -> CycleRecord:
        s = PipelineSignal
        registers = {name: snapshot.get(s(name)) for name in REGISTER_NAMES}

        return CycleRecord(
            index=snapshot.index,
            timestamp=snapshot.timestamp,
            mode=MODE_PIPELINE,
            fetch=self._stage(snapshot, "fetch", s.F_ICODE, s.F_PC, s.F_STAT, s.F_IFUN),
            decode=self._stage(snapshot, "decode", s.D_ICODE, s.D_PC, s.D_STAT, s.D_IFUN),
            execute=self._stage(snapshot, "execute", s.E_ICODE, s.E_PC, s.E_STAT, s.E_IFUN),
            memory=self._stage(snapshot, "memory", s.M_ICODE, s.M_PC, s.M_STAT, s.M_IFUN),
            writeback=self._stage(snapshot, "writeback", s.W_ICODE, s.W_PC, s.W_STAT),
            registers=registers,
            control=ControlFlags(
                f_stall=self._flag(snapshot, s.F_STALL),
                f_bubble=self._flag(snapshot, s.F_BUBBLE),
                d_stall=self._flag(snapshot, s.D_STALL),
                d_bubble=self._flag(snapshot, s.D_BUBBLE),
                e_stall=self._flag(snapshot, s.E_STALL),
                e_bubble=self._flag(snapshot, s.E_BUBBLE),
                m_stall=self._flag(snapshot, s.M_STALL),
                m_bubble=self._flag(snapshot, s.M_BUBBLE),
                w_stall=self._flag(snapshot, s.W_STALL),
                w_bubble=self._flag(snapshot, s.W_BUBBLE),
                instr_valid=self._flag(snapshot, s.INSTR_VALID),
                imem_error=self._flag(snapshot, s.IMEM_ERROR),
            ),
            flags=ConditionFlags(
                cc=snapshot.get(s.CC),
                new_cc=snapshot.get(s.NEW_CC),
                set_cc=self._flag(snapshot, s.SET_CC),
                e_cnd=self._flag(snapshot, s.E_CND),
                m_cnd=self._flag(snapshot, s.M_CND),
            ),
            meta=CycleMeta(
                pred_pc=snapshot.get(s.F_PRED_PC),
                fetch_reg_pred_pc=snapshot.get(s.FETCH_REG_PRED_PC),
                memory_stat=self._status(snapshot.get(s.MEM_STAT)),
            ),
            forwarding=Forwarding(
                src_a=self._slot(snapshot, s.D_SRC_A),
                src_b=self._slot(snapshot, s.D_SRC_B),
                e_dst_e=self._slot(snapshot, s.E_DST_E),
                e_dst_m=self._slot(snapshot, s.E_DST_M),
                m_dst_e=self._slot(snapshot, s.M_DST_E),
                m_dst_m=self._slot(snapshot, s.M_DST_M),
                w_dst_e=self._slot(snapshot, s.W_DST_E),
                w_dst_m=self._slot(snapshot, s.W_DST_M),
            ),
        )


# @intent:responsibility パイプラインモデルのトレーステキストを解析します。
def parse_pipeline_trace(text: str) -> List[CycleRecord]:
    return PipelineCycleDecoder().parse(text)


def load_pipeline_trace(file_path: str) -> List[CycleRecord]:
    return PipelineCycleDecoder().load(file_path)
