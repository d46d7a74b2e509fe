# y86_core_tracer/arch/y86/sequential.py
"""
Y86-64 逐次実行(SEQ)モデルのサイクルデコーダ。

1サイクルに1命令のみが実行されるため、5つのステージビューは全て同じ命令を指します。
データメモリアクセスは命令クラスとオペランド値から導出し、
レジスタファイルのタップがない場合は初期イメージからレジスタ状態を再構成します。
"""
from enum import Enum
from typing import List, Mapping, Optional, Sequence, Type

from y86_core_tracer.analysis.reconstructor import reconstruct_register_states
from y86_core_tracer.analysis.trimmer import trim_sequential_cycles
from y86_core_tracer.arch.y86.isa import Icode, LOAD_ICODES, STORE_ICODES, icode_name, stat_name
from y86_core_tracer.common.types import REGISTER_NAMES, SignalValue, to_bool
from y86_core_tracer.core.decoder import AbstractCycleDecoder
from y86_core_tracer.core.snapshot import (
    MODE_SEQUENTIAL, STAGE_KEYS, ConditionFlags, ControlFlags, CycleMeta, CycleRecord,
    DataMemoryAccess, Forwarding, RegisterSlot, SequentialDetail, StageView, StatusView,
)
from y86_core_tracer.trace.sampler import RawCycleSnapshot

DEFAULT_DATA_MEMORY_WORDS = 128


# @intent:map 逐次実行モデルのトレースから追跡する論理信号。値はトレース上の信号名です。
class SequentialSignal(Enum):
    CLK = "clk"
    CLOCK = "clock"

    PC = "PC"  # 次のPC
    PC_IN = "PC_in"  # 実行中の命令のPC
    ICODE = "icode"
    IFUN = "ifun"
    R_A = "rA"
    R_B = "rB"
    VAL_C = "valC"
    VAL_P = "valP"
    VAL_A = "valA"
    VAL_B = "valB"
    VAL_M = "valM"
    VAL_E = "valE"
    INSTR_VALID = "instr_valid"
    CND = "Cnd"
    IMEM_ERROR = "imem_error"
    STAT = "stat"

    # レジスタファイル配列の各要素（reg_store[0]〜reg_store[14]）
    REG_STORE_0 = "reg_store[0]"
    REG_STORE_1 = "reg_store[1]"
    REG_STORE_2 = "reg_store[2]"
    REG_STORE_3 = "reg_store[3]"
    REG_STORE_4 = "reg_store[4]"
    REG_STORE_5 = "reg_store[5]"
    REG_STORE_6 = "reg_store[6]"
    REG_STORE_7 = "reg_store[7]"
    REG_STORE_8 = "reg_store[8]"
    REG_STORE_9 = "reg_store[9]"
    REG_STORE_10 = "reg_store[10]"
    REG_STORE_11 = "reg_store[11]"
    REG_STORE_12 = "reg_store[12]"
    REG_STORE_13 = "reg_store[13]"
    REG_STORE_14 = "reg_store[14]"


# @intent:responsibility 命令クラスとオペランド値からデータメモリアクセスの記述子を導出します。
# @intent:post-condition アドレスは0以上word_count未満の整数のときのみ有効(in_range)です。
def derive_memory_access(
    icode: SignalValue,
    val_a: SignalValue,
    val_e: SignalValue,
    val_m: SignalValue,
    word_count: int = DEFAULT_DATA_MEMORY_WORDS,
) -> DataMemoryAccess:
    """
    RMMOVQ/CALL/PUSHQ はvalEのアドレスへvalAを書き込みます。
    MRMOVQ はvalEのアドレスから、RET/POPQ はvalAのアドレスから読み出します。
    """
    read = False
    write = False
    address: SignalValue = None
    write_data: SignalValue = None

    if icode in STORE_ICODES:
        write = True
        address = val_e
        write_data = val_a
    elif icode == Icode.MRMOVQ:
        read = True
        address = val_e
    elif icode in LOAD_ICODES:
        read = True
        address = val_a

    in_range = isinstance(address, int) and 0 <= address < word_count
    return DataMemoryAccess(
        read=read,
        write=write,
        address=address,
        in_range=in_range,
        write_data=write_data,
        read_data=val_m,
    )


# @intent:responsibility 逐次実行モデルの生スナップショットをサイクルレコードに変換し、トリミングと再構成を行います。
class SequentialCycleDecoder(AbstractCycleDecoder):
    """
    initial_registersが与えられ、トレースにレジスタファイルのタップが全くない場合、
    命令ごとのデスティネーション表に従ってレジスタ状態を再構成します。
    """

    def __init__(
        self,
        initial_registers: Optional[Mapping[str, SignalValue]] = None,
        data_memory_words: int = DEFAULT_DATA_MEMORY_WORDS,
    ):
        self._initial_registers = dict(initial_registers) if initial_registers is not None else None
        self._data_memory_words = data_memory_words

    @property
    def signal_enum(self) -> Type[Enum]:
        return SequentialSignal

    @property
    def clock_signals(self) -> Sequence[Enum]:
        return (SequentialSignal.CLK, SequentialSignal.CLOCK)

    def _decode(self, snapshot: RawCycleSnapshot) -> CycleRecord:
        s = SequentialSignal
        icode = snapshot.get(s.ICODE)
        ifun = snapshot.get(s.IFUN)
        pc = snapshot.get(s.PC_IN)
        next_pc = snapshot.get(s.PC)
        stat = snapshot.get(s.STAT)
        status = StatusView(raw=stat, name=stat_name(stat))

        detail = SequentialDetail(
            pc=pc,
            next_pc=next_pc,
            r_a=snapshot.get(s.R_A),
            r_b=snapshot.get(s.R_B),
            val_a=snapshot.get(s.VAL_A),
            val_b=snapshot.get(s.VAL_B),
            val_c=snapshot.get(s.VAL_C),
            val_e=snapshot.get(s.VAL_E),
            val_m=snapshot.get(s.VAL_M),
            val_p=snapshot.get(s.VAL_P),
            cnd=to_bool(snapshot.get(s.CND)),
            instr_valid=to_bool(snapshot.get(s.INSTR_VALID)),
            imem_error=to_bool(snapshot.get(s.IMEM_ERROR)),
        )

        stages = {
            key: StageView(stage=key, icode=icode, icode_name=icode_name(icode), ifun=ifun, pc=pc, status=status)
            for key in STAGE_KEYS
        }
        registers = {
            name: snapshot.get(s(f"reg_store[{number}]"))
            for number, name in enumerate(REGISTER_NAMES)
        }

        return CycleRecord(
            index=snapshot.index,
            timestamp=snapshot.timestamp,
            mode=MODE_SEQUENTIAL,
            registers=registers,
            # ステージを持たないため、ストール/バブルは常にFalse
            control=ControlFlags(
                f_stall=False, f_bubble=False,
                d_stall=False, d_bubble=False,
                e_stall=False, e_bubble=False,
                m_stall=False, m_bubble=False,
                w_stall=False, w_bubble=False,
                instr_valid=detail.instr_valid,
                imem_error=detail.imem_error,
            ),
            flags=ConditionFlags(e_cnd=detail.cnd),
            meta=CycleMeta(pred_pc=next_pc, fetch_reg_pred_pc=pc, memory_stat=status),
            forwarding=Forwarding(src_a=RegisterSlot(detail.r_a), src_b=RegisterSlot(detail.r_b)),
            sequential=detail,
            data_memory=derive_memory_access(
                icode, detail.val_a, detail.val_e, detail.val_m, self._data_memory_words,
            ),
            **stages,
        )

    def _post_process(self, records: List[CycleRecord]) -> List[CycleRecord]:
        trimmed = trim_sequential_cycles(records)
        return reconstruct_register_states(trimmed, self._initial_registers)


# @intent:responsibility 逐次実行モデルのトレーステキストを解析します。
def parse_sequential_trace(
    text: str,
    initial_registers: Optional[Mapping[str, SignalValue]] = None,
    data_memory_words: int = DEFAULT_DATA_MEMORY_WORDS,
) -> List[CycleRecord]:
    return SequentialCycleDecoder(initial_registers, data_memory_words).parse(text)


def load_sequential_trace(
    file_path: str,
    initial_registers: Optional[Mapping[str, SignalValue]] = None,
    data_memory_words: int = DEFAULT_DATA_MEMORY_WORDS,
) -> List[CycleRecord]:
    return SequentialCycleDecoder(initial_registers, data_memory_words).load(file_path)
