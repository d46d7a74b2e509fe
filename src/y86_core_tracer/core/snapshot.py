# y86_core_tracer/core/snapshot.py
"""
サイクルレコード（UI向けの不変スナップショット）

このモジュールは、クロックの立ち上がりエッジ1回分のプロセッサ状態をデコードした
不変のデータ構造を定義します。to_dict()は可視化クライアントへ渡す
プレーンな入れ子データ（辞書/リスト/数値/文字列/真偽値/None）を返します。
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

from y86_core_tracer.common.types import (
    REGISTER_NAMES, RNONE, RegisterImage, SignalValue, UNKNOWN_TEXT,
    format_small, format_word, render_registers,
)

STAGE_KEYS = ("fetch", "decode", "execute", "memory", "writeback")
STAGE_LETTERS = {"fetch": "F", "decode": "D", "execute": "E", "memory": "M", "writeback": "W"}

MODE_PIPELINE = "pipeline"
MODE_SEQUENTIAL = "sequential"


# @intent:responsibility ステータスコードの生値と名前を記録します。
@dataclass(frozen=True)
class StatusView:
    raw: SignalValue = None
    name: str = UNKNOWN_TEXT

    @property
    def hex(self) -> str:
        return format_small(self.raw)

    def to_dict(self) -> Dict[str, Any]:
        return {"raw": self.raw, "hex": self.hex, "name": self.name}


# @intent:responsibility 1つのパイプラインステージに存在する命令の概要を記録します。
@dataclass(frozen=True)
class StageView:
    """
    ステージ上の命令クラス(icode)、機能コード(ifun)、PC、ステータスを保持するデータクラス。
    """
    stage: str  # 例: "fetch"
    icode: SignalValue = None
    icode_name: str = UNKNOWN_TEXT  # 例: "IRMOVQ"
    ifun: SignalValue = None
    pc: SignalValue = None
    status: StatusView = field(default_factory=StatusView)

    @property
    def is_unknown(self) -> bool:
        return self.icode is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "icode": self.icode,
            "icode_name": self.icode_name,
            "ifun": self.ifun,
            "ifun_hex": format_small(self.ifun),
            "pc": self.pc,
            "pc_hex": format_word(self.pc),
            "stat": self.status.raw,
            "stat_hex": self.status.hex,
            "stat_name": self.status.name,
            "stage": self.stage,
        }


# @intent:responsibility パイプライン制御信号（ストール/バブル）と命令フェッチの健全性を記録します。
@dataclass(frozen=True)
class ControlFlags:
    f_stall: Optional[bool] = None
    f_bubble: Optional[bool] = None
    d_stall: Optional[bool] = None
    d_bubble: Optional[bool] = None
    e_stall: Optional[bool] = None
    e_bubble: Optional[bool] = None
    m_stall: Optional[bool] = None
    m_bubble: Optional[bool] = None
    w_stall: Optional[bool] = None
    w_bubble: Optional[bool] = None
    instr_valid: Optional[bool] = None
    imem_error: Optional[bool] = None

    # @intent:accessor ステージの頭文字(F/D/E/M/W)からストール・バブル状態を取得します。
    def stalled(self, letter: str) -> Optional[bool]:
        return getattr(self, f"{letter.lower()}_stall")

    def bubbled(self, letter: str) -> Optional[bool]:
        return getattr(self, f"{letter.lower()}_bubble")

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for letter in "FDEMW":
            result[f"{letter}_stall"] = self.stalled(letter)
            result[f"{letter}_bubble"] = self.bubbled(letter)
        result["instr_valid"] = self.instr_valid
        result["imem_error"] = self.imem_error
        return result


# @intent:responsibility 現在および次の条件コードと、分岐判定結果を記録します。
@dataclass(frozen=True)
class ConditionFlags:
    """
    条件コードはZF=bit0、SF=bit1、OF=bit2の3bitフィールドです。
    """
    cc: SignalValue = None
    new_cc: SignalValue = None
    set_cc: Optional[bool] = None
    e_cnd: Optional[bool] = None  # 分岐の成立/不成立
    m_cnd: Optional[bool] = None

    @staticmethod
    def _bit(value: SignalValue, mask: int) -> Optional[bool]:
        return None if value is None else bool(value & mask)

    @property
    def zf(self) -> Optional[bool]:
        return self._bit(self.cc, 0b001)

    @property
    def sf(self) -> Optional[bool]:
        return self._bit(self.cc, 0b010)

    @property
    def of(self) -> Optional[bool]:
        return self._bit(self.cc, 0b100)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cc": self.cc,
            "cc_hex": format_small(self.cc),
            "zf": self.zf,
            "sf": self.sf,
            "of": self.of,
            "new_cc": self.new_cc,
            "new_cc_hex": format_small(self.new_cc),
            "new_zf": self._bit(self.new_cc, 0b001),
            "new_sf": self._bit(self.new_cc, 0b010),
            "new_of": self._bit(self.new_cc, 0b100),
            "set_cc": self.set_cc,
            "e_Cnd": self.e_cnd,
            "M_Cnd": self.m_cnd,
        }


# @intent:responsibility 予測PCなどの補助情報を記録します。
@dataclass(frozen=True)
class CycleMeta:
    pred_pc: SignalValue = None
    fetch_reg_pred_pc: SignalValue = None
    memory_stat: StatusView = field(default_factory=StatusView)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "predPC": format_word(self.pred_pc),
            "fetchRegPredPC": format_word(self.fetch_reg_pred_pc),
            "memory_stat": self.memory_stat.to_dict(),
        }


# @intent:responsibility フォワーディングの1スロット（レジスタ番号0〜14、またはRNONE=15）を記録します。
@dataclass(frozen=True)
class RegisterSlot:
    raw: SignalValue = None

    @property
    def is_none(self) -> Optional[bool]:
        if self.raw is None:
            return None
        return self.raw == RNONE

    @property
    def name(self) -> str:
        if self.raw is None:
            return UNKNOWN_TEXT
        if 0 <= self.raw < len(REGISTER_NAMES):
            return REGISTER_NAMES[self.raw]
        if self.raw == RNONE:
            return "RNONE"
        return format_small(self.raw)

    @property
    def label(self) -> str:
        if self.raw == RNONE:
            return "none"
        return self.name

    # @intent:responsibility 2つのスロットが同じ実レジスタを指すかを判定します。不定値やRNONEは一致しません。
    def same_register(self, other: "RegisterSlot") -> bool:
        return self.is_none is False and other.is_none is False and self.raw == other.raw

    def to_dict(self) -> Dict[str, Any]:
        return {
            "raw": self.raw,
            "hex": format_small(self.raw),
            "name": self.name,
            "label": self.label,
            "isNone": self.is_none,
        }


# @intent:responsibility デコードステージのソースと、各ステージのデスティネーションを記録します。
@dataclass(frozen=True)
class Forwarding:
    src_a: RegisterSlot = field(default_factory=RegisterSlot)
    src_b: RegisterSlot = field(default_factory=RegisterSlot)
    e_dst_e: RegisterSlot = field(default_factory=RegisterSlot)
    e_dst_m: RegisterSlot = field(default_factory=RegisterSlot)
    m_dst_e: RegisterSlot = field(default_factory=RegisterSlot)
    m_dst_m: RegisterSlot = field(default_factory=RegisterSlot)
    w_dst_e: RegisterSlot = field(default_factory=RegisterSlot)
    w_dst_m: RegisterSlot = field(default_factory=RegisterSlot)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "decode": {"srcA": self.src_a.to_dict(), "srcB": self.src_b.to_dict()},
            "execute": {"dstE": self.e_dst_e.to_dict(), "dstM": self.e_dst_m.to_dict()},
            "memory": {"dstE": self.m_dst_e.to_dict(), "dstM": self.m_dst_m.to_dict()},
            "writeback": {"dstE": self.w_dst_e.to_dict(), "dstM": self.w_dst_m.to_dict()},
        }


# @intent:responsibility 逐次実行モデルの命令1つ分のデコード済みオペランドを記録します。
@dataclass(frozen=True)
class SequentialDetail:
    pc: SignalValue = None
    next_pc: SignalValue = None
    r_a: SignalValue = None
    r_b: SignalValue = None
    val_a: SignalValue = None
    val_b: SignalValue = None
    val_c: SignalValue = None
    val_e: SignalValue = None
    val_m: SignalValue = None
    val_p: SignalValue = None
    cnd: Optional[bool] = None
    instr_valid: Optional[bool] = None
    imem_error: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pc_hex": format_word(self.pc),
            "next_pc_hex": format_word(self.next_pc),
            "valA_hex": format_word(self.val_a),
            "valB_hex": format_word(self.val_b),
            "valC_hex": format_word(self.val_c),
            "valE_hex": format_word(self.val_e),
            "valM_hex": format_word(self.val_m),
            "valP_hex": format_word(self.val_p),
            "rA_hex": format_small(self.r_a),
            "rB_hex": format_small(self.r_b),
            "cnd": self.cnd,
            "instr_valid": self.instr_valid,
            "imem_error": self.imem_error,
        }


# @intent:responsibility 命令クラスとオペランド値から導出したデータメモリアクセスを記録します。
@dataclass(frozen=True)
class DataMemoryAccess:
    read: bool = False
    write: bool = False
    address: SignalValue = None  # ワード単位のアドレス
    in_range: bool = False
    write_data: SignalValue = None
    read_data: SignalValue = None

    @property
    def word_index(self) -> Optional[int]:
        return self.address if self.in_range else None

    @property
    def byte_address(self) -> SignalValue:
        return None if self.address is None else self.address * 8

    def to_dict(self) -> Dict[str, Any]:
        return {
            "read": self.read,
            "write": self.write,
            "address": self.address,
            "address_hex": format_word(self.address),
            "wordIndex": self.word_index,
            "byteAddress_hex": format_word(self.byte_address),
            "inRange": self.in_range,
            "writeData": self.write_data,
            "writeData_hex": format_word(self.write_data),
            "readData": self.read_data,
            "readData_hex": format_word(self.read_data),
        }


# @intent:responsibility 1クロックサイクル分のデコード済みプロセッサ状態を不変に記録します。
@dataclass(frozen=True)
class CycleRecord:
    """
    立ち上がりエッジ1回分のプロセッサ状態。indexは0始まり、表示用のdisplay_indexは1始まりです。
    registersのみ、レジスタ状態の再構成によって丸ごと置き換えられることがあります（with_registers）。
    """
    index: int
    timestamp: Optional[int]
    mode: str
    fetch: StageView
    decode: StageView
    execute: StageView
    memory: StageView
    writeback: StageView
    registers: RegisterImage = field(default_factory=dict)
    control: ControlFlags = field(default_factory=ControlFlags)
    flags: ConditionFlags = field(default_factory=ConditionFlags)
    meta: CycleMeta = field(default_factory=CycleMeta)
    forwarding: Forwarding = field(default_factory=Forwarding)
    sequential: Optional[SequentialDetail] = None
    data_memory: Optional[DataMemoryAccess] = None

    @property
    def display_index(self) -> int:
        return self.index + 1

    @property
    def stages(self) -> Tuple[StageView, ...]:
        return (self.fetch, self.decode, self.execute, self.memory, self.writeback)

    # @intent:responsibility レジスタが1つも観測されていない（全て不定値）かを判定します。
    @property
    def registers_unknown(self) -> bool:
        return all(value is None for value in self.registers.values())

    # @intent:responsibility registersのみを置き換えた新しいレコードを返します。
    def with_registers(self, registers: RegisterImage) -> "CycleRecord":
        return replace(self, registers=dict(registers))

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "index": self.index,
            "cycle": self.display_index,
            "timestamp": self.timestamp,
            "mode": self.mode,
        }
        for stage in self.stages:
            result[stage.stage] = stage.to_dict()
        result["registers"] = render_registers(self.registers)
        result["control"] = self.control.to_dict()
        result["flags"] = self.flags.to_dict()
        result["meta"] = self.meta.to_dict()
        result["forwarding"] = self.forwarding.to_dict()
        if self.sequential is not None:
            result["meta"]["sequential"] = self.sequential.to_dict()
        if self.data_memory is not None:
            result["dataMemory"] = self.data_memory.to_dict()
        return result
