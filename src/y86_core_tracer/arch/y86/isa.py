# y86_core_tracer/arch/y86/isa.py
"""
Y86-64 命令セットの符号化テーブル。

命令コード(icode)とステータス(stat)の名前表、および
各命令が書き込むデスティネーションレジスタの対応を定義します。
"""
from enum import IntEnum
from typing import Optional, Tuple

from y86_core_tracer.common.types import RNONE, RSP, SignalValue, UNKNOWN_TEXT


# @intent:map 4bitの命令コードと命令クラス名の対応。
class Icode(IntEnum):
    HALT = 0x0
    NOP = 0x1
    CMOVXX = 0x2
    IRMOVQ = 0x3
    RMMOVQ = 0x4
    MRMOVQ = 0x5
    OPQ = 0x6
    JXX = 0x7
    CALL = 0x8
    RET = 0x9
    PUSHQ = 0xA
    POPQ = 0xB
    IADDQ = 0xC


# @intent:map 2bitのステータスコードと名前の対応。
class Stat(IntEnum):
    AOK = 0x0
    HLT = 0x1
    ADR = 0x2
    INS = 0x3


# @intent:constant データメモリへ書き込む命令クラスと、読み出す命令クラス。
STORE_ICODES = frozenset({Icode.RMMOVQ, Icode.CALL, Icode.PUSHQ})
LOAD_ICODES = frozenset({Icode.MRMOVQ, Icode.RET, Icode.POPQ})


# @intent:responsibility 命令コードを命令クラス名に変換します。
# @intent:post-condition テーブル外の値は"0x<hex>"として返し、失敗しません。
def icode_name(value: SignalValue) -> str:
    if value is None:
        return UNKNOWN_TEXT
    try:
        return Icode(value).name
    except ValueError:
        return f"0x{value:x}"


def stat_name(value: SignalValue) -> str:
    if value is None:
        return UNKNOWN_TEXT
    try:
        return Stat(value).name
    except ValueError:
        return f"0x{value:X}"


# @intent:responsibility 逐次実行モデルの命令が書き込むデスティネーション(dstE, dstM)を命令の意味から求めます。
# @intent:post-condition 書き込みのないスロットはRNONE(0xF)を返します。
def sequential_destinations(
    icode: SignalValue,
    cnd: Optional[bool],
    r_a: SignalValue,
    r_b: SignalValue,
) -> Tuple[int, int]:
    """
    CMOVXXは条件成立時のみrBへ、IRMOVQ/OPQ/IADDQはrBへvalEを書き込みます。
    MRMOVQはrAへvalMを書き込みます。
    CALL/RET/PUSHQ/POPQはスタックポインタ(rsp)へvalEを書き込み、POPQはさらにrAへvalMを書き込みます。
    """
    dst_e = RNONE
    dst_m = RNONE
    r_a = RNONE if r_a is None else r_a
    r_b = RNONE if r_b is None else r_b

    if icode == Icode.CMOVXX:
        if cnd is True:
            dst_e = r_b
    elif icode in (Icode.IRMOVQ, Icode.OPQ, Icode.IADDQ):
        dst_e = r_b
    elif icode == Icode.MRMOVQ:
        dst_m = r_a
    elif icode in (Icode.CALL, Icode.RET, Icode.PUSHQ, Icode.POPQ):
        dst_e = RSP
        if icode == Icode.POPQ:
            dst_m = r_a

    return dst_e, dst_m
