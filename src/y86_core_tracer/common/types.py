"""
共通の型定義を提供するモジュール。
プロジェクト全体で使用される汎用的な型エイリアス、レジスタ名、値の表示形式を定義します。
"""
from typing import Dict, List, Optional

# @intent:data_structure 信号値の型エイリアス。Noneは不定値(x/z)を表し、0とは区別されます。
SignalValue = Optional[int]

# @intent:data_structure アーキテクチャレジスタ名から64bit値へのマッピング。
RegisterImage = Dict[str, SignalValue]

# @intent:constant 不定値の表示用センチネル文字列。
UNKNOWN_TEXT = "x"

# @intent:constant Y86-64のレジスタ番号(0x0〜0xE)に対応するレジスタ名。
REGISTER_NAMES: List[str] = [
    "rax", "rcx", "rdx", "rbx",
    "rsp", "rbp", "rsi", "rdi",
    "r8", "r9", "r10", "r11",
    "r12", "r13", "r14",
]

# @intent:constant レジスタ番号0xFは「レジスタなし」を表します。
RNONE = 0xF
RSP = 0x4

WORD_NIBBLES = 16
WORD_MASK = (1 << 64) - 1


# @intent:utility_function 64bit値を16桁ゼロ埋めの小文字HEXで表示します。
def format_word(value: SignalValue, nibbles: int = WORD_NIBBLES) -> str:
    if value is None:
        return UNKNOWN_TEXT
    return f"0x{value:0{nibbles}x}"


# @intent:utility_function 4bitフィールドなど小さな値を大文字HEXで表示します（ゼロ埋めなし）。
def format_small(value: SignalValue) -> str:
    if value is None:
        return UNKNOWN_TEXT
    return f"0x{value:X}"


# @intent:utility_function 値を真偽値に変換します。不定値はNoneのまま伝播させます。
def to_bool(value: SignalValue) -> Optional[bool]:
    if value is None:
        return None
    return bool(value)


# @intent:utility_function レジスタイメージを表示用の辞書（HEX文字列）に変換します。
def render_registers(registers: RegisterImage) -> Dict[str, str]:
    return {name: format_word(registers.get(name)) for name in REGISTER_NAMES}
