# y86_core_tracer/trace/signals.py
"""
シグナルテーブル

トレースのヘッダ部で宣言されたシンボルを、プロセッサモデルごとに固定された
追跡対象の論理信号（Enum）へ対応付けます。
追跡対象外の宣言は破棄され、宣言されていない論理信号は常に不定値として扱われます。
"""
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Type

from y86_core_tracer.trace.stream import HeaderBlock

logger = logging.getLogger(__name__)

# @intent:constant 信号名末尾のビット範囲（例: "[3:0]"）。配列要素の添字（例: "[0]"）は対象外です。
BIT_RANGE_RE = re.compile(r"\[\d+:\d+\]")


# @intent:responsibility 1つの信号宣言（シンボル、論理名、ビット幅）を保持します。
@dataclass(frozen=True)
class SignalDeclaration:
    symbol: str  # 例: "!"
    name: str  # ビット範囲を除いた論理名 例: "f_icode"
    width: int


# @intent:responsibility 論理信号からシンボルへの対応表を保持します。
@dataclass(frozen=True)
class SignalTable:
    """
    追跡対象の論理信号からトレース上のシンボルへの対応表。
    複数の論理信号が同じシンボルを共有する場合（エイリアス）もあります。
    """
    declarations: List[SignalDeclaration] = field(default_factory=list)
    symbols: Dict[Enum, str] = field(default_factory=dict)

    def symbol_for(self, signal: Enum) -> Optional[str]:
        return self.symbols.get(signal)

    def tracked_symbols(self) -> FrozenSet[str]:
        return frozenset(self.symbols.values())

    # @intent:responsibility 候補の論理信号のうち、最初に宣言されているもののシンボルを返します。
    def resolve_first(self, signals: Iterable[Enum]) -> Optional[str]:
        for signal in signals:
            symbol = self.symbols.get(signal)
            if symbol is not None:
                return symbol
        return None


# @intent:utility_function 信号名からビット範囲の接尾辞を取り除きます。
def strip_bit_range(name: str) -> str:
    return BIT_RANGE_RE.sub("", name)


# @intent:responsibility ヘッダ部の$varブロックを信号宣言のリストに変換します。
# @intent:post-condition 形式が不正な$varブロックは読み飛ばされます。
def parse_declarations(blocks: Iterable[HeaderBlock]) -> List[SignalDeclaration]:
    """
    $var <type> <width> <symbol> <name> [<range>] $end 形式のブロックを解析します。
    """
    declarations: List[SignalDeclaration] = []
    for block in blocks:
        if block.keyword != "$var" or len(block.args) < 4:
            continue
        try:
            width = int(block.args[1])
        except ValueError:
            continue
        declarations.append(SignalDeclaration(
            symbol=block.args[2],
            name=strip_bit_range(block.args[3]),
            width=width,
        ))
    return declarations


# @intent:responsibility 信号宣言のうち追跡対象の論理信号に一致するものだけでシグナルテーブルを構築します。
# @intent:post-condition 同じ論理名が複数回宣言された場合は、最後の宣言が有効になります。
def build_signal_table(declarations: List[SignalDeclaration], signal_enum: Type[Enum]) -> SignalTable:
    lookup = {member.value: member for member in signal_enum}
    symbols: Dict[Enum, str] = {}
    for declaration in declarations:
        member = lookup.get(declaration.name)
        if member is not None:
            symbols[member] = declaration.symbol

    logger.debug(
        "%s: %d declarations, %d tracked signals resolved",
        signal_enum.__name__, len(declarations), len(symbols),
    )
    return SignalTable(declarations=list(declarations), symbols=symbols)
