# y86_core_tracer/trace/sampler.py
"""
クロックエッジサンプラ

確定した値変化バッチを現在値テーブルに適用し、
指定されたクロック信号の立ち上がりエッジごとに生スナップショットを記録します。
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from y86_core_tracer.common.types import SignalValue
from y86_core_tracer.trace.signals import SignalTable
from y86_core_tracer.trace.stream import ValueChangeBatch

logger = logging.getLogger(__name__)


# @intent:responsibility ある立ち上がりエッジにおける追跡対象信号の値を不変に記録します。
@dataclass(frozen=True)
class RawCycleSnapshot:
    """
    立ち上がりエッジ時点の現在値テーブルのコピー。
    値は論理信号を指定して読み出します。
    """
    index: int
    timestamp: Optional[int]
    values: Dict[str, SignalValue] = field(default_factory=dict)  # シンボル -> 値
    table: SignalTable = field(default_factory=SignalTable)

    # @intent:responsibility 論理信号の値を返します。宣言されていない信号は不定値(None)です。
    def get(self, signal: Enum) -> SignalValue:
        symbol = self.table.symbol_for(signal)
        if symbol is None:
            return None
        return self.values.get(symbol)


# @intent:responsibility 値変化バッチ列を走査し、クロックの立ち上がりエッジごとにスナップショットを生成します。
# @intent:pre-condition clock_signalsは優先順のクロック候補です。最初に宣言されているものを使用します。
# @intent:post-condition クロックが見つからない場合は空リストを返します（エラーではありません）。
def sample_rising_edges(
    batches: Iterable[ValueChangeBatch],
    table: SignalTable,
    clock_signals: Sequence[Enum],
) -> List[RawCycleSnapshot]:
    """
    全ての追跡対象シンボルを不定値で初期化し、バッチを1つずつ原子的に適用します。
    適用後のクロック値が1で、直前に確定していたクロック値が1でない場合にスナップショットを記録します。
    """
    clock_symbol = table.resolve_first(clock_signals)
    if clock_symbol is None:
        logger.debug("No clock symbol among %s; no cycles sampled", [s.value for s in clock_signals])
        return []

    current: Dict[str, SignalValue] = {symbol: None for symbol in table.tracked_symbols()}
    snapshots: List[RawCycleSnapshot] = []
    previous_clock: SignalValue = None

    for batch in batches:
        current.update(batch.changes)
        clock_value = current.get(clock_symbol)
        if clock_value == 1 and previous_clock != 1:
            snapshots.append(RawCycleSnapshot(
                index=len(snapshots),
                timestamp=batch.timestamp,
                values=dict(current),
                table=table,
            ))
        previous_clock = clock_value

    logger.debug("Sampled %d rising edges on clock symbol %r", len(snapshots), clock_symbol)
    return snapshots
