# y86_core_tracer/trace/clock.py
"""
クロック周期の抽出

トレースのヘッダ部からタイムスケール記述を取り出し、
クロック信号の立ち上がりエッジ間隔から公称のクロック周期を推定します。
サイクル復元処理とは独立に呼び出せます。
"""
from collections import Counter
from dataclasses import dataclass
from typing import List, Optional, Sequence

from y86_core_tracer.trace.signals import parse_declarations
from y86_core_tracer.trace.stream import HeaderBlock, iter_value_change_batches, split_header, tokenize

DEFAULT_CLOCK_SIGNAL_NAMES = ("clock", "clk")


# @intent:responsibility クロック周期の推定結果を保持します。
@dataclass(frozen=True)
class ClockInfo:
    """
    period_ticksはタイムスケール単位での周期。samplesは観測できたエッジ間隔の数です。
    1周期も観測できなかった場合、period_ticksはNone、samplesは0になります。
    """
    timescale: Optional[str]
    period_ticks: Optional[int] = None
    samples: int = 0

    def to_dict(self) -> dict:
        return {
            "timescaleRaw": self.timescale,
            "periodTicks": self.period_ticks,
            "samples": self.samples,
        }


def _extract_timescale(blocks: Sequence[HeaderBlock]) -> Optional[str]:
    for block in blocks:
        if block.keyword == "$timescale":
            return " ".join(block.args)
    return None


# @intent:utility_function エッジ間隔の最頻値を返します。同数の場合は小さい方を選びます。
def most_frequent_interval(intervals: Sequence[int]) -> Optional[int]:
    if not intervals:
        return None
    histogram = Counter(intervals)
    return min(histogram, key=lambda delta: (-histogram[delta], delta))


# @intent:responsibility トレーステキストからクロック情報を抽出します。
# @intent:pre-condition clock_signal_namesは優先順に並んだクロック信号名の候補です。
def extract_clock_info(text: str, clock_signal_names: Sequence[str] = DEFAULT_CLOCK_SIGNAL_NAMES) -> ClockInfo:
    tokens = tokenize(text)
    blocks, body_start = split_header(tokens)
    timescale = _extract_timescale(blocks)

    symbols_by_name = {decl.name: decl.symbol for decl in parse_declarations(blocks)}
    clock_symbol = next(
        (symbols_by_name[name] for name in clock_signal_names if name in symbols_by_name),
        None,
    )
    if clock_symbol is None:
        return ClockInfo(timescale=timescale)

    intervals: List[int] = []
    previous_clock = None
    last_posedge: Optional[int] = None

    for batch in iter_value_change_batches(tokens, frozenset({clock_symbol}), start=body_start):
        clock_value = batch.changes.get(clock_symbol)
        if clock_value == 1 and previous_clock != 1 and batch.timestamp is not None:
            if last_posedge is not None and batch.timestamp > last_posedge:
                intervals.append(batch.timestamp - last_posedge)
            last_posedge = batch.timestamp
        previous_clock = clock_value

    if not intervals:
        return ClockInfo(timescale=timescale)

    return ClockInfo(
        timescale=timescale,
        period_ticks=most_frequent_interval(intervals),
        samples=len(intervals),
    )


def load_clock_info(file_path: str, clock_signal_names: Sequence[str] = DEFAULT_CLOCK_SIGNAL_NAMES) -> ClockInfo:
    with open(file_path, "r", encoding="utf-8") as f:
        return extract_clock_info(f.read(), clock_signal_names)
