# y86_core_tracer/analysis/trimmer.py
"""
逐次実行モデルのサイクルレコード列のトリミング。
"""
from typing import List, Sequence

from y86_core_tracer.arch.y86.isa import Icode, Stat
from y86_core_tracer.core.snapshot import CycleRecord


# @intent:responsibility レコードが停止(HALT命令、またはHLTステータス)を表すかを判定します。
def is_halt(record: CycleRecord) -> bool:
    return record.execute.icode == Icode.HALT or record.meta.memory_stat.raw == Stat.HLT


# @intent:responsibility 先頭の命令不定サイクルと、最初の停止より後のサイクルを取り除きます。
# @intent:post-condition 入力は変更しません。先頭は最初に命令が確定したレコード、末尾は最初の停止レコード（なければ最後）です。
def trim_sequential_cycles(records: Sequence[CycleRecord]) -> List[CycleRecord]:
    start = 0
    while start < len(records) and records[start].fetch.is_unknown:
        start += 1

    end = len(records)
    for position in range(start, len(records)):
        if is_halt(records[position]):
            end = position + 1
            break

    return list(records[start:end])
