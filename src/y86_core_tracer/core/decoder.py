# y86_core_tracer/core/decoder.py
"""
Core Layer (抽象サイクルデコーダ)

このモジュールは、トレーステキストからサイクルレコード列を復元する共通の処理フローを提供します。
プロセッサモデル固有の信号定義とデコード処理はArchitecture Layerに移譲されます。
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Sequence, Type

from y86_core_tracer.core.snapshot import CycleRecord
from y86_core_tracer.trace.sampler import RawCycleSnapshot, sample_rising_edges
from y86_core_tracer.trace.signals import build_signal_table, parse_declarations
from y86_core_tracer.trace.stream import iter_value_change_batches, split_header, tokenize


# @intent:responsibility トレースからサイクルレコード列を復元する抽象デコーダの基本機能を定義します。
class AbstractCycleDecoder(ABC):
    """
    全てのサイクルデコーダの基底となる抽象クラス。
    インスタンスは不変の設定のみを保持し、解析中の状態（現在値テーブル等）は
    parse()の呼び出しごとに生成されるため、複数スレッドから同時に呼び出せます。
    """

    # @intent:responsibility このデコーダが追跡する論理信号の閉じた集合(Enum)を返します。
    @property
    @abstractmethod
    def signal_enum(self) -> Type[Enum]:
        pass

    # @intent:responsibility サンプリングに用いるクロック信号の候補を優先順に返します。
    @property
    @abstractmethod
    def clock_signals(self) -> Sequence[Enum]:
        pass

    # @intent:responsibility 生スナップショット1つをサイクルレコードに変換します。
    @abstractmethod
    def _decode(self, snapshot: RawCycleSnapshot) -> CycleRecord:
        pass

    # @intent:responsibility デコード後のレコード列に対する後処理を行います。
    def _post_process(self, records: List[CycleRecord]) -> List[CycleRecord]:
        """
        デフォルトは何もしない。逐次実行モデルはトリミングとレジスタ再構成を行います。
        """
        return records

    # @intent:responsibility トレーステキストを解析し、エッジ順のサイクルレコード列を返します。
    def parse(self, text: str) -> List[CycleRecord]:
        """
        シグナルテーブル構築 → 値変化バッチ生成 → クロックエッジサンプリング → デコード → 後処理
        の順に処理します。クロックが見つからない場合は空リストを返します。
        """
        tokens = tokenize(text)
        blocks, body_start = split_header(tokens)
        table = build_signal_table(parse_declarations(blocks), self.signal_enum)

        batches = iter_value_change_batches(tokens, table.tracked_symbols(), start=body_start)
        snapshots = sample_rising_edges(batches, table, self.clock_signals)

        records = [self._decode(snapshot) for snapshot in snapshots]
        return self._post_process(records)

    # @intent:responsibility ファイルからトレースを読み込んで解析します。
    def load(self, file_path: str) -> List[CycleRecord]:
        with open(file_path, "r", encoding="utf-8") as f:
            return self.parse(f.read())
