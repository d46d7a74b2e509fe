import logging
import warnings
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, TypeVar

from y86_core_tracer.analysis.forwarding import resolve_forwarding, stage_status
from y86_core_tracer.analysis.metrics import PerformanceMetrics, compute_performance_metrics
from y86_core_tracer.analysis.timeline import Timeline, build_timeline
from y86_core_tracer.arch.y86.pipeline import load_pipeline_trace
from y86_core_tracer.arch.y86.sequential import load_sequential_trace
from y86_core_tracer.common.errors import AuxiliaryImageWarning
from y86_core_tracer.common.types import RegisterImage
from y86_core_tracer.core.snapshot import MODE_PIPELINE, MODE_SEQUENTIAL, CycleRecord
from y86_core_tracer.loader.loader import (
    DataMemoryImage, DataMemoryLoader, InstructionMemoryImage, InstructionMemoryLoader, RegisterFileLoader,
)
from y86_core_tracer.trace.clock import ClockInfo, load_clock_info
from .models import SessionConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


# @intent:data_structure 1回の可視化セッション分の解析結果。
@dataclass
class TraceSession:
    mode: str
    cycles: List[CycleRecord] = field(default_factory=list)
    instruction_memory: Optional[InstructionMemoryImage] = None
    data_memory: Optional[DataMemoryImage] = None
    register_memory: Optional[RegisterImage] = None
    clock: Optional[ClockInfo] = None
    metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    timeline: Optional[Timeline] = None

    @property
    def total(self) -> int:
        return len(self.cycles)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "cycles": [self._cycle_payload(cycle) for cycle in self.cycles],
            "total": self.total,
            "instructionMemory": self.instruction_memory.to_dict() if self.instruction_memory else None,
            "dataMemory": self.data_memory.to_dict() if self.data_memory else None,
            "registerMemory": (
                RegisterFileLoader.to_dict(self.register_memory) if self.register_memory is not None else None
            ),
            "clock": self.clock.to_dict() if self.clock else None,
            "metrics": self.metrics.to_dict(),
            "timeline": self.timeline.to_dict() if self.timeline else None,
        }

    # @intent:responsibility パイプラインモデルでは、各サイクルにソースの解決結果とステージ状態を付加します。
    def _cycle_payload(self, cycle: CycleRecord) -> Dict[str, Any]:
        payload = cycle.to_dict()
        if self.mode == MODE_PIPELINE:
            payload["forwarding"]["sources"] = [source.to_dict() for source in resolve_forwarding(cycle)]
            payload["stageStatus"] = stage_status(cycle)
        return payload


# @intent:responsibility セッション構成（Config）に基づいて補助イメージとトレースを読み込み、TraceSessionを組み立てます。
class SessionBuilder:
    """
    補助イメージ（命令メモリ、データメモリ、初期レジスタ、クロック情報）の読み込みに失敗した場合は
    AuxiliaryImageWarningを出してNoneのまま続行します。トレース本体の失敗はそのまま送出します。
    """

    def build(self, config: SessionConfig) -> TraceSession:
        instruction_memory = self._load_optional(
            "instruction memory", config.instruction_source,
            InstructionMemoryLoader().load_instruction_memory,
        )
        data_memory = self._load_optional(
            "data memory", config.data_memory, DataMemoryLoader().load_data_memory,
        )
        register_memory = self._load_optional(
            "register memory", config.register_memory, RegisterFileLoader().load_register_file,
        )

        if config.mode == MODE_SEQUENTIAL:
            # 有効行のないデータメモリファイルは設定のワード数で代用
            if data_memory is not None and data_memory.word_count > 0:
                word_count = data_memory.word_count
            else:
                word_count = config.data_memory_words
            cycles = load_sequential_trace(config.trace, register_memory, word_count)
        else:
            cycles = load_pipeline_trace(config.trace)

        clock = self._load_optional(
            "clock info", config.trace, lambda path: load_clock_info(path, config.clock_signals),
        )

        logger.debug("Built %s session with %d cycles from %s", config.mode, len(cycles), config.trace)
        return TraceSession(
            mode=config.mode,
            cycles=cycles,
            instruction_memory=instruction_memory,
            data_memory=data_memory,
            register_memory=register_memory,
            clock=clock,
            metrics=compute_performance_metrics(cycles),
            timeline=build_timeline(cycles) if config.mode == MODE_PIPELINE else None,
        )

    def _load_optional(self, label: str, path: Optional[str], load: Callable[[str], T]) -> Optional[T]:
        if path is None:
            return None
        try:
            return load(path)
        except (OSError, ValueError) as e:
            warnings.warn(f"Failed to load {label} from {path}: {e}", AuxiliaryImageWarning)
            return None
