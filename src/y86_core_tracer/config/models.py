from dataclasses import dataclass, field
from typing import List, Optional

from y86_core_tracer.arch.y86.sequential import DEFAULT_DATA_MEMORY_WORDS
from y86_core_tracer.core.snapshot import MODE_PIPELINE, MODE_SEQUENTIAL
from y86_core_tracer.trace.clock import DEFAULT_CLOCK_SIGNAL_NAMES

SUPPORTED_MODES = (MODE_PIPELINE, MODE_SEQUENTIAL)


@dataclass
class SessionConfig:
    trace: str
    mode: str = MODE_PIPELINE  # "pipeline", "sequential"
    instruction_source: Optional[str] = None  # fetch.v
    data_memory: Optional[str] = None
    register_memory: Optional[str] = None  # 逐次実行モデルの初期レジスタイメージ
    clock_signals: List[str] = field(default_factory=lambda: list(DEFAULT_CLOCK_SIGNAL_NAMES))
    data_memory_words: int = DEFAULT_DATA_MEMORY_WORDS
