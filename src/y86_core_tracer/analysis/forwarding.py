# y86_core_tracer/analysis/forwarding.py
"""
フォワーディング（バイパス）経路の解決。

デコードステージの各ソースレジスタについて、後段のどのデスティネーションから値を受け取るか、
ロード・ユース・ハザードで待たされているか、レジスタファイルから読むかを判定します。
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from y86_core_tracer.core.snapshot import STAGE_KEYS, STAGE_LETTERS, CycleRecord, RegisterSlot


# @intent:responsibility ソースレジスタの解決状態を定義します。
class SourceStatus(Enum):
    UNKNOWN = "unknown"  # ソース番号が不定
    UNUSED = "unused"  # RNONE
    BYPASS = "bypass"  # 後段からフォワーディング
    BLOCKED = "blocked"  # ロード・ユース・ストール中
    REGISTER_FILE = "rf"


# @intent:data_structure フォワーディング元となる1つのデスティネーション。priorityは小さいほど優先されます。
@dataclass(frozen=True)
class Producer:
    stage: str  # "E", "M", "W"
    path: str  # "dstE" / "dstM"
    stage_label: str
    priority: int
    register: RegisterSlot

    @property
    def key(self) -> str:
        return f"{self.stage}.{self.path}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "node": self.stage,
            "path": self.path,
            "stageLabel": self.stage_label,
            "priority": self.priority,
            "reg": self.register.to_dict(),
        }


@dataclass(frozen=True)
class SourceResolution:
    lane: str  # "A" / "B"
    key: str  # "srcA" / "srcB"
    register: RegisterSlot
    status: SourceStatus
    summary: str
    candidates: List[Producer] = field(default_factory=list)
    selected: Optional[str] = None  # 選ばれたデスティネーションのキー 例: "M.dstE"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lane": self.lane,
            "key": self.key,
            "reg": self.register.to_dict(),
            "status": self.status.value,
            "summary": self.summary,
            "candidates": [producer.key for producer in self.candidates],
            "selected": self.selected,
        }


# @intent:responsibility レコードのフォワーディング情報から、優先順に並んだデスティネーション一覧を作ります。
def list_producers(record: CycleRecord) -> List[Producer]:
    forwarding = record.forwarding
    slots = [
        ("E", "dstE", "Execute", forwarding.e_dst_e),
        ("M", "dstM", "Memory", forwarding.m_dst_m),
        ("M", "dstE", "Memory", forwarding.m_dst_e),
        ("W", "dstM", "Writeback", forwarding.w_dst_m),
        ("W", "dstE", "Writeback", forwarding.w_dst_e),
    ]
    return [
        Producer(stage=stage, path=path, stage_label=label, priority=priority, register=slot)
        for priority, (stage, path, label, slot) in enumerate(slots, 1)
    ]


# @intent:responsibility デコードステージの2つのソース(srcA, srcB)の解決結果を返します。
def resolve_forwarding(record: CycleRecord) -> List[SourceResolution]:
    """
    優先順位 E.dstE → M.dstM → M.dstE → W.dstM → W.dstE で最初に一致したものをバイパス元とします。
    一致がなく、D_stallとE_bubbleが同時に立っていてE.dstMが一致する場合はロード・ユースによる停止とします。
    """
    producers = list_producers(record)
    load_use_active = bool(record.control.d_stall and record.control.e_bubble)
    execute_load_dst = record.forwarding.e_dst_m

    resolutions: List[SourceResolution] = []
    sources = [("A", "srcA", record.forwarding.src_a), ("B", "srcB", record.forwarding.src_b)]
    for lane, key, register in sources:
        if register.raw is None:
            resolutions.append(SourceResolution(
                lane, key, register, SourceStatus.UNKNOWN, "waiting for decode source id",
            ))
            continue

        if register.is_none:
            resolutions.append(SourceResolution(lane, key, register, SourceStatus.UNUSED, "unused (RNONE)"))
            continue

        matches = [producer for producer in producers if producer.register.same_register(register)]
        if matches:
            selected = matches[0]
            resolutions.append(SourceResolution(
                lane, key, register, SourceStatus.BYPASS, f"bypass from {selected.key}",
                candidates=matches, selected=selected.key,
            ))
            continue

        if load_use_active and execute_load_dst.same_register(register):
            resolutions.append(SourceResolution(
                lane, key, register, SourceStatus.BLOCKED, "load-use stall on E.dstM", selected="E.dstM",
            ))
            continue

        resolutions.append(SourceResolution(
            lane, key, register, SourceStatus.REGISTER_FILE, "read from register file",
        ))

    return resolutions


# @intent:responsibility 各ステージのストール/バブル状態を返します。不定値はFalseとして扱います。
def stage_status(record: CycleRecord) -> Dict[str, Dict[str, bool]]:
    status: Dict[str, Dict[str, bool]] = {}
    for key in STAGE_KEYS:
        letter = STAGE_LETTERS[key]
        status[key] = {
            "stalled": bool(record.control.stalled(letter)),
            "bubble": bool(record.control.bubbled(letter)),
        }
    return status
