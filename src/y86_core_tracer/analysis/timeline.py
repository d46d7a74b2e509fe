# y86_core_tracer/analysis/timeline.py
"""
パイプラインタイムライン（命令×サイクルの表）の構築。

各サイクルの5ステージを順に見て、ステージ上の命令を「トークン」として追跡します。
ストール中のステージは直前サイクルのトークンを保持し、バブルが注入されたステージには
新しいバブルトークンを割り当て、それ以外は上流ステージの直前サイクルのトークンを引き継ぎます。
1トークンが表の1行になります。
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from y86_core_tracer.common.types import UNKNOWN_TEXT, format_small, format_word
from y86_core_tracer.core.snapshot import STAGE_KEYS, STAGE_LETTERS, CycleRecord, StageView

KIND_INSTRUCTION = "instruction"
KIND_BUBBLE = "bubble"

# @intent:map ステージと、その1つ上流のステージの対応。
UPSTREAM_STAGE = {
    "fetch": None,
    "decode": "fetch",
    "execute": "decode",
    "memory": "execute",
    "writeback": "memory",
}
STAGE_LABELS = {key: key.capitalize() for key in STAGE_KEYS}


# @intent:data_structure タイムライン上の1マス（あるサイクルにトークンが居たステージ）。
@dataclass(frozen=True)
class TimelineCell:
    cycle_index: int
    stage: str
    stalled: bool
    bubbled: bool
    view: StageView

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cycleIndex": self.cycle_index,
            "stageKey": self.stage,
            "stageLabel": STAGE_LABELS[self.stage],
            "stageLetter": STAGE_LETTERS[self.stage],
            "stalled": self.stalled,
            "bubbled": self.bubbled,
            "opcode": self.view.icode_name,
            "pcHex": format_word(self.view.pc),
            "ifunHex": format_small(self.view.ifun),
            "statName": self.view.status.name,
        }


@dataclass(frozen=True)
class TimelineRow:
    id: int
    kind: str  # "instruction" / "bubble"
    created_at_cycle: int
    created_stage: str
    opcode: str
    pc_hex: str
    label: str
    cells: Tuple[TimelineCell, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "createdAtCycle": self.created_at_cycle,
            "createdStageKey": self.created_stage,
            "opcode": self.opcode,
            "pcHex": self.pc_hex,
            "label": self.label,
            "cells": [cell.to_dict() for cell in self.cells],
        }


@dataclass(frozen=True)
class Timeline:
    rows: Tuple[TimelineRow, ...] = ()
    bubble_count: int = 0
    stall_cell_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": [row.to_dict() for row in self.rows],
            "bubbleCount": self.bubble_count,
            "stallCellCount": self.stall_cell_count,
        }


class _Token:
    """構築中の1行。セルはサイクル番号をキーに保持します。"""

    def __init__(self, token_id: int, kind: str, cycle_index: int, stage: str, view: StageView):
        self.id = token_id
        self.kind = kind
        self.created_at_cycle = cycle_index
        self.created_stage = stage
        self.opcode = view.icode_name if not (kind == KIND_BUBBLE and view.is_unknown) else "NOP"
        self.pc_hex = format_word(view.pc)
        self.cells: Dict[int, TimelineCell] = {}

    def base_label(self) -> str:
        if self.pc_hex == UNKNOWN_TEXT:
            return self.opcode
        return f"{self.opcode} @ {self.pc_hex}"


# @intent:responsibility サイクルレコード列から命令ごとのタイムラインを構築します。
# @intent:pre-condition recordsはエッジ順です。cycle_indexはリスト上の位置（0始まり）です。
def build_timeline(records: Sequence[CycleRecord]) -> Timeline:
    """
    各ステージのトークンは次の優先順で決まります。

    1. バブル(フェッチ以外): 新しいバブルトークン
    2. ストールで直前サイクルにトークンがある: 同じトークン
    3. 上流ステージの直前サイクルにトークンがあり、命令が確定している: 上流のトークン
    4. 命令が確定している: 新しい命令トークン

    同じトークンが同一サイクルに2マス目を得ようとした場合は、新しいトークンに分けます。
    """
    tokens: List[_Token] = []
    bubble_count = 0
    stall_cell_count = 0
    previous: Dict[str, Optional[_Token]] = {}

    def new_token(kind: str, cycle_index: int, stage: str, view: StageView) -> _Token:
        token = _Token(len(tokens) + 1, kind, cycle_index, stage, view)
        tokens.append(token)
        return token

    for cycle_index, record in enumerate(records):
        current: Dict[str, Optional[_Token]] = {}

        for stage in STAGE_KEYS:
            view = getattr(record, stage)
            letter = STAGE_LETTERS[stage]
            bubbled = bool(record.control.bubbled(letter))
            stalled = bool(record.control.stalled(letter))
            upstream = UPSTREAM_STAGE[stage]
            visible = not view.is_unknown

            token: Optional[_Token] = None
            if bubbled and stage != "fetch":
                token = new_token(KIND_BUBBLE, cycle_index, stage, view)
                bubble_count += 1
            elif stalled and previous.get(stage) is not None:
                token = previous[stage]
                stall_cell_count += 1
            elif upstream is not None and previous.get(upstream) is not None and visible:
                token = previous[upstream]
            elif visible:
                token = new_token(KIND_INSTRUCTION, cycle_index, stage, view)

            if token is not None and cycle_index in token.cells:
                token = new_token(token.kind, cycle_index, stage, view)

            current[stage] = token
            if token is not None:
                token.cells[cycle_index] = TimelineCell(
                    cycle_index=cycle_index, stage=stage, stalled=stalled, bubbled=bubbled, view=view,
                )

        previous = current

    ordered = sorted(
        tokens,
        key=lambda t: (t.created_at_cycle, STAGE_KEYS.index(t.created_stage), t.id),
    )

    rows: List[TimelineRow] = []
    bubbles_seen = 0
    for token in ordered:
        if token.kind == KIND_BUBBLE:
            bubbles_seen += 1
            label = f"Bubble {bubbles_seen}"
        else:
            label = token.base_label()
        rows.append(TimelineRow(
            id=token.id,
            kind=token.kind,
            created_at_cycle=token.created_at_cycle,
            created_stage=token.created_stage,
            opcode=token.opcode,
            pc_hex=token.pc_hex,
            label=label,
            cells=tuple(token.cells[index] for index in sorted(token.cells)),
        ))

    return Timeline(rows=tuple(rows), bubble_count=bubble_count, stall_cell_count=stall_cell_count)
