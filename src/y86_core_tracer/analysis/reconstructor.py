# y86_core_tracer/analysis/reconstructor.py
"""
レジスタ状態の再構成

レジスタファイルのタップがトレースに含まれない逐次実行モデルについて、
初期レジスタイメージから各サイクルの書き込みを順に再生し、サイクルごとのレジスタ状態を復元します。
"""
import logging
from typing import List, Mapping, Optional, Sequence

from y86_core_tracer.arch.y86.isa import sequential_destinations
from y86_core_tracer.common.types import REGISTER_NAMES, RegisterImage, SignalValue, WORD_MASK
from y86_core_tracer.core.snapshot import CycleRecord

logger = logging.getLogger(__name__)


# @intent:responsibility 初期イメージを正規化します。欠けているレジスタは0とします。
def normalize_register_image(initial: Mapping[str, SignalValue]) -> RegisterImage:
    image: RegisterImage = {}
    for name in REGISTER_NAMES:
        value = initial.get(name)
        image[name] = 0 if value is None else value & WORD_MASK
    return image


# @intent:responsibility 1サイクル分の書き込みを適用した新しいレジスタイメージを返します。
# @intent:post-condition 書き込まれないレジスタは直前の値を保持します。
def apply_cycle_writes(state: RegisterImage, record: CycleRecord) -> RegisterImage:
    detail = record.sequential
    next_state = dict(state)
    if detail is None:
        return next_state

    dst_e, dst_m = sequential_destinations(record.execute.icode, detail.cnd, detail.r_a, detail.r_b)

    if 0 <= dst_e < len(REGISTER_NAMES) and detail.val_e is not None:
        next_state[REGISTER_NAMES[dst_e]] = detail.val_e
    if 0 <= dst_m < len(REGISTER_NAMES) and detail.val_m is not None:
        next_state[REGISTER_NAMES[dst_m]] = detail.val_m

    return next_state


# @intent:responsibility 全レコードのレジスタが不定で、初期イメージが与えられた場合にのみレジスタ状態を再構成します。
# @intent:pre-condition recordsはトリミング済みのエッジ順レコード列です。
# @intent:post-condition 条件を満たさない場合は入力と同じレコードをそのまま返します。
def reconstruct_register_states(
    records: Sequence[CycleRecord],
    initial_registers: Optional[Mapping[str, SignalValue]],
) -> List[CycleRecord]:
    if initial_registers is None or not records:
        return list(records)
    if not all(record.registers_unknown for record in records):
        return list(records)

    state = normalize_register_image(initial_registers)
    reconstructed: List[CycleRecord] = []
    for record in records:
        state = apply_cycle_writes(state, record)
        reconstructed.append(record.with_registers(state))

    logger.debug("Reconstructed register state for %d cycles", len(reconstructed))
    return reconstructed
