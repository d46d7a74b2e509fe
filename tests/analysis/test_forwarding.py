# tests/analysis/test_forwarding.py
"""
y86_core_tracer.analysis.forwardingモジュールの単体テスト。
"""
from y86_core_tracer.analysis.forwarding import SourceStatus, list_producers, resolve_forwarding, stage_status
from y86_core_tracer.core.snapshot import (
    MODE_PIPELINE, STAGE_KEYS, ControlFlags, CycleRecord, Forwarding, RegisterSlot, StageView,
)

# @intent:test_suite デコードステージのソースレジスタがどこから値を得るかの判定を検証します。

NONE = 0xF


def make_record(control=None, **slots) -> CycleRecord:
    stages = {key: StageView(stage=key) for key in STAGE_KEYS}
    forwarding = Forwarding(**{name: RegisterSlot(raw) for name, raw in slots.items()})
    return CycleRecord(
        index=0,
        timestamp=0,
        mode=MODE_PIPELINE,
        control=control or ControlFlags(),
        forwarding=forwarding,
        **stages,
    )


class TestResolveForwarding:
    """
    resolve_forwardingのテスト。
    """
    # @intent:test_case_unknown_unused 不定のソースは"unknown"、RNONEは"unused"になることを検証します。
    def test_unknown_and_unused(self):
        src_a, src_b = resolve_forwarding(make_record(src_b=NONE))

        assert src_a.status is SourceStatus.UNKNOWN
        assert src_b.status is SourceStatus.UNUSED
        assert src_b.to_dict()["status"] == "unused"

    # @intent:test_case_priority 複数の一致がある場合はE.dstEが最優先で選ばれることを検証します。
    def test_bypass_priority(self):
        record = make_record(src_a=3, src_b=NONE, e_dst_e=3, m_dst_m=3, w_dst_e=3)
        src_a = resolve_forwarding(record)[0]

        assert src_a.status is SourceStatus.BYPASS
        assert src_a.selected == "E.dstE"
        assert [p.key for p in src_a.candidates] == ["E.dstE", "M.dstM", "W.dstE"]
        assert src_a.to_dict()["candidates"] == ["E.dstE", "M.dstM", "W.dstE"]

    # @intent:test_case_memory_order メモリステージではdstMがdstEより優先されることを検証します。
    def test_memory_dst_m_before_dst_e(self):
        record = make_record(src_a=NONE, src_b=2, m_dst_e=2, m_dst_m=2)
        src_b = resolve_forwarding(record)[1]
        assert src_b.selected == "M.dstM"
        assert src_b.summary == "bypass from M.dstM"

    # @intent:test_case_load_use ロード・ユース・ハザード中は"blocked"になることを検証します。
    def test_load_use_blocked(self):
        control = ControlFlags(d_stall=True, e_bubble=True)
        record = make_record(control=control, src_a=6, src_b=NONE, e_dst_m=6)
        src_a = resolve_forwarding(record)[0]

        assert src_a.status is SourceStatus.BLOCKED
        assert src_a.selected == "E.dstM"

    # @intent:test_case_no_hazard ハザード制御が立っていなければE.dstMの一致でもレジスタファイルから読むことを検証します。
    def test_execute_load_without_stall_reads_register_file(self):
        record = make_record(src_a=6, src_b=NONE, e_dst_m=6)
        assert resolve_forwarding(record)[0].status is SourceStatus.REGISTER_FILE

    def test_register_file(self):
        record = make_record(src_a=1, src_b=2, e_dst_e=NONE, m_dst_e=5)
        statuses = [r.status for r in resolve_forwarding(record)]
        assert statuses == [SourceStatus.REGISTER_FILE, SourceStatus.REGISTER_FILE]

    # @intent:test_case_rnone_never_matches RNONE同士や不定値同士は一致とみなさないことを検証します。
    def test_rnone_never_matches(self):
        record = make_record(src_a=NONE, src_b=NONE, e_dst_e=NONE)
        assert [r.status for r in resolve_forwarding(record)] == [SourceStatus.UNUSED, SourceStatus.UNUSED]


class TestProducersAndStageStatus:
    def test_producer_order(self):
        producers = list_producers(make_record())
        assert [p.key for p in producers] == ["E.dstE", "M.dstM", "M.dstE", "W.dstM", "W.dstE"]
        assert [p.priority for p in producers] == [1, 2, 3, 4, 5]

    # @intent:test_case_stage_status 不定の制御信号はFalseとして扱われることを検証します。
    def test_stage_status(self):
        status = stage_status(make_record(control=ControlFlags(f_stall=True, d_stall=True, e_bubble=True)))

        assert status["fetch"] == {"stalled": True, "bubble": False}
        assert status["execute"] == {"stalled": False, "bubble": True}
        assert status["writeback"] == {"stalled": False, "bubble": False}
