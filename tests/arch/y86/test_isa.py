# tests/arch/y86/test_isa.py
"""
y86_core_tracer.arch.y86.isaモジュールの単体テスト。
"""
import pytest

from y86_core_tracer.arch.y86.isa import Icode, icode_name, sequential_destinations, stat_name
from y86_core_tracer.common.types import RNONE, RSP

# @intent:test_suite 命令コード/ステータスの名前表と、命令ごとのデスティネーション表を検証します。


class TestNames:
    def test_icode_table(self):
        names = [icode_name(value) for value in range(0xD)]
        assert names == [
            "HALT", "NOP", "CMOVXX", "IRMOVQ", "RMMOVQ", "MRMOVQ", "OPQ",
            "JXX", "CALL", "RET", "PUSHQ", "POPQ", "IADDQ",
        ]

    # @intent:test_case_out_of_table テーブル外の値と不定値が失敗せずに表示されることを検証します。
    def test_out_of_table_and_unknown(self):
        assert icode_name(0xE) == "0xe"
        assert icode_name(None) == "x"
        assert stat_name(None) == "x"

    def test_stat_table(self):
        assert [stat_name(value) for value in range(4)] == ["AOK", "HLT", "ADR", "INS"]


class TestSequentialDestinations:
    """
    sequential_destinationsのテスト。
    """
    # @intent:test_case_cmov 条件付き移動は条件成立時のみrBへ書き込むことを検証します。
    def test_conditional_move(self):
        assert sequential_destinations(Icode.CMOVXX, True, 1, 2) == (2, RNONE)
        assert sequential_destinations(Icode.CMOVXX, False, 1, 2) == (RNONE, RNONE)
        assert sequential_destinations(Icode.CMOVXX, None, 1, 2) == (RNONE, RNONE)

    @pytest.mark.parametrize("icode", [Icode.IRMOVQ, Icode.OPQ, Icode.IADDQ])
    def test_write_rb(self, icode):
        assert sequential_destinations(icode, None, 1, 2) == (2, RNONE)

    def test_memory_read_writes_ra(self):
        assert sequential_destinations(Icode.MRMOVQ, None, 1, 2) == (RNONE, 1)

    # @intent:test_case_stack スタック操作はrspへ、POPQはさらにrAへ書き込むことを検証します。
    @pytest.mark.parametrize("icode", [Icode.CALL, Icode.RET, Icode.PUSHQ])
    def test_stack_pointer(self, icode):
        assert sequential_destinations(icode, None, 1, 2) == (RSP, RNONE)

    def test_pop(self):
        assert sequential_destinations(Icode.POPQ, None, 1, 2) == (RSP, 1)

    @pytest.mark.parametrize("icode", [Icode.HALT, Icode.NOP, Icode.RMMOVQ, Icode.JXX, None])
    def test_no_writes(self, icode):
        assert sequential_destinations(icode, True, 1, 2) == (RNONE, RNONE)

    def test_unknown_register_is_none(self):
        assert sequential_destinations(Icode.IRMOVQ, None, None, None) == (RNONE, RNONE)
