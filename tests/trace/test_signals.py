# tests/trace/test_signals.py
"""
y86_core_tracer.trace.signalsモジュールの単体テスト。
"""
from y86_core_tracer.arch.y86.pipeline import PipelineSignal
from y86_core_tracer.arch.y86.sequential import SequentialSignal
from y86_core_tracer.trace.signals import (
    SignalDeclaration,
    build_signal_table,
    parse_declarations,
    strip_bit_range,
)
from y86_core_tracer.trace.stream import split_header, tokenize

# @intent:test_suite 信号宣言の解析と、追跡対象の論理信号へのシンボル対応付けを検証します。


def declarations_of(header: str):
    blocks, _ = split_header(tokenize(header))
    return parse_declarations(blocks)


class TestStripBitRange:
    def test_range_suffix_removed(self):
        assert strip_bit_range("f_icode[3:0]") == "f_icode"
        assert strip_bit_range("f_pc[63:0]") == "f_pc"

    # @intent:test_case_array_index 配列要素の添字は残ることを検証します。
    def test_array_index_kept(self):
        assert strip_bit_range("reg_store[3]") == "reg_store[3]"


class TestParseDeclarations:
    # @intent:test_case_forms 範囲が別トークン、名前に連結、複数行のいずれの形式も解析できることを検証します。
    def test_declaration_forms(self):
        decls = declarations_of(
            "$var wire 4 ! f_icode [3:0] $end\n"
            "$var wire 64 \" f_pc[63:0] $end\n"
            "$var reg 1 #\n clock\n $end\n"
        )
        assert decls == [
            SignalDeclaration(symbol="!", name="f_icode", width=4),
            SignalDeclaration(symbol="\"", name="f_pc", width=64),
            SignalDeclaration(symbol="#", name="clock", width=1),
        ]

    # @intent:test_case_malformed 引数不足や幅が整数でない宣言は読み飛ばされることを検証します。
    def test_malformed_declarations_skipped(self):
        decls = declarations_of(
            "$scope module tb $end\n"
            "$var wire ! $end\n"
            "$var wire wide ! f_icode $end\n"
            "$var wire 1 & clock $end\n"
        )
        assert [d.name for d in decls] == ["clock"]


class TestBuildSignalTable:
    """
    build_signal_tableのテスト。
    """
    # @intent:test_case_untracked 追跡対象外の宣言は対応表に入らないことを検証します。
    def test_only_tracked_names_resolved(self):
        decls = [
            SignalDeclaration("!", "f_icode", 4),
            SignalDeclaration("?", "some_internal_wire", 8),
        ]
        table = build_signal_table(decls, PipelineSignal)

        assert table.symbol_for(PipelineSignal.F_ICODE) == "!"
        assert table.tracked_symbols() == frozenset({"!"})
        assert table.symbol_for(PipelineSignal.D_ICODE) is None
        assert len(table.declarations) == 2

    # @intent:test_case_last_wins 同じ論理名の宣言が重複した場合は最後の宣言が有効であることを検証します。
    def test_last_declaration_wins(self):
        decls = [
            SignalDeclaration("!", "clock", 1),
            SignalDeclaration("%", "clock", 1),
        ]
        table = build_signal_table(decls, PipelineSignal)
        assert table.symbol_for(PipelineSignal.CLOCK) == "%"

    # @intent:test_case_alias 複数の論理信号が同じシンボルを共有できることを検証します。
    def test_aliases_share_symbol(self):
        decls = [
            SignalDeclaration("&", "clk", 1),
            SignalDeclaration("&", "clock", 1),
        ]
        table = build_signal_table(decls, SequentialSignal)

        assert table.symbol_for(SequentialSignal.CLK) == "&"
        assert table.symbol_for(SequentialSignal.CLOCK) == "&"
        assert table.tracked_symbols() == frozenset({"&"})

    # @intent:test_case_resolve_first 候補のうち最初に宣言されている信号が選ばれることを検証します。
    def test_resolve_first(self):
        table = build_signal_table([SignalDeclaration("*", "clock", 1)], SequentialSignal)
        assert table.resolve_first([SequentialSignal.CLK, SequentialSignal.CLOCK]) == "*"
        assert table.resolve_first([SequentialSignal.CLK]) is None

    # @intent:test_case_register_array reg_store配列の要素が個別の論理信号に対応することを検証します。
    def test_register_array_elements(self):
        decls = declarations_of(
            "$var reg 64 a reg_store[0] $end\n"
            "$var reg 64 b reg_store[14] $end\n"
        )
        table = build_signal_table(decls, SequentialSignal)

        assert table.symbol_for(SequentialSignal.REG_STORE_0) == "a"
        assert table.symbol_for(SequentialSignal.REG_STORE_14) == "b"
