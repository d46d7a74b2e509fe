# tests/trace/test_stream.py
"""
y86_core_tracer.trace.streamモジュールの単体テスト。
"""
from y86_core_tracer.trace.stream import (
    HeaderBlock,
    iter_value_change_batches,
    parse_scalar,
    parse_vector,
    split_header,
    tokenize,
)

# @intent:test_suite VCDテキストのトークン化、ヘッダ部の切り出し、タイムスタンプ単位のバッチ化を検証します。

HEADER = """
$date today $end
$timescale 1ns $end
$scope module tb $end
$var wire 1 & clock $end
$var wire 4 ! f_icode [3:0] $end
$upscope $end
$enddefinitions $end
"""


def batches_of(body: str, tracked=("&", "!")):
    tokens = tokenize(HEADER + body)
    _, start = split_header(tokens)
    return list(iter_value_change_batches(tokens, frozenset(tracked), start=start))


class TestSplitHeader:
    """
    ヘッダ部の解析テスト。
    """
    # @intent:test_case_blocks 定義ブロックがキーワードと引数に分解されることを検証します。
    def test_blocks_are_parsed(self):
        tokens = tokenize(HEADER + "#0 0&")
        blocks, start = split_header(tokens)

        assert blocks[0] == HeaderBlock(keyword="$date", args=("today",))
        assert HeaderBlock(keyword="$var", args=("wire", "4", "!", "f_icode", "[3:0]")) in blocks
        assert blocks[-1].keyword == "$enddefinitions"
        assert tokens[start] == "#0"

    # @intent:test_case_no_enddefinitions $enddefinitionsがなくても本体の先頭で止まることを検証します。
    def test_stops_at_first_body_token(self):
        tokens = tokenize("$var wire 1 & clock $end #0 1&")
        blocks, start = split_header(tokens)
        assert len(blocks) == 1
        assert tokens[start] == "#0"


class TestValueParsing:
    # @intent:test_case_vector 2進ベクタが整数に変換されることを検証します。
    def test_vector(self):
        assert parse_vector("0011") == 3
        assert parse_vector("1" * 64) == (1 << 64) - 1

    # @intent:test_case_partial_unknown 一部にx/zを含むベクタは値全体が不定値になることを検証します。
    def test_partial_unknown_vector_collapses(self):
        assert parse_vector("10x1") is None
        assert parse_vector("zzzz") is None
        assert parse_vector("") is None

    def test_scalar(self):
        assert parse_scalar("1") == 1
        assert parse_scalar("0") == 0
        assert parse_scalar("x") is None
        assert parse_scalar("Z") is None


class TestValueChangeBatches:
    """
    iter_value_change_batchesのテスト。
    """
    # @intent:test_case_grouping 同一タイムスタンプの値変化が1つのバッチにまとまることを検証します。
    def test_changes_grouped_by_timestamp(self):
        batches = batches_of("#0 0& b0011 ! #5 1& #10 0& b0110 !")

        assert [b.timestamp for b in batches] == [0, 5, 10]
        assert batches[0].changes == {"&": 0, "!": 3}
        assert batches[1].changes == {"&": 1}
        assert batches[2].changes == {"&": 0, "!": 6}

    # @intent:test_case_multiline 1行に1変化の形式でも同じ結果になることを検証します。
    def test_one_change_per_line(self):
        body = "#0\n0&\nb0011 !\n#5\n1&\n"
        assert batches_of(body) == batches_of("#0 0& b0011 ! #5 1&")

    # @intent:test_case_before_first_marker 最初のタイムスタンプより前の変化は最初のバッチに含まれることを検証します。
    def test_changes_before_first_marker(self):
        batches = batches_of("0& #0 b1 ! #5 1&")
        assert batches[0].timestamp == 0
        assert batches[0].changes == {"&": 0, "!": 1}

    # @intent:test_case_last_wins 同一タイムスタンプ内の同じシンボルへの変化は最後のものが有効であることを検証します。
    def test_last_change_wins_within_timestamp(self):
        batches = batches_of("#0 0& 1& 0&")
        assert batches[0].changes == {"&": 0}

    # @intent:test_case_untracked 追跡対象外のシンボルの変化は無視されることを検証します。
    def test_untracked_symbols_ignored(self):
        batches = batches_of("#0 0& 1? b1111 %", tracked=("&",))
        assert batches[0].changes == {"&": 0}

    # @intent:test_case_directives $dumpvarsは読み飛ばし、$commentブロックは中身ごと読み飛ばすことを検証します。
    def test_directives_and_comments(self):
        batches = batches_of("#0 $dumpvars 0& bx ! $end #5 $comment 1& $end 1&")

        assert batches[0].changes == {"&": 0, "!": None}
        assert batches[1].timestamp == 5
        assert batches[1].changes == {"&": 1}

    # @intent:test_case_unknown_scalar x/zのスカラ値と実数値は不定値になることを検証します。
    def test_unknown_scalar_and_real(self):
        batches = batches_of("#0 x& r1.5 !")
        assert batches[0].changes == {"&": None, "!": None}

    # @intent:test_case_empty_timestamps 値変化のないタイムスタンプはバッチを生成しないことを検証します。
    def test_empty_timestamps_produce_no_batch(self):
        batches = batches_of("#0 0& #5 #10 1& #20")
        assert [b.timestamp for b in batches] == [0, 10]
