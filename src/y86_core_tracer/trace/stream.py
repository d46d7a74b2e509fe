# y86_core_tracer/trace/stream.py
"""
値変化ストリームデコーダ

このモジュールは、VCDトレースのテキストをトークン列に分解し、
ヘッダ部（定義ブロック群）と本体部（タイムスタンプと値変化の列）を解釈します。
同一タイムスタンプに属する値変化は1つのバッチとしてまとめて確定させ、
タイムスタンプ途中の中間状態を外部に見せないことを責務とします。
"""
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterator, List, Optional, Sequence, Tuple

from y86_core_tracer.common.types import SignalValue

# @intent:constant 本体部に現れ、値変化を内包するだけのディレクティブ。キーワード自体は読み飛ばします。
BODY_DIRECTIVES = frozenset({"$dumpvars", "$dumpon", "$dumpoff", "$dumpall"})

# @intent:constant 単一ビット値変化の先頭文字。x/zは不定値として扱います。
SCALAR_CHARS = frozenset("01xXzZ")
UNKNOWN_CHARS = frozenset("xXzZ")


# @intent:responsibility ヘッダ部の1つの定義ブロック（$keyword ... $end）を保持します。
@dataclass(frozen=True)
class HeaderBlock:
    keyword: str  # 例: "$var"
    args: Tuple[str, ...] = ()  # 例: ("wire", "4", "!", "f_icode", "[3:0]")


# @intent:responsibility 1つのタイムスタンプで確定する値変化の集合を保持します。
@dataclass(frozen=True)
class ValueChangeBatch:
    """
    同一タイムスタンプに属する値変化のバッチ。
    changesはシンボルから新しい値へのマッピングで、同一シンボルへの複数の変化は最後のものが有効です。
    """
    timestamp: Optional[int]
    changes: Dict[str, SignalValue] = field(default_factory=dict)


# @intent:utility_function トレース全体を空白区切りのトークン列に分解します。
def tokenize(text: str) -> List[str]:
    return text.split()


# @intent:responsibility トークン列の先頭からヘッダ部の定義ブロックを切り出します。
# @intent:post-condition 戻り値の整数は本体部の先頭トークンの位置です。
def split_header(tokens: Sequence[str]) -> Tuple[List[HeaderBlock], int]:
    """
    ヘッダ部の定義ブロックを順に読み取り、(ブロックのリスト, 本体部の開始位置) を返します。
    $enddefinitions を読んだ時点、あるいはディレクティブ以外のトークン
    （タイムスタンプや値変化）に達した時点でヘッダ部の終わりとみなします。
    """
    blocks: List[HeaderBlock] = []
    position = 0
    count = len(tokens)

    while position < count:
        keyword = tokens[position]
        if not keyword.startswith("$") or keyword in BODY_DIRECTIVES:
            break

        end = _find_end(tokens, position + 1)
        blocks.append(HeaderBlock(keyword=keyword, args=tuple(tokens[position + 1:end])))
        position = end + 1

        if keyword == "$enddefinitions":
            break

    return blocks, min(position, count)


def _find_end(tokens: Sequence[str], start: int) -> int:
    for index in range(start, len(tokens)):
        if tokens[index] == "$end":
            return index
    return len(tokens)


# @intent:utility_function ベクタ値（'b'以降の2進数字列）を整数に変換します。
# @intent:post-condition x/z等の2進数字以外が1文字でも含まれれば、値全体を不定値(None)とします。
def parse_vector(digits: str) -> SignalValue:
    if not digits or any(ch not in "01" for ch in digits):
        return None
    return int(digits, 2)


def parse_scalar(bit: str) -> SignalValue:
    if bit in UNKNOWN_CHARS:
        return None
    return int(bit)


# @intent:responsibility 本体部のトークン列を走査し、タイムスタンプごとの値変化バッチを生成します。
# @intent:pre-condition tracked_symbolsは追跡対象のシンボル集合です。それ以外の値変化は無視されます。
def iter_value_change_batches(
    tokens: Sequence[str],
    tracked_symbols: FrozenSet[str],
    start: int = 0,
) -> Iterator[ValueChangeBatch]:
    """
    タイムスタンプマーカー(#<整数>)に達するたびに、保留中の値変化をバッチとして確定して返します。
    最初のマーカーより前の値変化は、最初のマーカーのバッチに含めます。
    入力の終わりでも保留中の値変化を確定させます。
    """
    pending: Dict[str, SignalValue] = {}
    timestamp: Optional[int] = None
    seen_timestamp = False
    position = start
    count = len(tokens)

    while position < count:
        token = tokens[position]
        position += 1

        if token.startswith("#"):
            try:
                next_timestamp = int(token[1:])
            except ValueError:
                continue
            if seen_timestamp and pending:
                yield ValueChangeBatch(timestamp=timestamp, changes=pending)
                pending = {}
            timestamp = next_timestamp
            seen_timestamp = True
            continue

        if token.startswith("$"):
            if token == "$comment":
                position = _find_end(tokens, position) + 1
            continue

        head = token[0]
        if head in "bBrR":
            # ベクタ/実数値はシンボルが次のトークンになる
            if position >= count:
                break
            symbol = tokens[position]
            position += 1
            if symbol in tracked_symbols:
                pending[symbol] = parse_vector(token[1:]) if head in "bB" else None
            continue

        if head in SCALAR_CHARS and len(token) > 1:
            symbol = token[1:]
            if symbol in tracked_symbols:
                pending[symbol] = parse_scalar(head)

    if pending:
        yield ValueChangeBatch(timestamp=timestamp, changes=pending)
