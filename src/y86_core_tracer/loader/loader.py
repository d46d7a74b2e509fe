# y86_core_tracer/loader/loader.py
"""
メモリイメージローダーモジュール。
データメモリ、命令メモリ、レジスタファイル初期値の各補助ファイルの読み込みをサポートします。
いずれもトレースとは独立しており、状態を持ちません。
"""
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from y86_core_tracer.common.errors import InstructionMemoryNotFoundError
from y86_core_tracer.common.types import REGISTER_NAMES, RegisterImage, WORD_NIBBLES, render_registers

WORD_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")
WORD_BITS = 64
WORD_BYTES = 8


# @intent:utility_function 1行分のHEX語を下位16桁（64bit）に正規化します。
# @intent:post-condition 空行、"//"コメント行、HEX以外を含む行はNoneを返します。
def normalize_word_line(line: str) -> Optional[str]:
    line = line.strip()
    if not line or line.startswith("//"):
        return None
    if not WORD_HEX_RE.match(line):
        return None
    return line.lower().rjust(WORD_NIBBLES, "0")[-WORD_NIBBLES:]


# @intent:data_structure データメモリの1ワード。
@dataclass(frozen=True)
class MemoryWord:
    index: int
    hex: str  # 16桁の小文字HEX

    @property
    def value(self) -> int:
        return int(self.hex, 16)

    @property
    def byte_address(self) -> int:
        return self.index * WORD_BYTES

    @property
    def bit_address(self) -> int:
        return self.index * WORD_BITS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "byteAddress": self.byte_address,
            "bitAddress": self.bit_address,
            "hex": self.hex,
            "valueHex": f"0x{self.hex}",
        }


@dataclass(frozen=True)
class DataMemoryImage:
    words: List[MemoryWord] = field(default_factory=list)
    word_bit_width: int = WORD_BITS

    @property
    def word_count(self) -> int:
        return len(self.words)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wordBitWidth": self.word_bit_width,
            "wordCount": self.word_count,
            "words": [word.to_dict() for word in self.words],
        }


# @intent:data_structure 命令メモリの1バイト。
@dataclass(frozen=True)
class MemoryByte:
    index: int
    hex: str  # 2桁の大文字HEX

    @property
    def value(self) -> int:
        return int(self.hex, 16)

    @property
    def bit_address(self) -> int:
        return self.index * 8

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "bitAddress": self.bit_address,
            "hex": self.hex,
            "binary": f"{self.value:08b}",
        }


@dataclass(frozen=True)
class InstructionMemoryImage:
    bit_width: int
    bytes: List[MemoryByte] = field(default_factory=list)

    @property
    def byte_count(self) -> int:
        return (self.bit_width + 7) // 8

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bitWidth": self.bit_width,
            "byteCount": self.byte_count,
            "bytes": [byte.to_dict() for byte in self.bytes],
        }


class DataMemoryLoader:
    """
    1行に1つのHEX語を記述したデータメモリファイルを解析するローダー。
    """
    def parse_data_memory(self, text: str) -> DataMemoryImage:
        words: List[MemoryWord] = []
        for line in text.splitlines():
            normalized = normalize_word_line(line)
            if normalized is None:
                continue
            words.append(MemoryWord(index=len(words), hex=normalized))
        return DataMemoryImage(words=words)

    def load_data_memory(self, file_path: str) -> DataMemoryImage:
        with open(file_path, "r", encoding="utf-8") as f:
            return self.parse_data_memory(f.read())


class RegisterFileLoader:
    """
    データメモリと同じ行形式のファイルを、15個のレジスタ名へ先頭から順に割り当てるローダー。
    足りない末尾のレジスタは0になります。
    """
    def parse_register_file(self, text: str) -> RegisterImage:
        values: List[int] = []
        for line in text.splitlines():
            normalized = normalize_word_line(line)
            if normalized is not None:
                values.append(int(normalized, 16))

        registers: RegisterImage = {}
        for number, name in enumerate(REGISTER_NAMES):
            registers[name] = values[number] if number < len(values) else 0
        return registers

    def load_register_file(self, file_path: str) -> RegisterImage:
        with open(file_path, "r", encoding="utf-8") as f:
            return self.parse_register_file(f.read())

    @staticmethod
    def to_dict(registers: RegisterImage) -> Dict[str, Any]:
        return {"registers": render_registers(registers)}


HEX_LITERAL_CHARS = frozenset("0123456789abcdefABCDEF_")


def _is_identifier_char(char: str) -> bool:
    return char.isalnum() or char == "_"


class _SourceCursor:
    """
    構造記述ファイルの文字列を先頭から1トークンずつ読み進めるカーソル。
    期待したトークンがない場合はInstructionMemoryNotFoundErrorを送出します。
    """

    def __init__(self, text: str, position: int = 0):
        self.text = text
        self.position = position

    def skip_space(self) -> None:
        while self.position < len(self.text) and self.text[self.position].isspace():
            self.position += 1

    def at_end(self) -> bool:
        self.skip_space()
        return self.position >= len(self.text)

    def take(self, predicate) -> str:
        self.skip_space()
        start = self.position
        while self.position < len(self.text) and predicate(self.text[self.position]):
            self.position += 1
        return self.text[start:self.position]

    def accept(self, token: str, ignore_case: bool = False) -> bool:
        self.skip_space()
        candidate = self.text[self.position:self.position + len(token)]
        matched = candidate.lower() == token.lower() if ignore_case else candidate == token
        if matched:
            self.position += len(token)
        return matched

    def expect(self, token: str, expected: str, ignore_case: bool = False) -> None:
        if not self.accept(token, ignore_case):
            raise self.error(expected)

    def error(self, expected: str) -> InstructionMemoryNotFoundError:
        self.skip_space()
        snippet = self.text[self.position:].split("\n", 1)[0][:16]
        found = repr(snippet) if snippet else "end of source"
        line = self.text.count("\n", 0, self.position) + 1
        return InstructionMemoryNotFoundError(f"expected {expected} at line {line}, found {found}")


class InstructionMemoryLoader:
    """
    構造記述ファイル（fetch.v）から命令メモリのリテラル初期化文を取り出すローダー。

    受理する文法は次の1文のみです（空白は任意、HEX部の'_'は区切りとして無視）::

        reg [0:<msb>] Instruction_Mem = 'h<hex>;

    汎用のVerilogパーサではありません。"reg"で始まる宣言を順に読み、名前がInstruction_Memの
    宣言だけを上の文法どおりに1トークンずつ検査します。該当する宣言がない場合、
    または宣言が文法に合わない場合は InstructionMemoryNotFoundError を送出します。
    """
    ARRAY_NAME = "Instruction_Mem"

    _REG_KEYWORD_RE = re.compile(r"\breg\b")

    def parse_instruction_memory(self, text: str) -> InstructionMemoryImage:
        for keyword in self._REG_KEYWORD_RE.finditer(text):
            cursor = _SourceCursor(text, keyword.end())
            declared_range = self._read_bracket(cursor)
            if cursor.take(_is_identifier_char) != self.ARRAY_NAME:
                continue
            return self._read_declaration(cursor, declared_range)
        raise InstructionMemoryNotFoundError(f"{self.ARRAY_NAME} hex literal not found in source")

    # @intent:utility_function "[...]"の中身を返します。角括弧がなければNoneです。
    def _read_bracket(self, cursor: _SourceCursor) -> Optional[_SourceCursor]:
        if not cursor.accept("["):
            return None
        end = cursor.text.find("]", cursor.position)
        if end < 0:
            return None
        inner = _SourceCursor(cursor.text[:end], cursor.position)
        cursor.position = end + 1
        return inner

    def _read_declaration(
        self, cursor: _SourceCursor, declared_range: Optional[_SourceCursor],
    ) -> InstructionMemoryImage:
        if declared_range is None:
            raise InstructionMemoryNotFoundError(f"expected '[0:<msb>]' range before {self.ARRAY_NAME}")
        declared_range.expect("0", "range start '0'")
        declared_range.expect(":", "':' in range")
        msb = declared_range.take(str.isdigit)
        if not msb:
            raise declared_range.error("most significant bit index")
        if not declared_range.at_end():
            raise declared_range.error("']' after range")

        cursor.expect("=", f"'=' after {self.ARRAY_NAME}")
        cursor.expect("'h", "hex literal prefix \"'h\"", ignore_case=True)
        literal = cursor.take(lambda char: char in HEX_LITERAL_CHARS).replace("_", "").upper()
        if not literal:
            raise cursor.error("hex digits")
        cursor.expect(";", "';' after hex literal")

        return self._split_literal(int(msb) + 1, literal)

    # @intent:utility_function リテラルを幅に合わせてゼロ埋めし、先頭から2桁ずつバイトに分けます。
    def _split_literal(self, bit_width: int, literal: str) -> InstructionMemoryImage:
        required_digits = (bit_width + 3) // 4
        if len(literal) < required_digits:
            literal = literal.rjust(required_digits, "0")
        if len(literal) % 2 != 0:
            literal = "0" + literal

        memory_bytes = [
            MemoryByte(index=offset // 2, hex=literal[offset:offset + 2])
            for offset in range(0, len(literal), 2)
        ]
        return InstructionMemoryImage(bit_width=bit_width, bytes=memory_bytes)

    def load_instruction_memory(self, file_path: str) -> InstructionMemoryImage:
        with open(file_path, "r", encoding="utf-8") as f:
            return self.parse_instruction_memory(f.read())
