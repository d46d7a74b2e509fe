# tests/conftest.py
"""
テスト共通のフィクスチャ。
"""
from typing import Callable, Iterable, Tuple

import pytest


# @intent:utility_function (シンボル, 信号名, ビット幅)の列と本体部からVCDテキストを組み立てます。
def build_vcd(signals: Iterable[Tuple[str, str, int]], body: str, timescale: str = "1ns") -> str:
    lines = [f"$timescale {timescale} $end", "$scope module tb $end"]
    for symbol, name, width in signals:
        suffix = f" [{width - 1}:0]" if width > 1 else ""
        lines.append(f"$var wire {width} {symbol} {name}{suffix} $end")
    lines += ["$upscope $end", "$enddefinitions $end", body]
    return "\n".join(lines) + "\n"


@pytest.fixture
def make_vcd() -> Callable[..., str]:
    return build_vcd


# @intent:utility_function 整数をVCDのベクタ値変化トークン(b<2進数> <シンボル>)に変換します。
def vec(value: int, symbol: str) -> str:
    return f"b{int(value):b} {symbol}"


@pytest.fixture
def vector() -> Callable[[int, str], str]:
    return vec
