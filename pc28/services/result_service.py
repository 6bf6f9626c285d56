import re
from typing import Tuple

from pc28.constants import BIG_THRESHOLD
from pc28.schemas.lottery import BlockData, Parity, ResultAttributes, RoundResult, Size

_NON_DIGIT = re.compile(r"\D", re.ASCII)


def extract_numbers(block_hash: str) -> Tuple[int, int, int]:
    """去掉哈希中的字母，取最后 3 位数字；不足 3 位左侧补 0"""
    digits = _NON_DIGIT.sub("", block_hash or "").rjust(3, "0")
    a, b, c = (int(ch) for ch in digits[-3:])
    return a, b, c


def calc_fields(n1: int, n2: int, n3: int) -> Tuple[int, ResultAttributes]:
    s = n1 + n2 + n3
    size = Size.BIG if s >= BIG_THRESHOLD else Size.SMALL
    parity = Parity.EVEN if s % 2 == 0 else Parity.ODD
    is_leopard = n1 == n2 == n3
    is_pair = not is_leopard and (n1 == n2 or n2 == n3 or n1 == n3)
    combo = ("大" if size is Size.BIG else "小") + ("双" if parity is Parity.EVEN else "单")
    return s, ResultAttributes(
        size=size, parity=parity, is_pair=is_pair, is_leopard=is_leopard, combo=combo
    )


def derive(block_hash: str, issue: int, timestamp: int) -> RoundResult:
    nums = extract_numbers(block_hash)
    s, attrs = calc_fields(*nums)
    return RoundResult(
        issue=issue,
        hash=block_hash,
        source_numbers=nums,
        sum=s,
        attributes=attrs,
        timestamp=timestamp,
    )


def derive_from_block(block: BlockData) -> RoundResult:
    return derive(block.hash, block.height, block.timestamp)
