"""
Character code lookup.

Records carry a JIS X 0208 code (row/cell packed into 16 bits, each byte in
0x21..0x7E). The EUC-JP encoding of the same character is that code with the
high bit set on both bytes, so Python's euc_jp codec doubles as the lookup
table.
"""

from __future__ import annotations

from typing import Callable

CharacterLookup = Callable[[int], str]


def jis0208_character(code: int) -> str:
    """
    Map a JIS X 0208 code to its character.

    Returns an empty string for codes outside the JIS X 0208 grid or that the
    codec does not assign.

    Example:
        >>> jis0208_character(0x3021)
        '亜'
    """
    hi, lo = (code >> 8) & 0xFF, code & 0xFF
    if not (0x21 <= hi <= 0x7E and 0x21 <= lo <= 0x7E):
        return ""
    try:
        return bytes([hi | 0x80, lo | 0x80]).decode("euc_jp")
    except UnicodeDecodeError:
        return ""
