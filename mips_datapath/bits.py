"""
Word-width helpers shared by every datapath stage.
"""

from __future__ import annotations

WORD_MASK = 0xFFFFFFFF
HALF_MASK = 0xFFFF


def to_unsigned_32(value: int) -> int:
    """Clamp to unsigned 32-bit."""
    return value & WORD_MASK


def to_signed_32(value: int) -> int:
    """Interpret an unsigned 32-bit value as signed."""
    v = value & WORD_MASK
    if v & 0x80000000:
        return v - 0x100000000
    return v


def sign_extend_16(offset: int) -> int:
    """
    Widen a 16-bit offset to a 32-bit word, replicating bit 15 into the
    upper half-word. The result is returned as an unsigned word.
    """
    offset &= HALF_MASK
    if offset >> 15 == 0:
        return offset
    return offset | 0xFFFF0000


def is_word_aligned(addr: int) -> bool:
    return addr % 4 == 0
