"""Bit manipulation helpers for 64-bit address arithmetic."""

__all__ = ["WORD_MASK", "lg2", "bitmask", "splice_bits"]

WORD_MASK = (1 << 64) - 1


def lg2(n: int) -> int:
    """Return floor(log2(n)), with 0 for any n below 2."""
    if n < 2:
        return 0
    return n.bit_length() - 1


def bitmask(begin: int, end: int = 0) -> int:
    """Return a 64-bit mask with bits [end, begin) set.

    A span of 64 bits or more, or a begin below end, yields all ones.
    """
    width = begin - end
    if 0 <= width < 64:
        return (((1 << width) - 1) << end) & WORD_MASK
    return WORD_MASK


def splice_bits(upper: int, lower: int, bits: int) -> int:
    """Take the low ``bits`` bits from ``lower`` and the rest from ``upper``."""
    mask = bitmask(bits)
    return ((upper & ~mask) | (lower & mask)) & WORD_MASK