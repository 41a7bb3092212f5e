"""Bounded string helpers, URL decoding, checksums and 32-bit bit helpers."""

from __future__ import annotations

import string

_MASK32 = 0xFFFFFFFF
_HEX_BYTES = frozenset(string.hexdigits.encode("ascii"))

_LFS_CRC_TABLE = (
    0x00000000, 0x1DB71064, 0x3B6E20C8, 0x26D930AC,
    0x76DC4190, 0x6B6B51F4, 0x4DB26158, 0x5005713C,
    0xEDB88320, 0xF00F9344, 0xD6D6A3E8, 0xCB61B38C,
    0x9B64C2B0, 0x86D3D2D4, 0xA00AE278, 0xBDBDF21C,
)


def _bounded(text: str, max_len: int) -> tuple[str, int]:
    # One slot is kept for the terminator and one more as a safety margin;
    # the first character is always stored before the limit is checked.
    limit = max(1, max_len - 2)
    if text and len(text) >= limit:
        return text[:limit], 0
    return text, max_len - 1 - len(text)


def copy_bounded(src: str, max_len: int) -> tuple[str, int]:
    """Copy ``src`` into a buffer of ``max_len`` slots.

    Returns the stored text and the space left; 0 means it was truncated.
    """
    return _bounded(src, max_len)


def append_bounded(target: str, src: str, max_len: int) -> tuple[str, int]:
    """Append ``src`` to ``target`` within a buffer of ``max_len`` slots.

    Returns the stored text and the space left; 0 means it was truncated.
    """
    return _bounded(target + src, max_len)


def url_decode(src: str | bytes, max_len: int) -> str | bytes:
    """Decode ``%XX`` escapes and ``+`` into at most ``max_len - 2`` bytes.

    The result has the same type as ``src``.
    """
    raw = src.encode("utf-8") if isinstance(src, str) else bytes(src)
    out = bytearray()
    i = 0
    while i < len(raw) and len(out) + 1 < max_len - 1:
        c = raw[i]
        if (
            c == 0x25
            and i + 2 < len(raw)
            and raw[i + 1] in _HEX_BYTES
            and raw[i + 2] in _HEX_BYTES
        ):
            out.append(int(raw[i + 1:i + 3], 16))
            i += 3
        elif c == 0x2B:
            out.append(0x20)
            i += 1
        else:
            out.append(c)
            i += 1
    if isinstance(src, str):
        return out.decode("utf-8", errors="replace")
    return bytes(out)


def crc8(data: bytes) -> int:
    """Reflected CRC-8 with polynomial 0x8C and zero initial value."""
    crc = 0
    for byte in data:
        for _ in range(8):
            mix = (crc ^ byte) & 0x01
            crc >>= 1
            if mix:
                crc ^= 0x8C
            byte >>= 1
    return crc


def lfs_crc(crc: int, data: bytes) -> int:
    """Update a CRC-32 (polynomial 0x04C11DB7, reflected) with ``data``."""
    crc &= _MASK32
    for byte in data:
        crc = (crc >> 4) ^ _LFS_CRC_TABLE[(crc ^ byte) & 0xF]
        crc = (crc >> 4) ^ _LFS_CRC_TABLE[(crc ^ (byte >> 4)) & 0xF]
    return crc


def align_down(value: int, alignment: int) -> int:
    """Round ``value`` down to a multiple of ``alignment``."""
    value &= _MASK32
    return value - (value % alignment)


def align_up(value: int, alignment: int) -> int:
    """Round ``value`` up to a multiple of ``alignment``."""
    return align_down((value + alignment - 1) & _MASK32, alignment)


def npw2(value: int) -> int:
    """Exponent of the smallest power of two not below ``value`` (at least 1)."""
    return max(1, ((value - 1) & _MASK32).bit_length())


def ctz(value: int) -> int:
    """Number of trailing zero bits of a 32-bit value (0 for zero)."""
    value &= _MASK32
    return npw2((value & -value) + 1) - 1


def popcount(value: int) -> int:
    """Number of set bits in a 32-bit value."""
    return bin(value & _MASK32).count("1")


def seq_compare(a: int, b: int) -> int:
    """Signed 32-bit distance from ``b`` to ``a``, ignoring overflow."""
    diff = (a - b) & _MASK32
    return diff - (1 << 32) if diff & 0x80000000 else diff