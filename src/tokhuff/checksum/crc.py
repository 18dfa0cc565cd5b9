"""Bitwise CRC remainder (MSB-first, non-reflected, init 0, no final xor).

Computes the remainder of data * x^r divided by g(x) over GF(2), r = 8 * width.

  width 1: CRC-8        x^8 + x^2 + x + 1            -> 0x07
  width 2: CRC-16/CCITT x^16 + x^12 + x^5 + 1        -> 0x1021
  width 4: CRC-32       x^32 + x^26 + ... + x + 1    -> 0x04C11DB7

With init 0 and no final xor, data + crc(data) (big-endian) has remainder 0.
"""

from __future__ import annotations

from tokhuff.errors import UsageError

CRC_POLYS: dict[int, int] = {
    1: 0x07,
    2: 0x1021,
    4: 0x04C11DB7,
}


def check_width(width: int) -> int:
    if width not in CRC_POLYS:
        raise UsageError(f"CRC width must be one of 1, 2, 4 bytes (got {width})")
    return width


def crc_remainder(data: bytes, width: int) -> int:
    r = 8 * check_width(width)
    poly = CRC_POLYS[width]
    top = 1 << (r - 1)
    mask = (1 << r) - 1

    reg = 0
    for b in data:
        reg ^= b << (r - 8)
        for _ in range(8):
            if reg & top:
                reg = ((reg << 1) ^ poly) & mask
            else:
                reg = (reg << 1) & mask
    return reg


def crc_to_bytes(value: int, width: int) -> bytes:
    return value.to_bytes(check_width(width), "big")


def crc_hex(value: int, width: int) -> str:
    return f"{value:0{2 * width}X}"
