from __future__ import annotations

from collections.abc import Iterable


class BitWriter:
    """
    Packs bits MSB-first into a bytearray.

    The final partial byte is left-aligned and zero-padded by close().
    No bit count is stored: the reader side knows when to stop.
    """

    def __init__(self) -> None:
        self._out = bytearray()
        self._current = 0
        self._nbits = 0
        self._closed = False

    def write_bit(self, bit: int) -> None:
        if bit != 0 and bit != 1:
            raise ValueError(f"bit must be 0 or 1, got {bit!r}")
        if self._closed:
            raise ValueError("BitWriter already closed")
        self._current = (self._current << 1) | bit
        self._nbits += 1
        if self._nbits == 8:
            self._out.append(self._current)
            self._current = 0
            self._nbits = 0

    def write_bits(self, bits: Iterable[int]) -> None:
        for bit in bits:
            self.write_bit(bit)

    def close(self) -> bytes:
        if not self._closed:
            if self._nbits > 0:
                self._out.append(self._current << (8 - self._nbits))
                self._current = 0
                self._nbits = 0
            self._closed = True
        return bytes(self._out)


class BitReader:
    """Yields bits MSB-first from buf[start:]; read_bit() returns None at end of data."""

    def __init__(self, buf: bytes, start: int = 0) -> None:
        self._buf = buf
        self._idx = start
        self._current = 0
        self._bitpos = 8  # 8 => load next byte

    def read_bit(self) -> int | None:
        if self._bitpos == 8:
            if self._idx >= len(self._buf):
                return None
            self._current = self._buf[self._idx]
            self._idx += 1
            self._bitpos = 0
        bit = (self._current >> (7 - self._bitpos)) & 1
        self._bitpos += 1
        return bit

    def bits_left(self) -> int:
        pending = 0 if self._bitpos == 8 else 8 - self._bitpos
        return pending + 8 * (len(self._buf) - self._idx)
