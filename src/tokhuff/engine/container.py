from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from tokhuff.core.codec_base import Codec
from tokhuff.core.codec_huffman import EMPTY_TOKEN, CodecHuffman
from tokhuff.errors import (
    BadMagic,
    CorruptPayload,
    GroupSizeMismatch,
    TruncatedStream,
    UsageError,
)
from tokhuff.layers.tokens import LayerTokens, check_group_size

MAGIC = b"HUF1"  # 0x48554631

# Sanity ceiling for a declared token length: rejects garbage headers
# before anything is sliced or decoded.
MAX_TOKEN_BYTES = 50_000_000

U16_MAX = 0xFFFF
U32_MAX = 0xFFFFFFFF
U64_MAX = 0xFFFFFFFFFFFFFFFF


# -------------------
# Archive
# [MAGIC(4)|N(u32)|NCP(u64)|NAMELEN(u16)|NAME|K(u32)|K*(TLEN(u32)|TOKEN|FREQ(u32))|BITSTREAM...]
# All integers big-endian. The bitstream runs to the end of the file.
# -------------------
@dataclass(frozen=True)
class Archive:
    n: int
    n_codepoints: int
    filename: str
    freq: tuple[tuple[str, int], ...]  # persisted order
    bitstream: bytes

    def freq_table(self) -> dict[str, int]:
        return dict(self.freq)


def _canonical_entries(freq: Mapping[str, int]) -> tuple[tuple[str, int], ...]:
    # deterministic archives: same input -> same bytes
    return tuple(sorted(freq.items()))


def pack_archive(archive: Archive) -> bytes:
    check_group_size(archive.n)
    if archive.n > U32_MAX:
        raise UsageError(f"N too large for the archive header (u32): {archive.n}")
    if not 0 <= archive.n_codepoints <= U64_MAX:
        raise UsageError(f"code point count out of range (u64): {archive.n_codepoints}")
    name_b = archive.filename.encode("utf-8")
    if len(name_b) > U16_MAX:
        raise UsageError("file name too long (max 65535 UTF-8 bytes)")
    if not archive.freq:
        raise ValueError("frequency table is empty")

    out = bytearray()
    out += MAGIC
    out += archive.n.to_bytes(4, "big")
    out += archive.n_codepoints.to_bytes(8, "big")
    out += len(name_b).to_bytes(2, "big")
    out += name_b
    out += len(archive.freq).to_bytes(4, "big")
    for token, f in archive.freq:
        try:
            tb = token.encode("utf-8")
        except UnicodeEncodeError as e:
            raise UsageError("text contains lone surrogates (not encodable as UTF-8)") from e
        if len(tb) > MAX_TOKEN_BYTES:
            raise UsageError(f"token too long ({len(tb)} bytes, max {MAX_TOKEN_BYTES}); use a smaller N")
        if not 0 < f <= U32_MAX:
            raise UsageError(f"token frequency out of range (u32): {f}")
        out += len(tb).to_bytes(4, "big")
        out += tb
        out += f.to_bytes(4, "big")
    out += archive.bitstream
    return bytes(out)


def _take(blob: bytes, idx: int, size: int, what: str) -> tuple[bytes, int]:
    end = idx + size
    if end > len(blob):
        raise TruncatedStream(f"archive truncated ({what})")
    return blob[idx:end], end


def _take_int(blob: bytes, idx: int, size: int, what: str) -> tuple[int, int]:
    raw, idx = _take(blob, idx, size, what)
    return int.from_bytes(raw, "big"), idx


def unpack_header(blob: bytes, expected_n: int | None = None) -> tuple[Archive, int]:
    """Parse and validate everything before the bitstream.

    With expected_n, a different N fails with GroupSizeMismatch as soon as N
    is read, before the frequency table is touched.

    Returns (archive, bitstream_offset). archive.bitstream is left empty so
    callers that only need the header do not copy the payload.
    """
    if len(blob) < len(MAGIC) or blob[: len(MAGIC)] != MAGIC:
        raise BadMagic("not a .huf archive (bad magic)")
    idx = len(MAGIC)

    n, idx = _take_int(blob, idx, 4, "N")
    if n <= 0:
        raise CorruptPayload(f"bad N in header: {n}")
    if expected_n is not None and n != expected_n:
        raise GroupSizeMismatch(n, expected_n)
    n_codepoints, idx = _take_int(blob, idx, 8, "code point count")

    name_len, idx = _take_int(blob, idx, 2, "file name length")
    name_b, idx = _take(blob, idx, name_len, "file name")
    try:
        filename = name_b.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CorruptPayload("file name is not valid UTF-8") from e

    k, idx = _take_int(blob, idx, 4, "token count")
    if k == 0:
        raise CorruptPayload("empty frequency table")

    entries: list[tuple[str, int]] = []
    seen: set[str] = set()
    for i in range(k):
        tlen, idx = _take_int(blob, idx, 4, f"token #{i} length")
        if tlen > MAX_TOKEN_BYTES:
            raise CorruptPayload(f"bad token length: {tlen}")
        tb, idx = _take(blob, idx, tlen, f"token #{i}")
        try:
            token = tb.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CorruptPayload(f"token #{i} is not valid UTF-8") from e
        f, idx = _take_int(blob, idx, 4, f"token #{i} frequency")
        if f <= 0:
            raise CorruptPayload(f"bad frequency: {f}")
        if len(token) > n:
            raise CorruptPayload(f"token #{i} longer than N={n} code points")
        if token in seen:
            raise CorruptPayload(f"duplicate token #{i} in frequency table")
        seen.add(token)
        entries.append((token, f))

    if EMPTY_TOKEN in seen and k != 1:
        raise CorruptPayload("empty token mixed with other tokens")

    archive = Archive(
        n=n, n_codepoints=n_codepoints, filename=filename, freq=tuple(entries), bitstream=b""
    )
    return archive, idx


def unpack_archive(blob: bytes, expected_n: int | None = None) -> Archive:
    archive, idx = unpack_header(blob, expected_n)
    return Archive(
        n=archive.n,
        n_codepoints=archive.n_codepoints,
        filename=archive.filename,
        freq=archive.freq,
        bitstream=blob[idx:],
    )


# -------------------
# Engine
# -------------------
@dataclass
class Engine:
    codec: Codec

    @classmethod
    def default(cls) -> Engine:
        return cls(codec=CodecHuffman())

    def compress(self, text: str, n: int, filename: str = "") -> bytes:
        layer = LayerTokens(n=check_group_size(n))
        tokens, meta = layer.encode(text)
        freq, bitstream = self.codec.compress_tokens(tokens)
        archive = Archive(
            n=n,
            n_codepoints=int(meta["n_codepoints"]),
            filename=filename,
            freq=_canonical_entries(freq),
            bitstream=bitstream,
        )
        return pack_archive(archive)

    def decompress(self, blob: bytes, n: int) -> tuple[str, str]:
        """Return (original file name, text). N must match the header."""
        check_group_size(n)
        archive = unpack_archive(blob, expected_n=n)
        layer = LayerTokens(n=archive.n)
        tokens = self.codec.decompress_tokens(
            archive.freq_table(), archive.bitstream, archive.n_codepoints
        )
        return archive.filename, layer.decode(tokens, {"n_codepoints": archive.n_codepoints})


def compress_text(text: str, n: int, filename: str = "") -> bytes:
    return Engine.default().compress(text, n, filename)


def decompress_archive(blob: bytes, n: int) -> tuple[str, str]:
    return Engine.default().decompress(blob, n)
