"""Verification helpers for .huf archives.

We implement:
  - light verify: header + frequency table parse and validation
  - full verify: rebuild the tree and decode the whole bitstream in memory

Policy: light by default, --full decodes (nothing is written in either mode).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from tokhuff.core.codec_huffman import build_huffman_tree, count_nodes, decode_tokens
from tokhuff.core.bitio import BitReader
from tokhuff.engine.container import unpack_header
from tokhuff.errors import CorruptPayload, MissingResource, TruncatedStream
from tokhuff.layers.tokens import join_tokens


@dataclass(frozen=True)
class VerifyReport:
    path: Path
    full: bool
    n: int
    n_codepoints: int
    filename: str
    distinct_tokens: int
    header_size: int
    bitstream_size: int


def _read_blob(path: Path) -> bytes:
    if not path.is_file():
        raise MissingResource(f"File not found: {path}")
    return path.read_bytes()


def verify_archive_bytes(blob: bytes, *, full: bool = False, path: Path | None = None) -> VerifyReport:
    archive, offset = unpack_header(blob)
    bitstream_size = len(blob) - offset

    # the encoder always emits at least one code bit
    if bitstream_size == 0:
        raise TruncatedStream("archive has no bitstream")

    if full:
        root = build_huffman_tree(archive.freq_table())
        tokens = decode_tokens(root, BitReader(blob, offset), archive.n_codepoints)
        text = join_tokens(tokens, archive.n_codepoints)
        if len(text) != archive.n_codepoints:
            raise CorruptPayload(
                f"decoded {len(text)} code points, header says {archive.n_codepoints}"
            )

    return VerifyReport(
        path=path or Path("<bytes>"),
        full=full,
        n=archive.n,
        n_codepoints=archive.n_codepoints,
        filename=archive.filename,
        distinct_tokens=len(archive.freq),
        header_size=offset,
        bitstream_size=bitstream_size,
    )


def verify_archive_file(path: Path, *, full: bool = False) -> VerifyReport:
    path = Path(path)
    return verify_archive_bytes(_read_blob(path), full=full, path=path)


def archive_info(path: Path, *, top: int = 10) -> dict[str, Any]:
    """Header summary + most frequent tokens (for `tokhuff info`)."""
    path = Path(path)
    blob = _read_blob(path)
    archive, offset = unpack_header(blob)
    root = build_huffman_tree(archive.freq_table())
    leaves, internals = count_nodes(root)

    ranked = sorted(archive.freq, key=lambda e: (-e[1], e[0]))
    return {
        "path": str(path),
        "n": archive.n,
        "n_codepoints": archive.n_codepoints,
        "filename": archive.filename,
        "distinct_tokens": len(archive.freq),
        "tree_leaves": leaves,
        "tree_internal_nodes": internals,
        "header_size": offset,
        "bitstream_size": len(blob) - offset,
        "top_tokens": [{"token": t, "freq": f} for t, f in ranked[: max(0, int(top))]],
    }
