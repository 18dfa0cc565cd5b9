"""CRC file tool: append a CRC tail (FILE -> FILE.crcW) and check/strip it.

Unrelated to the Huffman archive: it works on raw bytes of any file.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from pathlib import Path

from tokhuff.checksum.crc import check_width, crc_hex, crc_remainder, crc_to_bytes
from tokhuff.errors import HashMismatch, MissingResource, UsageError
from tokhuff.output_paths import write_atomic

_CRC_SUFFIX_RE = re.compile(r"\.crc[124]$")


@dataclass(frozen=True)
class CrcResult:
    input_path: Path
    output_path: Path
    width: int
    stored: int | None
    computed: int
    data_size: int
    elapsed_ms: float


def crc_output_path(input_path: Path, width: int) -> Path:
    return input_path.with_name(f"{input_path.name}.crc{width}")


def decoded_output_path(input_path: Path) -> Path:
    """FILE.crc2 -> FILE.decoded; anything else -> NAME.decoded."""
    name = input_path.name
    if _CRC_SUFFIX_RE.search(name):
        return input_path.with_name(name[: -len(".crcX")] + ".decoded")
    return input_path.with_name(name + ".decoded")


def _read(path: Path) -> bytes:
    if not path.is_file():
        raise MissingResource(f"File not found: {path}")
    return path.read_bytes()


def append_crc(input_path: Path, width: int, output_path: Path | None = None) -> CrcResult:
    check_width(width)
    input_path = Path(input_path)
    out = Path(output_path) if output_path is not None else crc_output_path(input_path, width)

    data = _read(input_path)
    t0 = time.perf_counter()
    crc = crc_remainder(data, width)
    t1 = time.perf_counter()
    write_atomic(out, data + crc_to_bytes(crc, width))

    return CrcResult(
        input_path=input_path,
        output_path=out,
        width=width,
        stored=None,
        computed=crc,
        data_size=len(data),
        elapsed_ms=(t1 - t0) * 1000.0,
    )


def check_crc(input_path: Path, width: int, output_path: Path | None = None) -> CrcResult:
    """Verify the CRC tail; on success write the data without the tail.

    On mismatch raises HashMismatch and writes nothing.
    """
    check_width(width)
    input_path = Path(input_path)
    blob = _read(input_path)
    if len(blob) < width:
        raise UsageError(f"file is too short for a {8 * width}-bit CRC: {input_path}")

    data, tail = blob[:-width], blob[-width:]
    stored = int.from_bytes(tail, "big")
    t0 = time.perf_counter()
    computed = crc_remainder(data, width)
    t1 = time.perf_counter()

    if stored != computed:
        raise HashMismatch(
            f"CRC mismatch for {input_path}: stored 0x{crc_hex(stored, width)}, "
            f"computed 0x{crc_hex(computed, width)}; data is corrupted, nothing written"
        )

    out = Path(output_path) if output_path is not None else decoded_output_path(input_path)
    write_atomic(out, data)
    return CrcResult(
        input_path=input_path,
        output_path=out,
        width=width,
        stored=stored,
        computed=computed,
        data_size=len(data),
        elapsed_ms=(t1 - t0) * 1000.0,
    )
