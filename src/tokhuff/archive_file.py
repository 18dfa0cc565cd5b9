"""File-level encode/decode.

Policy:
  - the whole input is read into memory before tokenization
  - the whole archive is read before any bit is decoded
  - output is all-or-nothing (write_atomic): on error nothing is written
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path

from tokhuff.engine.container import Engine
from tokhuff.errors import MissingResource, UsageError
from tokhuff.output_paths import (
    ARCHIVE_SUFFIX,
    archive_path_for,
    unique_output_path,
    write_atomic,
)


@dataclass(frozen=True)
class EncodeResult:
    input_path: Path
    output_path: Path
    input_size: int
    output_size: int
    elapsed_ms: float

    @property
    def ratio(self) -> float:
        return self.output_size / max(1, self.input_size)


@dataclass(frozen=True)
class DecodeResult:
    archive_path: Path
    output_path: Path
    n_codepoints: int
    elapsed_ms: float


def _read_input(path: Path) -> bytes:
    if not path.is_file():
        raise MissingResource(f"File not found: {path}")
    return path.read_bytes()


def _decode_utf8(raw: bytes, path: Path) -> str:
    # bytes + decode (not read_text): newlines must survive untouched
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise UsageError(f"input is not valid UTF-8: {path} ({e.reason} at byte {e.start})") from e


def _safe_name(stored: str, archive_path: Path) -> str:
    # only the base name is honored: never write outside the archive dir
    name = Path(stored).name if stored else ""
    if name in ("", ".", ".."):
        name = archive_path.stem if archive_path.suffix == ARCHIVE_SUFFIX else archive_path.name + ".out"
    return name


def encode_file(
    input_path: Path,
    output_path: Path | None = None,
    *,
    n: int,
    suffix: str = ARCHIVE_SUFFIX,
    engine: Engine | None = None,
) -> EncodeResult:
    engine = engine or Engine.default()
    input_path = Path(input_path)
    out = Path(output_path) if output_path is not None else archive_path_for(input_path, suffix)

    t0 = time.perf_counter()
    raw = _read_input(input_path)
    text = _decode_utf8(raw, input_path)
    blob = engine.compress(text, n, filename=input_path.name)
    write_atomic(out, blob)
    t1 = time.perf_counter()

    return EncodeResult(
        input_path=input_path,
        output_path=out,
        input_size=len(raw),
        output_size=len(blob),
        elapsed_ms=(t1 - t0) * 1000.0,
    )


def decode_file(
    archive_path: Path,
    output_path: Path | None = None,
    *,
    n: int,
    engine: Engine | None = None,
) -> DecodeResult:
    engine = engine or Engine.default()
    archive_path = Path(archive_path)

    t0 = time.perf_counter()
    blob = _read_input(archive_path)
    stored_name, text = engine.decompress(blob, n)
    if output_path is None:
        out = unique_output_path(archive_path.parent, _safe_name(stored_name, archive_path))
    else:
        out = Path(output_path)
    write_atomic(out, text.encode("utf-8"))
    t1 = time.perf_counter()

    return DecodeResult(
        archive_path=archive_path,
        output_path=out,
        n_codepoints=len(text),
        elapsed_ms=(t1 - t0) * 1000.0,
    )
