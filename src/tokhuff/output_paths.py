"""Output path helpers (glue, outside the codec core).

- archive_path_for: INPUT -> INPUT.huf (next to the input)
- unique_output_path: never overwrite an existing file on decode
- write_atomic: all-or-nothing file writes
"""

from __future__ import annotations

import os
import tempfile
import time
from pathlib import Path

ARCHIVE_SUFFIX = ".huf"
DECODED_PREFIX = "decoded_"
MAX_COUNTER = 9999


def archive_path_for(input_path: Path, suffix: str = ARCHIVE_SUFFIX) -> Path:
    return input_path.with_name(input_path.name + suffix)


def unique_output_path(directory: Path, name: str) -> Path:
    """
    name -> decoded_<name> -> decoded_<i>_<name> (i=1..9999) -> decoded_<millis>_<name>
    """
    candidate = directory / name
    if not candidate.exists():
        return candidate

    decoded = directory / f"{DECODED_PREFIX}{name}"
    if not decoded.exists():
        return decoded

    for i in range(1, MAX_COUNTER + 1):
        p = directory / f"{DECODED_PREFIX}{i}_{name}"
        if not p.exists():
            return p

    return directory / f"{DECODED_PREFIX}{int(time.time() * 1000)}_{name}"


def write_atomic(path: Path, data: bytes) -> None:
    """Write via a temp file in the same directory + os.replace.

    On any error the temp file is removed and `path` is left untouched.
    """
    directory = path.parent if str(path.parent) else Path(".")
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(directory))
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as fp:
            fp.write(data)
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
