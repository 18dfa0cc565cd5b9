from __future__ import annotations

from pathlib import Path

import pytest

from tokhuff.checksum.crc import crc_hex, crc_remainder, crc_to_bytes
from tokhuff.checksum.crc_file import append_crc, check_crc, decoded_output_path
from tokhuff.errors import HashMismatch, MissingResource, UsageError

CHECK = b"123456789"


@pytest.mark.parametrize(
    "width,expected",
    [
        (1, 0xF4),  # CRC-8/SMBUS
        (2, 0x31C3),  # CRC-16/XMODEM
        (4, 0x89A1897F),  # CRC-32/CKSUM before its final xor
    ],
)
def test_check_values(width: int, expected: int) -> None:
    assert crc_remainder(CHECK, width) == expected


@pytest.mark.parametrize("width", [1, 2, 4])
def test_data_plus_crc_has_zero_remainder(width: int) -> None:
    data = "Ω λ LOTR ☕".encode("utf-8") * 7
    tail = crc_to_bytes(crc_remainder(data, width), width)
    assert len(tail) == width
    assert crc_remainder(data + tail, width) == 0


def test_empty_data() -> None:
    assert crc_remainder(b"", 2) == 0


def test_bad_width() -> None:
    with pytest.raises(UsageError):
        crc_remainder(b"x", 3)


def test_crc_hex_is_zero_padded() -> None:
    assert crc_hex(0x1, 2) == "0001"
    assert crc_hex(0xAB, 1) == "AB"


def test_decoded_output_path() -> None:
    assert decoded_output_path(Path("/d/LOTR.txt.crc2")) == Path("/d/LOTR.txt.decoded")
    assert decoded_output_path(Path("/d/LOTR.txt")) == Path("/d/LOTR.txt.decoded")


@pytest.mark.parametrize("width", [1, 2, 4])
def test_file_append_and_check(tmp_path: Path, width: int) -> None:
    src = tmp_path / "LOTR.txt"
    src.write_bytes(b"One ring to rule them all\n")

    res = append_crc(src, width)
    assert res.output_path == tmp_path / f"LOTR.txt.crc{width}"
    blob = res.output_path.read_bytes()
    assert blob[:-width] == src.read_bytes()
    assert len(blob) == src.stat().st_size + width

    chk = check_crc(res.output_path, width)
    assert chk.output_path == tmp_path / "LOTR.txt.decoded"
    assert chk.stored == chk.computed
    assert chk.output_path.read_bytes() == src.read_bytes()


def test_file_tamper_detected_and_nothing_written(tmp_path: Path) -> None:
    src = tmp_path / "a.txt"
    src.write_bytes(b"hello crc\n")
    out = append_crc(src, 2).output_path
    blob = bytearray(out.read_bytes())
    blob[3] ^= 0x01
    out.write_bytes(bytes(blob))

    with pytest.raises(HashMismatch):
        check_crc(out, 2)
    assert not (tmp_path / "a.txt.decoded").exists()


def test_file_too_short(tmp_path: Path) -> None:
    p = tmp_path / "x.crc4"
    p.write_bytes(b"\x00\x01")
    with pytest.raises(UsageError):
        check_crc(p, 4)


def test_file_missing(tmp_path: Path) -> None:
    with pytest.raises(MissingResource):
        append_crc(tmp_path / "nope", 2)
