from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from tokhuff.cli import main

SRC_DIR = Path(__file__).resolve().parents[1] / "src"

SAMPLE = "aaaaaa bbbbbb cccccc\nΩ λ 😀\n"


def _run_cli(*args: str, cwd: Path | None = None) -> subprocess.CompletedProcess[str]:
    """Run tokhuff CLI through a python -c wrapper.

    This avoids assuming the console-script entrypoint is installed.
    """
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(p for p in (str(SRC_DIR), env.get("PYTHONPATH", "")) if p)
    cmd = [
        sys.executable,
        "-c",
        "from tokhuff.cli import main; raise SystemExit(main())",
        *args,
    ]
    return subprocess.run(
        cmd,
        cwd=str(cwd) if cwd else None,
        text=True,
        capture_output=True,
        env=env,
    )


@pytest.mark.p1
def test_cli_encode_verify_decode_subprocess(tmp_path: Path) -> None:
    inp = tmp_path / "in.txt"
    inp.write_bytes(SAMPLE.encode("utf-8"))

    r = _run_cli("encode", str(inp), "-n", "-2")
    assert r.returncode == 0, (r.stdout, r.stderr)
    assert "OK: created archive:" in r.stdout
    assert "Ratio:" in r.stdout
    arch = tmp_path / "in.txt.huf"
    assert arch.is_file()

    r = _run_cli("verify", str(arch), "--full")
    assert r.returncode == 0, (r.stdout, r.stderr)
    assert "OK" in r.stdout

    r = _run_cli("decode", str(arch), "-n", "2")
    assert r.returncode == 0, (r.stdout, r.stderr)
    assert (tmp_path / "decoded_in.txt").read_bytes() == inp.read_bytes()


@pytest.mark.p1
def test_cli_decode_bad_magic_exit_10_no_output(tmp_path: Path) -> None:
    arch = tmp_path / "x.huf"
    arch.write_bytes(b"NOPE" + b"\x00" * 32)
    r = _run_cli("decode", str(arch), "-n", "2")
    assert r.returncode == 10
    assert "[tokhuff]" in r.stderr
    assert sorted(p.name for p in tmp_path.iterdir()) == ["x.huf"]


def test_cli_in_process_roundtrip(tmp_path: Path, capsys) -> None:
    inp = tmp_path / "in.txt"
    out = tmp_path / "in.tkh"
    back = tmp_path / "back.txt"
    inp.write_bytes(SAMPLE.encode("utf-8"))

    assert main(["encode", str(inp), "-n", "3", "-o", str(out)]) == 0
    assert main(["decode", str(out), "-n", "3", "-o", str(back)]) == 0
    assert back.read_bytes() == inp.read_bytes()
    stdout = capsys.readouterr().out
    assert "Compression time:" in stdout
    assert "Decompression time:" in stdout


def test_cli_n_mismatch_exit_2(tmp_path: Path, capsys) -> None:
    inp = tmp_path / "in.txt"
    inp.write_bytes(SAMPLE.encode("utf-8"))
    assert main(["encode", str(inp), "-n", "2"]) == 0
    rc = main(["decode", str(tmp_path / "in.txt.huf"), "-n", "4"])
    assert rc == 2
    assert "N mismatch" in capsys.readouterr().err
    assert not (tmp_path / "decoded_in.txt").exists()


def test_cli_missing_input_exit_12(tmp_path: Path, capsys) -> None:
    assert main(["encode", str(tmp_path / "nope.txt"), "-n", "2"]) == 12
    assert "File not found" in capsys.readouterr().err


def test_cli_bad_n_is_argparse_error(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as ei:
        main(["encode", str(tmp_path / "x"), "-n", "0"])
    assert ei.value.code == 2


def test_cli_encode_requires_n_or_spec(tmp_path: Path, capsys) -> None:
    inp = tmp_path / "in.txt"
    inp.write_text("x", encoding="utf-8")
    assert main(["encode", str(inp)]) == 2
    assert "[tokhuff]" in capsys.readouterr().err


def test_cli_encode_with_spec(tmp_path: Path) -> None:
    inp = tmp_path / "in.txt"
    inp.write_bytes(SAMPLE.encode("utf-8"))
    spec = json.dumps({"spec": "tokhuff.encode.v1", "group_size": 4, "suffix": ".tkh"})
    assert main(["spec-validate", spec]) == 0
    assert main(["encode", str(inp), "--spec", spec]) == 0
    arch = tmp_path / "in.txt.tkh"
    assert arch.is_file()
    assert main(["decode", str(arch), "-n", "4", "-o", str(tmp_path / "b.txt")]) == 0
    assert (tmp_path / "b.txt").read_bytes() == inp.read_bytes()


def test_cli_spec_validate_rejects_exit_2(capsys) -> None:
    assert main(["spec-validate", "{}"]) == 2
    assert "[tokhuff]" in capsys.readouterr().err


def test_cli_verify_json_ok_and_error(tmp_path: Path, capsys) -> None:
    inp = tmp_path / "in.txt"
    inp.write_bytes(SAMPLE.encode("utf-8"))
    assert main(["encode", str(inp), "-n", "2"]) == 0
    capsys.readouterr()

    arch = tmp_path / "in.txt.huf"
    assert main(["verify", str(arch), "--json", "--full"]) == 0
    obj = json.loads(capsys.readouterr().out)
    assert obj["schema"] == "tokhuff.verify.v1"
    assert obj["ok"] is True
    assert obj["archive"]["n"] == 2

    arch.write_bytes(arch.read_bytes()[:-3])
    assert main(["verify", str(arch), "--json", "--full"]) == 10
    err = json.loads(capsys.readouterr().err)
    assert err["ok"] is False
    assert err["error"]["type"] == "TruncatedStream"


def test_cli_info(tmp_path: Path, capsys) -> None:
    inp = tmp_path / "in.txt"
    inp.write_bytes(SAMPLE.encode("utf-8"))
    assert main(["encode", str(inp), "-n", "2"]) == 0
    capsys.readouterr()
    assert main(["info", str(tmp_path / "in.txt.huf"), "--top", "1"]) == 0
    out = capsys.readouterr().out
    assert "filename: in.txt" in out
    assert "'aa'" in out


def test_cli_crc_encode_decode_and_tamper_exit_13(tmp_path: Path, capsys) -> None:
    src = tmp_path / "LOTR.txt"
    src.write_bytes(b"Speak, friend, and enter\n")
    assert main(["crc", "encode", str(src), "-w", "4"]) == 0
    tail = tmp_path / "LOTR.txt.crc4"
    assert tail.is_file()
    assert main(["crc", "decode", str(tail), "-w", "4"]) == 0
    assert (tmp_path / "LOTR.txt.decoded").read_bytes() == src.read_bytes()

    (tmp_path / "LOTR.txt.decoded").unlink()
    blob = bytearray(tail.read_bytes())
    blob[0] ^= 0x20
    tail.write_bytes(bytes(blob))
    assert main(["crc", "decode", str(tail), "-w", "4"]) == 13
    assert not (tmp_path / "LOTR.txt.decoded").exists()


def test_cli_debug_reraises(tmp_path: Path) -> None:
    from tokhuff.errors import MissingResource

    with pytest.raises(MissingResource):
        main(["encode", str(tmp_path / "nope.txt"), "-n", "2", "--debug"])


def test_cli_verify_json_huge_claimed_count_is_json_error(tmp_path: Path, capsys) -> None:
    from tokhuff.engine.container import Archive, pack_archive

    arch = tmp_path / "huge.huf"
    arch.write_bytes(
        pack_archive(
            Archive(n=1, n_codepoints=2**63, filename="x", freq=(("a", 1),), bitstream=b"\x00")
        )
    )
    assert main(["verify", str(arch), "--full", "--json"]) == 10
    err = json.loads(capsys.readouterr().err)
    assert err["ok"] is False
    assert err["error"]["type"] == "CorruptPayload"
    assert main(["decode", str(arch), "-n", "1", "-o", str(tmp_path / "out.txt")]) == 10
    assert not (tmp_path / "out.txt").exists()
