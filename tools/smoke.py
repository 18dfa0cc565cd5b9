#!/usr/bin/env python3
"""Self-test / smoke run for tokhuff.

Goal:
- deterministic, repeatable end-to-end runs through the CLI
- every iteration: encode -> verify --full -> decode -> byte compare, for several N
- tamper check: flipped magic must fail decode with no output written
- produce a JSON report, non-zero exit on any mismatch

Usage examples:
  python tools/smoke.py --iters 10
  python tools/smoke.py --iters 50 --seed 123 --keep
  python tools/smoke.py --input LOTR.txt -n 2
"""

from __future__ import annotations

import argparse
import json
import random
import shutil
import string
import subprocess
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

SAMPLE = (
    "Hello! This is a Huffman test\n"
    "Huffman coding should compress repeated patterns.\n"
    "aaaaaa bbbbbb cccccc\n"
)

UNICODE_TOKENS = ["caffè", "☕", "北京", "東京", "😀", "résumé", "naïve", "€", "ΑβΓδ", "\r\n"]


def _run(cmd: list[str]) -> subprocess.CompletedProcess[str]:
    return subprocess.run(cmd, text=True, capture_output=True)


def _gen_text(rng: random.Random, *, unicode_mode: bool) -> str:
    words = [
        "".join(rng.choice(string.ascii_lowercase) for _ in range(rng.randint(1, 8)))
        for _ in range(40)
    ]
    if unicode_mode:
        words += UNICODE_TOKENS
    lines = []
    for _ in range(rng.randint(0, 60)):
        lines.append(" ".join(rng.choice(words) for _ in range(rng.randint(0, 12))))
    return "\n".join(lines)


@dataclass
class StepResult:
    name: str
    ok: bool
    rc: int
    stdout: str
    stderr: str


def main() -> int:
    ap = argparse.ArgumentParser(description="tokhuff smoke / self-test")
    ap.add_argument("--iters", type=int, default=10, help="Number of iterations (default: 10)")
    ap.add_argument("--seed", type=int, default=12345, help="Deterministic RNG seed (default: 12345)")
    ap.add_argument("-n", dest="ns_list", type=int, action="append", default=None, help="N to test (repeatable; default 1,2,3,5)")
    ap.add_argument("--input", type=Path, default=None, help="Also round-trip this real file")
    ap.add_argument("--unicode", action="store_true", help="Mix non-ASCII tokens (incl. astral code points)")
    ap.add_argument("--keep", action="store_true", help="Keep temp workdir on exit")
    ap.add_argument("--json-out", type=Path, default=None, help="Write JSON report to file")
    ap.add_argument("--python", dest="pyexe", default=sys.executable, help="Python executable to use")
    ns = ap.parse_args()

    rng = random.Random(ns.seed)
    n_values = ns.ns_list or [1, 2, 3, 5]
    wd = Path(tempfile.mkdtemp(prefix="tokhuff-smoke-"))

    report: dict[str, Any] = {
        "ok": True,
        "seed": ns.seed,
        "iters": ns.iters,
        "n": n_values,
        "unicode": bool(ns.unicode),
        "workdir": str(wd),
        "steps": [],
    }

    def add(name: str, ok: bool, res: subprocess.CompletedProcess[str] | None = None, msg: str = "") -> None:
        step = StepResult(
            name=name,
            ok=ok,
            rc=res.returncode if res is not None else (0 if ok else 1),
            stdout=res.stdout if res is not None else "",
            stderr=res.stderr if res is not None else msg,
        )
        report["steps"].append(step.__dict__)
        if not ok:
            report["ok"] = False

    def run_cli(*args: str) -> subprocess.CompletedProcess[str]:
        return _run([ns.pyexe, "-m", "tokhuff.cli", *args])

    def roundtrip(tag: str, src: Path, n: int) -> None:
        arch = src.with_name(src.name + f".n{n}.huf")
        back = src.with_name(src.name + f".n{n}.back")
        r = run_cli("encode", str(src), "-n", str(n), "-o", str(arch))
        add(f"{tag}_encode_n{n}", r.returncode == 0, r)
        r = run_cli("verify", str(arch), "--full", "--json")
        add(f"{tag}_verify_full_n{n}", r.returncode == 0, r)
        r = run_cli("decode", str(arch), "-n", str(n), "-o", str(back))
        add(f"{tag}_decode_n{n}", r.returncode == 0, r)
        same = back.is_file() and back.read_bytes() == src.read_bytes()
        add(f"{tag}_compare_n{n}", same, msg="" if same else "roundtrip mismatch (bytes differ)")

    try:
        add("cli_version", True, run_cli("--version"))

        sample = wd / "sample.txt"
        sample.write_bytes(SAMPLE.encode("utf-8"))
        for n in n_values:
            roundtrip("sample", sample, n)

        for it in range(ns.iters):
            src = wd / f"iter_{it:03d}.txt"
            src.write_bytes(_gen_text(rng, unicode_mode=bool(ns.unicode)).encode("utf-8"))
            for n in n_values:
                roundtrip(f"it{it:03d}", src, n)

        if ns.input is not None:
            real = wd / ns.input.name
            shutil.copyfile(ns.input, real)
            for n in n_values:
                roundtrip("input", real, n)

        # tamper: bad magic -> decode fails, nothing written
        arch = wd / "tamper.huf"
        out = wd / "tamper.out"
        run_cli("encode", str(sample), "-n", "2", "-o", str(arch))
        blob = bytearray(arch.read_bytes())
        blob[0] ^= 0xFF
        arch.write_bytes(bytes(blob))
        r = run_cli("decode", str(arch), "-n", "2", "-o", str(out))
        add("tamper_bad_magic_decode_fails", r.returncode == 10 and not out.exists(), r)

        if ns.json_out:
            ns.json_out.parent.mkdir(parents=True, exist_ok=True)
            ns.json_out.write_text(json.dumps(report, ensure_ascii=False, indent=2), encoding="utf-8")

        print(json.dumps({"ok": report["ok"], "seed": ns.seed, "iters": ns.iters, "workdir": str(wd)}))
        return 0 if report["ok"] else 1

    finally:
        if not ns.keep:
            shutil.rmtree(wd, ignore_errors=True)


if __name__ == "__main__":
    raise SystemExit(main())
