"""tokhuff CLI.

This is the stable CLI entrypoint (console-script: ``tokhuff``).

UX policy:
  - encode/decode take N (code points per token); decode fails if N differs
    from the archive header.
  - Results go to stdout, errors to stderr as ``[tokhuff] <message>``.
  - Exit codes come from tokhuff.errors (see docs/exit_codes.md).

Notes:
  - --version is supported at top-level.
  - verify supports --json (machine-readable output).
  - crc encode/decode is a standalone checksum tool (no Huffman involved).
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from tokhuff.errors import EXIT_GENERIC, EXIT_USAGE, TokhuffError


def _pkg_version() -> str:
    try:
        from importlib.metadata import PackageNotFoundError, version

        try:
            return version("tokhuff")
        except PackageNotFoundError:
            # running from a source checkout without metadata
            return "0+unknown"
    except Exception:
        return "0+unknown"


def _parse_n(s: str) -> int:
    """Accept '2' and '-2' (the dash form mirrors the classic ``-k -2 file`` usage)."""
    ss = s.strip()
    if ss.startswith("-"):
        ss = ss[1:]
    try:
        n = int(ss)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"N must be an integer, got {s!r}") from e
    if n <= 0:
        raise argparse.ArgumentTypeError(f"N must be > 0, got {s!r}")
    return n


def _parse_crc_width(s: str) -> int:
    ss = s.strip().lstrip("-")
    if ss not in {"1", "2", "4"}:
        raise argparse.ArgumentTypeError(f"CRC width must be 1, 2 or 4 (bytes), got {s!r}")
    return int(ss)


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--debug", action="store_true", help="Show stack traces on errors")


def _print_verify_json(target: Path, *, full: bool, report: dict) -> None:
    print(
        json.dumps(
            {
                "schema": "tokhuff.verify.v1",
                "ok": True,
                "target": str(target),
                "full": bool(full),
                "version": _pkg_version(),
                "archive": report,
            },
            ensure_ascii=False,
            separators=(",", ":"),
        )
    )


def _print_verify_json_error(target: Path, *, full: bool, err_type: str, message: str) -> None:
    """Emit stable JSON on stderr for verify errors when --json is used."""
    obj = {
        "schema": "tokhuff.verify.v1",
        "ok": False,
        "target": str(target),
        "full": bool(full),
        "version": _pkg_version(),
        "error": {"type": err_type, "message": message},
    }
    print(json.dumps(obj, ensure_ascii=False, sort_keys=True), file=sys.stderr)


# -------------------
# Commands
# -------------------
def _cmd_encode(input_path: Path, output_path: Path | None, n: int | None, spec_arg: str | None) -> int:
    from tokhuff.archive_file import encode_file
    from tokhuff.output_paths import ARCHIVE_SUFFIX

    suffix = ARCHIVE_SUFFIX
    if spec_arg is not None:
        from tokhuff.encode_spec import load_encode_spec

        spec = load_encode_spec(spec_arg)
        n = spec.group_size
        suffix = spec.suffix
    if n is None:
        raise argparse.ArgumentTypeError("encode: -n N or --spec is required")

    res = encode_file(input_path, output_path, n=n, suffix=suffix)
    print(f"OK: created archive: {res.output_path.resolve()}")
    print(f"Compression time: {res.elapsed_ms:.0f} ms")
    print(f"Size: {res.input_size} bytes -> {res.output_size} bytes")
    print(f"Ratio: {res.ratio:.4f}")
    return 0


def _cmd_decode(archive_path: Path, output_path: Path | None, n: int) -> int:
    from tokhuff.archive_file import decode_file

    res = decode_file(archive_path, output_path, n=n)
    print(f"OK: extracted file: {res.output_path.resolve()}")
    print(f"Decompression time: {res.elapsed_ms:.0f} ms")
    return 0


def _cmd_verify(input_path: Path, *, full: bool, as_json: bool) -> int:
    from tokhuff.verify import verify_archive_file

    rep = verify_archive_file(input_path, full=full)
    if as_json:
        _print_verify_json(
            input_path,
            full=full,
            report={
                "n": rep.n,
                "n_codepoints": rep.n_codepoints,
                "filename": rep.filename,
                "distinct_tokens": rep.distinct_tokens,
                "header_size": rep.header_size,
                "bitstream_size": rep.bitstream_size,
            },
        )
    else:
        print("OK")
    return 0


def _cmd_info(input_path: Path, *, top: int) -> int:
    from tokhuff.verify import archive_info

    info = archive_info(input_path, top=top)
    for key in (
        "path",
        "filename",
        "n",
        "n_codepoints",
        "distinct_tokens",
        "tree_leaves",
        "tree_internal_nodes",
        "header_size",
        "bitstream_size",
    ):
        print(f"{key}: {info[key]}")
    for rec in info["top_tokens"]:
        print(f"  {rec['freq']:>10}  {rec['token']!r}")
    return 0


def _cmd_spec_validate(spec_arg: str) -> int:
    from tokhuff.encode_spec import load_encode_spec

    load_encode_spec(spec_arg)
    print("OK")
    return 0


def _cmd_crc(cmd: str, input_path: Path, width: int, output_path: Path | None) -> int:
    from tokhuff.checksum.crc import crc_hex
    from tokhuff.checksum.crc_file import append_crc, check_crc

    if cmd == "encode":
        res = append_crc(input_path, width, output_path)
        print(f"OK: created: {res.output_path.resolve()}")
        print(f"CRC({8 * width}): 0x{crc_hex(res.computed, width)}")
        print(f"Size: {res.data_size} bytes -> {res.data_size + width} bytes")
        print(f"Time: {res.elapsed_ms:.3f} ms")
        return 0

    res = check_crc(input_path, width, output_path)
    print(f"Stored CRC: 0x{crc_hex(res.stored or 0, width)}")
    print(f"Calc   CRC: 0x{crc_hex(res.computed, width)}")
    print(f"OK: restored file: {res.output_path.resolve()}")
    print(f"Time: {res.elapsed_ms:.3f} ms")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="tokhuff", description="Token-group Huffman archiver for UTF-8 text"
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {_pkg_version()}")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_e = sub.add_parser("encode", help="Compress a UTF-8 text file into a .huf archive")
    p_e.add_argument("input", type=Path)
    p_e.add_argument(
        "-n",
        type=_parse_n,
        default=None,
        metavar="N",
        help="Code points per token (2 or -2). Required unless --spec is given.",
    )
    p_e.add_argument("-o", "--output", type=Path, default=None, help="Output path (default: INPUT.huf)")
    p_e.add_argument(
        "--spec",
        default=None,
        help="Encode spec (JSON). Use '@file.json' to load from file, or pass JSON inline. Overrides -n.",
    )
    _add_common_args(p_e)

    p_d = sub.add_parser("decode", help="Extract a .huf archive")
    p_d.add_argument("input", type=Path)
    p_d.add_argument(
        "-n",
        type=_parse_n,
        required=True,
        metavar="N",
        help="Code points per token; must match the archive",
    )
    p_d.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output path (default: stored name next to the archive, never overwriting)",
    )
    _add_common_args(p_d)

    p_v = sub.add_parser("verify", help="Verify a .huf archive")
    p_v.add_argument("input", type=Path)
    p_v.add_argument("--full", action="store_true", help="Decode the whole bitstream (in memory)")
    p_v.add_argument("--json", action="store_true", help="Machine-readable output")
    _add_common_args(p_v)

    p_i = sub.add_parser("info", help="Show archive header and most frequent tokens")
    p_i.add_argument("input", type=Path)
    p_i.add_argument("--top", type=int, default=10, help="How many tokens to list (default: 10)")
    _add_common_args(p_i)

    p_s = sub.add_parser("spec-validate", help="Validate an encode spec (v1)")
    p_s.add_argument("spec", help="Encode spec JSON (@file.json or inline JSON)")
    _add_common_args(p_s)

    p_crc = sub.add_parser("crc", help="Standalone CRC-8/16/32 file tool")
    sub_crc = p_crc.add_subparsers(dest="crc_cmd", required=True)
    for name, help_text in (
        ("encode", "Append CRC to FILE (writes FILE.crcW)"),
        ("decode", "Check CRC tail and restore the file (writes NAME.decoded)"),
    ):
        pc = sub_crc.add_parser(name, help=help_text)
        pc.add_argument("input", type=Path)
        pc.add_argument(
            "-w",
            "--width",
            type=_parse_crc_width,
            default=2,
            help="CRC size in bytes: 1 (CRC-8), 2 (CRC-16), 4 (CRC-32). Default: 2",
        )
        pc.add_argument("-o", "--output", type=Path, default=None)
        _add_common_args(pc)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    p = build_parser()
    ns = p.parse_args(argv)

    try:
        if ns.cmd == "encode":
            return _cmd_encode(ns.input, ns.output, ns.n, ns.spec)
        if ns.cmd == "decode":
            return _cmd_decode(ns.input, ns.output, ns.n)
        if ns.cmd == "verify":
            return _cmd_verify(ns.input, full=bool(ns.full), as_json=bool(ns.json))
        if ns.cmd == "info":
            return _cmd_info(ns.input, top=int(ns.top))
        if ns.cmd == "spec-validate":
            return _cmd_spec_validate(str(ns.spec))
        if ns.cmd == "crc":
            return _cmd_crc(ns.crc_cmd, ns.input, ns.width, ns.output)
        raise AssertionError("unreachable")

    except SystemExit:
        raise
    except argparse.ArgumentTypeError as e:
        if getattr(ns, "debug", False):
            raise
        print(f"[tokhuff] {e}", file=sys.stderr)
        return EXIT_USAGE
    except TokhuffError as e:
        if getattr(ns, "debug", False):
            raise
        if ns.cmd == "verify" and getattr(ns, "json", False):
            _print_verify_json_error(
                ns.input, full=bool(ns.full), err_type=type(e).__name__, message=str(e)
            )
        else:
            print(f"[tokhuff] {e}", file=sys.stderr)
        return int(getattr(e, "exit_code", EXIT_GENERIC) or EXIT_GENERIC)
    except Exception as e:
        if getattr(ns, "debug", False):
            raise
        print(f"[tokhuff] error: {e}", file=sys.stderr)
        return EXIT_GENERIC


if __name__ == "__main__":
    raise SystemExit(main())
