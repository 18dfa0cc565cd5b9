"""Encode spec (v1) for tokhuff.

Goal: make encode plans reproducible and portable (CLI, scripts, CI).

This module intentionally stays *small* and strict:
  - JSON only
  - explicit schema id
  - unknown keys are rejected
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from tokhuff.errors import UsageError
from tokhuff.output_paths import ARCHIVE_SUFFIX

SPEC_ID_V1 = "tokhuff.encode.v1"


class EncodeSpecError(UsageError):
    pass


def _load_json_arg(spec_arg: str) -> dict[str, Any]:
    s = spec_arg.strip()
    if not s:
        raise EncodeSpecError("encode spec: empty argument")

    if s.startswith("@"):
        p = Path(s[1:]).expanduser()
        if not p.exists() or not p.is_file():
            raise EncodeSpecError(f"encode spec: file not found: {p}")
        raw = p.read_text(encoding="utf-8")
        try:
            obj = json.loads(raw)
        except Exception as e:
            raise EncodeSpecError(f"encode spec: invalid JSON in {p}: {e}") from e
        if not isinstance(obj, dict):
            raise EncodeSpecError(f"encode spec: JSON in {p} must be an object")
        return obj

    try:
        obj = json.loads(s)
    except Exception as e:
        raise EncodeSpecError(f"encode spec: invalid inline JSON: {e}") from e
    if not isinstance(obj, dict):
        raise EncodeSpecError("encode spec: inline JSON must be an object")
    return obj


def _require_group_size(obj: dict[str, Any]) -> int:
    v = obj.get("group_size")
    # bool is an int subclass: reject it explicitly
    if isinstance(v, bool) or not isinstance(v, int):
        raise EncodeSpecError("encode spec: field 'group_size' required (integer)")
    if v <= 0:
        raise EncodeSpecError(f"encode spec: 'group_size' must be > 0 (got {v})")
    return v


def _optional_suffix(obj: dict[str, Any]) -> str:
    if "suffix" not in obj:
        return ARCHIVE_SUFFIX
    v = obj.get("suffix")
    if not isinstance(v, str) or not v.strip():
        raise EncodeSpecError("encode spec: field 'suffix' must be a non-empty string")
    v = v.strip()
    if "/" in v or "\\" in v:
        raise EncodeSpecError("encode spec: 'suffix' must not contain path separators")
    return v


@dataclass(frozen=True)
class EncodeSpecV1:
    """A single encode plan."""

    name: str
    group_size: int
    suffix: str = ARCHIVE_SUFFIX


def load_encode_spec(spec_arg: str) -> EncodeSpecV1:
    """Load and validate an encode spec.

    spec_arg:
      - '@file.json'
      - inline JSON object
    """
    obj = _load_json_arg(spec_arg)

    allowed = {"spec", "name", "group_size", "suffix"}
    extra = sorted(set(obj.keys()) - allowed)
    if extra:
        raise EncodeSpecError(f"encode spec: unsupported keys: {', '.join(extra)}")

    spec_id = obj.get("spec")
    if spec_id != SPEC_ID_V1:
        raise EncodeSpecError(
            f"encode spec: unsupported spec: {spec_id!r} (expected {SPEC_ID_V1!r})"
        )

    name = obj.get("name")
    if name is None:
        name = "encode"
    if not isinstance(name, str) or not name.strip():
        raise EncodeSpecError("encode spec: field 'name' must be a string")

    return EncodeSpecV1(
        name=name.strip(), group_size=_require_group_size(obj), suffix=_optional_suffix(obj)
    )
