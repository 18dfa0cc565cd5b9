#!/usr/bin/env python3
"""Check tokhuff import boundaries without pytest.

Loads tests/test_arch_boundaries.py as a module and prints every forbidden
import edge. Exit codes: 0 ok, 2 violations, 3 setup error.
"""

from __future__ import annotations

import importlib.util
import sys
from pathlib import Path


def main() -> int:
    repo_root = Path(__file__).resolve().parents[1]
    test_path = repo_root / "tests" / "test_arch_boundaries.py"
    if not test_path.is_file():
        print(f"ERROR: {test_path} not found.", file=sys.stderr)
        return 3

    spec = importlib.util.spec_from_file_location("tokhuff_arch_boundaries", test_path)
    if spec is None or spec.loader is None:
        print(f"ERROR: cannot load {test_path}", file=sys.stderr)
        return 3
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)

    violations = mod.find_violations(repo_root / "src")
    if violations:
        print("Forbidden imports detected:", file=sys.stderr)
        for line in violations:
            print(line, file=sys.stderr)
        return 2
    print("OK: architecture boundaries respected.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
