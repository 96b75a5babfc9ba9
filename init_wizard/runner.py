"""Run one deploy command and record its exit code.

    python -m init_wizard.runner <exit-file> <command> [args...]

The exit code lands in <exit-file> once the command ends, so any later
process can collect the result, not only the one that launched it.
"""
from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

LAUNCH_FAILED = 127


def write_exit_code(path: str | Path, code: int) -> None:
    path = Path(path)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(str(code), encoding="utf-8")
    os.replace(tmp, path)


def read_exit_code(path: str | Path) -> int | None:
    path = Path(path)
    if not path.exists():
        return None
    return int(path.read_text(encoding="utf-8").strip())


def run(exit_path: str | Path, argv: list[str]) -> int:
    try:
        code = subprocess.call(argv)
    except OSError as e:
        print(f"Failed to launch {argv[0]}: {e}", file=sys.stderr)
        code = LAUNCH_FAILED
    write_exit_code(exit_path, code)
    return code


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) < 2:
        print("Usage: python -m init_wizard.runner <exit-file> <command> [args...]", file=sys.stderr)
        return 2
    return run(args[0], args[1:])


if __name__ == "__main__":
    sys.exit(main())
