"""init-wizard load <package.yaml> — validate a package and make it the active one."""
from __future__ import annotations

import sys
from pathlib import Path

from init_wizard.config import WORKSPACE_DIR
from init_wizard.engine import Wizard
from init_wizard.errors import InvalidPackage
from init_wizard.package import format_errors, validate_package


def cmd_load(package_file: str, cwd: str):
    path = Path(cwd) / package_file
    if not path.exists():
        print(f"Package file not found: {path}", file=sys.stderr)
        sys.exit(1)

    wizard = Wizard(Path(cwd) / WORKSPACE_DIR)
    try:
        package = wizard.load(path)
    except InvalidPackage as e:
        print(f"✗ {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        wizard.close()

    print(f'✓ Package "{package.name}" loaded ({package.kind or "unknown kind"}, {len(package.components)} components)')
    warnings = validate_package(package)
    if warnings:
        print(format_errors(warnings))
    print()
    for c in package.components:
        print(f"  {c.label}  {c.description}".rstrip())
    print()
    print("Once the package looks correct, run: init-wizard start")
