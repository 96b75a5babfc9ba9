"""init-wizard start [--components a,b] — open a new session at Configure."""
from __future__ import annotations

import sys
from pathlib import Path

from init_wizard.config import WORKSPACE_DIR
from init_wizard.engine import Wizard
from init_wizard.errors import WizardError
from init_wizard.render import render_text


def parse_components(args: list[str]) -> list[str]:
    names: list[str] = []
    it = iter(args)
    for arg in it:
        if arg.startswith("--components="):
            value = arg.split("=", 1)[1]
        elif arg == "--components":
            value = next(it, "")
        else:
            continue
        names.extend(n.strip() for n in value.split(",") if n.strip())
    return names


def cmd_start(args: list[str], cwd: str):
    wizard = Wizard(Path(cwd) / WORKSPACE_DIR)
    try:
        session = wizard.start(parse_components(args))
        print(render_text(session))
        print()
        print("Toggle optional components with `init-wizard toggle <name>`, then `init-wizard advance`.")
    except (WizardError, RuntimeError) as e:
        print(f"Failed to start: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        wizard.close()
