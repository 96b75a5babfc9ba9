"""Thin CLI router — dispatches to commands."""
from __future__ import annotations

import logging
import os
import sys

USAGE = """\
init-wizard — configure, review and deploy a cluster initialization package

Usage:
  init-wizard load <package.yaml>       Validate a package and make it active
  init-wizard start [--components a,b]  Start a new session at Configure
  init-wizard toggle <component>        Toggle an optional component
  init-wizard advance                   Configure → Review → Deploy
  init-wizard edit                      Back from Review to Configure
  init-wizard deploy                    Deploy the selected components
  init-wizard status                    Show the current page
  init-wizard reset                     Clear session, history and cluster state

Internal:
  init-wizard mcp-server                Start MCP Server
"""

LOG_LEVEL_ENV = "INIT_WIZARD_LOG_LEVEL"


def _run_step(cwd: str, action: str, *args: str) -> None:
    from pathlib import Path

    from init_wizard.config import WORKSPACE_DIR
    from init_wizard.engine import Wizard
    from init_wizard.errors import WizardError
    from init_wizard.render import render_text

    wizard = Wizard(Path(cwd) / WORKSPACE_DIR)
    try:
        getattr(wizard, action)(*args)
        session = wizard.get_session()
        if session:
            print(render_text(session))
    except (WizardError, RuntimeError) as e:
        print(e, file=sys.stderr)
        sys.exit(1)
    finally:
        wizard.close()


def main():
    logging.basicConfig(
        level=os.environ.get(LOG_LEVEL_ENV, "WARNING").upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )
    args = sys.argv[1:]
    cwd = os.getcwd()
    command = args[0] if args else None

    if command == "load":
        if len(args) < 2:
            print("Usage: init-wizard load <package.yaml>", file=sys.stderr)
            sys.exit(1)
        from init_wizard.commands.load import cmd_load
        cmd_load(args[1], cwd)

    elif command == "start":
        from init_wizard.commands.start import cmd_start
        cmd_start(args[1:], cwd)

    elif command == "toggle":
        if len(args) < 2:
            print("Usage: init-wizard toggle <component>", file=sys.stderr)
            sys.exit(1)
        _run_step(cwd, "toggle", args[1])

    elif command == "advance":
        _run_step(cwd, "advance")

    elif command in ("edit", "retreat"):
        _run_step(cwd, "retreat")

    elif command == "deploy":
        from init_wizard.commands.deploy import cmd_deploy
        cmd_deploy(cwd)

    elif command == "status":
        from pathlib import Path

        from init_wizard.config import WORKSPACE_DIR
        from init_wizard.engine import Wizard
        wizard = Wizard(Path(cwd) / WORKSPACE_DIR)
        try:
            st = wizard.get_status()
            print(st["summary"])
            print(f'Route: {st["route"]}')
            if st.get("last_action"):
                la = st["last_action"]
                print(f'Last action: {la["action"]} at {la["timestamp"]}')
        finally:
            wizard.close()

    elif command == "reset":
        from init_wizard.commands.reset import cmd_reset
        cmd_reset(cwd)

    elif command == "mcp-server":
        from init_wizard.integrations.mcp_server import run_server
        run_server()

    elif command in ("help", "--help", "-h", None):
        print(USAGE)

    else:
        print(f"Unknown command: {command}", file=sys.stderr)
        print(USAGE)
        sys.exit(1)


if __name__ == "__main__":
    main()
