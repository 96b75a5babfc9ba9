"""init-wizard deploy — run the deployment and stream sub-step progress."""
from __future__ import annotations

import sys
from pathlib import Path

from init_wizard.config import WORKSPACE_DIR
from init_wizard.engine import Wizard
from init_wizard.errors import DeployTimeout, SubStepFailed, WizardError
from init_wizard.types import SubStepState

_MARKS = {
    SubStepState.RUNNING: "…",
    SubStepState.SUCCEEDED: "✓",
    SubStepState.FAILED: "✗",
}


def cmd_deploy(cwd: str):
    wizard = Wizard(Path(cwd) / WORKSPACE_DIR)
    try:
        route = wizard.deploy(
            on_update=lambda u: print(f"  [{_MARKS.get(u.state, ' ')}] {u.name} {u.state}"),
        )
        print()
        print("Deployment Succeeded")
        print(f"Continue at: {route}")
    except DeployTimeout as e:
        print(f"{e}. The sub-step is still running; run `init-wizard deploy` again to keep waiting.", file=sys.stderr)
        sys.exit(1)
    except SubStepFailed as e:
        print(f"Deployment Failed: {', '.join(e.failed)}", file=sys.stderr)
        print("Run `init-wizard start` to begin a new session.", file=sys.stderr)
        sys.exit(1)
    except (WizardError, RuntimeError) as e:
        print(f"Deploy failed: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        wizard.close()
