"""init-wizard reset — clear session, history and recorded cluster state."""
from __future__ import annotations

from pathlib import Path

from init_wizard.config import WORKSPACE_DIR
from init_wizard.store.state import StateManager


def cmd_reset(cwd: str):
    workspace = Path(cwd) / WORKSPACE_DIR
    db_path = workspace / "state.db"

    if not db_path.exists():
        print("Nothing to reset — no state database found.")
        return

    mgr = StateManager(db_path)
    try:
        session = mgr.get_session()
        if session:
            print(f'Clearing session for "{session.package.name}" (was at: {session.step.title})')
        mgr.reset()
    finally:
        mgr.close()

    print("State cleared. Run `init-wizard start` to begin a new session.")
