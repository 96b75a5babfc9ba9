"""Persistent wizard — drives a session and keeps it in the workspace store.

One session lives in `.wizard/state.db` at a time. Every operation loads it,
applies one state-machine operation, saves it, and appends a history row.
"""
from __future__ import annotations

import json
import logging
import shutil
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from init_wizard.config import WizardSettings
from init_wizard.engine import session as ops
from init_wizard.engine.deploy import (
    CommandProvisioner,
    DeployRun,
    DryRunProvisioner,
    resume_deploy,
    run_deploy,
)
from init_wizard.errors import DeployTimeout, InvalidTransition, SubStepFailed
from init_wizard.package.loader import load_package
from init_wizard.render.markers import deploy_markers, render_page, start_page
from init_wizard.routes import home_route, route_for
from init_wizard.store.state import StateManager
from init_wizard.types import ClusterState, Step

if TYPE_CHECKING:
    from collections.abc import Callable

    from init_wizard.engine.deploy import Provisioner
    from init_wizard.types import DeployUpdate, Package, WizardSession

logger = logging.getLogger(__name__)

PACKAGE_FILE = "package.yaml"
RUNS_DIR = "runs"


class Wizard:
    def __init__(self, workspace: str | Path, settings: WizardSettings | None = None):
        self.workspace = Path(workspace)
        self.workspace.mkdir(parents=True, exist_ok=True)
        self.settings = settings or WizardSettings.load(self.workspace)
        self.state_manager = StateManager(self.workspace / "state.db")
        self._run: DeployRun | None = None

    def load(self, package_path: str | Path) -> Package:
        """Validate a package file and make it the workspace's package."""
        package = load_package(package_path)
        shutil.copyfile(package_path, self.workspace / PACKAGE_FILE)
        logger.info("Loaded package %s from %s", package.name, package_path)
        return package

    def start(self, components: list[str] | None = None) -> WizardSession:
        """Start a new session, replacing any session in progress."""
        package_path = self.workspace / PACKAGE_FILE
        if not package_path.exists():
            raise RuntimeError("No package loaded. Run `init-wizard load <package.yaml>` first.")
        session = ops.start(load_package(package_path))
        for name in components or []:
            component = session.package.component(name)
            if component and component.required:
                continue
            if not session.is_selected(name):
                ops.toggle_component(session, name)

        previous = self.state_manager.get_session()
        if previous:
            self.state_manager.add_history(previous.package.name, previous.step, "abandon")
        self._run = None
        shutil.rmtree(self.workspace / RUNS_DIR, ignore_errors=True)
        self._save(session, "start", {"components": components} if components else None)
        return session

    def get_session(self) -> WizardSession | None:
        return self.state_manager.get_session()

    def toggle(self, name: str) -> bool:
        session = ops.toggle_component(self._require_session(), name)
        selected = session.is_selected(name)
        self._save(session, "toggle", {"component": name, "selected": selected})
        return selected

    def advance(self) -> str:
        session = ops.advance(self._require_session())
        self._save(session, "advance")
        return route_for(session)

    def retreat(self) -> str:
        session = ops.retreat(self._require_session())
        self._save(session, "retreat")
        return route_for(session)

    def deploy(
        self,
        provisioner: Provisioner | None = None,
        on_update: Callable[[DeployUpdate], Any] | None = None,
    ) -> str:
        """Run (or keep polling) the deployment; returns the route afterwards.

        Raises DeployTimeout with the session left as-is. Calling deploy()
        again, from this Wizard or a new one on the same workspace, resumes
        polling the Running sub-step. Raises SubStepFailed when the
        deployment ends failed.
        """
        if self._run is None or self._run.finished:
            session = self._require_session()
            resuming = session.deploy is not None and session.deploy.started
            self._run = (resume_deploy if resuming else run_deploy)(
                session,
                provisioner or self._default_provisioner(session),
                timeout=self.settings.deploy_timeout,
                interval=self.settings.poll_interval,
            )
            self._save(session, "resume" if resuming else "deploy")
        run = self._run
        session = run.session

        try:
            for update in run:
                self._save(session, "sub-step", {"name": update.name, "state": str(update.state)})
                if on_update:
                    on_update(update)
        except DeployTimeout:
            self._save(session, "timeout")
            raise

        if session.status == "failed":
            raise SubStepFailed(session.deploy.failed if session.deploy else [])

        self.state_manager.record_cluster(ClusterState(
            package_name=session.package.name,
            components=[c.name for c in session.selected_components()],
            deployed_at=datetime.now(tz=UTC).strftime("%Y-%m-%d %H:%M:%S"),
        ))
        self.state_manager.add_history(session.package.name, session.step, "retire")
        self.state_manager.clear_session()
        self._run = None
        return route_for(session)

    def abandon(self) -> bool:
        session = self.state_manager.get_session()
        if not session:
            return False
        self.state_manager.add_history(session.package.name, session.step, "abandon")
        self.state_manager.clear_session()
        self._run = None
        return True

    def get_status(self) -> dict[str, Any]:
        session = self.state_manager.get_session()
        if session is None:
            cluster = self.state_manager.get_cluster()
            summary = (
                f"cluster initialized with {cluster.package_name}" if cluster
                else "no active session"
            )
            return {
                "status": "not_started",
                "route": home_route(cluster),
                "cluster": cluster.__dict__ if cluster else None,
                "allowed_actions": ["start"],
                "summary": summary,
            }

        history = self.state_manager.get_history(1)
        last_action = history[0] if history else None
        elapsed = _format_elapsed(session.started_at)
        result: dict[str, Any] = {
            "package": session.package.name,
            "step": str(session.step),
            "route": route_for(session),
            "status": session.status,
            "selected": [c.name for c in session.selected_components()],
            "deploy": deploy_markers(session),
            "allowed_actions": _allowed_actions(session),
            "elapsed": elapsed,
            "last_action": last_action,
        }

        summary_parts = [f"{session.package.name} > {session.step.title}"]
        if session.status != "active":
            summary_parts.append(session.status)
        if elapsed:
            summary_parts.append(f"elapsed {elapsed}")
        if last_action:
            summary_parts.append(f"last: {last_action['action']}")
        result["summary"] = ", ".join(summary_parts)
        return result

    def page(self) -> dict[str, Any]:
        """The wizard page for the active session, or the start page without one."""
        session = self.state_manager.get_session()
        if session:
            return render_page(session)
        return start_page(self.state_manager.get_cluster())

    def get_history(self, limit: int = 20) -> list[dict]:
        return self.state_manager.get_history(limit)

    def close(self) -> None:
        self.state_manager.close()

    # ─── Private ───

    def _require_session(self) -> WizardSession:
        if self._run is not None and not self._run.finished:
            raise InvalidTransition(self._run.session.step, "change the session", "deployment in progress")
        session = self.state_manager.get_session()
        if not session:
            raise RuntimeError("No active session. Run `init-wizard start` first.")
        return session

    def _save(self, session: WizardSession, action: str, data: dict | None = None) -> None:
        self.state_manager.save_session(session)
        self.state_manager.add_history(
            session.package.name, session.step, action,
            json.dumps(data, ensure_ascii=False) if data is not None else None,
        )

    def _default_provisioner(self, session: WizardSession) -> Provisioner:
        if self.settings.deploy_command:
            return CommandProvisioner(
                self.settings.deploy_command, session.package.name, self.workspace / RUNS_DIR,
            )
        return DryRunProvisioner()


# ─── Helpers ───

def _allowed_actions(session: WizardSession) -> list[str]:
    if session.status != "active":
        return ["abandon"]
    if session.step == Step.CONFIGURE:
        return ["toggle", "advance", "abandon"]
    if session.step == Step.REVIEW:
        return ["advance", "retreat", "abandon"]
    if session.deploy:
        return ["deploy", "abandon"]
    return ["abandon"]


def _format_elapsed(started_at: str) -> str:
    if not started_at:
        return ""
    try:
        start = datetime.strptime(started_at, "%Y-%m-%d %H:%M:%S").replace(tzinfo=UTC)
        delta = datetime.now(tz=UTC) - start
        hours, remainder = divmod(int(delta.total_seconds()), 3600)
        minutes = remainder // 60
        return f"{hours}h{minutes:02d}m" if hours else f"{minutes}m"
    except ValueError:
        return ""
