"""Deploy sub-step machine.

Sub-steps run strictly in package order. Each one is handed to a provisioner
(`begin`), then polled until it reports Succeeded or Failed. A provisioner may
do its work asynchronously; the run only emits updates in sub-step order.

    run = run_deploy(session, provisioner)
    for update in run:          # Pending → Running → Succeeded | Failed
        ...

A DeployTimeout leaves the sub-step Running. Iterating the same run again
resumes polling where it stopped. From a persisted session, `resume_deploy`
builds a run that polls Running sub-steps again without re-beginning them.
"""
from __future__ import annotations

import logging
import os
import shlex
import subprocess
import sys
import tempfile
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from init_wizard.engine.polling import wait_for
from init_wizard.engine.session import is_complete
from init_wizard.errors import DeployTimeout, InvalidTransition
from init_wizard.runner import LAUNCH_FAILED, read_exit_code, write_exit_code
from init_wizard.types import DeployUpdate, Step, SubStep, SubStepState, WizardSession

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from init_wizard.types import Component

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 45.0
DEFAULT_INTERVAL = 0.5


class Provisioner(Protocol):
    def begin(self, component: Component) -> None: ...

    def poll(self, component: Component) -> SubStepState: ...


class DryRunProvisioner:
    """Reports every sub-step as succeeded without doing any work."""

    def begin(self, component: Component) -> None:
        logger.info("[dry-run] deploying %s", component.name)

    def poll(self, component: Component) -> SubStepState:
        return SubStepState.SUCCEEDED


class CommandProvisioner:
    """Runs a shell command per component; exit code 0 means success.

    The template is formatted with ``component`` and ``package``, e.g.
    ``zarf package deploy init --components={component} --confirm``.

    Each command runs under `init_wizard.runner` and leaves
    ``<component>.pid``, ``<component>.log`` and, once it ends,
    ``<component>.exit`` in ``run_dir``. A provisioner in another process
    pointed at the same ``run_dir`` picks up commands an earlier one began.
    """

    def __init__(self, template: str, package: str = "", run_dir: str | Path | None = None):
        self.template = template
        self.package = package
        self.run_dir = Path(run_dir) if run_dir else Path(tempfile.mkdtemp(prefix="init-wizard-"))
        self.run_dir.mkdir(parents=True, exist_ok=True)
        self._procs: dict[str, subprocess.Popen] = {}

    def begin(self, component: Component) -> None:
        argv = shlex.split(self.template.format(component=component.name, package=self.package))
        exit_file = self._path(component, "exit")
        exit_file.unlink(missing_ok=True)
        logger.info("Running %s", " ".join(argv))
        with self._path(component, "log").open("ab") as log:
            try:
                proc = subprocess.Popen(
                    [sys.executable, "-m", "init_wizard.runner", str(exit_file), *argv],
                    stdin=subprocess.DEVNULL,
                    stdout=log,
                    stderr=subprocess.STDOUT,
                    start_new_session=True,
                )
            except OSError as e:
                logger.error("Failed to launch deploy command for %s: %s", component.name, e)
                write_exit_code(exit_file, LAUNCH_FAILED)
                return
        self._procs[component.name] = proc
        self._path(component, "pid").write_text(str(proc.pid), encoding="utf-8")

    def poll(self, component: Component) -> SubStepState:
        proc = self._procs.get(component.name)
        if proc is not None:
            proc.poll()

        state = self._exit_state(component)
        if state:
            return state
        pid_file = self._path(component, "pid")
        if not pid_file.exists():
            return SubStepState.PENDING
        if proc is not None:
            alive = proc.returncode is None
        else:
            alive = _pid_alive(int(pid_file.read_text(encoding="utf-8")))
        if alive:
            return SubStepState.RUNNING

        # The runner may have written its exit file just before exiting
        state = self._exit_state(component)
        if state:
            return state
        logger.warning("Deploy command for %s ended without an exit code", component.name)
        return SubStepState.FAILED

    # ─── Private ───

    def _path(self, component: Component, suffix: str) -> Path:
        return self.run_dir / f"{component.name}.{suffix}"

    def _exit_state(self, component: Component) -> SubStepState | None:
        code = read_exit_code(self._path(component, "exit"))
        if code is None:
            return None
        return SubStepState.SUCCEEDED if code == 0 else SubStepState.FAILED


def _pid_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


class DeployRun:
    def __init__(
        self,
        session: WizardSession,
        provisioner: Provisioner,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        interval: float = DEFAULT_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Any] = time.sleep,
    ):
        if session.deploy is None:
            raise InvalidTransition(session.step, "deploy", "advance to the Deploy step first")
        self.session = session
        self.status = session.deploy
        self.provisioner = provisioner
        self.timeout = timeout
        self.interval = interval
        self._clock = clock
        self._sleep = sleep

    @property
    def finished(self) -> bool:
        return self.status.finished

    def __iter__(self) -> Iterator[DeployUpdate]:
        return self.updates()

    def updates(self, timeout: float | None = None) -> Iterator[DeployUpdate]:
        timeout = self.timeout if timeout is None else timeout
        while not self.status.finished:
            index, sub = self._next_sub_step()
            component = self.session.package.component(sub.name)
            if component is None:
                raise RuntimeError(f'Sub-step "{sub.name}" has no matching component')

            if sub.state == SubStepState.PENDING:
                self.provisioner.begin(component)
                sub.state = SubStepState.RUNNING
                logger.info("Sub-step %d/%d %s running", index + 1, len(self.status.steps), sub.name)
                yield DeployUpdate(index, sub.name, sub.state)
                continue

            sub.state = self._await(sub, component, timeout)
            if sub.state == SubStepState.FAILED:
                logger.warning("Sub-step %s failed%s", sub.name, "" if sub.required else " (optional)")
            else:
                logger.info("Sub-step %s succeeded", sub.name)
            if self.status.finished:
                self._finish()
            yield DeployUpdate(index, sub.name, sub.state)

    # ─── Private ───

    def _next_sub_step(self) -> tuple[int, SubStep]:
        for i, s in enumerate(self.status.steps):
            if not s.state.terminal:
                return i, s
        raise RuntimeError("No sub-step left to run")

    def _await(self, sub: SubStep, component: Component, timeout: float) -> SubStepState:
        def _terminal_state() -> SubStepState | None:
            state = self.provisioner.poll(component)
            logger.debug("Polled %s: %s", sub.name, state)
            return state if state.terminal else None

        try:
            return wait_for(_terminal_state, timeout, self.interval, clock=self._clock, sleep=self._sleep)
        except TimeoutError:
            logger.warning("Timed out waiting for %s after %gs", sub.name, timeout)
            raise DeployTimeout(sub.name, timeout) from None

    def _finish(self) -> None:
        self.session.status = "complete" if is_complete(self.session) else "failed"
        logger.info("Deployment of %s finished: %s", self.session.package.name, self.session.status)


def run_deploy(session: WizardSession, provisioner: Provisioner, **kwargs: Any) -> DeployRun:
    """Create the single deploy run of a session. Nothing runs until iterated."""
    _require_deployable(session, "deploy")
    if session.deploy.started:
        raise InvalidTransition(session.step, "deploy", "deployment already started; resume it instead")
    session.deploy.started = True
    return DeployRun(session, provisioner, **kwargs)


def resume_deploy(session: WizardSession, provisioner: Provisioner, **kwargs: Any) -> DeployRun:
    """Pick up a started deployment, e.g. after a DeployTimeout in another process.

    Running sub-steps are polled again, not begun a second time, so the
    provisioner must be able to find work an earlier instance started.
    """
    _require_deployable(session, "resume")
    if not session.deploy.started:
        raise InvalidTransition(session.step, "resume", "deployment has not started")
    running = [s.name for s in session.deploy.steps if s.state == SubStepState.RUNNING]
    logger.info("Resuming deployment of %s (running: %s)", session.package.name, ", ".join(running) or "none")
    return DeployRun(session, provisioner, **kwargs)


def _require_deployable(session: WizardSession, action: str) -> None:
    if session.step != Step.DEPLOY or session.deploy is None:
        raise InvalidTransition(session.step, action, "advance to the Deploy step first")
    if session.status != "active":
        raise InvalidTransition(session.step, action, f"session is {session.status}")
