"""Wizard session operations — the Configure → Review → Deploy state machine.

Every operation validates before it mutates, so a raised error leaves the
session exactly as it was.
"""
from __future__ import annotations

import logging
from datetime import UTC, datetime

from init_wizard.errors import ComponentNotToggleable, InvalidTransition
from init_wizard.package.loader import check_package
from init_wizard.types import (
    STEP_ORDER,
    DeployStepStatus,
    Package,
    Step,
    SubStep,
    SubStepState,
    WizardSession,
)

logger = logging.getLogger(__name__)


def start(package: Package) -> WizardSession:
    check_package(package)
    session = WizardSession(
        package=package,
        step=Step.CONFIGURE,
        selected={c.name: c.required for c in package.components},
        started_at=datetime.now(tz=UTC).strftime("%Y-%m-%d %H:%M:%S"),
    )
    logger.info("Session started for package %s", package.name)
    return session


def toggle_component(session: WizardSession, name: str) -> WizardSession:
    component = session.package.component(name)
    if component is None:
        raise ComponentNotToggleable(name, "unknown component")
    if component.required:
        raise ComponentNotToggleable(name, "component is required")
    if session.step != Step.CONFIGURE or session.status != "active":
        raise ComponentNotToggleable(name, f'selections are locked at step "{session.step}"')

    session.selected[name] = not session.is_selected(name)
    logger.debug("Toggled %s -> %s", name, session.selected[name])
    return session


def advance(session: WizardSession) -> WizardSession:
    _require_active(session, "advance")
    if session.step not in STEP_ORDER:
        raise InvalidTransition(str(session.step), "advance", "undefined step")
    if session.step == Step.DEPLOY:
        raise InvalidTransition(session.step, "advance", "deploy is the final step")

    target = STEP_ORDER[STEP_ORDER.index(session.step) + 1]
    if target == Step.DEPLOY:
        if not session.selected_components():
            raise InvalidTransition(session.step, "advance", "no components selected for deployment")
        session.deploy = DeployStepStatus(steps=[
            SubStep(name=c.name, required=c.required, state=SubStepState.PENDING)
            for c in session.selected_components()
        ])
    session.step = target
    logger.info("Advanced to %s", target)
    return session


def retreat(session: WizardSession) -> WizardSession:
    """The "edit" action: Review back to Configure with selections intact."""
    _require_active(session, "retreat")
    if session.step != Step.REVIEW:
        raise InvalidTransition(session.step, "retreat", "only Review can go back to Configure")
    session.step = Step.CONFIGURE
    logger.info("Returned to %s", Step.CONFIGURE)
    return session


def is_complete(session: WizardSession) -> bool:
    if session.deploy is None or not session.deploy.steps:
        return False
    return all(s.state == SubStepState.SUCCEEDED for s in session.deploy.steps)


def _require_active(session: WizardSession, action: str) -> None:
    if session.status != "active":
        raise InvalidTransition(session.step, action, f"session is {session.status}")
