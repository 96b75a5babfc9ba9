"""Error taxonomy for wizard operations."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from init_wizard.package.validator import ValidationError


class WizardError(Exception):
    """Base class for every error surfaced to wizard callers."""


class InvalidPackage(WizardError, ValueError):
    def __init__(self, message: str, issues: list[ValidationError] | None = None):
        super().__init__(message)
        self.issues = list(issues or [])


class ComponentNotToggleable(WizardError):
    def __init__(self, name: str, reason: str):
        super().__init__(f'Component "{name}" cannot be toggled: {reason}')
        self.name = name
        self.reason = reason


class InvalidTransition(WizardError):
    def __init__(self, step: str, action: str, reason: str = ""):
        message = f'Cannot {action} from step "{step}"'
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.step = step
        self.action = action


class DeployTimeout(WizardError):
    """A sub-step did not reach a terminal state in time. Safe to re-poll."""

    def __init__(self, sub_step: str, timeout: float):
        super().__init__(f'Timed out after {timeout:g}s waiting for sub-step "{sub_step}"')
        self.sub_step = sub_step
        self.timeout = timeout


class SubStepFailed(WizardError):
    def __init__(self, failed: list[str]):
        super().__init__(f"Deployment failed at: {', '.join(failed)}")
        self.failed = list(failed)
