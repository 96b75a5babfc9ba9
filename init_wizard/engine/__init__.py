from init_wizard.engine.deploy import (
    CommandProvisioner,
    DeployRun,
    DryRunProvisioner,
    resume_deploy,
    run_deploy,
)
from init_wizard.engine.session import advance, is_complete, retreat, start, toggle_component
from init_wizard.engine.wizard import Wizard

__all__ = [
    "CommandProvisioner",
    "DeployRun",
    "DryRunProvisioner",
    "Wizard",
    "advance",
    "is_complete",
    "resume_deploy",
    "retreat",
    "run_deploy",
    "start",
    "toggle_component",
]
