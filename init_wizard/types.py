from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

# ─── Package Descriptor (parsed from YAML) ───

@dataclass(frozen=True)
class Component:
    name: str
    required: bool = False
    description: str = ""
    deploy_config: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    @property
    def label(self) -> str:
        return f"{self.name} ({'Required' if self.required else 'Optional'})"


@dataclass(frozen=True)
class Package:
    name: str
    kind: str = ""
    description: str = ""
    components: tuple[Component, ...] = ()

    def component(self, name: str) -> Component | None:
        for c in self.components:
            if c.name == name:
                return c
        return None


# ─── Wizard Steps ───

class Step(StrEnum):
    CONFIGURE = "configure"
    REVIEW = "review"
    DEPLOY = "deploy"

    @property
    def title(self) -> str:
        return self.value.capitalize()


STEP_ORDER = (Step.CONFIGURE, Step.REVIEW, Step.DEPLOY)


class SubStepState(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (SubStepState.SUCCEEDED, SubStepState.FAILED)


# ─── Deploy Progress ───

@dataclass
class SubStep:
    name: str
    required: bool = True
    state: SubStepState = SubStepState.PENDING


@dataclass
class DeployStepStatus:
    steps: list[SubStep] = field(default_factory=list)
    started: bool = False  # a DeployRun has been created for this status

    def get(self, name: str) -> SubStep | None:
        for s in self.steps:
            if s.name == name:
                return s
        return None

    @property
    def finished(self) -> bool:
        if any(s.required and s.state == SubStepState.FAILED for s in self.steps):
            return True
        return all(s.state.terminal for s in self.steps)

    @property
    def failed(self) -> list[str]:
        return [s.name for s in self.steps if s.state == SubStepState.FAILED]


@dataclass(frozen=True)
class DeployUpdate:
    index: int
    name: str
    state: SubStepState


# ─── Wizard Runtime State ───

@dataclass
class WizardSession:
    package: Package
    step: Step = Step.CONFIGURE
    selected: dict[str, bool] = field(default_factory=dict)
    deploy: DeployStepStatus | None = None
    status: str = "active"  # active | failed | complete
    started_at: str = ""

    def is_selected(self, name: str) -> bool:
        return self.selected.get(name, False)

    def selected_components(self) -> list[Component]:
        return [c for c in self.package.components if self.is_selected(c.name)]


@dataclass
class ClusterState:
    package_name: str
    components: list[str] = field(default_factory=list)
    deployed_at: str = ""
