"""Shared fixtures for init-wizard scenario tests."""
from __future__ import annotations

import shutil
import tempfile
from fnmatch import fnmatch
from pathlib import Path
from typing import Any

import pytest

from init_wizard.config import WizardSettings
from init_wizard.engine import Wizard
from init_wizard.engine.polling import wait_for
from init_wizard.errors import SubStepFailed
from init_wizard.routes import STEP_ROUTES, resolve_auth
from init_wizard.types import Component, Package, Step, SubStepState

PACKAGES_DIR = Path(__file__).parent / "packages"

TOKEN = "insecure"

INIT_REQUIRED = ["zarf-injector", "zarf-seed-registry", "zarf-registry", "zarf-agent"]
INIT_OPTIONAL = ["k3s", "logging", "git-server"]


def make_package(*components: tuple[str, bool], name: str = "init") -> Package:
    return Package(
        name=name,
        kind="ZarfInitConfig",
        description="Used to establish a new Zarf cluster",
        components=tuple(
            Component(name=n, required=r, deploy_config={"name": n, "required": r})
            for n, r in components
        ),
    )


class ScriptedProvisioner:
    """Provisioner whose poll results are scripted per component.

    ``script`` maps a component name to the sequence of states successive
    polls return; the last state repeats. Unscripted components succeed on
    the first poll.
    """

    def __init__(self, script: dict[str, list[SubStepState]] | None = None):
        self.script = {k: list(v) for k, v in (script or {}).items()}
        self.begun: list[str] = []
        self.polls: list[str] = []

    def begin(self, component: Component) -> None:
        self.begun.append(component.name)

    def poll(self, component: Component) -> SubStepState:
        self.polls.append(component.name)
        states = self.script.get(component.name)
        if not states:
            return SubStepState.SUCCEEDED
        return states.pop(0) if len(states) > 1 else states[0]


class FakeClock:
    """Monotonic clock that only moves when sleep() is called."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


class WizardHarness:
    """Test harness for driving a wizard through a temp workspace.

    Provides a clean temp `.wizard` directory per test with the package
    already loaded. All methods delegate to the Wizard public API.
    """

    def __init__(self, package_file: str = "init.yaml", *, settings: WizardSettings | None = None):
        self.tmp = Path(tempfile.mkdtemp())
        self.workspace = self.tmp / ".wizard"
        self.settings = settings or WizardSettings(deploy_timeout=1.0, poll_interval=0.001)
        self.wizard = Wizard(self.workspace, self.settings)
        self.wizard.load(PACKAGES_DIR / package_file)

    @property
    def session(self):
        return self.wizard.get_session()

    @property
    def step(self) -> Step:
        return self.session.step

    @property
    def selected(self) -> set[str]:
        return {c.name for c in self.session.selected_components()}

    def start(self, components: list[str] | None = None):
        return self.wizard.start(components)

    def toggle(self, name: str) -> bool:
        return self.wizard.toggle(name)

    def advance(self) -> str:
        return self.wizard.advance()

    def retreat(self) -> str:
        return self.wizard.retreat()

    def deploy(self, provisioner=None, on_update=None) -> str:
        return self.wizard.deploy(provisioner, on_update)

    def walk_to_deploy(self, components: list[str] | None = None) -> None:
        self.start(components)
        self.advance()
        self.advance()
        assert self.step == Step.DEPLOY

    def get_history(self, limit: int = 50) -> list[dict]:
        return self.wizard.get_history(limit)

    def actions(self) -> list[str]:
        """History actions, oldest first."""
        return [h["action"] for h in reversed(self.get_history(200))]

    def new_wizard(self) -> None:
        """Close the current wizard and reopen the same workspace.

        Simulates the user closing the tool and coming back later.
        """
        self.wizard.close()
        self.wizard = Wizard(self.workspace, self.settings)

    def close(self):
        self.wizard.close()
        shutil.rmtree(self.tmp, ignore_errors=True)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


class InMemoryDriver:
    """UI driver over a Wizard's rendered markers instead of a browser.

    Handles are marker ids, resolved lazily on every assertion like browser
    locators. Deployment runs on the first poll after the deploy page loads,
    and the redirect to /packages lands on the next URL wait that expects it.
    """

    def __init__(self, wizard: Wizard, token: str = TOKEN, provisioner=None):
        self.wizard = wizard
        self.token = token
        self.provisioner = provisioner or ScriptedProvisioner()
        self.url = "about:blank"
        self.page: dict[str, Any] = {}
        self._deploy_pending = False
        self._redirect: str | None = None

    # ─── UIDriver ───

    def navigate(self, path: str) -> None:
        if path.startswith("/auth"):
            target = resolve_auth(path, self.token)
            if target is None:
                raise AssertionError(f"Unauthorized: {path}")
            path = target
        if path in STEP_ROUTES.values() and self.wizard.get_session() is None:
            self.wizard.start()
        self.page = self.wizard.page()
        # The app redirects to wherever the wizard state says the user is
        self.url = self.page["url"]

    def locate(self, marker: str) -> str:
        return marker

    def click(self, handle: str) -> None:
        if self._find(handle) is None:
            raise AssertionError(f"Cannot click missing element: {handle}")
        kind, _, name = handle.partition(":")
        if kind == "toggle":
            self.wizard.toggle(name)
            self.page = self.wizard.page()
            return
        if handle == "link:initialize-cluster":
            self.wizard.start()
            self.url = STEP_ROUTES[Step.CONFIGURE]
        elif handle == "link:review-deployment" or handle == "link:deploy":
            self.url = self.wizard.advance()
            self._deploy_pending = handle == "link:deploy"
        elif handle == "link:edit":
            self.url = self.wizard.retreat()
        self.page = self.wizard.page()

    def assert_visible(self, handle: str, timeout: float = 1.0) -> None:
        self._wait(lambda: self._find(handle) is not None, timeout, f"{handle} to be visible")

    def assert_hidden(self, handle: str, timeout: float = 1.0) -> None:
        self._wait(lambda: self._find(handle) is None, timeout, f"{handle} to be hidden")

    def assert_attribute(self, handle: str, name: str, expected: str, timeout: float = 1.0) -> None:
        def _has_value():
            found = self._find(handle)
            return found is not None and str(found.get(name)) == expected
        self._wait(_has_value, timeout, f'{handle} to have {name}="{expected}"')

    def wait_for_url(self, pattern: str, timeout: float = 1.0) -> None:
        def _matches():
            if not fnmatch(self.url, pattern) and self._redirect:
                self.url, self._redirect = self._redirect, None
            return fnmatch(self.url, pattern)
        self._wait(_matches, timeout, f"url {pattern}")

    # ─── Private ───

    def _wait(self, predicate, timeout: float, what: str) -> None:
        def _tick_then_check():
            self._pump()
            return predicate()
        try:
            wait_for(_tick_then_check, timeout, 0.001)
        except TimeoutError:
            raise AssertionError(f"Timed out after {timeout}s waiting for {what} (url={self.url})") from None

    def _pump(self) -> None:
        if not self._deploy_pending:
            return
        self._deploy_pending = False

        def _snapshot(_update):
            self.page = self.wizard.page()

        try:
            self._redirect = self.wizard.deploy(self.provisioner, on_update=_snapshot)
        except SubStepFailed:
            self.page = self.wizard.page()

    def _find(self, handle: str) -> dict | None:
        page = self.page
        if handle.startswith("link:"):
            return {"id": handle} if handle in page.get("links", []) else None
        if handle in ("banner", "hero"):
            text = page.get(handle)
            return {"id": handle, "text": text} if text else None
        for item in page.get("stepper", []) + page.get("deploy", []):
            if item["id"] == handle:
                return item
        for comp in page.get("components", []):
            if comp["id"] == handle:
                return comp
            if comp["toggle"] and comp["toggle"]["id"] == handle:
                return comp["toggle"]
        return None


@pytest.fixture
def harness_factory():
    """Factory fixture that creates WizardHarness instances and cleans up after test."""
    created: list[WizardHarness] = []

    def _make(package_file: str = "init.yaml", **kwargs) -> WizardHarness:
        h = WizardHarness(package_file, **kwargs)
        created.append(h)
        return h

    yield _make

    for h in created:
        h.close()


@pytest.fixture
def init_package() -> Package:
    from init_wizard.package import load_package
    return load_package(PACKAGES_DIR / "init.yaml")
