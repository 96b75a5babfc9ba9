"""UI driver protocol and reusable wizard journeys.

A driver is anything that can load wizard pages and query the markers from
`init_wizard.render.markers`: a browser automation wrapper, or an in-memory
harness. The journeys below walk the init flow through any such driver.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol
from urllib.parse import urlencode

from init_wizard.routes import AUTH, PACKAGES, STEP_ROUTES
from init_wizard.types import Step

if TYPE_CHECKING:
    from collections.abc import Sequence

DEFAULT_TIMEOUT = 5.0
DEPLOY_STEP_TIMEOUT = 45.0
REDIRECT_TIMEOUT = 10.0


class UIDriver(Protocol):
    def navigate(self, path: str) -> None: ...

    def locate(self, marker: str) -> Any: ...

    def click(self, handle: Any) -> None: ...

    def assert_visible(self, handle: Any, timeout: float = DEFAULT_TIMEOUT) -> None: ...

    def assert_hidden(self, handle: Any, timeout: float = DEFAULT_TIMEOUT) -> None: ...

    def assert_attribute(self, handle: Any, name: str, expected: str, timeout: float = DEFAULT_TIMEOUT) -> None: ...

    def wait_for_url(self, pattern: str, timeout: float = DEFAULT_TIMEOUT) -> None: ...


def auth_url(token: str, next_path: str | None = None) -> str:
    query = {"token": token}
    if next_path:
        query["next"] = next_path
    return f"{AUTH}?{urlencode(query)}"


def assert_required_hidden(driver: UIDriver, required: Sequence[str]) -> None:
    """Required components show no deploy toggle."""
    for name in required:
        driver.assert_visible(driver.locate(f"component:{name}"))
        driver.assert_hidden(driver.locate(f"toggle:{name}"))


def configure_package(
    driver: UIDriver,
    token: str,
    optional: Sequence[str] = (),
    required: Sequence[str] = (),
) -> None:
    """Select the given optional components, then continue to Review."""
    driver.navigate(auth_url(token, STEP_ROUTES[Step.CONFIGURE]))

    driver.assert_attribute(driver.locate("stepper:1"), "state", "active")
    driver.assert_attribute(driver.locate("stepper:2"), "state", "active")
    driver.assert_attribute(driver.locate("stepper:3"), "state", "disabled")

    for name in optional:
        toggle = driver.locate(f"toggle:{name}")
        driver.assert_attribute(toggle, "pressed", "false")
        driver.click(toggle)
        driver.assert_attribute(toggle, "pressed", "true")

    assert_required_hidden(driver, required)

    driver.click(driver.locate("link:review-deployment"))
    driver.wait_for_url(STEP_ROUTES[Step.REVIEW])


def review_package(driver: UIDriver, token: str, required: Sequence[str] = ()) -> None:
    driver.navigate(auth_url(token, STEP_ROUTES[Step.REVIEW]))
    driver.assert_attribute(driver.locate("stepper:2"), "state", "active")
    assert_required_hidden(driver, required)


def deploy_package(
    driver: UIDriver,
    sub_steps: int,
    step_timeout: float = DEPLOY_STEP_TIMEOUT,
    redirect_timeout: float = REDIRECT_TIMEOUT,
) -> None:
    """From Review: deploy, wait for every sub-step icon to succeed, then the redirect."""
    driver.click(driver.locate("link:deploy"))
    driver.wait_for_url(STEP_ROUTES[Step.DEPLOY])

    for i in range(sub_steps):
        driver.assert_attribute(driver.locate(f"deploy-step:{i}"), "class", "success", timeout=step_timeout)

    banner = driver.locate("banner")
    driver.assert_visible(banner)
    driver.assert_attribute(banner, "text", "Deployment Succeeded")
    driver.wait_for_url(PACKAGES, timeout=redirect_timeout)
