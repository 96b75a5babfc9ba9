"""Navigation contract between wizard state and UI paths."""
from __future__ import annotations

import hmac
from typing import TYPE_CHECKING
from urllib.parse import parse_qs, urlsplit

from init_wizard.types import Step

if TYPE_CHECKING:
    from init_wizard.types import ClusterState, WizardSession

HOME = "/"
PACKAGES = "/packages"
AUTH = "/auth"

STEP_ROUTES = {
    Step.CONFIGURE: "/initialize/configure",
    Step.REVIEW: "/initialize/review",
    Step.DEPLOY: "/initialize/deploy",
}


def route_for(session: WizardSession | None) -> str:
    if session is None:
        return HOME
    if session.status == "complete":
        return PACKAGES
    return STEP_ROUTES[session.step]


def home_route(cluster: ClusterState | None) -> str:
    """Start page: an initialized cluster goes straight to the package list."""
    return PACKAGES if cluster else HOME


def resolve_auth(url: str, expected_token: str) -> str | None:
    """Resolve `/auth?token=<t>&next=<path>`.

    Returns the path to continue to, or None when the token is rejected.
    """
    parts = urlsplit(url)
    if parts.path != AUTH:
        return None
    query = parse_qs(parts.query)
    token = (query.get("token") or [""])[0]
    if not token or not hmac.compare_digest(token, expected_token):
        return None
    target = (query.get("next") or [HOME])[0]
    # Only same-site paths are followed
    if not target.startswith("/") or target.startswith("//"):
        return HOME
    return target
