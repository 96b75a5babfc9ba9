"""Rendered wizard state — the markers a UI driver can query.

Marker ids:
    stepper:<n>          step n (1-based); state active | disabled | success,
                         "current" marks the step the user is on
    component:<name>     component card; label "<name> (Optional|Required)"
    toggle:<name>        deploy toggle; attribute pressed "true"/"false".
                         Required components render no toggle (hidden).
    deploy-step:<n>      deploy progress icon (0-based); class pending | running | success | failure
    link:initialize-cluster, link:review-deployment, link:edit, link:deploy
    banner               "Deployment Succeeded" | "Deployment Failed"
    hero                 start page heading when no cluster is initialized
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

import yaml

from init_wizard.routes import home_route, route_for
from init_wizard.types import STEP_ORDER, Step, SubStepState

if TYPE_CHECKING:
    from init_wizard.types import ClusterState, Component, WizardSession

SUB_STEP_CLASSES = {
    SubStepState.PENDING: "pending",
    SubStepState.RUNNING: "running",
    SubStepState.SUCCEEDED: "success",
    SubStepState.FAILED: "failure",
}


def stepper_markers(session: WizardSession) -> list[dict[str, Any]]:
    """One item per step. The step the user is on and the next one are reachable."""
    current = STEP_ORDER.index(session.step)
    items = []
    for i, step in enumerate(STEP_ORDER):
        if session.status == "complete" or i < current:
            state = "success"
        elif i <= current + 1:
            state = "active"
        else:
            state = "disabled"
        items.append({
            "id": f"stepper:{i + 1}",
            "text": f"{i + 1} {step.title}",
            "state": state,
            "current": i == current,
        })
    return items


def component_marker(session: WizardSession, component: Component) -> dict[str, Any]:
    toggle = None
    if not component.required:
        toggle = {
            "id": f"toggle:{component.name}",
            "pressed": "true" if session.is_selected(component.name) else "false",
            "enabled": session.step == Step.CONFIGURE,
        }
    return {
        "id": f"component:{component.name}",
        "label": component.label,
        "description": component.description,
        "config": yaml.safe_dump(component.deploy_config, sort_keys=False).strip(),
        "toggle": toggle,
    }


def deploy_markers(session: WizardSession) -> list[dict[str, Any]]:
    if session.deploy is None:
        return []
    return [
        {"id": f"deploy-step:{i}", "name": s.name, "class": SUB_STEP_CLASSES[s.state]}
        for i, s in enumerate(session.deploy.steps)
    ]


def banner(session: WizardSession) -> str | None:
    if session.status == "complete":
        return "Deployment Succeeded"
    if session.status == "failed":
        return "Deployment Failed"
    return None


def links(session: WizardSession) -> list[str]:
    if session.status != "active":
        return []
    if session.step == Step.CONFIGURE:
        return ["link:review-deployment"]
    if session.step == Step.REVIEW:
        return ["link:edit", "link:deploy"]
    return []


def render_page(session: WizardSession) -> dict[str, Any]:
    """Everything visible on the current wizard page, keyed by marker kind."""
    page: dict[str, Any] = {
        "url": route_for(session),
        "package": {
            "kind": session.package.kind,
            "name": session.package.name,
            "description": session.package.description,
        },
        "stepper": stepper_markers(session),
        "links": links(session),
    }
    if session.step in (Step.CONFIGURE, Step.REVIEW):
        page["components"] = [component_marker(session, c) for c in session.package.components]
    else:
        page["deploy"] = deploy_markers(session)
        page["banner"] = banner(session)
    return page


def start_page(cluster: ClusterState | None) -> dict[str, Any]:
    if cluster:
        return {"url": home_route(cluster), "links": [], "cluster": cluster.package_name}
    return {
        "url": home_route(cluster),
        "hero": "No Active Clusters",
        "links": ["link:initialize-cluster"],
    }


def render_text(session: WizardSession) -> str:
    """Plain-text rendering for the terminal."""
    lines = [
        " ".join(f"[{m['text']}]" if m["current"] else m["text"] for m in stepper_markers(session)),
        "",
        f"Package Type {session.package.kind}",
        f"METADATA Name: {session.package.name} Description: {session.package.description}",
        "",
    ]
    if session.step == Step.DEPLOY:
        marks = {"pending": " ", "running": "…", "success": "✓", "failure": "✗"}
        for m in deploy_markers(session):
            lines.append(f"  [{marks[m['class']]}] {m['name']}")
        if banner(session):
            lines.append("")
            lines.append(banner(session))
    else:
        for c in session.package.components:
            box = "x" if session.is_selected(c.name) else " "
            lines.append(f"  [{box}] {c.label}  {c.description}".rstrip())
    return "\n".join(lines)
