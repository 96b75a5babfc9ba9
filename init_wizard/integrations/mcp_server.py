"""MCP Server — exposes wizard_* tools to an MCP client."""
from __future__ import annotations

import json
import os

from mcp.server.fastmcp import FastMCP

from init_wizard.config import WORKSPACE_DIR
from init_wizard.engine import Wizard
from init_wizard.errors import WizardError

mcp = FastMCP("init-wizard")


def _get_wizard() -> Wizard:
    return Wizard(os.path.join(os.getcwd(), WORKSPACE_DIR))


def _error(e: Exception) -> str:
    return json.dumps({"error": str(e), "type": type(e).__name__}, ensure_ascii=False)


@mcp.tool()
def wizard_get_status() -> str:
    """Get the current wizard step, selections, deploy progress and allowed actions."""
    wizard = _get_wizard()
    try:
        st = wizard.get_status()
        st["page"] = wizard.page()
        return json.dumps(st, ensure_ascii=False, indent=2)
    except Exception as e:
        return _error(e)
    finally:
        wizard.close()


@mcp.tool()
def wizard_start(components: list[str] | None = None) -> str:
    """Start a new session for the loaded package, optionally pre-selecting components."""
    wizard = _get_wizard()
    try:
        session = wizard.start(components)
        return json.dumps({
            "step": str(session.step),
            "selected": [c.name for c in session.selected_components()],
        }, ensure_ascii=False)
    except (WizardError, RuntimeError) as e:
        return _error(e)
    finally:
        wizard.close()


@mcp.tool()
def wizard_toggle(component: str) -> str:
    """Toggle an optional component for deployment (Configure step only)."""
    wizard = _get_wizard()
    try:
        selected = wizard.toggle(component)
        return json.dumps({"component": component, "selected": selected})
    except (WizardError, RuntimeError) as e:
        return _error(e)
    finally:
        wizard.close()


@mcp.tool()
def wizard_advance() -> str:
    """Move forward: Configure → Review → Deploy."""
    wizard = _get_wizard()
    try:
        return json.dumps({"route": wizard.advance()})
    except (WizardError, RuntimeError) as e:
        return _error(e)
    finally:
        wizard.close()


@mcp.tool()
def wizard_retreat() -> str:
    """Edit: go back from Review to Configure, keeping selections."""
    wizard = _get_wizard()
    try:
        return json.dumps({"route": wizard.retreat()})
    except (WizardError, RuntimeError) as e:
        return _error(e)
    finally:
        wizard.close()


@mcp.tool()
def wizard_deploy() -> str:
    """Deploy the selected components and report each sub-step update."""
    wizard = _get_wizard()
    updates: list[dict] = []
    try:
        route = wizard.deploy(
            on_update=lambda u: updates.append({"name": u.name, "state": str(u.state)}),
        )
        return json.dumps({"route": route, "updates": updates}, ensure_ascii=False)
    except (WizardError, RuntimeError) as e:
        return json.dumps(
            {"error": str(e), "type": type(e).__name__, "updates": updates}, ensure_ascii=False
        )
    finally:
        wizard.close()


@mcp.tool()
def wizard_get_history(limit: int = 20) -> str:
    """Get the session history (audit trail)."""
    wizard = _get_wizard()
    try:
        return json.dumps(wizard.get_history(limit), ensure_ascii=False, indent=2)
    except Exception as e:
        return _error(e)
    finally:
        wizard.close()


@mcp.tool()
def wizard_abandon() -> str:
    """Discard the current session."""
    wizard = _get_wizard()
    try:
        return "Session abandoned." if wizard.abandon() else "No active session."
    finally:
        wizard.close()


def run_server():
    mcp.run(transport="stdio")
