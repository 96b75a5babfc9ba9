"""SQLite-backed wizard session persistence."""
from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import asdict
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from init_wizard.types import (
    ClusterState,
    Component,
    DeployStepStatus,
    Package,
    Step,
    SubStep,
    SubStepState,
    WizardSession,
)

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

INIT_SQL = """
CREATE TABLE IF NOT EXISTS wizard_session (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    package TEXT NOT NULL,
    step TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'active',
    selected TEXT NOT NULL DEFAULT '{}',
    deploy TEXT,
    started_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS wizard_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    package_name TEXT NOT NULL,
    step TEXT NOT NULL,
    action TEXT NOT NULL,
    data TEXT,
    timestamp TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS cluster_state (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    package_name TEXT NOT NULL,
    components TEXT NOT NULL DEFAULT '[]',
    deployed_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""


def _now() -> str:
    return datetime.now(tz=UTC).strftime("%Y-%m-%d %H:%M:%S")


# ─── Serialization ───

def package_to_dict(package: Package) -> dict[str, Any]:
    return {
        "name": package.name,
        "kind": package.kind,
        "description": package.description,
        "components": [asdict(c) for c in package.components],
    }


def package_from_dict(raw: dict[str, Any]) -> Package:
    return Package(
        name=raw["name"],
        kind=raw.get("kind", ""),
        description=raw.get("description", ""),
        components=tuple(Component(**c) for c in raw.get("components", [])),
    )


def deploy_to_dict(status: DeployStepStatus | None) -> dict[str, Any] | None:
    if status is None:
        return None
    return {
        "started": status.started,
        "steps": [{"name": s.name, "required": s.required, "state": str(s.state)} for s in status.steps],
    }


def deploy_from_dict(raw: dict[str, Any] | None) -> DeployStepStatus | None:
    if raw is None:
        return None
    return DeployStepStatus(
        started=raw.get("started", False),
        steps=[
            SubStep(name=s["name"], required=s["required"], state=SubStepState(s["state"]))
            for s in raw.get("steps", [])
        ],
    )


class StateManager:
    def __init__(self, db_path: str | Path):
        self.db = sqlite3.connect(str(db_path))
        self.db.execute("PRAGMA journal_mode = WAL")
        self.db.executescript(INIT_SQL)

    def save_session(self, session: WizardSession) -> None:
        if not session.started_at:
            session.started_at = _now()
        self.db.execute(
            """INSERT OR REPLACE INTO wizard_session
               (id, package, step, status, selected, deploy, started_at)
               VALUES (1, ?, ?, ?, ?, ?, ?)""",
            (
                json.dumps(package_to_dict(session.package), ensure_ascii=False),
                str(session.step),
                session.status,
                json.dumps(session.selected),
                json.dumps(deploy_to_dict(session.deploy)),
                session.started_at,
            ),
        )
        self.db.commit()

    def get_session(self) -> WizardSession | None:
        row = self.db.execute(
            "SELECT package, step, status, selected, deploy, started_at FROM wizard_session WHERE id = 1"
        ).fetchone()
        if not row:
            return None
        return WizardSession(
            package=package_from_dict(json.loads(row[0])),
            step=Step(row[1]),
            status=row[2],
            selected=json.loads(row[3]),
            deploy=deploy_from_dict(json.loads(row[4]) if row[4] else None),
            started_at=row[5],
        )

    def clear_session(self) -> None:
        self.db.execute("DELETE FROM wizard_session")
        self.db.commit()

    def add_history(self, package_name: str, step: str, action: str, data: str | None = None) -> None:
        self.db.execute(
            "INSERT INTO wizard_history (package_name, step, action, data) VALUES (?, ?, ?, ?)",
            (package_name, step, action, data),
        )
        self.db.commit()

    def get_history(self, limit: int = 20) -> list[dict]:
        rows = self.db.execute(
            "SELECT id, package_name, step, action, data, timestamp "
            "FROM wizard_history ORDER BY id DESC LIMIT ?",
            (limit,),
        ).fetchall()
        return [
            {"id": r[0], "package_name": r[1], "step": r[2],
             "action": r[3], "data": r[4], "timestamp": r[5]}
            for r in rows
        ]

    def record_cluster(self, state: ClusterState) -> None:
        self.db.execute(
            "INSERT OR REPLACE INTO cluster_state (id, package_name, components, deployed_at) VALUES (1, ?, ?, ?)",
            (state.package_name, json.dumps(state.components), state.deployed_at or _now()),
        )
        self.db.commit()
        logger.info("Recorded cluster initialized with %s", state.package_name)

    def get_cluster(self) -> ClusterState | None:
        row = self.db.execute(
            "SELECT package_name, components, deployed_at FROM cluster_state WHERE id = 1"
        ).fetchone()
        if not row:
            return None
        return ClusterState(package_name=row[0], components=json.loads(row[1]), deployed_at=row[2])

    def reset(self) -> None:
        self.db.execute("DELETE FROM wizard_session")
        self.db.execute("DELETE FROM wizard_history")
        self.db.execute("DELETE FROM cluster_state")
        self.db.commit()

    def close(self) -> None:
        self.db.close()
