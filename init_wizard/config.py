"""Workspace settings stored in .wizard/settings.json."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path

logger = logging.getLogger(__name__)

WORKSPACE_DIR = ".wizard"
SETTINGS_FILE = "settings.json"
TOKEN_ENV = "INIT_WIZARD_TOKEN"


@dataclass
class WizardSettings:
    auth_token: str = "insecure"
    deploy_timeout: float = 45.0
    poll_interval: float = 0.5
    deploy_command: str | None = None  # None = dry run

    @classmethod
    def load(cls, workspace: str | Path) -> WizardSettings:
        path = Path(workspace) / SETTINGS_FILE
        raw: dict = {}
        if path.exists():
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as e:
                logger.warning("Ignoring unreadable %s: %s", path, e)
        known = {f.name for f in fields(cls)}
        unknown = set(raw) - known
        if unknown:
            logger.warning("Unknown settings ignored: %s", ", ".join(sorted(unknown)))
        settings = cls(**{k: v for k, v in raw.items() if k in known})
        if os.environ.get(TOKEN_ENV):
            settings.auth_token = os.environ[TOKEN_ENV]
        return settings

    def save(self, workspace: str | Path) -> None:
        path = Path(workspace) / SETTINGS_FILE
        path.write_text(json.dumps(asdict(self), indent=2), encoding="utf-8")
