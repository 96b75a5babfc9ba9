"""Parse package YAML descriptors into an immutable Package."""
from __future__ import annotations

import yaml

from init_wizard.types import Component, Package


def _parse_component(raw) -> Component:
    if isinstance(raw, str):
        return Component(name=raw, deploy_config={"name": raw})
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid component: expected a mapping, got {type(raw).__name__}")

    required = raw.get("required", False)
    if not isinstance(required, bool):
        raise ValueError(f'Invalid component "{raw.get("name", "")}": "required" must be true or false')

    return Component(
        name=str(raw.get("name") or ""),
        required=required,
        description=str(raw.get("description") or ""),
        deploy_config=dict(raw),
    )


def parse_package_yaml(content: str) -> Package:
    raw = yaml.safe_load(content)
    if not isinstance(raw, dict):
        raise ValueError("Invalid YAML: expected a mapping")

    metadata = raw.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise ValueError('Invalid package: "metadata" must be a mapping')

    raw_components = raw.get("components")
    if not isinstance(raw_components, list):
        raise ValueError('Invalid package: missing "components" list')

    return Package(
        name=str(metadata.get("name") or ""),
        kind=str(raw.get("kind") or ""),
        description=str(metadata.get("description") or ""),
        components=tuple(_parse_component(c) for c in raw_components),
    )
