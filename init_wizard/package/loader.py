"""Read, parse and validate a package file in one call."""
from __future__ import annotations

import logging
from pathlib import Path

from init_wizard.errors import InvalidPackage
from init_wizard.package.parser import parse_package_yaml
from init_wizard.package.validator import format_errors, has_errors, validate_package
from init_wizard.types import Package

logger = logging.getLogger(__name__)


def check_package(package: Package) -> Package:
    """Raise InvalidPackage if the package has error-level issues."""
    issues = validate_package(package)
    if has_errors(issues):
        raise InvalidPackage(
            f'Package "{package.name or "unnamed"}" failed validation:\n{format_errors(issues)}',
            issues,
        )
    for issue in issues:
        logger.warning("Package %s: %s", package.name, issue)
    return package


def load_package(path: str | Path) -> Package:
    path = Path(path)
    try:
        package = parse_package_yaml(path.read_text(encoding="utf-8"))
    except ValueError as e:
        raise InvalidPackage(f"{path.name}: {e}") from e
    logger.debug("Parsed package %s (%d components) from %s", package.name, len(package.components), path)
    return check_package(package)
