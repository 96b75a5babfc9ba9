"""Static analysis for package descriptors — catch issues before a session starts."""
from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from init_wizard.types import Package

NAME_RE = re.compile(r"^[a-z0-9][a-z0-9-]*$")


class ValidationError:
    def __init__(self, level: str, message: str, component: str | None = None):
        self.level = level  # "error" | "warning"
        self.message = message
        self.component = component

    def __str__(self):
        prefix = f"[{self.component}] " if self.component else ""
        return f"{self.level.upper()}: {prefix}{self.message}"


def validate_package(package: Package) -> list[ValidationError]:
    """Run all static checks on a package."""
    errors: list[ValidationError] = []

    if not NAME_RE.match(package.name):
        errors.append(ValidationError(
            "error", f"Invalid package name '{package.name}': use lowercase letters, digits and dashes"
        ))

    if not package.components:
        errors.append(ValidationError("error", "Package has no components"))
        return errors

    errors.extend(_check_names(package))
    errors.extend(_check_required(package))

    return errors


def has_errors(errors: list[ValidationError]) -> bool:
    return any(e.level == "error" for e in errors)


def format_errors(errors: list[ValidationError]) -> str:
    if not errors:
        return ""
    lines = []
    errs = [e for e in errors if e.level == "error"]
    warns = [e for e in errors if e.level == "warning"]
    if errs:
        lines.append(f"  {len(errs)} error(s):")
        for e in errs:
            lines.append(f"    ✗ {e}")
    if warns:
        lines.append(f"  {len(warns)} warning(s):")
        for e in warns:
            lines.append(f"    ⚠ {e}")
    return "\n".join(lines)


# ─── Checks ───

def _check_names(package: Package) -> list[ValidationError]:
    """Component names must be present, well-formed and unique."""
    errors: list[ValidationError] = []
    seen: set[str] = set()
    for i, c in enumerate(package.components):
        if not c.name:
            errors.append(ValidationError("error", f"Component #{i + 1} has no name"))
            continue
        if not NAME_RE.match(c.name):
            errors.append(ValidationError("error", "Invalid component name", c.name))
        if c.name in seen:
            errors.append(ValidationError("error", "Duplicate component name", c.name))
        seen.add(c.name)
    return errors


def _check_required(package: Package) -> list[ValidationError]:
    if any(c.required for c in package.components):
        return []
    return [ValidationError("warning", "Package has no required components")]
