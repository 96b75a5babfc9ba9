"""Package descriptor parsing, validation and loading."""
from __future__ import annotations

import pytest

from init_wizard.errors import InvalidPackage
from init_wizard.package import (
    check_package,
    format_errors,
    load_package,
    parse_package_yaml,
    validate_package,
)

from conftest import INIT_OPTIONAL, INIT_REQUIRED, PACKAGES_DIR, make_package


# ═══════════════════════════════════════════════════════
# Parser
# ═══════════════════════════════════════════════════════

def test_parse_init_package_keeps_component_order():
    pkg = parse_package_yaml((PACKAGES_DIR / "init.yaml").read_text())
    assert pkg.name == "init"
    assert pkg.kind == "ZarfInitConfig"
    assert pkg.description == "Used to establish a new Zarf cluster"
    assert [c.name for c in pkg.components] == [
        "k3s", "zarf-injector", "zarf-seed-registry", "zarf-registry", "zarf-agent", "logging", "git-server",
    ]
    assert {c.name for c in pkg.components if c.required} == set(INIT_REQUIRED)
    assert {c.name for c in pkg.components if not c.required} == set(INIT_OPTIONAL)


def test_component_keeps_raw_deploy_config():
    pkg = parse_package_yaml((PACKAGES_DIR / "init.yaml").read_text())
    k3s = pkg.component("k3s")
    assert k3s.description.startswith("*** REQUIRES ROOT *** Install K3s")
    assert k3s.deploy_config["only"]["localOS"] == "linux"
    assert k3s.deploy_config["files"][0]["target"] == "/usr/sbin/k3s"


def test_component_label():
    pkg = parse_package_yaml((PACKAGES_DIR / "init.yaml").read_text())
    assert pkg.component("zarf-agent").label == "zarf-agent (Required)"
    assert pkg.component("logging").label == "logging (Optional)"


def test_missing_required_defaults_to_optional():
    pkg = parse_package_yaml("""
metadata:
  name: demo
components:
  - name: a
  - b
""")
    assert [(c.name, c.required) for c in pkg.components] == [("a", False), ("b", False)]


@pytest.mark.parametrize("content, message", [
    ("- just\n- a list\n", "expected a mapping"),
    ("metadata:\n  name: x\n", 'missing "components"'),
    ("metadata: nope\ncomponents: []\n", '"metadata" must be a mapping'),
    ("metadata:\n  name: x\ncomponents:\n  - 42\n", "expected a mapping, got int"),
    ("metadata:\n  name: x\ncomponents:\n  - name: a\n    required: yes-please\n", '"required" must be true or false'),
])
def test_parse_rejects_malformed_descriptors(content, message):
    with pytest.raises(ValueError, match=message):
        parse_package_yaml(content)


# ═══════════════════════════════════════════════════════
# Validator
# ═══════════════════════════════════════════════════════

def test_valid_package_has_no_issues(init_package):
    assert validate_package(init_package) == []


def test_invalid_package_name():
    issues = validate_package(make_package(("a", True), name="Bad Name"))
    assert [i.level for i in issues] == ["error"]
    assert "Invalid package name" in issues[0].message


def test_duplicate_and_invalid_component_names():
    issues = validate_package(make_package(("a", True), ("a", True), ("Upper", False)))
    messages = {(i.component, i.message) for i in issues}
    assert ("a", "Duplicate component name") in messages
    assert ("Upper", "Invalid component name") in messages


def test_no_required_components_is_a_warning():
    issues = validate_package(make_package(("logging", False), name="extras"))
    assert [i.level for i in issues] == ["warning"]


def test_format_errors_groups_by_level():
    issues = validate_package(make_package(("a", False), ("a", False), name="demo"))
    text = format_errors(issues)
    assert "1 error(s):" in text
    assert "✗ ERROR: [a] Duplicate component name" in text
    assert "1 warning(s):" in text
    assert "⚠ WARNING: Package has no required components" in text
    assert format_errors([]) == ""


# ═══════════════════════════════════════════════════════
# Loader
# ═══════════════════════════════════════════════════════

def test_load_valid_package():
    pkg = load_package(PACKAGES_DIR / "init.yaml")
    assert len(pkg.components) == 7


def test_load_warns_but_accepts_optional_only_package(caplog):
    pkg = load_package(PACKAGES_DIR / "optional-only.yaml")
    assert pkg.name == "extras"
    assert "no required components" in caplog.text


@pytest.mark.parametrize("filename, fragment", [
    ("duplicate-names.yaml", "Duplicate component name"),
    ("no-components.yaml", "Package has no components"),
])
def test_load_rejects_invalid_packages(filename, fragment):
    with pytest.raises(InvalidPackage) as exc:
        load_package(PACKAGES_DIR / filename)
    assert fragment in str(exc.value)
    assert exc.value.issues


def test_load_wraps_parse_errors(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("metadata:\n  name: x\n")
    with pytest.raises(InvalidPackage, match="broken.yaml"):
        load_package(path)


def test_check_package_returns_package(init_package):
    assert check_package(init_package) is init_package
