from init_wizard.package.loader import check_package, load_package
from init_wizard.package.parser import parse_package_yaml
from init_wizard.package.validator import format_errors, validate_package

__all__ = ["check_package", "format_errors", "load_package", "parse_package_yaml", "validate_package"]
