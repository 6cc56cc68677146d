"""
Manifest Validator / Linter for package.json

Structural checks only (name format, semantic-version format, missing
metadata). Returns separate error and warning lists; errors block a save
when validation is requested, warnings never do.

The codecs never call this implicitly.
"""

import re

from .manifest import read_manifest

PACKAGE_NAME_RE = re.compile(r'^[a-z][a-z0-9-]*(\.[a-z][a-z0-9-]*)+$')
SEMVER_RE = re.compile(r'^\d+\.\d+\.\d+(-[a-zA-Z0-9.-]+)?(\+[a-zA-Z0-9.-]+)?$')


def check_package_name(name):
    """Return an error message for an invalid package name, or None."""
    if not name:
        return "Package name cannot be empty"
    if name != name.lower():
        return "Package name must be lowercase"
    if not PACKAGE_NAME_RE.match(name):
        return ("Package name must follow reverse domain notation "
                "(e.g., com.company.package)")
    return None


def check_version(version):
    """Return an error message for an invalid version, or None. Empty is allowed."""
    if not version:
        return None
    if not SEMVER_RE.match(version):
        return "Version must follow semantic versioning (e.g., 1.0.0)"
    return None


def is_valid_package_name(name):
    return check_package_name(name) is None


def is_valid_version(version):
    return check_version(version) is None


def validate_manifest(manifest):
    """Validate a PackageManifest.

    Returns:
        (errors, warnings) — two lists of message strings.
    """
    errors = []
    warnings = []

    name_error = check_package_name(manifest.name)
    if name_error:
        errors.append(name_error)

    if not manifest.display_name:
        warnings.append("Display name is empty")

    version_error = check_version(manifest.version)
    if version_error:
        errors.append(version_error)

    if not manifest.unity:
        warnings.append("Unity version is not specified")

    if not manifest.description:
        warnings.append("Description is empty")

    for dep_name, dep_range in manifest.dependencies.items():
        if not dep_name:
            errors.append("Dependency with empty name")
        elif not dep_range:
            warnings.append(f"Dependency '{dep_name}' has no version")

    if manifest.name and manifest.name in manifest.dependencies:
        errors.append(f"Package '{manifest.name}' depends on itself")

    return errors, warnings


def validate_package_dir(directory):
    """Validate the package.json inside ``directory``.

    Returns:
        (errors, warnings). A missing manifest is reported as an error.
    """
    manifest = read_manifest(directory)
    if manifest is None:
        return [f"No readable package.json in {directory}"], []
    return validate_manifest(manifest)

