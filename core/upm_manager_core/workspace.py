"""
workspace.py — scan, load and save local packages

Bridges the filesystem and the in-memory registry:

  - scan_packages(): discover package directories under the packages root,
    read their package.json and CHANGELOG.md, build the registry
  - save_package() / save_all_dirty(): write dirty records back
  - bump_version() / plan_version_cascade() / apply_version_cascade():
    version edits and propagation of a new version to dependents

Environment variables:
  UPM_PACKAGES_PATH       Packages root directory (default: "Packages")
  UPM_CASCADE_SELECT_ALL  "1" (default) pre-selects every dependent when
                          planning a version cascade, "0" selects none
"""

import logging
import os
from dataclasses import dataclass, field

from .changelog import changelog_path, read_changelog, write_changelog
from .manifest import read_manifest, write_manifest
from .models import (
    ChangelogDocument, PackageRecord, CHANGELOG_FILENAME, PACKAGE_JSON_FILENAME,
)
from .registry import PackageRegistry
from .validate_manifest import validate_manifest
from .versioning import increment_version, decrement_version

logger = logging.getLogger(__name__)

DEFAULT_PACKAGES_PATH = 'Packages'


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class UpmError(Exception):
    """Base exception for workspace operations."""


class PackageNotFoundError(UpmError, KeyError):
    """Raised when a package name is not loaded in the registry."""

    def __str__(self):
        return f"Package not found: {self.args[0]}"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

_packages_root_override = None


def get_packages_root():
    """Packages root: test override, then UPM_PACKAGES_PATH, then default."""
    return (_packages_root_override
            or os.environ.get('UPM_PACKAGES_PATH')
            or DEFAULT_PACKAGES_PATH)


def _set_packages_root_for_testing(path):
    global _packages_root_override
    _packages_root_override = path


def _reset_packages_root():
    global _packages_root_override
    _packages_root_override = None


def cascade_selects_all():
    return os.environ.get('UPM_CASCADE_SELECT_ALL', '1').strip() != '0'


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def load_package(directory):
    """Build a PackageRecord from a package directory.

    Returns:
        PackageRecord, or None when there is no readable package.json.
    """
    manifest = read_manifest(directory)
    if manifest is None:
        return None

    record = PackageRecord(path=os.path.abspath(directory), manifest=manifest)
    cl_path = changelog_path(directory)
    if os.path.isfile(cl_path):
        record.changelog = read_changelog(cl_path)
    return record


def scan_packages(root=None, registry=None):
    """Scan ``root`` for package directories and return a built registry.

    Directories are visited in sorted order. Names containing '@' are
    cached copies of registry packages (``com.x.y@1.0.0``) and are skipped.
    """
    root = os.path.abspath(root or get_packages_root())
    if registry is None:
        registry = PackageRegistry()
    else:
        registry.clear()

    if not os.path.isdir(root):
        logger.warning("Packages directory not found: %s", root)
        return registry

    for dir_name in sorted(os.listdir(root)):
        directory = os.path.join(root, dir_name)
        if not os.path.isdir(directory) or '@' in dir_name:
            continue
        if not os.path.isfile(os.path.join(directory, PACKAGE_JSON_FILENAME)):
            continue

        record = load_package(directory)
        if record is None:
            continue
        registry.add_package(record)

    registry.build_graphs()
    logger.info("Scanned %s: %d package(s)", root, len(registry))
    return registry


def refresh_package(registry, name):
    """Reload one package from disk, discarding unsaved edits.

    Returns:
        True if the package was reloaded.
    """
    record = registry.get_package(name)
    if record is None:
        return False

    manifest = read_manifest(record.path)
    if manifest is None:
        return False

    registry.replace_manifest(record.key, manifest)

    cl_path = changelog_path(record.path)
    if os.path.isfile(cl_path):
        record.changelog = read_changelog(cl_path)

    registry.build_graphs()
    return True


def require_package(registry, name):
    record = registry.get_package(name)
    if record is None:
        raise PackageNotFoundError(name)
    return record


# ---------------------------------------------------------------------------
# Saving
# ---------------------------------------------------------------------------

@dataclass
class SaveResult:
    ok: bool
    message: str
    errors: list = field(default_factory=list)
    warnings: list = field(default_factory=list)


def save_package(record, validate=False):
    """Write a record's manifest to its directory.

    Args:
        record: PackageRecord to save.
        validate: If True, validation errors block the save.

    Returns:
        SaveResult. On success the record is no longer dirty and its
        original_version is refreshed.
    """
    errors, warnings = [], []
    if validate:
        errors, warnings = validate_manifest(record.manifest)
        if errors:
            return SaveResult(False, f"Validation failed for {record.name}",
                              errors, warnings)

    if not write_manifest(record.path, record.manifest):
        return SaveResult(False, f"Failed to write {PACKAGE_JSON_FILENAME} "
                                 f"in {record.path}", errors, warnings)

    record.clear_dirty()
    logger.info("Saved %s %s", record.name, record.version)
    return SaveResult(True, f"Saved {record.name}", errors, warnings)


def save_changelog(record):
    """Write a record's changelog next to its manifest. False if it has none."""
    if record.changelog is None:
        return False
    return write_changelog(os.path.join(record.path, CHANGELOG_FILENAME),
                           record.changelog)


def save_all_dirty(registry, validate=False):
    """Save every dirty record. Returns the number saved."""
    saved = 0
    for record in registry.get_dirty_packages():
        if save_package(record, validate=validate).ok:
            saved += 1
    return saved


# ---------------------------------------------------------------------------
# Version edits
# ---------------------------------------------------------------------------

def bump_version(record, part, decrement=False):
    """Increment (or decrement) one version component of a record.

    Returns:
        The resulting version string. The record is marked dirty only
        when the version actually changed.
    """
    old = record.manifest.version
    new = decrement_version(old, part) if decrement else increment_version(old, part)
    if new != old:
        record.manifest.version = new
        record.mark_dirty()
    return new


def start_changelog_section(record, version, date=None):
    """Make sure the record's changelog has a section for ``version``.

    Creates the changelog document if the package has none.
    """
    if record.changelog is None:
        record.changelog = ChangelogDocument()
    section = record.changelog.get_version(version)
    if section is None:
        section = record.changelog.add_version(version, date)
    return section


@dataclass
class CascadeCandidate:
    record: PackageRecord
    selected: bool


def plan_version_cascade(registry, name, select_all=None):
    """List the dependents of ``name`` as candidates for a range update.

    Args:
        select_all: Initial selection for every candidate. None falls back
                    to UPM_CASCADE_SELECT_ALL.
    """
    if select_all is None:
        select_all = cascade_selects_all()
    return [CascadeCandidate(dep, select_all)
            for dep in registry.get_dependents(name)]


def apply_version_cascade(registry, name, new_version, candidates):
    """Update the selected candidates' dependency on ``name`` to ``new_version``.

    Returns:
        Records that were updated (and marked dirty).
    """
    targets = [c.record for c in candidates if c.selected]
    updated = registry.update_dependency_version(name, new_version, targets)
    if updated:
        logger.info("Updated %s -> %s in %d dependent(s)",
                    name, new_version, len(updated))
    return updated


# ---------------------------------------------------------------------------
# Module-level registry (one interactive session per process)
# ---------------------------------------------------------------------------

_registry = None


def get_registry():
    """Return the session registry, scanning the packages root on first use."""
    global _registry
    if _registry is None:
        _registry = scan_packages()
    return _registry


def rescan():
    global _registry
    _registry = scan_packages(registry=_registry)
    return _registry


def _reset_registry():
    global _registry
    _registry = None
