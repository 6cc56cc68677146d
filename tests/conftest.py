"""
Shared test fixtures for the UPM Manager test suite.

  - packages_root: a Packages/ directory with three local packages, a
    cached registry copy (skipped by scans) and a folder without a manifest
  - registry: PackageRegistry scanned from packages_root
  - client / admin_client: TestClient wired to packages_root
"""

import os

import pytest

import upm_manager_core as upm_core
from upm_manager import app as app_module
from upm_manager.app import app


CORE_MANIFEST = """{
    "name": "com.acme.core",
    "displayName": "Acme Core",
    "version": "1.0.0",
    "unity": "2021.3",
    "description": "Core runtime",
    "license": "MIT",
    "keywords": ["core", "runtime"],
    "author": {"name": "Acme", "email": "dev@acme.test"},
    "dependencies": {}
}
"""

UI_MANIFEST = """{
    "name": "com.acme.ui",
    "displayName": "Acme UI",
    "version": "1.0.0",
    "unity": "2021.3",
    "description": "UI widgets",
    "dependencies": {
        "com.acme.core": "1.0.0",
        "com.unity.textmeshpro": "3.0.6"
    }
}
"""

TOOL_MANIFEST = """{
    "name": "org.other.tool",
    "displayName": "Other Tool",
    "version": "0.3.1",
    "unity": "2022.1",
    "description": "Editor tool",
    "dependencies": {"com.acme.ui": "1.0.0"}
}
"""

CORE_CHANGELOG = """# Changelog

All notable changes to this package.

## [1.0.0] - 2024-01-15

### Added
- Initial release

### Fixed
- Null reference on startup
"""


def write_package(root, dir_name, manifest_text, changelog_text=None):
    """Create ``root/dir_name`` with a package.json (and optional CHANGELOG.md)."""
    pkg_dir = os.path.join(str(root), dir_name)
    os.makedirs(pkg_dir, exist_ok=True)
    with open(os.path.join(pkg_dir, 'package.json'), 'w', encoding='utf-8') as f:
        f.write(manifest_text)
    if changelog_text is not None:
        with open(os.path.join(pkg_dir, 'CHANGELOG.md'), 'w', encoding='utf-8') as f:
            f.write(changelog_text)
    return pkg_dir


@pytest.fixture
def packages_root(tmp_path):
    root = tmp_path / "Packages"
    root.mkdir()
    write_package(root, 'com.acme.core', CORE_MANIFEST, CORE_CHANGELOG)
    write_package(root, 'com.acme.ui', UI_MANIFEST)
    write_package(root, 'org.other.tool', TOOL_MANIFEST)
    # Cached registry copy, skipped by scans
    write_package(root, 'com.unity.textmeshpro@3.0.6',
                  '{"name": "com.unity.textmeshpro", "version": "3.0.6"}')
    (root / "Docs").mkdir()
    return str(root)


@pytest.fixture
def registry(packages_root):
    return upm_core.scan_packages(packages_root)


@pytest.fixture
def client(packages_root):
    from starlette.testclient import TestClient
    upm_core._set_packages_root_for_testing(packages_root)
    upm_core._reset_registry()
    app_module._set_upm_mode('viewer')
    with TestClient(app) as c:
        yield c
    upm_core._reset_registry()
    upm_core._reset_packages_root()


@pytest.fixture
def admin_client(client):
    app_module._set_upm_mode('admin')
    yield client
    app_module._set_upm_mode('viewer')
