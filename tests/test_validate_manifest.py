"""
Tests for the package.json validator (core module and scripts/validate_manifest.py).
"""

import os
import sys

import pytest

from upm_manager_core import (
    PackageManifest, validate_manifest, validate_package_dir,
    is_valid_package_name, is_valid_version,
)

from conftest import write_package, CORE_MANIFEST

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), 'scripts'))
import validate_manifest as validate_script  # noqa: E402


def _valid(**overrides):
    fields = dict(name='com.acme.core', display_name='Acme Core', version='1.0.0',
                  unity='2021.3', description='Core runtime')
    fields.update(overrides)
    return PackageManifest(**fields)


class TestPackageName:
    @pytest.mark.parametrize('name', [
        'com.acme.core', 'com.acme', 'org.my-company.tool-kit', 'a1.b2.c3',
    ])
    def test_valid(self, name):
        assert is_valid_package_name(name)

    @pytest.mark.parametrize('name', [
        '', 'Com.Acme.Core', 'standalone', 'com..acme', '1com.acme',
        'com.acme.', 'com.acme_core',
    ])
    def test_invalid(self, name):
        assert not is_valid_package_name(name)

    def test_messages(self):
        assert validate_manifest(_valid(name=''))[0] == ["Package name cannot be empty"]
        assert validate_manifest(_valid(name='Com.Acme'))[0] == ["Package name must be lowercase"]
        assert validate_manifest(_valid(name='acme'))[0] == [
            "Package name must follow reverse domain notation (e.g., com.company.package)"]


class TestVersion:
    @pytest.mark.parametrize('version', [
        '', '0.0.0', '1.2.3', '1.2.3-preview.1', '1.2.3+build.7', '10.0.0-rc.1+exp',
    ])
    def test_valid(self, version):
        assert is_valid_version(version)

    @pytest.mark.parametrize('version', ['1.2', 'v1.2.3', '1.2.3.4', 'abc', '1.2.3-'])
    def test_invalid(self, version):
        assert not is_valid_version(version)


class TestValidateManifest:
    def test_clean_manifest(self):
        assert validate_manifest(_valid()) == ([], [])

    def test_missing_metadata_warnings(self):
        errors, warnings = validate_manifest(_valid(display_name='', unity='', description=''))
        assert errors == []
        assert warnings == ["Display name is empty", "Unity version is not specified",
                            "Description is empty"]

    def test_bad_version_is_error(self):
        errors, _ = validate_manifest(_valid(version='1.0'))
        assert errors == ["Version must follow semantic versioning (e.g., 1.0.0)"]

    def test_dependency_checks(self):
        m = _valid(dependencies={'': '1.0.0', 'com.acme.base': '', 'com.acme.core': '1.0.0'})
        errors, warnings = validate_manifest(m)
        assert "Dependency with empty name" in errors
        assert "Package 'com.acme.core' depends on itself" in errors
        assert "Dependency 'com.acme.base' has no version" in warnings

    def test_validate_package_dir(self, tmp_path):
        pkg = write_package(tmp_path, 'com.acme.core', CORE_MANIFEST)
        assert validate_package_dir(pkg) == ([], [])

    def test_validate_package_dir_missing_manifest(self, tmp_path):
        errors, warnings = validate_package_dir(str(tmp_path))
        assert errors == [f"No readable package.json in {tmp_path}"]
        assert warnings == []


class TestValidateScript:
    """Tests for scripts/validate_manifest.py"""

    def test_no_arguments_is_usage_error(self, capsys):
        assert validate_script.main([]) == 2
        assert 'Usage' in capsys.readouterr().err

    def test_clean_package_exits_zero(self, tmp_path, capsys):
        pkg = write_package(tmp_path, 'com.acme.core', CORE_MANIFEST)
        assert validate_script.main([pkg]) == 0
        assert 'OK' in capsys.readouterr().out

    def test_warnings_do_not_fail(self, tmp_path, capsys):
        pkg = write_package(tmp_path, 'com.acme.bare', '{"name": "com.acme.bare", "version": "1.0.0"}')
        assert validate_script.main([pkg]) == 0
        assert 'WARNING: Description is empty' in capsys.readouterr().out

    def test_errors_exit_one(self, tmp_path, capsys):
        pkg = write_package(tmp_path, 'Bad', '{"name": "Bad.Name", "version": "x"}')
        assert validate_script.main([pkg]) == 1
        out = capsys.readouterr().out
        assert 'ERROR: Package name must be lowercase' in out
        assert 'ERROR: Version must follow semantic versioning' in out
