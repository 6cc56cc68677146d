"""
Tests for scripts/bump_version.py
"""

import os
import sys

import pytest

from upm_manager_core import ChangelogCategory, read_manifest, read_changelog

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), 'scripts'))
from bump_version import main, parse_entry  # noqa: E402


def _manifest(root, name):
    return read_manifest(os.path.join(root, name))


class TestParseEntry:
    def test_category_prefix(self):
        assert parse_entry('Fixed: crash on load') == (ChangelogCategory.FIXED, 'crash on load')

    def test_prefix_case_insensitive(self):
        assert parse_entry('security:  patched') == (ChangelogCategory.SECURITY, 'patched')

    def test_no_prefix_is_added(self):
        assert parse_entry('New widget') == (ChangelogCategory.ADDED, 'New widget')

    def test_unknown_prefix_kept_in_text(self):
        assert parse_entry('Note: see docs') == (ChangelogCategory.ADDED, 'Note: see docs')


class TestBumpScript:
    def test_minor_bump_with_cascade(self, packages_root, capsys):
        rc = main(['com.acme.core', '--packages', packages_root, '--part', 'minor',
                   '-e', 'Fixed: crash on load', '-e', 'New widget',
                   '--date', '2024-06-01'])
        assert rc == 0

        assert _manifest(packages_root, 'com.acme.core').version == '1.1.0'
        ui = _manifest(packages_root, 'com.acme.ui')
        assert ui.dependencies['com.acme.core'] == '1.1.0'
        assert ui.version == '1.0.0'
        assert _manifest(packages_root, 'org.other.tool').dependencies == {'com.acme.ui': '1.0.0'}

        doc = read_changelog(os.path.join(packages_root, 'com.acme.core', 'CHANGELOG.md'))
        top = doc.versions[0]
        assert (top.version, top.date) == ('1.1.0', '2024-06-01')
        assert top.entries_for(ChangelogCategory.FIXED)[0].description == 'crash on load'
        assert top.entries_for(ChangelogCategory.ADDED)[0].description == 'New widget'
        assert doc.versions[1].version == '1.0.0'

        out = capsys.readouterr().out
        assert 'Updated com.acme.ui' in out
        assert 'Bumped com.acme.core to 1.1.0' in out

    def test_no_cascade(self, packages_root):
        assert main(['com.acme.core', '--packages', packages_root, '--no-cascade']) == 0
        assert _manifest(packages_root, 'com.acme.core').version == '1.0.1'
        assert _manifest(packages_root, 'com.acme.ui').dependencies['com.acme.core'] == '1.0.0'

    def test_creates_changelog_when_missing(self, packages_root):
        assert main(['org.other.tool', '--packages', packages_root, '--date', '2024-06-01']) == 0
        doc = read_changelog(os.path.join(packages_root, 'org.other.tool', 'CHANGELOG.md'))
        assert [v.version for v in doc.versions] == ['0.3.2']

    def test_dry_run_writes_nothing(self, packages_root, capsys):
        assert main(['com.acme.core', '--packages', packages_root, '--dry-run']) == 0
        assert _manifest(packages_root, 'com.acme.core').version == '1.0.0'
        out = capsys.readouterr().out
        assert 'DRY RUN' in out
        assert '[x] com.acme.ui (1.0.0)' in out

    def test_unknown_package(self, packages_root, capsys):
        assert main(['com.missing', '--packages', packages_root]) == 1
        assert 'Package not found: com.missing' in capsys.readouterr().err

    def test_unbumpable_version(self, packages_root, capsys):
        from conftest import write_package
        write_package(packages_root, 'com.acme.short',
                      '{"name": "com.acme.short", "version": "1.0"}')
        assert main(['com.acme.short', '--packages', packages_root]) == 1
        assert "Cannot bump version '1.0'" in capsys.readouterr().err

    def test_validation_blocks_save(self, packages_root, capsys):
        from conftest import write_package
        write_package(packages_root, 'com.acme.bad',
                      '{"name": "com.acme.bad", "version": "1.0.0", '
                      '"dependencies": {"com.acme.bad": "1.0.0"}}')
        assert main(['com.acme.bad', '--packages', packages_root]) == 1
        assert _manifest(packages_root, 'com.acme.bad').version == '1.0.0'
        assert main(['com.acme.bad', '--packages', packages_root, '--skip-validation']) == 0
        assert _manifest(packages_root, 'com.acme.bad').version == '1.0.1'

    def test_invalid_part_rejected_by_argparse(self, packages_root):
        with pytest.raises(SystemExit):
            main(['com.acme.core', '--packages', packages_root, '--part', 'huge'])
