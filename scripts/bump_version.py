#!/usr/bin/env python3
"""
Version bump for a local package

Increments one component of a package's version, opens a changelog
section for the new version and points every selected dependent at it:

  Packages/com.acme.core/package.json   version 1.0.0 -> 1.1.0
  Packages/com.acme.core/CHANGELOG.md   ## [1.1.0] - <today>
  Packages/com.acme.ui/package.json     "com.acme.core": "1.1.0"

Usage:
  python scripts/bump_version.py com.acme.core --part minor
  python scripts/bump_version.py com.acme.core -e "Fixed: crash on load"
  python scripts/bump_version.py com.acme.core --no-cascade
  python scripts/bump_version.py com.acme.core --dry-run
"""

import argparse
import logging
import sys

from upm_manager_core import (
    ChangelogCategory, PackageNotFoundError, MAJOR, MINOR, PATCH,
    scan_packages, require_package, bump_version, start_changelog_section,
    plan_version_cascade, apply_version_cascade, save_package, save_changelog,
)
from upm_manager_core.changelog import parse_category

PARTS = {'major': MAJOR, 'minor': MINOR, 'patch': PATCH}


def parse_entry(text):
    """'Fixed: crash on load' -> (FIXED, 'crash on load'). No prefix means Added."""
    head, sep, tail = text.partition(':')
    if sep and head.strip().lower() in {c.value.lower() for c in ChangelogCategory}:
        return parse_category(head), tail.strip()
    return ChangelogCategory.ADDED, text.strip()


def run(args):
    registry = scan_packages(args.packages)
    try:
        record = require_package(registry, args.name)
    except PackageNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    old_version = record.version
    new_version = bump_version(record, PARTS[args.part])
    if new_version == old_version:
        print(f"Error: Cannot bump version '{old_version}' of {record.name}",
              file=sys.stderr)
        return 1

    entries = [parse_entry(e) for e in args.entry]
    select_all = False if args.no_cascade else None
    candidates = plan_version_cascade(registry, record.name, select_all=select_all)

    if args.dry_run:
        print("=== DRY RUN (no files will be written) ===")
        print()
    print(f"Package:   {record.name}")
    print(f"Version:   {old_version} -> {new_version}")
    for category, description in entries:
        print(f"  {category.value}: {description}")
    if candidates:
        print("Dependents:")
        for c in candidates:
            mark = 'x' if c.selected else ' '
            current = c.record.manifest.dependencies.get(record.name, '')
            print(f"  [{mark}] {c.record.name} ({current})")
    if args.dry_run:
        return 0

    section = start_changelog_section(record, new_version, args.date)
    for category, description in entries:
        section.add_entry(category, description)

    result = save_package(record, validate=not args.skip_validation)
    if not result.ok:
        print(f"Error: {result.message}", file=sys.stderr)
        for e in result.errors:
            print(f"  ERROR: {e}", file=sys.stderr)
        return 1
    if not save_changelog(record):
        print(f"Warning: changelog for {record.name} was not written", file=sys.stderr)

    failed = 0
    for dependent in apply_version_cascade(registry, record.name, new_version, candidates):
        if save_package(dependent).ok:
            print(f"Updated {dependent.name}")
        else:
            failed += 1
            print(f"Error: could not save {dependent.name}", file=sys.stderr)

    print(f"Bumped {record.name} to {new_version}")
    return 1 if failed else 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Bump a package version and update its dependents')
    parser.add_argument('name', help='Package name (e.g. com.acme.core)')
    parser.add_argument(
        '--packages', default=None,
        help='Packages root directory (default: $UPM_PACKAGES_PATH or Packages)')
    parser.add_argument(
        '--part', choices=sorted(PARTS), default='patch',
        help='Version component to increment (default: patch)')
    parser.add_argument(
        '-e', '--entry', action='append', default=[],
        help='Changelog entry, optionally prefixed with a category ("Fixed: ...")')
    parser.add_argument(
        '--date', default=None,
        help='Changelog date YYYY-MM-DD (default: today)')
    parser.add_argument(
        '--no-cascade', action='store_true',
        help='Do not update dependents')
    parser.add_argument(
        '--skip-validation', action='store_true',
        help='Save even if the manifest has validation errors')
    parser.add_argument(
        '--dry-run', action='store_true',
        help='Preview without writing files')
    parser.add_argument('-v', '--verbose', action='store_true')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')
    return run(args)


if __name__ == '__main__':
    sys.exit(main())
