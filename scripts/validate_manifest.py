#!/usr/bin/env python3
"""
Manifest Validator / Linter for package.json — CLI wrapper.

Validation logic lives in upm_manager_core.validate_manifest.

Usage:
  python scripts/validate_manifest.py Packages/com.acme.core
  python scripts/validate_manifest.py Packages/*
  # exit code 0: no errors (warnings only), 1: errors found, 2: usage
"""

import sys

from upm_manager_core import validate_package_dir


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print("Usage: python validate_manifest.py <package_dir> [...]", file=sys.stderr)
        return 2

    total_errors = 0
    total_warnings = 0
    for package_dir in argv:
        errors, warnings = validate_package_dir(package_dir)
        print(package_dir)
        for w in warnings:
            print(f"  WARNING: {w}")
        for e in errors:
            print(f"  ERROR: {e}")
        total_errors += len(errors)
        total_warnings += len(warnings)

    if total_errors:
        print(f"\n{total_errors} error(s), {total_warnings} warning(s)")
        return 1
    print(f"\nOK — {total_warnings} warning(s), 0 errors")
    return 0


if __name__ == '__main__':
    sys.exit(main())
