"""
Version arithmetic for dot-separated semantic versions.

Arithmetic only touches purely numeric components; a component carrying a
pre-release or build suffix (``"3-beta"``) is left as-is.
"""

import re

MAJOR = 0
MINOR = 1
PATCH = 2

_LEADING_DIGITS_RE = re.compile(r"^(\d+)", re.ASCII)


def _numeric(component):
    """Return the int value of a purely numeric component, else None."""
    if component.isascii() and component.isdigit():
        return int(component)
    return None


def increment_version(version, part=PATCH):
    """Add one to component ``part`` and zero every component after it.

    Versions with fewer than three components, and non-numeric target
    components, are returned unchanged.
    """
    parts = version.split('.')
    if len(parts) < 3 or not 0 <= part < len(parts):
        return version

    num = _numeric(parts[part])
    if num is None:
        return version

    parts[part] = str(num + 1)
    for i in range(part + 1, len(parts)):
        parts[i] = '0'
    return '.'.join(parts)


def decrement_version(version, part=PATCH):
    """Subtract one from component ``part``, never going below zero.

    No borrowing: ``1.0.0`` decremented at the patch index stays ``1.0.0``.
    """
    parts = version.split('.')
    if len(parts) < 3 or not 0 <= part < len(parts):
        return version

    num = _numeric(parts[part])
    if num is None or num == 0:
        return version

    parts[part] = str(num - 1)
    return '.'.join(parts)


def _component_value(component):
    m = _LEADING_DIGITS_RE.match(component.strip())
    return int(m.group(1)) if m else 0


def version_sort_key(version):
    """Tuple of integer components, trailing zeros stripped.

    Missing trailing components compare equal to zero, so ``1.2`` and
    ``1.2.0`` produce the same key.
    """
    if not version:
        return ()
    values = [_component_value(c) for c in version.split('.')]
    while values and values[-1] == 0:
        values.pop()
    return tuple(values)


def compare_versions(a, b):
    """Compare two versions left-to-right as integers. Returns -1, 0 or 1."""
    ka, kb = version_sort_key(a), version_sort_key(b)
    if ka < kb:
        return -1
    if ka > kb:
        return 1
    return 0

