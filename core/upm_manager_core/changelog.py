"""
changelog.py — CHANGELOG.md reader/writer ("Keep a Changelog" subset)

Recognized layout::

    # Title
    free-text description
    ## [1.2.0] - 2024-05-01
    ### Added
    - entry

Parsing is a single forward pass over trimmed, non-blank lines. Lines that
do not match anything are skipped, and an unreadable file yields an empty
document.
"""

import logging
import os
import re

from .models import (
    ChangelogCategory, ChangelogDocument, ChangelogEntry, ChangelogVersion,
    CATEGORY_ORDER, CHANGELOG_FILENAME,
)

logger = logging.getLogger(__name__)

VERSION_HEADER_RE = re.compile(
    r'^##\s*\[?(\d+\.\d+\.\d+(?:-[\w.]+)?)\]?\s*(?:-\s*)?(\d{4}-\d{2}-\d{2})?')
CATEGORY_HEADER_RE = re.compile(r'^###\s*(\w+)')
ENTRY_RE = re.compile(r'^[-*]\s*(.+)')

_CATEGORY_LOOKUP = {c.value.lower(): c for c in ChangelogCategory}


def parse_category(text):
    """Case-insensitive category lookup; unknown text maps to Added."""
    return _CATEGORY_LOOKUP.get(text.strip().lower(), ChangelogCategory.ADDED)


def parse_changelog(lines):
    """Parse changelog text (a string or an iterable of lines)."""
    if isinstance(lines, str):
        lines = lines.splitlines()

    doc = ChangelogDocument()
    description = []
    current = None
    category = ChangelogCategory.ADDED

    for line in lines:
        trimmed = line.strip()
        if not trimmed:
            continue

        if trimmed.startswith('# ') and not doc.versions:
            doc.title = trimmed[2:].strip()
            continue

        m = VERSION_HEADER_RE.match(trimmed)
        if m:
            current = ChangelogVersion(version=m.group(1), date=m.group(2) or '')
            doc.versions.append(current)
            category = ChangelogCategory.ADDED
            continue

        m = CATEGORY_HEADER_RE.match(trimmed)
        if m:
            category = parse_category(m.group(1))
            continue

        m = ENTRY_RE.match(trimmed)
        if m:
            if current is not None:
                current.entries.append(ChangelogEntry(category, m.group(1).strip()))
            continue

        if current is None:
            description.append(trimmed)

    doc.description = '\n'.join(description)
    return doc


def serialize_changelog(doc):
    """Render a ChangelogDocument as Markdown.

    Entries are grouped by category in CATEGORY_ORDER; empty categories
    are left out.
    """
    out = [f'# {doc.title}', '']

    if doc.description:
        out += [doc.description, '']

    for section in doc.versions:
        if section.date:
            out.append(f'## [{section.version}] - {section.date}')
        else:
            out.append(f'## [{section.version}]')
        out.append('')

        for category in CATEGORY_ORDER:
            descriptions = section.entries_for(category)
            if not descriptions:
                continue
            out.append(f'### {category.value}')
            out += [f'- {d}' for d in descriptions]
            out.append('')

    return '\n'.join(out) + '\n'


def changelog_path(directory):
    return os.path.join(os.path.abspath(directory), CHANGELOG_FILENAME)


def read_changelog(path):
    """Read and parse a CHANGELOG.md file.

    Returns an empty document when the file is missing or unreadable.
    """
    if not os.path.isfile(path):
        return ChangelogDocument()
    try:
        with open(path, 'r', encoding='utf-8-sig') as f:
            lines = f.readlines()
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Failed to read changelog %s: %s", path, e)
        return ChangelogDocument()
    return parse_changelog(lines)


def write_changelog(path, doc):
    """Write a changelog document. Returns True on success."""
    text = serialize_changelog(doc)
    try:
        with open(path, 'w', encoding='utf-8', newline='\n') as f:
            f.write(text)
        return True
    except OSError as e:
        logger.error("Failed to write changelog %s: %s", path, e)
        return False
