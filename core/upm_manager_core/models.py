"""
Models — in-memory records for package manifests, changelogs and editor state.

Plain dataclasses shared by the codecs, the registry and the workspace
service. Nothing here touches the filesystem.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

PACKAGE_JSON_FILENAME = 'package.json'
CHANGELOG_FILENAME = 'CHANGELOG.md'

DEFAULT_VERSION = '1.0.0'
DEFAULT_UNITY_VERSION = '2021.3'
DEFAULT_CHANGELOG_TITLE = 'Changelog'


@dataclass
class AuthorInfo:
    name: str = ''
    email: str = ''
    url: str = ''

    def is_empty(self) -> bool:
        return not (self.name or self.email or self.url)


@dataclass
class SampleInfo:
    display_name: str = ''
    description: str = ''
    path: str = ''


@dataclass
class PackageManifest:
    """Contents of one package.json.

    Missing fields are zero values, so a manifest parsed from a partial
    document is always fully populated.
    """
    name: str = ''
    display_name: str = ''
    version: str = ''
    unity: str = ''            # minimum host editor version
    description: str = ''
    license: str = ''
    documentation_url: str = ''
    changelog_url: str = ''
    licenses_url: str = ''
    keywords: list[str] = field(default_factory=list)
    author: AuthorInfo = field(default_factory=AuthorInfo)
    dependencies: dict[str, str] = field(default_factory=dict)
    hide_in_editor: bool = False
    samples: list[SampleInfo] = field(default_factory=list)

    def clone(self) -> PackageManifest:
        return copy.deepcopy(self)


class ChangelogCategory(str, Enum):
    ADDED = 'Added'
    CHANGED = 'Changed'
    FIXED = 'Fixed'
    REMOVED = 'Removed'
    DEPRECATED = 'Deprecated'
    SECURITY = 'Security'


# Order in which categories are written inside a version section
CATEGORY_ORDER = (
    ChangelogCategory.ADDED,
    ChangelogCategory.CHANGED,
    ChangelogCategory.DEPRECATED,
    ChangelogCategory.REMOVED,
    ChangelogCategory.FIXED,
    ChangelogCategory.SECURITY,
)


@dataclass
class ChangelogEntry:
    category: ChangelogCategory = ChangelogCategory.ADDED
    description: str = ''


@dataclass
class ChangelogVersion:
    version: str = ''
    date: str = ''             # YYYY-MM-DD or empty
    entries: list[ChangelogEntry] = field(default_factory=list)

    def add_entry(self, category: ChangelogCategory, description: str) -> ChangelogEntry:
        entry = ChangelogEntry(category, description)
        self.entries.append(entry)
        return entry

    def entries_for(self, category: ChangelogCategory) -> list[str]:
        return [e.description for e in self.entries if e.category == category]


@dataclass
class ChangelogDocument:
    title: str = DEFAULT_CHANGELOG_TITLE
    description: str = ''
    versions: list[ChangelogVersion] = field(default_factory=list)

    def add_version(self, version: str, date_str: str | None = None) -> ChangelogVersion:
        """Insert a new version section at the top (newest first)."""
        section = ChangelogVersion(version, date_str if date_str is not None
                                   else date.today().strftime('%Y-%m-%d'))
        self.versions.insert(0, section)
        return section

    def get_version(self, version: str) -> ChangelogVersion | None:
        for section in self.versions:
            if section.version == version:
                return section
        return None


@dataclass(eq=False)
class PackageRecord:
    """A loaded package plus its editing state.

    ``key`` is assigned by PackageRegistry.add_package and is the identity
    used for selection and lookups; -1 means the record is not registered.
    """
    path: str
    manifest: PackageManifest
    changelog: ChangelogDocument | None = None
    selected: bool = False
    dirty: bool = False
    original_version: str = ''
    key: int = -1

    def __post_init__(self):
        if not self.original_version:
            self.original_version = self.manifest.version

    @property
    def name(self) -> str:
        return self.manifest.name

    @property
    def display_name(self) -> str:
        return self.manifest.display_name or self.name

    @property
    def version(self) -> str:
        return self.manifest.version

    @property
    def version_changed(self) -> bool:
        return self.manifest.version != self.original_version

    def mark_dirty(self):
        self.dirty = True

    def clear_dirty(self):
        self.dirty = False
        self.original_version = self.manifest.version

    def __repr__(self):
        return f"PackageRecord(key={self.key}, name={self.name!r}, path={self.path!r})"
