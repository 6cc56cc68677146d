"""upm_manager_core — pure-stdlib library for local package manifests."""

__version__ = "0.1.0"

from .models import (
    AuthorInfo, SampleInfo, PackageManifest,
    ChangelogCategory, ChangelogEntry, ChangelogVersion, ChangelogDocument,
    PackageRecord, CATEGORY_ORDER,
    PACKAGE_JSON_FILENAME, CHANGELOG_FILENAME, DEFAULT_VERSION, DEFAULT_UNITY_VERSION,
)
from .manifest import (
    parse_manifest, serialize_manifest, read_manifest, write_manifest,
    manifest_exists, create_default_manifest,
)
from .changelog import (
    parse_changelog, serialize_changelog, read_changelog, write_changelog,
)
from .versioning import (
    increment_version, decrement_version, compare_versions, version_sort_key,
    MAJOR, MINOR, PATCH,
)
from .registry import PackageRegistry, RegistryState, extract_scope
from .validate_manifest import (
    validate_manifest, validate_package_dir, is_valid_package_name,
    is_valid_version,
)
from .workspace import (
    UpmError, PackageNotFoundError, SaveResult, CascadeCandidate,
    scan_packages, load_package, refresh_package, require_package,
    save_package, save_changelog, save_all_dirty,
    bump_version, start_changelog_section,
    plan_version_cascade, apply_version_cascade,
    get_packages_root, get_registry, rescan,
    _set_packages_root_for_testing, _reset_packages_root, _reset_registry,
)
