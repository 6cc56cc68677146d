"""
registry.py — loaded package records and the derived dependency graph

PackageRegistry owns every PackageRecord in discovery order and derives
three indices from them:

  - forward graph:  name -> names it depends on (declared order)
  - reverse graph:  name -> names depending on it (record order)
  - scope groups:   scope -> records whose name falls in that scope

The indices are only valid while the registry is FRESH. Structural
mutations made through the registry (add, rename, dependency edits) move
it to STALE, and the next graph query rebuilds once. Code that edits a
manifest directly must call invalidate().
"""

import itertools
import logging
from enum import Enum

logger = logging.getLogger(__name__)


class RegistryState(str, Enum):
    FRESH = 'fresh'
    STALE = 'stale'


def extract_scope(package_name):
    """First two dot-separated segments of a name.

    'com.acme.tools' -> 'com.acme', 'standalone' -> 'standalone', '' -> ''.
    """
    if not package_name:
        return ''
    parts = package_name.split('.')
    return f'{parts[0]}.{parts[1]}' if len(parts) >= 2 else package_name


class PackageRegistry:
    """In-memory package cache with forward/reverse dependency graphs."""

    def __init__(self):
        self._records = []
        self._by_name = {}
        self._by_key = {}
        self._keys = itertools.count()
        self._dependency_graph = {}
        self._reverse_dependencies = {}
        self._scope_groups = {}
        self._state = RegistryState.FRESH

    # -- state -------------------------------------------------------------

    @property
    def state(self):
        return self._state

    def invalidate(self):
        """Mark derived indices stale; they are rebuilt on the next query."""
        self._state = RegistryState.STALE

    def _ensure_fresh(self):
        if self._state is RegistryState.STALE:
            self.build_graphs()

    # -- records -----------------------------------------------------------

    @property
    def packages(self):
        return list(self._records)

    def __len__(self):
        return len(self._records)

    def __iter__(self):
        return iter(list(self._records))

    def add_package(self, record):
        """Register a record; a later record with the same name wins the name index."""
        record.key = next(self._keys)
        self._records.append(record)
        self._by_key[record.key] = record
        if record.name:
            previous = self._by_name.get(record.name)
            if previous is not None:
                logger.warning("Duplicate package name %s (%s replaces %s)",
                               record.name, record.path, previous.path)
            self._by_name[record.name] = record
        self.invalidate()
        return record

    def remove_package(self, key):
        record = self._by_key.pop(key, None)
        if record is None:
            return None
        self._records.remove(record)
        self._reindex_names()
        self.invalidate()
        return record

    def get_package(self, name):
        return self._by_name.get(name)

    def get_record(self, key):
        return self._by_key.get(key)

    def get_selected_packages(self):
        return [r for r in self._records if r.selected]

    def get_dirty_packages(self):
        return [r for r in self._records if r.dirty]

    def select(self, key, selected=True):
        record = self._by_key.get(key)
        if record is not None:
            record.selected = selected
        return record

    def clear(self):
        self._records.clear()
        self._by_name.clear()
        self._by_key.clear()
        self._dependency_graph.clear()
        self._reverse_dependencies.clear()
        self._scope_groups.clear()
        self._state = RegistryState.FRESH

    def _reindex_names(self):
        self._by_name = {r.name: r for r in self._records if r.name}

    # -- edits that change graph structure ---------------------------------

    def rename_package(self, key, new_name):
        record = self._by_key.get(key)
        if record is None:
            return None
        record.manifest.name = new_name
        record.mark_dirty()
        self._reindex_names()
        self.invalidate()
        return record

    def replace_manifest(self, key, manifest):
        """Swap in a freshly loaded manifest; the record is clean afterwards."""
        record = self._by_key.get(key)
        if record is None:
            return None
        record.manifest = manifest
        record.clear_dirty()
        self._reindex_names()
        self.invalidate()
        return record

    def set_dependency(self, key, dependency_name, version_range):
        record = self._by_key.get(key)
        if record is None:
            return None
        deps = record.manifest.dependencies
        if dependency_name not in deps:
            self.invalidate()
        deps[dependency_name] = version_range
        record.mark_dirty()
        return record

    def remove_dependency(self, key, dependency_name):
        record = self._by_key.get(key)
        if record is None or dependency_name not in record.manifest.dependencies:
            return None
        del record.manifest.dependencies[dependency_name]
        record.mark_dirty()
        self.invalidate()
        return record

    def update_dependency_version(self, dependency_name, new_version, targets):
        """Point every target's dependency on ``dependency_name`` at ``new_version``.

        Targets that do not declare the dependency are left alone. Only the
        version-range string changes, so the graph indices stay valid.

        Returns:
            List of records that were updated.
        """
        updated = []
        for record in targets:
            deps = record.manifest.dependencies
            if dependency_name in deps:
                deps[dependency_name] = new_version
                record.mark_dirty()
                updated.append(record)
        return updated

    # -- derived indices ---------------------------------------------------

    def build_graphs(self):
        """Recompute forward/reverse graphs and scope groups in one pass."""
        self._dependency_graph.clear()
        self._reverse_dependencies.clear()
        self._scope_groups.clear()

        for record in self._records:
            name = record.name
            if not name:
                continue

            deps = list(record.manifest.dependencies)
            self._dependency_graph[name] = deps

            for dep in deps:
                self._reverse_dependencies.setdefault(dep, []).append(name)

            self._scope_groups.setdefault(extract_scope(name), []).append(record)

        self._state = RegistryState.FRESH
        logger.debug("Rebuilt dependency graph: %d package(s), %d scope(s)",
                     len(self._dependency_graph), len(self._scope_groups))

    @property
    def dependency_graph(self):
        self._ensure_fresh()
        return {k: list(v) for k, v in self._dependency_graph.items()}

    @property
    def reverse_dependencies(self):
        self._ensure_fresh()
        return {k: list(v) for k, v in self._reverse_dependencies.items()}

    @property
    def scope_groups(self):
        self._ensure_fresh()
        return {k: list(v) for k, v in self._scope_groups.items()}

    def dependency_names(self, name):
        self._ensure_fresh()
        return list(self._dependency_graph.get(name, []))

    def dependent_names(self, name):
        self._ensure_fresh()
        return list(self._reverse_dependencies.get(name, []))

    def _resolve(self, names):
        return [self._by_name[n] for n in names if n in self._by_name]

    def get_dependencies(self, name):
        """Loaded records that ``name`` depends on; external names are omitted."""
        return self._resolve(self.dependency_names(name))

    def get_dependents(self, name):
        """Loaded records that depend on ``name``."""
        return self._resolve(self.dependent_names(name))

    def sorted_scopes(self):
        self._ensure_fresh()
        return sorted(self._scope_groups)

    extract_scope = staticmethod(extract_scope)
