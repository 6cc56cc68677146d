"""
UPM Manager Web Interface
FastAPI application exposing the package registry query surface
"""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Optional
import logging
import os

logger = logging.getLogger(__name__)

from upm_manager_core import (
    PackageNotFoundError, MAJOR, MINOR, PATCH,
    get_registry, rescan, require_package, validate_manifest,
    bump_version, plan_version_cascade, apply_version_cascade, save_package,
)
from upm_manager import __version__ as MANAGER_VERSION

app = FastAPI(title="UPM Manager", version=MANAGER_VERSION)

# Admin/Viewer mode, set via UPM_MODE env var or _set_upm_mode()
UPM_MODE = os.environ.get('UPM_MODE', 'viewer')


def _set_upm_mode(mode: str):
    """Set the server mode (for testing)."""
    global UPM_MODE
    UPM_MODE = mode


def _require_admin():
    """Raise 403 if not in admin mode."""
    if UPM_MODE != 'admin':
        raise HTTPException(status_code=403, detail="Admin mode required")


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

_PARTS = {'major': MAJOR, 'minor': MINOR, 'patch': PATCH}


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------

class PackageSummary(BaseModel):
    key: int
    name: str
    display_name: str
    version: str
    scope: str
    path: str
    selected: bool = False
    dirty: bool = False
    dependency_count: int = 0
    dependent_count: int = 0

class AuthorModel(BaseModel):
    name: str = ""
    email: str = ""
    url: str = ""

class SampleModel(BaseModel):
    display_name: str = ""
    description: str = ""
    path: str = ""

class PackageDetail(PackageSummary):
    unity: str = ""
    description: str = ""
    license: str = ""
    documentation_url: str = ""
    changelog_url: str = ""
    licenses_url: str = ""
    keywords: list[str] = []
    author: AuthorModel = AuthorModel()
    dependencies: dict[str, str] = {}
    hide_in_editor: bool = False
    samples: list[SampleModel] = []
    original_version: str = ""
    has_changelog: bool = False

class ChangelogEntryModel(BaseModel):
    category: str
    description: str

class ChangelogVersionModel(BaseModel):
    version: str
    date: str = ""
    entries: list[ChangelogEntryModel] = []

class ChangelogModel(BaseModel):
    title: str
    description: str = ""
    versions: list[ChangelogVersionModel] = []

class ScopeItem(BaseModel):
    scope: str
    packages: list[str]

class ValidationResponse(BaseModel):
    name: str
    is_valid: bool
    errors: list[str]
    warnings: list[str]

class BumpRequest(BaseModel):
    part: str = 'patch'
    decrement: bool = False

class BumpResponse(BaseModel):
    name: str
    old_version: str
    new_version: str
    dirty: bool

class CascadeRequest(BaseModel):
    new_version: Optional[str] = None
    packages: Optional[list[str]] = None   # None = UPM_CASCADE_SELECT_ALL default

class CascadeResponse(BaseModel):
    name: str
    new_version: str
    updated: list[str]

class SaveResponse(BaseModel):
    name: str
    ok: bool
    message: str
    errors: list[str] = []
    warnings: list[str] = []
    dependents: list[str] = []

class RescanResponse(BaseModel):
    package_count: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _get_record(name):
    try:
        return require_package(get_registry(), name)
    except PackageNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _summary(record, registry):
    return {
        'key': record.key,
        'name': record.name,
        'display_name': record.display_name,
        'version': record.version,
        'scope': registry.extract_scope(record.name),
        'path': record.path,
        'selected': record.selected,
        'dirty': record.dirty,
        'dependency_count': len(record.manifest.dependencies),
        'dependent_count': len(registry.dependent_names(record.name)),
    }


def _detail(record, registry):
    m = record.manifest
    data = _summary(record, registry)
    data.update({
        'unity': m.unity,
        'description': m.description,
        'license': m.license,
        'documentation_url': m.documentation_url,
        'changelog_url': m.changelog_url,
        'licenses_url': m.licenses_url,
        'keywords': list(m.keywords),
        'author': {'name': m.author.name, 'email': m.author.email, 'url': m.author.url},
        'dependencies': dict(m.dependencies),
        'hide_in_editor': m.hide_in_editor,
        'samples': [{'display_name': s.display_name, 'description': s.description,
                     'path': s.path} for s in m.samples],
        'original_version': record.original_version,
        'has_changelog': record.changelog is not None,
    })
    return data


# ---------------------------------------------------------------------------
# Query routes
# ---------------------------------------------------------------------------

@app.get('/api/packages', response_model=list[PackageSummary])
def api_packages(scope: Optional[str] = None):
    registry = get_registry()
    records = registry.packages
    if scope is not None:
        records = [r for r in records if registry.extract_scope(r.name) == scope]
    return [_summary(r, registry) for r in records]


@app.get('/api/packages/{name}', response_model=PackageDetail)
def api_package_detail(name: str):
    return _detail(_get_record(name), get_registry())


@app.get('/api/packages/{name}/dependencies', response_model=list[PackageSummary])
def api_package_dependencies(name: str):
    record = _get_record(name)
    registry = get_registry()
    return [_summary(r, registry) for r in registry.get_dependencies(record.name)]


@app.get('/api/packages/{name}/dependents', response_model=list[PackageSummary])
def api_package_dependents(name: str):
    record = _get_record(name)
    registry = get_registry()
    return [_summary(r, registry) for r in registry.get_dependents(record.name)]


@app.get('/api/packages/{name}/changelog', response_model=ChangelogModel)
def api_package_changelog(name: str):
    record = _get_record(name)
    doc = record.changelog
    if doc is None:
        raise HTTPException(status_code=404, detail=f"No changelog for {name}")
    return {
        'title': doc.title,
        'description': doc.description,
        'versions': [{
            'version': v.version,
            'date': v.date,
            'entries': [{'category': e.category.value, 'description': e.description}
                        for e in v.entries],
        } for v in doc.versions],
    }


@app.get('/api/packages/{name}/validate', response_model=ValidationResponse)
def api_package_validate(name: str):
    record = _get_record(name)
    errors, warnings = validate_manifest(record.manifest)
    return {'name': record.name, 'is_valid': not errors,
            'errors': errors, 'warnings': warnings}


@app.get('/api/scopes', response_model=list[ScopeItem])
def api_scopes():
    registry = get_registry()
    groups = registry.scope_groups
    return [{'scope': s, 'packages': [r.name for r in groups[s]]}
            for s in registry.sorted_scopes()]


@app.get('/api/dirty', response_model=list[str])
def api_dirty():
    return [r.name for r in get_registry().get_dirty_packages()]


# ---------------------------------------------------------------------------
# Admin routes
# ---------------------------------------------------------------------------

@app.post('/api/packages/{name}/bump', response_model=BumpResponse)
def api_package_bump(name: str, body: BumpRequest):
    _require_admin()
    record = _get_record(name)
    part = _PARTS.get(body.part.lower())
    if part is None:
        raise HTTPException(status_code=400,
                            detail=f"Invalid part '{body.part}' (major, minor, patch)")
    old = record.version
    new = bump_version(record, part, decrement=body.decrement)
    return {'name': record.name, 'old_version': old, 'new_version': new,
            'dirty': record.dirty}


@app.post('/api/packages/{name}/cascade', response_model=CascadeResponse)
def api_package_cascade(name: str, body: CascadeRequest):
    _require_admin()
    record = _get_record(name)
    registry = get_registry()
    new_version = body.new_version or record.version

    candidates = plan_version_cascade(registry, record.name,
                                      select_all=None if body.packages is None else False)
    if body.packages is not None:
        wanted = set(body.packages)
        for c in candidates:
            c.selected = c.record.name in wanted

    updated = apply_version_cascade(registry, record.name, new_version, candidates)
    return {'name': record.name, 'new_version': new_version,
            'updated': [r.name for r in updated]}


@app.post('/api/packages/{name}/save', response_model=SaveResponse)
def api_package_save(name: str, validate: bool = True):
    _require_admin()
    record = _get_record(name)
    version_changed = record.version_changed
    result = save_package(record, validate=validate)
    if not result.ok:
        status = 422 if result.errors else 500
        raise HTTPException(status_code=status, detail={
            'message': result.message, 'errors': result.errors})

    dependents = []
    if version_changed:
        dependents = [r.name for r in get_registry().get_dependents(record.name)]
    return {'name': record.name, 'ok': True, 'message': result.message,
            'errors': result.errors, 'warnings': result.warnings,
            'dependents': dependents}


@app.post('/api/rescan', response_model=RescanResponse)
def api_rescan():
    _require_admin()
    registry = rescan()
    logger.info("Rescanned packages: %d", len(registry))
    return {'package_count': len(registry)}
