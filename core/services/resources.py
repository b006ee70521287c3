"""
Generic resource engine.

Uniform list/get/create/update/delete over every registered collection,
plus the collection-specific query conveniences layered on ``list``.
Creates and updates go through the collection's hook (see
:mod:`core.services.hooks`): the hook's fields are written first, then its
audit entry is appended and its notification handed to the push
dispatcher without waiting for delivery.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from django.db.models import Q
from rest_framework.exceptions import MethodNotAllowed, NotFound, PermissionDenied, ValidationError

from core.permissions import ADMIN_ROLES
from core.services import audit, push
from core.services.hooks import HookOutcome, hook_for
from core.services.registry import APPEND_ONLY, get_collection
from core.services.store import clean_fields

SEARCH_LIMIT = 50
DEFAULT_THRESHOLD = 10

# Never leaves the server, whatever the endpoint.
PRIVATE_FIELDS = {'users': ('password_hash', 'password')}

# Only an admin may set these through the generic routes.
PRIVILEGED_FIELDS = {'users': ('role', 'email_confirmed', 'status')}


def public(collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
    hidden = PRIVATE_FIELDS.get(collection)
    if not hidden:
        return record
    return {k: v for k, v in record.items() if k not in hidden}


def ensure_writable(collection: str, method: str) -> None:
    if collection in APPEND_ONLY:
        raise MethodNotAllowed(method, detail=f'{collection} is append-only')


def ensure_privileged(collection: str, data: Any, role: Optional[str]) -> None:
    guarded = PRIVILEGED_FIELDS.get(collection)
    if not guarded or role in ADMIN_ROLES or not isinstance(data, dict):
        return
    touched = [key for key in guarded if key in data]
    if touched:
        raise PermissionDenied(f"only an admin may set {', '.join(touched)}")


def parse_limit(raw: Any) -> int:
    try:
        return max(0, int(raw))
    except (TypeError, ValueError):
        return 0


def _apply_side_effects(outcome: HookOutcome) -> None:
    if outcome.audit is not None:
        target, entry = outcome.audit
        audit.append_entry(target, entry)
    if outcome.notification is not None:
        push.dispatch_detached(outcome.notification)


# ---------------------------------------------------------------------
# Uniform operations
# ---------------------------------------------------------------------
def list_records(collection: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    """List with exact-match filters; ``_sort`` and ``_limit`` are control keys."""
    filters = dict(params or {})
    sort = filters.pop('_sort', None)
    limit = parse_limit(filters.pop('_limit', None))
    rows = get_collection(collection).find(filters, sort=sort, limit=limit, loose=True)
    return [public(collection, r) for r in rows]


def get_record(collection: str, pk: str) -> Dict[str, Any]:
    record = get_collection(collection).find_by_id(pk)
    if record is None:
        raise NotFound(f'{collection} record not found')
    return public(collection, record)


def create_record(collection: str, data: Any, actor: Optional[str] = None) -> Dict[str, Any]:
    store = get_collection(collection)
    outcome = hook_for(collection).on_create(clean_fields(data), actor or 'system')
    record = store.insert(outcome.fields)
    _apply_side_effects(outcome)
    return public(collection, record)


def update_record(collection: str, pk: str, data: Any, actor: Optional[str] = None) -> Dict[str, Any]:
    """Merge ``data`` into an existing record, running the collection's hook."""
    store = get_collection(collection)
    patch = clean_fields(data)
    before = store.find_by_id(pk)
    if before is None:
        raise NotFound(f'{collection} record not found')
    outcome = hook_for(collection).on_update(before, patch, actor or 'system')
    record = store.update_by_id(pk, outcome.fields)
    if record is None:
        # deleted between the read and the write
        raise NotFound(f'{collection} record not found')
    _apply_side_effects(outcome)
    return public(collection, record)


def delete_record(collection: str, pk: str) -> None:
    get_collection(collection).delete_by_id(pk)


# ---------------------------------------------------------------------
# Conveniences
# ---------------------------------------------------------------------
def bulk_create(collection: str, rows: Any, actor: Optional[str] = None) -> List[Dict[str, Any]]:
    if not isinstance(rows, list):
        raise ValidationError({'detail': 'bulk insert expects a JSON array of records'})
    hook = hook_for(collection)
    outcomes = [hook.on_create(clean_fields(row), actor or 'system') for row in rows]
    records = get_collection(collection).bulk_insert([o.fields for o in outcomes])
    for outcome in outcomes:
        _apply_side_effects(outcome)
    return [public(collection, r) for r in records]


def search_by_name(collection: str, name: Optional[str], fields: Sequence[str] = ('first_name', 'last_name'),
                   limit: int = SEARCH_LIMIT) -> List[Dict[str, Any]]:
    """Case-insensitive substring match on any of ``fields``."""
    name = (name or '').strip()
    if not name:
        return []
    where = Q()
    for field in fields:
        where |= Q(**{f'fields__{field}__icontains': name})
    rows = get_collection(collection).find(where=where, limit=limit)
    return [public(collection, r) for r in rows]


def list_by_field(collection: str, field: str, value: Any, sort: Optional[str] = None) -> List[Dict[str, Any]]:
    rows = get_collection(collection).find({field: value}, sort=sort, loose=True)
    return [public(collection, r) for r in rows]


def parse_threshold(raw: Any, default: int = DEFAULT_THRESHOLD) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value or default


def list_at_most(collection: str, field: str, threshold: int) -> List[Dict[str, Any]]:
    rows = get_collection(collection).find(where=Q(**{f'fields__{field}__lte': threshold}))
    return [public(collection, r) for r in rows]
