"""
Resource registry.

Declares the fixed set of collections the API serves and hands out one
:class:`DocumentStore` handle per collection, created on first use.
"""
from __future__ import annotations

import threading
from typing import Dict

from rest_framework.exceptions import NotFound

from core.services.store import DocumentStore

COLLECTIONS = (
    'students',
    'teachers',
    'classes',
    'fees',
    'attendance',
    'marks',
    'dormitories',
    'rooms',
    'store_items',
    'users',
    'audit_logs',
    'item_requests',
    'assignment_logs',
    'occupancy_snapshots',
)

# Written only as a side effect of other operations; clients may read them.
APPEND_ONLY = frozenset({'audit_logs', 'assignment_logs', 'occupancy_snapshots'})

_handles: Dict[str, DocumentStore] = {}
_lock = threading.Lock()


def get_collection(name: str) -> DocumentStore:
    """Return the store handle for ``name`` (same object on every call)."""
    if name not in COLLECTIONS:
        raise NotFound(f'unknown collection: {name}')
    with _lock:
        handle = _handles.get(name)
        if handle is None:
            handle = _handles[name] = DocumentStore(name)
    return handle
