"""
Audit and history writer.

Appends immutable entries to the append-only collections.  A failed write
is logged and swallowed: the mutation that triggered it has already been
stored and stays stored.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from django.utils import timezone

from core.services.registry import get_collection

logger = logging.getLogger(__name__)


def append_entry(collection: str, entry: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Insert one entry into ``collection``; ``None`` if the store failed."""
    try:
        return get_collection(collection).insert(entry)
    except Exception:
        logger.exception("could not append %s entry %r", collection, entry.get('action') or entry)
        return None


def log_action(*, actor: Optional[str], action: str, object_type: Optional[str] = None,
               object_id: Optional[str] = None, detail: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
    return append_entry('audit_logs', {
        'actor': actor,
        'action': action,
        'object_type': object_type,
        'object_id': object_id,
        'detail': detail or {},
        'timestamp': timezone.now().isoformat(),
    })
