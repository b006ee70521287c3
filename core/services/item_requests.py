"""
Item request workflow: pending -> approved | rejected.

Approve and reject set the target state whatever the current one is; a
request can be approved after a rejection and the other way round.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import bleach
from django.utils import timezone
from rest_framework.exceptions import NotFound

from core.services import resources
from core.services.hooks import ITEM_REQUEST_PENDING
from core.services.registry import get_collection

COLLECTION = 'item_requests'
APPROVED = 'approved'
REJECTED = 'rejected'


def _clean(text: Optional[str]) -> str:
    return bleach.clean(text or '', tags=set(), strip=True).strip()


def create_request(data: Any, actor: Optional[str] = None) -> Dict[str, Any]:
    return resources.create_record(COLLECTION, data, actor)


def list_requests(status: Optional[str] = ITEM_REQUEST_PENDING) -> List[Dict[str, Any]]:
    filters = {'status': status} if status else {}
    return get_collection(COLLECTION).find(filters, sort='-created_at')


def get_request(pk: str) -> Dict[str, Any]:
    return resources.get_record(COLLECTION, pk)


def _decide(pk: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    record = get_collection(COLLECTION).update_by_id(pk, changes)
    if record is None:
        raise NotFound('item request not found')
    return record


def approve(pk: str, approval_notes: Optional[str] = None, actor: Optional[str] = None) -> Dict[str, Any]:
    return _decide(pk, {
        'status': APPROVED,
        'approval_notes': _clean(approval_notes),
        'approved_at': timezone.now().isoformat(),
        'approved_by': actor or 'system',
    })


def reject(pk: str, rejection_reason: Optional[str] = None, actor: Optional[str] = None) -> Dict[str, Any]:
    return _decide(pk, {
        'status': REJECTED,
        'rejection_reason': _clean(rejection_reason),
        'rejected_at': timezone.now().isoformat(),
        'rejected_by': actor or 'system',
    })
