"""
Side-effect hooks for collections with business rules.

A hook runs in place of the plain create/update of its collection.  It
sees the record before the change and the client's partial update, and
returns a :class:`HookOutcome`: the fields to write (client values plus
derived ones), at most one audit entry to append once the write has
succeeded, and at most one notification to fan out.

Hooks are looked up through :data:`HOOKS`, built once at import time;
collections without an entry use :class:`Hook` itself, which passes the
payload through untouched.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from django.contrib.auth.hashers import make_password
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from core.services.registry import get_collection

IN_STOCK = 'InStock'
LOW_STOCK = 'LowStock'
OUT_OF_STOCK = 'OutOfStock'

ITEM_REQUEST_PENDING = 'pending'

AuditEntry = Tuple[str, Dict[str, Any]]


@dataclass
class HookOutcome:
    fields: Dict[str, Any]
    audit: Optional[AuditEntry] = None
    notification: Optional[Dict[str, Any]] = None


def effective(before: Dict[str, Any], patch: Dict[str, Any], key: str) -> Any:
    """Value ``key`` will have after the write: the client's if sent, else the old one."""
    return patch[key] if key in patch else before.get(key)


def to_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def stock_status(quantity: Any, reorder_level: Any) -> str:
    qty = to_int(quantity) or 0
    reorder = to_int(reorder_level) or 0
    if qty <= 0:
        return OUT_OF_STOCK
    if qty <= reorder:
        return LOW_STOCK
    return IN_STOCK


def _now() -> str:
    return timezone.now().isoformat()


def _blank(value: Any) -> bool:
    return value is None or value == ''


class Hook:
    collection = ''

    def on_create(self, fields: Dict[str, Any], actor: Optional[str]) -> HookOutcome:
        return HookOutcome(fields)

    def on_update(self, before: Dict[str, Any], patch: Dict[str, Any], actor: Optional[str]) -> HookOutcome:
        return HookOutcome(patch)


class StoreItemHook(Hook):
    """Keeps ``status`` a pure function of stock quantity and reorder level."""
    collection = 'store_items'

    @staticmethod
    def _coerce(fields: Dict[str, Any]) -> None:
        for key in ('quantity_in_stock', 'reorder_level'):
            if key in fields and to_int(fields[key]) is not None:
                fields[key] = to_int(fields[key])

    def on_create(self, fields, actor):
        fields = dict(fields)
        self._coerce(fields)
        fields['status'] = stock_status(fields.get('quantity_in_stock'), fields.get('reorder_level'))
        return HookOutcome(fields)

    def on_update(self, before, patch, actor):
        patch = dict(patch)
        self._coerce(patch)
        qty = to_int(effective(before, patch, 'quantity_in_stock')) or 0
        status = stock_status(qty, effective(before, patch, 'reorder_level'))
        patch['status'] = status
        notification = None
        if status in (LOW_STOCK, OUT_OF_STOCK):
            item = effective(before, patch, 'item_name') or 'Item'
            notification = {
                'title': f'Store Alert: {status}',
                'message': f'{item} is {status} (qty: {qty})',
            }
        return HookOutcome(patch, notification=notification)


class ClassHook(Hook):
    """Logs teacher (un)assignment whenever ``teacher_id`` changes."""
    collection = 'classes'

    def on_update(self, before, patch, actor):
        old = before.get('teacher_id')
        new = effective(before, patch, 'teacher_id')
        if old == new:
            return HookOutcome(patch)
        entry = {
            'class_id': before.get('id'),
            'class_name': effective(before, patch, 'class_name'),
            'action': 'unassign_class' if _blank(new) else 'assign_class',
            'from_teacher_id': old,
            'to_teacher_id': new,
            'changed_by': actor,
            'timestamp': _now(),
        }
        return HookOutcome(patch, audit=('assignment_logs', entry))


def normalize_email(email: Optional[str]) -> str:
    return (email or '').strip().lower()


class UserHook(Hook):
    """Hashes passwords, keeps emails unique and activates confirmed teachers."""
    collection = 'users'

    @staticmethod
    def _hash_password(fields: Dict[str, Any]) -> Dict[str, Any]:
        fields = dict(fields)
        fields.pop('password_hash', None)
        password = fields.pop('password', None)
        if password:
            fields['password_hash'] = make_password(password)
        return fields

    @staticmethod
    def _claim_email(fields: Dict[str, Any], own_id: Optional[str] = None) -> None:
        if 'email' not in fields:
            return
        email = normalize_email(fields['email'])
        fields['email'] = email
        if not email:
            return
        holders = get_collection('users').find({'email': email})
        if any(holder['id'] != own_id for holder in holders):
            raise ValidationError({'email': 'an account with this email already exists'})

    def on_create(self, fields, actor):
        fields = self._hash_password(fields)
        self._claim_email(fields)
        return HookOutcome(fields)

    def on_update(self, before, patch, actor):
        patch = self._hash_password(patch)
        self._claim_email(patch, before.get('id'))
        confirming = patch.get('email_confirmed') is True and before.get('email_confirmed') is not True
        if confirming and effective(before, patch, 'role') == 'teacher':
            patch['status'] = 'active'
        return HookOutcome(patch)


def _dormitory_of(record: Dict[str, Any]) -> Any:
    for key in ('dormitory_id', 'dormitory'):
        if not _blank(record.get(key)):
            return record[key]
    return None


def _student_name(record: Dict[str, Any]) -> str:
    name = f"{record.get('first_name') or ''} {record.get('last_name') or ''}".strip()
    return name or record.get('name') or record.get('id') or ''


class StudentHook(Hook):
    """Logs dormitory and bed moves and announces the new placement."""
    collection = 'students'

    def on_update(self, before, patch, actor):
        old_dorm = _dormitory_of(before)
        if 'dormitory_id' in patch:
            new_dorm = patch['dormitory_id']
        elif 'dormitory' in patch:
            new_dorm = patch['dormitory']
        else:
            new_dorm = old_dorm
        old_bed = before.get('bed_number')
        new_bed = effective(before, patch, 'bed_number')

        dorm_changed = old_dorm != new_dorm
        if not dorm_changed and old_bed == new_bed:
            return HookOutcome(patch)

        name = _student_name({**before, **patch})
        entry = {
            'student_id': before.get('id'),
            'student_name': name,
            'action': 'reassign' if dorm_changed else 'bed_change',
            'from_dormitory': old_dorm,
            'to_dormitory': new_dorm,
            'from_bed': old_bed,
            'to_bed': new_bed,
            'changed_by': actor,
            'timestamp': _now(),
        }
        notification = {
            'title': 'Dormitory Assignment',
            'message': f'{name} assigned to dormitory {new_dorm or "-"}, bed {new_bed or "-"}',
        }
        return HookOutcome(patch, audit=('assignment_logs', entry), notification=notification)


class DormitoryHook(Hook):
    """Snapshots occupancy after every update, changed or not."""
    collection = 'dormitories'

    def on_update(self, before, patch, actor):
        snapshot = {
            'dormitory_id': before.get('id'),
            'dormitory_name': effective(before, patch, 'dormitory_name'),
            'capacity': effective(before, patch, 'capacity'),
            'current_occupancy': effective(before, patch, 'current_occupancy'),
            'timestamp': _now(),
        }
        return HookOutcome(patch, audit=('occupancy_snapshots', snapshot))


class ItemRequestHook(Hook):
    collection = 'item_requests'

    def on_create(self, fields, actor):
        return HookOutcome({**fields, 'status': ITEM_REQUEST_PENDING})


PASSTHROUGH = Hook()

HOOKS: Dict[str, Hook] = {
    hook.collection: hook
    for hook in (StoreItemHook(), ClassHook(), UserHook(), StudentHook(), DormitoryHook(), ItemRequestHook())
}


def hook_for(collection: str) -> Hook:
    return HOOKS.get(collection, PASSTHROUGH)
