"""
Account registration, login and bearer tokens.

Accounts are ordinary records in the ``users`` collection; the users hook
hashes the plain ``password`` into ``password_hash`` on the way in.
Tokens are stateless SimpleJWT access tokens carrying the claims the
permission layer needs, so no lookup happens per request.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from django.contrib.auth.hashers import check_password
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from rest_framework_simplejwt.tokens import AccessToken

from core.services import audit, resources
from core.services.hooks import normalize_email
from core.services.registry import get_collection

logger = logging.getLogger(__name__)

ADMIN_ROLE = 'admin'
DEFAULT_ROLE = 'teacher'
SELF_SERVICE_ROLES = frozenset({'teacher', 'headteacher', 'burser', 'store', 'dormitory', 'dos'})
PENDING = 'pending'


def find_by_email(email: str) -> Optional[Dict[str, Any]]:
    rows = get_collection('users').find({'email': normalize_email(email)}, limit=1)
    return rows[0] if rows else None


def is_confirmed(account: Dict[str, Any]) -> bool:
    return account.get('role') == ADMIN_ROLE or account.get('email_confirmed') is True


def issue_token(account: Dict[str, Any]) -> str:
    token = AccessToken()
    token['user_id'] = account['id']
    token['role'] = account.get('role')
    token['email'] = account.get('email')
    token['email_confirmed'] = account.get('email_confirmed') is True
    return str(token)


def register(data: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
    """Create a pending account; returns ``(token, account)``."""
    email = normalize_email(data.get('email'))
    role = data.get('role') or DEFAULT_ROLE
    if role == ADMIN_ROLE:
        raise ValidationError({'role': 'admin accounts cannot be self-registered'})
    if role not in SELF_SERVICE_ROLES:
        raise ValidationError({'role': f'unknown role: {role}'})
    if find_by_email(email) is not None:
        raise ValidationError({'email': 'an account with this email already exists'})

    account = resources.create_record('users', {
        'email': email,
        'password': data['password'],
        'role': role,
        'first_name': data.get('first_name') or '',
        'last_name': data.get('last_name') or '',
        'email_confirmed': False,
        'status': PENDING,
    })
    audit.log_action(actor=account['id'], action='register', object_type='users', object_id=account['id'],
                     detail={'role': role})
    logger.info("registered %s account %s", role, account['id'])
    return issue_token(account), account


def login(email: str, password: str, ip: Optional[str] = None) -> Tuple[str, Dict[str, Any]]:
    """Check credentials and the confirmation gate; returns ``(token, account)``."""
    email = normalize_email(email)
    account = find_by_email(email)
    if account is None:
        audit.log_action(actor=None, action='login', object_type='users',
                         detail={'result': 'fail', 'email': email, 'ip': ip})
        raise ValidationError({'detail': 'invalid email or password'})

    if not is_confirmed(account):
        audit.log_action(actor=account['id'], action='login', object_type='users', object_id=account['id'],
                         detail={'result': 'unconfirmed', 'ip': ip})
        raise PermissionDenied('awaiting confirmation')

    if not check_password(password, account.get('password_hash') or ''):
        audit.log_action(actor=account['id'], action='login', object_type='users', object_id=account['id'],
                         detail={'result': 'fail', 'ip': ip})
        raise ValidationError({'detail': 'invalid email or password'})

    audit.log_action(actor=account['id'], action='login', object_type='users', object_id=account['id'],
                     detail={'result': 'ok', 'ip': ip})
    account = resources.public('users', account)
    return issue_token(account), account


def me(account_id: str) -> Dict[str, Any]:
    try:
        return resources.get_record('users', account_id)
    except NotFound:
        raise NotFound('account no longer exists')
