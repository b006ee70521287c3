"""
Stateless bearer-token authentication.

Accounts live in the ``users`` collection rather than Django's auth
tables, so the request user is built straight from the validated token
claims (``user_id``, ``role``, ``email``, ``email_confirmed``) without a
database hit.  Kept apart from the views to avoid circular imports when
Django REST framework loads its authentication classes.
"""
from __future__ import annotations

from rest_framework_simplejwt.authentication import JWTStatelessUserAuthentication
from rest_framework_simplejwt.models import TokenUser


class AccountUser(TokenUser):
    """Request user backed by token claims."""

    @property
    def role(self):
        return self.token.get('role')

    @property
    def email(self):
        return self.token.get('email')

    @property
    def email_confirmed(self) -> bool:
        return self.token.get('email_confirmed') is True


class AccountJWTAuthentication(JWTStatelessUserAuthentication):
    """``Authorization: Bearer <token>`` yielding an :class:`AccountUser`.

    The user class comes from ``SIMPLE_JWT["TOKEN_USER_CLASS"]``; this
    subclass gives the project a stable import path for its settings.
    """
