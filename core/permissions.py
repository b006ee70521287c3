"""
Custom permission classes for the confirmation gate and role checks.
"""
from rest_framework.permissions import BasePermission

ADMIN_ROLES = {"admin"}


class IsConfirmedAccount(BasePermission):
    """Admins always pass; everyone else needs a confirmed email."""
    message = "awaiting confirmation"

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        if getattr(user, "role", None) in ADMIN_ROLES:
            return True
        return getattr(user, "email_confirmed", False) is True


class IsAdminRole(BasePermission):
    """Allow access only to users with an administrative role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) in ADMIN_ROLES)
