"""
Role based permission classes.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS

STAFF_ROLES = {"admin", "superadmin"}


class IsStaffRole(BasePermission):
    """Any signed-in hospital administrator."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) in STAFF_ROLES)


class IsSuperAdmin(BasePermission):
    """Only super administrators."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) == "superadmin")


class ReadOnlyOrSuperAdmin(BasePermission):
    """Staff may read; writes need a super administrator."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        if request.method in SAFE_METHODS:
            return IsStaffRole().has_permission(request, view)
        return IsSuperAdmin().has_permission(request, view)
