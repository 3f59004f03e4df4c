# users/permissions.py

from rest_framework.permissions import BasePermission


# ---------------- BASE ROLE PERMISSION ----------------
class HasRole(BasePermission):
    """
    Base permission to check user role safely.
    """

    allowed_roles = set()

    def has_permission(self, request, view):
        user = request.user
        return bool(
            user
            and user.is_authenticated
            and (user.is_superuser or getattr(user, "role", None) in self.allowed_roles)
        )


# ---------------- ROLE PERMISSIONS ----------------
class IsManagerOrAdmin(HasRole):
    """
    Stock corrections (manual adjustments, movement deletion).
    """

    allowed_roles = {"admin", "manager"}


class IsStaffMember(HasRole):
    allowed_roles = {"admin", "manager", "staff"}
