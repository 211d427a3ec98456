from rest_framework.permissions import BasePermission

from apps.accounts.models import StaffRole
from apps.accounts.services import authorize


class StaffRolePermission(BasePermission):
    """Grant access when the caller's staff role covers the action's required role.

    Views declare ``role_map`` keyed by viewset action or lowercase HTTP method,
    falling back to ``default_role`` (admin).
    """

    message = "You do not have access to this resource."
    default_role = StaffRole.ADMIN

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        role_map = getattr(view, "role_map", {})
        action = getattr(view, "action", None) or request.method.lower()
        required = (
            role_map.get(action)
            or role_map.get(request.method.lower())
            or getattr(view, "required_role", None)
            or self.default_role
        )
        return authorize(request, required) is not None
