from dataclasses import dataclass

from django.conf import settings

from apps.accounts.models import AdminMembership, StaffRole

_REQUEST_CACHE_ATTR = "_staff_principal"


@dataclass(frozen=True)
class Principal:
    user_id: int
    email: str
    role: StaffRole


def is_owner_email(email):
    return bool(email) and email.strip().lower() in settings.OWNER_EMAILS


def resolve_role(user):
    """Return the user's effective StaffRole, or None when they are not staff."""
    if not user or not user.is_authenticated or not user.is_active:
        return None
    if is_owner_email(user.email):
        return StaffRole.OWNER
    membership = AdminMembership.objects.filter(user_id=user.pk).only("role").first()
    if membership is None:
        return None
    return StaffRole(membership.role)


def resolve_principal(request):
    """Resolve the request's principal once per request.

    The result lives on the request object only, so role and allowlist
    changes apply on the very next request.
    """
    if not hasattr(request, _REQUEST_CACHE_ATTR):
        user = getattr(request, "user", None)
        role = resolve_role(user)
        principal = Principal(user_id=user.pk, email=user.email, role=role) if role else None
        setattr(request, _REQUEST_CACHE_ATTR, principal)
    return getattr(request, _REQUEST_CACHE_ATTR)


def authorize(request, required_role=StaffRole.ADMIN):
    principal = resolve_principal(request)
    if principal is None or not principal.role.satisfies(required_role):
        return None
    return principal
