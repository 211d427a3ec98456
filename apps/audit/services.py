import logging

from django.core.exceptions import ValidationError
from django.core.validators import validate_ipv46_address
from django.db import DatabaseError, transaction

from apps.audit.models import AdminLog

logger = logging.getLogger(__name__)


def _valid_ip(value):
    value = (value or "").strip()
    try:
        validate_ipv46_address(value)
    except ValidationError:
        return None
    return value


def client_ip(request):
    """First X-Forwarded-For hop when it is a real address, else REMOTE_ADDR."""
    if request is None:
        return None
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    return _valid_ip(forwarded.split(",")[0]) or _valid_ip(request.META.get("REMOTE_ADDR"))


def record_audit(*, actor, action, target_type, target_id, details=None, request=None):
    """Append an audit entry. A failed write is logged and never fails the caller."""
    try:
        with transaction.atomic():
            return AdminLog.objects.create(
                actor=actor,
                action=action,
                target_type=target_type,
                target_id=str(target_id) if target_id is not None else "",
                details=details or {},
                ip_address=client_ip(request),
            )
    except DatabaseError:
        logger.exception("Failed to record audit entry %s for %s %s", action, target_type, target_id)
        return None
