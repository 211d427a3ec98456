from rest_framework import generics

from apps.accounts.models import StaffRole
from apps.audit.models import AdminLog
from apps.audit.serializers import AdminLogSerializer
from apps.common.permissions import StaffRolePermission

AUDIT_LOG_LIMIT = 100


class AdminLogListView(generics.ListAPIView):
    serializer_class = AdminLogSerializer
    permission_classes = [StaffRolePermission]
    required_role = StaffRole.SUPER_ADMIN
    pagination_class = None

    def get_queryset(self):
        queryset = AdminLog.objects.select_related("actor")
        action = self.request.query_params.get("action")
        if action:
            queryset = queryset.filter(action=action)
        return queryset.order_by("-created_at")[:AUDIT_LOG_LIMIT]
