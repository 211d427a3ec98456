from django.contrib import admin

from apps.audit.models import AdminLog


@admin.register(AdminLog)
class AdminLogAdmin(admin.ModelAdmin):
    list_display = ("action", "target_type", "target_id", "actor", "ip_address", "created_at")
    list_filter = ("action", "target_type")
    search_fields = ("action", "target_id", "actor__email")

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
