from rest_framework import serializers

from apps.audit.models import AdminLog


class AdminLogSerializer(serializers.ModelSerializer):
    actor_email = serializers.CharField(source="actor.email", read_only=True, default=None)

    class Meta:
        model = AdminLog
        fields = ["id", "actor", "actor_email", "action", "target_type", "target_id", "details", "ip_address", "created_at"]
        read_only_fields = fields
