from rest_framework import serializers

from apps.accounts.models import ASSIGNABLE_ROLES, AdminMembership, StaffRole
from apps.accounts.services import is_owner_email


class AdminMembershipSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(source="user.id", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)
    is_owner = serializers.SerializerMethodField()

    class Meta:
        model = AdminMembership
        fields = ["id", "user_id", "email", "role", "is_owner", "created_by", "created_at"]
        read_only_fields = fields

    def get_is_owner(self, obj):
        return is_owner_email(obj.user.email)


class AdminCreateSerializer(serializers.Serializer):
    email = serializers.EmailField()
    role = serializers.ChoiceField(choices=StaffRole.choices, default=StaffRole.ADMIN)

    def validate_role(self, value):
        if value == StaffRole.OWNER:
            raise serializers.ValidationError("Cannot assign owner role.")
        if value not in ASSIGNABLE_ROLES:
            raise serializers.ValidationError("Invalid role.")
        return value
