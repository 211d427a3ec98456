from rest_framework import serializers

from apps.customers.models import Customer


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = [
            "id",
            "name",
            "phone",
            "email",
            "default_address_line1",
            "default_address_line2",
            "default_city",
            "default_state",
            "default_postcode",
            "default_country",
            "order_count",
            "total_spent",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CustomerLookupSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs.get("email") and not attrs.get("phone"):
            raise serializers.ValidationError({"email": "Email or phone required."})
        return attrs


class CustomerProfileSerializer(serializers.ModelSerializer):
    """What a returning customer sees about themselves at checkout."""

    address = serializers.SerializerMethodField()

    class Meta:
        model = Customer
        fields = ["name", "phone", "email", "address"]
        read_only_fields = fields

    def get_address(self, obj):
        return {
            "line1": obj.default_address_line1,
            "line2": obj.default_address_line2,
            "city": obj.default_city,
            "state": obj.default_state,
            "postcode": obj.default_postcode,
        }
