from rest_framework import serializers

from apps.promos.models import DiscountType, PromoCode, normalize_code


class PromoCodeSerializer(serializers.ModelSerializer):
    class Meta:
        model = PromoCode
        fields = [
            "id",
            "code",
            "discount_type",
            "discount_value",
            "min_order_amount",
            "max_uses",
            "uses_count",
            "max_uses_per_customer",
            "is_active",
            "starts_at",
            "expires_at",
            "description",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "uses_count", "created_by", "created_at", "updated_at"]

    def validate_code(self, value):
        value = normalize_code(value)
        if not value:
            raise serializers.ValidationError("code is required")
        queryset = PromoCode.objects.filter(code=value)
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError("A promo code with this code already exists.")
        return value

    def validate_discount_value(self, value):
        if value <= 0:
            raise serializers.ValidationError("discount_value must be greater than 0")
        return value

    def validate(self, attrs):
        discount_type = attrs.get("discount_type", getattr(self.instance, "discount_type", None))
        discount_value = attrs.get("discount_value", getattr(self.instance, "discount_value", None))
        if discount_type == DiscountType.PERCENTAGE and discount_value is not None and discount_value > 100:
            raise serializers.ValidationError({"discount_value": "Percentage discounts cannot exceed 100."})

        starts_at = attrs.get("starts_at", getattr(self.instance, "starts_at", None))
        expires_at = attrs.get("expires_at", getattr(self.instance, "expires_at", None))
        if starts_at and expires_at and starts_at >= expires_at:
            raise serializers.ValidationError({"expires_at": "expires_at must be after starts_at."})
        return attrs

    def create(self, validated_data):
        validated_data["created_by"] = self.context["request"].user
        return super().create(validated_data)


class PromoValidateSerializer(serializers.Serializer):
    code = serializers.CharField()
    subtotal = serializers.IntegerField(min_value=0, required=False, default=0)
    customer_id = serializers.UUIDField(required=False, allow_null=True)

    def validate_code(self, value):
        value = normalize_code(value)
        if not value:
            raise serializers.ValidationError("Promo code required.")
        return value
