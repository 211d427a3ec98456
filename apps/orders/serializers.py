from rest_framework import serializers

from apps.common.storage import get_photo_store
from apps.common.validators import validate_image_upload
from apps.customers.models import normalize_phone
from apps.orders.models import STAFF_STATUSES, Order, OrderItem, ProductType, ShippingType
from apps.promos.models import normalize_code

MAX_ORDER_QUANTITY = 999


class AddressSerializer(serializers.Serializer):
    line1 = serializers.CharField(max_length=255)
    line2 = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    city = serializers.CharField(max_length=120)
    state = serializers.CharField(max_length=60)
    postcode = serializers.CharField(max_length=20)
    country = serializers.CharField(max_length=60, required=False, allow_blank=True, default="Australia")


class OrderCreateSerializer(serializers.Serializer):
    customer_name = serializers.CharField(max_length=255)
    customer_phone = serializers.CharField(max_length=50)
    customer_email = serializers.EmailField(required=False, allow_blank=True, default="")
    shipping_type = serializers.ChoiceField(choices=ShippingType.choices, default=ShippingType.DELIVERY)
    shipping_address = AddressSerializer(required=False, allow_null=True)
    product_type = serializers.ChoiceField(choices=ProductType.choices)
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_ORDER_QUANTITY)
    is_gift = serializers.BooleanField(required=False, default=False)
    gift_message = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    promo_code = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_customer_phone(self, value):
        if not normalize_phone(value):
            raise serializers.ValidationError("Enter a valid phone number.")
        return value

    def validate_promo_code(self, value):
        return normalize_code(value)

    def validate(self, attrs):
        if attrs["shipping_type"] == ShippingType.DELIVERY and not attrs.get("shipping_address"):
            raise serializers.ValidationError({"shipping_address": "Shipping address is required for delivery."})
        return attrs


class OrderItemSerializer(serializers.ModelSerializer):
    preview_url = serializers.SerializerMethodField()

    class Meta:
        model = OrderItem
        fields = ["id", "position", "original_filename", "file_size", "mime_type", "preview_url", "created_at"]
        read_only_fields = fields

    def get_preview_url(self, obj):
        store = self.context.get("photo_store") or get_photo_store()
        return store.signed_url(obj.file_path)


class OrderSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "status",
            "product_type",
            "quantity",
            "shipping_type",
            "total",
            "tracking_number",
            "carrier",
            "created_at",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    item_count = serializers.IntegerField(source="items.count", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer",
            "customer_name",
            "customer_phone",
            "customer_email",
            "status",
            "product_type",
            "quantity",
            "shipping_type",
            "subtotal",
            "shipping_cost",
            "discount_amount",
            "promo_code_used",
            "total",
            "item_count",
            "tracking_number",
            "paid_at",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer",
            "customer_name",
            "customer_phone",
            "customer_email",
            "shipping_type",
            "shipping_address_line1",
            "shipping_address_line2",
            "shipping_city",
            "shipping_state",
            "shipping_postcode",
            "shipping_country",
            "is_gift",
            "gift_message",
            "product_type",
            "quantity",
            "subtotal",
            "shipping_cost",
            "discount_amount",
            "promo_code_used",
            "total",
            "notes",
            "admin_notes",
            "status",
            "payment_intent_id",
            "tracking_number",
            "carrier",
            "paid_at",
            "printed_at",
            "shipped_at",
            "completed_at",
            "created_at",
            "updated_at",
            "items",
        ]
        read_only_fields = fields


class OrderTrackingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Order
        fields = [
            "order_number",
            "status",
            "product_type",
            "quantity",
            "shipping_type",
            "tracking_number",
            "carrier",
            "paid_at",
            "printed_at",
            "shipped_at",
            "completed_at",
            "created_at",
        ]
        read_only_fields = fields


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[(s.value, s.label) for s in STAFF_STATUSES], required=False)
    tracking_number = serializers.CharField(max_length=120, required=False, allow_blank=True)
    carrier = serializers.CharField(max_length=120, required=False, allow_blank=True)
    admin_notes = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError({"status": "Provide a status or tracking details to update."})
        return attrs


class PhotoUploadSerializer(serializers.Serializer):
    file = serializers.FileField(validators=[validate_image_upload])
    position = serializers.IntegerField(min_value=0)


class QuoteRequestSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_ORDER_QUANTITY)
    product_type = serializers.ChoiceField(choices=ProductType.choices, default=ProductType.PERSONAL)
    shipping_type = serializers.ChoiceField(choices=ShippingType.choices, default=ShippingType.DELIVERY)
    promo_code = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_promo_code(self, value):
        return normalize_code(value)
