from rest_framework import serializers


class CheckoutSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
