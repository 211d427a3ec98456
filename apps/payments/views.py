import logging
import uuid

import stripe
from django.db import DatabaseError
from rest_framework import generics, status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from apps.common.exceptions import Conflict, UpstreamError
from apps.orders.models import Order, OrderStatus
from apps.orders.services import confirm_payment
from apps.payments.gateway import CHECKOUT_COMPLETED, InvalidWebhook, get_payment_gateway
from apps.payments.serializers import CheckoutSerializer

logger = logging.getLogger(__name__)


class CheckoutSessionView(generics.GenericAPIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = CheckoutSerializer

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = Order.objects.filter(pk=serializer.validated_data["order_id"]).first()
        if order is None:
            raise NotFound("Order not found.")
        if order.status != OrderStatus.PENDING:
            raise Conflict("Order already processed.")

        try:
            session = get_payment_gateway().create_checkout_session(order)
        except stripe.StripeError:
            logger.exception("Failed to create checkout session for order %s", order.order_number)
            raise UpstreamError("Failed to create checkout session.")

        Order.objects.filter(pk=order.pk, status=OrderStatus.PENDING).update(checkout_session_id=session.id)
        return Response({"url": session.url, "session_id": session.id})


class StripeWebhookView(generics.GenericAPIView):
    """Receives Stripe events. Only checkout completion changes state; the rest are acknowledged."""

    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        try:
            event = get_payment_gateway().parse_event(request.body, request.META.get("HTTP_STRIPE_SIGNATURE", ""))
        except InvalidWebhook as exc:
            logger.warning("Rejected webhook delivery: %s", exc)
            raise ValidationError({"signature": [str(exc)]})

        if event.get("type") != CHECKOUT_COMPLETED:
            return Response({"received": True})

        session = event.get("data", {}).get("object", {}) or {}
        metadata = session.get("metadata") or {}
        order_id = metadata.get("orderId")
        try:
            order_id = uuid.UUID(str(order_id))
        except ValueError:
            logger.error("Checkout session %s has no usable orderId in metadata", session.get("id"))
            return Response({"received": True})

        try:
            confirm_payment(
                order_id,
                payment_intent_id=session.get("payment_intent") or "",
                checkout_session_id=session.get("id") or "",
            )
        except Order.DoesNotExist:
            logger.error("Checkout session %s references unknown order %s", session.get("id"), order_id)
        except DatabaseError:
            logger.exception("Failed to process payment for order %s", order_id)
            return Response(
                {"code": "processing_failed", "detail": "Processing failed.", "fields": {}},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return Response({"received": True})
