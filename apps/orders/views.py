from datetime import timedelta

from django.conf import settings
from django.db.models import Count, Q, Sum, Value
from django.db.models.functions import Coalesce
from django.http import StreamingHttpResponse
from django.utils import timezone
from rest_framework import generics, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from apps.accounts.models import StaffRole
from apps.common.permissions import StaffRolePermission
from apps.common.storage import get_photo_store
from apps.customers.models import Customer
from apps.orders import pricing
from apps.orders.archive import iter_order_archive
from apps.orders.models import Order, OrderStatus
from apps.orders.serializers import (
    OrderCreateSerializer,
    OrderListSerializer,
    OrderSerializer,
    OrderStatusUpdateSerializer,
    OrderTrackingSerializer,
    PhotoUploadSerializer,
    QuoteRequestSerializer,
)
from apps.orders.services import add_photo, apply_status_change, create_order, delete_order
from apps.promos.services import PromoRejected, validate_promo

# Orders that have been paid for, whatever happened to them since.
REVENUE_STATUSES = [
    OrderStatus.PAID,
    OrderStatus.PRINTING,
    OrderStatus.SHIPPED,
    OrderStatus.READY_PICKUP,
    OrderStatus.COMPLETED,
    OrderStatus.ARCHIVED,
]


class PricingView(generics.GenericAPIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        return Response(
            {
                "currency": settings.CURRENCY,
                "shipping_fee": settings.SHIPPING_FEE,
                "products": {
                    product_type.value: [
                        {
                            "min_qty": tier.min_qty,
                            "max_qty": tier.max_qty,
                            "unit_price": tier.unit_price,
                            "label": tier.label,
                        }
                        for tier in pricing.tiers_for(product_type)
                    ]
                    for product_type in pricing.PRICE_TIERS
                },
            }
        )


class PricingQuoteView(generics.GenericAPIView):
    """Preview totals for a cart. Promo problems are reported, not raised."""

    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = QuoteRequestSerializer

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        subtotal = pricing.price(data["quantity"], data["product_type"])
        discount = 0
        promo_payload = None
        if data["promo_code"]:
            try:
                promo_quote = validate_promo(data["promo_code"], subtotal)
            except PromoRejected as rejection:
                promo_payload = {"valid": False, "code": rejection.reason, "detail": rejection.message}
            else:
                discount = promo_quote.discount
                promo_payload = {"valid": True, "code": promo_quote.promo.code}

        quote = pricing.quote(data["quantity"], data["product_type"], data["shipping_type"], discount)
        if promo_payload and promo_payload["valid"]:
            promo_payload["discount"] = quote.discount_amount
        return Response(
            {
                "quantity": data["quantity"],
                "unit_price": pricing.unit_price(data["quantity"], data["product_type"]),
                "subtotal": quote.subtotal,
                "shipping_cost": quote.shipping_cost,
                "discount_amount": quote.discount_amount,
                "total": quote.total,
                "promo": promo_payload,
            }
        )


class OrderCreateView(generics.GenericAPIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = OrderCreateSerializer

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = create_order(**serializer.validated_data)
        return Response(
            {
                "order_id": str(order.id),
                "order_number": order.order_number,
                "status": order.status,
                "subtotal": order.subtotal,
                "shipping_cost": order.shipping_cost,
                "discount_amount": order.discount_amount,
                "total": order.total,
            },
            status=status.HTTP_201_CREATED,
        )


class OrderPhotoUploadView(generics.GenericAPIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = PhotoUploadSerializer
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request, order_id):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        item = add_photo(
            order_id,
            position=serializer.validated_data["position"],
            upload=serializer.validated_data["file"],
        )
        return Response(
            {
                "id": str(item.id),
                "path": item.file_path,
                "position": item.position,
                "preview_url": get_photo_store().signed_url(item.file_path),
            },
            status=status.HTTP_201_CREATED,
        )


class OrderTrackView(generics.GenericAPIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = OrderTrackingSerializer

    def get(self, request, order_number):
        order = Order.objects.filter(order_number=order_number.strip().upper()).first()
        if order is None:
            raise NotFound("Order not found.")
        return Response(self.get_serializer(order).data)


class AdminOrderViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    queryset = Order.objects.select_related("customer").order_by("-created_at")
    serializer_class = OrderSerializer
    permission_classes = [StaffRolePermission]
    role_map = {"destroy": StaffRole.SUPER_ADMIN}

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == "list":
            status_filter = self.request.query_params.get("status")
            if status_filter and status_filter != "all":
                queryset = queryset.filter(status=status_filter)
        elif self.action == "retrieve":
            queryset = queryset.prefetch_related("items")
        return queryset

    def get_serializer_class(self):
        if self.action == "list":
            return OrderListSerializer
        if self.action == "status":
            return OrderStatusUpdateSerializer
        return OrderSerializer

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["photo_store"] = get_photo_store()
        return context

    def perform_destroy(self, instance):
        delete_order(instance, actor=self.request.user, request=self.request)

    @action(detail=True, methods=["put", "patch"])
    def status(self, request, pk=None):
        order = self.get_object()
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = apply_status_change(order, actor=request.user, request=request, **serializer.validated_data)
        return Response(OrderSerializer(order, context=self.get_serializer_context()).data)

    @action(detail=True, methods=["get"])
    def download(self, request, pk=None):
        order = self.get_object()
        items = list(order.items.order_by("position"))
        if not items:
            raise NotFound("No photos found for this order.")
        response = StreamingHttpResponse(iter_order_archive(items, get_photo_store()), content_type="application/zip")
        response["Content-Disposition"] = f'attachment; filename="{order.order_number}-photos.zip"'
        return response


class AdminStatsView(generics.GenericAPIView):
    permission_classes = [StaffRolePermission]

    def get(self, request):
        now = timezone.now()
        today_start = timezone.localtime(now).replace(hour=0, minute=0, second=0, microsecond=0)
        week_start = now - timedelta(days=7)
        month_start = now - timedelta(days=30)

        orders = Order.objects.all()
        counts = orders.aggregate(
            **{status_value: Count("id", filter=Q(status=status_value)) for status_value in OrderStatus.values}
        )
        counts["total"] = sum(counts.values())

        paid_orders = orders.filter(status__in=REVENUE_STATUSES)

        def revenue(since=None):
            queryset = paid_orders if since is None else paid_orders.filter(created_at__gte=since)
            return queryset.aggregate(value=Coalesce(Sum("total"), Value(0)))["value"]

        products = {
            row["product_type"]: row["count"]
            for row in paid_orders.order_by().values("product_type").annotate(count=Count("id"))
        }

        return Response(
            {
                "orders": counts,
                "revenue": {
                    "total": revenue(),
                    "today": revenue(today_start),
                    "week": revenue(week_start),
                    "month": revenue(month_start),
                },
                "products": products,
                "customers": Customer.objects.count(),
            }
        )
