from django.db.models import Q
from rest_framework import generics, viewsets
from rest_framework.exceptions import NotFound
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from apps.common.permissions import StaffRolePermission
from apps.customers.models import Customer, normalize_phone
from apps.customers.serializers import CustomerLookupSerializer, CustomerProfileSerializer, CustomerSerializer
from apps.orders.serializers import OrderSerializer, OrderSummarySerializer

LOOKUP_RECENT_ORDERS = 10


class CustomerLookupView(generics.GenericAPIView):
    permission_classes = [AllowAny]
    serializer_class = CustomerLookupSerializer

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data.get("email")
        phone = serializer.validated_data.get("phone")

        queryset = Customer.objects.all()
        if email:
            queryset = queryset.filter(email__iexact=email)
        else:
            queryset = queryset.filter(phone=normalize_phone(phone))
        customer = queryset.order_by("-updated_at").first()
        if customer is None:
            raise NotFound("Customer not found.")

        orders = customer.orders.order_by("-created_at")[:LOOKUP_RECENT_ORDERS]
        return Response(
            {
                "customer": CustomerProfileSerializer(customer).data,
                "orders": OrderSummarySerializer(orders, many=True).data,
            }
        )


class AdminCustomerViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Customer.objects.order_by("-created_at")
    serializer_class = CustomerSerializer
    permission_classes = [StaffRolePermission]

    def get_queryset(self):
        queryset = super().get_queryset()
        query = self.request.query_params.get("q")
        if query:
            normalized = normalize_phone(query)
            condition = Q(name__icontains=query) | Q(email__icontains=query)
            if normalized:
                condition |= Q(phone__icontains=normalized)
            queryset = queryset.filter(condition)
        return queryset

    def retrieve(self, request, *args, **kwargs):
        customer = self.get_object()
        data = dict(self.get_serializer(customer).data)
        data["orders"] = OrderSerializer(customer.orders.order_by("-created_at"), many=True).data
        return Response(data)
