from rest_framework import generics, viewsets
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from apps.audit.services import record_audit
from apps.common.permissions import StaffRolePermission
from apps.promos.exceptions import PromoCodeRejected
from apps.promos.models import PromoCode
from apps.promos.serializers import PromoCodeSerializer, PromoValidateSerializer
from apps.promos.services import PromoRejected, validate_promo


class PromoValidateView(generics.GenericAPIView):
    permission_classes = [AllowAny]
    serializer_class = PromoValidateSerializer

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            quote = validate_promo(data["code"], data["subtotal"], customer_id=data.get("customer_id"))
        except PromoRejected as rejection:
            raise PromoCodeRejected(rejection)

        promo = quote.promo
        return Response(
            {
                "valid": True,
                "promo_id": str(promo.id),
                "code": promo.code,
                "discount_type": promo.discount_type,
                "discount_value": promo.discount_value,
                "discount": quote.discount,
                "description": promo.description,
            }
        )


class AdminPromoCodeViewSet(viewsets.ModelViewSet):
    queryset = PromoCode.objects.select_related("created_by").order_by("-created_at")
    serializer_class = PromoCodeSerializer
    permission_classes = [StaffRolePermission]
    pagination_class = None

    def get_queryset(self):
        queryset = super().get_queryset()
        active = self.request.query_params.get("active")
        if active is not None:
            normalized = active.strip().lower()
            if normalized in {"1", "true", "yes"}:
                queryset = queryset.filter(is_active=True)
            elif normalized in {"0", "false", "no"}:
                queryset = queryset.filter(is_active=False)
        return queryset

    def perform_create(self, serializer):
        promo = serializer.save()
        record_audit(
            actor=self.request.user,
            action="promos.create",
            target_type="promo_code",
            target_id=promo.id,
            details={"code": promo.code, "discount_type": promo.discount_type, "discount_value": promo.discount_value},
            request=self.request,
        )

    def perform_update(self, serializer):
        promo = serializer.save()
        record_audit(
            actor=self.request.user,
            action="promos.update",
            target_type="promo_code",
            target_id=promo.id,
            details={"code": promo.code, "changes": sorted(serializer.validated_data.keys())},
            request=self.request,
        )

    def perform_destroy(self, instance):
        # Codes are referenced by orders and redemptions, so deleting only deactivates.
        instance.is_active = False
        instance.save(update_fields=["is_active", "updated_at"])
        record_audit(
            actor=self.request.user,
            action="promos.deactivate",
            target_type="promo_code",
            target_id=instance.id,
            details={"code": instance.code},
            request=self.request,
        )
