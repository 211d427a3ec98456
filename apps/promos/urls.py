from django.urls import path
from rest_framework.routers import DefaultRouter

from apps.promos.views import AdminPromoCodeViewSet, PromoValidateView

router = DefaultRouter()
router.register("admin/promo-codes", AdminPromoCodeViewSet, basename="admin-promo-code")

urlpatterns = [
    path("promos/validate/", PromoValidateView.as_view(), name="promo-validate"),
]
urlpatterns += router.urls
