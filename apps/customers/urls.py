from django.urls import path
from rest_framework.routers import DefaultRouter

from apps.customers.views import AdminCustomerViewSet, CustomerLookupView

router = DefaultRouter()
router.register("admin/customers", AdminCustomerViewSet, basename="admin-customer")

urlpatterns = [
    path("customers/lookup/", CustomerLookupView.as_view(), name="customer-lookup"),
]
urlpatterns += router.urls
