from django.urls import path

from apps.payments.views import CheckoutSessionView, StripeWebhookView

urlpatterns = [
    path("payments/checkout/", CheckoutSessionView.as_view(), name="payments-checkout"),
    path("payments/webhook/", StripeWebhookView.as_view(), name="payments-webhook"),
]
