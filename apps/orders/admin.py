from django.contrib import admin

from apps.orders.models import DailyOrderSequence, Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ("position", "file_path", "original_filename", "file_size", "mime_type", "created_at")


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "customer_name", "status", "product_type", "quantity", "total", "paid_at", "created_at")
    list_filter = ("status", "product_type", "shipping_type")
    search_fields = ("order_number", "customer_name", "customer_phone", "customer_email")
    readonly_fields = ("order_number", "subtotal", "shipping_cost", "discount_amount", "total", "payment_intent_id", "paid_at")
    inlines = [OrderItemInline]


@admin.register(DailyOrderSequence)
class DailyOrderSequenceAdmin(admin.ModelAdmin):
    list_display = ("day", "last_value")
