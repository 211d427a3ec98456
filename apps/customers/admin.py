from django.contrib import admin

from apps.customers.models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "email", "order_count", "total_spent", "created_at")
    search_fields = ("name", "phone", "email")
    readonly_fields = ("order_count", "total_spent", "created_at", "updated_at")
