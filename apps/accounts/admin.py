from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from .models import AdminMembership, User


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    list_display = DjangoUserAdmin.list_display + ("is_active",)


@admin.register(AdminMembership)
class AdminMembershipAdmin(admin.ModelAdmin):
    list_display = ("user", "role", "created_by", "created_at")
    list_filter = ("role",)
    search_fields = ("user__email", "user__username")
    autocomplete_fields = ("user",)
