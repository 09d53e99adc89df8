from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import DeviceToken, Role, User


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ("name", "description")
    search_fields = ("name",)
    filter_horizontal = ("permissions",)


class DeviceTokenInline(admin.TabularInline):
    model = DeviceToken
    extra = 0
    readonly_fields = ("token", "platform", "created_at")


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "mobile", "email", "points",
                    "is_active", "role")
    search_fields = ("username", "mobile", "email")
    list_filter = ("is_active", "is_staff", "role", "language")
    readonly_fields = ("points",)
    inlines = [DeviceTokenInline]
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Citizen Profile", {"fields": ("mobile", "address", "language",
                                        "points", "role")}),
        ("Payout Details", {"fields": ("upi_id", "bank_account", "ifsc")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Citizen Profile", {"fields": ("mobile", "email", "first_name",
                                        "last_name", "role")}),
    )
