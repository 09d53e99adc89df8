from django.contrib import admin

from .models import ActionHistory, Notification


@admin.register(ActionHistory)
class ActionHistoryAdmin(admin.ModelAdmin):
    list_display = ("created_at", "admin", "action", "resource", "resource_id")
    list_filter = ("action", "resource")
    search_fields = ("resource_id", "admin__username")
    readonly_fields = ("admin", "action", "resource", "resource_id",
                       "details", "ip_address", "user_agent", "created_at")

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("recipient", "title", "is_read", "created_at")
    list_filter = ("is_read",)
    search_fields = ("title", "recipient__username")
