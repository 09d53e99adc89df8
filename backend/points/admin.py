from django.contrib import admin

from .models import PointsHistory


@admin.register(PointsHistory)
class PointsHistoryAdmin(admin.ModelAdmin):
    list_display = ("created_at", "user", "type", "points", "source",
                    "reference_id", "admin")
    list_filter = ("type", "source")
    search_fields = ("user__username", "user__mobile", "reference_id")
    readonly_fields = ("user", "type", "points", "description", "source",
                       "reference_id", "admin", "created_at")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
