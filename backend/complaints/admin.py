from django.contrib import admin

from .models import Complaint, ComplaintTimelineEntry


class ComplaintTimelineInline(admin.TabularInline):
    model = ComplaintTimelineEntry
    extra = 0
    readonly_fields = ("action", "status", "reason", "description",
                       "admin", "timestamp")
    can_delete = False


@admin.register(Complaint)
class ComplaintAdmin(admin.ModelAdmin):
    list_display = ("token", "type", "stop", "status", "priority",
                    "points", "user", "created_at")
    list_filter = ("status", "type", "priority", "is_anonymous")
    search_fields = ("token", "stop", "description", "user__mobile")
    readonly_fields = ("token", "points", "created_at", "updated_at")
    inlines = [ComplaintTimelineInline]

    def has_delete_permission(self, request, obj=None):
        return False
