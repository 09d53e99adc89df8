from django.contrib import admin

from .models import Withdrawal, WithdrawalTimelineEntry


class WithdrawalTimelineInline(admin.TabularInline):
    model = WithdrawalTimelineEntry
    extra = 0
    readonly_fields = ("action", "status", "reason", "description",
                       "admin", "timestamp")
    can_delete = False


@admin.register(Withdrawal)
class WithdrawalAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "points", "method", "status",
                    "processed_by", "created_at")
    list_filter = ("status", "method")
    search_fields = ("user__mobile", "user__username", "transaction_id")
    readonly_fields = ("user", "points", "processed_by", "created_at", "updated_at")
    inlines = [WithdrawalTimelineInline]

    def has_delete_permission(self, request, obj=None):
        return False
