# tickets/admin/counter.py

from django.contrib import admin

from tickets.models import TicketCounter


@admin.register(TicketCounter)
class TicketCounterAdmin(admin.ModelAdmin):
    list_display = ("prefix", "count", "updated_at")
    search_fields = ("prefix",)
    ordering = ("-prefix",)
    readonly_fields = ("prefix", "count", "created_at", "updated_at")

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
