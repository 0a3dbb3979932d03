# tickets/admin/technician.py

from django.contrib import admin
from django.db.models import Count, Q
from django.utils.translation import gettext_lazy as _

from tickets.models import Technician
from tickets.utils.choices import OPEN_STATUSES


@admin.register(Technician)
class TechnicianAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "user", "is_active", "open_tickets")
    list_filter = ("is_active",)
    search_fields = ("name", "user__username")
    autocomplete_fields = ("user",)

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(
            _open_tickets=Count(
                "tickets", filter=Q(tickets__status__in=OPEN_STATUSES)
            )
        )

    @admin.display(description=_("open tickets"), ordering="_open_tickets")
    def open_tickets(self, obj: Technician) -> int:
        return getattr(obj, "_open_tickets", 0)
