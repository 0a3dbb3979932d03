# tickets/admin/ticket.py

from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from tickets.models import ServiceTicket
from tickets.services.payloads import TicketDraft, TicketPatch
from tickets.services.ticket_store import TicketStore
from tickets.utils.choices import OPEN_STATUSES, TicketStatus, UrgencyLevel

FORM_TO_PAYLOAD = {"technician": "technician_id"}


def _payload_from_form(form, names):
    data = {}
    for name in names:
        value = form.cleaned_data.get(name)
        if name == "technician":
            value = value.pk if value is not None else None
        data[FORM_TO_PAYLOAD.get(name, name)] = value
    return data


class HasTechnicianFilter(admin.SimpleListFilter):
    title = _("technician assigned?")
    parameter_name = "assigned"

    def lookups(self, request, model_admin):
        return (("yes", _("Yes")), ("no", _("No")),)

    def queryset(self, request, queryset):
        if self.value() == "yes":
            return queryset.filter(technician__isnull=False)
        if self.value() == "no":
            return queryset.filter(technician__isnull=True)
        return queryset


class OpenTicketFilter(admin.SimpleListFilter):
    title = _("open / done")
    parameter_name = "state"

    def lookups(self, request, model_admin):
        return (("open", _("Open")), ("done", _("Completed or closed")),)

    def queryset(self, request, qs):
        if self.value() == "open":
            return qs.filter(status__in=OPEN_STATUSES)
        if self.value() == "done":
            return qs.exclude(status__in=OPEN_STATUSES)
        return qs


@admin.register(ServiceTicket)
class ServiceTicketAdmin(admin.ModelAdmin):
    """
    Writes go through TicketStore so admin edits get an allocated ID on
    create, a bumped updated_at on change, and reach live subscribers.
    """
    list_display = (
        "ticket_id",
        "customer_name",
        "phone",
        "product_category",
        "technician",
        "status_badge",
        "urgency_badge",
        "scheduled_date",
        "photos_count",
        "updated_at",
    )
    list_filter = (
        "status", "urgency", "service_type", OpenTicketFilter,
        HasTechnicianFilter,
    )
    search_fields = (
        "ticket_id", "customer_name", "phone", "serial_number",
        "product_model",
    )
    list_select_related = ("technician",)
    list_per_page = 30
    ordering = ("-created_at",)
    readonly_fields = ("ticket_id", "key", "photos", "created_at", "updated_at")

    fieldsets = (
        (None, {"fields": ("ticket_id", "key")}),
        (_("Customer"), {"fields": ("customer_name", "phone", "address", "city")}),
        (_("Product"), {
            "fields": (
                "product_category", "product_model", "serial_number",
                "warranty_status",
            )
        }),
        (_("Service"), {
            "fields": (
                "service_type", "issue_description", "urgency", "status",
                "technician", "scheduled_date", "notes",
            )
        }),
        (_("Billing"), {
            "fields": (
                "service_charge", "parts_charge", "commission",
                "feedback_rating",
            )
        }),
        (_("Assets"), {"fields": ("customer_signature", "photos")}),
        (_("Timestamps"), {"fields": ("created_at", "updated_at")}),
    )

    actions = (
        "action_mark_in_progress",
        "action_mark_completed",
        "action_close",
    )

    @admin.display(description=_("status"))
    def status_badge(self, obj: ServiceTicket):
        palette = {
            TicketStatus.NEW: "#6d4c41",
            TicketStatus.ASSIGNED: "#7b1fa2",
            TicketStatus.IN_PROGRESS: "#1769aa",
            TicketStatus.COMPLETED: "#2e7d32",
            TicketStatus.CLOSED: "#455a64",
        }
        return format_html(
            '<span style="padding:.15rem .45rem;border-radius:.4rem;'
            'font-size:.75rem;color:#fff;background:{}">{}</span>',
            palette.get(obj.status, "#616161"), obj.get_status_display()
        )

    @admin.display(description=_("urgency"))
    def urgency_badge(self, obj: ServiceTicket):
        tone = {
            UrgencyLevel.LOW: "#78909c",
            UrgencyLevel.MEDIUM: "#f9a825",
            UrgencyLevel.HIGH: "#c62828",
        }
        return format_html(
            '<span style="padding:.1rem .35rem;border-radius:.35rem;'
            'font-size:.75rem;color:#fff;background:{}">{}</span>',
            tone.get(obj.urgency, "#607d8b"), obj.get_urgency_display()
        )

    @admin.display(description=_("photos"))
    def photos_count(self, obj: ServiceTicket) -> int:
        return len(obj.photos or [])

    def get_fieldsets(self, request, obj=None):
        if obj is None:
            # identity is assigned by the store
            return self.fieldsets[1:-1]
        return self.fieldsets

    def save_model(self, request, obj, form, change):
        with TicketStore(user=request.user) as store:
            if change:
                changed = [n for n in form.changed_data if n not in self.readonly_fields]
                if changed:
                    store.update_ticket(
                        obj.key,
                        TicketPatch(**_payload_from_form(form, changed)),
                    )
            else:
                names = [
                    n for n in form.cleaned_data
                    if n not in ("status",) and n not in self.readonly_fields
                ]
                obj.key = store.create_ticket(
                    TicketDraft(**_payload_from_form(form, names))
                )
        obj.refresh_from_db()

    # --- Actions ---
    def _update_many(self, request, queryset, status_value, success_message):
        updated = 0
        with TicketStore(user=request.user) as store:
            for t in queryset:
                if t.status != status_value:
                    store.update_ticket(t.key, TicketPatch(status=status_value))
                    updated += 1
        self.message_user(request, success_message.format(updated=updated))

    @admin.action(description=_("Mark as in progress"))
    def action_mark_in_progress(self, request, queryset):
        self._update_many(
            request, queryset, TicketStatus.IN_PROGRESS,
            _("{updated} ticket(s) marked in progress."),
        )

    @admin.action(description=_("Mark as completed"))
    def action_mark_completed(self, request, queryset):
        self._update_many(
            request, queryset, TicketStatus.COMPLETED,
            _("{updated} ticket(s) completed."),
        )

    @admin.action(description=_("Close"))
    def action_close(self, request, queryset):
        self._update_many(
            request, queryset, TicketStatus.CLOSED,
            _("{updated} ticket(s) closed."),
        )
