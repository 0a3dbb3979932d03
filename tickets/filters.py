# tickets/filters.py
from django.db.models import Q
from django_filters import rest_framework as filters

from tickets.models import ServiceTicket
from tickets.utils.choices import ServiceType, TicketStatus, UrgencyLevel


class TicketFilter(filters.FilterSet):
    status = filters.MultipleChoiceFilter(field_name="status", choices=TicketStatus.choices)
    urgency = filters.MultipleChoiceFilter(field_name="urgency", choices=UrgencyLevel.choices)
    service_type = filters.MultipleChoiceFilter(field_name="service_type", choices=ServiceType.choices)
    technician = filters.NumberFilter(field_name="technician_id")
    scheduled_from = filters.DateFilter(field_name="scheduled_date", lookup_expr="gte")
    scheduled_to = filters.DateFilter(field_name="scheduled_date", lookup_expr="lte")
    q = filters.CharFilter(method="filter_search")

    class Meta:
        model = ServiceTicket
        fields = ["status", "urgency", "service_type", "technician"]

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(ticket_id__icontains=value)
            | Q(customer_name__icontains=value)
            | Q(phone__icontains=value)
            | Q(product_model__icontains=value)
            | Q(serial_number__icontains=value)
        )
