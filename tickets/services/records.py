# tickets/services/records.py

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple
from uuid import UUID

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime


@dataclass(frozen=True)
class TicketRecord:
    """Canonical in-memory shape of a ticket, detached from the ORM."""
    key: UUID
    ticket_id: str
    customer_name: str
    phone: str
    address: str
    city: str
    product_category: str
    product_model: str
    serial_number: str
    warranty_status: bool
    service_type: str
    issue_description: str
    urgency: str
    status: str
    technician_id: Optional[int]
    created_at: datetime
    updated_at: datetime
    scheduled_date: Optional[date]
    notes: str
    service_charge: Decimal
    parts_charge: Decimal
    commission: Decimal
    feedback_rating: Optional[int]
    customer_signature: str
    photos: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_scheduled(self) -> bool:
        return self.scheduled_date is not None

    @property
    def total_bill(self) -> Decimal:
        return self.service_charge + self.parts_charge

    def with_changes(self, changes: Dict[str, Any]) -> "TicketRecord":
        if "photos" in changes:
            changes = {**changes, "photos": tuple(changes["photos"] or ())}
        return replace(self, **changes)


@dataclass(frozen=True)
class Snapshot:
    """Complete, ordered ticket list delivered by a subscription."""
    sequence: int
    tickets: Tuple[TicketRecord, ...]

    def __len__(self):
        return len(self.tickets)

    def get(self, key) -> Optional[TicketRecord]:
        key = key if isinstance(key, UUID) else UUID(str(key))
        for ticket in self.tickets:
            if ticket.key == key:
                return ticket
        return None


def as_datetime(value) -> Optional[datetime]:
    """Storage timestamp (aware/naive datetime, date or ISO string) → aware datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        parsed = parse_datetime(value)
        if parsed is None:
            parsed_date = parse_date(value)
            if parsed_date is None:
                raise ValueError(f"Invalid timestamp: {value!r}")
            value = datetime.combine(parsed_date, datetime.min.time())
        else:
            value = parsed
    elif isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, datetime.min.time())
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value


def as_date(value) -> Optional[date]:
    """Absent, null and blank values all mean "unscheduled"."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        parsed = parse_date(value)
        if parsed is not None:
            return parsed
        parsed_dt = as_datetime(value)
        return timezone.localtime(parsed_dt).date()
    raise ValueError(f"Invalid date: {value!r}")


def normalize_ticket(instance) -> TicketRecord:
    return TicketRecord(
        key=instance.key,
        ticket_id=instance.ticket_id,
        customer_name=instance.customer_name,
        phone=instance.phone,
        address=instance.address or "",
        city=instance.city or "",
        product_category=instance.product_category,
        product_model=instance.product_model or "",
        serial_number=instance.serial_number or "",
        warranty_status=bool(instance.warranty_status),
        service_type=instance.service_type,
        issue_description=instance.issue_description or "",
        urgency=instance.urgency,
        status=instance.status,
        technician_id=instance.technician_id,
        created_at=as_datetime(instance.created_at),
        updated_at=as_datetime(instance.updated_at),
        scheduled_date=as_date(getattr(instance, "scheduled_date", None)),
        notes=instance.notes or "",
        service_charge=Decimal(instance.service_charge or 0),
        parts_charge=Decimal(instance.parts_charge or 0),
        commission=Decimal(instance.commission or 0),
        feedback_rating=instance.feedback_rating,
        customer_signature=instance.customer_signature or "",
        photos=tuple(instance.photos or ()),
    )
