# tickets/services/payloads.py
"""
Typed write payloads for the ticket store.

`TicketDraft` is what a caller supplies to create a ticket; `TicketPatch` is
a partial update. Identity fields (ticket_id, key, created_at) are not
members of either type, so the store cannot be asked to write them.
"""

from dataclasses import dataclass, field, fields
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from rest_framework.exceptions import ValidationError

from tickets.utils.choices import ServiceType, UrgencyLevel
from tickets.utils.consts import IMMUTABLE_FIELDS


class _Unset:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "UNSET"

    def __bool__(self):
        return False


UNSET: Any = _Unset()


@dataclass
class TicketDraft:
    customer_name: str
    phone: str
    product_category: str
    address: str = ""
    city: str = ""
    product_model: str = ""
    serial_number: str = ""
    warranty_status: bool = False
    service_type: str = ServiceType.SERVICE_PAID
    issue_description: str = ""
    urgency: str = UrgencyLevel.MEDIUM
    technician_id: Optional[int] = None
    scheduled_date: Optional[date] = None
    notes: str = ""
    service_charge: Decimal = Decimal("0")
    parts_charge: Decimal = Decimal("0")
    commission: Decimal = Decimal("0")
    feedback_rating: Optional[int] = None
    customer_signature: str = ""
    photos: List[str] = field(default_factory=list)

    def to_fields(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["photos"] = list(self.photos)
        return data


@dataclass
class TicketPatch:
    customer_name: str = UNSET
    phone: str = UNSET
    address: str = UNSET
    city: str = UNSET
    product_category: str = UNSET
    product_model: str = UNSET
    serial_number: str = UNSET
    warranty_status: bool = UNSET
    service_type: str = UNSET
    issue_description: str = UNSET
    urgency: str = UNSET
    status: str = UNSET
    technician_id: Optional[int] = UNSET
    scheduled_date: Optional[date] = UNSET
    notes: str = UNSET
    service_charge: Decimal = UNSET
    parts_charge: Decimal = UNSET
    commission: Decimal = UNSET
    feedback_rating: Optional[int] = UNSET
    customer_signature: str = UNSET
    photos: List[str] = UNSET

    @classmethod
    def field_names(cls) -> frozenset:
        return frozenset(f.name for f in fields(cls))

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "TicketPatch":
        """
        Build a patch from a loose mapping. Identity keys are dropped,
        unknown keys are rejected.
        """
        allowed = cls.field_names()
        data = {k: v for k, v in payload.items() if k not in IMMUTABLE_FIELDS}
        unknown = sorted(set(data) - allowed)
        if unknown:
            raise ValidationError(
                {name: ["Unknown ticket field."] for name in unknown}
            )
        return cls(**data)

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly set on this patch, `None` included."""
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is UNSET:
                continue
            if f.name == "photos":
                value = list(value or [])
            out[f.name] = value
        return out


