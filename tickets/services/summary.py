# tickets/services/summary.py

from dataclasses import asdict, dataclass
from datetime import date
from typing import Iterable, Optional

from django.utils import timezone

from tickets.services.records import TicketRecord
from tickets.utils.choices import TicketStatus, UrgencyLevel

CLOSED_STATUSES = (TicketStatus.COMPLETED, TicketStatus.CLOSED)


@dataclass(frozen=True)
class TicketSummary:
    total: int
    open: int
    high_urgency: int
    completed_today: int

    def as_dict(self):
        return asdict(self)


def summarize_tickets(
        tickets: Iterable[TicketRecord], today: Optional[date] = None
) -> TicketSummary:
    """
    Dashboard counters. "Completed today" counts tickets whose last change
    happened today (local time) and that are now Completed.
    """
    today = today or timezone.localdate()
    total = open_count = high = completed_today = 0
    for ticket in tickets:
        total += 1
        if ticket.status not in CLOSED_STATUSES:
            open_count += 1
        if (
                ticket.urgency == UrgencyLevel.HIGH
                and ticket.status != TicketStatus.CLOSED
        ):
            high += 1
        if (
                ticket.status == TicketStatus.COMPLETED
                and timezone.localtime(ticket.updated_at).date() == today
        ):
            completed_today += 1
    return TicketSummary(
        total=total,
        open=open_count,
        high_urgency=high,
        completed_today=completed_today,
    )
