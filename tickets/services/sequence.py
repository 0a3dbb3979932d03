# tickets/services/sequence.py
"""
Month-scoped ticket numbering.

`allocate_sequence` must be called inside the transaction that inserts the
ticket. It reads the counter for the prefix and writes `count + 1` with a
compare-and-set on the value it read; if another writer got there first it
raises `SequenceConflict` and the caller retries the whole transaction. This
keeps the counter and the ticket all-or-nothing on every backend, with or
without row locks.
"""

import re
from datetime import datetime
from typing import Optional, Tuple

from django.db import IntegrityError, transaction
from django.utils import timezone

from tickets import settings as ticket_settings
from tickets.exceptions import SequenceConflict
from tickets.models import TicketCounter
from tickets.utils.consts import MONTH_ABBREVIATIONS, SEQUENCE_PADDING

TICKET_ID_RE = re.compile(
    r"^(?P<prefix>[A-Z]{2}-(?P<month>[A-Z]{3})(?P<year>\d{2}))-(?P<number>\d{3,})$"
)


def month_prefix(moment: Optional[datetime] = None, code: Optional[str] = None) -> str:
    """`PE-JUL24` for July 2024, using the local time zone."""
    moment = timezone.localtime(moment or timezone.now())
    code = code or ticket_settings.TICKETS_ID_PREFIX
    month = MONTH_ABBREVIATIONS[moment.month - 1]
    return f"{code}-{month}{moment.year % 100:02d}"


def format_ticket_id(prefix: str, number: int) -> str:
    if number < 1:
        raise ValueError("ticket numbers start at 1")
    return f"{prefix}-{number:0{SEQUENCE_PADDING}d}"


def parse_ticket_id(value: str) -> Tuple[str, int]:
    match = TICKET_ID_RE.match(value or "")
    if not match or match.group("month") not in MONTH_ABBREVIATIONS:
        raise ValueError(f"Malformed ticket ID: {value!r}")
    return match.group("prefix"), int(match.group("number"))


def current_count(prefix: str, using: str = "default") -> int:
    counter = TicketCounter.objects.using(using).filter(prefix=prefix).only("count").first()
    return counter.count if counter else 0


def allocate_sequence(prefix: str, using: str = "default") -> int:
    """
    Reserve the next number for `prefix` inside the surrounding atomic block.
    Raises SequenceConflict when the counter moved since it was read.
    """
    now = timezone.now()
    counter = TicketCounter.objects.using(using).filter(prefix=prefix).only("count").first()

    if counter is None:
        # First ticket of the month: the unique prefix decides the winner.
        try:
            with transaction.atomic(using=using):
                TicketCounter.objects.using(using).create(
                    prefix=prefix, count=1, created_at=now, updated_at=now,
                )
        except IntegrityError as exc:
            raise SequenceConflict(prefix) from exc
        return 1

    next_value = counter.count + 1
    updated = TicketCounter.objects.using(using).filter(
        prefix=prefix, count=counter.count
    ).update(count=next_value, updated_at=now)
    if updated != 1:
        raise SequenceConflict(prefix)
    return next_value
