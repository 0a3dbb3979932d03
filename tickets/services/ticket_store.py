# tickets/services/ticket_store.py

import logging
from datetime import timedelta
from typing import Callable, Optional, Tuple, Union
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, OperationalError, connections, transaction
from django.db.models import Count, Max
from django.utils import timezone

from tickets import settings as ticket_settings
from tickets.exceptions import (
    PhotoLimitExceeded, SequenceConflict, StoreInitializationError, StreamError,
    TicketCreationFailed, TicketNotFound, TicketPermissionDenied,
    TicketUpdateFailed,
)
from tickets.models import ServiceTicket, TicketCounter
from tickets.services.feed import Subscription, TicketFeed
from tickets.services.payloads import TicketDraft, TicketPatch
from tickets.services.records import Snapshot, TicketRecord, normalize_ticket
from tickets.services.sequence import (
    allocate_sequence, format_ticket_id, month_prefix,
)
from tickets.utils.choices import TicketStatus
from utils.retry import retry_call

logger = logging.getLogger(__name__)

REQUIRED_MODELS = (ServiceTicket, TicketCounter)


def _is_transient_create_error(exc: BaseException) -> bool:
    return isinstance(exc, (SequenceConflict, OperationalError))


class TicketStore:
    """
    Ticket store client.

    Construct one per consumer and pass it where it is needed; nothing in the
    sync layer reaches for a global connection. The store must be opened
    before use:

        with TicketStore(user=request.user) as store:
            key = store.create_ticket(draft)

    When `user` is given, Django model permissions are enforced
    (view/add/change on ServiceTicket) and failures surface as
    TicketPermissionDenied.
    """

    def __init__(
            self,
            using: str = "default",
            user=None,
            feed: Optional[TicketFeed] = None,
            max_create_attempts: Optional[int] = None,
    ):
        self.using = using
        self.user = user
        self.max_create_attempts = (
                max_create_attempts
                or ticket_settings.TICKETS_CREATE_MAX_ATTEMPTS
        )
        self._feed = feed
        self._owns_feed = feed is None
        self._is_open = False

    # ---------- Lifecycle ----------
    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def feed(self) -> Optional[TicketFeed]:
        return self._feed

    def open(self) -> "TicketStore":
        if self._is_open:
            return self
        try:
            connection = connections[self.using]
            connection.ensure_connection()
            tables = set(connection.introspection.table_names())
        except DatabaseError as exc:
            logger.error(f"Ticket store '{self.using}' is unreachable: {exc}")
            raise StoreInitializationError() from exc

        missing = [
            model._meta.db_table for model in REQUIRED_MODELS
            if model._meta.db_table not in tables
        ]
        if missing:
            logger.error(
                f"Ticket store '{self.using}' is missing tables: {missing}"
            )
            raise StoreInitializationError(
                f"Ticket store is not set up (missing: {', '.join(missing)})."
            )

        if self._feed is None:
            self._feed = TicketFeed(fingerprint=self._fingerprint)
        self._is_open = True
        logger.info(f"Ticket store '{self.using}' opened")
        return self

    def close(self) -> None:
        if not self._is_open:
            return
        if self._owns_feed and self._feed is not None:
            self._feed.close()
            self._feed = None
        self._is_open = False
        logger.info(f"Ticket store '{self.using}' closed")

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _require_open(self) -> None:
        if not self._is_open:
            raise StoreInitializationError("Ticket store is not open.")

    def check_permission(self, action: str) -> None:
        if self.user is None:
            return
        if not self.user.has_perm(f"tickets.{action}_serviceticket"):
            raise TicketPermissionDenied()

    def _queryset(self):
        return ServiceTicket.objects.using(self.using)

    # ---------- Writes ----------
    def create_ticket(self, draft: TicketDraft) -> UUID:
        """
        Insert a ticket with status New and a fresh month-scoped ID.
        Counter and ticket are written in one transaction; a contended
        counter rolls the transaction back and it is retried.
        """
        self._require_open()
        self.check_permission("add")
        prefix = month_prefix()
        fields = draft.to_fields()

        def attempt() -> ServiceTicket:
            now = timezone.now()
            with transaction.atomic(using=self.using):
                number = allocate_sequence(prefix, using=self.using)
                ticket = ServiceTicket(
                    **fields,
                    ticket_id=format_ticket_id(prefix, number),
                    status=TicketStatus.NEW,
                    created_at=now,
                    updated_at=now,
                )
                ticket.save(using=self.using, force_insert=True)
            return ticket

        try:
            ticket = retry_call(
                attempt,
                is_retryable=_is_transient_create_error,
                max_attempts=self.max_create_attempts,
                base_delay=ticket_settings.TICKETS_CREATE_BACKOFF_SECONDS,
                label=f"create_ticket[{prefix}]",
            )
        except (SequenceConflict, DatabaseError) as exc:
            logger.error(f"Ticket creation under {prefix} failed: {exc!r}")
            raise TicketCreationFailed() from exc

        logger.info(f"Created ticket {ticket.ticket_id} ({ticket.key})")
        return ticket.key

    def update_ticket(
            self, key, patch: Union[TicketPatch, dict]
    ) -> TicketRecord:
        """
        Merge the set fields of `patch` into the ticket and bump updated_at.
        Identity fields are never written.
        """
        self._require_open()
        self.check_permission("change")
        if not isinstance(patch, TicketPatch):
            patch = TicketPatch.from_payload(patch)
        changes = patch.changes()
        ticket = self._write(key, lambda current: changes)
        logger.info(
            f"Updated ticket {ticket.ticket_id}: {sorted(changes) or '-'}"
        )
        return normalize_ticket(ticket)

    def append_photo(
            self, key, url: str, limit: Optional[int] = None
    ) -> TicketRecord:
        """
        Append `url` to the ticket's photos. The cap is checked against the
        locked row, so concurrent appends neither lose URLs nor overshoot it.
        """
        self._require_open()
        self.check_permission("change")
        limit = limit or ticket_settings.TICKETS_MAX_PHOTOS

        def add_photo(current: ServiceTicket) -> dict:
            photos = list(current.photos or [])
            if len(photos) >= limit:
                raise PhotoLimitExceeded(
                    f"A ticket can hold at most {limit} photos."
                )
            return {"photos": [*photos, url]}

        ticket = self._write(key, add_photo)
        logger.info(
            f"Attached photo to {ticket.ticket_id} "
            f"({len(ticket.photos)}/{limit})"
        )
        return normalize_ticket(ticket)

    def _write(
            self, key, build_changes: Callable[[ServiceTicket], dict]
    ) -> ServiceTicket:
        """Lock the row, apply the changes and bump updated_at."""
        try:
            with transaction.atomic(using=self.using):
                ticket = self._get_for_update(key)
                changes = build_changes(ticket)
                for name, value in changes.items():
                    setattr(ticket, name, value)
                now = timezone.now()
                if now <= ticket.updated_at:
                    now = ticket.updated_at + timedelta(microseconds=1)
                ticket.updated_at = now
                ticket.save(
                    using=self.using,
                    update_fields=[*changes.keys(), "updated_at"],
                )
        except DatabaseError as exc:
            logger.error(f"Updating ticket {key} failed: {exc!r}")
            raise TicketUpdateFailed() from exc

        ticket.refresh_from_db(using=self.using)
        return ticket

    def _get_for_update(self, key) -> ServiceTicket:
        try:
            return self._queryset().select_for_update().get(key=key)
        except (ServiceTicket.DoesNotExist, DjangoValidationError, ValueError):
            raise TicketNotFound()

    # ---------- Reads ----------
    def get_ticket(self, key) -> TicketRecord:
        self._require_open()
        self.check_permission("view")
        try:
            return normalize_ticket(self._queryset().get(key=key))
        except (ServiceTicket.DoesNotExist, DjangoValidationError, ValueError):
            raise TicketNotFound()

    def list_tickets(self) -> Tuple[TicketRecord, ...]:
        self._require_open()
        return self._snapshot_tickets()

    def tickets_queryset(self):
        """Ordered queryset for callers that filter before normalizing."""
        self._require_open()
        self.check_permission("view")
        return self._queryset().order_by("-created_at", "-ticket_id")

    def _snapshot_tickets(self) -> Tuple[TicketRecord, ...]:
        self.check_permission("view")
        queryset = self._queryset().order_by("-created_at", "-ticket_id")
        return tuple(normalize_ticket(ticket) for ticket in queryset)

    def _fingerprint(self):
        stats = self._queryset().aggregate(
            count=Count("key"), latest=Max("updated_at")
        )
        return stats["count"], stats["latest"]

    # ---------- Live subscription ----------
    def stream_tickets(
            self,
            on_data: Callable[[Snapshot], None],
            on_error: Callable[[StreamError], None],
    ) -> Subscription:
        """
        Subscribe to the full ticket list ordered by created_at desc.
        `on_data` receives the current list immediately and again after
        every change; `on_error` fires at most once, after which the
        subscription is dead. Cancel the returned handle when done.
        """
        self._require_open()
        return self._feed.subscribe(self._snapshot_tickets, on_data, on_error)

    def poll(self) -> bool:
        """Check for writes from other processes and notify subscribers."""
        self._require_open()
        return self._feed.poll()
