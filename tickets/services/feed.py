# tickets/services/feed.py
"""
In-process change feed for the ticket collection.

Django signals (see tickets/signals.py) call `broadcast()` after each commit
that touched a ticket; every live TicketFeed then rebuilds a full snapshot
for each of its subscriptions. Writes made by other processes are picked up
with `TicketFeed.poll()`.

Every delivery is stamped with a sequence number taken after the triggering
commit, so a snapshot with a higher number always reflects at least as many
commits as any lower one. Consumers drop snapshots whose number does not
increase.
"""

import itertools
import logging
import threading
import weakref
from typing import Callable, Hashable, List, Optional, Tuple

from django.db import DatabaseError

from tickets.exceptions import StreamError, TicketServiceError
from tickets.services.records import Snapshot, TicketRecord

logger = logging.getLogger(__name__)

SnapshotBuilder = Callable[[], Tuple[TicketRecord, ...]]
FingerprintReader = Callable[[], Hashable]

_live_feeds: "weakref.WeakSet[TicketFeed]" = weakref.WeakSet()
_live_feeds_lock = threading.Lock()


class Subscription:
    """Cancellation handle returned by TicketStore.stream_tickets."""

    def __init__(
            self,
            feed: "TicketFeed",
            build: SnapshotBuilder,
            on_data: Callable[[Snapshot], None],
            on_error: Callable[[StreamError], None],
    ):
        self._feed = feed
        self._build = build
        self._on_data = on_data
        self._on_error = on_error
        self._lock = threading.Lock()
        self._active = True
        self.error: Optional[StreamError] = None

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
        self._feed._discard(self)

    def deliver(self, sequence: int) -> None:
        if not self._active:
            return
        try:
            tickets = self._build()
        except (DatabaseError, TicketServiceError) as exc:
            self._fail(exc)
            return
        with self._lock:
            if not self._active:
                return
        try:
            self._on_data(Snapshot(sequence=sequence, tickets=tickets))
        except Exception:
            logger.exception("Ticket snapshot consumer raised")

    def _fail(self, exc: Exception) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
        self._feed._discard(self)
        if isinstance(exc, StreamError):
            error = exc
        else:
            detail = getattr(exc, "detail", None) or str(exc)
            error = StreamError(detail=detail, cause=exc)
        self.error = error
        logger.error(f"Ticket subscription stopped: {exc!r}")
        try:
            self._on_error(error)
        except Exception:
            logger.exception("Ticket stream error consumer raised")


class TicketFeed:
    def __init__(self, fingerprint: Optional[FingerprintReader] = None):
        self._lock = threading.Lock()
        self._subscriptions: List[Subscription] = []
        self._sequence = itertools.count(1)
        self._fingerprint_reader = fingerprint
        self._last_fingerprint = None
        with _live_feeds_lock:
            _live_feeds.add(self)

    def __len__(self):
        with self._lock:
            return len(self._subscriptions)

    def next_sequence(self) -> int:
        with self._lock:
            return next(self._sequence)

    def subscribe(
            self,
            build: SnapshotBuilder,
            on_data: Callable[[Snapshot], None],
            on_error: Callable[[StreamError], None],
    ) -> Subscription:
        subscription = Subscription(self, build, on_data, on_error)
        with self._lock:
            self._subscriptions.append(subscription)
        subscription.deliver(self.next_sequence())
        return subscription

    def publish(self) -> None:
        with self._lock:
            subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            subscription.deliver(self.next_sequence())

    def poll(self) -> bool:
        """Publish when the collection changed since the last poll."""
        if self._fingerprint_reader is None:
            return False
        try:
            fingerprint = self._fingerprint_reader()
        except DatabaseError as exc:
            self.fail_all(exc)
            return False
        if fingerprint == self._last_fingerprint:
            return False
        self._last_fingerprint = fingerprint
        self.publish()
        return True

    def fail_all(self, exc: Exception) -> None:
        with self._lock:
            subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            subscription._fail(exc)

    def close(self) -> None:
        with self._lock:
            subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            subscription.cancel()
        with _live_feeds_lock:
            _live_feeds.discard(self)

    def _discard(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)


def broadcast() -> None:
    """Push a fresh snapshot to every subscription of every open feed."""
    with _live_feeds_lock:
        feeds = list(_live_feeds)
    for feed in feeds:
        feed.publish()
