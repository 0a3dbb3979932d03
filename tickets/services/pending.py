# tickets/services/pending.py
"""
Pending-write tracker for optimistic echo.

A view that wants instant feedback records each patch it sends; until a
snapshot shows the ticket with `updated_at >= issued_at`, `overlay()` layers
the patch over the authoritative list. Patches are kept per write, so a
failed write can be withdrawn without touching others still in flight.
"""

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from django.utils import timezone

from tickets.services.payloads import TicketPatch
from tickets.services.records import Snapshot, TicketRecord


@dataclass(frozen=True, eq=False)
class PendingWrite:
    patch: TicketPatch
    issued_at: datetime


def _as_key(key) -> UUID:
    return key if isinstance(key, UUID) else UUID(str(key))


def _merge(entries: List[PendingWrite]) -> PendingWrite:
    changes = {}
    for entry in entries:
        changes.update(entry.patch.changes())
    return PendingWrite(
        patch=TicketPatch(**changes), issued_at=entries[-1].issued_at
    )


class PendingWriteTracker:
    def __init__(self):
        self._lock = threading.Lock()
        self._pending: Dict[UUID, List[PendingWrite]] = {}

    def __len__(self):
        return len(self._pending)

    def __contains__(self, key):
        return _as_key(key) in self._pending

    def record(self, key, patch: TicketPatch, issued_at: Optional[datetime] = None) -> PendingWrite:
        entry = PendingWrite(patch=patch, issued_at=issued_at or timezone.now())
        with self._lock:
            self._pending.setdefault(_as_key(key), []).append(entry)
        return entry

    def discard(self, key, entry: Optional[PendingWrite] = None) -> None:
        """Withdraw one write, or every write for `key` when none is given."""
        key = _as_key(key)
        with self._lock:
            if entry is None:
                self._pending.pop(key, None)
                return
            remaining = [e for e in self._pending.get(key, ()) if e is not entry]
            if remaining:
                self._pending[key] = remaining
            else:
                self._pending.pop(key, None)

    def get(self, key) -> Optional[PendingWrite]:
        """Pending writes for `key` merged in issue order."""
        with self._lock:
            entries = list(self._pending.get(_as_key(key), ()))
        return _merge(entries) if entries else None

    def reconcile(self, snapshot: Snapshot) -> None:
        """Drop writes the snapshot has caught up with."""
        with self._lock:
            for key, entries in list(self._pending.items()):
                ticket = snapshot.get(key)
                if ticket is None:
                    continue
                remaining = [
                    e for e in entries if e.issued_at > ticket.updated_at
                ]
                if remaining:
                    self._pending[key] = remaining
                else:
                    del self._pending[key]

    def overlay(self, tickets: Iterable[TicketRecord]) -> Tuple[TicketRecord, ...]:
        with self._lock:
            pending = {
                key: _merge(entries) for key, entries in self._pending.items()
            }
        return tuple(
            ticket.with_changes(pending[ticket.key].patch.changes())
            if ticket.key in pending else ticket
            for ticket in tickets
        )
