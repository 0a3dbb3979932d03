# tickets/tests/services/test_feed.py
from datetime import timedelta
from unittest import mock

import pytest
from django.db import DatabaseError
from django.utils import timezone

from tickets.exceptions import StreamError
from tickets.models import ServiceTicket
from tickets.services.feed import TicketFeed
from tickets.services.payloads import TicketPatch


class Recorder:
    def __init__(self):
        self.snapshots = []
        self.errors = []

    def on_data(self, snapshot):
        self.snapshots.append(snapshot)

    def on_error(self, error):
        self.errors.append(error)

    @property
    def latest(self):
        return self.snapshots[-1]


@pytest.mark.django_db
class TestStreamTickets:
    def test_initial_snapshot_is_delivered_immediately(self, store, draft_factory):
        key = store.create_ticket(draft_factory())
        rec = Recorder()
        store.stream_tickets(rec.on_data, rec.on_error)
        assert len(rec.snapshots) == 1
        assert [t.key for t in rec.latest.tickets] == [key]

    def test_empty_collection_yields_empty_snapshot(self, store):
        rec = Recorder()
        store.stream_tickets(rec.on_data, rec.on_error)
        assert len(rec.latest) == 0

    def test_committed_create_reaches_subscriber(
            self, store, draft_factory, django_capture_on_commit_callbacks
    ):
        rec = Recorder()
        store.stream_tickets(rec.on_data, rec.on_error)
        with django_capture_on_commit_callbacks(execute=True):
            key = store.create_ticket(draft_factory())

        assert rec.latest.get(key) is not None
        assert rec.latest.get(key).status == "New"
        sequences = [s.sequence for s in rec.snapshots]
        assert sequences == sorted(sequences)
        assert len(set(sequences)) == len(sequences)

    def test_committed_update_reaches_subscriber(
            self, store, draft_factory, django_capture_on_commit_callbacks
    ):
        key = store.create_ticket(draft_factory())
        rec = Recorder()
        store.stream_tickets(rec.on_data, rec.on_error)
        with django_capture_on_commit_callbacks(execute=True):
            store.update_ticket(key, TicketPatch(status="Assigned"))
        assert rec.latest.get(key).status == "Assigned"

    def test_cancel_stops_deliveries(
            self, store, draft_factory, django_capture_on_commit_callbacks
    ):
        rec = Recorder()
        subscription = store.stream_tickets(rec.on_data, rec.on_error)
        subscription.cancel()
        with django_capture_on_commit_callbacks(execute=True):
            store.create_ticket(draft_factory())
        assert len(rec.snapshots) == 1
        assert not subscription.active
        assert len(store.feed) == 0

    def test_read_failure_fires_on_error_once(self, store):
        rec = Recorder()
        subscription = store.stream_tickets(rec.on_data, rec.on_error)
        with mock.patch.object(
                store, "_queryset", side_effect=DatabaseError("connection lost")
        ):
            store.feed.publish()
            store.feed.publish()

        assert len(rec.errors) == 1
        error = rec.errors[0]
        assert isinstance(error, StreamError)
        assert error.code == "stream_failed"
        assert isinstance(error.cause, DatabaseError)
        assert not subscription.active
        assert len(rec.snapshots) == 1

    def test_consumer_exception_does_not_end_subscription(self, store):
        calls = []

        def on_data(snapshot):
            calls.append(snapshot.sequence)
            raise RuntimeError("render failed")

        subscription = store.stream_tickets(on_data, lambda e: None)
        store.feed.publish()
        assert len(calls) == 2
        assert subscription.active

    def test_poll_picks_up_out_of_band_writes(self, store, draft_factory):
        key = store.create_ticket(draft_factory())
        rec = Recorder()
        store.stream_tickets(rec.on_data, rec.on_error)

        store.poll()
        delivered = len(rec.snapshots)
        assert store.poll() is False
        assert len(rec.snapshots) == delivered

        ServiceTicket.objects.filter(key=key).update(
            notes="edited elsewhere",
            updated_at=timezone.now() + timedelta(seconds=1),
        )
        assert store.poll() is True
        assert rec.latest.get(key).notes == "edited elsewhere"

    def test_closing_store_cancels_subscriptions(self, draft_factory):
        from tickets.services.ticket_store import TicketStore

        store = TicketStore().open()
        rec = Recorder()
        subscription = store.stream_tickets(rec.on_data, rec.on_error)
        store.close()
        assert not subscription.active
        assert rec.errors == []


class TestTicketFeed:
    def test_sequences_increase_per_delivery(self):
        feed = TicketFeed()
        rec = Recorder()
        feed.subscribe(lambda: (), rec.on_data, rec.on_error)
        feed.publish()
        feed.publish()
        assert [s.sequence for s in rec.snapshots] == [1, 2, 3]
        feed.close()

    def test_poll_without_fingerprint_is_noop(self):
        feed = TicketFeed()
        assert feed.poll() is False
        feed.close()

    def test_fingerprint_failure_fails_subscribers(self):
        feed = TicketFeed(fingerprint=mock.Mock(side_effect=DatabaseError("gone")))
        rec = Recorder()
        feed.subscribe(lambda: (), rec.on_data, rec.on_error)
        assert feed.poll() is False
        assert len(rec.errors) == 1
        assert len(feed) == 0
