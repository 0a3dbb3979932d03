# tickets/tests/services/test_live_sync.py
from datetime import timedelta
from unittest import mock

import pytest
from django.utils import timezone

from tickets.exceptions import StreamError, TicketCreationFailed, TicketUpdateFailed
from tickets.services.live_sync import LiveTicketCache, SyncState
from tickets.services.payloads import TicketDraft, TicketPatch
from tickets.services.pending import PendingWriteTracker
from tickets.services.records import Snapshot
from tickets.tests.factories import make_record


class FakeSubscription:
    def __init__(self):
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeStore:
    """Stands in for TicketStore; the test pushes snapshots by hand."""

    def __init__(self):
        self.subscriptions = []
        self.on_data = None
        self.on_error = None
        self.create_ticket = mock.Mock()
        self.update_ticket = mock.Mock()

    def stream_tickets(self, on_data, on_error):
        self.on_data, self.on_error = on_data, on_error
        subscription = FakeSubscription()
        self.subscriptions.append(subscription)
        return subscription

    def push(self, sequence, *tickets):
        self.on_data(Snapshot(sequence=sequence, tickets=tuple(tickets)))


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def cache(fake_store):
    cache = LiveTicketCache(fake_store).mount()
    yield cache
    cache.unmount()


class TestLiveTicketCache:
    def test_loading_until_first_snapshot(self, cache, fake_store):
        assert cache.is_loading
        assert cache.tickets == ()
        ticket = make_record()
        fake_store.push(1, ticket)
        assert cache.state == SyncState.SYNCED
        assert cache.tickets == (ticket,)
        assert cache.get(ticket.key) == ticket

    def test_mount_is_idempotent(self, cache, fake_store):
        cache.mount()
        assert len(fake_store.subscriptions) == 1

    def test_out_of_order_snapshot_is_dropped(self, cache, fake_store):
        newer = make_record(status="Assigned")
        older = make_record(key=newer.key, status="New")
        fake_store.push(3, newer)
        fake_store.push(2, older)
        assert cache.get(newer.key).status == "Assigned"

    def test_stream_error_keeps_last_known_tickets(self, cache, fake_store):
        ticket = make_record()
        fake_store.push(1, ticket)
        fake_store.on_error(StreamError("gone"))

        assert cache.is_stale
        assert cache.stream_error.code == "stream_failed"
        assert cache.tickets == (ticket,)

        fake_store.push(2)
        assert cache.tickets == (ticket,)

    def test_resubscribe_replaces_subscription(self, cache, fake_store):
        fake_store.push(5, make_record())
        fake_store.on_error(StreamError())
        first = fake_store.subscriptions[0]

        cache.resubscribe()
        assert first.cancelled
        assert len(fake_store.subscriptions) == 2
        assert cache.is_loading
        assert cache.stream_error is None

        fake_store.push(1)
        assert cache.state == SyncState.SYNCED
        assert cache.tickets == ()

    def test_unmount_cancels_and_ignores_late_data(self, cache, fake_store):
        cache.unmount()
        assert fake_store.subscriptions[0].cancelled
        assert not cache.is_mounted
        fake_store.push(1, make_record())
        assert cache.tickets == ()

    def test_mount_failure_leaves_cache_unmounted(self):
        store = FakeStore()
        store.stream_tickets = mock.Mock(side_effect=StreamError())
        cache = LiveTicketCache(store)
        with pytest.raises(StreamError):
            cache.mount()
        assert not cache.is_mounted

    def test_listeners_are_notified(self, cache, fake_store):
        seen = []
        cache.add_listener(lambda c: seen.append(c.state))
        fake_store.push(1)
        fake_store.on_error(StreamError())
        assert seen == [SyncState.SYNCED, SyncState.ERRORED]

    def test_add_ticket_does_not_touch_list(self, cache, fake_store):
        fake_store.push(1)
        draft = TicketDraft(customer_name="A", phone="1", product_category="TV")
        cache.add_ticket(draft)
        fake_store.create_ticket.assert_called_once_with(draft)
        assert cache.tickets == ()

    def test_operation_error_is_separate_from_stream(self, cache, fake_store):
        fake_store.push(1)
        fake_store.create_ticket.side_effect = TicketCreationFailed()
        draft = TicketDraft(customer_name="A", phone="1", product_category="TV")

        with pytest.raises(TicketCreationFailed):
            cache.add_ticket(draft)

        assert isinstance(cache.operation_error, TicketCreationFailed)
        assert cache.state == SyncState.SYNCED
        assert cache.stream_error is None
        cache.dismiss_operation_error()
        assert cache.operation_error is None

    def test_context_manager_mounts_and_unmounts(self, fake_store):
        with LiveTicketCache(fake_store) as cache:
            assert cache.is_mounted
        assert fake_store.subscriptions[0].cancelled


class TestOptimisticEcho:
    @pytest.fixture
    def tracked(self, fake_store):
        cache = LiveTicketCache(fake_store, tracker=PendingWriteTracker()).mount()
        yield cache
        cache.unmount()

    def test_patch_is_visible_before_echo(self, tracked, fake_store):
        ticket = make_record()
        fake_store.push(1, ticket)

        tracked.update_ticket(ticket.key, TicketPatch(status="Assigned"))
        assert tracked.tickets[0].status == "New"
        assert tracked.visible_tickets[0].status == "Assigned"

    def test_echo_clears_pending_write(self, tracked, fake_store):
        ticket = make_record()
        fake_store.push(1, ticket)
        tracked.update_ticket(ticket.key, TicketPatch(status="Assigned"))

        echoed = make_record(
            key=ticket.key, status="Assigned",
            updated_at=timezone.now() + timedelta(seconds=1),
        )
        fake_store.push(2, echoed)
        assert len(tracked.tracker) == 0
        assert tracked.visible_tickets == (echoed,)

    def test_failed_update_rolls_back_overlay(self, tracked, fake_store):
        ticket = make_record()
        fake_store.push(1, ticket)
        fake_store.update_ticket.side_effect = TicketUpdateFailed()

        with pytest.raises(TicketUpdateFailed):
            tracked.update_ticket(ticket.key, TicketPatch(status="Closed"))

        assert tracked.visible_tickets == (ticket,)
        assert isinstance(tracked.operation_error, TicketUpdateFailed)

    def test_failed_update_keeps_earlier_write_in_flight(self, tracked, fake_store):
        ticket = make_record()
        fake_store.push(1, ticket)
        tracked.update_ticket(ticket.key, TicketPatch(status="Assigned"))
        fake_store.update_ticket.side_effect = TicketUpdateFailed()

        with pytest.raises(TicketUpdateFailed):
            tracked.update_ticket(ticket.key, TicketPatch(notes="bring ladder"))

        visible = tracked.visible_tickets[0]
        assert visible.status == "Assigned"
        assert visible.notes == ticket.notes

    def test_accepts_plain_dict_patch(self, tracked, fake_store):
        ticket = make_record()
        fake_store.push(1, ticket)
        tracked.update_ticket(str(ticket.key), {"status": "Assigned"})

        assert tracked.visible_tickets[0].status == "Assigned"
        sent = fake_store.update_ticket.call_args.args[1]
        assert sent == TicketPatch(status="Assigned")


class TestPendingWriteTracker:
    def test_patches_for_same_key_merge(self):
        tracker = PendingWriteTracker()
        ticket = make_record()
        tracker.record(ticket.key, TicketPatch(status="Assigned"))
        tracker.record(ticket.key, TicketPatch(notes="bring ladder"))
        changes = tracker.get(ticket.key).patch.changes()
        assert changes == {"status": "Assigned", "notes": "bring ladder"}

    def test_discard_one_write_keeps_the_others(self):
        tracker = PendingWriteTracker()
        ticket = make_record()
        tracker.record(ticket.key, TicketPatch(status="Assigned"))
        failed = tracker.record(ticket.key, TicketPatch(status="Closed", notes="x"))
        tracker.discard(ticket.key, failed)
        assert tracker.get(ticket.key).patch.changes() == {"status": "Assigned"}
        tracker.discard(ticket.key)
        assert ticket.key not in tracker

    def test_snapshot_drops_only_acknowledged_writes(self):
        tracker = PendingWriteTracker()
        ticket = make_record()
        tracker.record(
            ticket.key, TicketPatch(status="Assigned"),
            issued_at=ticket.updated_at - timedelta(seconds=1),
        )
        tracker.record(
            ticket.key, TicketPatch(notes="later"),
            issued_at=ticket.updated_at + timedelta(seconds=1),
        )
        tracker.reconcile(Snapshot(sequence=1, tickets=(ticket,)))
        assert tracker.get(ticket.key).patch.changes() == {"notes": "later"}

    def test_stale_snapshot_keeps_entry(self):
        tracker = PendingWriteTracker()
        ticket = make_record()
        tracker.record(
            ticket.key, TicketPatch(status="Assigned"),
            issued_at=ticket.updated_at + timedelta(seconds=5),
        )
        tracker.reconcile(Snapshot(sequence=1, tickets=(ticket,)))
        assert ticket.key in tracker

    def test_overlay_leaves_other_tickets_alone(self):
        tracker = PendingWriteTracker()
        a, b = make_record(), make_record(ticket_id="PE-JUL24-002")
        tracker.record(a.key, TicketPatch(photos=["/media/x.png"]))
        overlaid = tracker.overlay((a, b))
        assert overlaid[0].photos == ("/media/x.png",)
        assert overlaid[1] is b
