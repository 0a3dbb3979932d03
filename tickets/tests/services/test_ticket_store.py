# tickets/tests/services/test_ticket_store.py
import dataclasses
from datetime import timedelta
from decimal import Decimal
from unittest import mock
from uuid import UUID, uuid4

import pytest
from django.db import DatabaseError, connections
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from tickets.exceptions import (
    PhotoLimitExceeded, StoreInitializationError, TicketNotFound, TicketPermissionDenied,
    TicketUpdateFailed,
)
from tickets.models import ServiceTicket
from tickets.services.payloads import TicketPatch
from tickets.services.ticket_store import TicketStore
from tickets.utils.choices import TicketStatus, UrgencyLevel


@pytest.mark.django_db
class TestStoreLifecycle:
    def test_unopened_store_rejects_calls(self, draft_factory):
        store = TicketStore()
        with pytest.raises(StoreInitializationError):
            store.create_ticket(draft_factory())
        with pytest.raises(StoreInitializationError):
            store.stream_tickets(lambda s: None, lambda e: None)

    def test_open_fails_when_tables_missing(self):
        introspection = connections["default"].introspection
        with mock.patch.object(introspection, "table_names", return_value=[]):
            with pytest.raises(StoreInitializationError) as exc:
                TicketStore().open()
        assert exc.value.status_code == 503
        assert exc.value.code == "store_unavailable"

    def test_open_fails_when_database_unreachable(self):
        connection = connections["default"]
        with mock.patch.object(
                connection, "ensure_connection",
                side_effect=DatabaseError("connection refused"),
        ):
            with pytest.raises(StoreInitializationError):
                TicketStore().open()

    def test_context_manager_opens_and_closes(self):
        with TicketStore() as store:
            assert store.is_open
            assert store.feed is not None
        assert not store.is_open
        assert store.feed is None


@pytest.mark.django_db
class TestCreateTicket:
    def test_new_ticket_defaults(self, store, draft_factory):
        key = store.create_ticket(draft_factory(urgency=UrgencyLevel.HIGH))
        assert isinstance(key, UUID)

        ticket = store.get_ticket(key)
        assert ticket.status == TicketStatus.NEW
        assert ticket.urgency == UrgencyLevel.HIGH
        assert ticket.created_at == ticket.updated_at
        assert ticket.scheduled_date is None
        assert not ticket.is_scheduled
        assert ticket.photos == ()

    def test_assigns_technician(self, store, draft_factory, technician):
        key = store.create_ticket(draft_factory(technician_id=technician.id))
        assert store.get_ticket(key).technician_id == technician.id

    def test_list_is_newest_first(self, store, draft_factory):
        first = store.create_ticket(draft_factory(customer_name="First"))
        second = store.create_ticket(draft_factory(customer_name="Second"))
        ServiceTicket.objects.filter(key=first).update(
            created_at=timezone.now() - timedelta(hours=1)
        )
        keys = [t.key for t in store.list_tickets()]
        assert keys == [second, first]


@pytest.mark.django_db
class TestUpdateTicket:
    @pytest.fixture
    def ticket(self, store, draft_factory):
        return store.get_ticket(store.create_ticket(draft_factory()))

    def test_partial_update_changes_only_given_fields(self, store, ticket):
        updated = store.update_ticket(
            ticket.key, TicketPatch(status=TicketStatus.IN_PROGRESS)
        )
        assert updated.status == TicketStatus.IN_PROGRESS
        assert updated.updated_at > ticket.updated_at
        assert updated.created_at == ticket.created_at
        assert updated.ticket_id == ticket.ticket_id
        assert updated.customer_name == ticket.customer_name
        assert updated.urgency == ticket.urgency

    def test_service_charge_update_touches_nothing_else(self, store, ticket):
        assert ticket.service_charge == Decimal("0")
        after = store.update_ticket(
            ticket.key, TicketPatch(service_charge=Decimal("50"))
        )
        assert after.updated_at > ticket.updated_at
        assert after == dataclasses.replace(
            ticket,
            service_charge=Decimal("50"),
            updated_at=after.updated_at,
        )

    def test_updated_at_strictly_increases_with_frozen_clock(self, store, ticket):
        frozen = ticket.updated_at
        with mock.patch(
                "tickets.services.ticket_store.timezone.now", return_value=frozen
        ):
            one = store.update_ticket(ticket.key, TicketPatch(notes="a"))
            two = store.update_ticket(ticket.key, TicketPatch(notes="b"))
        assert ticket.updated_at < one.updated_at < two.updated_at
        assert two.notes == "b"

    def test_identity_fields_in_payload_are_ignored(self, store, ticket):
        updated = store.update_ticket(ticket.key, {
            "ticket_id": "PE-JAN99-999",
            "key": str(uuid4()),
            "created_at": "2000-01-01T00:00:00Z",
            "city": "Mumbai",
        })
        assert updated.ticket_id == ticket.ticket_id
        assert updated.key == ticket.key
        assert updated.created_at == ticket.created_at
        assert updated.city == "Mumbai"

    def test_unknown_field_is_rejected(self, store, ticket):
        with pytest.raises(ValidationError):
            store.update_ticket(ticket.key, {"colour": "red"})

    def test_clearing_schedule_with_none(self, store, ticket):
        scheduled = store.update_ticket(
            ticket.key, TicketPatch(scheduled_date=timezone.localdate())
        )
        assert scheduled.is_scheduled
        cleared = store.update_ticket(ticket.key, TicketPatch(scheduled_date=None))
        assert cleared.scheduled_date is None

    def test_missing_ticket(self, store):
        with pytest.raises(TicketNotFound) as exc:
            store.update_ticket(uuid4(), TicketPatch(notes="x"))
        assert exc.value.status_code == 404

    def test_malformed_key_is_not_found(self, store):
        with pytest.raises(TicketNotFound):
            store.get_ticket("not-a-uuid")

    def test_write_failure_surfaces_as_update_failed(self, store, ticket):
        with mock.patch.object(
                ServiceTicket, "save", side_effect=DatabaseError("locked")
        ):
            with pytest.raises(TicketUpdateFailed):
                store.update_ticket(ticket.key, TicketPatch(notes="x"))
        assert store.get_ticket(ticket.key).notes == ""


@pytest.mark.django_db
class TestAppendPhoto:
    @pytest.fixture
    def key(self, store, draft_factory):
        return store.create_ticket(draft_factory())

    def test_appends_to_current_row(self, store, key):
        store.append_photo(key, "/m/a.png")
        ticket = store.append_photo(key, "/m/b.png")
        assert ticket.photos == ("/m/a.png", "/m/b.png")

    def test_full_ticket_is_rejected(self, store, key):
        store.update_ticket(
            key, TicketPatch(photos=[f"/m/{i}.png" for i in range(5)])
        )
        before = store.get_ticket(key)
        with pytest.raises(PhotoLimitExceeded):
            store.append_photo(key, "/m/extra.png")
        assert store.get_ticket(key) == before

    def test_custom_limit(self, store, key):
        store.append_photo(key, "/m/a.png", limit=1)
        with pytest.raises(PhotoLimitExceeded):
            store.append_photo(key, "/m/b.png", limit=1)

    def test_viewer_cannot_append(self, store, key, viewer_user):
        with TicketStore(user=viewer_user) as viewer_store:
            with pytest.raises(TicketPermissionDenied):
                viewer_store.append_photo(key, "/m/a.png")
        assert store.get_ticket(key).photos == ()


@pytest.mark.django_db
class TestPermissions:
    def test_viewer_cannot_create(self, viewer_user, draft_factory):
        with TicketStore(user=viewer_user) as store:
            with pytest.raises(TicketPermissionDenied) as exc:
                store.create_ticket(draft_factory())
        assert exc.value.status_code == 403
        assert not ServiceTicket.objects.exists()

    def test_viewer_can_read_but_not_update(self, store, viewer_user, draft_factory):
        key = store.create_ticket(draft_factory())
        with TicketStore(user=viewer_user) as viewer_store:
            assert viewer_store.get_ticket(key).key == key
            with pytest.raises(TicketPermissionDenied):
                viewer_store.update_ticket(key, TicketPatch(notes="x"))

    def test_staff_user_can_write(self, staff_user, draft_factory):
        with TicketStore(user=staff_user) as store:
            key = store.create_ticket(draft_factory())
            updated = store.update_ticket(key, TicketPatch(notes="checked"))
        assert updated.notes == "checked"
