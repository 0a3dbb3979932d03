# tickets/tests/commands/test_commands.py
from io import StringIO
from unittest import mock

import pytest
from django.core.management import call_command

from tickets.models import Technician
from tickets.utils.consts import DEFAULT_TECHNICIANS


@pytest.mark.django_db
class TestSeedTechnicians:
    def test_creates_default_roster_once(self):
        out = StringIO()
        call_command("seed_technicians", stdout=out)
        call_command("seed_technicians", stdout=out)
        assert Technician.objects.count() == len(DEFAULT_TECHNICIANS)
        assert "already exists" in out.getvalue()

    def test_accepts_names(self):
        call_command("seed_technicians", "Priya Nair", stdout=StringIO())
        assert list(Technician.objects.values_list("name", flat=True)) == ["Priya Nair"]


@pytest.mark.django_db
class TestWatchTickets:
    def test_prints_snapshot(self, store, draft_factory):
        store.create_ticket(draft_factory(customer_name="Asha Rao"))
        out = StringIO()
        with mock.patch("tickets.management.commands.watch_tickets.time.sleep"):
            call_command(
                "watch_tickets", "--iterations=1", "--interval=0",
                stdout=out, stderr=StringIO(),
            )
        output = out.getvalue()
        assert "1 tickets" in output
        assert "Asha Rao" in output
