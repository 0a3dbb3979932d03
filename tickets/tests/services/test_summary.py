# tickets/tests/services/test_summary.py
from datetime import date, datetime, timedelta, timezone as dt_timezone

from tickets.services.summary import summarize_tickets
from tickets.tests.factories import make_record

TODAY = date(2024, 7, 15)
NOON = datetime(2024, 7, 15, 12, 0, tzinfo=dt_timezone.utc)


class TestSummary:
    def test_empty(self):
        summary = summarize_tickets([], today=TODAY)
        assert summary.as_dict() == {
            "total": 0, "open": 0, "high_urgency": 0, "completed_today": 0,
        }

    def test_counts(self):
        tickets = [
            make_record(status="New", urgency="High"),
            make_record(status="In Progress", urgency="Low"),
            make_record(status="Completed", urgency="High", updated_at=NOON),
            make_record(
                status="Completed", updated_at=NOON - timedelta(days=1)
            ),
            make_record(status="Closed", urgency="High"),
        ]
        summary = summarize_tickets(tickets, today=TODAY)
        assert summary.total == 5
        assert summary.open == 2
        assert summary.high_urgency == 2
        assert summary.completed_today == 1
