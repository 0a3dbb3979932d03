# tickets/management/commands/watch_tickets.py
import time

from django.core.management.base import BaseCommand, CommandError

from tickets.exceptions import TicketServiceError
from tickets.services.live_sync import LiveTicketCache
from tickets.services.summary import summarize_tickets
from tickets.services.ticket_store import TicketStore


class Command(BaseCommand):
    help = "Print the live ticket list whenever it changes"

    def add_arguments(self, parser):
        parser.add_argument(
            "--interval", type=float, default=2.0,
            help="Seconds between checks for changes from other processes",
        )
        parser.add_argument(
            "--limit", type=int, default=10,
            help="Number of tickets to print per snapshot",
        )
        parser.add_argument(
            "--iterations", type=int, default=0,
            help="Stop after this many polls (0 runs until interrupted)",
        )

    def handle(self, *args, **options):
        self.limit = options["limit"]
        try:
            store = TicketStore().open()
        except TicketServiceError as e:
            raise CommandError(str(e.detail))

        cache = LiveTicketCache(store)
        cache.add_listener(self._render)
        iterations = 0
        try:
            with cache:
                while not options["iterations"] or iterations < options["iterations"]:
                    if cache.is_stale:
                        self.stderr.write("Feed failed, resubscribing")
                        cache.resubscribe()
                    time.sleep(options["interval"])
                    store.poll()
                    iterations += 1
        except KeyboardInterrupt:
            pass
        finally:
            store.close()

    def _render(self, cache: LiveTicketCache):
        if cache.is_stale:
            self.stderr.write(
                self.style.ERROR(f"Feed error: {cache.stream_error}")
            )
            return
        if cache.is_loading:
            return
        summary = summarize_tickets(cache.tickets)
        self.stdout.write(
            self.style.SUCCESS(
                f"{summary.total} tickets · {summary.open} open · "
                f"{summary.high_urgency} high urgency · "
                f"{summary.completed_today} completed today"
            )
        )
        for ticket in cache.tickets[:self.limit]:
            self.stdout.write(
                f"  {ticket.ticket_id:<16} {ticket.status:<12} "
                f"{ticket.urgency:<7} {ticket.customer_name}"
            )
