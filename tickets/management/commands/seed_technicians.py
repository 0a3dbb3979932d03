# tickets/management/commands/seed_technicians.py
from django.core.management.base import BaseCommand

from tickets.models import Technician
from tickets.utils.consts import DEFAULT_TECHNICIANS


class Command(BaseCommand):
    help = "Create the default technician roster"

    def add_arguments(self, parser):
        parser.add_argument(
            "names", nargs="*",
            help="Technician names (defaults to the built-in roster)",
        )

    def handle(self, *args, **options):
        names = options["names"] or DEFAULT_TECHNICIANS

        created_count = 0
        for name in names:
            technician, created = Technician.objects.get_or_create(
                name=name, defaults={"is_active": True}
            )
            if created:
                created_count += 1
                self.stdout.write(
                    self.style.SUCCESS(f'Created technician: {technician.name}')
                )
            else:
                self.stdout.write(
                    self.style.WARNING(f'Technician already exists: {technician.name}')
                )

        self.stdout.write(
            self.style.SUCCESS(f'Successfully created {created_count} technicians')
        )
