# tickets/apps.py

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class TicketsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "tickets"
    verbose_name = _("Service tickets")

    def ready(self):
        from tickets import signals  # noqa: F401
