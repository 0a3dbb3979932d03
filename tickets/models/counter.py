# tickets/models/counter.py

from django.db import models
from django.utils.translation import gettext_lazy as _

from utils.models import BaseModel


class TicketCounter(BaseModel):
    """
    Per month-prefix sequence. Written only by
    tickets.services.sequence inside a ticket-creation transaction.
    """
    prefix = models.CharField(
        max_length=16, unique=True, verbose_name=_("prefix")
    )
    count = models.PositiveIntegerField(default=0, verbose_name=_("count"))

    class Meta:
        verbose_name = _("ticket counter")
        verbose_name_plural = _("ticket counters")

    def __str__(self):
        return f"{self.prefix}: {self.count}"
