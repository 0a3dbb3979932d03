# tickets/models/technician.py

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from utils.models import BaseModel


class Technician(BaseModel):
    name = models.CharField(max_length=100, verbose_name=_("name"))
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="technician",
        verbose_name=_("user"),
    )
    is_active = models.BooleanField(default=True, verbose_name=_("active"))

    class Meta:
        verbose_name = _("technician")
        verbose_name_plural = _("technicians")
        ordering = ["id"]

    def __str__(self):
        return self.name
