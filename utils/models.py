# utils/models.py

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class BaseModel(models.Model):
    """
    Shared timestamps. Values are assigned explicitly by the services that
    own each model, so neither field uses auto_now.
    """
    created_at = models.DateTimeField(
        default=timezone.now, editable=False, verbose_name=_("created at")
    )
    updated_at = models.DateTimeField(
        default=timezone.now, verbose_name=_("updated at")
    )

    class Meta:
        abstract = True
