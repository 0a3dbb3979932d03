"""
Defines central choices for the tickets app, mirroring project conventions.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class TicketStatus(models.TextChoices):
    NEW = "New", _("New")
    ASSIGNED = "Assigned", _("Assigned")
    IN_PROGRESS = "In Progress", _("In Progress")
    COMPLETED = "Completed", _("Completed")
    CLOSED = "Closed", _("Closed")


class UrgencyLevel(models.TextChoices):
    LOW = "Low", _("Low")
    MEDIUM = "Medium", _("Medium")
    HIGH = "High", _("High")


class ServiceType(models.TextChoices):
    INSTALLATION = "Installation", _("Installation")
    PRODUCT_DEMO = "Product Demo", _("Product Demo")
    SERVICE_PAID = "Service - Paid", _("Service - Paid")
    SERVICE_WARRANTY = "Service - Warranty", _("Service - Warranty")


class AssetFolder(models.TextChoices):
    TICKET_PHOTOS = "ticket-photos", _("Ticket photos")
    SIGNATURES = "signatures", _("Signatures")


OPEN_STATUSES = (
    TicketStatus.NEW,
    TicketStatus.ASSIGNED,
    TicketStatus.IN_PROGRESS,
)
