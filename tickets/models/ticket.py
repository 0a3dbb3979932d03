# tickets/models/ticket.py
import uuid

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from tickets.utils.choices import ServiceType, TicketStatus, UrgencyLevel
from utils.models import BaseModel
from .technician import Technician


class ServiceTicket(BaseModel):
    # Centralized choices (keep nested access pattern)
    Status = TicketStatus
    Urgency = UrgencyLevel
    Service = ServiceType

    key = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        verbose_name=_("key"),
    )
    ticket_id = models.CharField(
        max_length=32,
        unique=True,
        editable=False,
        verbose_name=_("ticket ID"),
    )

    customer_name = models.CharField(
        max_length=200, verbose_name=_("customer name")
    )
    phone = models.CharField(max_length=32, verbose_name=_("phone"))
    address = models.CharField(
        max_length=255, blank=True, verbose_name=_("address")
    )
    city = models.CharField(max_length=100, blank=True, verbose_name=_("city"))

    product_category = models.CharField(
        max_length=100, verbose_name=_("product category")
    )
    product_model = models.CharField(
        max_length=200, blank=True, verbose_name=_("product model")
    )
    serial_number = models.CharField(
        max_length=100, blank=True, verbose_name=_("serial number")
    )
    warranty_status = models.BooleanField(
        default=False, verbose_name=_("under warranty")
    )

    service_type = models.CharField(
        max_length=32, choices=Service.choices,
        default=Service.SERVICE_PAID, verbose_name=_("service type")
    )
    issue_description = models.TextField(
        blank=True, verbose_name=_("issue description")
    )
    urgency = models.CharField(
        max_length=10, choices=Urgency.choices, default=Urgency.MEDIUM,
        verbose_name=_("urgency")
    )
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.NEW,
        verbose_name=_("status")
    )
    technician = models.ForeignKey(
        Technician,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="tickets",
        verbose_name=_("technician"),
    )
    scheduled_date = models.DateField(
        null=True, blank=True, verbose_name=_("scheduled date")
    )
    notes = models.TextField(blank=True, verbose_name=_("notes"))

    service_charge = models.DecimalField(
        max_digits=10, decimal_places=2, default=0,
        validators=[MinValueValidator(0)],
        verbose_name=_("service charge"),
    )
    parts_charge = models.DecimalField(
        max_digits=10, decimal_places=2, default=0,
        validators=[MinValueValidator(0)],
        verbose_name=_("parts charge"),
    )
    commission = models.DecimalField(
        max_digits=10, decimal_places=2, default=0,
        validators=[MinValueValidator(0)],
        verbose_name=_("commission"),
    )

    feedback_rating = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(5)],
        verbose_name=_("feedback rating"),
    )
    customer_signature = models.CharField(
        max_length=500, blank=True, verbose_name=_("customer signature")
    )
    photos = models.JSONField(
        default=list, blank=True, verbose_name=_("photos")
    )

    class Meta:
        verbose_name = _("service ticket")
        verbose_name_plural = _("service tickets")
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["status", "urgency"], name="ticket_status_urgency_idx"
            ),
            models.Index(fields=["-created_at"], name="ticket_created_idx"),
        ]

    def __str__(self):
        return f"{self.ticket_id} · {self.customer_name}"

    @property
    def total_bill(self):
        return self.service_charge + self.parts_charge
