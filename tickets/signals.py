# tickets/signals.py

from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from tickets.models import ServiceTicket
from tickets.services.feed import broadcast


@receiver(post_save, sender=ServiceTicket)
@receiver(post_delete, sender=ServiceTicket)
def publish_ticket_change(sender, instance, using, **kwargs):
    transaction.on_commit(broadcast, using=using)
