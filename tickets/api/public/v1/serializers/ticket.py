# tickets/api/public/v1/serializers/ticket.py

from django.utils.translation import gettext_lazy as _
from rest_framework import serializers

from tickets.models import Technician
from tickets.services.payloads import TicketDraft, TicketPatch
from tickets.utils.choices import ServiceType, TicketStatus, UrgencyLevel

MAX_IMAGE_SIZE = 10 * 1024 * 1024  # 10 MB


def _validate_technician(value):
    if value is not None and not Technician.objects.filter(
            id=value, is_active=True
    ).exists():
        raise serializers.ValidationError(_("Unknown technician."))
    return value


class TicketSerializer(serializers.Serializer):
    """Read shape shared by TicketRecord and ServiceTicket instances."""
    key = serializers.UUIDField(read_only=True)
    ticket_id = serializers.CharField(read_only=True)
    customer_name = serializers.CharField(read_only=True)
    phone = serializers.CharField(read_only=True)
    address = serializers.CharField(read_only=True)
    city = serializers.CharField(read_only=True)
    product_category = serializers.CharField(read_only=True)
    product_model = serializers.CharField(read_only=True)
    serial_number = serializers.CharField(read_only=True)
    warranty_status = serializers.BooleanField(read_only=True)
    service_type = serializers.CharField(read_only=True)
    issue_description = serializers.CharField(read_only=True)
    urgency = serializers.CharField(read_only=True)
    status = serializers.CharField(read_only=True)
    technician_id = serializers.IntegerField(read_only=True, allow_null=True)
    scheduled_date = serializers.DateField(read_only=True, allow_null=True)
    notes = serializers.CharField(read_only=True)
    service_charge = serializers.DecimalField(
        max_digits=10, decimal_places=2, read_only=True
    )
    parts_charge = serializers.DecimalField(
        max_digits=10, decimal_places=2, read_only=True
    )
    commission = serializers.DecimalField(
        max_digits=10, decimal_places=2, read_only=True
    )
    total_bill = serializers.DecimalField(
        max_digits=11, decimal_places=2, read_only=True
    )
    feedback_rating = serializers.IntegerField(read_only=True, allow_null=True)
    customer_signature = serializers.CharField(read_only=True)
    photos = serializers.ListField(
        child=serializers.CharField(), read_only=True
    )
    created_at = serializers.DateTimeField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True)


class _TicketFieldsMixin(serializers.Serializer):
    customer_name = serializers.CharField(max_length=200)
    phone = serializers.CharField(max_length=32)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True)
    city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    product_category = serializers.CharField(max_length=100)
    product_model = serializers.CharField(max_length=200, required=False, allow_blank=True)
    serial_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    warranty_status = serializers.BooleanField(required=False)
    service_type = serializers.ChoiceField(choices=ServiceType.choices, required=False)
    issue_description = serializers.CharField(required=False, allow_blank=True)
    urgency = serializers.ChoiceField(choices=UrgencyLevel.choices, required=False)
    technician_id = serializers.IntegerField(
        required=False, allow_null=True, validators=[_validate_technician]
    )
    scheduled_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    service_charge = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False
    )
    parts_charge = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False
    )
    commission = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False
    )
    feedback_rating = serializers.IntegerField(
        min_value=1, max_value=5, required=False, allow_null=True
    )


class TicketCreateSerializer(_TicketFieldsMixin):
    """
    Input for new tickets. `ticket_id`, `key` and `status` are assigned by
    the store and ignored when sent.
    """

    def create(self, validated_data):
        store = self.context["store"]
        key = store.create_ticket(TicketDraft(**validated_data))
        return store.get_ticket(key)


class TicketUpdateSerializer(_TicketFieldsMixin):
    status = serializers.ChoiceField(choices=TicketStatus.choices, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError(
                {"non_field_errors": [_("No changes supplied.")]}
            )
        return attrs

    def update(self, instance, validated_data):
        store = self.context["store"]
        return store.update_ticket(instance.key, TicketPatch(**validated_data))


class TicketPhotoSerializer(serializers.Serializer):
    file = serializers.ImageField()

    def validate_file(self, value):
        if value.size > MAX_IMAGE_SIZE:
            raise serializers.ValidationError(_("Image is larger than 10 MB."))
        return value


class TicketSignatureSerializer(serializers.Serializer):
    file = serializers.ImageField(required=False)
    data_url = serializers.CharField(required=False)

    def validate(self, attrs):
        if not attrs.get("file") and not attrs.get("data_url"):
            raise serializers.ValidationError(
                {"non_field_errors": [_("Send a signature file or data URL.")]}
            )
        return attrs

    @property
    def image_data(self):
        return self.validated_data.get("file") or self.validated_data["data_url"]


class TicketSummarySerializer(serializers.Serializer):
    total = serializers.IntegerField()
    open = serializers.IntegerField()
    high_urgency = serializers.IntegerField()
    completed_today = serializers.IntegerField()
