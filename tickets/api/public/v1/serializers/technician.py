# tickets/api/public/v1/serializers/technician.py

from rest_framework import serializers

from tickets.models import Technician


class TechnicianSerializer(serializers.ModelSerializer):
    class Meta:
        model = Technician
        fields = ["id", "name", "is_active"]
