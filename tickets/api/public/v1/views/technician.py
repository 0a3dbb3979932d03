# tickets/api/public/v1/views/technician.py

from drf_spectacular.utils import (
    extend_schema,
    extend_schema_view,
)
from rest_framework import mixins, viewsets
from rest_framework.permissions import IsAuthenticated

from tickets.api.public.v1.serializers import TechnicianSerializer
from tickets.models import Technician


@extend_schema_view(
    list=extend_schema(
        tags=["Technicians"],
        summary="List technicians",
        description="Active technicians that tickets can be assigned to.",
    ),
    retrieve=extend_schema(
        tags=["Technicians"],
        summary="Technician details",
    ),
)
class TechnicianViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet
):
    queryset = Technician.objects.filter(is_active=True).order_by("id")
    serializer_class = TechnicianSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = None
