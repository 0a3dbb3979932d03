# tickets/api/public/v1/views/ticket.py
import logging

from django.core.files.storage import default_storage
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from tickets import settings as ticket_settings
from tickets.api.public.v1.schema import (
    add_photo_schema,
    add_signature_schema,
    summary_schema,
    ticket_viewset_schema,
)
from tickets.api.public.v1.serializers import (
    TicketCreateSerializer,
    TicketPhotoSerializer,
    TicketSerializer,
    TicketSignatureSerializer,
    TicketSummarySerializer,
    TicketUpdateSerializer,
)
from tickets.filters import TicketFilter
from tickets.models import ServiceTicket
from tickets.services.records import normalize_ticket
from tickets.services.summary import summarize_tickets
from tickets.services.ticket_store import TicketStore
from tickets.services.uploads import (
    attach_customer_signature,
    attach_ticket_photo,
    build_asset_name,
    ensure_photo_capacity,
)
from tickets.tasks import attach_ticket_photo_task

logger = logging.getLogger(__name__)


@ticket_viewset_schema
class TicketViewSet(GenericViewSet):
    """
    list:           All tickets (filter + ordering).
    retrieve:       Single ticket.
    create:         New ticket with an allocated month-scoped ID.
    partial_update: Change any non-identity field.
    """
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = TicketFilter
    ordering_fields = [
        "created_at", "updated_at", "scheduled_date", "ticket_id",
        "urgency", "status",
    ]
    ordering = ["-created_at"]
    pagination_class = None
    serializer_class = TicketSerializer
    lookup_field = "key"
    http_method_names = ["get", "post", "patch", "head", "options"]

    _store = None

    @property
    def store(self) -> TicketStore:
        if self._store is None:
            self._store = TicketStore(user=self.request.user).open()
        return self._store

    def finalize_response(self, request, response, *args, **kwargs):
        if self._store is not None:
            self._store.close()
            self._store = None
        return super().finalize_response(request, response, *args, **kwargs)

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return ServiceTicket.objects.none()
        return self.store.tickets_queryset()

    def get_serializer_context(self):
        context = super().get_serializer_context()
        if not getattr(self, "swagger_fake_view", False):
            context["store"] = self.store
        return context

    def get_serializer_class(self):
        if self.action == "create":
            return TicketCreateSerializer
        if self.action == "partial_update":
            return TicketUpdateSerializer
        return TicketSerializer

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        records = [normalize_ticket(ticket) for ticket in queryset]
        return Response(TicketSerializer(records, many=True).data)

    def retrieve(self, request, key=None):
        ticket = self.store.get_ticket(key)
        return Response(TicketSerializer(ticket).data)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ticket = serializer.save()
        return Response(
            TicketSerializer(ticket).data, status=status.HTTP_201_CREATED
        )

    def partial_update(self, request, key=None):
        ticket = self.store.get_ticket(key)
        serializer = self.get_serializer(ticket, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        ticket = serializer.save()
        return Response(TicketSerializer(ticket).data)

    @summary_schema
    @action(detail=False, methods=["get"], url_path="summary")
    def summary(self, request):
        summary = summarize_tickets(self.store.list_tickets())
        return Response(TicketSummarySerializer(summary.as_dict()).data)

    @add_photo_schema
    @action(detail=True, methods=["post"], url_path="photos")
    def photos(self, request, key=None):
        ser = TicketPhotoSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        upload = ser.validated_data["file"]

        if ticket_settings.TICKETS_ASYNC_UPLOADS:
            return self._queue_photo(key, upload)

        ticket = attach_ticket_photo(
            self.store, key, upload, content_type=upload.content_type
        )
        return Response(TicketSerializer(ticket).data)

    def _queue_photo(self, key, upload):
        ticket = ensure_photo_capacity(self.store, key)
        staged_name = default_storage.save(
            build_asset_name(
                ticket_settings.TICKETS_STAGING_PREFIX.rstrip("/"),
                upload.content_type,
            ),
            upload,
        )
        attach_ticket_photo_task.delay(
            str(ticket.key), staged_name, upload.content_type
        )
        logger.info(f"Queued photo {staged_name} for {ticket.ticket_id}")
        return Response(
            {"key": str(ticket.key), "staged": staged_name},
            status=status.HTTP_202_ACCEPTED,
        )

    @add_signature_schema
    @action(detail=True, methods=["post"], url_path="signature")
    def signature(self, request, key=None):
        ser = TicketSignatureSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        ticket = attach_customer_signature(self.store, key, ser.image_data)
        return Response(TicketSerializer(ticket).data)
