# tickets/api/public/v1/schema.py
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import (
    extend_schema, extend_schema_view,
    OpenApiParameter, OpenApiExample, OpenApiResponse,
)

from tickets.api.public.v1.serializers import (
    TicketCreateSerializer,
    TicketPhotoSerializer,
    TicketSerializer,
    TicketSignatureSerializer,
    TicketSummarySerializer,
    TicketUpdateSerializer,
)
from tickets.utils.choices import ServiceType, TicketStatus, UrgencyLevel

TICKET_EXAMPLE = {
    "key": "6f1c1f0e-3f55-4b7a-9c43-8c1b7c9d2f11",
    "ticket_id": "PE-JUL24-007",
    "customer_name": "Asha Rao",
    "phone": "9876543210",
    "product_category": "Water Purifier",
    "service_type": "Service - Warranty",
    "urgency": "High",
    "status": "New",
    "technician_id": None,
    "scheduled_date": None,
    "photos": [],
    "created_at": "2024-07-15T10:30:00Z",
    "updated_at": "2024-07-15T10:30:00Z",
}

# ---------- ViewSet (list/create/retrieve/partial_update) ----------
ticket_viewset_schema = extend_schema_view(
    list=extend_schema(
        tags=["Tickets"],
        summary="List tickets",
        description="All tickets, newest first, with filters and ordering.",
        parameters=[
            OpenApiParameter(
                name="status", type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                description="Filter by status (repeatable)",
                enum=[s.value for s in TicketStatus],
            ),
            OpenApiParameter(
                name="urgency", type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                description="Filter by urgency (repeatable)",
                enum=[u.value for u in UrgencyLevel],
            ),
            OpenApiParameter(
                name="service_type", type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                description="Filter by service type (repeatable)",
                enum=[s.value for s in ServiceType],
            ),
            OpenApiParameter(
                name="technician", type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                description="Technician id",
            ),
            OpenApiParameter(
                name="q", type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                description="Search ticket ID, customer, phone, model or serial",
            ),
            OpenApiParameter(
                name="ordering", type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                description="e.g. -created_at | scheduled_date",
            ),
        ],
        responses={200: TicketSerializer(many=True)},
        examples=[
            OpenApiExample(
                "Sample response", value=[TICKET_EXAMPLE], response_only=True,
            )
        ],
    ),
    create=extend_schema(
        tags=["Tickets"],
        summary="Create ticket",
        description=(
            "Creates a ticket with status New and the next month-scoped ID. "
            "`ticket_id`, `key` and `status` in the body are ignored."
        ),
        request=TicketCreateSerializer,
        responses={
            201: TicketSerializer,
            400: OpenApiResponse(description="Validation error"),
            403: OpenApiResponse(description="Permission denied"),
            500: OpenApiResponse(description="Ticket creation failed"),
        },
        examples=[
            OpenApiExample(
                "Sample request",
                value={
                    "customer_name": "Asha Rao", "phone": "9876543210",
                    "product_category": "Water Purifier",
                    "service_type": "Service - Warranty", "urgency": "High",
                },
                request_only=True,
            )
        ],
    ),
    retrieve=extend_schema(
        tags=["Tickets"],
        summary="Ticket details",
        responses={
            200: TicketSerializer,
            404: OpenApiResponse(description="Not found"),
        },
    ),
    partial_update=extend_schema(
        tags=["Tickets"],
        summary="Update ticket",
        description="Partial update; identity fields are never changed.",
        request=TicketUpdateSerializer,
        responses={
            200: TicketSerializer,
            400: OpenApiResponse(description="Validation error"),
            404: OpenApiResponse(description="Not found"),
        },
    ),
)

# ---------- /photos (POST) ----------
add_photo_schema = extend_schema(
    tags=["Tickets · Assets"],
    summary="Attach photo",
    description=(
        "Uploads a photo (downscaled to 1280px on the longer edge) and adds "
        "it to the ticket. At most 5 photos per ticket. Returns 202 when "
        "uploads are processed in the background."
    ),
    request={"multipart/form-data": TicketPhotoSerializer},
    responses={
        200: TicketSerializer,
        202: OpenApiResponse(description="Queued"),
        400: OpenApiResponse(description="Validation error or photo limit"),
        404: OpenApiResponse(description="Ticket not found"),
        502: OpenApiResponse(description="Upload failed"),
    },
)

# ---------- /signature (POST) ----------
add_signature_schema = extend_schema(
    tags=["Tickets · Assets"],
    summary="Attach customer signature",
    description="Accepts an image file or a `data:` URL from a signature pad.",
    request=TicketSignatureSerializer,
    responses={
        200: TicketSerializer,
        400: OpenApiResponse(description="Validation error"),
        502: OpenApiResponse(description="Upload failed"),
    },
)

# ---------- /summary (GET) ----------
summary_schema = extend_schema(
    tags=["Tickets"],
    summary="Dashboard counters",
    responses={200: TicketSummarySerializer},
    examples=[
        OpenApiExample(
            "Sample",
            value={
                "total": 42, "open": 17, "high_urgency": 5,
                "completed_today": 3,
            },
            response_only=True,
        )
    ],
)
