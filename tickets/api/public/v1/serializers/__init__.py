from .ticket import (
    TicketSerializer,
    TicketCreateSerializer,
    TicketUpdateSerializer,
    TicketPhotoSerializer,
    TicketSignatureSerializer,
    TicketSummarySerializer,
)
from .technician import TechnicianSerializer
