from .technician import Technician
from .counter import TicketCounter
from .ticket import ServiceTicket

__all__ = [
    "Technician",
    "TicketCounter",
    "ServiceTicket",
]
