from .ticket import TicketViewSet
from .technician import TechnicianViewSet
