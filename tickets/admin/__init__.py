from .ticket import ServiceTicketAdmin
from .counter import TicketCounterAdmin
from .technician import TechnicianAdmin

__all__ = ['ServiceTicketAdmin', 'TicketCounterAdmin', 'TechnicianAdmin']
