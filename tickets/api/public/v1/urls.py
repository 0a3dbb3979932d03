# tickets/api/public/v1/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from tickets.api.public.v1.views import TechnicianViewSet, TicketViewSet

app_name = "tickets_public_v1"

router = DefaultRouter()
router.register("tickets", TicketViewSet, basename="tickets")
router.register("technicians", TechnicianViewSet, basename="technicians")

urlpatterns = [
    path("", include(router.urls)),
]
