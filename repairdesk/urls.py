"""
URL configuration for repairdesk project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.0/topics/http/urls/
"""

from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.db import connections
from django.db.utils import OperationalError
from django.http import JsonResponse
from django.urls import path, include
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularSwaggerView,
    SpectacularRedocView,
)
from rest_framework.permissions import AllowAny


# ───────────────────────────────
# Healthcheck endpoints
# ───────────────────────────────
def healthz(_request):
    """Simple health check: always returns 200 OK."""
    return JsonResponse({"status": "ok"})


def readyz(_request):
    """Readiness check: verifies DB connection is available."""
    try:
        connections["default"].cursor()
        return JsonResponse({"status": "ready"})
    except OperationalError:
        return JsonResponse({"status": "db_down"}, status=500)


# ───────────────────────────────
# Core URL patterns
# ───────────────────────────────
urlpatterns_main = [
    path("admin/", admin.site.urls),
]

api_urlpatterns = [
    path("api/tickets/", include("tickets.api.urls")),
]

schema_urlpatterns = [
    path(
        "api/schema/",
        SpectacularAPIView.as_view(
            permission_classes=[AllowAny], authentication_classes=[]
        ),
        name="schema"
    ),
    path(
        "api/schema/swagger/",
        SpectacularSwaggerView.as_view(url_name="schema", ),
        name="swagger-ui",
    ),
    path(
        "api/schema/redoc/",
        SpectacularRedocView.as_view(url_name="schema"),
        name="redoc",
    ),
]

urlpatterns_main = urlpatterns_main + api_urlpatterns + schema_urlpatterns

# ───────────────────────────────
# Final urlpatterns
# ───────────────────────────────
urlpatterns = [
    path("repairdesk/", include(urlpatterns_main)),
    path("repairdesk/healthz", healthz),
    path("repairdesk/readyz", readyz),
]

# Serve media files during development
if settings.DEBUG:
    urlpatterns += static(
        settings.MEDIA_URL, document_root=settings.MEDIA_ROOT
    )

admin.site.enable_nav_sidebar = False
admin.site.index_title = "RepairDesk"
