"""
Ticket sync and upload settings
"""
from django.conf import settings

# Human-readable ticket IDs
TICKETS_ID_PREFIX = getattr(settings, 'TICKETS_ID_PREFIX', 'PE')

# Creation transaction attempts before giving up on a contended counter
TICKETS_CREATE_MAX_ATTEMPTS = getattr(settings, 'TICKETS_CREATE_MAX_ATTEMPTS', 5)
TICKETS_CREATE_BACKOFF_SECONDS = getattr(settings, 'TICKETS_CREATE_BACKOFF_SECONDS', 0.01)

# Photos
TICKETS_MAX_PHOTOS = getattr(settings, 'TICKETS_MAX_PHOTOS', 5)
TICKETS_MAX_IMAGE_DIMENSION = getattr(settings, 'TICKETS_MAX_IMAGE_DIMENSION', 1280)
TICKETS_JPEG_QUALITY = getattr(settings, 'TICKETS_JPEG_QUALITY', 85)
TICKETS_UPLOAD_CHUNK_SIZE = getattr(settings, 'TICKETS_UPLOAD_CHUNK_SIZE', 64 * 1024)

# Upload retries (transient storage errors)
TICKETS_UPLOAD_MAX_ATTEMPTS = getattr(settings, 'TICKETS_UPLOAD_MAX_ATTEMPTS', 3)
TICKETS_UPLOAD_BACKOFF_SECONDS = getattr(settings, 'TICKETS_UPLOAD_BACKOFF_SECONDS', 0.5)

# Background photo processing through Celery
TICKETS_ASYNC_UPLOADS = getattr(settings, 'TICKETS_ASYNC_UPLOADS', False)
TICKETS_STAGING_PREFIX = getattr(settings, 'TICKETS_STAGING_PREFIX', 'ticket-staging/')
