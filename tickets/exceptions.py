# tickets/exceptions.py

from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError


class TicketServiceError(APIException):
    """
    Base for every error the ticket sync layer raises. Each subclass carries
    an HTTP status, a machine-readable `default_code` and a human message.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = _("Ticket service error.")
    default_code = "ticket_error"

    @property
    def code(self) -> str:
        return self.get_codes()


class StoreInitializationError(TicketServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = _("The ticket store is not available.")
    default_code = "store_unavailable"


class StreamError(TicketServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = _("The live ticket feed was interrupted.")
    default_code = "stream_failed"

    def __init__(self, detail=None, code=None, cause=None):
        super().__init__(detail, code)
        self.cause = cause


class TicketCreationFailed(TicketServiceError):
    default_detail = _("Failed to create ticket.")
    default_code = "creation_failed"


class TicketNotFound(TicketServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = _("Ticket not found.")
    default_code = "not_found"


class TicketPermissionDenied(TicketServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = _("You do not have permission to modify tickets.")
    default_code = "permission_denied"


class AssetUploadError(TicketServiceError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = _("Uploading the file failed.")
    default_code = "upload_failed"

    QUOTA = "quota"
    PERMISSION = "permission"
    NETWORK = "network"
    INVALID_IMAGE = "invalid_image"

    def __init__(self, detail=None, code=None, retryable=False):
        super().__init__(detail, code)
        self.retryable = retryable


class PhotoLimitExceeded(ValidationError):
    default_detail = _("A ticket can hold at most 5 photos.")
    default_code = "photo_limit"


class SequenceConflict(Exception):
    """The month counter changed between read and write; retry the transaction."""

    def __init__(self, prefix: str):
        super().__init__(f"counter {prefix} changed concurrently")
        self.prefix = prefix


class TicketUpdateFailed(TicketServiceError):
    default_detail = _("Failed to update ticket.")
    default_code = "update_failed"
