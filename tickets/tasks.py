import logging

from celery import Task, shared_task
from django.core.files.storage import default_storage

from tickets.exceptions import AssetUploadError, TicketServiceError
from tickets.services.ticket_store import TicketStore
from tickets.services.uploads import attach_ticket_photo

logger = logging.getLogger(__name__)


def _discard_staged(staged_name: str) -> None:
    try:
        if default_storage.exists(staged_name):
            default_storage.delete(staged_name)
    except OSError as e:
        logger.error(f"Could not remove staged upload {staged_name}: {e}")


class PhotoAttachTask(Task):
    def on_failure(self, exc, task_id, args, kwargs, einfo):
        ticket_key = args[0] if args else kwargs.get("ticket_key")
        staged_name = args[1] if len(args) > 1 else kwargs.get("staged_name")
        logger.error(
            f"Attaching photo {staged_name} to ticket {ticket_key} has "
            f"permanently failed: {exc}"
        )
        if staged_name:
            _discard_staged(staged_name)


def _attach_photo_task_logic(
        task_instance, ticket_key: str, staged_name: str, content_type=None
):
    if not default_storage.exists(staged_name):
        logger.warning(
            f"Staged upload {staged_name} for ticket {ticket_key} is gone, "
            f"skipping"
        )
        return None

    with default_storage.open(staged_name, "rb") as staged:
        data = staged.read()

    try:
        with TicketStore() as store:
            ticket = attach_ticket_photo(
                store, ticket_key, data, content_type=content_type
            )
    except AssetUploadError as exc:
        if not exc.retryable:
            raise
        logger.warning(
            f"Photo upload for ticket {ticket_key} failed. Retrying... "
            f"(Attempt {task_instance.request.retries + 1}/"
            f"{task_instance.max_retries})"
        )
        raise task_instance.retry(
            exc=exc, countdown=30 * (2 ** task_instance.request.retries)
        )
    except TicketServiceError as exc:
        logger.error(f"Photo for ticket {ticket_key} was not attached: {exc}")
        raise

    _discard_staged(staged_name)
    logger.info(f"Attached staged photo {staged_name} to {ticket.ticket_id}")
    return list(ticket.photos)


@shared_task(
    bind=True,
    base=PhotoAttachTask,
    max_retries=3,
    default_retry_delay=30,
)
def attach_ticket_photo_task(
        self, ticket_key: str, staged_name: str, content_type=None
):
    return _attach_photo_task_logic(
        self, ticket_key, staged_name, content_type
    )
