# tickets/services/uploads.py

import base64
import binascii
import errno
import logging
import secrets
import time
from io import BytesIO
from typing import Callable, Optional, Tuple, Union

from django.core.files.base import File
from django.core.files.storage import Storage, default_storage
from PIL import Image, UnidentifiedImageError

from tickets import settings as ticket_settings
from tickets.exceptions import AssetUploadError, PhotoLimitExceeded
from tickets.services.payloads import TicketPatch
from tickets.services.records import TicketRecord
from tickets.utils.choices import AssetFolder
from tickets.utils.consts import (
    CONTENT_TYPE_EXTENSIONS, DEFAULT_IMAGE_EXTENSION,
)
from utils.retry import retry_call

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]
ImageData = Union[bytes, bytearray, str, File]


class ProgressReporter:
    """
    Turns byte counts into percentages in [0, 100]. Values never go down,
    also across retried attempts, and an unknown or zero total reports 0.
    """

    def __init__(self, callback: Optional[ProgressCallback]):
        self._callback = callback
        self.last = None

    def report(self, transferred: int, total: Optional[int]) -> None:
        if total:
            percent = min(100.0, max(0.0, transferred * 100.0 / total))
        else:
            percent = 0.0
        if self.last is not None and percent <= self.last:
            return
        self.last = percent
        if self._callback is not None:
            self._callback(percent)


class ProgressFile(File):
    """File wrapper that reports bytes as the storage backend consumes them."""

    def __init__(self, data: bytes, name: str, reporter: ProgressReporter, chunk_size: int):
        super().__init__(BytesIO(data), name=name)
        self._total = len(data)
        self._sent = 0
        self._reporter = reporter
        self._chunk_size = chunk_size

    @property
    def size(self):
        return self._total

    def _advance(self, count: int) -> None:
        self._sent += count
        self._reporter.report(self._sent, self._total)

    def chunks(self, chunk_size=None):
        self.file.seek(0)
        self._sent = 0
        while True:
            data = self.file.read(chunk_size or self._chunk_size)
            if not data:
                break
            yield data
            self._advance(len(data))

    def read(self, *args, **kwargs):
        data = self.file.read(*args, **kwargs)
        self._advance(len(data))
        return data


def decode_image_data(data: ImageData, content_type: Optional[str] = None) -> Tuple[bytes, Optional[str]]:
    """Accept raw bytes, Django/Python file objects or `data:` URLs."""
    if isinstance(data, str):
        if not data.startswith("data:") or "," not in data:
            raise AssetUploadError(
                "Expected a data URL.", code=AssetUploadError.INVALID_IMAGE
            )
        header, encoded = data.split(",", 1)
        media_type = header[5:].split(";")[0] or None
        try:
            raw = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise AssetUploadError(
                "Malformed data URL.", code=AssetUploadError.INVALID_IMAGE
            ) from exc
        return raw, content_type or media_type
    if isinstance(data, (bytes, bytearray)):
        return bytes(data), content_type
    if hasattr(data, "seek"):
        data.seek(0)
    raw = data.read()
    return raw, content_type or getattr(data, "content_type", None)


def downscale_image(raw: bytes, max_dimension: int) -> Tuple[bytes, str]:
    """
    Shrink the image so its longer edge is at most `max_dimension`, keeping
    the aspect ratio. Smaller images are returned untouched.
    Returns the bytes and their MIME type.
    """
    try:
        image = Image.open(BytesIO(raw))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise AssetUploadError(
            "The file is not a readable image.",
            code=AssetUploadError.INVALID_IMAGE,
        ) from exc

    image_format = image.format or "PNG"
    mime = Image.MIME.get(image_format, "image/png")
    width, height = image.size
    longest = max(width, height)
    if longest <= max_dimension:
        return raw, mime

    scale = max_dimension / float(longest)
    size = (max(1, round(width * scale)), max(1, round(height * scale)))
    resized = image.resize(size, Image.Resampling.LANCZOS)

    options = {}
    if image_format == "JPEG":
        options["quality"] = ticket_settings.TICKETS_JPEG_QUALITY
        if resized.mode not in ("RGB", "L"):
            resized = resized.convert("RGB")
    buffer = BytesIO()
    resized.save(buffer, format=image_format, **options)
    logger.debug(f"Downscaled image {width}x{height} -> {size[0]}x{size[1]}")
    return buffer.getvalue(), mime


def build_asset_name(folder: str, content_type: Optional[str]) -> str:
    extension = CONTENT_TYPE_EXTENSIONS.get(
        (content_type or "").lower(), DEFAULT_IMAGE_EXTENSION
    )
    millis = int(time.time() * 1000)
    return f"{folder}/{millis}-{secrets.token_hex(6)}.{extension}"


def classify_storage_error(exc: Exception) -> AssetUploadError:
    if isinstance(exc, AssetUploadError):
        return exc
    if isinstance(exc, PermissionError):
        return AssetUploadError(
            "Not allowed to write to the file store.",
            code=AssetUploadError.PERMISSION,
        )
    if isinstance(exc, OSError) and exc.errno in (errno.ENOSPC, errno.EDQUOT):
        return AssetUploadError(
            "The file store is out of space.", code=AssetUploadError.QUOTA
        )
    if isinstance(exc, (ConnectionError, TimeoutError)):
        return AssetUploadError(
            "The file store could not be reached.",
            code=AssetUploadError.NETWORK,
            retryable=True,
        )
    return AssetUploadError(str(exc) or None)


class AssetUploader:
    def __init__(
            self,
            storage: Optional[Storage] = None,
            max_dimension: Optional[int] = None,
            max_attempts: Optional[int] = None,
            backoff: Optional[float] = None,
            sleep: Callable[[float], None] = time.sleep,
    ):
        self.storage = storage or default_storage
        self.max_dimension = (
                max_dimension or ticket_settings.TICKETS_MAX_IMAGE_DIMENSION
        )
        self.max_attempts = (
                max_attempts or ticket_settings.TICKETS_UPLOAD_MAX_ATTEMPTS
        )
        self.backoff = (
            ticket_settings.TICKETS_UPLOAD_BACKOFF_SECONDS
            if backoff is None else backoff
        )
        self._sleep = sleep

    def upload_image(
            self,
            data: ImageData,
            folder: str,
            on_progress: Optional[ProgressCallback] = None,
            content_type: Optional[str] = None,
    ) -> str:
        """
        Downscale, store and return the public URL of an image.
        Raises AssetUploadError; transient storage errors are retried.
        """
        raw, declared = decode_image_data(data, content_type)
        payload, mime = downscale_image(raw, self.max_dimension)
        name = build_asset_name(folder, mime or declared)
        reporter = ProgressReporter(on_progress)

        def attempt() -> str:
            content = ProgressFile(
                payload, name, reporter,
                ticket_settings.TICKETS_UPLOAD_CHUNK_SIZE,
            )
            try:
                return self.storage.save(name, content)
            except Exception as exc:
                raise classify_storage_error(exc) from exc

        stored_name = retry_call(
            attempt,
            is_retryable=lambda e: getattr(e, "retryable", False),
            max_attempts=self.max_attempts,
            base_delay=self.backoff,
            sleep=self._sleep,
            label=f"upload_image[{folder}]",
        )
        reporter.report(len(payload), len(payload))
        url = self.storage.url(stored_name)
        logger.info(f"Uploaded {len(payload)} bytes to {stored_name}")
        return url


def ensure_photo_capacity(store, key) -> TicketRecord:
    """Fail before any upload when the ticket is not writable or already full."""
    ticket = store.get_ticket(key)
    store.check_permission("change")
    limit = ticket_settings.TICKETS_MAX_PHOTOS
    if len(ticket.photos) >= limit:
        raise PhotoLimitExceeded(f"A ticket can hold at most {limit} photos.")
    return ticket


def attach_ticket_photo(
        store,
        key,
        data: ImageData,
        content_type: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        uploader: Optional[AssetUploader] = None,
) -> TicketRecord:
    """
    Upload a photo and append its URL to the ticket. The photo cap is
    checked before anything is uploaded and again when appending, since
    another attach may have landed while this one was uploading.
    """
    ensure_photo_capacity(store, key)
    uploader = uploader or AssetUploader()
    url = uploader.upload_image(
        data, AssetFolder.TICKET_PHOTOS, on_progress, content_type
    )
    try:
        return store.append_photo(key, url)
    except PhotoLimitExceeded:
        logger.warning(f"Ticket {key} filled up during upload; {url} unused")
        raise


def attach_customer_signature(
        store,
        key,
        data: ImageData,
        on_progress: Optional[ProgressCallback] = None,
        uploader: Optional[AssetUploader] = None,
) -> TicketRecord:
    store.get_ticket(key)
    store.check_permission("change")
    uploader = uploader or AssetUploader()
    url = uploader.upload_image(data, AssetFolder.SIGNATURES, on_progress)
    return store.update_ticket(key, TicketPatch(customer_signature=url))
