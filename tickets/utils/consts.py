# tickets/utils/consts.py

MONTH_ABBREVIATIONS = (
    "JAN", "FEB", "MAR", "APR", "MAY", "JUN",
    "JUL", "AUG", "SEP", "OCT", "NOV", "DEC",
)

SEQUENCE_PADDING = 3

# Fields a partial update may never write
IMMUTABLE_FIELDS = frozenset(
    {"id", "ticket_id", "key", "created_at", "updated_at"}
)

DEFAULT_TECHNICIANS = (
    "John Doe",
    "Jane Smith",
    "Mike Johnson",
    "Emily Brown",
)

CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}
DEFAULT_IMAGE_EXTENSION = "png"
