from .payloads import UNSET, TicketDraft, TicketPatch
from .records import Snapshot, TicketRecord, normalize_ticket
from .sequence import allocate_sequence, format_ticket_id, month_prefix
from .feed import Subscription, TicketFeed, broadcast
from .ticket_store import TicketStore
from .pending import PendingWriteTracker
from .live_sync import LiveTicketCache, SyncState
from .uploads import (
    AssetUploader,
    attach_customer_signature,
    attach_ticket_photo,
)
from .summary import TicketSummary, summarize_tickets
