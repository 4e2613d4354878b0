"""Preview/confirm posting protocol."""

from lekka_core.posting.idempotency import IdempotencyKeyGenerator, stable_hash
from lekka_core.posting.journal import (
    BALANCE_TOLERANCE,
    JournalLine,
    coerce_edit_patch,
    coerce_edits,
    is_balanced_preview,
    journal_imbalance,
    pick_doc_fields,
)
from lekka_core.posting.protocol import (
    PostingBackend,
    PostingSession,
    PostingState,
    PostResult,
)

__all__ = [
    "BALANCE_TOLERANCE",
    "IdempotencyKeyGenerator",
    "JournalLine",
    "PostResult",
    "PostingBackend",
    "PostingSession",
    "PostingState",
    "coerce_edit_patch",
    "coerce_edits",
    "is_balanced_preview",
    "journal_imbalance",
    "pick_doc_fields",
    "stable_hash",
]
