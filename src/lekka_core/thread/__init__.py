"""Response normalization and the canonical prompt timeline."""

from lekka_core.thread.entries import (
    EntryKind,
    ErrorEntry,
    FollowupEntry,
    LegacyEntry,
    PreviewEntry,
    PreviewSnapshot,
    RawEntry,
    SaveStatus,
    ThreadEntry,
)
from lekka_core.thread.normalizer import (
    extract_journal,
    normalize,
    normalize_doc_fields,
    unwrap_envelope,
)
from lekka_core.thread.session import PromptSession, SessionStatus, status_for

__all__ = [
    # Entries
    "EntryKind",
    "ThreadEntry",
    "PreviewEntry",
    "FollowupEntry",
    "ErrorEntry",
    "LegacyEntry",
    "RawEntry",
    "PreviewSnapshot",
    "SaveStatus",
    # Normalizer
    "normalize",
    "unwrap_envelope",
    "extract_journal",
    "normalize_doc_fields",
    # Session
    "PromptSession",
    "SessionStatus",
    "status_for",
]
