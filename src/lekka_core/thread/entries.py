"""Canonical timeline entry types.

Every orchestrator response, whatever its shape, becomes exactly one of
these entries. Entries are frozen once built; the only thing attached
later is a save status, which the session keeps beside the timeline.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from lekka_core.errors import ShapeError


class EntryKind(str, Enum):
    """Variants of the timeline tagged union."""

    PREVIEW = "preview"
    FOLLOWUP = "followup"
    ERROR = "error"
    LEGACY = "legacy"
    RAW = "raw"


@dataclass(frozen=True)
class PreviewSnapshot:
    """Server-side draft handle returned by a preview call.

    A snapshot is confirmed at most once. ``hash`` is the server's content
    digest of the draft; the server rejects a confirm whose hash no longer
    matches.
    """

    preview_id: str
    hash: str
    journal: tuple[dict[str, Any], ...] = ()
    ledger_view: Any = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.preview_id, self.hash)


@dataclass(frozen=True)
class ThreadEntry:
    """Base timeline entry."""

    raw: Any = None
    original_prompt: str | None = None

    kind = EntryKind.RAW

    @property
    def display_prompt(self) -> str:
        """The user prompt this entry answers, if one can be found."""
        own = getattr(self, "prompt", None)
        if isinstance(own, str) and own:
            return own
        if self.original_prompt:
            return self.original_prompt
        if isinstance(self.raw, dict):
            for key in ("originalPrompt", "prompt", "userPrompt"):
                value = self.raw.get(key)
                if isinstance(value, str) and value:
                    return value
        return ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the UI layer."""
        return {"kind": self.kind.value, "prompt": self.display_prompt, "raw": self.raw}


@dataclass(frozen=True)
class PreviewEntry(ThreadEntry):
    """A journal ready for review and confirmation."""

    journal: list[dict[str, Any]] = field(default_factory=list)
    ledger_view: Any = ""
    explanation: str = ""
    new_accounts: list[Any] = field(default_factory=list)
    warnings: list[Any] = field(default_factory=list)
    prompt_type: str | None = None
    doc_type: str = "none"
    document_fields: dict[str, Any] = field(default_factory=dict)
    preview_id: str | None = None
    hash: str | None = None

    kind = EntryKind.PREVIEW

    @property
    def snapshot(self) -> PreviewSnapshot | None:
        """The confirmable snapshot, when the server issued previewId and hash."""
        if not self.preview_id or not self.hash:
            return None
        ledger_view = self.ledger_view if self.ledger_view else None
        return PreviewSnapshot(
            preview_id=self.preview_id,
            hash=self.hash,
            journal=tuple(self.journal),
            ledger_view=ledger_view,
        )

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "journal": self.journal,
                "ledgerView": self.ledger_view,
                "explanation": self.explanation,
                "newAccounts": self.new_accounts,
                "warnings": self.warnings,
                "promptType": self.prompt_type,
                "docType": self.doc_type,
                "documentFields": self.document_fields,
                "previewId": self.preview_id,
                "hash": self.hash,
            }
        )
        return base


@dataclass(frozen=True)
class FollowupEntry(ThreadEntry):
    """The server needs more information before it can draft a journal."""

    clarification: str = ""
    prompt_type: str | None = None
    doc_type: str = "none"

    kind = EntryKind.FOLLOWUP

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "clarification": self.clarification,
                "promptType": self.prompt_type,
                "docType": self.doc_type,
            }
        )
        return base


@dataclass(frozen=True)
class ErrorEntry(ThreadEntry):
    """An explicit error reported by the server."""

    message: str = ""
    errors: list[Any] = field(default_factory=list)
    warnings: list[Any] = field(default_factory=list)

    kind = EntryKind.ERROR

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update({"message": self.message, "errors": self.errors, "warnings": self.warnings})
        return base


@dataclass(frozen=True)
class LegacyEntry(ThreadEntry):
    """Old ``{prompt, results: [{type, content}]}`` response."""

    prompt: str = ""
    results: list[dict[str, Any]] = field(default_factory=list)
    status: str = ""

    kind = EntryKind.LEGACY

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update({"results": self.results, "status": self.status})
        return base


@dataclass(frozen=True)
class RawEntry(ThreadEntry):
    """Unrecognized payload kept verbatim for debugging."""

    error: ShapeError | None = None

    kind = EntryKind.RAW

    @property
    def reason(self) -> str:
        return self.error.message if self.error else ""

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base["reason"] = self.reason
        return base


@dataclass(frozen=True)
class SaveStatus:
    """Outcome of saving the journal behind one timeline entry."""

    status: str
    document: dict[str, Any] | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"
