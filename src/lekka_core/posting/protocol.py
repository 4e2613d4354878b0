"""Two-phase posting protocol: preview a draft, then confirm it by hash.

A ``PostingSession`` drives one user's drafts against a backend that
exposes ``preview``/``confirm``/``confirm_legacy``. Each user-initiated
call gets a fresh idempotency key; the session never retries on its own.

State flow::

    idle -> drafted -> previewed -> confirmed
    idle -> drafted -> followup_needed -> drafted -> previewed -> confirmed

and ``error`` from anywhere.

Overlapping previews are allowed. Every response is appended to the
timeline when it arrives, but only the most recently *issued* preview can
become the confirmable snapshot. A re-preview invalidates the current
snapshot as soon as it is issued.
"""

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

import structlog

from lekka_core.config.logging import bind_session_context
from lekka_core.errors import (
    IntegrityError,
    LekkaAPIError,
    NetworkError,
    ValidationError,
)
from lekka_core.posting.idempotency import IdempotencyKeyGenerator
from lekka_core.posting.journal import JournalLine, coerce_edits
from lekka_core.thread.entries import (
    EntryKind,
    PreviewEntry,
    PreviewSnapshot,
    SaveStatus,
    ThreadEntry,
)
from lekka_core.thread.session import PromptSession

logger = structlog.get_logger(__name__)


class PostingBackend(Protocol):
    """Server operations the protocol depends on."""

    async def preview(self, payload: dict[str, Any]) -> Any: ...

    async def confirm(self, payload: dict[str, Any]) -> Any: ...

    async def confirm_legacy(self, payload: dict[str, Any]) -> Any: ...


class PostingState(str, Enum):
    IDLE = "idle"
    DRAFTED = "drafted"
    FOLLOWUP_NEEDED = "followup_needed"
    PREVIEWED = "previewed"
    CONFIRMED = "confirmed"
    ERROR = "error"


@dataclass(frozen=True)
class PostResult:
    """Outcome of a confirm call."""

    success: bool
    document: dict[str, Any] | None = None
    error: str | None = None
    raw: Any = None

    @classmethod
    def from_response(cls, response: Any) -> "PostResult":
        if not isinstance(response, Mapping):
            return cls(success=False, error="Unexpected confirm response", raw=response)
        success = (
            response.get("success") is True
            or response.get("ok") is True
            or response.get("status") == "posted"
        )
        document = response.get("document")
        error = response.get("error")
        return cls(
            success=success,
            document=dict(document) if isinstance(document, Mapping) else None,
            error=None if success else (str(error) if error else "Save failed"),
            raw=response,
        )

    def to_save_status(self) -> SaveStatus:
        if self.success:
            return SaveStatus(status="success", document=self.document)
        return SaveStatus(status="error", error=self.error)


@dataclass(frozen=True)
class _TrackedSnapshot:
    snapshot: PreviewSnapshot
    entry_index: int
    sequence: int


def _business_error_payload(error: LekkaAPIError) -> dict[str, Any]:
    """Turn an HTTP error body into an error-shaped orchestrator response."""
    details = error.details if isinstance(error.details, Mapping) else {}
    return {"success": False, "error": error.message, **details}


class PostingSession:
    """Preview/confirm driver bound to one prompt session."""

    def __init__(
        self,
        backend: PostingBackend,
        session: PromptSession | None = None,
        key_generator: IdempotencyKeyGenerator | None = None,
    ):
        self._backend = backend
        self.session = session if session is not None else PromptSession()
        self._keys = key_generator or IdempotencyKeyGenerator()
        self.state = PostingState.IDLE

        self._issued = 0
        self._accept_from = 0
        self._generation = 0
        self._current: _TrackedSnapshot | None = None
        self._last_draft_index: int | None = None
        self._consumed: set[tuple[str, str]] = set()
        self._superseded: set[tuple[str, str]] = set()
        self._logger = logger.bind(component="posting", session_id=self.session.session_id)

    # === Introspection ===

    @property
    def current_snapshot(self) -> PreviewSnapshot | None:
        return self._current.snapshot if self._current else None

    @property
    def last_draft(self) -> PreviewEntry | None:
        if self._last_draft_index is None:
            return None
        entry = self.session.entry(self._last_draft_index)
        return entry if isinstance(entry, PreviewEntry) else None

    @property
    def draft_lines(self) -> list[JournalLine]:
        """Rows of the last draft, shaped for an edit form."""
        draft = self.last_draft
        if draft is None:
            return []
        return [JournalLine.from_dict(row) for row in draft.journal if isinstance(row, Mapping)]

    def is_consumed(self, snapshot: PreviewSnapshot) -> bool:
        return snapshot.key in self._consumed

    # === Preview ===

    async def preview_prompt(
        self, prompt: str, follow_up_chain: Sequence[str] | None = None
    ) -> ThreadEntry:
        """Draft a journal from natural-language text."""
        if not isinstance(prompt, str) or not prompt.strip():
            raise ValidationError("Prompt text is required")
        text = prompt.strip()

        payload: dict[str, Any] = {
            "sessionId": self.session.session_id,
            "idempotencyKey": self._keys.for_prompt(text),
            "prompt": text,
        }
        if follow_up_chain:
            payload["followUpChain"] = list(follow_up_chain)
        return await self._send_preview(payload, original_prompt=text)

    async def preview_fields(
        self,
        fields: Mapping[str, Any] | str,
        doc_type: str | None = None,
        raw_text: str | None = None,
    ) -> ThreadEntry:
        """Draft a journal from extracted document fields.

        Args:
            fields: Field mapping, or JSON text as edited by the user.
            doc_type: Document type hint (invoice, receipt, payment_voucher).
            raw_text: Extracted document text, used server-side for intent only.

        Raises:
            ValidationError: If the fields are not valid JSON or not an object.
        """
        parsed: Any = fields
        if isinstance(fields, (str, bytes)):
            try:
                parsed = json.loads(fields or "{}")
            except ValueError as e:
                raise ValidationError("Invalid JSON in extracted fields", details=str(e)) from e
        if not isinstance(parsed, Mapping):
            raise ValidationError("Extracted fields must be a JSON object")

        dt = doc_type or "none"
        payload: dict[str, Any] = {
            "sessionId": self.session.session_id,
            "idempotencyKey": self._keys.for_fields(parsed, dt),
            "docType": dt,
            "fields": dict(parsed),
            "source": "extraction",
        }
        if raw_text:
            payload["meta"] = {"rawText": raw_text}
        return await self._send_preview(payload)

    async def re_preview(
        self,
        edits: Mapping[Any, Any] | Sequence[Mapping[str, Any]],
        doc_field_edits: Mapping[str, Any] | None = None,
    ) -> ThreadEntry:
        """Apply row corrections to the last draft and preview it again.

        The current snapshot is invalidated immediately, before the server
        answers, so it can no longer be confirmed.
        """
        draft = self.last_draft
        if draft is None:
            raise ValidationError("There is no draft to edit; preview first")

        patch = coerce_edits(edits)
        out_of_range = [index for index in patch if int(index) >= len(draft.journal)]
        if out_of_range:
            raise ValidationError(
                f"Edit refers to rows not in the draft: {', '.join(out_of_range)}"
            )

        payload: dict[str, Any] = {
            "sessionId": self.session.session_id,
            "idempotencyKey": self._keys.for_edits(patch),
            "edits": patch,
        }
        if doc_field_edits:
            payload["docFieldEdits"] = dict(doc_field_edits)
        return await self._send_preview(payload, invalidate=True)

    async def _send_preview(
        self,
        payload: dict[str, Any],
        original_prompt: str | None = None,
        invalidate: bool = False,
    ) -> ThreadEntry:
        bind_session_context(self.session.session_id)
        self._issued += 1
        sequence = self._issued
        if invalidate:
            self._supersede_current()
            self._accept_from = sequence

        self.state = PostingState.DRAFTED
        self._logger.info(
            "preview_requested",
            sequence=sequence,
            idempotency_key=payload["idempotencyKey"],
            source=payload.get("source", "prompt" if "prompt" in payload else "edits"),
        )

        try:
            response = await self._backend.preview(payload)
        except LekkaAPIError as e:
            response = _business_error_payload(e)
        except (NetworkError, IntegrityError):
            self.state = PostingState.ERROR
            raise

        entry = self.session.update(response, original_prompt=original_prompt)
        self._apply_preview_entry(entry, sequence)
        return entry

    def _supersede_current(self) -> None:
        if self._current is None:
            return
        snapshot = self._current.snapshot
        self._logger.info("preview_invalidated", preview_id=snapshot.preview_id)
        self._superseded.add(snapshot.key)
        self._current = None

    def _apply_preview_entry(self, entry: ThreadEntry, sequence: int) -> None:
        index = self.session.index_of(entry)

        if sequence < self._accept_from:
            # Issued before the current draft; shown, never confirmable and
            # never allowed to move the state away from the newer draft.
            self._logger.info("stale_response_ignored", sequence=sequence, kind=entry.kind.value)
            if isinstance(entry, PreviewEntry) and entry.snapshot is not None:
                self._superseded.add(entry.snapshot.key)
            return

        if isinstance(entry, PreviewEntry):
            snapshot = entry.snapshot
            current_key = self._current.snapshot.key if self._current else None
            if snapshot is None or current_key != snapshot.key:
                self._supersede_current()
            self._last_draft_index = index
            self._accept_from = sequence
            self.state = PostingState.PREVIEWED
            if snapshot is None:
                return
            if snapshot.key in self._consumed:
                self._logger.warning("consumed_preview_returned", preview_id=snapshot.preview_id)
                return
            self._current = _TrackedSnapshot(snapshot, index, sequence)
        elif entry.kind is EntryKind.FOLLOWUP:
            self.state = PostingState.FOLLOWUP_NEEDED
        elif entry.kind in (EntryKind.ERROR, EntryKind.RAW):
            self.state = PostingState.ERROR

    # === Confirm ===

    def _entry_for(self, snapshot: PreviewSnapshot) -> ThreadEntry | None:
        if self._current and self._current.snapshot.key == snapshot.key:
            return self.session.entry(self._current.entry_index)
        for entry in self.session.thread:
            if isinstance(entry, PreviewEntry) and entry.preview_id == snapshot.preview_id:
                return entry
        return None

    def _record(self, entry: ThreadEntry | None, status: SaveStatus) -> None:
        """Annotate an entry by identity, if it is still on the timeline."""
        if entry is None:
            return
        try:
            index = self.session.index_of(entry)
        except ValueError:
            # Dropped by a reset while the call was in flight.
            self._logger.info("save_status_dropped", status=status.status)
            return
        self.session.record_save_status(index, status)

    def _set_state_if_current(self, generation: int, state: PostingState) -> None:
        if generation == self._generation:
            self.state = state

    async def confirm(self, snapshot: PreviewSnapshot | None = None) -> PostResult:
        """Commit a previewed draft.

        Args:
            snapshot: Snapshot to confirm. Defaults to the current one.

        Raises:
            ValidationError: No snapshot to confirm.
            IntegrityError: The snapshot was already confirmed, or the
                server reports the hash no longer matches the draft.
            NetworkError: Transport failure; nothing was recorded as posted.
        """
        snapshot = snapshot or self.current_snapshot
        if snapshot is None:
            raise ValidationError("Missing previewId/hash; preview the entry first")
        if snapshot.key in self._consumed:
            raise IntegrityError(
                "Preview already confirmed; re-preview required",
                details={"previewId": snapshot.preview_id},
            )
        if snapshot.key in self._superseded:
            raise IntegrityError(
                "Preview was superseded by a newer draft; confirm the latest preview",
                details={"previewId": snapshot.preview_id},
            )

        bind_session_context(self.session.session_id)
        entry = self._entry_for(snapshot)
        generation = self._generation
        payload = {
            "previewId": snapshot.preview_id,
            "hash": snapshot.hash,
            "sessionId": self.session.session_id,
            "idempotencyKey": self._keys.for_confirm(snapshot.preview_id),
        }
        self._logger.info("confirm_requested", preview_id=snapshot.preview_id)

        try:
            response = await self._backend.confirm(payload)
        except IntegrityError as e:
            self._logger.warning("confirm_rejected", preview_id=snapshot.preview_id, error=e.message)
            self._record(entry, SaveStatus(status="error", error=e.message))
            if self._current and self._current.snapshot.key == snapshot.key:
                self._current = None
            self._set_state_if_current(generation, PostingState.ERROR)
            raise
        except NetworkError:
            self._set_state_if_current(generation, PostingState.ERROR)
            raise
        except LekkaAPIError as e:
            response = _business_error_payload(e)

        result = PostResult.from_response(response)
        self._record(entry, result.to_save_status())
        if result.success:
            self._consumed.add(snapshot.key)
            if self._current and self._current.snapshot.key == snapshot.key:
                self._current = None
            self._set_state_if_current(generation, PostingState.CONFIRMED)
            self._logger.info("confirm_succeeded", preview_id=snapshot.preview_id)
        else:
            self._set_state_if_current(generation, PostingState.ERROR)
            self._logger.warning("confirm_failed", preview_id=snapshot.preview_id, error=result.error)
        return result

    async def confirm_legacy(self, entry_index: int) -> PostResult:
        """Post a preview entry's journal directly, bypassing the snapshot check."""
        try:
            entry = self.session.entry(entry_index)
        except IndexError as e:
            raise ValidationError(f"No timeline entry at index {entry_index}") from e
        if not isinstance(entry, PreviewEntry) or not entry.journal:
            raise ValidationError("Only preview entries with a journal can be saved")

        prompt = entry.display_prompt
        payload: dict[str, Any] = {
            "sessionId": self.session.session_id,
            "idempotencyKey": self._keys.for_prompt(prompt) if prompt else self._keys.for_edits({}),
            "journal": entry.journal,
            "prompt": prompt,
            "confirmed": True,
        }
        if entry.doc_type and entry.doc_type != "none":
            payload["docType"] = entry.doc_type
            payload["documentFields"] = entry.document_fields or {}

        bind_session_context(self.session.session_id)
        generation = self._generation

        try:
            response = await self._backend.confirm_legacy(payload)
        except (NetworkError, IntegrityError) as e:
            self._record(entry, SaveStatus(status="error", error=e.message))
            self._set_state_if_current(generation, PostingState.ERROR)
            raise
        except LekkaAPIError as e:
            response = _business_error_payload(e)

        result = PostResult.from_response(response)
        self._record(entry, result.to_save_status())
        self._set_state_if_current(
            generation, PostingState.CONFIRMED if result.success else PostingState.ERROR
        )
        self._logger.info("legacy_confirm_finished", index=entry_index, success=result.success)
        return result

    def reset(self) -> None:
        """Drop drafts and the timeline. Used previews stay unconfirmable."""
        self.session.reset()
        self._supersede_current()
        self._last_draft_index = None
        self._accept_from = self._issued + 1
        self._generation += 1
        self.state = PostingState.IDLE
