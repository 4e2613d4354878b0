"""Prompt session: the append-only timeline and its status."""

import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

import structlog

from lekka_core.thread.entries import EntryKind, LegacyEntry, SaveStatus, ThreadEntry
from lekka_core.thread.normalizer import last_response_type, normalize

logger = structlog.get_logger(__name__)


class SessionStatus(str, Enum):
    """Overall state shown by the prompt UI."""

    IDLE = "idle"
    PREVIEW = "preview"
    FOLLOWUP = "followup"
    ERROR = "error"


_STATUS_BY_KIND = {
    EntryKind.PREVIEW: SessionStatus.PREVIEW,
    EntryKind.FOLLOWUP: SessionStatus.FOLLOWUP,
    EntryKind.ERROR: SessionStatus.ERROR,
    EntryKind.RAW: SessionStatus.ERROR,
}


def _new_session_id() -> str:
    return f"S-{int(time.time() * 1000)}"


def status_for(entry: ThreadEntry) -> SessionStatus | None:
    """Session status implied by an entry, or None to keep the current one.

    Legacy entries only move the status when they carry one of the known
    session statuses.
    """
    if isinstance(entry, LegacyEntry):
        try:
            return SessionStatus(entry.status)
        except ValueError:
            return None
    return _STATUS_BY_KIND.get(entry.kind)


@dataclass
class PromptSession:
    """One user's timeline of normalized orchestrator responses.

    The timeline only grows. Save outcomes are recorded per entry index in
    a side table and never rewrite the entry.
    """

    session_id: str = field(default_factory=_new_session_id)
    status: SessionStatus = SessionStatus.IDLE
    last_response_type: str | None = None
    _thread: list[ThreadEntry] = field(default_factory=list, init=False, repr=False)
    _save_status: dict[int, SaveStatus] = field(default_factory=dict, init=False, repr=False)

    @property
    def thread(self) -> tuple[ThreadEntry, ...]:
        return tuple(self._thread)

    def entry(self, index: int) -> ThreadEntry:
        return self._thread[index]

    def update(self, response: Any, original_prompt: str | None = None) -> ThreadEntry:
        """Normalize a response, append it, and update the session status.

        Args:
            response: Raw orchestrator payload of any shape.
            original_prompt: The prompt the user typed, kept for display.

        Returns:
            The appended entry.
        """
        entry = normalize(response)
        if original_prompt:
            entry = replace(entry, original_prompt=original_prompt)
        self._thread.append(entry)

        new_status = status_for(entry)
        if new_status is not None:
            self.status = new_status
        response_type = last_response_type(entry)
        if response_type is not None:
            self.last_response_type = response_type

        logger.info(
            "thread_entry_appended",
            index=len(self._thread) - 1,
            kind=entry.kind.value,
            status=self.status.value,
        )
        return entry

    def index_of(self, entry: ThreadEntry) -> int:
        """Position of an entry in the timeline, by identity."""
        for index, candidate in enumerate(self._thread):
            if candidate is entry:
                return index
        raise ValueError("entry is not part of this session")

    def record_save_status(self, index: int, status: SaveStatus) -> None:
        if not 0 <= index < len(self._thread):
            raise IndexError(f"no timeline entry at index {index}")
        self._save_status[index] = status

    def save_status(self, index: int) -> SaveStatus | None:
        return self._save_status.get(index)

    def reset(self) -> None:
        """Clear the timeline and return to idle. The session id is kept."""
        logger.info("thread_reset", entries=len(self._thread))
        self._thread.clear()
        self._save_status.clear()
        self.status = SessionStatus.IDLE
        self.last_response_type = None
