"""Normalize orchestrator responses into canonical timeline entries.

The backend has shipped several response shapes over time. ``normalize``
maps any of them, and anything else, onto one ``ThreadEntry``. The checks
run in a fixed order and the first match wins:

1. unwrap a ``{"data": {...}}`` envelope when the outer object has no status
2. ``status == "followup_needed"``                 -> FollowupEntry
3. preview-like status and a journal array         -> PreviewEntry
4. ``invalid``/``error`` status or ``success: false`` -> ErrorEntry
5. legacy ``prompt`` + ``results`` shape            -> LegacyEntry
6. a journal array with no recognized status       -> PreviewEntry
7. anything else                                   -> RawEntry
"""

from collections.abc import Mapping
from typing import Any

import structlog

from lekka_core.errors import ShapeError
from lekka_core.thread.entries import (
    EntryKind,
    ErrorEntry,
    FollowupEntry,
    LegacyEntry,
    PreviewEntry,
    RawEntry,
    ThreadEntry,
)

logger = structlog.get_logger(__name__)

PREVIEWISH_STATUSES = frozenset({"preview", "success", "ok", "ready"})
DEFAULT_CLARIFICATION = "Please provide the missing detail."
DEFAULT_ERROR_MESSAGE = "Something went wrong. Please try again."


def _get(obj: Any, key: str, default: Any = None) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(key, default)
    return default


def _text_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def unwrap_envelope(data: Any) -> Any:
    """Strip one ``{"data": {...}}`` wrapper unless the outer object has a status."""
    if isinstance(data, Mapping) and "status" not in data:
        inner = data.get("data")
        if isinstance(inner, Mapping):
            return inner
    return data


def extract_journal(data: Any) -> list[Any]:
    """First journal-like list among ``journal``, ``normalized``, ``ledgerView.journal``."""
    for candidate in (
        _get(data, "journal"),
        _get(data, "normalized"),
        _get(_get(data, "ledgerView"), "journal"),
    ):
        if isinstance(candidate, list):
            return candidate
    return []


def normalize_doc_fields(doc_type: Any, document_fields: Any) -> dict[str, Any]:
    """Key document fields under their doc type.

    Servers send either ``{"invoice": {...}}`` or the flat invoice fields.
    Both come out as ``{"invoice": {...}}``. A missing or ``"none"`` doc type
    yields an empty mapping.
    """
    dt = doc_type if isinstance(doc_type, str) and doc_type else "none"
    fields = dict(document_fields) if isinstance(document_fields, Mapping) else {}
    if dt == "none":
        return {}
    if fields.get(dt):
        return fields
    return {dt: fields}


def _doc_type(data: Any) -> str:
    value = _get(data, "docType")
    return value if isinstance(value, str) and value else "none"


def _error_text(item: Any) -> str:
    if isinstance(item, Mapping):
        message = item.get("message") or item.get("error")
        if message:
            return str(message)
    return str(item)


def error_message(data: Any) -> str:
    """Best-effort message: explicit error, else joined error list, else a fallback."""
    error = _get(data, "error")
    if error:
        return error if isinstance(error, str) else _error_text(error)
    errors = _get(data, "errors")
    if isinstance(errors, list) and errors:
        return ", ".join(_error_text(item) for item in errors)
    return DEFAULT_ERROR_MESSAGE


def _preview_entry(data: Any, journal: list[Any]) -> PreviewEntry:
    doc_type = _doc_type(data)
    new_accounts = _get(data, "newAccounts")
    warnings = _get(data, "warnings")
    return PreviewEntry(
        raw=data,
        journal=journal,
        ledger_view=_get(data, "ledgerView") or "",
        explanation=_get(data, "explanation") or "",
        new_accounts=new_accounts if isinstance(new_accounts, list) else [],
        warnings=warnings if isinstance(warnings, list) else [],
        prompt_type=_text_or_none(_get(data, "promptType")),
        doc_type=doc_type,
        document_fields=normalize_doc_fields(doc_type, _get(data, "documentFields")),
        preview_id=_text_or_none(_get(data, "previewId") or _get(data, "preview_id")),
        hash=_text_or_none(_get(data, "hash")),
    )


def _classify(data: Any) -> ThreadEntry:
    raw_status = _get(data, "status")
    status = raw_status.lower() if isinstance(raw_status, str) else ""
    journal = extract_journal(data)

    if status == "followup_needed":
        return FollowupEntry(
            raw=data,
            clarification=str(_get(data, "clarification") or DEFAULT_CLARIFICATION),
            prompt_type=_text_or_none(_get(data, "promptType")),
            doc_type=_doc_type(data),
        )

    if status in PREVIEWISH_STATUSES and journal:
        return _preview_entry(data, journal)

    if status in ("invalid", "error") or _get(data, "success") is False:
        errors = _get(data, "errors")
        warnings = _get(data, "warnings")
        return ErrorEntry(
            raw=data,
            message=error_message(data),
            errors=errors if isinstance(errors, list) else [],
            warnings=warnings if isinstance(warnings, list) else [],
        )

    prompt = _get(data, "prompt")
    results = _get(data, "results")
    if prompt and isinstance(results, list):
        valid = [
            item
            for item in results
            if isinstance(item, Mapping) and item.get("type") and "content" in item
        ]
        if len(valid) != len(results):
            logger.debug("legacy_results_filtered", dropped=len(results) - len(valid))
        return LegacyEntry(
            raw=data,
            prompt=prompt if isinstance(prompt, str) else str(prompt),
            results=valid,
            status=status,
        )

    if journal:
        return _preview_entry(data, journal)

    logger.warning("unrecognized_response_shape", payload_type=type(data).__name__)
    return RawEntry(
        raw=data,
        error=ShapeError(f"unrecognized response shape: {type(data).__name__}", details=data),
    )


def normalize(raw_response: Any) -> ThreadEntry:
    """Map any orchestrator response onto exactly one timeline entry.

    Never raises. Unexpected payloads come back as ``RawEntry`` so the
    timeline never silently drops data.
    """
    data = unwrap_envelope(raw_response)
    try:
        return _classify(data)
    except Exception as e:
        logger.warning("normalize_failed", error=str(e))
        return RawEntry(
            raw=data,
            error=ShapeError(f"response could not be normalized: {e}", details=data),
        )


def last_response_type(entry: ThreadEntry) -> str | None:
    """Response type an entry records on its session, or None to leave it unchanged."""
    if isinstance(entry, LegacyEntry):
        return str(entry.results[0]["type"]) if entry.results else None
    if entry.kind is EntryKind.RAW:
        return "error"
    return entry.kind.value
