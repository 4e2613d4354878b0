"""Idempotency keys and content hashing for preview/confirm requests."""

import hashlib
import json
import re
import secrets
import time
from collections.abc import Callable, Mapping
from typing import Any

_SLUG_RE = re.compile(r"[^a-z0-9]+")
SEED_LENGTH = 24
HASH_PREFIX_LENGTH = 12


def stable_hash(payload: Any) -> str:
    """SHA-256 of the canonical JSON form (sorted keys, compact separators)."""
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def _slug(text: str) -> str:
    return _SLUG_RE.sub("-", text.lower()).strip("-")[:SEED_LENGTH].rstrip("-")


class IdempotencyKeyGenerator:
    """Issues one key per user-initiated attempt.

    A key is ``<seed>-<millis>-<random>``. The seed comes from the prompt
    text or from a hash prefix of the structured fields, so keys for the
    same input are recognizable in server logs. Retrying the same request
    must reuse its key; a new user attempt always gets a new one.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        token: Callable[[], str] = lambda: secrets.token_hex(4),
    ):
        self._clock = clock
        self._token = token

    def _build(self, seed: str) -> str:
        millis = int(self._clock() * 1000)
        return f"{seed or 'attempt'}-{millis}-{self._token()}"

    def for_prompt(self, prompt: str) -> str:
        return self._build(_slug(prompt))

    def for_fields(self, fields: Mapping[str, Any], doc_type: str | None = None) -> str:
        digest = stable_hash(dict(fields))[:HASH_PREFIX_LENGTH]
        prefix = _slug(doc_type) if doc_type and doc_type != "none" else "doc"
        return self._build(f"{prefix}-{digest}")

    def for_edits(self, edits: Mapping[Any, Any]) -> str:
        return self._build(f"edit-{stable_hash(edits)[:HASH_PREFIX_LENGTH]}")

    def for_confirm(self, preview_id: str) -> str:
        return self._build(f"confirm-{_slug(preview_id)}")
