"""Error taxonomy shared by the posting protocol, transport and normalizer."""

from typing import Any


class LekkaError(Exception):
    """Base exception for ledger core errors."""

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class NetworkError(LekkaError):
    """Transport failure or timeout. Safe for the user to retry."""

    pass


class ValidationError(LekkaError):
    """Structured input failed shape checks; the user must fix it."""

    pass


class IntegrityError(LekkaError):
    """Preview hash mismatch, expired preview, or reuse of a consumed preview."""

    pass


class ShapeError(LekkaError):
    """An orchestrator response matched none of the known shapes.

    Never raised past the normalizer; it is recorded on ``raw`` timeline
    entries so callers can inspect why a payload was not recognized.
    """

    pass


class BusinessError(LekkaError):
    """The server reported an explicit ``error``/``errors`` payload."""

    pass


class LekkaAPIError(LekkaError):
    """HTTP error response from the Lekka API."""

    pass
