"""Bank reconciliation suggestion consumer."""

from lekka_core.reconciliation.consumer import ReconciliationConsumer
from lekka_core.reconciliation.models import (
    BankLine,
    Candidate,
    MatchRequest,
    ReconciliationSuggestion,
)

__all__ = [
    "BankLine",
    "Candidate",
    "MatchRequest",
    "ReconciliationConsumer",
    "ReconciliationSuggestion",
]
