"""Lekka ledger core - statements, prompt timeline and two-phase posting for a bookkeeping client."""

__version__ = "0.1.0"

from lekka_core.api import LekkaAPIClient
from lekka_core.config import configure_logging, get_settings
from lekka_core.errors import (
    BusinessError,
    IntegrityError,
    LekkaAPIError,
    LekkaError,
    NetworkError,
    ShapeError,
    ValidationError,
)
from lekka_core.ledger import (
    AccountBucket,
    LedgerRow,
    classify_account,
    compute_balance_sheet,
    compute_profit_and_loss,
    compute_trial_balance,
)
from lekka_core.posting import IdempotencyKeyGenerator, PostingSession, PostingState
from lekka_core.reconciliation import ReconciliationConsumer
from lekka_core.thread import PromptSession, SessionStatus, normalize

__all__ = [
    # Version
    "__version__",
    # Ledger
    "LedgerRow",
    "AccountBucket",
    "classify_account",
    "compute_trial_balance",
    "compute_profit_and_loss",
    "compute_balance_sheet",
    # Timeline
    "PromptSession",
    "SessionStatus",
    "normalize",
    # Posting
    "PostingSession",
    "PostingState",
    "IdempotencyKeyGenerator",
    # Reconciliation
    "ReconciliationConsumer",
    # Transport
    "LekkaAPIClient",
    # Errors
    "LekkaError",
    "NetworkError",
    "ValidationError",
    "IntegrityError",
    "ShapeError",
    "BusinessError",
    "LekkaAPIError",
    # Config
    "get_settings",
    "configure_logging",
]
