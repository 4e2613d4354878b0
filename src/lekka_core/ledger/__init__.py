"""Ledger derivation: classification, trial balance and financial statements."""

from lekka_core.ledger.classifier import AccountBucket, RuleSet, classify_account
from lekka_core.ledger.ledger_view import (
    AccountPosting,
    TrialBalanceTotals,
    filter_rows_by_account,
    filter_rows_by_period,
    list_accounts,
    trial_balance_totals,
)
from lekka_core.ledger.models import (
    UNSPECIFIED_ACCOUNT,
    AccountBalance,
    BalanceSheetTotals,
    BalanceSheetView,
    LedgerRow,
    PLView,
    StatementLine,
    coerce_amount,
)
from lekka_core.ledger.statements import (
    CURRENT_YEAR_LOSS,
    CURRENT_YEAR_PROFIT,
    compute_balance_sheet,
    compute_profit_and_loss,
)
from lekka_core.ledger.trial_balance import compute_trial_balance

__all__ = [
    # Models
    "LedgerRow",
    "AccountBalance",
    "StatementLine",
    "PLView",
    "BalanceSheetView",
    "BalanceSheetTotals",
    "UNSPECIFIED_ACCOUNT",
    "coerce_amount",
    # Classification
    "AccountBucket",
    "RuleSet",
    "classify_account",
    # Derivation
    "compute_trial_balance",
    "compute_profit_and_loss",
    "compute_balance_sheet",
    "CURRENT_YEAR_PROFIT",
    "CURRENT_YEAR_LOSS",
    # Ledger viewer
    "AccountPosting",
    "TrialBalanceTotals",
    "list_accounts",
    "filter_rows_by_account",
    "filter_rows_by_period",
    "trial_balance_totals",
]
