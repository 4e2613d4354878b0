"""Fold double-entry ledger rows into per-account debit/credit totals."""

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

import structlog

from lekka_core.ledger.models import (
    UNSPECIFIED_ACCOUNT,
    ZERO,
    AccountBalance,
    LedgerRow,
    as_ledger_rows,
    normalize_account_name,
)

logger = structlog.get_logger(__name__)


class _Accumulator:
    __slots__ = ("account", "debit", "credit")

    def __init__(self, account: str):
        self.account = account
        self.debit = ZERO
        self.credit = ZERO


def compute_trial_balance(
    rows: Iterable[LedgerRow | Mapping[str, Any]],
) -> list[AccountBalance]:
    """Compute the trial balance for a set of ledger rows.

    Accounts are keyed case-insensitively on the trimmed name; the first
    spelling seen is the one displayed. Blank names collapse into
    ``(Unspecified)``. Rows with neither a debit nor a credit account post
    nothing and are skipped.

    Returns:
        Balances sorted by account name (plain string ordering).
    """
    totals: dict[str, _Accumulator] = {}
    skipped = 0

    def bucket(name: str) -> _Accumulator:
        display = normalize_account_name(name) or UNSPECIFIED_ACCOUNT
        key = display.casefold()
        if key not in totals:
            totals[key] = _Accumulator(display)
        return totals[key]

    for row in as_ledger_rows(rows):
        if not row.has_accounts:
            skipped += 1
            continue
        if row.debit_account:
            bucket(row.debit_account).debit += row.amount
        if row.credit_account:
            bucket(row.credit_account).credit += row.amount

    if skipped:
        logger.debug("trial_balance_rows_skipped", count=skipped)

    balances = [
        AccountBalance(account=acc.account, debit_total=acc.debit, credit_total=acc.credit)
        for acc in totals.values()
    ]
    return sorted(balances, key=lambda b: b.account)


def total_debits(balances: Iterable[AccountBalance]) -> Decimal:
    return sum((b.debit_total for b in balances), ZERO)


def total_credits(balances: Iterable[AccountBalance]) -> Decimal:
    return sum((b.credit_total for b in balances), ZERO)
