"""Account listing and filtering over ledger rows for the ledger viewer."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Literal

from lekka_core.ledger.models import (
    AccountBalance,
    LedgerRow,
    account_key,
    as_ledger_rows,
    normalize_account_name,
    parse_iso_date,
)
from lekka_core.ledger.trial_balance import total_credits, total_debits

Rows = Iterable[LedgerRow | Mapping[str, Any]]


@dataclass(frozen=True)
class AccountPosting:
    """A ledger row seen from one account: which side it hit, and against what."""

    row: LedgerRow
    side: Literal["debit", "credit"]
    counterparty: str


@dataclass(frozen=True)
class TrialBalanceTotals:
    debit: Decimal
    credit: Decimal

    @property
    def is_balanced(self) -> bool:
        return self.debit == self.credit


def list_accounts(rows: Rows) -> list[str]:
    """Distinct account names from both sides, sorted. First spelling wins."""
    seen: dict[str, str] = {}
    for row in as_ledger_rows(rows):
        for name in (row.debit_account, row.credit_account):
            display = normalize_account_name(name)
            if display:
                seen.setdefault(display.casefold(), display)
    return sorted(seen.values())


def filter_rows_by_account(rows: Rows, account: str) -> list[AccountPosting]:
    """Rows touching ``account`` on either side, with side and counterparty."""
    key = account_key(account)
    postings: list[AccountPosting] = []
    if not key:
        return postings
    for row in as_ledger_rows(rows):
        if account_key(row.debit_account) == key:
            postings.append(
                AccountPosting(row, "debit", normalize_account_name(row.credit_account))
            )
        elif account_key(row.credit_account) == key:
            postings.append(
                AccountPosting(row, "credit", normalize_account_name(row.debit_account))
            )
    return postings


def filter_rows_by_period(
    rows: Rows,
    date_from: date | str | None = None,
    date_to: date | str | None = None,
) -> list[LedgerRow]:
    """Rows whose transaction date falls in the inclusive window.

    An open bound is unbounded. Undated rows are kept only when both bounds
    are open.
    """
    start = parse_iso_date(date_from)
    end = parse_iso_date(date_to)
    selected: list[LedgerRow] = []
    for row in as_ledger_rows(rows):
        when = row.transaction_date
        if when is None:
            if start is None and end is None:
                selected.append(row)
            continue
        if start is not None and when < start:
            continue
        if end is not None and when > end:
            continue
        selected.append(row)
    return selected


def trial_balance_totals(balances: Iterable[AccountBalance]) -> TrialBalanceTotals:
    """Grand totals for the trial balance footer."""
    balances = list(balances)
    return TrialBalanceTotals(debit=total_debits(balances), credit=total_credits(balances))
