"""Ledger data structures and the adapters that read them from server JSON.

A row that debits and credits the same account is rejected when built
directly as a ``LedgerRow``. When rows arrive as server mappings through
``as_ledger_rows`` such a row is dropped with a warning instead, so one bad
row never blanks a whole report.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

import structlog

from lekka_core.errors import ValidationError

logger = structlog.get_logger(__name__)

ZERO = Decimal("0")
UNSPECIFIED_ACCOUNT = "(Unspecified)"


def coerce_amount(value: Any) -> Decimal:
    """Coerce a loosely typed amount to Decimal.

    Missing, unparseable and non-finite values become zero instead of
    raising, so dirty extraction data still produces a report.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return ZERO
    if not amount.is_finite():
        return ZERO
    return amount


def normalize_account_name(name: Any) -> str:
    """Trim an account name, preserving case. Non-strings are stringified."""
    if name is None:
        return ""
    return str(name).strip()


def account_key(name: Any) -> str:
    """Case-insensitive key for an account name."""
    return normalize_account_name(name).casefold()


def parse_iso_date(value: Any) -> date | None:
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _first_text(raw: Mapping[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = raw.get(key)
        if isinstance(value, str) and value:
            return value
    return None


@dataclass(frozen=True)
class LedgerRow:
    """One posted double-entry transaction as served by the ledger store."""

    id: Any = None
    transaction_date: date | None = None
    debit_account: str | None = None
    credit_account: str | None = None
    amount: Decimal = ZERO
    narration: str = ""

    def __post_init__(self) -> None:
        debit = account_key(self.debit_account)
        credit = account_key(self.credit_account)
        if debit and credit and debit == credit:
            raise ValidationError(
                f"Ledger row {self.id!r} debits and credits the same account {self.debit_account!r}",
                details={"id": self.id, "account": self.debit_account},
            )

    @property
    def has_accounts(self) -> bool:
        return bool(self.debit_account) or bool(self.credit_account)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "LedgerRow":
        """Build a row from either the snake_case or camelCase server shape."""
        if "amount" in raw or "amount_cents" not in raw:
            amount = coerce_amount(raw.get("amount"))
        else:
            amount = coerce_amount(raw.get("amount_cents")) / 100

        return cls(
            id=raw.get("id"),
            transaction_date=parse_iso_date(
                raw.get("transaction_date") or raw.get("transactionDate") or raw.get("date")
            ),
            debit_account=_first_text(raw, "debit_account", "debitAccount", "debit"),
            credit_account=_first_text(raw, "credit_account", "creditAccount", "credit"),
            amount=amount,
            narration=str(raw.get("narration") or ""),
        )


def as_ledger_rows(rows: Any) -> list[LedgerRow]:
    """Adapt an iterable of rows or raw mappings; anything else yields no rows.

    Mappings that fail row validation are skipped and logged.
    """
    if rows is None or isinstance(rows, (str, bytes, Mapping)) or not isinstance(rows, Iterable):
        return []
    out: list[LedgerRow] = []
    for row in rows:
        if isinstance(row, LedgerRow):
            out.append(row)
        elif isinstance(row, Mapping):
            try:
                out.append(LedgerRow.from_dict(row))
            except ValidationError as e:
                logger.warning("ledger_row_rejected", error=e.message, details=e.details)
    return out


@dataclass(frozen=True)
class AccountBalance:
    """Per-account debit and credit totals from the trial balance."""

    account: str
    debit_total: Decimal = ZERO
    credit_total: Decimal = ZERO

    @property
    def balance(self) -> Decimal:
        """Signed balance: positive is a debit balance, negative a credit balance."""
        return self.debit_total - self.credit_total

    def to_dict(self) -> dict[str, Any]:
        return {
            "account": self.account,
            "debit": self.debit_total,
            "credit": self.credit_total,
        }


@dataclass(frozen=True)
class StatementLine:
    account: str
    amount: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {"account": self.account, "amount": self.amount}


def _sum_lines(lines: list[StatementLine]) -> Decimal:
    return sum((line.amount for line in lines), ZERO)


@dataclass(frozen=True)
class PLView:
    """Profit and loss view. The sign of ``net_profit`` tells profit from loss."""

    income: list[StatementLine] = field(default_factory=list)
    expenses: list[StatementLine] = field(default_factory=list)

    @property
    def total_income(self) -> Decimal:
        return _sum_lines(self.income)

    @property
    def total_expenses(self) -> Decimal:
        return _sum_lines(self.expenses)

    @property
    def net_profit(self) -> Decimal:
        return self.total_income - self.total_expenses

    def to_dict(self) -> dict[str, Any]:
        return {
            "income": [line.to_dict() for line in self.income],
            "expenses": [line.to_dict() for line in self.expenses],
            "totalIncome": self.total_income,
            "totalExpenses": self.total_expenses,
            "netProfit": self.net_profit,
        }


@dataclass(frozen=True)
class BalanceSheetTotals:
    assets: Decimal
    liabilities: Decimal
    equity: Decimal

    @property
    def liabilities_and_equity(self) -> Decimal:
        return self.liabilities + self.equity

    @property
    def difference(self) -> Decimal:
        """Assets minus liabilities and equity; zero when the sheet balances."""
        return self.assets - self.liabilities_and_equity

    @property
    def is_balanced(self) -> bool:
        return self.difference == ZERO


@dataclass(frozen=True)
class BalanceSheetView:
    """Balance sheet with liabilities and equity kept apart.

    ``liabilities_and_equity`` gives the merged list for consumers that
    render a single right-hand column.
    """

    assets: list[StatementLine] = field(default_factory=list)
    liabilities: list[StatementLine] = field(default_factory=list)
    equity: list[StatementLine] = field(default_factory=list)

    @property
    def liabilities_and_equity(self) -> list[StatementLine]:
        return [*self.liabilities, *self.equity]

    @property
    def totals(self) -> BalanceSheetTotals:
        return BalanceSheetTotals(
            assets=_sum_lines(self.assets),
            liabilities=_sum_lines(self.liabilities),
            equity=_sum_lines(self.equity),
        )

    def to_dict(self) -> dict[str, Any]:
        totals = self.totals
        return {
            "assets": [line.to_dict() for line in self.assets],
            "liabilities": [line.to_dict() for line in self.liabilities],
            "equity": [line.to_dict() for line in self.equity],
            "liabilitiesAndEquity": [line.to_dict() for line in self.liabilities_and_equity],
            "totals": {
                "assets": totals.assets,
                "liabilities": totals.liabilities,
                "equity": totals.equity,
                "liabilitiesAndEquity": totals.liabilities_and_equity,
            },
        }
