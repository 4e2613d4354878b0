"""Profit & loss and balance sheet derivation from ledger rows.

Both statements start from the trial balance and classify every account
with the keyword rules, so they stay consistent with the trial balance by
construction.

The balance sheet does not assert that assets equal liabilities plus
equity. Partial or unbalanced ledgers legitimately violate it; callers that
want to flag it can check ``view.totals.is_balanced``.
"""

from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from lekka_core.ledger.classifier import AccountBucket, RuleSet, classify_account
from lekka_core.ledger.models import (
    ZERO,
    AccountBalance,
    BalanceSheetView,
    LedgerRow,
    PLView,
    StatementLine,
)
from lekka_core.ledger.trial_balance import compute_trial_balance

logger = structlog.get_logger(__name__)

CURRENT_YEAR_PROFIT = "Current Year Profit"
CURRENT_YEAR_LOSS = "Current Year Loss"

Rows = Iterable[LedgerRow | Mapping[str, Any]]


def _resolve_rule_set(rule_set: RuleSet | None) -> RuleSet:
    if rule_set is not None:
        return rule_set
    from lekka_core.config.chart_loader import get_default_rule_set

    return get_default_rule_set()


def profit_and_loss_from_balances(
    balances: Iterable[AccountBalance], rule_set: RuleSet | None = None
) -> PLView:
    """Build the P&L from an already computed trial balance."""
    rules = _resolve_rule_set(rule_set)
    income: list[StatementLine] = []
    expenses: list[StatementLine] = []

    for row in balances:
        bucket = classify_account(row.account, rules)
        if bucket not in (AccountBucket.INCOME, AccountBucket.EXPENSES):
            continue
        amount = abs(row.balance)
        if not amount:
            continue
        line = StatementLine(account=row.account, amount=amount)
        if bucket is AccountBucket.INCOME:
            income.append(line)
        else:
            expenses.append(line)

    return PLView(income=income, expenses=expenses)


def compute_profit_and_loss(rows: Rows, rule_set: RuleSet | None = None) -> PLView:
    """Compute the profit and loss view for a set of ledger rows.

    Only income and expense accounts with a non-zero balance appear. The
    net profit keeps its sign; labelling it "Profit" or "Loss" is left to
    the renderer.
    """
    return profit_and_loss_from_balances(compute_trial_balance(rows), rule_set)


def compute_balance_sheet(
    rows: Rows,
    rule_set: RuleSet | None = None,
    pl: PLView | None = None,
) -> BalanceSheetView:
    """Compute the balance sheet for a set of ledger rows.

    Args:
        rows: Ledger rows.
        rule_set: Keyword rules. Defaults to the configured chart of accounts.
        pl: A P&L already computed from the same rows, to avoid a second pass.

    Returns:
        Assets, liabilities and equity lines as magnitudes. The period's net
        result is added to equity as a "Current Year Profit" or "Current Year
        Loss" line carrying the signed net, so a loss reduces equity.
    """
    rules = _resolve_rule_set(rule_set)
    balances = compute_trial_balance(rows)

    assets: list[StatementLine] = []
    liabilities: list[StatementLine] = []
    equity: list[StatementLine] = []
    targets = {
        AccountBucket.ASSETS: assets,
        AccountBucket.LIABILITIES: liabilities,
        AccountBucket.EQUITY: equity,
    }

    for row in balances:
        target = targets.get(classify_account(row.account, rules))
        if target is None:
            continue
        balance = row.balance
        if balance != ZERO:
            target.append(StatementLine(account=row.account, amount=abs(balance)))

    profit_pack = pl if pl is not None else profit_and_loss_from_balances(balances, rules)
    net = profit_pack.net_profit
    if net != ZERO:
        equity.append(
            StatementLine(
                account=CURRENT_YEAR_PROFIT if net > ZERO else CURRENT_YEAR_LOSS,
                amount=net,
            )
        )

    view = BalanceSheetView(assets=assets, liabilities=liabilities, equity=equity)
    totals = view.totals
    if not totals.is_balanced:
        logger.debug(
            "balance_sheet_unbalanced",
            assets=str(totals.assets),
            liabilities_and_equity=str(totals.liabilities_and_equity),
        )
    return view
