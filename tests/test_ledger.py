"""Tests for ledger rows, classification, trial balance and statements."""

from decimal import Decimal

import pytest

from lekka_core.errors import ValidationError
from lekka_core.ledger import (
    CURRENT_YEAR_LOSS,
    CURRENT_YEAR_PROFIT,
    UNSPECIFIED_ACCOUNT,
    AccountBucket,
    LedgerRow,
    RuleSet,
    classify_account,
    coerce_amount,
    compute_balance_sheet,
    compute_profit_and_loss,
    compute_trial_balance,
)
from lekka_core.ledger.trial_balance import total_credits, total_debits


def _by_account(balances):
    return {b.account: (b.debit_total, b.credit_total) for b in balances}


class TestCoerceAmount:
    """Tests for lenient amount coercion."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (100, Decimal("100")),
            ("250.50", Decimal("250.50")),
            (" 12 ", Decimal("12")),
            (None, Decimal("0")),
            ("abc", Decimal("0")),
            (float("nan"), Decimal("0")),
            (float("inf"), Decimal("0")),
            ("Infinity", Decimal("0")),
            (True, Decimal("0")),
        ],
    )
    def test_coercion(self, value, expected):
        assert coerce_amount(value) == expected


class TestLedgerRow:
    """Tests for the ledger row adapter."""

    def test_from_dict_snake_case(self):
        row = LedgerRow.from_dict(
            {
                "id": 7,
                "transaction_date": "2024-04-01T00:00:00.000Z",
                "debit_account": "Cash",
                "credit_account": "Sales",
                "amount": "99.90",
                "narration": "Sale",
            }
        )

        assert row.transaction_date.isoformat() == "2024-04-01"
        assert row.debit_account == "Cash"
        assert row.amount == Decimal("99.90")

    def test_from_dict_camel_case(self):
        row = LedgerRow.from_dict(
            {"transactionDate": "2024-04-02", "debitAccount": "Rent", "creditAccount": "Bank", "amount": 5}
        )

        assert row.debit_account == "Rent"
        assert row.credit_account == "Bank"

    def test_amount_cents_converted(self):
        row = LedgerRow.from_dict({"debit_account": "Cash", "credit_account": "Sales", "amount_cents": 12345})

        assert row.amount == Decimal("123.45")

    def test_same_account_both_sides_rejected(self):
        with pytest.raises(ValidationError):
            LedgerRow.from_dict({"debit_account": "Cash", "credit_account": " cash ", "amount": 10})

    def test_single_sided_row_allowed(self):
        row = LedgerRow.from_dict({"debit_account": "Cash", "amount": 10})

        assert row.credit_account is None
        assert row.has_accounts


class TestClassifier:
    """Tests for keyword-based account classification."""

    @pytest.mark.parametrize(
        "name,bucket",
        [
            ("Cash", AccountBucket.ASSETS),
            ("HDFC Bank", AccountBucket.ASSETS),
            ("Sales", AccountBucket.INCOME),
            ("Rent", AccountBucket.EXPENSES),
            ("Sundry Creditors", AccountBucket.LIABILITIES),
            ("Capital", AccountBucket.EQUITY),
            ("Suspense", AccountBucket.UNCATEGORIZED),
            ("", AccountBucket.UNCATEGORIZED),
        ],
    )
    def test_default_rules(self, name, bucket):
        assert classify_account(name) is bucket

    def test_income_wins_over_assets(self):
        """Interest earned on a bank account is income, not an asset."""
        assert classify_account("Bank Interest Income") is AccountBucket.INCOME

    def test_case_and_whitespace_insensitive(self):
        assert classify_account("  SALES REVENUE  ") is AccountBucket.INCOME

    def test_custom_rule_set(self):
        rules = RuleSet.from_mapping({"income": ["fees"], "assets": ["vault"]})

        assert classify_account("Consulting Fees", rules) is AccountBucket.INCOME
        assert classify_account("Vault", rules) is AccountBucket.ASSETS
        assert classify_account("Cash", rules) is AccountBucket.UNCATEGORIZED

    def test_deterministic(self):
        names = ["Cash", "Loan from bank", "Misc", "Output GST"]
        first = [classify_account(n) for n in names]
        second = [classify_account(n) for n in names]

        assert first == second
        assert all(isinstance(b, AccountBucket) for b in first)


class TestTrialBalance:
    """Tests for the trial balance engine."""

    def test_scenario(self, sample_rows):
        balances = compute_trial_balance(sample_rows)

        assert [b.account for b in balances] == ["Cash", "Rent", "Sales"]
        assert _by_account(balances) == {
            "Cash": (Decimal("1000"), Decimal("400")),
            "Rent": (Decimal("400"), Decimal("0")),
            "Sales": (Decimal("0"), Decimal("1000")),
        }

    def test_totals_match_row_sums(self, balanced_rows):
        balances = compute_trial_balance(balanced_rows)
        expected = sum(Decimal(r["amount"]) for r in balanced_rows)

        assert total_debits(balances) == expected
        assert total_credits(balances) == expected

    def test_case_insensitive_keys_keep_first_spelling(self):
        rows = [
            {"debit_account": "Cash", "credit_account": "Sales", "amount": 10},
            {"debit_account": " cash", "credit_account": "SALES", "amount": 5},
        ]

        assert _by_account(compute_trial_balance(rows)) == {
            "Cash": (Decimal("15"), Decimal("0")),
            "Sales": (Decimal("0"), Decimal("15")),
        }

    def test_blank_account_goes_to_unspecified(self):
        rows = [{"debit_account": "   ", "credit_account": "Sales", "amount": 10}]

        balances = _by_account(compute_trial_balance(rows))

        assert balances[UNSPECIFIED_ACCOUNT] == (Decimal("10"), Decimal("0"))

    def test_rows_without_accounts_are_skipped(self):
        rows = [{"amount": 50}, {"debit_account": "Cash", "credit_account": "Sales", "amount": 1}]

        assert len(compute_trial_balance(rows)) == 2

    def test_same_account_row_is_dropped(self):
        rows = [
            {"id": 7, "debit_account": "Cash", "credit_account": "CASH", "amount": 90},
            {"debit_account": "Cash", "credit_account": "Sales", "amount": 5},
        ]

        assert _by_account(compute_trial_balance(rows)) == {
            "Cash": (Decimal("5"), Decimal("0")),
            "Sales": (Decimal("0"), Decimal("5")),
        }

    def test_dirty_amounts_count_as_zero(self):
        rows = [
            {"debit_account": "Cash", "credit_account": "Sales", "amount": "n/a"},
            {"debit_account": "Cash", "credit_account": "Sales", "amount": None},
        ]

        assert _by_account(compute_trial_balance(rows))["Cash"] == (Decimal("0"), Decimal("0"))

    def test_non_list_input_yields_nothing(self):
        assert compute_trial_balance(None) == []
        assert compute_trial_balance({"debit_account": "Cash"}) == []


class TestProfitAndLoss:
    """Tests for the profit and loss view."""

    def test_scenario(self, sample_rows):
        pl = compute_profit_and_loss(sample_rows)

        assert [(l.account, l.amount) for l in pl.income] == [("Sales", Decimal("1000"))]
        assert [(l.account, l.amount) for l in pl.expenses] == [("Rent", Decimal("400"))]
        assert pl.net_profit == Decimal("600")

    def test_loss_keeps_sign(self):
        rows = [
            {"debit_account": "Cash", "credit_account": "Sales", "amount": 100},
            {"debit_account": "Rent", "credit_account": "Cash", "amount": 250},
        ]

        assert compute_profit_and_loss(rows).net_profit == Decimal("-150")

    def test_zero_balance_accounts_omitted(self):
        rows = [
            {"debit_account": "Cash", "credit_account": "Sales", "amount": 100},
            {"debit_account": "Sales", "credit_account": "Cash", "amount": 100},
        ]

        pl = compute_profit_and_loss(rows)

        assert pl.income == []
        assert pl.net_profit == 0

    def test_to_dict(self, sample_rows):
        data = compute_profit_and_loss(sample_rows).to_dict()

        assert data["totalIncome"] == Decimal("1000")
        assert data["totalExpenses"] == Decimal("400")
        assert data["netProfit"] == Decimal("600")

    def test_classification_loses_no_totals(self, sample_rows):
        """Rows behind P&L lines reproduce the same per-account totals."""
        pl = compute_profit_and_loss(sample_rows)
        pl_accounts = {l.account for l in pl.income + pl.expenses}
        pl_rows = [
            r for r in sample_rows
            if r["debit_account"] in pl_accounts or r["credit_account"] in pl_accounts
        ]

        again = _by_account(compute_trial_balance(pl_rows))
        original = _by_account(compute_trial_balance(sample_rows))

        for account in pl_accounts:
            assert again[account] == original[account]


class TestBalanceSheet:
    """Tests for the balance sheet view."""

    def test_balanced_ledger_balances(self, balanced_rows):
        sheet = compute_balance_sheet(balanced_rows)
        totals = sheet.totals

        assert totals.assets == Decimal("10600.00")
        assert totals.liabilities_and_equity == Decimal("10600.00")
        assert totals.is_balanced

    def test_net_profit_injected_into_equity(self, balanced_rows):
        sheet = compute_balance_sheet(balanced_rows)

        assert sheet.equity[-1].account == CURRENT_YEAR_PROFIT
        assert sheet.equity[-1].amount == Decimal("300.00")

    def test_net_loss_reduces_equity(self):
        rows = [
            {"debit_account": "Cash", "credit_account": "Capital", "amount": 1000},
            {"debit_account": "Rent", "credit_account": "Cash", "amount": 200},
        ]

        sheet = compute_balance_sheet(rows)

        assert sheet.equity[-1].account == CURRENT_YEAR_LOSS
        assert sheet.equity[-1].amount == Decimal("-200")
        assert sheet.totals.assets == Decimal("800")
        assert sheet.totals.liabilities_and_equity == Decimal("800")
        assert sheet.totals.is_balanced

    def test_split_and_merged_views(self, balanced_rows):
        sheet = compute_balance_sheet(balanced_rows)

        assert [l.account for l in sheet.liabilities] == ["Creditors"]
        assert [l.account for l in sheet.liabilities_and_equity] == [
            "Creditors",
            "Capital",
            CURRENT_YEAR_PROFIT,
        ]
        data = sheet.to_dict()
        assert data["totals"]["liabilitiesAndEquity"] == Decimal("10600.00")

    def test_partial_ledger_is_flagged_not_rejected(self):
        rows = [{"debit_account": "Cash", "credit_account": "Suspense", "amount": 75}]

        sheet = compute_balance_sheet(rows)

        assert not sheet.totals.is_balanced
        assert sheet.totals.difference == Decimal("75")

    def test_reuses_given_profit_and_loss(self, balanced_rows):
        pl = compute_profit_and_loss(balanced_rows)

        sheet = compute_balance_sheet(balanced_rows, pl=pl)

        assert sheet.equity[-1].amount == pl.net_profit
