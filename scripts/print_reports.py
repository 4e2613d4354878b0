#!/usr/bin/env python3
"""Print trial balance, profit & loss and balance sheet for a ledger.

Rows come either from the Lekka API (by session id) or from a JSON file
holding a list of ledger rows.

Usage:
    python scripts/print_reports.py --session S-1700000000000
    python scripts/print_reports.py --file ledger.json --from 2024-04-01 --to 2025-03-31
"""

import argparse
import asyncio
import json
import sys
from decimal import Decimal
from pathlib import Path
from typing import Any

from lekka_core.api import LekkaAPIClient
from lekka_core.config import configure_logging
from lekka_core.config.chart_loader import load_rule_set
from lekka_core.errors import LekkaError
from lekka_core.ledger import (
    compute_balance_sheet,
    compute_profit_and_loss,
    compute_trial_balance,
    filter_rows_by_period,
    trial_balance_totals,
)


def _money(value: Decimal) -> str:
    return f"{value:,.2f}"


def print_trial_balance(rows: list[Any]) -> None:
    balances = compute_trial_balance(rows)
    totals = trial_balance_totals(balances)

    print("=" * 60)
    print("TRIAL BALANCE")
    print("=" * 60)
    print(f"  {'Account':<32}{'Debit':>13}{'Credit':>13}")
    print("-" * 60)
    for balance in balances:
        print(
            f"  {balance.account:<32}"
            f"{_money(balance.debit_total):>13}{_money(balance.credit_total):>13}"
        )
    print("-" * 60)
    print(f"  {'Total':<32}{_money(totals.debit):>13}{_money(totals.credit):>13}")
    if not totals.is_balanced:
        print("  ⚠ Debits and credits do not agree")


def print_statements(rows: list[Any], rule_set: Any = None) -> None:
    pl = compute_profit_and_loss(rows, rule_set)
    sheet = compute_balance_sheet(rows, rule_set, pl=pl)

    print("\n" + "=" * 60)
    print("PROFIT & LOSS")
    print("=" * 60)
    for label, lines, total in (
        ("Income", pl.income, pl.total_income),
        ("Expenses", pl.expenses, pl.total_expenses),
    ):
        print(f"  {label}")
        for line in lines:
            print(f"    {line.account:<40}{_money(line.amount):>14}")
        print(f"    {'Total ' + label:<40}{_money(total):>14}")
    result = "Net Profit" if pl.net_profit >= 0 else "Net Loss"
    print(f"  {result:<42}{_money(abs(pl.net_profit)):>14}")

    print("\n" + "=" * 60)
    print("BALANCE SHEET")
    print("=" * 60)
    for label, lines in (
        ("Assets", sheet.assets),
        ("Liabilities", sheet.liabilities),
        ("Equity", sheet.equity),
    ):
        print(f"  {label}")
        for line in lines:
            print(f"    {line.account:<40}{_money(line.amount):>14}")
    totals = sheet.totals
    print("-" * 60)
    print(f"  {'Total Assets':<42}{_money(totals.assets):>14}")
    print(f"  {'Total Liabilities & Equity':<42}{_money(totals.liabilities_and_equity):>14}")
    if not totals.is_balanced:
        print(f"  ⚠ Out of balance by {_money(totals.difference)}")


async def fetch_rows(session_id: str, base_url: str | None) -> list[dict[str, Any]]:
    async with LekkaAPIClient(base_url=base_url) as client:
        return await client.fetch_ledger_rows(session_id)


def main() -> None:
    parser = argparse.ArgumentParser(description="Print financial statements for a Lekka ledger")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--session", type=str, help="Session id to fetch ledger rows for")
    source.add_argument("--file", type=Path, help="JSON file containing a list of ledger rows")
    parser.add_argument("--api-url", type=str, help="Override LEKKA_API_URL")
    parser.add_argument("--chart", type=Path, help="Chart-of-accounts YAML file")
    parser.add_argument("--from", dest="date_from", type=str, help="Start date (YYYY-MM-DD)")
    parser.add_argument("--to", dest="date_to", type=str, help="End date (YYYY-MM-DD)")
    args = parser.parse_args()

    configure_logging()

    try:
        if args.file:
            rows = json.loads(args.file.read_text())
            if isinstance(rows, dict):
                rows = rows.get("entries") or rows.get("rows") or []
        else:
            rows = asyncio.run(fetch_rows(args.session, args.api_url))
        rule_set = load_rule_set(args.chart) if args.chart else None

        if args.date_from or args.date_to:
            rows = filter_rows_by_period(rows, args.date_from, args.date_to)

        print_trial_balance(rows)
        print_statements(rows, rule_set)
    except (LekkaError, OSError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
