"""Keyword-based account classification into statement buckets."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from lekka_core.ledger.models import normalize_account_name


class AccountBucket(str, Enum):
    """Statement bucket an account rolls up into."""

    ASSETS = "assets"
    LIABILITIES = "liabilities"
    EQUITY = "equity"
    INCOME = "income"
    EXPENSES = "expenses"
    UNCATEGORIZED = "uncategorized"


# Priority order, first match wins. "Bank Interest Income" is income, not an
# asset, because income is tried before assets.
RULE_BUCKETS: tuple[str, ...] = ("income", "expenses", "assets", "liabilities", "equity")


@dataclass(frozen=True)
class RuleSet:
    """Five keyword lists, one per bucket, matched as lowercase substrings."""

    income: tuple[str, ...] = ()
    expenses: tuple[str, ...] = ()
    assets: tuple[str, ...] = ()
    liabilities: tuple[str, ...] = ()
    equity: tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Iterable[str]]) -> "RuleSet":
        """Build a rule set from a plain ``{bucket: [keywords]}`` mapping."""
        return cls(
            **{
                bucket: tuple(
                    str(keyword).strip().lower()
                    for keyword in mapping.get(bucket, ())
                    if str(keyword).strip()
                )
                for bucket in RULE_BUCKETS
            }
        )

    def keywords_for(self, bucket: str) -> tuple[str, ...]:
        return getattr(self, bucket)


def classify_account(name: Any, rule_set: RuleSet | None = None) -> AccountBucket:
    """Classify an account name. Total: unknown names are ``UNCATEGORIZED``.

    Args:
        name: Account name; trimmed and lowercased before matching.
        rule_set: Keyword rules. Defaults to the configured chart of accounts.
    """
    if rule_set is None:
        from lekka_core.config.chart_loader import get_default_rule_set

        rule_set = get_default_rule_set()

    lowered = normalize_account_name(name).lower()
    for bucket in RULE_BUCKETS:
        if any(keyword in lowered for keyword in rule_set.keywords_for(bucket)):
            return AccountBucket(bucket)
    return AccountBucket.UNCATEGORIZED
