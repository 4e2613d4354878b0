"""Utilities for loading chart-of-accounts keyword rules from YAML files."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from lekka_core.config.settings import get_settings
from lekka_core.ledger.classifier import RULE_BUCKETS, RuleSet

DEFAULT_CHART_PATH = Path(__file__).resolve().parent / "chart_of_accounts.yaml"


def _normalize_keywords(path: Path, bucket: str, value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValueError(f"{path.name}: {bucket} must be a list of keywords")

    keywords: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"{path.name}: invalid keyword in {bucket}: {item!r}")
        keyword = item.strip().lower()
        if keyword:
            keywords.append(keyword)
    return tuple(keywords)


def load_rule_set(path: str | Path) -> RuleSet:
    """Load a classification rule set from a YAML file.

    The file is a mapping of bucket name to a list of lowercase substrings,
    for example ``income: [sales, revenue]``. Buckets left out of the file
    match nothing.

    Raises:
        ValueError: If the file is not a mapping, names an unknown bucket,
            or holds something other than a list of strings.
    """
    path = Path(path)
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path.name}: chart of accounts must be a mapping")

    unknown = sorted(set(data) - set(RULE_BUCKETS))
    if unknown:
        raise ValueError(f"{path.name}: unknown buckets {', '.join(map(str, unknown))}")

    return RuleSet(
        **{bucket: _normalize_keywords(path, bucket, data.get(bucket)) for bucket in RULE_BUCKETS}
    )


@lru_cache
def get_default_rule_set() -> RuleSet:
    """Return the configured rule set, falling back to the bundled chart."""
    configured = get_settings().chart_of_accounts
    return load_rule_set(configured or DEFAULT_CHART_PATH)
