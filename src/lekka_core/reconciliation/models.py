"""Bank reconciliation suggestion types.

The server ranks ledger candidates for each imported bank line. These
types only read that payload; ``score`` is carried through untouched.
Field names vary between server versions, so each ``from_dict`` accepts
the snake_case and short spellings seen in the wild.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP
from typing import Any

from lekka_core.ledger.models import coerce_amount


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def _minor_units(raw: Mapping[str, Any]) -> int:
    # ``amount`` is sent in minor units too, same as ``amount_cents``.
    value = coerce_amount(_first(raw, "amountMinorUnits", "amount_cents", "amount"))
    return int(value.quantize(1, rounding=ROUND_HALF_UP))


def _text(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True)
class BankLine:
    """One imported bank statement line."""

    id: Any
    date: str = ""
    description: str = ""
    amount_minor_units: int = 0

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], fallback_id: Any = None) -> "BankLine":
        return cls(
            id=raw.get("id") if raw.get("id") is not None else fallback_id,
            date=_text(_first(raw, "date", "value_date", "transaction_date"))[:10],
            description=_text(_first(raw, "description", "narration")),
            amount_minor_units=_minor_units(raw),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "description": self.description,
            "amountMinorUnits": self.amount_minor_units,
        }


@dataclass(frozen=True)
class Candidate:
    """A ledger entry the server proposes as a match for a bank line."""

    id: Any
    date: str = ""
    debit_account: str = ""
    credit_account: str = ""
    amount_minor_units: int = 0
    score: Any = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Candidate":
        return cls(
            id=_first(raw, "id", "ledgerEntryId", "ledger_entry_id"),
            date=_text(_first(raw, "date", "transaction_date"))[:10],
            debit_account=_text(_first(raw, "debitAccount", "debit_account", "debit")),
            credit_account=_text(_first(raw, "creditAccount", "credit_account", "credit")),
            amount_minor_units=_minor_units(raw),
            score=raw.get("score"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "debitAccount": self.debit_account,
            "creditAccount": self.credit_account,
            "amountMinorUnits": self.amount_minor_units,
            "score": self.score,
        }


@dataclass(frozen=True)
class ReconciliationSuggestion:
    """A bank line and its candidates, in the server's ranking order."""

    bank_line: BankLine
    candidates: tuple[Candidate, ...] = field(default_factory=tuple)

    @property
    def bank_line_id(self) -> Any:
        return self.bank_line.id

    def candidate(self, candidate_id: Any) -> Candidate | None:
        for candidate in self.candidates:
            if str(candidate.id) == str(candidate_id):
                return candidate
        return None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ReconciliationSuggestion":
        line = raw.get("bankLine") or raw.get("bank_line") or {}
        if not isinstance(line, Mapping):
            line = {}
        candidates = raw.get("candidates")
        if not isinstance(candidates, list):
            candidates = raw.get("matches") if isinstance(raw.get("matches"), list) else []
        return cls(
            bank_line=BankLine.from_dict(line, fallback_id=raw.get("bankLineId")),
            candidates=tuple(
                Candidate.from_dict(item) for item in candidates if isinstance(item, Mapping)
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "bankLine": self.bank_line.to_dict(),
            "candidates": [candidate.to_dict() for candidate in self.candidates],
        }


@dataclass(frozen=True)
class MatchRequest:
    """The user's pick: pair this bank line with this ledger entry."""

    bank_line_id: Any
    candidate_id: Any

    def to_dict(self) -> dict[str, Any]:
        return {"bankLineId": self.bank_line_id, "candidateId": self.candidate_id}
