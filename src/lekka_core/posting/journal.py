"""Draft journal helpers: row edits, balance hints and document fields."""

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from lekka_core.errors import ValidationError
from lekka_core.ledger.models import ZERO, coerce_amount

TEXT_EDIT_FIELDS = ("account", "narration", "date")
AMOUNT_EDIT_FIELDS = ("debit", "credit")

BALANCE_TOLERANCE = Decimal("0.005")

_AMOUNT_KEYS = ("amount", "debit", "credit", "dr", "cr", "DR", "CR", "debit_amount", "credit_amount")
_DR_SIDE = re.compile(r"(^|\s)dr(\s|$)", re.IGNORECASE)
_CR_SIDE = re.compile(r"(^|\s)cr(\s|$)", re.IGNORECASE)


@dataclass(frozen=True)
class JournalLine:
    """A single-sided preview journal row."""

    account: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    date: str | None = None
    narration: str = ""

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "JournalLine":
        date = raw.get("date") or raw.get("transaction_date")
        return cls(
            account=str(raw.get("account") or "").strip(),
            debit=coerce_amount(raw.get("debit")),
            credit=coerce_amount(raw.get("credit")),
            date=str(date) if date else None,
            narration=str(raw.get("narration") or ""),
        )


def coerce_edit_patch(patch: Mapping[str, Any]) -> dict[str, Any]:
    """Coerce one row patch: text fields to str, amounts to finite floats.

    Unknown fields are dropped. Non-finite or unparseable amounts become 0.
    """
    out: dict[str, Any] = {}
    for key in TEXT_EDIT_FIELDS:
        if key in patch and patch[key] is not None:
            out[key] = str(patch[key])
    for key in AMOUNT_EDIT_FIELDS:
        if key in patch:
            out[key] = float(coerce_amount(patch[key]))
    return out


def _row_index(value: Any) -> int:
    try:
        index = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid journal row index: {value!r}") from exc
    if index < 0:
        raise ValidationError(f"Invalid journal row index: {value!r}")
    return index


def coerce_edits(edits: Mapping[Any, Any] | Sequence[Mapping[str, Any]]) -> dict[str, dict[str, Any]]:
    """Normalize row edits to ``{"<row index>": patch}``.

    Accepts either a mapping of row index to patch, or a list of patches
    that each carry an ``index`` key.

    Raises:
        ValidationError: On a bad row index, a non-mapping patch, or when
            no row ends up with anything to change.
    """
    pairs: list[tuple[Any, Any]]
    if isinstance(edits, Mapping):
        pairs = list(edits.items())
    elif isinstance(edits, Sequence) and not isinstance(edits, (str, bytes)):
        pairs = []
        for item in edits:
            if not isinstance(item, Mapping):
                raise ValidationError("Each edit must be an object with an index")
            pairs.append((item.get("index"), item))
    else:
        raise ValidationError("Edits must be a mapping or a list of row patches")

    normalized: dict[str, dict[str, Any]] = {}
    for index, patch in pairs:
        if not isinstance(patch, Mapping):
            raise ValidationError(f"Edit for row {index!r} must be an object")
        row = _row_index(index)
        coerced = coerce_edit_patch(patch)
        if coerced:
            normalized.setdefault(str(row), {}).update(coerced)

    if not normalized:
        raise ValidationError("No edits to apply")
    return normalized


def raw_amount_and_side(line: Mapping[str, Any]) -> tuple[Decimal, str]:
    """Amount and DR/CR side of a loosely shaped single-sided line."""
    amount = ZERO
    for key in _AMOUNT_KEYS:
        value = coerce_amount(line.get(key))
        if value > ZERO:
            amount = value
            break

    side_text = str(line.get("side") or "")
    is_debit = any(coerce_amount(line.get(k)) > ZERO for k in ("debit", "dr", "DR"))
    is_credit = any(coerce_amount(line.get(k)) > ZERO for k in ("credit", "cr", "CR"))
    if is_debit or _DR_SIDE.search(side_text):
        return amount, "DR"
    if is_credit or _CR_SIDE.search(side_text):
        return amount, "CR"
    return amount, ""


def journal_imbalance(preview: Mapping[str, Any]) -> Decimal:
    """Approximate |debits - credits| of a preview, for display only.

    Paired ``ledgerView`` rows (debit account -> credit account) balance by
    construction and report zero. The server remains the source of truth.
    """
    ledger_view = preview.get("ledgerView") or preview.get("ledger_view")
    if isinstance(ledger_view, Mapping):
        if isinstance(ledger_view.get("journal"), list) or isinstance(ledger_view.get("lines"), list):
            return ZERO

    journal = preview.get("journal")
    if not isinstance(journal, list):
        return ZERO

    debits = credits = ZERO
    for line in journal:
        if not isinstance(line, Mapping):
            continue
        amount, side = raw_amount_and_side(line)
        if side == "DR":
            debits += amount
        elif side == "CR":
            credits += amount
    return abs(debits - credits)


def pick_doc_fields(doc_type: str | None, document_fields: Any) -> dict[str, Any] | None:
    """Field block for one document type; ``voucher`` aliases ``payment_voucher``."""
    if not doc_type or doc_type == "none" or not isinstance(document_fields, Mapping):
        return None
    fields = document_fields.get(doc_type)
    if not fields and doc_type == "payment_voucher":
        fields = document_fields.get("voucher")
    return dict(fields) if isinstance(fields, Mapping) else None


def is_balanced_preview(preview: Mapping[str, Any]) -> bool:
    """True when the preview's imbalance is below half a paisa."""
    return journal_imbalance(preview) < BALANCE_TOLERANCE
