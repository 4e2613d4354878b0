"""Tests for the bank reconciliation suggestion consumer."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from lekka_core.errors import BusinessError, ValidationError
from lekka_core.reconciliation import (
    BankLine,
    Candidate,
    ReconciliationConsumer,
    ReconciliationSuggestion,
)


@pytest.fixture
def suggestions_payload():
    """Server payload mixing the current and older field spellings."""
    return [
        {
            "bankLineId": "BL-1",
            "bankLine": {"id": "BL-1", "date": "2024-04-03", "description": "NEFT ACME", "amount_cents": 50000},
            "candidates": [
                {"id": 11, "transaction_date": "2024-04-02", "debit_account": "Bank",
                 "credit_account": "Debtors", "amount_cents": 50000, "score": 0.97},
                {"id": 12, "date": "2024-03-30", "debit": "Bank", "credit": "Sales",
                 "amount": 49900, "score": 0.41},
            ],
        },
        {
            "bankLineId": "BL-2",
            "bank_line": {"value_date": "2024-04-04", "narration": "ATM", "amount": 200000},
            "matches": [{"id": 13, "amount": 200000, "score": 0.5}],
        },
    ]


@pytest.fixture
def backend(suggestions_payload):
    backend = MagicMock()
    backend.fetch_reconciliation_suggestions = AsyncMock(return_value=suggestions_payload)
    backend.confirm_match = AsyncMock(return_value={"ok": True})
    return backend


class TestModels:
    """Tests for tolerant suggestion parsing."""

    def test_current_shape(self, suggestions_payload):
        suggestion = ReconciliationSuggestion.from_dict(suggestions_payload[0])

        assert suggestion.bank_line == BankLine(
            id="BL-1", date="2024-04-03", description="NEFT ACME", amount_minor_units=50000
        )
        assert suggestion.candidates[0] == Candidate(
            id=11,
            date="2024-04-02",
            debit_account="Bank",
            credit_account="Debtors",
            amount_minor_units=50000,
            score=0.97,
        )

    def test_short_field_names(self, suggestions_payload):
        candidate = ReconciliationSuggestion.from_dict(suggestions_payload[0]).candidates[1]

        assert candidate.debit_account == "Bank"
        assert candidate.credit_account == "Sales"
        assert candidate.date == "2024-03-30"
        assert candidate.amount_minor_units == 49900

    def test_older_shape(self, suggestions_payload):
        suggestion = ReconciliationSuggestion.from_dict(suggestions_payload[1])

        assert suggestion.bank_line_id == "BL-2"
        assert suggestion.bank_line.description == "ATM"
        assert suggestion.bank_line.date == "2024-04-04"
        assert [c.id for c in suggestion.candidates] == [13]

    def test_to_dict(self, suggestions_payload):
        data = ReconciliationSuggestion.from_dict(suggestions_payload[0]).to_dict()

        assert data["bankLine"]["amountMinorUnits"] == 50000
        assert data["candidates"][1]["creditAccount"] == "Sales"


class TestConsumer:
    """Tests for refresh and match confirmation."""

    def test_requires_bank_account(self, backend):
        with pytest.raises(ValidationError):
            ReconciliationConsumer(backend, "  ")

    def test_default_window(self, backend):
        consumer = ReconciliationConsumer(backend, "BA-1")

        assert consumer.date_from == "1900-01-01"
        assert len(consumer.date_to) == 10

    @pytest.mark.asyncio
    async def test_refresh_keeps_server_order(self, backend):
        consumer = ReconciliationConsumer(backend, "BA-1", "2024-04-01", "2024-04-30")

        suggestions = await consumer.refresh()

        backend.fetch_reconciliation_suggestions.assert_awaited_once_with(
            "BA-1", "2024-04-01", "2024-04-30"
        )
        assert [s.bank_line_id for s in suggestions] == ["BL-1", "BL-2"]
        assert [c.score for c in suggestions[0].candidates] == [0.97, 0.41]

    @pytest.mark.asyncio
    async def test_low_score_first_is_not_resorted(self, backend):
        backend.fetch_reconciliation_suggestions.return_value = [
            {"bankLineId": "BL-9", "candidates": [{"id": 1, "score": 0.1}, {"id": 2, "score": 0.9}]}
        ]
        consumer = ReconciliationConsumer(backend, "BA-1")

        await consumer.refresh()

        assert [c.id for c in consumer.suggestions[0].candidates] == [1, 2]

    @pytest.mark.asyncio
    async def test_select_confirms_and_refetches(self, backend):
        consumer = ReconciliationConsumer(backend, "BA-1")
        await consumer.refresh()

        request = await consumer.select("BL-1", "12")

        backend.confirm_match.assert_awaited_once_with("BL-1", 12)
        assert request.to_dict() == {"bankLineId": "BL-1", "candidateId": 12}
        assert backend.fetch_reconciliation_suggestions.await_count == 2

    @pytest.mark.asyncio
    async def test_select_unknown_candidate(self, backend):
        consumer = ReconciliationConsumer(backend, "BA-1")
        await consumer.refresh()

        with pytest.raises(ValidationError):
            await consumer.select("BL-1", 99)
        with pytest.raises(ValidationError):
            await consumer.select("BL-404", 11)

        backend.confirm_match.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_select_declined(self, backend):
        backend.confirm_match.return_value = {"ok": False, "error": "Already matched"}
        consumer = ReconciliationConsumer(backend, "BA-1")
        await consumer.refresh()

        with pytest.raises(BusinessError, match="Already matched"):
            await consumer.select("BL-1", 11)

        assert backend.fetch_reconciliation_suggestions.await_count == 1
