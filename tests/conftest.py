"""Pytest configuration and fixtures."""

import os
from typing import Any
from unittest.mock import AsyncMock

import pytest

# Set test environment variables before importing settings
os.environ.setdefault("LEKKA_API_URL", "http://localhost:3000/api")
os.environ.setdefault("LEKKA_API_MAX_RETRIES", "0")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from lekka_core.config import get_settings  # noqa: E402
from lekka_core.config.chart_loader import get_default_rule_set  # noqa: E402
from lekka_core.errors import IntegrityError  # noqa: E402


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Drop cached settings and rules so env overrides take effect per test."""
    get_settings.cache_clear()
    get_default_rule_set.cache_clear()
    yield
    get_settings.cache_clear()
    get_default_rule_set.cache_clear()


@pytest.fixture
def mock_httpx_client():
    """Create a mock httpx AsyncClient."""
    client = AsyncMock()
    client.request = AsyncMock()
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def sample_rows() -> list[dict[str, Any]]:
    """Two-row ledger: a cash sale and a rent payment."""
    return [
        {
            "id": 1,
            "transaction_date": "2024-04-01",
            "debit_account": "Cash",
            "credit_account": "Sales",
            "amount": 1000,
            "narration": "Cash sale",
        },
        {
            "id": 2,
            "transaction_date": "2024-04-05",
            "debit_account": "Rent",
            "credit_account": "Cash",
            "amount": 400,
            "narration": "April rent",
        },
    ]


@pytest.fixture
def balanced_rows() -> list[dict[str, Any]]:
    """A complete double-entry ledger where every account is classifiable."""
    return [
        {"id": 1, "transaction_date": "2024-04-01", "debit_account": "Cash",
         "credit_account": "Capital", "amount": "10000.00", "narration": "Owner investment"},
        {"id": 2, "transaction_date": "2024-04-02", "debit_account": "Cash",
         "credit_account": "Sales", "amount": "1000.00", "narration": "Cash sale"},
        {"id": 3, "transaction_date": "2024-04-05", "debit_account": "Rent",
         "credit_account": "Cash", "amount": "400.00", "narration": "April rent"},
        {"id": 4, "transaction_date": "2024-04-09", "debit_account": "Purchases",
         "credit_account": "Creditors", "amount": "300.00", "narration": "Stock on credit"},
        {"id": 5, "transaction_date": "2024-04-12", "debit_account": "HDFC Bank",
         "credit_account": "Cash", "amount": "2500.00", "narration": "Cash deposited"},
    ]


@pytest.fixture
def preview_response() -> dict[str, Any]:
    """Orchestrator preview response with a confirmable snapshot."""
    return {
        "status": "preview",
        "previewId": "pv_123",
        "hash": "a" * 64,
        "journal": [
            {"account": "Rent", "debit": 5000, "credit": 0, "date": "2024-04-05"},
            {"account": "Cash", "debit": 0, "credit": 5000, "date": "2024-04-05"},
        ],
        "ledgerView": "Rent Dr 5000 / Cash Cr 5000",
        "explanation": "Rent paid in cash.",
        "newAccounts": [],
        "warnings": [],
        "docType": "none",
    }


class FakeBackend:
    """In-memory posting backend that hands out numbered previews."""

    def __init__(self):
        self.preview_payloads: list[dict[str, Any]] = []
        self.confirm_payloads: list[dict[str, Any]] = []
        self.legacy_payloads: list[dict[str, Any]] = []
        self._count = 0
        self._issued: dict[str, str] = {}
        self._used: set[str] = set()

    async def preview(self, payload: dict[str, Any]) -> dict[str, Any]:
        self.preview_payloads.append(payload)
        self._count += 1
        preview_id = f"pv_{self._count}"
        digest = f"{self._count:064x}"
        self._issued[preview_id] = digest
        return {
            "status": "preview",
            "previewId": preview_id,
            "hash": digest,
            "journal": [
                {"account": "Rent", "debit": 100 * self._count, "credit": 0},
                {"account": "Cash", "debit": 0, "credit": 100 * self._count},
            ],
        }

    async def confirm(self, payload: dict[str, Any]) -> dict[str, Any]:
        self.confirm_payloads.append(payload)
        preview_id = payload["previewId"]
        if preview_id in self._used:
            raise IntegrityError("Preview already used", status_code=410)
        if self._issued.get(preview_id) != payload["hash"]:
            raise IntegrityError("Preview content changed; re-preview required", status_code=409)
        self._used.add(preview_id)
        return {"success": True, "document": {"id": f"doc-{preview_id}"}}

    async def confirm_legacy(self, payload: dict[str, Any]) -> dict[str, Any]:
        self.legacy_payloads.append(payload)
        return {"success": True}


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()
