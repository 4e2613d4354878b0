"""Lekka API client: ledger reads, preview/confirm posting and bank reconciliation."""

import asyncio
from typing import Any

import httpx
import structlog

from lekka_core.config import get_settings
from lekka_core.errors import IntegrityError, LekkaAPIError, NetworkError

logger = structlog.get_logger(__name__)

# Conflict statuses from confirm: hash mismatch (409) or a preview that
# expired or was already used (410).
INTEGRITY_STATUS_CODES = (409, 410)


def _error_message(status_code: int, details: Any) -> str:
    if isinstance(details, dict):
        error = details.get("error") or details.get("message")
        if isinstance(error, str) and error:
            return error
    return f"API error: {status_code}"


class LekkaAPIClient:
    """Async client for the Lekka bookkeeping API.

    The client returns raw JSON. Shaping it into timeline entries is the
    normalizer's job.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.api_timeout
        self._max_retries = max_retries if max_retries is not None else settings.api_max_retries
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._timeout),
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "LekkaAPIClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # === Generic Request Methods ===

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        retry_count: int = 0,
    ) -> Any:
        """Send a request, resending the identical payload on transport errors."""
        client = await self._get_client()

        try:
            response = await client.request(
                method=method,
                url=path,
                params=params,
                json=json,
            )
        except httpx.RequestError as e:
            if retry_count < self._max_retries:
                await asyncio.sleep(2**retry_count)
                return await self._request(method, path, params, json, retry_count + 1)
            logger.warning("request_failed", method=method, path=path, error=str(e))
            raise NetworkError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            try:
                error_detail = response.json() if response.content else {}
            except ValueError:
                error_detail = {
                    "raw": response.text[:500] if response.text else "empty response"
                }
            message = _error_message(response.status_code, error_detail)
            logger.warning(
                "api_error",
                method=method,
                path=path,
                status_code=response.status_code,
                error=message,
            )
            error_cls = (
                IntegrityError
                if response.status_code in INTEGRITY_STATUS_CODES
                else LekkaAPIError
            )
            raise error_cls(message, status_code=response.status_code, details=error_detail)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            # Left for the normalizer to record as a raw timeline entry.
            return {"raw": response.text[:500]}

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Make GET request."""
        return await self._request("GET", path, params=params)

    async def post(
        self,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make POST request."""
        return await self._request("POST", path, params=params, json=json)

    # === Ledger Endpoints ===

    @staticmethod
    def _extract_items(result: Any, *keys: str) -> list[dict[str, Any]]:
        """Return the list of items from a bare list or an enveloped response."""
        if isinstance(result, list):
            return result
        if isinstance(result, dict):
            for key in keys:
                items = result.get(key)
                if isinstance(items, list):
                    return items
        return []

    async def fetch_ledger_rows(self, session_id: str) -> list[dict[str, Any]]:
        """Fetch the raw ledger rows for a session."""
        result = await self.post("/getLedgerView", json={"sessionId": session_id})
        return self._extract_items(result, "entries", "rows")

    # === Posting Endpoints ===

    async def preview(self, payload: dict[str, Any]) -> Any:
        """Ask the orchestrator to draft (or re-draft) a journal preview."""
        return await self.post("/orchestratePrompt", json=payload)

    async def confirm(self, payload: dict[str, Any]) -> Any:
        """Post a previewed draft by previewId and hash."""
        return await self.post("/confirmAndSaveEntry", json=payload)

    async def confirm_legacy(self, payload: dict[str, Any]) -> Any:
        """Post a journal directly, without a preview snapshot."""
        return await self.post("/confirmAndSaveEntry", json=payload)

    # === Bank Reconciliation Endpoints ===

    async def fetch_reconciliation_suggestions(
        self,
        bank_account_id: str,
        date_from: str | None = None,
        date_to: str | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch ranked ledger candidates for each unmatched bank line."""
        params: dict[str, Any] = {"bankAccountId": bank_account_id}
        if date_from:
            params["dateFrom"] = date_from
        if date_to:
            params["dateTo"] = date_to
        result = await self.get("/bankreco/suggestions", params=params)
        if isinstance(result, dict) and result.get("ok") is False:
            raise LekkaAPIError(_error_message(200, result), details=result)
        return self._extract_items(result, "suggestions")

    async def confirm_match(self, bank_line_id: Any, ledger_entry_id: Any) -> dict[str, Any]:
        """Pair a bank line with a ledger entry."""
        result = await self.post(
            "/bankreco/match",
            json={"bankLineId": bank_line_id, "ledgerEntryId": ledger_entry_id},
        )
        return result if isinstance(result, dict) else {}
