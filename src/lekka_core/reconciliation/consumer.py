"""Consume server-ranked reconciliation suggestions and confirm matches."""

from datetime import date
from typing import Any, Protocol

import structlog

from lekka_core.config import get_settings
from lekka_core.errors import BusinessError, ValidationError
from lekka_core.reconciliation.models import MatchRequest, ReconciliationSuggestion

logger = structlog.get_logger(__name__)


class ReconciliationBackend(Protocol):
    async def fetch_reconciliation_suggestions(
        self, bank_account_id: str, date_from: str | None = None, date_to: str | None = None
    ) -> list[dict[str, Any]]: ...

    async def confirm_match(self, bank_line_id: Any, ledger_entry_id: Any) -> dict[str, Any]: ...


class ReconciliationConsumer:
    """Holds the suggestions for one bank account and date window.

    Suggestions keep the order the server sent them in. After a confirmed
    match the list is re-fetched instead of pruned locally, because one
    match can change the candidates offered for other lines.
    """

    def __init__(
        self,
        backend: ReconciliationBackend,
        bank_account_id: str,
        date_from: str | None = None,
        date_to: str | None = None,
    ):
        if not bank_account_id or not str(bank_account_id).strip():
            raise ValidationError("Provide a bank account id")
        self._backend = backend
        self.bank_account_id = str(bank_account_id).strip()
        self.date_from = date_from or get_settings().reco_date_from
        self.date_to = date_to or date.today().isoformat()
        self._suggestions: tuple[ReconciliationSuggestion, ...] = ()

    @property
    def suggestions(self) -> tuple[ReconciliationSuggestion, ...]:
        return self._suggestions

    def suggestion_for(self, bank_line_id: Any) -> ReconciliationSuggestion | None:
        for suggestion in self._suggestions:
            if str(suggestion.bank_line_id) == str(bank_line_id):
                return suggestion
        return None

    async def refresh(
        self, date_from: str | None = None, date_to: str | None = None
    ) -> tuple[ReconciliationSuggestion, ...]:
        """Fetch suggestions for the window, optionally moving it first."""
        if date_from:
            self.date_from = date_from
        if date_to:
            self.date_to = date_to

        items = await self._backend.fetch_reconciliation_suggestions(
            self.bank_account_id, self.date_from, self.date_to
        )
        self._suggestions = tuple(
            ReconciliationSuggestion.from_dict(item) for item in items if isinstance(item, dict)
        )
        logger.info(
            "reconciliation_suggestions_loaded",
            bank_account_id=self.bank_account_id,
            count=len(self._suggestions),
        )
        return self._suggestions

    async def select(self, bank_line_id: Any, candidate_id: Any) -> MatchRequest:
        """Confirm the user's chosen candidate for a bank line, then refresh.

        Raises:
            ValidationError: The bank line or candidate is not in the
                current suggestions.
            BusinessError: The server declined the match.
        """
        suggestion = self.suggestion_for(bank_line_id)
        if suggestion is None:
            raise ValidationError(f"Unknown bank line: {bank_line_id}")
        candidate = suggestion.candidate(candidate_id)
        if candidate is None:
            raise ValidationError(
                f"Candidate {candidate_id} is not offered for bank line {bank_line_id}"
            )

        request = MatchRequest(bank_line_id=suggestion.bank_line_id, candidate_id=candidate.id)
        result = await self._backend.confirm_match(request.bank_line_id, request.candidate_id)
        if not result.get("ok"):
            message = result.get("error") or "Match failed"
            logger.warning("reconciliation_match_failed", **request.to_dict(), error=message)
            raise BusinessError(str(message), details=result)

        logger.info("reconciliation_match_confirmed", **request.to_dict())
        await self.refresh()
        return request
