from __future__ import annotations

from typing import Any

import requests
from pydantic import ValidationError
from requests import Response

from domain.errors import LedgerClientError
from domain.ledger import LedgerAccount, NewLedgerTransaction


# API docs: https://api.ynab.com/v1
class YnabAPIError(LedgerClientError):
    pass


class YnabClient:
    """The slice of the YNAB API the sync needs: account transactions, account details, new transactions."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://api.ynab.com/v1",
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        if not api_key:
            msg = "api_key must be provided"
            raise ValueError(msg)

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def get_transactions_by_account(self, budget_id: str, account_id: str) -> list[dict[str, Any]]:
        """Raw transaction records for the account, in the order YNAB lists them (oldest first)."""
        data = self._request("GET", f"/budgets/{budget_id}/accounts/{account_id}/transactions")
        transactions = data.get("transactions")
        if not isinstance(transactions, list):
            raise YnabAPIError("YNAB transactions payload missing 'transactions' list", payload=data)
        return transactions

    def get_account(self, budget_id: str, account_id: str) -> LedgerAccount:
        data = self._request("GET", f"/budgets/{budget_id}/accounts/{account_id}")
        try:
            return LedgerAccount.model_validate(data.get("account"))
        except ValidationError as exc:
            raise YnabAPIError("YNAB account payload is malformed", payload=data) from exc

    def create_transaction(self, budget_id: str, transaction: NewLedgerTransaction) -> str:
        data = self._request(
            "POST",
            f"/budgets/{budget_id}/transactions",
            json={"transaction": transaction.to_payload()},
        )
        created = data.get("transaction")
        if isinstance(created, dict) and created.get("id"):
            return str(created["id"])
        transaction_ids = data.get("transaction_ids")
        if isinstance(transaction_ids, list) and transaction_ids:
            return str(transaction_ids[0])
        raise YnabAPIError("YNAB did not return the created transaction id", payload=data)

    def _request(self, method: str, path: str, *, json: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(
                method,
                url,
                json=json,
                timeout=self.timeout,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            resp = exc.response
            status_code = getattr(resp, "status_code", None)
            message, payload = self._extract_error(resp)
            raise YnabAPIError(message, status_code=status_code, payload=payload) from exc
        except requests.RequestException as exc:
            status_code = getattr(getattr(exc, "response", None), "status_code", None)
            raise YnabAPIError("YNAB request failed", status_code=status_code) from exc

        try:
            payload_raw = response.json()
        except ValueError as exc:
            raise YnabAPIError("YNAB returned invalid JSON", payload=response.text) from exc

        if not isinstance(payload_raw, dict):
            raise YnabAPIError("YNAB returned unexpected payload type", payload=payload_raw)

        error = payload_raw.get("error")
        if isinstance(error, dict):
            raise YnabAPIError(self._error_message(error), status_code=response.status_code, payload=payload_raw)

        data = payload_raw.get("data")
        if not isinstance(data, dict):
            raise YnabAPIError("YNAB payload missing 'data'", payload=payload_raw)
        return data

    @staticmethod
    def _error_message(error: dict[str, Any]) -> str:
        return error.get("detail") or error.get("name") or "YNAB request failed"

    @classmethod
    def _extract_error(cls, response: Response | None) -> tuple[str, Any | None]:
        message = "YNAB request failed"
        payload: Any | None = None
        if response is None:
            return message, payload

        try:
            payload = response.json()
            if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
                message = cls._error_message(payload["error"])
        except ValueError:
            payload = response.text
        return message, payload


__all__ = ["YnabAPIError", "YnabClient"]
