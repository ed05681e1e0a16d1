from __future__ import annotations

from decimal import Decimal
from typing import Any

import requests
from pydantic import ValidationError
from requests import Response

from domain.balance import AccountBalance
from domain.errors import BalanceSourceError

# API docs: https://t212public-api-docs.redoc.ly/
CASH_PATH = "/api/v0/equity/account/cash"


class Trading212APIError(BalanceSourceError):
    pass


class Trading212Client:
    """Reads the cash balance of the account the API key belongs to."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://live.trading212.com",
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

    def get_account_balance(self) -> AccountBalance | None:
        """Return the account cash balance, or None when the account reports none.

        An empty body or a payload with a missing or null ``total`` is "no balance".
        Transport and HTTP failures, and a ``total`` that is not a number, raise
        ``Trading212APIError`` instead.
        """
        payload = self._request("GET", CASH_PATH)
        if not payload or payload.get("total") is None:
            return None

        try:
            return AccountBalance.model_validate(payload)
        except ValidationError as exc:
            raise Trading212APIError("Trading 212 returned a malformed cash payload", payload=payload) from exc

    def _request(self, method: str, path: str) -> dict[str, Any] | None:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(
                method,
                url,
                timeout=self.timeout,
                headers={"Authorization": self.api_key},
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            resp = exc.response
            status_code = getattr(resp, "status_code", None)
            message, payload = self._extract_error(resp)
            raise Trading212APIError(message, status_code=status_code, payload=payload) from exc
        except requests.RequestException as exc:
            status_code = getattr(getattr(exc, "response", None), "status_code", None)
            raise Trading212APIError("Trading 212 request failed", status_code=status_code) from exc

        if not response.text.strip():
            return None

        try:
            payload_raw = response.json(parse_float=Decimal)
        except ValueError as exc:
            raise Trading212APIError("Trading 212 returned invalid JSON", payload=response.text) from exc

        if payload_raw is None:
            return None
        if not isinstance(payload_raw, dict):
            raise Trading212APIError("Trading 212 returned unexpected payload type", payload=payload_raw)

        return payload_raw

    @staticmethod
    def _extract_error(response: Response | None) -> tuple[str, Any | None]:
        message = "Trading 212 request failed"
        payload: Any | None = None
        if response is None:
            return message, payload

        try:
            payload = response.json()
            if isinstance(payload, dict):
                message = payload.get("message") or payload.get("code") or message
        except ValueError:
            payload = response.text
        return message, payload


__all__ = ["CASH_PATH", "Trading212APIError", "Trading212Client"]
