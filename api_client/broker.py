"""HTTP client for the remote broker: quotes, cash balance and trade execution."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from models.trade import BrokerTradeRequest, BrokerTradeResponse
from trading.errors import BrokerError

logger = logging.getLogger(__name__)


class BrokerClient:
    """Thin wrapper around the broker's REST API.

    Every failure (transport, HTTP status, malformed JSON) surfaces as
    ``BrokerError`` so callers only need to handle one exception type.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def get_price(self, ticker: str) -> Any:
        """Return the raw ``price`` field of ``GET /price/{ticker}``."""
        data = self._request("GET", f"/price/{ticker}")
        if not isinstance(data, dict):
            raise BrokerError(f"Unexpected price payload for {ticker}: {data!r}")
        return data.get("price")

    def get_balance(self) -> Any:
        """Return the raw ``cash_balance`` field of ``GET /balance``."""
        data = self._request("GET", "/balance")
        if not isinstance(data, dict):
            raise BrokerError(f"Unexpected balance payload: {data!r}")
        return data.get("cash_balance")

    def execute_trade(self, request: BrokerTradeRequest) -> BrokerTradeResponse:
        """Place *request* with the broker and return its confirmation."""
        data = self._request("POST", "/trade", json=request.model_dump())
        try:
            return BrokerTradeResponse.model_validate(data)
        except ValidationError as exc:
            raise BrokerError(f"Unexpected trade confirmation: {exc}") from exc

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise BrokerError(
                f"Broker API error: {exc.response.status_code} {exc.response.reason_phrase} ({method} {path})"
            ) from exc
        except httpx.HTTPError as exc:
            raise BrokerError(f"Broker request failed ({method} {path}): {exc}") from exc
        except ValueError as exc:
            raise BrokerError(f"Broker returned invalid JSON ({method} {path})") from exc
