"""Trade request and outcome models: TradeRequest, TradeResult, DeclineReason."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from models.trade import Trade, TradeSide


class TradeRequest(BaseModel):
    """Input schema for the ``buy`` and ``sell`` tools.

    Deliberately loose: positivity and integrality are checked by the
    executor so that a bad request becomes a declined result the agent can
    read, not a tool-call crash.
    """

    ticker: str = Field(description="Exchange symbol, e.g. 'AAPL' or 'BTC'.")
    shares: float = Field(
        description="Number of shares (whole shares for stocks, fractional allowed for crypto)."
    )


class DeclineReason(str, Enum):
    """Why a trade was not executed. None of these cause side effects."""

    INVALID_REQUEST = "invalid_request"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INSUFFICIENT_SHARES = "insufficient_shares"
    BROKER_ERROR = "broker_error"


class TradeResult(BaseModel):
    """Outcome of one buy/sell request (tool output to the agent).

    ``executed`` means holdings and cash were updated and persisted locally.
    ``partial_failures`` lists secondary writes (ledger trade, balance row)
    that failed after the trade itself went through.
    """

    status: Literal["executed", "declined", "failed"]
    side: TradeSide
    ticker: str
    shares: float
    message: str
    reason: DeclineReason | None = None
    price: float | None = None
    trade: Trade | None = None
    cash: float | None = None
    partial_failures: list[str] = []

    @property
    def ok(self) -> bool:
        return self.status == "executed"
