"""Trade, balance and broker wire models.

``Trade`` mirrors a row of the remote trades table, ``CreateTrade`` is the
validated input for a new row and ``BalanceRecord`` mirrors the append-only
balance table. The broker request/response pair describes the remote trade
endpoint.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from models.market import MarketType

TradeSide = Literal["buy", "sell"]


class Trade(BaseModel):
    """One executed buy or sell, as stored in the ledger. Immutable."""

    model_config = ConfigDict(frozen=True)

    code: str
    type: TradeSide
    ticker: str
    shares: float = Field(gt=0)
    price: float = Field(gt=0)
    total: float
    created_at: datetime


class CreateTrade(BaseModel):
    """Input for a new ledger row.

    ``total`` must equal ``round(shares * price, 2)``; anything else is
    rejected before it leaves the process.
    """

    code: str = Field(min_length=1)
    type: TradeSide
    ticker: str = Field(min_length=1)
    shares: float = Field(gt=0)
    price: float = Field(gt=0)
    total: float = Field(gt=0)

    @model_validator(mode="after")
    def _check_total(self) -> CreateTrade:
        expected = round(self.shares * self.price, 2)
        if round(self.total, 2) != expected:
            raise ValueError(
                f"total {self.total} does not match shares * price ({expected})"
            )
        return self

    @classmethod
    def for_fill(cls, code: str, side: TradeSide, ticker: str, shares: float, price: float) -> CreateTrade:
        """Build a trade input whose total is derived from *shares* and *price*."""
        return cls(
            code=code,
            type=side,
            ticker=ticker,
            shares=shares,
            price=price,
            total=round(shares * price, 2),
        )


class BalanceRecord(BaseModel):
    """Cash balance after a trade. Current balance = newest row per market."""

    trade_code: str
    balance: float
    market: MarketType
    created_at: datetime | None = None


class BrokerTradeRequest(BaseModel):
    """Body of the broker's ``POST /trade`` call."""

    ticker: str
    action: TradeSide
    quantity: float = Field(gt=0)
    price: float = Field(gt=0)


class BrokerTradeResponse(BaseModel):
    """Confirmation returned by the broker for an executed trade."""

    id: str | int
    user_id: str | None = None
    ticker: str
    trade_type: TradeSide
    quantity: float
    price: float
    total_amount: float
    timestamp: str
