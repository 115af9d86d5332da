"""Portfolio state models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from models.market import MarketType
from models.trade import Trade


class HoldingsSnapshot(BaseModel):
    """The local JSON document for one market.

    Only ``holdings`` is trusted between runs. ``cash`` is a convenience copy
    of the balance after the last trade and ``history`` is always written
    empty; both are re-fetched from remote sources on every read.
    """

    cash: float = 0.0
    holdings: dict[str, float] = Field(default_factory=dict)
    history: list[Trade] = Field(default_factory=list)


class Portfolio(BaseModel):
    """Authoritative view used during one run.

    Built fresh on every read: holdings from the local snapshot, cash from
    the balance source and history from the trade ledger (newest first).
    """

    market: MarketType
    cash: float
    holdings: dict[str, float] = Field(default_factory=dict)
    history: list[Trade] = Field(default_factory=list)

    def to_snapshot(self) -> HoldingsSnapshot:
        """Local persistence form: holdings and cash, never history."""
        return HoldingsSnapshot(cash=self.cash, holdings=dict(self.holdings), history=[])


class HoldingValue(BaseModel):
    shares: float
    value: float


class PortfolioValue(BaseModel):
    """Per-ticker breakdown. Tickers without a price are listed with value 0."""

    total_value: float
    holdings: dict[str, HoldingValue] = Field(default_factory=dict)
