"""Portfolio aggregation and valuation.

``get_portfolio`` merges the local holdings snapshot with the live cash
balance and the ledger's trade history. Valuations are best-effort: a ticker
whose price cannot be resolved is logged and valued at 0 instead of failing
the whole computation.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Mapping

from models.market import MarketType
from models.portfolio import HoldingValue, Portfolio, PortfolioValue
from trading.balance import BalanceSource
from trading.errors import PriceUnavailable
from trading.ledger import TradeLedger
from trading.prices import PriceResolver
from trading.store import HoldingsStore

logger = logging.getLogger(__name__)

INITIAL_INVESTMENT = 1000.0

SECONDS_PER_DAY = 60 * 60 * 24


def calculate_cagr(days: float, current_value: float, start_value: float = INITIAL_INVESTMENT) -> float:
    """Compound annual growth rate as a fraction (0.15 == 15%)."""
    years = days / 365
    return (current_value / start_value) ** (1 / years) - 1


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class PortfolioAggregator:
    """Builds the per-run ``Portfolio`` view and derives its valuations."""

    def __init__(
        self,
        stores: Mapping[MarketType, HoldingsStore],
        prices: PriceResolver,
        balance: BalanceSource,
        ledger: TradeLedger,
        history_limit: int = 100,
        initial_investment: float = INITIAL_INVESTMENT,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._stores = dict(stores)
        self._prices = prices
        self._balance = balance
        self._ledger = ledger
        self._history_limit = history_limit
        self._initial_investment = initial_investment
        self._clock = clock

    @property
    def initial_investment(self) -> float:
        return self._initial_investment

    def store_for(self, market: MarketType) -> HoldingsStore:
        try:
            return self._stores[market]
        except KeyError:
            raise KeyError(f"No holdings store configured for {market.value}") from None

    def get_portfolio(self, market: MarketType) -> Portfolio:
        """Read holdings locally and overwrite cash and history from remote sources.

        Any failure propagates; a partial portfolio is never returned.
        """
        snapshot = self.store_for(market).load()
        cash = self._balance.get_current_balance(market)
        history = self._ledger.list(market, limit=self._history_limit)
        return Portfolio(
            market=market,
            cash=cash,
            holdings=dict(snapshot.holdings),
            history=history,
        )

    # ------------------------------------------------------------------
    # Valuations
    # ------------------------------------------------------------------

    def calculate_net_worth(self, market: MarketType) -> float:
        """Cash plus the market value of every held position, rounded to cents."""
        portfolio = self.get_portfolio(market)
        return round(portfolio.cash + self._holdings_value(portfolio), 2)

    def calculate_annualized_return(self, portfolio: Portfolio) -> str:
        """CAGR since the first trade, as a percentage string with 2 decimals.

        Returns ``"0.00"`` when there is no history and ``"N/A"`` when less
        than a day has passed since the first trade.
        """
        if not portfolio.history:
            return "0.00"

        first_trade_date = min(_as_utc(trade.created_at) for trade in portfolio.history)
        days = (self._clock() - first_trade_date).total_seconds() / SECONDS_PER_DAY
        logger.info("Days since first trade: %.2f", days)

        if days < 1:
            logger.info("Not enough time has passed to compute CAGR accurately.")
            return "N/A"

        current_total_value = portfolio.cash + self._holdings_value(portfolio)
        logger.info("Current total value: $%s", current_total_value)

        cagr = calculate_cagr(days, current_total_value, self._initial_investment)
        logger.info("CAGR: %s%%", cagr * 100)
        return f"{cagr * 100:,.2f}"

    def calculate_portfolio_value(self, market: MarketType) -> PortfolioValue:
        """Per-ticker values (rounded) plus the rounded total including cash."""
        portfolio = self.get_portfolio(market)
        breakdown: dict[str, HoldingValue] = {}
        holdings_total = 0.0

        for ticker, shares in portfolio.holdings.items():
            if shares <= 0:
                continue
            price = self._price_or_none(ticker, market)
            value = round(shares * price, 2) if price is not None else 0.0
            breakdown[ticker] = HoldingValue(shares=shares, value=value)
            holdings_total += value

        total_value = round(portfolio.cash + holdings_total, 2)
        return PortfolioValue(total_value=total_value, holdings=breakdown)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _holdings_value(self, portfolio: Portfolio) -> float:
        total = 0.0
        for ticker, shares in portfolio.holdings.items():
            if shares <= 0:
                continue
            price = self._price_or_none(ticker, portfolio.market)
            if price is not None:
                total += shares * price
        return total

    def _price_or_none(self, ticker: str, market: MarketType) -> float | None:
        try:
            return self._prices.resolve_price(ticker, market)
        except PriceUnavailable as exc:
            logger.warning("Failed to get price for %s: %s", ticker, exc)
            return None
