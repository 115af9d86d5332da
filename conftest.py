"""Shared pytest fixtures: in-memory collaborators for the trading core.

Nothing here touches the network. Prices, balance, ledger and broker are
small fakes with the same call surface as the real components, and the
holdings store writes under ``tmp_path``.
"""

from __future__ import annotations

import itertools
from datetime import datetime, timezone

import pytest

from models.market import MarketType
from models.trade import BalanceRecord, BrokerTradeRequest, BrokerTradeResponse, CreateTrade, Trade
from trading.balance import BalanceSource
from trading.context import TradingContext
from trading.errors import LedgerReadError, LedgerWriteError
from trading.executor import TradeExecutor
from trading.portfolio import PortfolioAggregator
from trading.prices import PriceResolver, PriceSource
from trading.store import HoldingsStore

FIXED_NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


class DictPriceSource(PriceSource):
    """Quotes from a dict; unknown tickers raise like a failing endpoint."""

    def __init__(self, prices: dict[str, object], name: str = "fake") -> None:
        self.prices = prices
        self.name = name
        self.calls: list[str] = []

    def fetch(self, ticker: str, market: MarketType) -> object:
        self.calls.append(ticker)
        if ticker not in self.prices:
            raise KeyError(f"no quote for {ticker}")
        value = self.prices[ticker]
        if isinstance(value, Exception):
            raise value
        return value


class FakeBalanceSource(BalanceSource):
    def __init__(self, balance: float = 1000.0) -> None:
        self.balance = balance
        self.error: Exception | None = None
        self.calls = 0

    def get_current_balance(self, market: MarketType) -> float:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.balance


class InMemoryLedger:
    """Same surface as ``TradeLedger``; newest rows first."""

    def __init__(self) -> None:
        self.trades: dict[MarketType, list[Trade]] = {m: [] for m in MarketType}
        self.balances: list[BalanceRecord] = []
        self.fail_append = False
        self.fail_balance = False
        self.fail_read = False
        self.list_calls = 0

    def append(self, trade, market: MarketType) -> str:
        validated = CreateTrade.model_validate(trade)
        if self.fail_append:
            raise LedgerWriteError("trades table unavailable")
        self.trades[market].insert(0, Trade(**validated.model_dump(), created_at=FIXED_NOW))
        return f"row-{sum(len(t) for t in self.trades.values())}"

    def list(self, market: MarketType, limit: int = 100) -> list[Trade]:
        self.list_calls += 1
        if self.fail_read:
            raise LedgerReadError("trades table unavailable")
        return list(self.trades[market][:limit])

    def append_balance(self, trade_code: str, balance: float, market: MarketType) -> str:
        if self.fail_balance:
            raise LedgerWriteError("balance table unavailable")
        self.balances.append(
            BalanceRecord(trade_code=trade_code, balance=balance, market=market, created_at=FIXED_NOW)
        )
        return f"bal-{len(self.balances)}"

    def latest_balance(self, market: MarketType) -> float:
        for record in reversed(self.balances):
            if record.market is market:
                return record.balance
        raise LedgerReadError(f"No balance found for {market.value}")


class FakeBroker:
    def __init__(self) -> None:
        self.requests: list[BrokerTradeRequest] = []
        self.error: Exception | None = None

    def execute_trade(self, request: BrokerTradeRequest) -> BrokerTradeResponse:
        if self.error is not None:
            raise self.error
        self.requests.append(request)
        return BrokerTradeResponse(
            id=f"brk-{len(self.requests)}",
            ticker=request.ticker,
            trade_type=request.action,
            quantity=request.quantity,
            price=request.price,
            total_amount=round(request.quantity * request.price, 2),
            timestamp=FIXED_NOW.isoformat(),
        )


# ------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------

@pytest.fixture
def quotes() -> dict[str, object]:
    return {"AAPL": 100.0, "MSFT": 50.0, "BTC": 60000.0}


@pytest.fixture
def price_source(quotes) -> DictPriceSource:
    return DictPriceSource(quotes)


@pytest.fixture
def resolver(price_source) -> PriceResolver:
    return PriceResolver([price_source])


@pytest.fixture
def balance() -> FakeBalanceSource:
    return FakeBalanceSource(1000.0)


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def stores(tmp_path) -> dict[MarketType, HoldingsStore]:
    return {m: HoldingsStore(tmp_path / f"portfolio_{m.value.lower()}.json") for m in MarketType}


@pytest.fixture
def aggregator(stores, resolver, balance, ledger) -> PortfolioAggregator:
    return PortfolioAggregator(stores, resolver, balance, ledger, clock=lambda: FIXED_NOW)


@pytest.fixture
def executor(aggregator, resolver, ledger) -> TradeExecutor:
    counter = itertools.count(1)
    return TradeExecutor(
        aggregator,
        resolver,
        ledger,
        execution_mode="ledger",
        code_factory=lambda: f"code-{next(counter)}",
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def broker() -> FakeBroker:
    return FakeBroker()


@pytest.fixture
def broker_executor(aggregator, resolver, ledger, broker) -> TradeExecutor:
    return TradeExecutor(
        aggregator,
        resolver,
        ledger,
        broker=broker,
        execution_mode="broker",
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def trading_context(resolver, balance, ledger, aggregator, executor) -> TradingContext:
    return TradingContext(
        market=MarketType.STOCK,
        prices=resolver,
        balance=balance,
        ledger=ledger,
        aggregator=aggregator,
        executor=executor,
    )
