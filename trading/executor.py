"""Trade execution: validate, price, authorize, execute, record.

A request moves through ``Validating -> PricingResolved -> Authorized/Rejected
-> Recording -> Persisted/PartiallyFailed``. Validation and authorization
failures come back as declined ``TradeResult`` objects with no side effects.
Once the trade itself has gone through, failures of the secondary writes
(ledger trade row, balance row, local snapshot) are logged and reported on
the result but never undo or fail the trade.
"""

from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Literal

from pydantic import ValidationError

from models.decision import DeclineReason, TradeResult
from models.market import MarketType
from models.trade import BrokerTradeRequest, CreateTrade, Trade, TradeSide
from trading.errors import (
    BrokerError,
    HoldingsStoreError,
    InvalidRequest,
    LedgerWriteError,
    PartialPersistenceFailure,
)
from trading.ledger import TradeLedger
from trading.portfolio import PortfolioAggregator
from trading.prices import PriceResolver

if TYPE_CHECKING:
    from api_client.broker import BrokerClient

logger = logging.getLogger(__name__)

ExecutionMode = Literal["broker", "ledger"]

# Fractional crypto quantities are kept to satoshi precision.
SHARE_PRECISION = 8


def format_shares(shares: float) -> str:
    shares = float(shares)
    return str(int(shares)) if shares.is_integer() else repr(shares)


def format_price(price: float) -> str:
    """Dollar amount per share: cents at $1 and above, up to 8 decimals below."""
    if price >= 1:
        return f"{price:,.2f}"
    whole, _, frac = f"{price:.{SHARE_PRECISION}f}".rstrip("0").partition(".")
    return f"{whole}.{frac.ljust(2, '0')}"


class TradeExecutor:
    """Executes buy/sell requests for one market at a time.

    In ``broker`` mode the order is placed with the remote broker and its
    confirmation id becomes the trade code. In ``ledger`` mode the code is
    generated locally and the ledger is the only remote record.
    """

    def __init__(
        self,
        aggregator: PortfolioAggregator,
        prices: PriceResolver,
        ledger: TradeLedger,
        broker: BrokerClient | None = None,
        execution_mode: ExecutionMode = "broker",
        code_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        if execution_mode == "broker" and broker is None:
            raise ValueError("execution_mode 'broker' requires a BrokerClient.")
        self._aggregator = aggregator
        self._prices = prices
        self._ledger = ledger
        self._broker = broker
        self._mode = execution_mode
        self._code_factory = code_factory
        self._clock = clock

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def buy(self, ticker: str, shares: Any, market: MarketType) -> TradeResult:
        return self.execute("buy", ticker, shares, market)

    def sell(self, ticker: str, shares: Any, market: MarketType) -> TradeResult:
        return self.execute("sell", ticker, shares, market)

    def execute(self, side: TradeSide, ticker: str, shares: Any, market: MarketType) -> TradeResult:
        """Run one trade request through every phase.

        Raises ``PriceUnavailable`` if no price can be resolved and the
        aggregator's errors if the portfolio cannot be read; both happen
        before anything is mutated.
        """
        # ---- Phase 1: Validate -------------------------------------------
        try:
            self._validate_request(ticker, shares, market)
        except InvalidRequest as exc:
            logger.info("Declined %s %s x%r: %s", side, ticker, shares, exc)
            return TradeResult(
                status="declined",
                side=side,
                ticker=str(ticker),
                shares=shares if isinstance(shares, (int, float)) and not isinstance(shares, bool) else 0,
                reason=DeclineReason.INVALID_REQUEST,
                message=str(exc),
            )
        ticker = ticker.strip()
        shares = float(shares)

        # ---- Phase 2: Resolve price ---------------------------------------
        price = self._prices.resolve_price(ticker, market)

        # A fill must be worth at least one cent to be recorded.
        if round(shares * price, 2) <= 0:
            message = (
                f"Order too small: {format_shares(shares)} shares of {ticker} at "
                f"${format_price(price)} per share is worth less than $0.01."
            )
            logger.info("Declined %s %s x%s: below one cent", side, ticker, format_shares(shares))
            return TradeResult(
                status="declined",
                side=side,
                ticker=ticker,
                shares=shares,
                price=price,
                reason=DeclineReason.INVALID_REQUEST,
                message=message,
            )

        # ---- Phase 3: Authorize -------------------------------------------
        portfolio = self._aggregator.get_portfolio(market)
        cost = shares * price

        if side == "buy" and portfolio.cash < cost:
            message = (
                f"You don't have enough cash to buy {format_shares(shares)} shares of {ticker}. "
                f"Your cash balance is ${portfolio.cash:,.2f} and the price is ${format_price(price)} per share "
                f"(cost ${cost:,.2f}, short ${cost - portfolio.cash:,.2f})."
            )
            logger.info("Declined buy %s x%s: insufficient funds", ticker, format_shares(shares))
            return self._declined(side, ticker, shares, price, DeclineReason.INSUFFICIENT_FUNDS, message, portfolio.cash)

        held = portfolio.holdings.get(ticker, 0.0)
        if side == "sell" and held < shares:
            message = (
                f"You don't have enough shares of {ticker} to sell. "
                f"You have {format_shares(held)} shares and tried to sell {format_shares(shares)}."
            )
            logger.info("Declined sell %s x%s: insufficient shares", ticker, format_shares(shares))
            return self._declined(side, ticker, shares, price, DeclineReason.INSUFFICIENT_SHARES, message, portfolio.cash)

        # ---- Phase 4: Execute ---------------------------------------------
        try:
            code = self._place_order(side, ticker, shares, price)
        except BrokerError as exc:
            logger.error("Failed to execute %s trade for %s via broker: %s", side, ticker, exc)
            return TradeResult(
                status="failed",
                side=side,
                ticker=ticker,
                shares=shares,
                price=price,
                reason=DeclineReason.BROKER_ERROR,
                cash=portfolio.cash,
                message=f"Failed to execute {side} trade for {ticker}. Error: {exc}",
            )

        total = round(cost, 2)
        if side == "buy":
            new_cash = round(portfolio.cash - cost, 2)
            new_position = round(held + shares, SHARE_PRECISION)
        else:
            new_cash = round(portfolio.cash + cost, 2)
            new_position = round(held - shares, SHARE_PRECISION)

        # ---- Phase 5: Record -----------------------------------------------
        partial_failures: list[PartialPersistenceFailure] = []
        self._record_remote(side, ticker, shares, price, code, new_cash, market, partial_failures)

        if new_position > 0:
            portfolio.holdings[ticker] = new_position
        else:
            portfolio.holdings.pop(ticker, None)
        portfolio.cash = new_cash
        portfolio.history = []
        try:
            self._aggregator.store_for(market).save(portfolio.to_snapshot())
        except HoldingsStoreError as exc:
            self._report_partial("holdings snapshot", code, exc, partial_failures)

        trade = Trade(
            code=code,
            type=side,
            ticker=ticker,
            shares=shares,
            price=price,
            total=total,
            created_at=self._clock(),
        )

        verb = "Purchased" if side == "buy" else "Sold"
        logger.info(
            "%s %s shares of %s at $%s per share (code %s, %s mode)",
            verb, format_shares(shares), ticker, price, code, self._mode,
        )
        return TradeResult(
            status="executed",
            side=side,
            ticker=ticker,
            shares=shares,
            price=price,
            trade=trade,
            cash=new_cash,
            partial_failures=[str(f) for f in partial_failures],
            message=(
                f"{verb} {format_shares(shares)} shares of {ticker} at ${format_price(price)} per share, "
                f"for a total of ${total:,.2f}. Your cash balance is now ${new_cash:,.2f}."
            ),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_request(ticker: Any, shares: Any, market: MarketType) -> None:
        """Raise ``InvalidRequest`` if the request is malformed."""
        if not isinstance(ticker, str) or not ticker.strip():
            raise InvalidRequest("Ticker must be a non-empty symbol.")
        if isinstance(shares, bool) or not isinstance(shares, (int, float)):
            raise InvalidRequest(f"Shares must be a number, got {shares!r}.")
        if not math.isfinite(shares) or shares <= 0:
            raise InvalidRequest(f"Shares must be positive, got {shares} for {ticker.strip()}.")
        if market is MarketType.STOCK and not float(shares).is_integer():
            raise InvalidRequest(f"Stock orders must be whole shares, got {shares} for {ticker.strip()}.")

    def _declined(
        self,
        side: TradeSide,
        ticker: str,
        shares: float,
        price: float,
        reason: DeclineReason,
        message: str,
        cash: float,
    ) -> TradeResult:
        return TradeResult(
            status="declined",
            side=side,
            ticker=ticker,
            shares=shares,
            price=price,
            reason=reason,
            cash=cash,
            message=message,
        )

    def _place_order(self, side: TradeSide, ticker: str, shares: float, price: float) -> str:
        """Execute the order and return its trade code."""
        if self._mode == "ledger":
            return self._code_factory()

        assert self._broker is not None
        response = self._broker.execute_trade(
            BrokerTradeRequest(ticker=ticker, action=side, quantity=shares, price=price)
        )
        logger.info(
            "Broker confirmed %s %s x%s at $%s (ID: %s)",
            response.trade_type, response.ticker, format_shares(response.quantity), response.price, response.id,
        )
        return str(response.id)

    def _record_remote(
        self,
        side: TradeSide,
        ticker: str,
        shares: float,
        price: float,
        code: str,
        new_cash: float,
        market: MarketType,
        partial_failures: list[PartialPersistenceFailure],
    ) -> None:
        try:
            self._ledger.append(CreateTrade.for_fill(code, side, ticker, shares, price), market)
        except (LedgerWriteError, ValidationError) as exc:
            self._report_partial("ledger trade", code, exc, partial_failures)

        try:
            self._ledger.append_balance(code, new_cash, market)
        except LedgerWriteError as exc:
            self._report_partial("balance record", code, exc, partial_failures)

    @staticmethod
    def _report_partial(
        step: str,
        code: str,
        exc: BaseException,
        partial_failures: list[PartialPersistenceFailure],
    ) -> None:
        failure = PartialPersistenceFailure(step, code, exc)
        logger.error("Partial persistence failure: %s", failure)
        partial_failures.append(failure)
