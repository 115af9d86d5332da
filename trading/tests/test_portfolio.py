"""Tests for PortfolioAggregator: merged portfolio view and valuations.

Run with:  pytest trading/tests/test_portfolio.py -v
"""

from __future__ import annotations

import json
from datetime import timedelta

import pytest

from conftest import FIXED_NOW
from models.market import MarketType
from models.portfolio import HoldingsSnapshot, Portfolio
from models.trade import Trade
from trading.errors import BalanceUnavailable, LedgerReadError
from trading.portfolio import PortfolioAggregator, calculate_cagr
from trading.store import HoldingsStore


def make_trade(days_ago: float, code: str = "c") -> Trade:
    return Trade(
        code=code,
        type="buy",
        ticker="AAPL",
        shares=1,
        price=100.0,
        total=100.0,
        created_at=FIXED_NOW - timedelta(days=days_ago),
    )


def portfolio(cash: float, holdings: dict[str, float] | None = None, history: list[Trade] | None = None) -> Portfolio:
    return Portfolio(market=MarketType.STOCK, cash=cash, holdings=holdings or {}, history=history or [])


# =============================================================================
# 1. PORTFOLIO VIEW
# =============================================================================

class TestGetPortfolio:
    """Holdings come from disk; cash and history always come from remote."""

    def test_remote_cash_and_history_replace_local_copies(self, aggregator, stores, ledger):
        path = stores[MarketType.STOCK].path
        path.write_text(json.dumps({
            "cash": 5.0,
            "holdings": {"AAPL": 4},
            "history": [{
                "code": "stale", "type": "buy", "ticker": "AAPL", "shares": 4,
                "price": 10.0, "total": 40.0, "created_at": "2025-01-01T00:00:00Z",
            }],
        }))
        ledger.append({"code": "live", "type": "buy", "ticker": "AAPL", "shares": 4, "price": 10, "total": 40},
                      MarketType.STOCK)

        result = aggregator.get_portfolio(MarketType.STOCK)

        assert result.cash == 1000.0
        assert result.holdings == {"AAPL": 4.0}
        assert [t.code for t in result.history] == ["live"]

    def test_markets_are_isolated(self, aggregator, stores, ledger):
        stores[MarketType.CRYPTO].save(HoldingsSnapshot(holdings={"BTC": 0.5}))
        ledger.append({"code": "x", "type": "buy", "ticker": "BTC", "shares": 0.5, "price": 2, "total": 1},
                      MarketType.CRYPTO)

        stock = aggregator.get_portfolio(MarketType.STOCK)
        assert stock.holdings == {}
        assert stock.history == []

    def test_repeated_reads_do_not_accumulate(self, aggregator, stores, ledger):
        stores[MarketType.STOCK].save(HoldingsSnapshot(holdings={"AAPL": 2.0}))
        ledger.append({"code": "a", "type": "buy", "ticker": "AAPL", "shares": 2, "price": 100, "total": 200},
                      MarketType.STOCK)

        first = aggregator.get_portfolio(MarketType.STOCK)
        second = aggregator.get_portfolio(MarketType.STOCK)

        assert first == second
        assert len(second.history) == 1

    def test_balance_failure_propagates(self, aggregator, balance):
        balance.error = BalanceUnavailable("null cash_balance")
        with pytest.raises(BalanceUnavailable):
            aggregator.get_portfolio(MarketType.STOCK)

    def test_ledger_failure_propagates(self, aggregator, ledger):
        ledger.fail_read = True
        with pytest.raises(LedgerReadError):
            aggregator.get_portfolio(MarketType.STOCK)

    def test_store_for_unknown_market(self, resolver, balance, ledger, tmp_path):
        aggregator = PortfolioAggregator({MarketType.STOCK: HoldingsStore(tmp_path / "s.json")}, resolver, balance, ledger)
        with pytest.raises(KeyError, match="CRYPTO"):
            aggregator.store_for(MarketType.CRYPTO)


# =============================================================================
# 2. NET WORTH AND PORTFOLIO VALUE
# =============================================================================

class TestValuation:
    def test_net_worth_is_cash_plus_positions(self, aggregator, stores):
        stores[MarketType.STOCK].save(HoldingsSnapshot(holdings={"AAPL": 5.0, "MSFT": 2.0}))
        assert aggregator.calculate_net_worth(MarketType.STOCK) == 1600.0

    def test_unpriced_ticker_counts_as_zero(self, aggregator, stores):
        stores[MarketType.STOCK].save(HoldingsSnapshot(holdings={"AAPL": 5.0, "DELISTED": 3.0}))
        assert aggregator.calculate_net_worth(MarketType.STOCK) == 1500.0

    def test_net_worth_rounds_to_cents(self, aggregator, stores, quotes):
        quotes["MSFT"] = 33.333
        stores[MarketType.STOCK].save(HoldingsSnapshot(holdings={"MSFT": 3.0}))
        assert aggregator.calculate_net_worth(MarketType.STOCK) == 1100.0

    def test_portfolio_value_breakdown(self, aggregator, stores):
        stores[MarketType.STOCK].save(HoldingsSnapshot(holdings={"AAPL": 5.0, "DELISTED": 3.0}))
        value = aggregator.calculate_portfolio_value(MarketType.STOCK)

        assert value.total_value == 1500.0
        assert value.holdings["AAPL"].value == 500.0
        assert value.holdings["DELISTED"].shares == 3.0
        assert value.holdings["DELISTED"].value == 0.0

    def test_empty_portfolio_value(self, aggregator):
        value = aggregator.calculate_portfolio_value(MarketType.STOCK)
        assert value.total_value == 1000.0
        assert value.holdings == {}


# =============================================================================
# 3. ANNUALIZED RETURN
# =============================================================================

class TestAnnualizedReturn:
    def test_no_history(self, aggregator):
        assert aggregator.calculate_annualized_return(portfolio(1000.0)) == "0.00"

    def test_less_than_a_day(self, aggregator):
        assert aggregator.calculate_annualized_return(portfolio(1000.0, history=[make_trade(0.5)])) == "N/A"

    def test_one_year_ten_percent(self, aggregator):
        assert aggregator.calculate_annualized_return(portfolio(1100.0, history=[make_trade(365)])) == "10.00"

    def test_two_years_compounds(self, aggregator):
        assert aggregator.calculate_annualized_return(portfolio(1210.0, history=[make_trade(730)])) == "10.00"

    def test_loss_is_negative(self, aggregator):
        assert aggregator.calculate_annualized_return(portfolio(900.0, history=[make_trade(365)])) == "-10.00"

    def test_uses_earliest_trade(self, aggregator):
        history = [make_trade(10, "recent"), make_trade(365, "first")]
        assert aggregator.calculate_annualized_return(portfolio(1100.0, history=history)) == "10.00"

    def test_positions_are_valued(self, aggregator):
        held = portfolio(500.0, holdings={"AAPL": 6.0}, history=[make_trade(365)])
        assert aggregator.calculate_annualized_return(held) == "10.00"

    def test_thousands_separator(self, aggregator):
        assert aggregator.calculate_annualized_return(portfolio(25000.0, history=[make_trade(365)])) == "2,400.00"

    def test_calculate_cagr(self):
        assert calculate_cagr(365, 1500.0, 1000.0) == pytest.approx(0.5)
