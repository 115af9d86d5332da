"""Tests for build_trading_context wiring."""

from __future__ import annotations

import pytest

from models.config import AssistantConfig, PricingConfig
from models.market import MarketType
from trading.balance import BrokerBalanceSource, LedgerBalanceSource
from trading.context import build_price_sources, build_trading_context
from trading.prices import BrokerQuoteSource, YahooQuoteSource


@pytest.fixture
def ledger_env(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://db.example.co")
    monkeypatch.setenv("SUPABASE_KEY", "service-key")


class TestBuildTradingContext:
    def test_missing_ledger_secrets(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_KEY", raising=False)
        with pytest.raises(ValueError, match="SUPABASE_URL"):
            build_trading_context(AssistantConfig())

    def test_ledger_only_setup_has_no_broker(self, ledger_env, tmp_path):
        config = AssistantConfig(
            market=MarketType.CRYPTO,
            balance_source="ledger",
            execution_mode="ledger",
            pricing=PricingConfig(sources=["yahoo"]),
        )
        ctx = build_trading_context(config)
        try:
            assert ctx.market is MarketType.CRYPTO
            assert ctx.broker is None
            assert ctx.search_llm is None
            assert isinstance(ctx.balance, LedgerBalanceSource)
            assert [type(s) for s in ctx.prices.sources] == [YahooQuoteSource]
            assert ctx.aggregator.store_for(MarketType.CRYPTO).path.name == "portfolio_crypto.json"
        finally:
            ctx.close()

    def test_broker_setup(self, ledger_env, monkeypatch):
        monkeypatch.setenv("BROKER_API_KEY", "tok")
        config = AssistantConfig(pricing=PricingConfig(sources=["broker", "yahoo"]))
        ctx = build_trading_context(config)
        try:
            assert ctx.broker is not None
            assert isinstance(ctx.balance, BrokerBalanceSource)
            assert [type(s) for s in ctx.prices.sources] == [BrokerQuoteSource, YahooQuoteSource]
        finally:
            ctx.close()


class TestBuildPriceSources:
    def test_broker_source_skipped_without_broker(self):
        sources = build_price_sources(PricingConfig(sources=["broker", "yahoo"]), broker=None)
        assert [s.name for s in sources] == ["yahoo"]
