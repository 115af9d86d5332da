"""Tests for the shared data models and the YAML configuration loader.

Run with:  pytest models/tests/test_models.py -v
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest
from pydantic import ValidationError

from models import (
    AssistantConfig,
    CreateTrade,
    DeclineReason,
    MarketType,
    Portfolio,
    Trade,
    TradeResult,
)

EXAMPLE_CONFIG = Path(__file__).resolve().parents[2] / "config" / "example.yaml"


# =============================================================================
# 1. MARKET TYPE
# =============================================================================

class TestMarketType:
    @pytest.mark.parametrize("raw, expected", [
        ("stock", MarketType.STOCK),
        (" CRYPTO ", MarketType.CRYPTO),
        ("Crypto", MarketType.CRYPTO),
    ])
    def test_parse_is_case_insensitive(self, raw, expected):
        assert MarketType.parse(raw) is expected

    def test_parse_rejects_unknown(self):
        with pytest.raises(ValueError, match="Allowed: STOCK, CRYPTO"):
            MarketType.parse("forex")


# =============================================================================
# 2. TRADES
# =============================================================================

class TestTradeModels:
    def test_total_must_match_shares_times_price(self):
        with pytest.raises(ValidationError, match="does not match"):
            CreateTrade(code="c", type="buy", ticker="AAPL", shares=3, price=10.0, total=31.0)

    def test_total_is_compared_at_cents(self):
        trade = CreateTrade(code="c", type="buy", ticker="MSFT", shares=3, price=33.333, total=100.0)
        assert trade.total == 100.0

    def test_for_fill_derives_total(self):
        trade = CreateTrade.for_fill("c", "sell", "BTC", 0.015, 64123.45)
        assert trade.total == round(0.015 * 64123.45, 2)

    @pytest.mark.parametrize("field, value", [("shares", 0), ("price", -1), ("code", ""), ("type", "hold")])
    def test_invalid_fields(self, field, value):
        data = {"code": "c", "type": "buy", "ticker": "AAPL", "shares": 1, "price": 1.0, "total": 1.0}
        data[field] = value
        with pytest.raises(ValidationError):
            CreateTrade(**data)

    def test_trade_is_immutable(self):
        trade = Trade(
            code="c", type="buy", ticker="AAPL", shares=1, price=1.0, total=1.0,
            created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
        with pytest.raises(ValidationError):
            trade.shares = 2


# =============================================================================
# 3. PORTFOLIO AND RESULTS
# =============================================================================

class TestPortfolioModels:
    def test_snapshot_drops_history(self):
        trade = Trade(
            code="c", type="buy", ticker="AAPL", shares=1, price=1.0, total=1.0,
            created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
        portfolio = Portfolio(market=MarketType.STOCK, cash=10.0, holdings={"AAPL": 1.0}, history=[trade])
        snapshot = portfolio.to_snapshot()

        assert snapshot.history == []
        assert snapshot.holdings == {"AAPL": 1.0}
        assert snapshot.cash == 10.0

    def test_trade_result_ok(self):
        declined = TradeResult(
            status="declined", side="buy", ticker="AAPL", shares=1,
            message="no", reason=DeclineReason.INSUFFICIENT_FUNDS,
        )
        assert not declined.ok
        assert declined.partial_failures == []


# =============================================================================
# 4. CONFIGURATION
# =============================================================================

class TestAssistantConfig:
    def test_defaults(self):
        config = AssistantConfig()
        assert config.market is MarketType.STOCK
        assert config.initial_investment == 1000.0
        assert config.pricing.sources == ["broker", "yahoo", "llm"]
        assert config.market_config.portfolio_path == "portfolio_stock.json"

    def test_example_file_loads(self):
        config = AssistantConfig.from_yaml(EXAMPLE_CONFIG)
        assert config.execution_mode == "broker"
        assert config.ledger.history_limit == 100
        assert config.pricing.extract_model == "gpt-5-nano"

    def test_market_specific_paths(self, tmp_path):
        path = tmp_path / "crypto.yaml"
        path.write_text("market: CRYPTO\nexecution_mode: ledger\nbalance_source: ledger\n")
        config = AssistantConfig.from_yaml(path)

        assert config.market is MarketType.CRYPTO
        assert config.market_config.name == "Crypto Assistant"
        assert config.market_config.thread_path.endswith("thread_crypto.json")

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert AssistantConfig.from_yaml(path) == AssistantConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AssistantConfig.from_yaml(tmp_path / "nope.yaml")

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="Expected a YAML mapping"):
            AssistantConfig.from_yaml(path)

    def test_unknown_price_source_rejected(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("pricing:\n  sources: [broker, bloomberg]\n")
        with pytest.raises(ValidationError):
            AssistantConfig.from_yaml(path)

    def test_ledger_execution_requires_ledger_balance(self, tmp_path):
        with pytest.raises(ValidationError, match="requires balance_source 'ledger'"):
            AssistantConfig(execution_mode="ledger", balance_source="broker")

        path = tmp_path / "mixed.yaml"
        path.write_text("execution_mode: ledger\n")
        with pytest.raises(ValidationError):
            AssistantConfig.from_yaml(path)

    def test_broker_execution_may_read_ledger_balance(self):
        config = AssistantConfig(execution_mode="broker", balance_source="ledger")
        assert config.balance_source == "ledger"

    def test_secrets_come_from_environment(self, monkeypatch):
        monkeypatch.setenv("MY_BROKER_TOKEN", "secret")
        config = AssistantConfig(broker={"api_key_env": "MY_BROKER_TOKEN"})
        assert config.broker.api_key == "secret"
