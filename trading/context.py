"""Explicit wiring of the trading core.

``build_trading_context`` turns an ``AssistantConfig`` into fully connected
components. Everything is passed through constructors; no module keeps
client or logger state of its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from api_client.broker import BrokerClient
from api_client.ledger import PostgrestClient
from api_client.llm.client import create_chat_model, create_search_model
from models.config import AssistantConfig, PricingConfig
from models.market import MarketType
from trading.balance import BalanceSource, BrokerBalanceSource, LedgerBalanceSource
from trading.executor import TradeExecutor
from trading.ledger import TradeLedger
from trading.portfolio import PortfolioAggregator
from trading.prices import (
    BrokerQuoteSource,
    LLMPriceSource,
    PriceResolver,
    PriceSource,
    YahooQuoteSource,
)
from trading.store import HoldingsStore

logger = logging.getLogger(__name__)


@dataclass
class TradingContext:
    """Everything a run needs to read and trade one market."""

    market: MarketType
    prices: PriceResolver
    balance: BalanceSource
    ledger: TradeLedger
    aggregator: PortfolioAggregator
    executor: TradeExecutor
    search_llm: object | None = None
    broker: BrokerClient | None = None
    _closeables: list = field(default_factory=list, repr=False)

    def close(self) -> None:
        for client in self._closeables:
            client.close()


def build_price_sources(
    pricing: PricingConfig,
    broker: BrokerClient | None,
    search_llm=None,
) -> list[PriceSource]:
    """Instantiate the configured price sources in order."""
    sources: list[PriceSource] = []
    for name in pricing.sources:
        if name == "broker":
            if broker is None:
                logger.warning("Skipping 'broker' price source: no broker configured.")
                continue
            sources.append(BrokerQuoteSource(broker))
        elif name == "yahoo":
            sources.append(YahooQuoteSource())
        elif name == "llm":
            if search_llm is None:
                search_llm = create_search_model(pricing.llm_provider, pricing.search_model)
            extract_llm = create_chat_model(pricing.llm_provider, pricing.extract_model)
            sources.append(LLMPriceSource(search_llm, extract_llm))
    return sources


def build_trading_context(config: AssistantConfig) -> TradingContext:
    """Create clients and components for ``config.market``.

    Raises ``ValueError`` when a required secret (ledger URL/key) is missing.
    """
    ledger_url, ledger_key = config.ledger.url, config.ledger.key
    if not ledger_url or not ledger_key:
        raise ValueError(
            f"{config.ledger.url_env} and {config.ledger.key_env} must be set."
        )

    uses_broker = (
        config.execution_mode == "broker"
        or config.balance_source == "broker"
        or "broker" in config.pricing.sources
    )
    broker = None
    if uses_broker:
        broker = BrokerClient(
            config.broker.base_url,
            api_key=config.broker.api_key,
            timeout=config.broker.timeout,
        )
        if not config.broker.api_key:
            logger.warning("%s is not set; broker calls are unauthenticated.", config.broker.api_key_env)

    postgrest = PostgrestClient(ledger_url, ledger_key, timeout=config.ledger.timeout)
    ledger = TradeLedger(
        postgrest,
        trades_table=config.ledger.trades_table,
        balance_table=config.ledger.balance_table,
    )

    search_llm = None
    if "llm" in config.pricing.sources:
        search_llm = create_search_model(config.pricing.llm_provider, config.pricing.search_model)
    prices = PriceResolver(build_price_sources(config.pricing, broker, search_llm))

    if config.balance_source == "broker":
        balance: BalanceSource = BrokerBalanceSource(broker)
    else:
        balance = LedgerBalanceSource(ledger)

    stores = {
        market: HoldingsStore(market_config.portfolio_path)
        for market, market_config in config.markets.items()
    }
    aggregator = PortfolioAggregator(
        stores,
        prices,
        balance,
        ledger,
        history_limit=config.ledger.history_limit,
        initial_investment=config.initial_investment,
    )
    executor = TradeExecutor(
        aggregator,
        prices,
        ledger,
        broker=broker,
        execution_mode=config.execution_mode,
    )

    closeables: list = [postgrest]
    if broker is not None:
        closeables.append(broker)

    return TradingContext(
        market=config.market,
        prices=prices,
        balance=balance,
        ledger=ledger,
        aggregator=aggregator,
        executor=executor,
        search_llm=search_llm,
        broker=broker,
        _closeables=closeables,
    )
