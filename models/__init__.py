"""Data models for the trading assistant.

The trading core, the agent tools and the CLI all import from models.
"""

from models.agents import AgentInvocation, AgentInvocationResult
from models.config import (
    AgentConfig,
    AssistantConfig,
    BrokerConfig,
    LedgerConfig,
    MarketConfig,
    NotificationConfig,
    PricingConfig,
)
from models.decision import DeclineReason, TradeRequest, TradeResult
from models.market import MarketType
from models.portfolio import HoldingsSnapshot, HoldingValue, Portfolio, PortfolioValue
from models.trade import BalanceRecord, BrokerTradeRequest, BrokerTradeResponse, CreateTrade, Trade

__all__ = [
    # agents
    "AgentInvocation",
    "AgentInvocationResult",
    # config
    "AgentConfig",
    "AssistantConfig",
    "BrokerConfig",
    "LedgerConfig",
    "MarketConfig",
    "NotificationConfig",
    "PricingConfig",
    # decision
    "DeclineReason",
    "TradeRequest",
    "TradeResult",
    # market
    "MarketType",
    # portfolio
    "HoldingsSnapshot",
    "HoldingValue",
    "Portfolio",
    "PortfolioValue",
    # trade
    "BalanceRecord",
    "BrokerTradeRequest",
    "BrokerTradeResponse",
    "CreateTrade",
    "Trade",
]
