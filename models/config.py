"""Assistant configuration models, loaded from YAML.

These live in ``models/`` because they are shared data contracts used by the
trading core, the agent tools and the CLI. Secrets are never stored in the
YAML file; each section names the environment variable that holds them.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, model_validator

from models.market import MarketType


class AgentConfig(BaseModel):
    """Configuration for the trading agent."""

    llm_provider: str = Field(
        default="openai",
        description="LLM provider identifier, e.g. 'openai', 'anthropic'.",
    )
    llm_model: str = Field(
        default="gpt-5-mini",
        description="Model name, e.g. 'gpt-5-mini', 'claude-sonnet-4-20250514'.",
    )
    temperature: float | None = Field(
        default=None,
        ge=0.0,
        le=2.0,
        description="Sampling temperature. None leaves the provider default.",
    )
    max_turns: int = Field(
        default=100,
        ge=1,
        description="Upper bound on agent/tool steps in one run.",
    )
    system_prompt_override: str | None = Field(
        default=None,
        description="Optional inline system prompt; wins over the market's prompt file.",
    )


class BrokerConfig(BaseModel):
    """Remote broker endpoint (trades, balance, quotes)."""

    base_url: str = Field(
        default="https://broker-simulator.onrender.com/api/v1",
        description="Base URL; '/trade', '/balance' and '/price/{ticker}' are appended.",
    )
    api_key_env: str = Field(
        default="BROKER_API_KEY",
        description="Environment variable holding the bearer token.",
    )
    timeout: float = Field(default=15.0, gt=0, description="Per-request timeout in seconds.")

    @property
    def api_key(self) -> str | None:
        return os.getenv(self.api_key_env)


class LedgerConfig(BaseModel):
    """Remote PostgREST database holding the trades and balance tables."""

    url_env: str = Field(default="SUPABASE_URL", description="Env var with the project URL.")
    key_env: str = Field(default="SUPABASE_KEY", description="Env var with the service key.")
    trades_table: str = "trades"
    balance_table: str = "balance"
    history_limit: int = Field(
        default=100,
        ge=1,
        description="Maximum number of trades loaded into the portfolio history.",
    )
    timeout: float = Field(default=15.0, gt=0)

    @property
    def url(self) -> str | None:
        return os.getenv(self.url_env)

    @property
    def key(self) -> str | None:
        return os.getenv(self.key_env)


class PricingConfig(BaseModel):
    """Ordered price sources and the model used for the AI fallback."""

    sources: list[Literal["broker", "yahoo", "llm"]] = Field(
        default_factory=lambda: ["broker", "yahoo", "llm"],
        min_length=1,
        description="Sources tried in order; the first positive price wins.",
    )
    llm_provider: str = "openai"
    search_model: str = Field(
        default="gpt-5-mini",
        description="Web-search enabled model that answers the price question.",
    )
    extract_model: str = Field(
        default="gpt-5-nano",
        description="Model that extracts a structured price from the search answer.",
    )


class MarketConfig(BaseModel):
    """File locations and display name for one market partition."""

    name: str
    portfolio_path: str
    prompt_path: str
    thread_path: str
    thread_dir: str


def _default_markets() -> dict[MarketType, MarketConfig]:
    return {
        MarketType.STOCK: MarketConfig(
            name="Stock Assistant",
            portfolio_path="portfolio_stock.json",
            prompt_path="resource/prompt/system-prompt-stock.md",
            thread_path="resource/output/thread/thread.json",
            thread_dir="resource/output/thread/stock",
        ),
        MarketType.CRYPTO: MarketConfig(
            name="Crypto Assistant",
            portfolio_path="portfolio_crypto.json",
            prompt_path="resource/prompt/system-prompt-crypto.md",
            thread_path="resource/output/thread/thread_crypto.json",
            thread_dir="resource/output/thread/crypto",
        ),
    }


class NotificationConfig(BaseModel):
    """Run report delivery. Disabled when the webhook env var is unset."""

    enabled: bool = True
    webhook_url_env: str = "ASSISTANT_WEBHOOK_URL"
    timeout: float = Field(default=10.0, gt=0)

    @property
    def webhook_url(self) -> str | None:
        return os.getenv(self.webhook_url_env)


class AssistantConfig(BaseModel):
    """Top-level configuration for a scheduled run, loaded from YAML."""

    market: MarketType = Field(
        default=MarketType.STOCK,
        description="Active market; may be overridden by --market or ASSISTANT_MARKET_TYPE.",
    )
    balance_source: Literal["broker", "ledger"] = Field(
        default="broker",
        description="Where the authoritative cash balance is read from.",
    )
    execution_mode: Literal["broker", "ledger"] = Field(
        default="broker",
        description="'broker' places orders remotely; 'ledger' records them locally + ledger only.",
    )
    initial_investment: float = Field(
        default=1000.0,
        gt=0,
        description="Baseline used for the annualized return.",
    )
    output_dir: str = Field(default="resource/output", description="Root for traces and run logs.")
    agent: AgentConfig = Field(default_factory=AgentConfig)
    broker: BrokerConfig = Field(default_factory=BrokerConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    notification: NotificationConfig = Field(default_factory=NotificationConfig)
    markets: dict[MarketType, MarketConfig] = Field(default_factory=_default_markets)

    @model_validator(mode="after")
    def _check_balance_source(self) -> AssistantConfig:
        # Ledger-mode trades never reach the broker, so only the ledger's
        # balance rows reflect them.
        if self.execution_mode == "ledger" and self.balance_source != "ledger":
            raise ValueError(
                "execution_mode 'ledger' requires balance_source 'ledger' "
                f"(got '{self.balance_source}')."
            )
        return self

    @property
    def market_config(self) -> MarketConfig:
        """Settings of the active market."""
        try:
            return self.markets[self.market]
        except KeyError:
            raise KeyError(f"No market configuration for '{self.market.value}'.") from None

    @classmethod
    def from_yaml(cls, path: str | Path) -> AssistantConfig:
        """Load and validate an ``AssistantConfig`` from a YAML file.

        Raises ``FileNotFoundError`` if the file does not exist and
        ``ValueError`` if the content is not a valid YAML mapping.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with path.open(encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ValueError(
                f"Expected a YAML mapping in {path}, got {type(raw).__name__}."
            )

        return cls(**raw)
