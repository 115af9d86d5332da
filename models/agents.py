"""Agent interface models and tool input schemas."""

from typing import Any

from langchain_core.messages import BaseMessage
from pydantic import BaseModel, ConfigDict, Field

from models.market import MarketType


class AgentInvocation(BaseModel):
    """Input passed when the runner invokes the agent for a scheduled run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    market: MarketType
    prompt: str  # Kickoff user message for this run
    history: list[BaseMessage] = []  # Thread carried over from previous runs


class AgentInvocationResult(BaseModel):
    """Parsed output from the agent."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    final_output: str
    messages: list[BaseMessage] = []  # Full thread including this run
    raw_output: dict[str, Any] | str | None = None


class TickerInput(BaseModel):
    """Input schema for the price tool."""

    ticker: str = Field(description="Ticker symbol, e.g. 'AAPL' for stocks or 'BTC' for crypto.")


class ThinkInput(BaseModel):
    """Input schema for the ``think`` tool."""

    thought_process: list[str] = Field(
        description="Ordered reasoning steps, one short sentence each."
    )


class WebSearchInput(BaseModel):
    """Input schema for the ``web_search`` tool."""

    query: str = Field(description="Natural-language search query.")


class NoInput(BaseModel):
    """Tools that take no arguments."""
