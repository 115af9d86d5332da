"""LangChain tool factories: the interface between the agent and the trading core.

``make_trading_tools`` creates tool instances that close over a
``TradingContext``, so each tool call routes straight to the price resolver,
the portfolio aggregator or the trade executor of the active market.

Dependency failures are turned into plain error strings: the agent reads
them and carries on instead of the whole run aborting on one bad call.
"""

from __future__ import annotations

import logging
from typing import Any

from langchain_core.tools import StructuredTool

from api_client.llm.client import message_text
from models.agents import NoInput, ThinkInput, TickerInput, WebSearchInput
from models.decision import TradeRequest
from models.market import MarketType
from trading.context import TradingContext
from trading.errors import TradingError
from trading.executor import format_price, format_shares

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Tool factories
# ------------------------------------------------------------------

def make_think_tool() -> StructuredTool:
    def _think(thought_process: list[str]) -> str:
        for thought in thought_process:
            logger.info("Thought: %s", thought)
        return f"Completed thinking with {len(thought_process)} steps of reasoning."

    return StructuredTool.from_function(
        func=_think,
        name="think",
        description="Think about a given topic. Record each reasoning step before acting.",
        args_schema=ThinkInput,
    )


def make_web_search_tool(search_llm: Any) -> StructuredTool:
    def _web_search(query: str) -> str:
        logger.info("Searching the web for: %s", query)
        response = search_llm.invoke(
            "Please use web search to answer this query from the user and respond "
            f"with a short summary in markdown of what you found:\n\n{query}"
        )
        text = message_text(response)
        if not text.strip():
            return f"Web search returned no results for: {query}"
        return text

    return StructuredTool.from_function(
        func=_web_search,
        name="web_search",
        description="Search the web for news, market analysis and financial information.",
        args_schema=WebSearchInput,
    )


def make_price_tool(ctx: TradingContext) -> StructuredTool:
    market = ctx.market
    kind = "crypto" if market is MarketType.CRYPTO else "stock"

    def _get_price(ticker: str) -> str:
        try:
            price = ctx.prices.resolve_price(ticker, market)
        except TradingError as exc:
            return f"Error getting {kind} price for {ticker}: {exc}"
        logger.info("Searched for %s price for %s: $%s", kind, ticker, price)
        return str(price)

    return StructuredTool.from_function(
        func=_get_price,
        name=f"get_{kind}_price",
        description=f"Get the current price of a given {kind} ticker",
        args_schema=TickerInput,
    )


def make_portfolio_tools(ctx: TradingContext) -> list[StructuredTool]:
    market = ctx.market
    aggregator = ctx.aggregator

    def _get_portfolio() -> str:
        try:
            portfolio = aggregator.get_portfolio(market)
        except TradingError as exc:
            return f"Error reading portfolio: {exc}"
        logger.info("Fetched portfolio: $%s", portfolio.cash)

        holdings = "\n".join(
            f"  - {ticker}: {format_shares(shares)} shares"
            for ticker, shares in portfolio.holdings.items()
        ) or "  (none)"
        history = "\n".join(
            f"  - {trade.created_at.isoformat()} {trade.type} {trade.ticker} "
            f"{format_shares(trade.shares)} shares at ${format_price(trade.price)} per share, for a total of ${trade.total:,.2f}"
            for trade in portfolio.history
        ) or "  (none)"
        return (
            f"Your cash balance is ${portfolio.cash:,.2f}.\n"
            f"Current holdings:\n{holdings}\n\n"
            f"Trade history:\n{history}"
        )

    def _get_net_worth() -> str:
        try:
            net_worth = aggregator.calculate_net_worth(market)
            portfolio = aggregator.get_portfolio(market)
            annualized_return = aggregator.calculate_annualized_return(portfolio)
        except TradingError as exc:
            return f"Error computing net worth: {exc}"

        baseline = aggregator.initial_investment
        logger.info("Current net worth: $%s (%s%% annualized return)", net_worth, annualized_return)
        change = net_worth - baseline
        return (
            f"Your current net worth is ${net_worth:,.2f}\n"
            f"- Cash: ${portfolio.cash:,.2f}\n"
            f"- Holdings value: ${net_worth - portfolio.cash:,.2f}\n"
            f"- Annualized return: {annualized_return}% (started with ${baseline:,.2f})\n"
            f"- {'Up' if change >= 0 else 'Down'} ${abs(change):,.2f} from initial investment"
        )

    return [
        StructuredTool.from_function(
            func=_get_portfolio,
            name="get_portfolio",
            description="Get your portfolio: cash, holdings and trade history",
            args_schema=NoInput,
        ),
        StructuredTool.from_function(
            func=_get_net_worth,
            name="get_net_worth",
            description="Get your current net worth (total portfolio value)",
            args_schema=NoInput,
        ),
    ]


def make_trade_tools(ctx: TradingContext) -> list[StructuredTool]:
    market = ctx.market
    executor = ctx.executor

    def _buy(ticker: str, shares: float) -> str:
        try:
            return executor.buy(ticker, shares, market).message
        except TradingError as exc:
            logger.warning("Buy %s x%s aborted: %s", ticker, shares, exc)
            return f"Failed to execute buy trade for {ticker}. Error: {exc}"

    def _sell(ticker: str, shares: float) -> str:
        try:
            return executor.sell(ticker, shares, market).message
        except TradingError as exc:
            logger.warning("Sell %s x%s aborted: %s", ticker, shares, exc)
            return f"Failed to execute sell trade for {ticker}. Error: {exc}"

    return [
        StructuredTool.from_function(
            func=_buy,
            name="buy",
            description="Buy a given ticker at the current market price",
            args_schema=TradeRequest,
        ),
        StructuredTool.from_function(
            func=_sell,
            name="sell",
            description="Sell a given ticker at the current market price",
            args_schema=TradeRequest,
        ),
    ]


def make_trading_tools(ctx: TradingContext) -> list[StructuredTool]:
    """All tools the trading agent may call for ``ctx.market``."""
    tools = [make_think_tool()]
    if ctx.search_llm is not None:
        tools.append(make_web_search_tool(ctx.search_llm))
    tools.append(make_price_tool(ctx))
    tools.extend(make_portfolio_tools(ctx))
    tools.extend(make_trade_tools(ctx))
    return tools
