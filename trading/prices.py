"""Price resolution over an ordered chain of sources.

``PriceResolver`` walks its sources in order and returns the first positive
price. A source that raises, times out or returns something that is not a
positive finite number is logged and skipped. When every source has failed
the resolver raises ``PriceUnavailable`` with the full failure chain.

Nothing is cached: every call re-resolves.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Sequence

import yfinance as yf
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field, ValidationError

from api_client.llm.client import LLMClient, message_text
from models.market import MarketType
from trading.errors import PriceUnavailable

if TYPE_CHECKING:
    from api_client.broker import BrokerClient

logger = logging.getLogger(__name__)


class PriceSource(ABC):
    """One way of obtaining a current price."""

    name: str = "source"

    def supports(self, market: MarketType) -> bool:
        return True

    @abstractmethod
    def fetch(self, ticker: str, market: MarketType) -> Any:
        """Return the current price of *ticker*; may raise on failure."""


class BrokerQuoteSource(PriceSource):
    """Quote endpoint of the remote broker."""

    name = "broker"

    def __init__(self, broker: BrokerClient) -> None:
        self._broker = broker

    def fetch(self, ticker: str, market: MarketType) -> Any:
        return self._broker.get_price(ticker)


class YahooQuoteSource(PriceSource):
    """Last traded price from Yahoo Finance. Crypto tickers are quoted in USD."""

    name = "yahoo"

    @staticmethod
    def format_symbol(ticker: str, market: MarketType) -> str:
        ticker = ticker.strip().upper()
        if market is MarketType.CRYPTO and "-" not in ticker:
            return f"{ticker}-USD"
        return ticker

    def fetch(self, ticker: str, market: MarketType) -> Any:
        symbol = self.format_symbol(ticker, market)
        yf_ticker = yf.Ticker(symbol)

        price = None
        try:
            price = yf_ticker.fast_info["lastPrice"]
        except (KeyError, TypeError, ValueError):
            logger.debug("[Yahoo] fast_info has no last price for %s", symbol)

        if price is None or (isinstance(price, float) and math.isnan(price)):
            history = yf_ticker.history(period="1d")
            if history is None or history.empty:
                raise ValueError(f"No data returned for {symbol}")
            price = history["Close"].iloc[-1]

        return float(price)


class PriceQuote(BaseModel):
    """Structured answer the AI fallback is constrained to."""

    price: float = Field(gt=0, description="Current price in USD per share/coin.")


_EXTRACT_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You extract prices from short market reports. Reply with the single "
            "current price in USD of the requested instrument. Do not guess.",
        ),
        ("user", "Instrument: {instrument}\n\nReport:\n{answer}"),
    ]
)


class LLMPriceSource(PriceSource):
    """AI search-and-extract fallback.

    A web-search enabled model answers the price question in prose, then a
    second model extracts ``PriceQuote`` from that answer. Anything that does
    not validate as a positive number raises ``PriceUnavailable``.
    """

    name = "llm"

    def __init__(self, search_llm: LLMClient, extract_llm: Any) -> None:
        self._search_llm = search_llm
        self._extractor = extract_llm.with_structured_output(PriceQuote)

    @staticmethod
    def build_question(ticker: str, market: MarketType) -> str:
        if market is MarketType.CRYPTO:
            return (
                f'What is the current price of the crypto "{ticker}"? '
                "Please use web search to get the latest price and then answer in short."
            )
        return (
            f"What is the current price of the stock ticker ${ticker}? "
            "Please use web search to get the latest price and then answer in short."
        )

    def fetch(self, ticker: str, market: MarketType) -> Any:
        instrument = f"{ticker} ({market.value.lower()})"
        answer = message_text(self._search_llm.invoke(self.build_question(ticker, market)))
        if not answer.strip():
            raise PriceUnavailable(ticker, detail=f"Web search returned no answer for {instrument}")

        messages = _EXTRACT_PROMPT.format_messages(instrument=instrument, answer=answer)
        try:
            quote = self._extractor.invoke(messages)
            if isinstance(quote, dict):
                quote = PriceQuote.model_validate(quote)
        except (ValidationError, ValueError) as exc:
            raise PriceUnavailable(ticker, detail=f"Invalid structured price for {instrument}: {exc}") from exc

        if not isinstance(quote, PriceQuote):
            raise PriceUnavailable(ticker, detail=f"No structured price for {instrument}")
        return quote.price


def coerce_price(value: Any) -> float | None:
    """Return *value* as a price if it is a positive finite number, else ``None``."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    price = float(value)
    if not math.isfinite(price) or price <= 0:
        return None
    return price


class PriceResolver:
    """Resolve a ticker's price by trying sources in order."""

    def __init__(self, sources: Sequence[PriceSource]) -> None:
        self._sources = list(sources)

    @property
    def sources(self) -> list[PriceSource]:
        return list(self._sources)

    def resolve_price(self, ticker: str, market: MarketType) -> float:
        """Return the first positive price any source reports for *ticker*.

        Raises ``PriceUnavailable`` when all sources are exhausted.
        """
        logger.info("Searching price for %s: %s", market.value.lower(), ticker)
        failures: list[tuple[str, str]] = []

        for source in self._sources:
            if not source.supports(market):
                continue
            try:
                raw = source.fetch(ticker, market)
            except Exception as exc:  # each source failure is soft
                logger.warning("Price source '%s' failed for %s: %s", source.name, ticker, exc)
                failures.append((source.name, str(exc)))
                continue

            price = coerce_price(raw)
            if price is None:
                logger.warning("Price source '%s' returned invalid price for %s: %r", source.name, ticker, raw)
                failures.append((source.name, f"invalid price {raw!r}"))
                continue

            logger.info("Found price for %s: $%s via %s", ticker, price, source.name)
            return price

        error = PriceUnavailable(ticker, failures)
        logger.error("%s", error)
        raise error
