"""Remote trade ledger: append-only trades and balance tables.

Every call is logged for audit. Failures are logged and always re-raised as
``LedgerReadError`` / ``LedgerWriteError``; the ledger never swallows one.
Invalid trade input raises pydantic's ``ValidationError`` before any request
is sent.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable

import httpx
from pydantic import ValidationError

from models.market import MarketType
from models.trade import BalanceRecord, CreateTrade, Trade
from trading.errors import LedgerReadError, LedgerWriteError

if TYPE_CHECKING:
    from api_client.ledger import PostgrestClient

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TradeLedger:
    """Market-scoped reads and writes against the trades and balance tables."""

    def __init__(
        self,
        client: PostgrestClient,
        trades_table: str = "trades",
        balance_table: str = "balance",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._client = client
        self._trades_table = trades_table
        self._balance_table = balance_table
        self._clock = clock

    # ------------------------------------------------------------------
    # Trades
    # ------------------------------------------------------------------

    def append(self, trade: CreateTrade | dict[str, Any], market: MarketType) -> str:
        """Insert *trade* for *market* and return the id of the new row."""
        validated = CreateTrade.model_validate(trade)
        now = self._clock().isoformat()
        row = {
            **validated.model_dump(),
            "created_at": now,
            "modified_at": now,
            "market": market.value,
        }

        try:
            data = self._client.insert(self._trades_table, row)
        except (httpx.HTTPError, ValueError) as exc:
            logger.error(
                "Error writing %s trade %s (%s x%s) to ledger: %s",
                validated.type, validated.code, validated.ticker, validated.shares, exc,
            )
            raise LedgerWriteError(f"Error writing trade {validated.code} to ledger: {exc}") from exc

        row_id = data.get("id")
        if not row_id:
            logger.error("Ledger returned no id for trade %s", validated.code)
            raise LedgerWriteError(f"No id returned for trade {validated.code}")

        logger.info(
            "Trade saved to ledger: %s (%s %s x%s, code %s)",
            row_id, validated.type, validated.ticker, validated.shares, validated.code,
        )
        return str(row_id)

    def list(self, market: MarketType, limit: int = 100) -> list[Trade]:
        """Return up to *limit* trades for *market*, most recent first."""
        try:
            data = self._client.select(
                self._trades_table,
                filters={"market": market.value},
                order="created_at",
                descending=True,
                limit=limit,
            )
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Error reading trades for %s from ledger: %s", market.value, exc)
            raise LedgerReadError(f"Error reading trades from ledger: {exc}") from exc

        if not isinstance(data, list):
            logger.error("Unexpected trades payload for %s: %r", market.value, data)
            raise LedgerReadError(f"Unexpected trades payload: {type(data).__name__}")

        try:
            trades = [Trade.model_validate(row) for row in data]
        except ValidationError as exc:
            logger.error("Unusable trade rows for %s: %s", market.value, exc)
            raise LedgerReadError(f"Unusable trade rows in ledger: {exc}") from exc

        logger.info("%d trades read from ledger for %s", len(trades), market.value)
        return trades

    # ------------------------------------------------------------------
    # Balance
    # ------------------------------------------------------------------

    def append_balance(self, trade_code: str, balance: float, market: MarketType) -> str:
        """Record the cash *balance* after trade *trade_code*."""
        row = BalanceRecord(
            trade_code=trade_code, balance=balance, market=market, created_at=self._clock()
        ).model_dump(mode="json")
        try:
            data = self._client.insert(self._balance_table, row)
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Error writing balance $%s for trade %s: %s", balance, trade_code, exc)
            raise LedgerWriteError(f"Error writing balance for trade {trade_code}: {exc}") from exc

        row_id = data.get("id")
        if not row_id:
            logger.error("Ledger returned no id for balance of trade %s", trade_code)
            raise LedgerWriteError(f"No id returned for balance of trade {trade_code}")

        logger.info("Balance $%s saved to ledger: %s (trade %s)", balance, row_id, trade_code)
        return str(row_id)

    def latest_balance(self, market: MarketType) -> float:
        """Return the most recent balance recorded for *market*."""
        try:
            data = self._client.select(
                self._balance_table,
                columns="balance",
                filters={"market": market.value},
                order="created_at",
                descending=True,
                limit=1,
            )
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Error reading balance for %s from ledger: %s", market.value, exc)
            raise LedgerReadError(f"Error reading balance from ledger: {exc}") from exc

        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            logger.error("No balance found in ledger for %s: %r", market.value, data)
            raise LedgerReadError(f"No balance found for {market.value}")

        balance = data[0].get("balance")
        if balance is None or isinstance(balance, bool) or not isinstance(balance, (int, float)):
            logger.error("Invalid balance in ledger for %s: %r", market.value, balance)
            raise LedgerReadError(f"Invalid balance for {market.value}: {balance!r}")

        logger.info("Balance read from ledger for %s: $%s", market.value, balance)
        return float(balance)
