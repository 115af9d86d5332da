"""Authoritative cash balance.

The value returned here always replaces whatever cash figure sits in the
local holdings snapshot.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from models.market import MarketType
from trading.errors import BalanceUnavailable, BrokerError, LedgerReadError

if TYPE_CHECKING:
    from api_client.broker import BrokerClient
    from trading.ledger import TradeLedger

logger = logging.getLogger(__name__)


class BalanceSource(ABC):
    @abstractmethod
    def get_current_balance(self, market: MarketType) -> float:
        """Return the current cash balance; raise ``BalanceUnavailable`` otherwise."""


class BrokerBalanceSource(BalanceSource):
    """``cash_balance`` reported by the broker's balance endpoint."""

    def __init__(self, broker: BrokerClient) -> None:
        self._broker = broker

    def get_current_balance(self, market: MarketType) -> float:
        try:
            raw = self._broker.get_balance()
        except BrokerError as exc:
            logger.error("Error reading balance from broker: %s", exc)
            raise BalanceUnavailable(f"Broker balance unavailable: {exc}") from exc

        # 0 is a legitimate balance; null/missing is not.
        if raw is None or isinstance(raw, bool) or not isinstance(raw, (int, float)):
            logger.error("Broker returned no valid cash_balance: %r", raw)
            raise BalanceUnavailable(f"No valid cash_balance in broker response: {raw!r}")

        logger.info("Balance read from broker: $%s", raw)
        return float(raw)


class LedgerBalanceSource(BalanceSource):
    """Most recent balance row recorded in the ledger for the market."""

    def __init__(self, ledger: TradeLedger) -> None:
        self._ledger = ledger

    def get_current_balance(self, market: MarketType) -> float:
        try:
            return self._ledger.latest_balance(market)
        except LedgerReadError as exc:
            raise BalanceUnavailable(f"Ledger balance unavailable for {market.value}: {exc}") from exc
