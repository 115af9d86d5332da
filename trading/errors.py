"""Error taxonomy for the trading core.

Dependency failures (prices, balance, ledger, broker) are raised. Business
declines (insufficient cash or shares, malformed requests) are not errors:
the executor returns them as ``TradeResult`` objects.
"""

from __future__ import annotations


class TradingError(Exception):
    """Base class for every failure raised by the trading core."""


class InvalidRequest(TradingError):
    """Malformed or non-positive trade parameters."""


class PriceUnavailable(TradingError):
    """Every price source failed for a ticker.

    ``failures`` keeps one ``(source_name, reason)`` pair per attempt in the
    order the sources were tried.
    """

    def __init__(self, ticker: str, failures: list[tuple[str, str]] | None = None, detail: str | None = None) -> None:
        self.ticker = ticker
        self.failures = list(failures or [])
        if detail is None:
            chain = "; ".join(f"{name}: {reason}" for name, reason in self.failures) or "no sources configured"
            detail = f"No price available for {ticker} ({chain})"
        super().__init__(detail)


class BalanceUnavailable(TradingError):
    """The balance endpoint errored or returned no usable balance."""


class LedgerReadError(TradingError):
    """Remote ledger read failed or returned an unusable payload."""


class LedgerWriteError(TradingError):
    """Remote ledger insert failed."""


class BrokerError(TradingError):
    """The broker rejected or failed to execute a trade."""


class HoldingsStoreError(TradingError):
    """The local holdings snapshot could not be read or written."""


class PartialPersistenceFailure(TradingError):
    """A trade went through but one of its secondary writes did not.

    Never raised out of the executor; it is logged and reported on the
    result so the row can be reconciled by hand.
    """

    def __init__(self, step: str, trade_code: str, cause: BaseException) -> None:
        self.step = step
        self.trade_code = trade_code
        self.cause = cause
        super().__init__(f"{step} failed for trade {trade_code}: {cause}")
