"""Market partition shared by every portfolio, trade and balance record."""

from enum import Enum


class MarketType(str, Enum):
    """Independent portfolio partitions. Reads and writes never cross them."""

    STOCK = "STOCK"
    CRYPTO = "CRYPTO"

    @classmethod
    def parse(cls, value: str) -> "MarketType":
        """Case-insensitive lookup, e.g. ``"crypto"`` -> ``MarketType.CRYPTO``."""
        try:
            return cls(value.strip().upper())
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown market type '{value}'. Allowed: {allowed}.") from None
