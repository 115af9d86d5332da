"""Local JSON holdings snapshot, one file per market.

The document is read and written as a whole (last writer wins). ``history``
is always written empty because trade history lives in the remote ledger.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from models.portfolio import HoldingsSnapshot
from trading.errors import HoldingsStoreError

logger = logging.getLogger(__name__)


class HoldingsStore:
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> HoldingsSnapshot:
        """Read the snapshot. A missing file is an empty portfolio."""
        if not self._path.exists():
            logger.warning("Holdings file not found, starting empty: %s", self._path)
            return HoldingsSnapshot()

        try:
            raw = self._path.read_text(encoding="utf-8")
            return HoldingsSnapshot.model_validate_json(raw)
        except (OSError, ValidationError) as exc:
            logger.error("Failed to read holdings from %s: %s", self._path, exc)
            raise HoldingsStoreError(f"Invalid holdings file {self._path}: {exc}") from exc

    def save(self, snapshot: HoldingsSnapshot) -> None:
        """Overwrite the snapshot file with *snapshot* (history cleared)."""
        document = snapshot.model_copy(update={"history": []}).model_dump(mode="json")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to write holdings to %s: %s", self._path, exc)
            raise HoldingsStoreError(f"Could not write holdings file {self._path}: {exc}") from exc
        logger.debug("Saved holdings to %s: %s", self._path, document["holdings"])
