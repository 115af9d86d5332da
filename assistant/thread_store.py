"""Conversation thread persistence.

The agent's message thread is carried across scheduled runs. It is stored
as JSON (LangChain's ``messages_to_dict`` format) in the market's thread
file, and every save also writes a dated copy into the archive directory::

    resource/output/thread/
    ├── thread.json            # latest STOCK thread, reloaded next run
    ├── thread_crypto.json
    ├── stock/2026-10-18.json  # archive, one file per day
    └── crypto/...
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from langchain_core.messages import BaseMessage, messages_from_dict, messages_to_dict

logger = logging.getLogger(__name__)


class ThreadStore:
    def __init__(
        self,
        path: str | Path,
        archive_dir: str | Path | None = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._path = Path(path)
        self._archive_dir = Path(archive_dir) if archive_dir is not None else None
        self._clock = clock

    def load(self) -> list[BaseMessage]:
        """Return the stored thread, or an empty one if none is usable.

        The thread is context for the agent, not state of record, so a
        missing or corrupt file starts a fresh conversation.
        """
        if not self._path.exists():
            logger.warning("Thread history file not found: %s", self._path)
            return []

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            messages = messages_from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Failed to load thread history from %s: %s", self._path, exc)
            return []

        logger.info("Loaded thread history (%d items) from %s", len(messages), self._path)
        return messages

    def save(self, messages: list[BaseMessage]) -> Path | None:
        """Write *messages* to the thread file and the dated archive.

        Returns the archive path, if an archive directory is configured.
        """
        payload = json.dumps(messages_to_dict(messages), indent=2, default=str)

        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(payload, encoding="utf-8")
        logger.info("Saved thread history (%d items) to %s", len(messages), self._path)

        if self._archive_dir is None:
            return None
        self._archive_dir.mkdir(parents=True, exist_ok=True)
        archive_path = self._archive_dir / f"{self._clock().date().isoformat()}.json"
        archive_path.write_text(payload, encoding="utf-8")
        return archive_path
