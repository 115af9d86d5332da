"""Logging setup and on-disk trace output for a scheduled run.

Output layout under ``output_dir``::

    {output_dir}/traces/
    ├── agent-2026-10-18T14-30-00.log   # every log record of the run
    └── agent-2026-10-18T14-30-00.txt   # readable transcript of the agent's turn
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def run_stamp(now: datetime | None = None) -> str:
    """Filesystem-safe timestamp used to name a run's files."""
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H-%M-%S")


def traces_dir(output_dir: str | Path) -> Path:
    return Path(output_dir) / "traces"


def setup_logging(level: str, output_dir: str | Path, stamp: str) -> Path:
    """Configure the root logger for stdout plus a per-run log file.

    Returns the path of the log file.
    """
    log_dir = traces_dir(output_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / f"agent-{stamp}.log"

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    logging.basicConfig(
        level=getattr(logging, level),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
    )
    logging.getLogger().addHandler(file_handler)

    # HTTP client libraries log every request at INFO.
    for noisy in ("httpx", "httpcore", "yfinance"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return log_path


def write_transcript(output_dir: str | Path, stamp: str, transcript: str) -> Path:
    """Write the readable agent transcript next to the run's log file."""
    log_dir = traces_dir(output_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    path = log_dir / f"agent-{stamp}.txt"
    path.write_text(transcript, encoding="utf-8")
    return path
