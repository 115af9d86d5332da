#!/usr/bin/env python3
"""CLI entrypoint for one scheduled run of the trading assistant.

Usage::

    python run_assistant.py --config config/example.yaml
    python run_assistant.py --config config/example.yaml --market crypto

Secrets (LLM API key, broker token, ledger URL/key, webhook URL) are read
from the environment; a ``.env`` file in the working directory is loaded
first. The market can also be chosen with ``ASSISTANT_MARKET_TYPE``.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os

from dotenv import load_dotenv

from assistant.run_logging import run_stamp, setup_logging
from assistant.runner import AssistantRunner
from models.config import AssistantConfig
from models.market import MarketType


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the autonomous trading assistant once.",
    )
    parser.add_argument(
        "--config",
        default=None,
        type=str,
        help="Path to the YAML configuration file (default: built-in defaults).",
    )
    parser.add_argument(
        "--market",
        default=None,
        type=str,
        help="Market to trade: 'stock' or 'crypto' (overrides config and ASSISTANT_MARKET_TYPE).",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO).",
    )
    return parser.parse_args()


def _load_config(args: argparse.Namespace) -> AssistantConfig:
    config = AssistantConfig.from_yaml(args.config) if args.config else AssistantConfig()
    market = args.market or os.getenv("ASSISTANT_MARKET_TYPE")
    if market:
        config = config.model_copy(update={"market": MarketType.parse(market)})
    return config


async def _main() -> None:
    load_dotenv()
    args = _parse_args()
    config = _load_config(args)
    log_path = setup_logging(args.log_level, config.output_dir, run_stamp())

    logger = logging.getLogger(__name__)
    logger.info("Logging to %s", log_path)
    logger.info("Config loaded: market='%s', execution='%s'", config.market.value, config.execution_mode)

    runner = AssistantRunner(config)
    await runner.run()


def cli() -> None:
    asyncio.run(_main())


if __name__ == "__main__":
    cli()
