"""Scheduled run: one pass of the trading agent over one market.

Lifecycle:
    1. Build the trading context for the configured market.
    2. Load the carried-over conversation thread.
    3. Bind the trading tools and invoke the agent with the kickoff message.
    4. Save the thread and the run transcript.
    5. Send the run report (best effort).
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from agents.tools import make_trading_tools
from agents.trading_agent import TradingAgent
from assistant.notifier import WebhookNotifier
from assistant.run_logging import run_stamp, write_transcript
from assistant.thread_store import ThreadStore
from models.agents import AgentInvocation, AgentInvocationResult
from models.config import AssistantConfig
from trading.context import TradingContext, build_trading_context

logger = logging.getLogger(__name__)


def load_system_prompt(path: str | Path) -> str | None:
    """Read the market's system prompt file, or ``None`` if it does not exist."""
    path = Path(path)
    if not path.exists():
        logger.warning("System prompt not found at %s; using the default prompt.", path)
        return None
    return path.read_text(encoding="utf-8")


def kickoff_prompt(now: datetime, initial_investment: float) -> str:
    return (
        f"It's {now.strftime('%m/%d/%Y, %I:%M:%S %p')} UTC. Time for your trading analysis! "
        "Review your portfolio, scan the markets for opportunities, and make strategic trades "
        f"to grow your initial ${initial_investment:,.0f} investment. Good luck!"
    )


class AssistantRunner:
    """Drives one scheduled run for ``config.market``.

    Collaborators can be injected (tests, alternative wiring); anything not
    supplied is built from the configuration.
    """

    def __init__(
        self,
        config: AssistantConfig,
        context: TradingContext | None = None,
        agent: TradingAgent | None = None,
        notifier: WebhookNotifier | None = None,
        thread_store: ThreadStore | None = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._config = config
        self._context = context
        self._agent = agent
        self._notifier = notifier
        self._thread_store = thread_store
        self._clock = clock

    async def run(self) -> AgentInvocationResult:
        """Execute the run and return the agent's result."""
        config = self._config
        market_config = config.market_config
        owns_context = self._context is None
        ctx = self._context or build_trading_context(config)

        try:
            thread_store = self._thread_store or ThreadStore(
                market_config.thread_path, market_config.thread_dir, clock=self._clock
            )
            history = thread_store.load()

            agent = self._agent or TradingAgent(
                config.agent, system_prompt=load_system_prompt(market_config.prompt_path)
            )
            agent.bind_tools(make_trading_tools(ctx))

            now = self._clock()
            invocation = AgentInvocation(
                market=config.market,
                prompt=kickoff_prompt(now, config.initial_investment),
                history=history,
            )

            logger.info("Starting %s (%s)", market_config.name, config.market.value)
            t0 = time.monotonic()
            result = await agent.invoke(invocation)
            elapsed = time.monotonic() - t0
            logger.info("Agent finished in %.1fs: %s", elapsed, result.final_output)

            thread_store.save(result.messages)
            if isinstance(result.raw_output, str):
                transcript = write_transcript(config.output_dir, run_stamp(now), result.raw_output)
                logger.info("Wrote run transcript to %s", transcript)

            notifier = self._notifier or WebhookNotifier(
                config.notification.webhook_url if config.notification.enabled else None,
                timeout=config.notification.timeout,
            )
            notifier.send(f"{market_config.name} report", result.final_output or "(no output)")
            return result
        finally:
            if owns_context:
                ctx.close()
