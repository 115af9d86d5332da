"""Trading agent: one LLM with the trading tools, run as a ReAct loop.

The tool-calling loop itself is LangGraph's prebuilt ReAct agent. This module
only chooses the model, supplies the system prompt and the thread, and
extracts the final answer.
"""

from __future__ import annotations

import json
import logging

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_core.tools import BaseTool
from langgraph.prebuilt import create_react_agent

from api_client.llm.client import create_chat_model, message_text
from models.agents import AgentInvocation, AgentInvocationResult
from models.config import AgentConfig

logger = logging.getLogger(__name__)

# Used when neither an override nor the market's prompt file is available.
DEFAULT_SYSTEM_PROMPT = """\
You are an autonomous trading assistant managing a real-money portfolio that \
started with $1,000. Review your portfolio, research the market, and decide \
whether to buy, sell or hold.

Guidelines:
- Call think before every decision and record your reasoning.
- Check prices and your cash before buying, and your holdings before selling.
- If a trade is declined, read the message and adjust instead of retrying blindly.
- Finish with a short summary of what you did and why.
"""


class TradingAgent:
    """ReAct agent over the tools bound to one market's trading context."""

    def __init__(self, config: AgentConfig, system_prompt: str | None = None, llm=None) -> None:
        self.config = config
        self._llm = llm if llm is not None else create_chat_model(
            config.llm_provider, config.llm_model, config.temperature
        )
        self._tools: list[BaseTool] = []
        self._system_prompt = config.system_prompt_override or system_prompt or DEFAULT_SYSTEM_PROMPT

    def bind_tools(self, tools: list[BaseTool]) -> None:
        """Store the tools for the next ``invoke``."""
        self._tools = list(tools)

    async def invoke(self, invocation: AgentInvocation) -> AgentInvocationResult:
        """Run the agent once over the carried-over thread plus the kickoff prompt."""
        if not self._tools:
            raise RuntimeError("bind_tools() must be called before invoke().")

        agent_executor = create_react_agent(
            self._llm,
            tools=self._tools,
            prompt=self._system_prompt,
        )

        messages: list[BaseMessage] = [*invocation.history, HumanMessage(content=invocation.prompt)]

        result = await agent_executor.ainvoke(
            {"messages": messages},
            config={"recursion_limit": self.config.max_turns * 2 + 5},
        )

        thread = list(result.get("messages", []))
        final_output = _final_output(thread)

        logger.info(
            "Agent finished %s run: %d message(s), %d tool call(s)",
            invocation.market.value,
            len(thread) - len(invocation.history),
            _count_tool_calls(thread[len(invocation.history):]),
        )

        return AgentInvocationResult(
            final_output=final_output,
            messages=thread,
            raw_output=serialize_messages(thread[len(invocation.history):]),
        )


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _final_output(messages: list[BaseMessage]) -> str:
    """Text of the last AI message, or an empty string if there is none."""
    for msg in reversed(messages):
        if isinstance(msg, AIMessage):
            text = message_text(msg)
            if text:
                return text
    return ""


def _count_tool_calls(messages: list[BaseMessage]) -> int:
    return sum(len(getattr(msg, "tool_calls", None) or []) for msg in messages)


def serialize_messages(messages: list) -> str:
    """Convert LangChain message objects into a human-readable trace string."""
    parts: list[str] = []
    for msg in messages:
        role = msg.type.upper()  # "system", "human", "ai", "tool"
        content = message_text(msg)

        parts.append(f"--- {role} ---")
        if content:
            parts.append(content)

        for tc in getattr(msg, "tool_calls", None) or []:
            name = tc.get("name", "unknown")
            args = tc.get("args", {})
            parts.append(f"[tool_call: {name}({json.dumps(args, indent=2)})]")

    return "\n".join(parts)
