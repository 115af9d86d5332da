"""LangChain chat model construction shared by the agent and the price fallback."""

from __future__ import annotations

from typing import Any, Protocol


class LLMClient(Protocol):
    def invoke(self, input: Any, config: Any | None = None, **kwargs: Any) -> Any:
        ...


def create_chat_model(provider: str, model: str, temperature: float | None = None):
    """Instantiate the appropriate LangChain chat model."""
    provider = provider.lower()
    kwargs: dict[str, Any] = {"model": model}
    if temperature is not None:
        kwargs["temperature"] = temperature

    if provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(**kwargs)
    elif provider == "anthropic":
        from langchain_anthropic import ChatAnthropic

        return ChatAnthropic(**kwargs)
    else:
        raise ValueError(
            f"Unsupported LLM provider '{provider}'. "
            f"Supported: 'openai', 'anthropic'."
        )


def create_search_model(provider: str, model: str) -> LLMClient:
    """Chat model with the provider's hosted web-search tool bound."""
    provider = provider.lower()

    if provider == "openai":
        from langchain_openai import ChatOpenAI

        llm = ChatOpenAI(model=model, use_responses_api=True)
        return llm.bind_tools([{"type": "web_search_preview"}])
    elif provider == "anthropic":
        from langchain_anthropic import ChatAnthropic

        llm = ChatAnthropic(model=model)
        return llm.bind_tools(
            [{"type": "web_search_20250305", "name": "web_search", "max_uses": 3}]
        )
    else:
        raise ValueError(
            f"Unsupported LLM provider '{provider}'. "
            f"Supported: 'openai', 'anthropic'."
        )


def message_text(message: Any) -> str:
    """Plain text of a chat model reply, whatever its content block layout."""
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content)
