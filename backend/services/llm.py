"""Completion API boundary: chat model factory, invocation, and token usage extraction."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from config import settings
from models.conversation import MessageRole
from services.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("openai", "anthropic")

_MESSAGE_TYPES = {
    MessageRole.SYSTEM: SystemMessage,
    MessageRole.USER: HumanMessage,
    MessageRole.ASSISTANT: AIMessage,
}


@dataclass
class Completion:
    text: str
    total_tokens: int


def get_api_key(provider: str) -> str:
    if provider == "openai":
        return settings.OPENAI_API_KEY
    if provider == "anthropic":
        return settings.ANTHROPIC_API_KEY
    raise ValueError(f"Unsupported provider type: {provider}")


def create_chat_model(provider: str, model_name: str, *, max_tokens: int | None = None) -> BaseChatModel:
    """Build a LangChain chat model for *provider*.

    Raises ServiceUnavailableError when the provider has no API key configured.
    """
    api_key = get_api_key(provider)
    if not api_key:
        raise ServiceUnavailableError("AI service not configured.")

    kwargs: dict = {"model": model_name}
    if max_tokens is not None:
        kwargs["max_tokens"] = max_tokens

    if provider == "openai":
        from langchain_openai import ChatOpenAI
        return ChatOpenAI(api_key=api_key, **kwargs)

    from langchain_anthropic import ChatAnthropic
    return ChatAnthropic(api_key=api_key, **kwargs)


def to_langchain_messages(messages: list[tuple[MessageRole, str]]) -> list[BaseMessage]:
    return [_MESSAGE_TYPES[role](content=content) for role, content in messages]


def extract_usage_from_response(response) -> dict:
    """Extract token usage from a single AIMessage (or similar LangChain response).

    Returns dict with input_tokens, output_tokens, total_tokens.
    """
    usage = getattr(response, "usage_metadata", None)
    if usage and isinstance(usage, dict):
        input_t = usage.get("input_tokens", 0) or 0
        output_t = usage.get("output_tokens", 0) or 0
        return {
            "input_tokens": input_t,
            "output_tokens": output_t,
            "total_tokens": usage.get("total_tokens") or input_t + output_t,
        }

    # Older provider integrations only report usage in response_metadata
    metadata = getattr(response, "response_metadata", None) or {}
    token_usage = metadata.get("token_usage") or metadata.get("usage") or {}
    if isinstance(token_usage, dict) and token_usage:
        input_t = token_usage.get("prompt_tokens", token_usage.get("input_tokens", 0)) or 0
        output_t = token_usage.get("completion_tokens", token_usage.get("output_tokens", 0)) or 0
        return {
            "input_tokens": input_t,
            "output_tokens": output_t,
            "total_tokens": token_usage.get("total_tokens") or input_t + output_t,
        }
    return {"input_tokens": 0, "output_tokens": 0, "total_tokens": 0}


def _content_text(content) -> str:
    # content can be a string or a list of content blocks
    if isinstance(content, list):
        return "".join(
            block.get("text", "") if isinstance(block, dict) else str(block)
            for block in content
        )
    return content or ""


def complete(
    provider: str,
    model_name: str,
    messages: list[tuple[MessageRole, str]],
    *,
    max_tokens: int,
) -> Completion:
    """Send *messages* to the completion API and return reply text plus total token usage."""
    llm = create_chat_model(provider, model_name, max_tokens=max_tokens)
    try:
        response = llm.invoke(to_langchain_messages(messages))
    except Exception as exc:
        logger.exception("Completion request to %s/%s failed", provider, model_name)
        raise ServiceUnavailableError("AI service request failed.") from exc

    usage = extract_usage_from_response(response)
    logger.debug(
        "Completion %s/%s used %d tokens (%d in, %d out)",
        provider, model_name, usage["total_tokens"], usage["input_tokens"], usage["output_tokens"],
    )
    return Completion(text=_content_text(response.content), total_tokens=usage["total_tokens"])
