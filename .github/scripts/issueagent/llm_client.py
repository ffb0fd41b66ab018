"""
LLM client utilities for issueagent.

Uses LiteLLM for unified access to any chat model provider. The model is
chosen by the workflow; provider credentials (ANTHROPIC_API_KEY,
AZURE_API_KEY / AZURE_API_BASE, OPENAI_API_KEY, ...) are read by LiteLLM
from the environment.

Configure via the action input or environment:
    INPUT_MODEL=azure/gpt-4o          (Azure OpenAI deployment)
    MODEL=claude-sonnet-4-5-20250929  (Anthropic)
    MODEL=claude                      (alias)

When no model is configured, issueagent replies with canned responses.
"""

import os
from typing import Dict, Optional

import litellm
from pydantic import BaseModel, ConfigDict, Field

# Suppress LiteLLM's verbose logging
litellm.suppress_debug_info = True


class LLMUsage(BaseModel):
    """Token usage and cost information from an LLM call."""

    model_config = ConfigDict(strict=True, frozen=True)

    model: str = Field(description="Model identifier used for the call")
    prompt_tokens: int = Field(ge=0, description="Number of input tokens")
    completion_tokens: int = Field(ge=0, description="Number of output tokens")
    total_tokens: int = Field(ge=0, description="Total tokens (prompt + completion)")
    cost_usd: float = Field(ge=0.0, description="Estimated cost in USD")

    def format_compact(self) -> str:
        """Format a compact single-line summary."""
        return f"{self.total_tokens:,} tokens · ${self.cost_usd:.4f} · {self.model}"


class LLMResponse(BaseModel):
    """Response text from an LLM call plus usage."""

    model_config = ConfigDict(strict=True)

    content: str = Field(description="The main response content")
    usage: Optional[LLMUsage] = Field(default=None, description="Token usage and cost info")


# Model aliases for convenience
MODEL_ALIASES: Dict[str, str] = {
    "claude": "claude-sonnet-4-5-20250929",
    "claude-sonnet": "claude-sonnet-4-5-20250929",
    "claude-haiku": "claude-haiku-4-5-20251001",
    "claude-opus": "claude-opus-4-5-20251101",
    "gpt-4o": "gpt-4o",
    "gpt-4o-mini": "gpt-4o-mini",
    "gemini": "gemini/gemini-2.5-flash",
    "cheap": "claude-haiku-4-5-20251001",
    "default": "claude-sonnet-4-5-20250929",
}


def get_model() -> Optional[str]:
    """
    Get the configured model, resolving aliases.

    The action input (INPUT_MODEL) wins over the MODEL environment variable.
    Returns None when neither is set.
    """
    model = (os.environ.get("INPUT_MODEL") or os.environ.get("MODEL") or "").strip()
    if not model:
        return None
    return MODEL_ALIASES.get(model, model)


def call_llm(
    prompt: str,
    system: Optional[str] = None,
    model: Optional[str] = None,
    max_tokens: int = 4096,
    temperature: float = 0.3,
) -> LLMResponse:
    """
    Call the LLM and return the response with usage.

    Raises:
        ValueError: If no model is given or configured.
        Any LiteLLM/provider exception, unchanged.
    """
    model = model or get_model()
    if not model:
        raise ValueError("No model configured. Set the 'model' input or MODEL environment variable.")

    messages = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})

    response = litellm.completion(
        model=model, messages=messages, max_tokens=max_tokens, temperature=temperature
    )

    message = response.choices[0].message

    usage_data = response.usage
    prompt_tokens = getattr(usage_data, "prompt_tokens", 0) or 0
    completion_tokens = getattr(usage_data, "completion_tokens", 0) or 0
    total_tokens = getattr(usage_data, "total_tokens", 0) or (prompt_tokens + completion_tokens)

    try:
        cost = float(litellm.completion_cost(completion_response=response) or 0.0)
    except Exception:
        cost = 0.0

    usage = LLMUsage(
        model=model,
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=total_tokens,
        cost_usd=cost,
    )

    return LLMResponse(content=message.content or "", usage=usage)
