"""
Reply generation for issueagent.

The generator is the only place that talks to the LLM. It never raises for
provider problems: any failure, or a missing model configuration, degrades to
a canned reply chosen by whether the agent has spoken in the thread before.
"""

from typing import Optional, Sequence

from .decision import ResponseDecision, ResponseDecisionResult
from .history import AGENT_NAME
from .llm_client import call_llm
from .models import ConversationMessage, MessageRole
from .prompts import (
    ACKNOWLEDGEMENT_REPLY,
    FIRST_INTERACTION_REPLY,
    FOLLOW_UP_REPLY,
    ISSUE_AGENT_SYSTEM_PROMPT,
)


def build_conversation_prompt(history: Sequence[ConversationMessage]) -> str:
    """Render the conversation as the user prompt for the model."""
    lines = ["## Previous conversation:", ""]

    for message in history:
        if message.role == MessageRole.ASSISTANT:
            label = f"Assistant ({AGENT_NAME})"
        else:
            label = f"User ({message.author_name})"
        lines.append(f"**{label}:**")
        lines.append(message.text)
        lines.append("")

    lines.append("## Your task:")
    lines.append(
        "Based on the conversation above, provide a helpful response following "
        "the responding policy in your instructions."
    )
    return "\n".join(lines) + "\n"


def generate_fallback_response(
    history: Sequence[ConversationMessage], decision: ResponseDecisionResult
) -> str:
    """Deterministic reply used when the model is unavailable."""
    if decision.decision != ResponseDecision.MUST_RESPOND:
        return ACKNOWLEDGEMENT_REPLY

    has_replied_before = any(m.role == MessageRole.ASSISTANT for m in history)
    return FOLLOW_UP_REPLY if has_replied_before else FIRST_INTERACTION_REPLY


class AgentResponseGenerator:
    """Generates the reply text for a conversation."""

    def __init__(self, model: Optional[str] = None, max_tokens: int = 4096):
        self.model = model
        self.max_tokens = max_tokens

    def generate_response(
        self, history: Sequence[ConversationMessage], decision: ResponseDecisionResult
    ) -> str:
        if decision.decision != ResponseDecision.MUST_RESPOND:
            return generate_fallback_response(history, decision)

        if not self.model:
            print("Warning: No model configured - using fallback response")
            return generate_fallback_response(history, decision)

        print(f"Generating response with {self.model} ({len(history)} messages of context)")
        try:
            response = call_llm(
                build_conversation_prompt(history),
                system=ISSUE_AGENT_SYSTEM_PROMPT,
                model=self.model,
                max_tokens=self.max_tokens,
            )
        except Exception as e:
            print(f"Warning: Error generating response - using fallback: {e}")
            return generate_fallback_response(history, decision)

        if not response.content.strip():
            print("Warning: Model returned an empty response - using fallback")
            return generate_fallback_response(history, decision)

        if response.usage:
            print(f"LLM usage: {response.usage.format_compact()}")
        return response.content
