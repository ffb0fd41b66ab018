"""
Response decision policy for issueagent.

Decides, from the rebuilt conversation, whether the triggering event requires
a reply. Only MUST_RESPOND leads to generation and posting.

Rules (first match wins):
1. No history - no action
2. Latest message is the agent's own - no action
3. Latest message @mentions the agent outside inline code - must respond
4. Latest message substantively answers a question the agent just asked - must respond
5. Otherwise - no action
"""

import re
from enum import Enum
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .history import AGENT_NAME
from .models import ConversationMessage, MessageRole

# Minimum length of a follow-up (after removing mentions) to count as substantive
MIN_FOLLOW_UP_LENGTH = 20

ACKNOWLEDGEMENTS = {
    "thanks",
    "thank you",
    "thanks!",
    "thank you!",
    "ok",
    "okay",
    "ok thanks",
    "got it",
    "sounds good",
    "lgtm",
    "+1",
    "👍",
}


class ResponseDecision(str, Enum):
    MUST_RESPOND = "must_respond"
    NO_ACTION = "no_action"


class ResponseDecisionResult(BaseModel):
    """Decision for one triggering event, with the reason it was taken."""

    model_config = ConfigDict(strict=True, frozen=True)

    decision: ResponseDecision = Field(description="Whether a reply is required")
    reason: str = Field(description="Human-readable rationale")

    @property
    def must_respond(self) -> bool:
        return self.decision == ResponseDecision.MUST_RESPOND


def _mention_pattern(handle: str) -> "re.Pattern[str]":
    return re.compile(rf"(?<![\w.])@{re.escape(handle)}(?=\s|$|[^\w])", re.IGNORECASE)


def is_in_inline_code(text: str, index: int) -> bool:
    """An odd number of backticks before index means we're inside inline code."""
    return text[:index].count("`") % 2 == 1


def find_mention(text: str, handles: Sequence[str]) -> Optional[str]:
    """Return the first handle @mentioned in text outside inline code, if any."""
    if not text or not text.strip():
        return None

    for handle in handles:
        for match in _mention_pattern(handle).finditer(text):
            if not is_in_inline_code(text, match.start()):
                return handle
    return None


def strip_mentions(text: str, handles: Sequence[str]) -> str:
    for handle in handles:
        text = _mention_pattern(handle).sub("", text)
    return text.strip()


def asks_question(text: str) -> bool:
    return "?" in text


def is_substantive_reply(text: str, handles: Sequence[str]) -> bool:
    """A reply that carries new information rather than a bare acknowledgement."""
    cleaned = strip_mentions(text, handles)
    if cleaned.lower().rstrip(".") in ACKNOWLEDGEMENTS:
        return False
    return len(cleaned) > MIN_FOLLOW_UP_LENGTH


class ResponseDecisionEngine:
    """Decides whether the agent must reply to the latest message."""

    def __init__(
        self,
        mention_handles: Optional[Sequence[str]] = None,
        respond_to_follow_ups: bool = True,
    ):
        handles = [h.strip().lstrip("@") for h in (mention_handles or [AGENT_NAME])]
        handles = [h for h in handles if h]
        self.mention_handles = tuple(handles) or (AGENT_NAME,)
        self.respond_to_follow_ups = respond_to_follow_ups

    def should_respond(self, history: Sequence[ConversationMessage]) -> ResponseDecisionResult:
        """Decide on the conversation; history is read, never modified."""
        if not history:
            return ResponseDecisionResult(
                decision=ResponseDecision.NO_ACTION, reason="No conversation history"
            )

        latest = history[-1]

        if latest.role == MessageRole.ASSISTANT:
            return ResponseDecisionResult(
                decision=ResponseDecision.NO_ACTION, reason="Latest message is from the agent"
            )

        handle = find_mention(latest.text, self.mention_handles)
        if handle:
            return ResponseDecisionResult(
                decision=ResponseDecision.MUST_RESPOND, reason=f"@mention of {handle} detected"
            )

        if self.respond_to_follow_ups and len(history) > 1:
            previous = history[-2]
            if (
                previous.role == MessageRole.ASSISTANT
                and asks_question(previous.text)
                and is_substantive_reply(latest.text, self.mention_handles)
            ):
                return ResponseDecisionResult(
                    decision=ResponseDecision.MUST_RESPOND,
                    reason="Follow-up to the agent's question",
                )

        return ResponseDecisionResult(
            decision=ResponseDecision.NO_ACTION, reason="No mention detected"
        )
