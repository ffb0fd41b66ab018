"""Tests for reply generation."""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from scripts.issueagent.decision import ResponseDecision, ResponseDecisionResult
from scripts.issueagent.llm_client import LLMResponse, LLMUsage
from scripts.issueagent.models import ConversationMessage, MessageRole
from scripts.issueagent.prompts import (
    ACKNOWLEDGEMENT_REPLY,
    FIRST_INTERACTION_REPLY,
    FOLLOW_UP_REPLY,
    ISSUE_AGENT_SYSTEM_PROMPT,
)
from scripts.issueagent.response_generator import (
    AgentResponseGenerator,
    build_conversation_prompt,
    generate_fallback_response,
)

WHEN = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)
CALL_LLM = "scripts.issueagent.response_generator.call_llm"

MUST = ResponseDecisionResult(decision=ResponseDecision.MUST_RESPOND, reason="@mention of issueagent detected")
SKIP = ResponseDecisionResult(decision=ResponseDecision.NO_ACTION, reason="No mention detected")


def user(text, author="alice"):
    return ConversationMessage(
        message_id=f"u-{len(text)}", role=MessageRole.USER, author_name=author, text=text, created_at=WHEN
    )


def agent(text):
    return ConversationMessage(
        message_id=f"a-{len(text)}",
        role=MessageRole.ASSISTANT,
        author_name="issueagent",
        text=text,
        created_at=WHEN,
    )


def llm_reply(content):
    usage = LLMUsage(model="gpt-4o", prompt_tokens=10, completion_tokens=5, total_tokens=15, cost_usd=0.001)
    return LLMResponse(content=content, usage=usage)


class TestBuildConversationPrompt:
    def test_renders_roles_in_order(self):
        prompt = build_conversation_prompt(
            [user("Export reports\n\nAs CSV."), agent("Who needs them?"), user("@issueagent finance")]
        )

        assert prompt.startswith("## Previous conversation:\n")
        assert prompt.index("**User (alice):**") < prompt.index("**Assistant (issueagent):**")
        assert "Export reports\n\nAs CSV." in prompt
        assert prompt.rstrip().endswith("following the responding policy in your instructions.")
        assert "## Your task:" in prompt


class TestFallbackResponse:
    """Canned replies chosen from the conversation shape."""

    def test_first_interaction(self):
        assert generate_fallback_response([user("@issueagent hi")], MUST) == FIRST_INTERACTION_REPLY

    def test_follow_up_when_agent_has_replied(self):
        history = [user("Issue"), agent("Question?"), user("@issueagent answer")]
        assert generate_fallback_response(history, MUST) == FOLLOW_UP_REPLY

    def test_acknowledgement_when_no_action(self):
        assert generate_fallback_response([user("thanks")], SKIP) == ACKNOWLEDGEMENT_REPLY


class TestAgentResponseGenerator:
    """Tests for AgentResponseGenerator.generate_response."""

    def test_uses_model_reply(self):
        generator = AgentResponseGenerator(model="gpt-4o", max_tokens=512)

        with patch(CALL_LLM, return_value=llm_reply("Here is a refined story.")) as mock_call:
            reply = generator.generate_response([user("@issueagent help")], MUST)

        assert reply == "Here is a refined story."
        mock_call.assert_called_once()
        assert mock_call.call_args.kwargs["system"] == ISSUE_AGENT_SYSTEM_PROMPT
        assert mock_call.call_args.kwargs["model"] == "gpt-4o"
        assert mock_call.call_args.kwargs["max_tokens"] == 512
        assert "@issueagent help" in mock_call.call_args.args[0]

    def test_no_model_uses_fallback(self):
        with patch(CALL_LLM) as mock_call:
            reply = AgentResponseGenerator(model=None).generate_response([user("@issueagent hi")], MUST)

        assert reply == FIRST_INTERACTION_REPLY
        mock_call.assert_not_called()

    def test_provider_error_uses_fallback(self):
        history = [user("Issue"), agent("Question?"), user("@issueagent answer")]

        with patch(CALL_LLM, side_effect=RuntimeError("rate limited")):
            reply = AgentResponseGenerator(model="gpt-4o").generate_response(history, MUST)

        assert reply == FOLLOW_UP_REPLY

    def test_empty_model_reply_uses_fallback(self):
        with patch(CALL_LLM, return_value=llm_reply("   ")):
            reply = AgentResponseGenerator(model="gpt-4o").generate_response([user("@issueagent")], MUST)

        assert reply == FIRST_INTERACTION_REPLY

    def test_no_action_does_not_call_model(self):
        with patch(CALL_LLM) as mock_call:
            reply = AgentResponseGenerator(model="gpt-4o").generate_response([user("ok")], SKIP)

        assert reply == ACKNOWLEDGEMENT_REPLY
        mock_call.assert_not_called()

    def test_cancellation_propagates(self):
        with patch(CALL_LLM, side_effect=KeyboardInterrupt):
            with pytest.raises(KeyboardInterrupt):
                AgentResponseGenerator(model="gpt-4o").generate_response([user("@issueagent")], MUST)
