"""Tests for the response decision policy."""

from datetime import datetime, timezone

import pytest
from scripts.issueagent.decision import (
    ResponseDecision,
    ResponseDecisionEngine,
    find_mention,
    is_in_inline_code,
    is_substantive_reply,
)
from scripts.issueagent.models import ConversationMessage, MessageRole

WHEN = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)


def user(text, author="alice"):
    return ConversationMessage(
        message_id=f"m-{len(text)}", role=MessageRole.USER, author_name=author, text=text, created_at=WHEN
    )


def agent(text):
    return ConversationMessage(
        message_id="m-agent", role=MessageRole.ASSISTANT, author_name="issueagent", text=text, created_at=WHEN
    )


@pytest.fixture
def engine():
    return ResponseDecisionEngine()


class TestShouldRespond:
    """Tests for ResponseDecisionEngine.should_respond."""

    def test_empty_history(self, engine):
        result = engine.should_respond([])
        assert result.decision == ResponseDecision.NO_ACTION
        assert result.reason == "No conversation history"

    def test_skips_own_message(self, engine):
        """Never answer the agent's own comment, even if it mentions the handle."""
        result = engine.should_respond([user("Issue"), agent("Ping @issueagent?")])
        assert result.decision == ResponseDecision.NO_ACTION
        assert result.reason == "Latest message is from the agent"

    def test_mention_requires_response(self, engine):
        result = engine.should_respond([user("Title\n\n@issueagent please help")])
        assert result.must_respond
        assert result.reason == "@mention of issueagent detected"

    def test_mention_is_case_insensitive(self, engine):
        result = engine.should_respond([user("Hey @IssueAgent, thoughts?")])
        assert result.decision == ResponseDecision.MUST_RESPOND

    def test_no_mention(self, engine):
        result = engine.should_respond([user("Just an issue")])
        assert result.decision == ResponseDecision.NO_ACTION
        assert result.reason == "No mention detected"

    def test_custom_handles(self):
        engine = ResponseDecisionEngine(mention_handles=["@po-bot", " "])
        assert engine.mention_handles == ("po-bot",)
        assert engine.should_respond([user("@po-bot hi")]).must_respond
        assert not engine.should_respond([user("@issueagent hi")]).must_respond

    def test_follow_up_to_question(self, engine):
        """A substantive answer to the agent's question gets a reply."""
        history = [
            user("Export reports"),
            agent("Who are the primary users of the export?"),
            user("The finance team, they need it weekly for the board pack."),
        ]
        result = engine.should_respond(history)
        assert result.must_respond
        assert result.reason == "Follow-up to the agent's question"

    def test_acknowledgement_is_not_follow_up(self, engine):
        history = [user("Export"), agent("Who are the users?"), user("Thanks!")]
        assert engine.should_respond(history).decision == ResponseDecision.NO_ACTION

    def test_follow_up_requires_question(self, engine):
        history = [
            user("Export"),
            agent("Here is a refined story."),
            user("The finance team, they need it weekly for the board pack."),
        ]
        assert engine.should_respond(history).decision == ResponseDecision.NO_ACTION

    def test_follow_ups_can_be_disabled(self):
        engine = ResponseDecisionEngine(respond_to_follow_ups=False)
        history = [
            user("Export"),
            agent("Who are the users?"),
            user("The finance team, they need it weekly for the board pack."),
        ]
        assert engine.should_respond(history).decision == ResponseDecision.NO_ACTION

    def test_does_not_mutate_history(self, engine):
        history = [user("Issue"), user("@issueagent help")]
        snapshot = list(history)
        engine.should_respond(history)
        assert history == snapshot


class TestMentionDetection:
    """Tests for mention parsing helpers."""

    @pytest.mark.parametrize(
        "text",
        ["@issueagent", "hi @issueagent", "@issueagent, please", "(@issueagent)", "@issueagent\nmore"],
    )
    def test_detects_mentions(self, text):
        assert find_mention(text, ["issueagent"]) == "issueagent"

    @pytest.mark.parametrize(
        "text",
        ["issueagent", "@issueagents", "@issueagent_bot", "mail me@issueagentx", "", "   "],
    )
    def test_ignores_non_mentions(self, text):
        assert find_mention(text, ["issueagent"]) is None

    @pytest.mark.parametrize(
        "text", ["Mail ops@issueagent.io for access", "contact team.@issueagent", "a@issueagent b"]
    )
    def test_ignores_email_addresses(self, text):
        assert find_mention(text, ["issueagent"]) is None

    def test_email_address_does_not_trigger_reply(self, engine):
        decision = engine.should_respond([user("Mail ops@issueagent.io for access")])
        assert decision.decision == ResponseDecision.NO_ACTION
        assert decision.reason == "No mention detected"

    def test_ignores_mentions_in_inline_code(self):
        assert find_mention("Run `@issueagent` to summon it", ["issueagent"]) is None

    def test_finds_mention_after_inline_code(self):
        text = "Use `@issueagent` syntax, so: @issueagent help"
        assert find_mention(text, ["issueagent"]) == "issueagent"

    def test_inline_code_detection(self):
        assert is_in_inline_code("a `b", 4)
        assert not is_in_inline_code("a `b` c", 6)


class TestSubstantiveReply:
    def test_mentions_do_not_count(self):
        assert not is_substantive_reply("@issueagent ok", ["issueagent"])

    def test_long_answer(self):
        assert is_substantive_reply("Finance analysts, weekly, as CSV.", ["issueagent"])
