"""
Conversation history reconstruction for issueagent.

Turns an issue snapshot into an ordered, role-labelled conversation: the issue
itself is always the first user message, followed by one message per comment
in fetch order. A comment counts as the agent's own only when it is authored
by the bot login AND carries the signature marker; either condition alone is
treated as a plain user comment (legacy or spoofed bot comments, quoted
signatures).
"""

from typing import List

from .models import CommentSnapshot, ConversationMessage, IssueSnapshot, MessageRole

SIGNATURE_MARKER = "<!-- issueagent-signature -->"
AGENT_NAME = "issueagent"
DEFAULT_BOT_LOGIN = "github-actions[bot]"


def format_issue_text(title: str, body: str) -> str:
    """Render the opening message of the conversation from the issue."""
    return f"{title}\n\n{body}"


class ConversationHistoryBuilder:
    """Builds the conversation an agent reply is generated from."""

    def __init__(
        self,
        bot_login: str,
        signature_marker: str = SIGNATURE_MARKER,
        agent_name: str = AGENT_NAME,
    ):
        if not bot_login or not bot_login.strip():
            raise ValueError("Bot login must be provided.")
        if not signature_marker:
            raise ValueError("Signature marker must be provided.")

        self.bot_login = bot_login.strip()
        self.signature_marker = signature_marker
        self.agent_name = agent_name

    def is_agent_comment(self, comment: CommentSnapshot) -> bool:
        """True when the comment was written by this agent."""
        # Case-sensitive login match.
        return comment.author_login == self.bot_login and self.signature_marker in comment.body

    def build_history(self, issue: IssueSnapshot) -> List[ConversationMessage]:
        """
        Build the ordered conversation for an issue.

        Returns 1 + number of comments messages. Comment order is preserved and
        comment bodies are passed through verbatim.

        Raises:
            TypeError: If issue is not an IssueSnapshot.
        """
        if not isinstance(issue, IssueSnapshot):
            raise TypeError(f"Expected IssueSnapshot, got {type(issue).__name__}")

        messages = [
            ConversationMessage(
                message_id=issue.id,
                role=MessageRole.USER,
                author_name=issue.author_login,
                text=format_issue_text(issue.title, issue.body),
                created_at=issue.created_at,
            )
        ]

        for comment in issue.comments or ():
            if self.is_agent_comment(comment):
                role, author_name = MessageRole.ASSISTANT, self.agent_name
            else:
                role, author_name = MessageRole.USER, comment.author_login

            messages.append(
                ConversationMessage(
                    message_id=comment.id,
                    role=role,
                    author_name=author_name,
                    text=comment.body,
                    created_at=comment.created_at,
                )
            )

        return messages
