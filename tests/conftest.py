"""Shared pytest fixtures for issueagent tests."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

BOT_LOGIN = "github-actions[bot]"
MARKER = "<!-- issueagent-signature -->"
BASE_TIME = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    """Timestamp `minutes` after the issue was opened."""
    return BASE_TIME + timedelta(minutes=minutes)


@pytest.fixture
def make_comment():
    """Factory for CommentSnapshot objects."""
    from scripts.issueagent.models import CommentSnapshot

    counter = {"n": 0}

    def _make(author: str, body: str, minutes: int = None):
        counter["n"] += 1
        n = counter["n"]
        return CommentSnapshot(
            id=f"IC_{n}",
            author_login=author,
            body=body,
            created_at=at(minutes if minutes is not None else n),
        )

    return _make


@pytest.fixture
def make_issue():
    """Factory for IssueSnapshot objects."""
    from scripts.issueagent.models import IssueSnapshot

    def _make(comments=None, title="Test Issue", body="Issue body content", author="testuser"):
        return IssueSnapshot(
            id="I_kwDOissue",
            number=7,
            title=title,
            body=body,
            author_login=author,
            created_at=BASE_TIME,
            comments=comments,
        )

    return _make


@pytest.fixture
def builder():
    """History builder configured for the Actions bot."""
    from scripts.issueagent.history import ConversationHistoryBuilder

    return ConversationHistoryBuilder(BOT_LOGIN)


@pytest.fixture
def context_request():
    """Fetch request for issue #7."""
    from scripts.issueagent.models import IssueContextRequest, IssueEventType

    return IssueContextRequest(
        owner="octo-org",
        name="roadmap",
        issue_number=7,
        comments_page_size=5,
        run_id="run-123",
        event_type=IssueEventType.ISSUE_COMMENT_CREATED,
    )


@pytest.fixture
def graphql_issue_payload():
    """GraphQL response for issue #7 with two comments."""
    return {
        "data": {
            "repository": {
                "issue": {
                    "id": "I_kwDOissue",
                    "number": 7,
                    "title": "Export reports as CSV",
                    "body": "Managers want CSV exports.",
                    "createdAt": "2025-01-06T09:00:00Z",
                    "author": {"login": "alice"},
                    "comments": {
                        "totalCount": 2,
                        "nodes": [
                            {
                                "id": "IC_1",
                                "author": {"login": BOT_LOGIN},
                                "body": f"Who are the users?\n\n{MARKER}",
                                "createdAt": "2025-01-06T09:05:00Z",
                            },
                            {
                                "id": "IC_2",
                                "author": {"login": "alice"},
                                "body": "@issueagent the finance team, weekly.",
                                "createdAt": "2025-01-06T09:30:00Z",
                            },
                        ],
                    },
                }
            }
        }
    }


@pytest.fixture
def mock_repo():
    """Mock PyGithub repository that accepts comments."""
    repo = MagicMock()
    repo.full_name = "octo-org/roadmap"

    comment = MagicMock()
    comment.id = 991
    comment.html_url = "https://github.com/octo-org/roadmap/issues/7#issuecomment-991"

    issue = MagicMock()
    issue.number = 7
    issue.create_comment.return_value = comment
    repo.get_issue.return_value = issue
    return repo
