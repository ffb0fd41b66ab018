"""
Snapshot and conversation models for issueagent.

Snapshots are immutable point-in-time copies of an issue and its comments,
fetched once per triggering event. Conversation messages are derived from a
snapshot on every run and never persisted.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_COMMENTS_PAGE_SIZE = 20
MIN_COMMENTS_PAGE_SIZE = 1


def ensure_utc(value: datetime) -> datetime:
    """Return the timestamp in UTC. Naive timestamps are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def clamp_page_size(value: int) -> int:
    return max(MIN_COMMENTS_PAGE_SIZE, min(MAX_COMMENTS_PAGE_SIZE, value))


def _require_text(value: str, label: str) -> str:
    if value is None or not value.strip():
        raise ValueError(f"{label} must be provided")
    return value.strip()


# =============================================================================
# SNAPSHOTS
# =============================================================================


class CommentSnapshot(BaseModel):
    """A single issue comment as it was at fetch time."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Opaque comment identifier, unique within the issue")
    author_login: str = Field(description="Login of the comment author")
    body: str = Field(default="", description="Raw markdown body, may be empty")
    created_at: datetime = Field(description="Creation timestamp (UTC)")

    @field_validator("id")
    @classmethod
    def validate_id(cls, value: str) -> str:
        return _require_text(value, "Comment id")

    @field_validator("author_login")
    @classmethod
    def validate_author(cls, value: str) -> str:
        return _require_text(value, "Comment author login")

    @field_validator("body", mode="before")
    @classmethod
    def default_body(cls, value):
        return "" if value is None else value

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class IssueSnapshot(BaseModel):
    """
    An issue and its latest comments as they were at fetch time.

    ``comments`` is ``None`` when comments were not fetched and an empty tuple
    when they were fetched and none exist. Comments are ordered oldest first.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Opaque issue node identifier")
    number: int = Field(gt=0, description="Issue number within the repository")
    title: str = Field(description="Issue title")
    body: str = Field(default="", description="Issue body, never null")
    author_login: str = Field(description="Login of the issue author")
    created_at: datetime = Field(description="Creation timestamp (UTC)")
    comments: Optional[Tuple[CommentSnapshot, ...]] = Field(
        default=None, description="Latest comments, oldest first"
    )

    @field_validator("id")
    @classmethod
    def validate_id(cls, value: str) -> str:
        return _require_text(value, "Issue id")

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Issue title must be provided")
        return value

    @field_validator("author_login")
    @classmethod
    def validate_author(cls, value: str) -> str:
        return _require_text(value, "Issue author login")

    @field_validator("body", mode="before")
    @classmethod
    def default_body(cls, value):
        return "" if value is None else value

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def comment_count(self) -> int:
        return len(self.comments or ())


# =============================================================================
# CONVERSATION
# =============================================================================


class MessageRole(str, Enum):
    """Who a conversation message is attributed to."""

    USER = "user"
    ASSISTANT = "assistant"


class ConversationMessage(BaseModel):
    """One role-labelled turn of the rebuilt conversation."""

    model_config = ConfigDict(frozen=True)

    message_id: str = Field(description="Identifier of the issue or comment it came from")
    role: MessageRole = Field(description="User or assistant")
    author_name: str = Field(description="Display name attributed to the message")
    text: str = Field(description="Rendered message content")
    created_at: datetime = Field(description="Timestamp of the source issue or comment")


# =============================================================================
# FETCH REQUEST / RESULT
# =============================================================================


class IssueEventType(str, Enum):
    """GitHub events the agent reacts to."""

    ISSUE_OPENED = "issue_opened"
    ISSUE_REOPENED = "issue_reopened"
    ISSUE_COMMENT_CREATED = "issue_comment_created"


class IssueContextRequest(BaseModel):
    """Everything the fetch boundary needs to load one issue."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(description="Repository owner")
    name: str = Field(description="Repository name")
    issue_number: int = Field(gt=0, description="Issue number")
    comments_page_size: int = Field(default=5, description="How many trailing comments to fetch")
    run_id: str = Field(description="Workflow run identifier")
    event_type: IssueEventType = Field(description="Triggering event")

    @field_validator("owner", "name", "run_id")
    @classmethod
    def validate_text(cls, value: str) -> str:
        return _require_text(value, "Request field")

    @field_validator("comments_page_size")
    @classmethod
    def clamp_comments_page_size(cls, value: int) -> int:
        return clamp_page_size(value)


class IssueContextStatus(str, Enum):
    """Outcome of fetching issue context."""

    SUCCESS = "success"
    GRAPHQL_FAILURE = "graphql_failure"
    PERMISSION_DENIED = "permission_denied"
    UNEXPECTED_ERROR = "unexpected_error"
    SKIPPED = "skipped"


PERMISSION_GUIDANCE = "Ensure workflow permissions allow issues:read access."


def _format_message(prefix: str, detail: Optional[str]) -> str:
    detail_text = detail.strip() if detail and detail.strip() else "No additional details."
    return f"{prefix}: {detail_text}"


class IssueContextResult(BaseModel):
    """
    Result of the fetch boundary.

    Build instances through the factory classmethods; only a successful result
    carries an issue snapshot.
    """

    model_config = ConfigDict(frozen=True)

    run_id: str
    event_type: IssueEventType
    issue: Optional[IssueSnapshot] = None
    retrieved_at: datetime
    status: IssueContextStatus
    message: str

    @field_validator("run_id", "message")
    @classmethod
    def validate_text(cls, value: str) -> str:
        return _require_text(value, "Result field")

    @field_validator("retrieved_at")
    @classmethod
    def validate_retrieved_at(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def is_success(self) -> bool:
        return self.status == IssueContextStatus.SUCCESS and self.issue is not None

    @classmethod
    def success(
        cls,
        run_id: str,
        event_type: IssueEventType,
        issue: IssueSnapshot,
        retrieved_at: Optional[datetime] = None,
    ) -> "IssueContextResult":
        if issue is None:
            raise ValueError("A successful result requires an issue snapshot")
        return cls(
            run_id=run_id,
            event_type=event_type,
            issue=issue,
            retrieved_at=retrieved_at or datetime.now(timezone.utc),
            status=IssueContextStatus.SUCCESS,
            message=f"Success: Issue #{issue.number} retrieved.",
        )

    @classmethod
    def failure(
        cls, run_id: str, event_type: IssueEventType, status: IssueContextStatus, message: str
    ) -> "IssueContextResult":
        return cls(
            run_id=run_id,
            event_type=event_type,
            issue=None,
            retrieved_at=datetime.now(timezone.utc),
            status=status,
            message=message,
        )

    @classmethod
    def graphql_failure(cls, run_id: str, event_type: IssueEventType, message: str):
        return cls.failure(
            run_id,
            event_type,
            IssueContextStatus.GRAPHQL_FAILURE,
            _format_message("GraphQL failure", message),
        )

    @classmethod
    def permission_denied(cls, run_id: str, event_type: IssueEventType, message: str):
        return cls.failure(
            run_id,
            event_type,
            IssueContextStatus.PERMISSION_DENIED,
            _format_message("Permission denied", message) + " " + PERMISSION_GUIDANCE,
        )

    @classmethod
    def unexpected_error(cls, run_id: str, event_type: IssueEventType, message: str):
        return cls.failure(
            run_id,
            event_type,
            IssueContextStatus.UNEXPECTED_ERROR,
            _format_message("Unexpected error", message),
        )

    @classmethod
    def skipped(cls, run_id: str, event_type: IssueEventType, reason: str):
        return cls.failure(
            run_id,
            event_type,
            IssueContextStatus.SKIPPED,
            _format_message("Skipped", reason),
        )
