"""
Runtime wiring for the issueagent GitHub Action.

Reads the Action environment (inputs, GITHUB_* variables, event payload) into
an IssueContextRequest and runs one event through the pipeline:

    token guard -> fetch -> build history -> decide -> generate -> post
"""

import json
import os
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .decision import ResponseDecisionEngine, ResponseDecisionResult
from .github_client import PostCommentResult, ensure_github_token
from .history import AGENT_NAME, DEFAULT_BOT_LOGIN, ConversationHistoryBuilder
from .issue_context import IssueContextQueryExecutor
from .llm_client import get_model
from .models import (
    MAX_COMMENTS_PAGE_SIZE,
    MIN_COMMENTS_PAGE_SIZE,
    IssueContextRequest,
    IssueContextResult,
    IssueEventType,
)
from .response_generator import AgentResponseGenerator

DEFAULT_COMMENTS_PAGE_SIZE = 5

CommentPoster = Callable[[int, str], PostCommentResult]


# =============================================================================
# ENVIRONMENT
# =============================================================================


class RuntimeEnvironment(BaseModel):
    """Configuration for one Action run."""

    model_config = ConfigDict(frozen=True)

    token: str = Field(description="GitHub token (never log this)")
    repository: str = Field(description="owner/name")
    request: IssueContextRequest
    bot_login: str = Field(default=DEFAULT_BOT_LOGIN)
    mention_handles: Tuple[str, ...] = Field(default=(AGENT_NAME,))
    model: Optional[str] = Field(default=None, description="LLM model, None for canned replies")

    def metadata(self) -> Dict[str, object]:
        return {
            "repository": self.repository,
            "eventType": self.request.event_type.value,
            "issueNumber": self.request.issue_number,
            "runId": self.request.run_id,
            "commentsPageSize": self.request.comments_page_size,
            "botLogin": self.bot_login,
            "model": self.model or "(fallback)",
            "github-token": self.token,
        }


def read_input(name: str, environ: Mapping[str, str]) -> Optional[str]:
    """Read an Action input (INPUT_<NAME>, with '-' or '_' separators)."""
    canonical = name.strip().replace(" ", "-").upper()
    for key in (f"INPUT_{canonical}", f"INPUT_{canonical.replace('-', '_')}"):
        value = environ.get(key)
        if value and value.strip():
            return value.strip()
    return None


def require_env(key: str, message: str, environ: Mapping[str, str]) -> str:
    value = environ.get(key)
    if not value or not value.strip():
        raise ValueError(message)
    return value.strip()


def parse_int_input(raw: Optional[str], fallback: int, min_value: int, max_value: int) -> int:
    if not raw:
        return fallback
    try:
        parsed = int(raw)
    except ValueError:
        return fallback
    return max(min_value, min(max_value, parsed))


def parse_handles(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return (AGENT_NAME,)
    handles = tuple(h.strip().lstrip("@") for h in raw.split(",") if h.strip().lstrip("@"))
    return handles or (AGENT_NAME,)


def read_action(payload: dict) -> str:
    if "action" not in payload:
        raise ValueError("Event payload missing 'action'.")
    return str(payload["action"] or "")


def resolve_event_type(event_name: str, payload: dict) -> IssueEventType:
    """Map the GitHub event name and action to a supported event type."""
    event_name = event_name.strip().lower()

    if event_name == "issue_comment":
        action = read_action(payload)
        if action.lower() != "created":
            raise ValueError(f"Unsupported issue_comment action '{action}'.")
        return IssueEventType.ISSUE_COMMENT_CREATED

    if event_name == "issues":
        action = read_action(payload)
        if action.lower() == "opened":
            return IssueEventType.ISSUE_OPENED
        if action.lower() == "reopened":
            return IssueEventType.ISSUE_REOPENED
        raise ValueError(f"Unsupported issues action '{action}'.")

    raise ValueError(f"Unsupported GitHub event '{event_name}'.")


def read_issue_number(payload: dict) -> int:
    issue = payload.get("issue")
    if not isinstance(issue, dict):
        raise ValueError("Event payload missing 'issue' node.")
    if "number" not in issue:
        raise ValueError("Issue payload missing 'number'.")
    number = issue["number"]
    if isinstance(number, bool):
        raise ValueError("Issue payload 'number' must be an integer.")
    try:
        return int(number)
    except (TypeError, ValueError) as e:
        raise ValueError("Issue payload 'number' must be an integer.") from e


def create_request(
    repository: str, event_name: str, run_id: str, comments_page_size: int, payload: dict
) -> IssueContextRequest:
    segments = [s.strip() for s in repository.split("/") if s.strip()]
    if len(segments) != 2:
        raise ValueError(f"Repository value '{repository}' is invalid. Expected 'owner/name'.")

    return IssueContextRequest(
        owner=segments[0],
        name=segments[1],
        issue_number=read_issue_number(payload),
        comments_page_size=comments_page_size,
        run_id=run_id,
        event_type=resolve_event_type(event_name, payload),
    )


def load_runtime_environment(environ: Optional[Mapping[str, str]] = None) -> RuntimeEnvironment:
    """
    Load the Action configuration.

    Raises:
        ValueError: Missing or invalid configuration.
        OSError: The event payload file can't be read.
        json.JSONDecodeError: The event payload isn't JSON.
    """
    environ = os.environ if environ is None else environ

    token = read_input("github-token", environ) or environ.get("GITHUB_TOKEN")
    if not token or not token.strip():
        raise ValueError("GitHub token missing. Provide the 'github-token' input or set GITHUB_TOKEN.")

    repository = require_env(
        "GITHUB_REPOSITORY", "Repository context not supplied (GITHUB_REPOSITORY).", environ
    )
    event_name = require_env("GITHUB_EVENT_NAME", "Event name missing (GITHUB_EVENT_NAME).", environ)
    event_path = require_env(
        "GITHUB_EVENT_PATH", "Event payload path missing (GITHUB_EVENT_PATH).", environ
    )
    run_id = environ.get("GITHUB_RUN_ID") or uuid.uuid4().hex
    comments_page_size = parse_int_input(
        read_input("comments-page-size", environ),
        DEFAULT_COMMENTS_PAGE_SIZE,
        MIN_COMMENTS_PAGE_SIZE,
        MAX_COMMENTS_PAGE_SIZE,
    )

    payload = json.loads(Path(event_path).read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("Event payload must be a JSON object.")

    return RuntimeEnvironment(
        token=token.strip(),
        repository=repository,
        request=create_request(repository, event_name, run_id, comments_page_size, payload),
        bot_login=read_input("bot-login", environ) or DEFAULT_BOT_LOGIN,
        mention_handles=parse_handles(read_input("mention-handles", environ)),
        model=get_model(),
    )


# =============================================================================
# PIPELINE
# =============================================================================


@contextmanager
def measure(label: str):
    """Print how long the block took."""
    started = time.perf_counter()
    try:
        yield
    finally:
        print(f"{label} took {time.perf_counter() - started:.2f}s")


class AgentRunResult(BaseModel):
    """Everything one run produced."""

    model_config = ConfigDict(frozen=True)

    context: IssueContextResult
    decision: Optional[ResponseDecisionResult] = None
    response_text: Optional[str] = None
    comment: Optional[PostCommentResult] = None

    @property
    def succeeded(self) -> bool:
        return self.context.is_success


class IssueContextAgent:
    """Runs one triggering event through the pipeline."""

    def __init__(
        self,
        query_executor: IssueContextQueryExecutor,
        history_builder: ConversationHistoryBuilder,
        decision_engine: ResponseDecisionEngine,
        response_generator: AgentResponseGenerator,
        comment_poster: Optional[CommentPoster] = None,
    ):
        self.query_executor = query_executor
        self.history_builder = history_builder
        self.decision_engine = decision_engine
        self.response_generator = response_generator
        self.comment_poster = comment_poster

    def execute(self, request: IssueContextRequest, token: Optional[str]) -> AgentRunResult:
        """
        Process one event.

        Raises:
            ValueError: If token is missing.
            KeyboardInterrupt: Cancellation is never retried or swallowed.
        """
        ensure_github_token(token)

        with measure("Issue context retrieval"):
            context = self.query_executor.fetch_issue_context(request)

        if not context.is_success:
            print(f"Issue context unavailable: {context.message}")
            return AgentRunResult(context=context)

        issue = context.issue
        print(f"Fetched issue #{issue.number} with {issue.comment_count} comments")
        try:
            history = self.history_builder.build_history(issue)
            print(f"Built conversation history with {len(history)} messages")

            decision = self.decision_engine.should_respond(history)
            print(f"Response decision: {decision.decision.value} - {decision.reason}")

            if not decision.must_respond:
                print(f"Skipping response for issue #{issue.number}")
                return AgentRunResult(context=context, decision=decision)

            response_text = self.response_generator.generate_response(history, decision)

            comment = None
            if self.comment_poster is not None:
                comment = self.comment_poster(request.issue_number, response_text)
                if comment.success:
                    print(f"Successfully posted comment: {comment.comment_url}")
                else:
                    print(f"Failed to post comment: {comment.error_message}")
        except Exception as e:
            return AgentRunResult(
                context=IssueContextResult.unexpected_error(
                    request.run_id, request.event_type, str(e)
                )
            )

        return AgentRunResult(
            context=context, decision=decision, response_text=response_text, comment=comment
        )


def build_agent(
    environment: RuntimeEnvironment,
    query_executor: IssueContextQueryExecutor,
    comment_poster: Optional[CommentPoster] = None,
) -> IssueContextAgent:
    """Wire the pipeline from the runtime configuration."""
    return IssueContextAgent(
        query_executor=query_executor,
        history_builder=ConversationHistoryBuilder(environment.bot_login),
        decision_engine=ResponseDecisionEngine(list(environment.mention_handles)),
        response_generator=AgentResponseGenerator(model=environment.model),
        comment_poster=comment_poster,
    )


def summarize_outputs(result: AgentRunResult) -> List[Tuple[str, str]]:
    """Step outputs for the workflow, in a stable order."""
    decision = result.decision
    comment = result.comment
    return [
        ("status", result.context.status.value),
        ("decision", decision.decision.value if decision else ""),
        ("reason", decision.reason if decision else result.context.message),
        ("response_comment", result.response_text or ""),
        ("comment_url", (comment.comment_url or "") if comment else ""),
    ]
