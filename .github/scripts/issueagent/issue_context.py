"""
Issue context retrieval for issueagent.

Loads an issue with its latest comments through GitHub's GraphQL API and
collapses every outcome into an IssueContextResult:

- SUCCESS: a complete, valid IssueSnapshot
- PERMISSION_DENIED: HTTP 401/403 or INSUFFICIENT_SCOPES errors
- GRAPHQL_FAILURE: GraphQL errors, missing issue, incomplete payload
- UNEXPECTED_ERROR: anything else raised while querying

The response models below mirror the query shape with every field optional;
incomplete payloads are rejected here, before a snapshot is ever built.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .graphql_client import GitHubGraphQLClient
from .models import (
    CommentSnapshot,
    IssueContextRequest,
    IssueContextResult,
    IssueSnapshot,
    clamp_page_size,
)

INSUFFICIENT_SCOPES = "INSUFFICIENT_SCOPES"

# `body` rather than `bodyText`: the signature marker is an HTML comment,
# which GitHub strips from bodyText.
ISSUE_CONTEXT_QUERY = """
query IssueContextQuery($owner: String!, $name: String!, $number: Int!, $commentsPageSize: Int!) {
  repository(owner: $owner, name: $name) {
    issue(number: $number) {
      id
      number
      title
      body
      createdAt
      author {
        login
      }
      comments(last: $commentsPageSize) {
        totalCount
        nodes {
          id
          author {
            login
          }
          body
          createdAt
        }
      }
    }
  }
}
""".strip()


# =============================================================================
# RESPONSE MODELS - every field optional, validated by the executor
# =============================================================================


class GraphQLActor(BaseModel):
    login: Optional[str] = None


class GraphQLCommentNode(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    author: Optional[GraphQLActor] = None
    body: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class GraphQLCommentConnection(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_count: int = Field(default=0, alias="totalCount")
    nodes: Optional[List[Optional[GraphQLCommentNode]]] = None


class GraphQLIssue(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    number: Optional[int] = None
    title: Optional[str] = None
    body: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    author: Optional[GraphQLActor] = None
    comments: Optional[GraphQLCommentConnection] = None


class GraphQLRepository(BaseModel):
    issue: Optional[GraphQLIssue] = None


class GraphQLData(BaseModel):
    repository: Optional[GraphQLRepository] = None


class GraphQLError(BaseModel):
    message: Optional[str] = None
    type: Optional[str] = None
    extensions: Optional[Dict[str, Any]] = None

    @property
    def code(self) -> Optional[str]:
        if self.extensions and self.extensions.get("code"):
            return str(self.extensions["code"])
        return self.type


class IssueContextQueryResponse(BaseModel):
    data: Optional[GraphQLData] = None
    errors: Optional[List[GraphQLError]] = None


# =============================================================================
# EXECUTOR
# =============================================================================


def build_query_variables(request: IssueContextRequest) -> Dict[str, Any]:
    return {
        "owner": request.owner,
        "name": request.name,
        "number": request.issue_number,
        "commentsPageSize": clamp_page_size(request.comments_page_size),
    }


def is_insufficient_scopes(error: GraphQLError) -> bool:
    return bool(error.code) and error.code.upper() == INSUFFICIENT_SCOPES


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def map_comments(connection: Optional[GraphQLCommentConnection]) -> Optional[List[CommentSnapshot]]:
    """Map comment nodes to snapshots, skipping incomplete nodes."""
    if connection is None or connection.nodes is None:
        return None

    comments = []
    for node in connection.nodes:
        if node is None or _blank(node.id) or node.author is None or _blank(node.author.login):
            continue
        if node.created_at is None:
            continue
        comments.append(
            CommentSnapshot(
                id=node.id,
                author_login=node.author.login,
                body=node.body or "",
                created_at=node.created_at,
            )
        )
    return comments


class IssueContextQueryExecutor:
    """Fetches an issue snapshot and classifies failures."""

    def __init__(self, client: GitHubGraphQLClient):
        self.client = client

    def fetch_issue_context(self, request: IssueContextRequest) -> IssueContextResult:
        run_id, event_type = request.run_id, request.event_type

        try:
            payload = self.client.execute(ISSUE_CONTEXT_QUERY, build_query_variables(request))
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            if status_code in (401, 403):
                return IssueContextResult.permission_denied(
                    run_id, event_type, f"GitHub returned HTTP {status_code}."
                )
            return IssueContextResult.unexpected_error(run_id, event_type, str(e))
        except Exception as e:
            return IssueContextResult.unexpected_error(run_id, event_type, str(e))

        if not payload:
            return IssueContextResult.unexpected_error(
                run_id, event_type, "GraphQL returned an empty response."
            )

        try:
            response = IssueContextQueryResponse.model_validate(payload)
        except ValidationError as e:
            return IssueContextResult.graphql_failure(
                run_id, event_type, f"Unreadable GraphQL response: {e.error_count()} validation errors."
            )

        if response.errors:
            return self._classify_errors(request, response.errors)

        issue = response.data.repository.issue if response.data and response.data.repository else None
        if issue is None:
            return IssueContextResult.graphql_failure(
                run_id, event_type, f"Issue #{request.issue_number} not found."
            )

        if _blank(issue.id) or _blank(issue.title) or issue.created_at is None:
            return IssueContextResult.graphql_failure(
                run_id, event_type, "Issue payload missing required fields."
            )

        if issue.author is None or _blank(issue.author.login):
            return IssueContextResult.graphql_failure(
                run_id, event_type, "Issue author login missing from GraphQL response."
            )

        try:
            snapshot = IssueSnapshot(
                id=issue.id,
                number=issue.number or request.issue_number,
                title=issue.title,
                body=issue.body or "",
                author_login=issue.author.login,
                created_at=issue.created_at,
                comments=map_comments(issue.comments),
            )
        except ValidationError as e:
            return IssueContextResult.graphql_failure(
                run_id, event_type, f"Issue payload invalid: {e.error_count()} validation errors."
            )

        return IssueContextResult.success(run_id, event_type, snapshot, datetime.now(timezone.utc))

    def _classify_errors(
        self, request: IssueContextRequest, errors: List[GraphQLError]
    ) -> IssueContextResult:
        run_id, event_type = request.run_id, request.event_type

        if any(is_insufficient_scopes(e) for e in errors):
            message = next(
                (e.message for e in errors if not _blank(e.message)),
                "GitHub returned insufficient scopes.",
            )
            return IssueContextResult.permission_denied(run_id, event_type, message)

        detail = "; ".join(e.message.strip() for e in errors if not _blank(e.message))
        return IssueContextResult.graphql_failure(
            run_id, event_type, detail or "GraphQL query failed without details."
        )
