"""GitHub REST API utilities for issueagent."""

import os
from typing import Optional

from github import Github, GithubException
from pydantic import BaseModel, ConfigDict, Field

from .history import AGENT_NAME, SIGNATURE_MARKER

TOKEN_GUIDANCE = "Workflow must provide github-token input (uses: github.token)."

AGENT_HEADER = f"🤖 **{AGENT_NAME}**\n\n"


class PostCommentResult(BaseModel):
    """Outcome of posting a reply comment."""

    model_config = ConfigDict(frozen=True)

    success: bool = Field(description="Whether the comment was created")
    error_message: Optional[str] = Field(default=None, description="Why posting failed")
    comment_id: Optional[int] = Field(default=None, description="Created comment id")
    comment_url: Optional[str] = Field(default=None, description="Created comment URL")


def ensure_github_token(token: Optional[str]) -> str:
    """Return the token, or raise if the workflow did not provide one."""
    if not token or not token.strip():
        raise ValueError(TOKEN_GUIDANCE)
    return token.strip()


def get_github_client(token: Optional[str] = None) -> Github:
    """Get authenticated GitHub client."""
    token = ensure_github_token(token or os.environ.get("GITHUB_TOKEN"))
    return Github(token)


def get_repo(gh: Github, repo_name: Optional[str] = None):
    """Get repository object."""
    repo_name = repo_name or os.environ.get("GITHUB_REPOSITORY")
    if not repo_name:
        raise ValueError("Repository name not provided")
    return gh.get_repo(repo_name)


def format_agent_comment(body: str, signature_marker: str = SIGNATURE_MARKER) -> str:
    """Wrap a reply with the agent header and the signature marker."""
    return f"{AGENT_HEADER}{body.strip()}\n\n{signature_marker}"


def post_agent_comment(repo, issue_number: int, body: str) -> PostCommentResult:
    """
    Post a signed reply on an issue.

    Invalid arguments raise ValueError; API failures are reported in the
    result instead of raised.
    """
    if issue_number <= 0:
        raise ValueError("Issue number must be positive.")
    if not body or not body.strip():
        raise ValueError("Comment body must be provided.")

    print(f"Posting comment to issue #{issue_number} in {repo.full_name}")
    try:
        issue = repo.get_issue(issue_number)
        comment = issue.create_comment(format_agent_comment(body))
    except GithubException as e:
        message = e.data.get("message") if isinstance(e.data, dict) else None
        return PostCommentResult(
            success=False, error_message=f"HTTP {e.status}: {message or e}"
        )
    except Exception as e:
        return PostCommentResult(success=False, error_message=str(e))

    return PostCommentResult(success=True, comment_id=comment.id, comment_url=comment.html_url)
