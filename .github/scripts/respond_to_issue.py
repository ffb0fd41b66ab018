#!/usr/bin/env python3
"""
Respond to issue events as issueagent.

Triggered by `issues` (opened, reopened) and `issue_comment` (created)
events. Fetches the issue with its latest comments, rebuilds the
conversation, decides whether a reply is required and, if so, generates
and posts one.

INPUTS (action inputs, read from INPUT_* variables):
- github-token: token with issues read/write access (falls back to GITHUB_TOKEN)
- comments-page-size: trailing comments to load, 1-20 (default 5)
- bot-login: login the agent posts as (default github-actions[bot])
- mention-handles: comma-separated handles that trigger a reply (default issueagent)
- model: LiteLLM model name; canned replies when unset

OUTPUTS:
- status: fetch status (success, graphql_failure, permission_denied, ...)
- decision: must_respond / no_action (empty when the fetch failed)
- reason: why the decision was taken, or the failure message
- response_comment: reply text that was generated
- comment_url: URL of the posted comment
"""

import json
import os
import sys
from functools import partial

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from scripts.issueagent.github_client import (  # noqa: E402
    get_github_client,
    get_repo,
    post_agent_comment,
)
from scripts.issueagent.graphql_client import GitHubGraphQLClient  # noqa: E402
from scripts.issueagent.issue_context import IssueContextQueryExecutor  # noqa: E402
from scripts.issueagent.redaction import format_metadata  # noqa: E402
from scripts.issueagent.runtime import (  # noqa: E402
    build_agent,
    load_runtime_environment,
    summarize_outputs,
)


def set_output(name: str, value: str):
    """Set a step output for the GitHub Actions workflow."""
    output_file = os.environ.get("GITHUB_OUTPUT")
    if output_file:
        with open(output_file, "a") as f:
            if "\n" in value:
                import uuid

                delimiter = uuid.uuid4().hex
                f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
            else:
                f.write(f"{name}={value}\n")


def main() -> int:
    try:
        environment = load_runtime_environment()
    except (ValueError, OSError, json.JSONDecodeError) as e:
        print(f"Bootstrap failure: {e}", file=sys.stderr)
        return 1

    print(f"Runtime metadata: {format_metadata(environment.metadata())}")

    try:
        repo = get_repo(get_github_client(environment.token), environment.repository)
        with GitHubGraphQLClient(environment.token) as graphql_client:
            agent = build_agent(
                environment,
                IssueContextQueryExecutor(graphql_client),
                comment_poster=partial(post_agent_comment, repo),
            )
            result = agent.execute(environment.request, environment.token)
    except KeyboardInterrupt:
        print("Execution cancelled.")
        return 130
    except Exception as e:
        print(f"ERROR: Unhandled exception executing issueagent: {e}")
        return 1

    for name, value in summarize_outputs(result):
        set_output(name, value)

    print(f"Result: {result.context.status.value} - {result.context.message}")
    return 0 if result.succeeded else 1


if __name__ == "__main__":
    sys.exit(main())
