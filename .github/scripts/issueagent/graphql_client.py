"""GitHub GraphQL API client for issueagent."""

from typing import Any, Dict, Optional

import httpx

from . import __version__

GRAPHQL_URL = "https://api.github.com/graphql"
DEFAULT_TIMEOUT = 30


class GitHubGraphQLClient:
    """Thin wrapper that posts GraphQL documents to GitHub."""

    def __init__(
        self,
        token: str,
        endpoint: str = GRAPHQL_URL,
        user_agent: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        if not token or not token.strip():
            raise ValueError("GitHub token must be provided.")

        self.endpoint = endpoint
        self._headers = {
            "Authorization": f"Bearer {token.strip()}",
            "Accept": "application/json",
            "User-Agent": user_agent or f"issueagent/{__version__}",
        }
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)

    def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Run a GraphQL document and return the decoded response.

        GraphQL-level errors come back in the document's "errors" key; only
        transport failures raise.

        Raises:
            ValueError: If query is blank.
            httpx.HTTPStatusError: On a non-2xx response.
        """
        if not query or not query.strip():
            raise ValueError("Query must be provided.")

        response = self._client.post(
            self.endpoint,
            headers=self._headers,
            json={"query": query, "variables": variables or {}},
        )
        response.raise_for_status()
        return response.json()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "GitHubGraphQLClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
