"""Jira API client for issue context.

Fetches a single issue (description plus comments) for rendering, and
searches for candidate issues to show in the host tool's picker.

Design notes:
- Jira Cloud REST API v3, HTTP basic auth with email + API token
- Bodies come back as Atlassian Document Format; conversion happens in
  the renderer, this module only maps fields
- search_issues() never raises on HTTP failures: an empty picker is
  better than a broken one

Jira API docs: https://developer.atlassian.com/cloud/jira/platform/rest/v3/
"""

from __future__ import annotations

from typing import Any, Protocol

import httpx

from review_context.config import DEFAULT_JQL
from review_context.logging_config import get_logger
from review_context.schemas import Issue, IssueComment, IssueSummary

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Protocol (Interface)
# ---------------------------------------------------------------------------


class IssueClientProtocol(Protocol):
    """Protocol for issue tracker clients."""

    async def get_issue(self, issue_id: str) -> Issue:
        """Fetch one issue with its comments.

        Raises:
            httpx.HTTPError: If the issue cannot be fetched
        """
        ...

    async def search_issues(self, jql: str = DEFAULT_JQL) -> list[IssueSummary]:
        """Search for issues; returns [] when the search fails."""
        ...


def parse_issue(data: dict[str, Any]) -> Issue:
    """Map a Jira issue payload onto an Issue."""
    fields = data.get("fields") or {}
    raw_comments = (fields.get("comment") or {}).get("comments") or []
    return Issue(
        id=str(data["id"]),
        key=data["key"],
        summary=fields.get("summary") or "",
        description=fields.get("description"),
        comments=[
            IssueComment(
                id=str(c["id"]),
                author_name=(c.get("author") or {}).get("displayName", "unknown"),
                created=c.get("created", ""),
                body=c.get("body"),
            )
            for c in raw_comments
        ],
    )


# ---------------------------------------------------------------------------
# Concrete Implementation
# ---------------------------------------------------------------------------


class JiraClient:
    """Real Jira Cloud client using httpx.

    Usage:
        client = JiraClient(
            instance="https://example.atlassian.net",
            email="me@example.com",
            token="...",
        )
        issue = await client.get_issue("CORE-123")
    """

    def __init__(
        self,
        instance: str,
        email: str | None = None,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the Jira client.

        Args:
            instance: Jira base URL (e.g., "https://example.atlassian.net")
            email: Account email used for basic auth
            token: Jira API token
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self._base_url = f"{instance.rstrip('/')}/rest/api/3"
        self._auth = httpx.BasicAuth(email, token) if email and token else None
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            auth=self._auth,
            headers={"Accept": "application/json"},
            timeout=30.0,
            transport=self._transport,
        )

    async def get_issue(self, issue_id: str) -> Issue:
        """Fetch an issue's summary, description and comments in one call.

        GET /issue/{issue_id}?fields=description,comment,summary
        """
        async with self._client() as client:
            resp = await client.get(
                f"/issue/{issue_id}",
                params={"fields": "description,comment,summary"},
            )
            resp.raise_for_status()
            return parse_issue(resp.json())

    async def search_issues(self, jql: str = DEFAULT_JQL) -> list[IssueSummary]:
        """Run a JQL search and return lightweight summaries.

        GET /search/jql?jql=...&fields=summary (only the first page)
        """
        try:
            async with self._client() as client:
                resp = await client.get("/search/jql", params={"jql": jql, "fields": "summary"})
                resp.raise_for_status()
                issues = resp.json().get("issues") or []
        except httpx.HTTPError as exc:
            logger.error("issue_search_failed", jql=jql, error=str(exc))
            return []

        return [
            IssueSummary(
                id=str(issue["id"]),
                key=issue["key"],
                summary=(issue.get("fields") or {}).get("summary") or "",
            )
            for issue in issues
        ]


# ---------------------------------------------------------------------------
# Mock Implementation (for testing)
# ---------------------------------------------------------------------------


class MockJiraClient:
    """Jira client that serves predefined issues."""

    def __init__(
        self,
        issues: dict[str, Issue] | None = None,
        summaries: list[IssueSummary] | None = None,
    ) -> None:
        self._issues = issues or {}
        self._summaries = summaries or []

    async def get_issue(self, issue_id: str) -> Issue:
        if issue_id not in self._issues:
            request = httpx.Request("GET", f"https://jira.invalid/issue/{issue_id}")
            raise httpx.HTTPStatusError(
                "Issue does not exist",
                request=request,
                response=httpx.Response(404, request=request),
            )
        return self._issues[issue_id]

    async def search_issues(self, jql: str = DEFAULT_JQL) -> list[IssueSummary]:
        return list(self._summaries)
