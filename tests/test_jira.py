"""Tests for the Jira client and the issue provider.

Run with: pytest tests/test_jira.py -v
"""

from __future__ import annotations

import base64

import httpx
import pytest

from review_context.config import DEFAULT_JQL
from review_context.context.jira import JiraClient, MockJiraClient, parse_issue
from review_context.provider import JiraIssueProvider
from review_context.renderer import ConversionResult
from review_context.schemas import Issue, IssueComment, IssueSummary


def adf(text: str) -> dict:
    return {
        "type": "doc",
        "version": 1,
        "content": [{"type": "paragraph", "content": [{"type": "text", "text": text}]}],
    }


ISSUE_PAYLOAD = {
    "id": "10001",
    "key": "CORE-123",
    "fields": {
        "summary": "Login fails on Safari",
        "description": adf("Steps to reproduce"),
        "comment": {
            "total": 2,
            "comments": [
                {
                    "id": "1",
                    "created": "2024-05-01T10:00:00.000+0000",
                    "author": {"displayName": "Ann", "emailAddress": "ann@example.com"},
                    "body": adf("Can reproduce"),
                },
                {
                    "id": "2",
                    "created": "2024-05-02T10:00:00.000+0000",
                    "author": {"displayName": "Bob", "emailAddress": "bob@example.com"},
                    "body": adf("Fixed in main"),
                },
            ],
        },
    },
}


@pytest.fixture
def jira_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def jira_client(jira_requests) -> JiraClient:
    def handler(request: httpx.Request) -> httpx.Response:
        jira_requests.append(request)
        if request.url.path == "/rest/api/3/issue/CORE-123":
            return httpx.Response(200, json=ISSUE_PAYLOAD)
        if request.url.path == "/rest/api/3/search":
            return httpx.Response(410, json={"errorMessages": ["This endpoint has been removed"]})
        if request.url.path == "/rest/api/3/search/jql":
            return httpx.Response(
                200,
                json={
                    "issues": [
                        {"id": "10001", "key": "CORE-123", "fields": {"summary": "Login fails"}},
                        {"id": "10002", "key": "CORE-124", "fields": {"summary": "Add SSO"}},
                    ]
                },
            )
        return httpx.Response(404, json={"errorMessages": ["Issue does not exist"]})

    return JiraClient(
        instance="https://example.atlassian.net/",
        email="me@example.com",
        token="secret",
        transport=httpx.MockTransport(handler),
    )


# ---------------------------------------------------------------------------
# Client Tests
# ---------------------------------------------------------------------------


class TestParseIssue:
    def test_maps_fields(self) -> None:
        issue = parse_issue(ISSUE_PAYLOAD)
        assert issue.key == "CORE-123"
        assert issue.summary == "Login fails on Safari"
        assert [c.author_name for c in issue.comments] == ["Ann", "Bob"]

    def test_missing_comment_block(self) -> None:
        issue = parse_issue({"id": 1, "key": "X-1", "fields": {"summary": "s"}})
        assert issue.id == "1"
        assert issue.comments == []
        assert issue.description is None


class TestJiraClient:
    """Tests for JiraClient against a mocked API."""

    @pytest.mark.asyncio
    async def test_get_issue(self, jira_client, jira_requests) -> None:
        issue = await jira_client.get_issue("CORE-123")
        assert issue.key == "CORE-123"
        assert len(issue.comments) == 2

        request = jira_requests[0]
        assert request.url.params["fields"] == "description,comment,summary"
        expected = base64.b64encode(b"me@example.com:secret").decode()
        assert request.headers["Authorization"] == f"Basic {expected}"

    @pytest.mark.asyncio
    async def test_get_missing_issue_raises(self, jira_client) -> None:
        with pytest.raises(httpx.HTTPStatusError):
            await jira_client.get_issue("NOPE-1")

    @pytest.mark.asyncio
    async def test_search_issues_default_query(self, jira_client, jira_requests) -> None:
        summaries = await jira_client.search_issues()
        assert [s.title for s in summaries] == ["CORE-123: Login fails", "CORE-124: Add SSO"]
        assert jira_requests[0].url.path == "/rest/api/3/search/jql"
        assert jira_requests[0].url.params["jql"] == DEFAULT_JQL
        assert jira_requests[0].url.params["fields"] == "summary"

    @pytest.mark.asyncio
    async def test_search_failure_returns_empty(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"errorMessages": ["bad jql"]})

        client = JiraClient(instance="https://x.atlassian.net", transport=httpx.MockTransport(handler))
        assert await client.search_issues("not jql") == []

    @pytest.mark.asyncio
    async def test_search_network_failure_returns_empty(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        client = JiraClient(instance="https://x.atlassian.net", transport=httpx.MockTransport(handler))
        assert await client.search_issues() == []


# ---------------------------------------------------------------------------
# Provider Tests
# ---------------------------------------------------------------------------


class TestJiraIssueProvider:
    """Tests for JiraIssueProvider."""

    @pytest.mark.asyncio
    async def test_context_item_for_issue(self, jira_client) -> None:
        provider = JiraIssueProvider(client=jira_client)
        (item,) = await provider.get_context_items("CORE-123")

        assert item.name == "CORE-123: Login fails on Safari"
        assert item.description == "CORE-123"
        assert item.content == (
            "# Jira Issue CORE-123: Login fails on Safari\n\n"
            "## Description\n\n"
            "Steps to reproduce\n\n"
            "## Comments\n\n"
            "### Ann on 2024-05-01T10:00:00.000+0000\n\nCan reproduce\n\n"
            "### Bob on 2024-05-02T10:00:00.000+0000\n\nFixed in main"
        )

    @pytest.mark.asyncio
    async def test_custom_converter_is_used(self) -> None:
        issue = Issue(
            id="1",
            key="X-1",
            summary="s",
            description={"any": "tree"},
            comments=[IssueComment(id="1", author_name="A", created="t", body={"any": "tree"})],
        )
        calls = []

        def convert(doc: dict) -> ConversionResult:
            calls.append(doc)
            return ConversionResult(result="converted")

        provider = JiraIssueProvider(client=MockJiraClient({"X-1": issue}), convert=convert)
        (item,) = await provider.get_context_items("X-1")
        assert len(calls) == 2
        assert item.content.count("converted") == 2

    @pytest.mark.asyncio
    async def test_missing_issue_yields_no_items(self) -> None:
        provider = JiraIssueProvider(client=MockJiraClient())
        assert await provider.get_context_items("NOPE-1") == []

    @pytest.mark.asyncio
    async def test_submenu_items(self) -> None:
        client = MockJiraClient(
            summaries=[IssueSummary(id="10001", key="CORE-1", summary="First")]
        )
        items = await JiraIssueProvider(client=client).load_submenu_items()
        assert [i.model_dump() for i in items] == [
            {"id": "10001", "title": "CORE-1: First", "description": ""}
        ]

    @pytest.mark.asyncio
    async def test_submenu_uses_configured_query(self, jira_client, jira_requests) -> None:
        provider = JiraIssueProvider(client=jira_client, issue_query="project = CORE")
        await provider.load_submenu_items()
        assert jira_requests[0].url.params["jql"] == "project = CORE"
