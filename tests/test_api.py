from unittest.mock import AsyncMock, MagicMock, patch

from fastapi.testclient import TestClient

from review_context.config import AppConfig, JiraConfig
from review_context.main import app
from review_context.schemas import ContextItem, SubmenuItem

client = TestClient(app, raise_server_exceptions=False)


def fake_provider(**methods) -> MagicMock:
    provider = MagicMock()
    for name, value in methods.items():
        setattr(provider, name, AsyncMock(return_value=value))
    return provider


def test_health_check():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_gitlab_returns_context_items():
    item = ContextItem(name="GitLab MR Comments", content="# GitLab", description="d")
    provider = fake_provider(get_context_items=[item])
    app.state.config = AppConfig()

    with patch("review_context.main.build_review_provider", return_value=provider) as build:
        response = client.post("/gitlab", json={"query": "", "fullInput": "", "workspacePath": "/repo"})

    assert response.status_code == 200
    assert response.json() == [item.model_dump()]
    assert build.call_args.kwargs == {"host": "gitlab", "workspace_dir": "/repo"}


def test_github_uses_configured_workspace_by_default():
    provider = fake_provider(get_context_items=[])
    app.state.config = AppConfig()

    with patch("review_context.main.build_review_provider", return_value=provider) as build:
        response = client.post("/github", json={"query": ""})

    assert response.status_code == 200
    assert build.call_args.kwargs == {"host": "github", "workspace_dir": None}


def test_jira_requires_query():
    response = client.post("/jira", json={"query": "  "})
    assert response.status_code == 422


def test_jira_without_instance_is_a_validation_error():
    app.state.config = AppConfig()
    response = client.post("/jira", json={"query": "CORE-1"})
    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"


def test_jira_issue():
    item = ContextItem(name="CORE-1: S", content="# Jira Issue CORE-1: S", description="CORE-1")
    provider = fake_provider(get_context_items=[item])
    app.state.config = AppConfig(jira=JiraConfig(instance="https://x.atlassian.net"))

    with patch("review_context.main.build_jira_provider", return_value=provider):
        response = client.post("/jira", json={"query": " CORE-1 "})

    assert response.status_code == 200
    assert response.json()[0]["description"] == "CORE-1"
    provider.get_context_items.assert_awaited_once_with("CORE-1")


def test_jira_issues_submenu():
    items = [SubmenuItem(id="10001", title="CORE-1: S")]
    provider = fake_provider(load_submenu_items=items)

    with patch("review_context.main.build_jira_provider", return_value=provider):
        response = client.get("/jira/issues")

    assert response.status_code == 200
    assert response.json() == [{"id": "10001", "title": "CORE-1: S", "description": ""}]


def test_unexpected_error_is_500():
    provider = MagicMock()
    provider.get_context_items = AsyncMock(side_effect=RuntimeError("bug"))

    with patch("review_context.main.build_review_provider", return_value=provider):
        response = client.post("/gitlab", json={})

    assert response.status_code == 500
    assert response.json() == {"error": "internal_error", "detail": "bug"}
