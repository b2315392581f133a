"""Configuration loading for the review-context providers.

Configuration is merged from (in order of precedence):
  1. Built-in defaults (the pydantic field defaults below)
  2. A YAML file (.review-context.yml, or $REVIEW_CONTEXT_CONFIG)
  3. Environment variables, for secrets the file leaves unset

Example file:

    workspace_dir: ~/src/my-repo
    include_snippets: true
    gitlab:
      domain: gitlab.example.com
      token: glpat-...
    jira:
      instance: https://example.atlassian.net
      email: me@example.com
      issue_query: project = CORE AND resolution = Unresolved
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = ".review-context.yml"

DEFAULT_JQL = "assignee = currentUser() AND resolution = Unresolved order by updated DESC"


class GitLabConfig(BaseModel):
    """Settings for the GitLab merge-request provider."""

    domain: str = "gitlab.com"
    token: str | None = None
    display: str = "GitLab MR Comments"


class GitHubConfig(BaseModel):
    """Settings for the GitHub pull-request provider.

    ``domain`` is only needed for GitHub Enterprise; github.com uses the
    public API host.
    """

    domain: str | None = None
    token: str | None = None
    display: str = "GitHub PR Comments"


class JiraConfig(BaseModel):
    """Settings for the Jira issue provider."""

    instance: str | None = None
    email: str | None = None
    token: str | None = None
    issue_query: str = DEFAULT_JQL


class AppConfig(BaseModel):
    """Top-level configuration loaded from YAML."""

    workspace_dir: str = "."
    include_snippets: bool = False
    gitlab: GitLabConfig = Field(default_factory=GitLabConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    jira: JiraConfig = Field(default_factory=JiraConfig)


def _apply_env(config: AppConfig) -> AppConfig:
    """Fill unset credentials from the environment."""
    config.gitlab.token = config.gitlab.token or os.environ.get("GITLAB_TOKEN")
    config.github.token = config.github.token or os.environ.get("GITHUB_TOKEN")
    config.jira.instance = config.jira.instance or os.environ.get("JIRA_INSTANCE")
    config.jira.email = config.jira.email or os.environ.get("JIRA_EMAIL")
    config.jira.token = config.jira.token or os.environ.get("JIRA_TOKEN")
    return config


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load and validate a YAML config file.

    Args:
        path: Path to the YAML configuration file. Defaults to
              $REVIEW_CONTEXT_CONFIG, then .review-context.yml.

    Returns:
        A validated AppConfig. Returns defaults (plus environment
        credentials) if the file doesn't exist.

    Raises:
        ValueError: If the YAML content is invalid or fails validation.
    """
    config_path = Path(
        path or os.environ.get("REVIEW_CONTEXT_CONFIG", DEFAULT_CONFIG_PATH)
    ).expanduser()
    if not config_path.exists():
        return _apply_env(AppConfig())

    try:
        raw = yaml.safe_load(config_path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

    try:
        config = AppConfig.model_validate(raw)
    except Exception as exc:
        raise ValueError(f"Invalid config in {config_path}: {exc}") from exc

    config.workspace_dir = str(Path(config.workspace_dir).expanduser())
    return _apply_env(config)
