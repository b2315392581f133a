"""Pydantic models shared by every stage of the review-context pipeline.

These schemas are the contract between the stages:
- BranchContext comes out of the VCS resolver
- Review / ReviewLookup come out of the provider clients
- Comment / Anchor are what the aggregator groups
- LocationGroup is what the renderer walks
- ContextItem / SubmenuItem are what the host tool receives

Every model is built fresh per request and thrown away after rendering.
Comment and Anchor are frozen: once fetched they are never mutated, the
aggregator only reorders references to them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# VCS State
# ---------------------------------------------------------------------------


class BranchContext(BaseModel):
    """What the local git checkout tells us about the current branch.

    Any field may be None when the corresponding git query failed or
    its output could not be parsed. Downstream stages treat a missing
    remote_branch or project as "no review found".

    Attributes:
        branch_name: Local short branch name (git branch --show-current)
        remote_name: Remote the branch tracks (e.g., "origin")
        remote_branch: Branch name on the remote (e.g., "feature-x")
        project: Hosting-provider project path (e.g., "group/repo")
    """

    branch_name: str | None = None
    remote_name: str | None = None
    remote_branch: str | None = None
    project: str | None = None


# ---------------------------------------------------------------------------
# Reviews and Comments
# ---------------------------------------------------------------------------


class Review(BaseModel):
    """An open merge/pull request matching the current branch.

    Attributes:
        id: Provider-local review number (GitLab iid, GitHub number)
        project_id: Project the review lives in (GitLab numeric id or
                    GitHub "owner/repo")
        state: Provider state string ("opened", "open")
        title: Review title, rendered in the metadata block when set
        web_url: Link to the review page, rendered when set
    """

    id: int
    project_id: int | str
    state: str = "opened"
    title: str = ""
    web_url: str | None = None


class ReviewLookup(BaseModel):
    """Outcome of looking up the review for a branch.

    A failed lookup is not an exception: the provider's error payload is
    kept in ``error`` so the caller can still render a partial document.
    """

    review: Review | None = None
    error: Any = None

    @property
    def found(self) -> bool:
        return self.review is not None


class Author(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str


class LineRange(BaseModel):
    """Inclusive, 1-based range of lines a comment refers to."""

    model_config = ConfigDict(frozen=True)

    start_line: int = Field(..., ge=1)
    end_line: int = Field(..., ge=1)


class Anchor(BaseModel):
    """The code location a review comment is attached to.

    Attributes:
        file_path: Path relative to the repository root
        line_number: Line in the new version of the file, if known
        commit_ref: Commit SHA the comment was made against
        line_range: Multi-line selection, if the provider reports one
    """

    model_config = ConfigDict(frozen=True)

    file_path: str
    line_number: int | None = None
    commit_ref: str | None = None
    line_range: LineRange | None = None


class Comment(BaseModel):
    """A single review comment, immutable once fetched.

    Comments without an anchor are "general": not tied to a file.
    ``timestamp`` keeps ``created_at`` exactly as the provider sent it;
    that string is what gets rendered.
    """

    model_config = ConfigDict(frozen=True)

    id: int | str
    body: str = ""
    created_at: datetime
    timestamp: str = ""
    author: Author
    resolved: bool = False
    anchor: Anchor | None = None

    @model_validator(mode="before")
    @classmethod
    def keep_provider_timestamp(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("created_at"), str):
            return {"timestamp": data["created_at"], **data}
        return data


class LocationGroup(BaseModel):
    """Comments that share the same anchor file path.

    ``file_path`` is None for the general group (comments with no
    anchor), so a file that happens to be named "general" never
    collides with it.
    """

    file_path: str | None = None
    comments: list[Comment] = Field(default_factory=list)

    @property
    def is_general(self) -> bool:
        return self.file_path is None


# ---------------------------------------------------------------------------
# Issue Tracker
# ---------------------------------------------------------------------------


class IssueComment(BaseModel):
    """A Jira comment. ``body`` is an Atlassian Document Format tree."""

    id: str
    author_name: str
    created: str
    body: dict[str, Any] | None = None


class Issue(BaseModel):
    """A Jira issue with its comments, as returned by a single fetch."""

    id: str
    key: str
    summary: str = ""
    description: dict[str, Any] | None = None
    comments: list[IssueComment] = Field(default_factory=list)


class IssueSummary(BaseModel):
    """Lightweight search result used to populate the issue picker."""

    id: str
    key: str
    summary: str = ""

    @property
    def title(self) -> str:
        return f"{self.key}: {self.summary}"


# ---------------------------------------------------------------------------
# Host Contract
# ---------------------------------------------------------------------------


class ContextItem(BaseModel):
    """One item handed back to the host tool.

    Attributes:
        name: Short label shown in the host's UI
        content: The rendered markdown document
        description: One-line description of where the content came from
    """

    name: str
    content: str
    description: str = ""


class SubmenuItem(BaseModel):
    """An entry in the host tool's selection submenu."""

    id: str
    title: str
    description: str = ""
