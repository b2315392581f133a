"""Markdown rendering for review discussion and issue documents.

Documents are assembled from blocks that are joined with a blank line:

    # GitLab Merge Request Comments
    Branch: feature-x
    Project: group/repo
    Merge Request: 42
    ## File src/a.ts
    ### Jane Doe on 2024-05-01T12:00:00+00:00 (Resolved)
    line: 10
    commit: 1a2b3c
    <comment body>
    ## General Comments
    ...

Comment bodies are emitted verbatim. They are already markdown and are
never escaped or re-rendered.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel

from review_context.context.workspace import WorkspaceReader, slice_lines
from review_context.schemas import (
    BranchContext,
    Comment,
    Issue,
    LocationGroup,
    Review,
)

UNKNOWN = "unknown"
GENERAL_HEADING = "## General Comments"
NO_DESCRIPTION = "No description"


class ConversionResult(BaseModel):
    """Output of a rich-text to markdown conversion."""

    result: str


RichTextConverter = Callable[[dict[str, Any]], ConversionResult]


# ---------------------------------------------------------------------------
# Snippets
# ---------------------------------------------------------------------------


def _snippet_range(comment: Comment) -> tuple[int, int] | None:
    anchor = comment.anchor
    if anchor is None:
        return None
    if anchor.line_range is not None:
        return anchor.line_range.start_line, anchor.line_range.end_line
    if anchor.line_number is not None:
        return anchor.line_number, anchor.line_number
    return None


async def collect_snippets(
    groups: list[LocationGroup],
    reader: WorkspaceReader,
) -> dict[int | str, str]:
    """Read the source lines each anchored comment points at.

    Each file is read once; all reads run concurrently since they are
    independent. Comments whose file cannot be read, or whose range lies
    outside the file, get no snippet.

    Args:
        groups: Location groups from the aggregator
        reader: Reader bound to the workspace root

    Returns:
        Comment id -> snippet text
    """
    paths = [group.file_path for group in groups if group.file_path is not None]
    contents = await asyncio.gather(*(reader.read_text(path) for path in paths))
    files = dict(zip(paths, contents))

    snippets: dict[int | str, str] = {}
    for group in groups:
        text = files.get(group.file_path)
        if text is None:
            continue
        for comment in group.comments:
            line_range = _snippet_range(comment)
            if line_range is None:
                continue
            snippet = slice_lines(text, *line_range)
            if snippet is not None:
                snippets[comment.id] = snippet
    return snippets


# ---------------------------------------------------------------------------
# Review Documents
# ---------------------------------------------------------------------------


def format_comment(comment: Comment, snippet: str | None = None) -> str:
    """Render one comment subsection.

    Args:
        comment: The comment to render
        snippet: Source lines to embed as a fenced code block, if any

    Returns:
        The subsection as markdown
    """
    resolved = " (Resolved)" if comment.resolved else ""
    created = comment.timestamp or comment.created_at.isoformat()
    parts = [f"### {comment.author.name} on {created}{resolved}"]

    anchor = comment.anchor
    if anchor is not None and anchor.line_number is not None:
        parts.append(f"line: {anchor.line_number}\ncommit: {anchor.commit_ref or UNKNOWN}")

    if snippet is not None:
        parts.append(f"```\n{snippet}\n```")

    parts.append(comment.body)
    return "\n\n".join(parts)


def render_review_document(
    title: str,
    context: BranchContext,
    review: Review | None,
    groups: list[LocationGroup],
    review_label: str = "Review",
    snippets: dict[int | str, str] | None = None,
) -> str:
    """Render the discussion of a review as a single markdown document.

    With no review (or no comments) the document is just the title and
    the metadata block.

    Args:
        title: Top-level heading
        context: Branch context the review was looked up with
        review: The review, or None when the lookup found nothing
        groups: Location groups in rendering order
        review_label: How the provider calls a review ("Merge Request")
        snippets: Comment id -> source snippet, from collect_snippets()

    Returns:
        The rendered markdown
    """
    snippets = snippets or {}
    parts = [
        f"# {title}",
        f"Branch: {context.remote_branch or UNKNOWN}\nProject: {context.project or UNKNOWN}",
    ]

    if review is not None:
        metadata = [f"{review_label}: {review.id}"]
        if review.title:
            metadata.append(f"Title: {review.title}")
        if review.web_url:
            metadata.append(f"URL: {review.web_url}")
        parts.append("\n".join(metadata))

    for group in groups:
        if group.is_general:
            parts.append(GENERAL_HEADING)
        else:
            parts.append(f"## File {group.file_path}")
        parts.extend(format_comment(c, snippets.get(c.id)) for c in group.comments)

    return "\n\n".join(parts)


# ---------------------------------------------------------------------------
# Issue Documents
# ---------------------------------------------------------------------------


def render_issue_document(issue: Issue, convert: RichTextConverter) -> str:
    """Render a Jira issue and its comments as a flat markdown document.

    Comments keep feed order; there is no grouping for issues.

    Args:
        issue: The fetched issue
        convert: Rich-text (ADF) to markdown converter
    """
    parts = [
        f"# Jira Issue {issue.key}: {issue.summary}",
        "## Description",
        convert(issue.description).result if issue.description else NO_DESCRIPTION,
    ]

    if issue.comments:
        parts.append("## Comments")
        for comment in issue.comments:
            body = convert(comment.body).result if comment.body else ""
            parts.append(f"### {comment.author_name} on {comment.created}\n\n{body}")

    return "\n\n".join(parts)
