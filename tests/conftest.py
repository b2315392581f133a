"""Shared fixtures for the review-context tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from review_context.context.vcs import MockShell
from review_context.schemas import Anchor, Author, Comment, LineRange


@pytest.fixture
def make_comment() -> Callable[..., Comment]:
    """Factory for comments; pass ``path`` to anchor the comment to a file."""
    counter = iter(range(1, 10_000))

    def _make(
        body: str = "Looks good",
        path: str | None = None,
        line: int | None = None,
        line_range: tuple[int, int] | None = None,
        author: str = "Jane Doe",
        created_at: str = "2024-05-01T12:00:00Z",
        resolved: bool = False,
        commit: str | None = "1a2b3c",
    ) -> Comment:
        anchor = None
        if path is not None:
            anchor = Anchor(
                file_path=path,
                line_number=line,
                commit_ref=commit,
                line_range=LineRange(start_line=line_range[0], end_line=line_range[1])
                if line_range
                else None,
            )
        return Comment(
            id=next(counter),
            body=body,
            created_at=created_at,
            author=Author(name=author),
            resolved=resolved,
            anchor=anchor,
        )

    return _make


@pytest.fixture
def feature_shell() -> MockShell:
    """Git state for branch feature-x tracking origin/feature-x on group/repo."""
    return MockShell(
        {
            "git branch -vv": (
                "  main      9f8e7d6 [origin/main] Initial commit\n"
                "* feature-x 1a2b3c4 [origin/feature-x: ahead 1] Add widget"
            ),
            "git branch --show-current": "feature-x",
            "git config branch.feature-x.remote": "origin",
            "git remote get-url origin": "git@gitlab.com:group/repo.git",
        }
    )
