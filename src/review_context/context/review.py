"""Interface shared by the merge/pull request providers.

GitLab and GitHub disagree on nearly every field name, but the pipeline
only needs two things from either of them:
1. the open review whose source branch is the current remote branch
2. that review's diff discussion, oldest comment first

Design notes:
- The provider modules map their wire format onto Review / Comment
- A failed lookup comes back as ReviewLookup(error=...), never raises
- MockReviewClient lets the provider pipeline run without a network
"""

from __future__ import annotations

from typing import Any, Protocol

import httpx

from review_context.schemas import Comment, Review, ReviewLookup


def error_payload(exc: httpx.HTTPError) -> Any:
    """Return the structured error body of a failed request, if any.

    Status errors carry the provider's JSON error document (falling back
    to the raw text); transport errors only have their message.
    """
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            return exc.response.json()
        except ValueError:
            return exc.response.text
    return str(exc)


# ---------------------------------------------------------------------------
# Protocol (Interface)
# ---------------------------------------------------------------------------


class ReviewClientProtocol(Protocol):
    """Protocol for review lookup clients.

    Attributes:
        title: Document title, rendered as the top-level heading
        review_label: Label for the review number in the metadata block
    """

    title: str
    review_label: str

    async def find_open_review(self, project: str, branch: str) -> ReviewLookup:
        """Find the first open review whose source branch is ``branch``.

        Args:
            project: Provider project path (e.g., "group/repo")
            branch: Branch name on the remote

        Returns:
            A ReviewLookup. ``review`` is None when nothing matched or
            when the provider returned an error (kept in ``error``).
        """
        ...

    async def get_comments(self, review: Review) -> list[Comment]:
        """Fetch the review's diff discussion, sorted by creation time."""
        ...


# ---------------------------------------------------------------------------
# Mock Implementation (for testing)
# ---------------------------------------------------------------------------


class MockReviewClient:
    """Review client that returns predefined data.

    Usage:
        client = MockReviewClient(
            reviews={("group/repo", "feature-x"): Review(id=42, project_id=7)},
            comments={42: [comment_a, comment_b]},
        )
        lookup = await client.find_open_review("group/repo", "feature-x")
    """

    title = "Mock Review Comments"
    review_label = "Review"

    def __init__(
        self,
        reviews: dict[tuple[str, str], Review] | None = None,
        comments: dict[int, list[Comment]] | None = None,
        error: object = None,
    ) -> None:
        """Initialize with optional predefined data.

        Args:
            reviews: (project, branch) -> the review to return
            comments: review id -> the comment feed to return
            error: If set, every lookup fails with this payload
        """
        self._reviews = reviews or {}
        self._comments = comments or {}
        self._error = error
        self.lookups: list[tuple[str, str]] = []

    async def find_open_review(self, project: str, branch: str) -> ReviewLookup:
        self.lookups.append((project, branch))
        if self._error is not None:
            return ReviewLookup(error=self._error)
        return ReviewLookup(review=self._reviews.get((project, branch)))

    async def get_comments(self, review: Review) -> list[Comment]:
        return list(self._comments.get(review.id, []))
