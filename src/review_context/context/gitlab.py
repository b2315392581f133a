"""GitLab API client for merge-request discussion.

Fetches the open merge request for a branch and its diff notes from
GitLab's REST API (v4).

Design notes:
- Uses httpx for async HTTP requests, one client per call
- Authenticates with a PRIVATE-TOKEN header; token lifecycle is the
  caller's problem
- Only DiffNote notes are kept: plain notes and system events
  ("added 1 commit", "approved this merge request") are dropped

GitLab API docs: https://docs.gitlab.com/ee/api/merge_requests.html
                 https://docs.gitlab.com/ee/api/notes.html
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from review_context.context.review import error_payload
from review_context.logging_config import get_logger
from review_context.schemas import (
    Anchor,
    Author,
    Comment,
    LineRange,
    Review,
    ReviewLookup,
)

logger = get_logger(__name__)

DIFF_NOTE = "DiffNote"


def parse_note(note: dict[str, Any]) -> Comment:
    """Map a GitLab note onto a Comment.

    A DiffNote without a ``position`` (GitLab drops it for some outdated
    notes) becomes a general comment.
    """
    anchor = None
    position = note.get("position")
    if position and position.get("new_path"):
        line_range = None
        raw_range = position.get("line_range") or {}
        start = (raw_range.get("start") or {}).get("new_line")
        end = (raw_range.get("end") or {}).get("new_line")
        if start and end:
            line_range = LineRange(start_line=start, end_line=end)

        anchor = Anchor(
            file_path=position["new_path"],
            line_number=position.get("new_line"),
            commit_ref=position.get("head_sha"),
            line_range=line_range,
        )

    return Comment(
        id=note["id"],
        body=note.get("body") or "",
        created_at=note["created_at"],
        author=Author(name=note["author"]["name"]),
        resolved=bool(note.get("resolved")),
        anchor=anchor,
    )


class GitLabClient:
    """Real GitLab API client using httpx.

    Usage:
        client = GitLabClient(token="glpat-...")
        lookup = await client.find_open_review("group/repo", "feature-x")
        if lookup.review:
            comments = await client.get_comments(lookup.review)
    """

    title = "GitLab Merge Request Comments"
    review_label = "Merge Request"

    def __init__(
        self,
        token: str | None = None,
        domain: str = "gitlab.com",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the GitLab client.

        Args:
            token: GitLab personal/project access token
            domain: GitLab host, for self-managed instances
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self._base_url = f"https://{domain}/api/v4"
        self._transport = transport
        self._headers: dict[str, str] = {"Accept": "application/json"}
        if token:
            self._headers["PRIVATE-TOKEN"] = token

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers,
            timeout=30.0,
            transport=self._transport,
        )

    async def find_open_review(self, project: str, branch: str) -> ReviewLookup:
        """Find the first open merge request with ``branch`` as its source.

        GET /projects/{url-encoded project}/merge_requests

        Args:
            project: Project path (e.g., "group/repo")
            branch: Source branch on the remote

        Returns:
            A ReviewLookup; API order decides which MR wins
        """
        try:
            async with self._client() as client:
                resp = await client.get(
                    f"/projects/{quote(project, safe='')}/merge_requests",
                    params={"source_branch": branch, "state": "opened"},
                )
                resp.raise_for_status()
                merge_requests = resp.json()
        except httpx.HTTPError as exc:
            payload = error_payload(exc)
            logger.warning(
                "review_lookup_failed",
                provider="gitlab",
                project=project,
                branch=branch,
                error=payload,
            )
            return ReviewLookup(error=payload)

        if not merge_requests:
            logger.info("review_not_found", provider="gitlab", project=project, branch=branch)
            return ReviewLookup()

        mr = merge_requests[0]
        return ReviewLookup(
            review=Review(
                id=mr["iid"],
                project_id=mr["project_id"],
                state=mr.get("state", "opened"),
                title=mr.get("title", ""),
                web_url=mr.get("web_url"),
            )
        )

    async def get_comments(self, review: Review) -> list[Comment]:
        """Fetch the diff notes of a merge request, oldest first.

        GET /projects/{project_id}/merge_requests/{iid}/notes

        Raises:
            httpx.HTTPStatusError: If the notes request fails
        """
        async with self._client() as client:
            resp = await client.get(
                f"/projects/{review.project_id}/merge_requests/{review.id}/notes",
                params={"sort": "asc", "order_by": "created_at"},
            )
            resp.raise_for_status()
            notes = resp.json()

        return [parse_note(note) for note in notes if note.get("type") == DIFF_NOTE]
