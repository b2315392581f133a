"""GitHub API client for pull-request review comments.

Fetches the open pull request for a branch and its review comments
(the ones attached to diff lines) from GitHub's REST API.

Design notes:
- Same ReviewClientProtocol as the GitLab client, so the pipeline does
  not care which host it talks to
- Review comments are always diff discussion; issue-style PR comments
  live on a different endpoint and are not fetched
- GitHub does not expose a resolved flag on review comments, so every
  comment renders as unresolved

GitHub API docs: https://docs.github.com/en/rest/pulls
"""

from __future__ import annotations

from typing import Any

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


def parse_review_comment(comment: dict[str, Any]) -> Comment:
    """Map a GitHub pull-request review comment onto a Comment.

    ``line`` is None for outdated comments, in which case the line the
    comment was originally made on is used. File-level comments have
    neither and keep only the path.
    """
    line = comment.get("line") or comment.get("original_line")
    start_line = comment.get("start_line") or comment.get("original_start_line")

    line_range = None
    if line:
        line_range = LineRange(start_line=start_line or line, end_line=line)

    anchor = None
    if comment.get("path"):
        anchor = Anchor(
            file_path=comment["path"],
            line_number=line,
            commit_ref=comment.get("commit_id") or comment.get("original_commit_id"),
            line_range=line_range,
        )

    user = comment.get("user") or {}
    return Comment(
        id=comment["id"],
        body=comment.get("body") or "",
        created_at=comment["created_at"],
        author=Author(name=user.get("login", "unknown")),
        anchor=anchor,
    )


class GitHubClient:
    """Real GitHub API client using httpx.

    Usage:
        client = GitHubClient(token="ghp_...")
        lookup = await client.find_open_review("myorg/api", "feature-x")
    """

    title = "GitHub Pull Request Comments"
    review_label = "Pull Request"

    def __init__(
        self,
        token: str | None = None,
        domain: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the GitHub client.

        Args:
            token: GitHub personal access token
            domain: GitHub Enterprise host; None means github.com
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        if domain:
            self._base_url = f"https://{domain}/api/v3"
        else:
            self._base_url = "https://api.github.com"
        self._transport = transport
        self._headers: dict[str, str] = {
            "Accept": "application/vnd.github.v3+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers,
            timeout=30.0,
            transport=self._transport,
        )

    async def find_open_review(self, project: str, branch: str) -> ReviewLookup:
        """Find the first open pull request whose head is ``branch``.

        GET /repos/{owner}/{repo}/pulls?head={owner}:{branch}

        Args:
            project: Repository in "owner/name" format
            branch: Head branch on the remote
        """
        owner = project.split("/", 1)[0]
        try:
            async with self._client() as client:
                resp = await client.get(
                    f"/repos/{project}/pulls",
                    params={"head": f"{owner}:{branch}", "state": "open"},
                )
                resp.raise_for_status()
                pulls = resp.json()
        except httpx.HTTPError as exc:
            payload = error_payload(exc)
            logger.warning(
                "review_lookup_failed",
                provider="github",
                project=project,
                branch=branch,
                error=payload,
            )
            return ReviewLookup(error=payload)

        if not pulls:
            logger.info("review_not_found", provider="github", project=project, branch=branch)
            return ReviewLookup()

        pr = pulls[0]
        return ReviewLookup(
            review=Review(
                id=pr["number"],
                project_id=project,
                state=pr.get("state", "open"),
                title=pr.get("title", ""),
                web_url=pr.get("html_url"),
            )
        )

    async def get_comments(self, review: Review) -> list[Comment]:
        """Fetch the review comments of a pull request, oldest first.

        GET /repos/{owner}/{repo}/pulls/{number}/comments

        Raises:
            httpx.HTTPStatusError: If the comments request fails
        """
        async with self._client() as client:
            resp = await client.get(
                f"/repos/{review.project_id}/pulls/{review.id}/comments",
                params={"sort": "created", "direction": "asc"},
            )
            resp.raise_for_status()
            comments = resp.json()

        return [parse_review_comment(comment) for comment in comments]
