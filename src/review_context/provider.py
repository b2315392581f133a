"""Context providers: the pipelines the host tool actually calls.

This module ties the components together:
- VCS resolution (context/vcs.py)
- Review lookup and comment fetch (context/gitlab.py, context/github.py)
- Grouping (aggregator.py)
- Rendering (renderer.py)
- The Jira variant (context/jira.py, adf.py)

The review pipeline is a strict chain; each step needs the previous
one's result:
1. Resolve branch + project from git
2. Look up the open review for that branch
3. Fetch the review's comments
4. Group them by file and render the document

No step is fatal. A gap anywhere (no tracking branch, provider error,
no open review) produces a shorter document, never an exception, apart
from errors outside httpx's which are left to the host.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

import httpx

from review_context.adf import adf_to_markdown
from review_context.aggregator import group_comments
from review_context.config import DEFAULT_JQL, AppConfig, load_config
from review_context.context.github import GitHubClient
from review_context.context.gitlab import GitLabClient
from review_context.context.jira import IssueClientProtocol, JiraClient
from review_context.context.review import ReviewClientProtocol
from review_context.context.vcs import ShellRunner, SubprocessShell, resolve_branch_context
from review_context.context.workspace import LocalWorkspaceReader, WorkspaceReader
from review_context.logging_config import get_logger, setup_logging
from review_context.renderer import (
    RichTextConverter,
    collect_snippets,
    render_issue_document,
    render_review_document,
)
from review_context.schemas import Comment, ContextItem, SubmenuItem

logger = get_logger(__name__)


class ReviewCommentsProvider:
    """Renders the discussion of the current branch's open review.

    Stateless: every call to get_context_items() resolves git state and
    hits the provider API again.

    Usage:
        provider = ReviewCommentsProvider(
            client=GitLabClient(token="..."),
            shell=SubprocessShell("/path/to/repo"),
        )
        items = await provider.get_context_items()
    """

    def __init__(
        self,
        client: ReviewClientProtocol,
        shell: ShellRunner,
        reader: WorkspaceReader | None = None,
        name: str | None = None,
    ) -> None:
        """Initialize the provider with its collaborators.

        Args:
            client: Review lookup client (GitLab, GitHub or a mock)
            shell: Shell runner bound to the workspace directory
            reader: Workspace reader; when given, source snippets are
                    embedded under each anchored comment
            name: Name of the returned context item
        """
        self.client = client
        self.shell = shell
        self.reader = reader
        self.name = name or client.title

    async def render(self) -> str:
        """Run the full pipeline and return the markdown document."""
        context = await resolve_branch_context(self.shell)

        review = None
        lookup_error = None
        comments: list[Comment] = []
        if context.project and context.remote_branch:
            lookup = await self.client.find_open_review(context.project, context.remote_branch)
            if lookup.found:
                review = lookup.review
            else:
                lookup_error = lookup.error
        else:
            logger.info(
                "review_lookup_skipped",
                project=context.project,
                remote_branch=context.remote_branch,
            )

        if review is not None:
            try:
                comments = await self.client.get_comments(review)
            except httpx.HTTPError as exc:
                logger.warning(
                    "comment_fetch_failed",
                    project_id=review.project_id,
                    review_id=review.id,
                    error=str(exc),
                )

        groups = group_comments(comments)
        snippets = await collect_snippets(groups, self.reader) if self.reader else None

        logger.info(
            "review_document_rendered",
            review_id=review.id if review else None,
            lookup_error=lookup_error,
            comments_count=len(comments),
            groups_count=len(groups),
        )
        return render_review_document(
            title=self.client.title,
            context=context,
            review=review,
            groups=groups,
            review_label=self.client.review_label,
            snippets=snippets,
        )

    async def get_context_items(self, query: str = "") -> list[ContextItem]:
        """Return the rendered document as a single context item.

        ``query`` is accepted for parity with the host contract; the
        review is always the one for the checked-out branch.
        """
        content = await self.render()
        return [
            ContextItem(
                name=self.name,
                content=content,
                description="Comments from the review for this branch.",
            )
        ]


class JiraIssueProvider:
    """Renders a Jira issue and lists candidate issues for selection."""

    def __init__(
        self,
        client: IssueClientProtocol,
        convert: RichTextConverter = adf_to_markdown,
        issue_query: str = DEFAULT_JQL,
    ) -> None:
        self.client = client
        self.convert = convert
        self.issue_query = issue_query

    async def get_context_items(self, issue_id: str) -> list[ContextItem]:
        """Fetch and render one issue.

        An issue that cannot be fetched yields no items.
        """
        try:
            issue = await self.client.get_issue(issue_id)
        except httpx.HTTPError as exc:
            logger.warning("issue_fetch_failed", issue_id=issue_id, error=str(exc))
            return []

        return [
            ContextItem(
                name=f"{issue.key}: {issue.summary}",
                content=render_issue_document(issue, self.convert),
                description=issue.key,
            )
        ]

    async def load_submenu_items(self) -> list[SubmenuItem]:
        summaries = await self.client.search_issues(self.issue_query)
        return [SubmenuItem(id=s.id, title=s.title, description="") for s in summaries]


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def build_review_provider(
    config: AppConfig,
    host: str = "gitlab",
    workspace_dir: str | None = None,
    include_snippets: bool | None = None,
) -> ReviewCommentsProvider:
    """Build a review provider from configuration.

    Args:
        config: Loaded application config
        host: "gitlab" or "github"
        workspace_dir: Overrides config.workspace_dir
        include_snippets: Overrides config.include_snippets

    Raises:
        ValueError: If ``host`` is not a supported provider
    """
    workspace = workspace_dir or config.workspace_dir
    if include_snippets is None:
        include_snippets = config.include_snippets

    client: ReviewClientProtocol
    if host == "gitlab":
        client = GitLabClient(token=config.gitlab.token, domain=config.gitlab.domain)
        name = config.gitlab.display
    elif host == "github":
        client = GitHubClient(token=config.github.token, domain=config.github.domain)
        name = config.github.display
    else:
        raise ValueError(f"Unsupported review host: {host!r}")

    return ReviewCommentsProvider(
        client=client,
        shell=SubprocessShell(workspace),
        reader=LocalWorkspaceReader(workspace) if include_snippets else None,
        name=name,
    )


def build_jira_provider(config: AppConfig) -> JiraIssueProvider:
    """Build the Jira provider from configuration.

    Raises:
        ValueError: If no Jira instance is configured
    """
    if not config.jira.instance:
        raise ValueError("No Jira instance configured (set jira.instance or JIRA_INSTANCE)")

    client = JiraClient(
        instance=config.jira.instance,
        email=config.jira.email,
        token=config.jira.token,
    )
    return JiraIssueProvider(client=client, issue_query=config.jira.issue_query)


# ---------------------------------------------------------------------------
# CLI Entry Point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="review-context",
        description="Render review discussion and issue context as markdown",
    )
    parser.add_argument("--config", "-c", type=str, help="Path to YAML config file")

    sub = parser.add_subparsers(dest="command", required=True)
    for host in ("gitlab", "github"):
        review = sub.add_parser(host, help=f"Comments on this branch's {host} review")
        review.add_argument("--workspace", "-w", type=str, help="Repository directory")
        review.add_argument(
            "--snippets",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Embed the commented source lines (default: include_snippets from config)",
        )

    jira = sub.add_parser("jira", help="Render a Jira issue")
    jira.add_argument("issue", type=str, help="Issue id or key (e.g., CORE-123)")

    sub.add_parser("jira-list", help="List candidate Jira issues")
    return parser


async def run(args: argparse.Namespace) -> str:
    """Run the command described by ``args`` and return what to print."""
    config = load_config(args.config)

    if args.command in ("gitlab", "github"):
        provider = build_review_provider(
            config,
            host=args.command,
            workspace_dir=args.workspace,
            include_snippets=args.snippets,
        )
        items = await provider.get_context_items()
        return "\n\n".join(item.content for item in items)

    jira = build_jira_provider(config)
    if args.command == "jira":
        items = await jira.get_context_items(args.issue)
        return "\n\n".join(item.content for item in items)

    submenu = await jira.load_submenu_items()
    return "\n".join(f"{item.id}\t{item.title}" for item in submenu)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Usage:
        review-context gitlab --workspace ~/src/repo --snippets
        review-context jira CORE-123
        review-context jira-list
    """
    args = build_parser().parse_args(argv)
    setup_logging()

    try:
        output = asyncio.run(run(args))
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if output:
        print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
