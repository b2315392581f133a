"""Git state resolver for finding the review that belongs to a checkout.

This module shells out to git in the workspace directory and works out:
- the current local branch
- the remote it tracks, and the branch name on that remote
- the hosting-provider project path from the remote URL

Design notes:
- Commands go through a ShellRunner Protocol, so tests feed canned
  output through MockShell instead of touching a real repository
- The resolver never raises: every field it cannot determine is None,
  and the review lookup treats None as "no review found"
- All output parsing lives in parse_remote_branch / parse_project_path,
  so either can be swapped for a structured git query later
"""

from __future__ import annotations

import asyncio
import re
import shlex
from pathlib import Path
from typing import Protocol
from urllib.parse import urlsplit

from review_context.logging_config import get_logger
from review_context.schemas import BranchContext

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Protocol (Interface)
# ---------------------------------------------------------------------------


class ShellRunner(Protocol):
    """Runs a shell command in a fixed working directory."""

    async def run(self, command: str) -> str:
        """Run ``command`` and return its trimmed stdout.

        A failing command returns an empty string rather than raising.
        """
        ...


# ---------------------------------------------------------------------------
# Concrete Implementation
# ---------------------------------------------------------------------------


class SubprocessShell:
    """Runs commands with asyncio subprocesses inside ``workspace_dir``.

    Usage:
        shell = SubprocessShell("/path/to/repo")
        branch = await shell.run("git branch --show-current")
    """

    def __init__(self, workspace_dir: str | Path) -> None:
        self._workspace_dir = Path(workspace_dir)

    async def run(self, command: str) -> str:
        try:
            proc = await asyncio.create_subprocess_shell(
                command,
                cwd=self._workspace_dir,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await proc.communicate()
        except OSError as exc:
            logger.warning("shell_command_error", command=command, error=str(exc))
            return ""

        if proc.returncode != 0:
            logger.debug(
                "shell_command_failed",
                command=command,
                returncode=proc.returncode,
                stderr=stderr.decode("utf-8", errors="replace").strip(),
            )
            return ""

        return stdout.decode("utf-8", errors="replace").strip()


# ---------------------------------------------------------------------------
# Mock Implementation (for testing)
# ---------------------------------------------------------------------------


class MockShell:
    """Shell runner that answers from a command -> output mapping.

    Unknown commands behave like a failed command and return "".
    Every command is recorded in ``calls`` in the order it was run.
    """

    def __init__(self, responses: dict[str, str] | None = None) -> None:
        self._responses = responses or {}
        self.calls: list[str] = []

    async def run(self, command: str) -> str:
        self.calls.append(command)
        return self._responses.get(command, "").strip()


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def find_current_branch_line(branch_listing: str) -> str | None:
    """Return the ``git branch -vv`` line for the checked-out branch."""
    for line in branch_listing.splitlines():
        if line.startswith("*"):
            return line
    return None


def parse_remote_branch(branch_line: str | None, remote_name: str | None) -> str | None:
    """Extract the remote branch from a ``git branch -vv`` line.

    The tracking info looks like ``[origin/feature-x]`` or, when the
    branch has diverged, ``[origin/feature-x: ahead 2]``. Git forbids
    ``:`` in ref names, so the branch name ends at the first ``:``.

    Returns None when there is no line, no remote, or no match.
    """
    if not branch_line or not remote_name:
        return None

    match = re.search(
        rf"\[{re.escape(remote_name)}/(?P<remote_branch>[^\]:]+)(?::[^\]]*)?\]",
        branch_line,
    )
    if match is None:
        return None
    return match.group("remote_branch")


def parse_project_path(remote_url: str | None) -> str | None:
    """Extract the provider project path from a git remote URL.

    Handles the two forms git accepts:
    - scp-like:  git@gitlab.com:group/sub/repo.git -> group/sub/repo
    - URL:       https://gitlab.com/group/repo.git -> group/repo
                 ssh://git@host:2222/group/repo.git -> group/repo

    Returns None for anything else (including local paths).
    """
    if not remote_url:
        return None

    url = remote_url.strip()
    if url.endswith(".git"):
        url = url[: -len(".git")]

    if "://" in url:
        path = urlsplit(url).path.strip("/")
    elif ":" in url:
        path = url.rsplit(":", 1)[1].strip("/")
    else:
        return None

    return path or None


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


async def resolve_branch_context(shell: ShellRunner) -> BranchContext:
    """Work out branch, remote, remote branch and project from git state.

    Steps:
    1. ``git branch -vv`` to find the tracking info of the current branch
    2. ``git branch --show-current`` for the local branch name
    3. ``git config branch.<name>.remote`` for the tracked remote
    4. Match ``[<remote>/<branch>]`` in the line from step 1
    5. ``git remote get-url <remote>`` and strip it down to the project

    Args:
        shell: Runner bound to the workspace directory

    Returns:
        A BranchContext; fields that could not be determined are None
    """
    current_line = find_current_branch_line(await shell.run("git branch -vv"))
    branch_name = await shell.run("git branch --show-current") or None

    remote_name = None
    if branch_name:
        remote_name = (
            await shell.run(f"git config {shlex.quote(f'branch.{branch_name}.remote')}")
            or None
        )

    remote_branch = parse_remote_branch(current_line, remote_name)

    project = None
    if remote_name:
        remote_url = await shell.run(f"git remote get-url {shlex.quote(remote_name)}")
        project = parse_project_path(remote_url)

    context = BranchContext(
        branch_name=branch_name,
        remote_name=remote_name,
        remote_branch=remote_branch,
        project=project,
    )
    logger.info(
        "branch_context_resolved",
        branch=context.branch_name,
        remote=context.remote_name,
        remote_branch=context.remote_branch,
        project=context.project,
    )
    return context
