"""Review discussion context for editor assistants.

Resolves the open merge/pull request for the checked-out branch, groups
its review comments by file and line, and renders them (or a Jira issue)
as markdown context items.
"""

__version__ = "0.1.0"
