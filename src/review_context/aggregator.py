"""Groups a flat comment feed by the file each comment is anchored to.

The providers hand back comments in creation order. Reviewers read code
file by file, top to bottom, so the document groups them the same way:

- one group per anchor file path, plus one "general" group for
  comments without an anchor
- groups keep the order in which their first comment appeared, so the
  file that was discussed first comes first (this is not alphabetical)
- inside a file group comments are re-sorted by line number; the sort
  is stable, so comments on the same line stay in creation order
- the general group keeps creation order, it has no lines to sort by
"""

from __future__ import annotations

from collections.abc import Iterable

from review_context.schemas import Comment, LocationGroup


def line_sort_key(comment: Comment) -> int:
    """Sort key for comments within a file group.

    Comments whose anchor has no line number sort before every numbered
    comment and keep their relative order.
    """
    if comment.anchor is None or comment.anchor.line_number is None:
        return 0
    return comment.anchor.line_number


def group_comments(comments: Iterable[Comment]) -> list[LocationGroup]:
    """Partition comments into location groups.

    Every comment ends up in exactly one group. Dicts preserve insertion
    order, which gives first-occurrence ordering of the groups for free.

    Args:
        comments: Comments in chronological (feed) order

    Returns:
        Location groups in first-occurrence order
    """
    buckets: dict[str | None, list[Comment]] = {}
    for comment in comments:
        key = comment.anchor.file_path if comment.anchor else None
        buckets.setdefault(key, []).append(comment)

    groups = []
    for file_path, bucket in buckets.items():
        if file_path is not None:
            bucket = sorted(bucket, key=line_sort_key)
        groups.append(LocationGroup(file_path=file_path, comments=bucket))
    return groups
