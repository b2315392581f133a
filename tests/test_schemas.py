"""Tests for the shared pydantic schemas.

Run with: pytest tests/test_schemas.py -v
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from review_context.schemas import (
    Anchor,
    Author,
    BranchContext,
    Comment,
    IssueSummary,
    LineRange,
    LocationGroup,
    Review,
    ReviewLookup,
)


class TestComment:
    def test_parses_provider_timestamp(self) -> None:
        comment = Comment(
            id=1,
            created_at="2024-05-01T12:00:00.000Z",
            author=Author(name="Jane"),
        )
        assert comment.created_at == datetime(2024, 5, 1, 12, tzinfo=timezone.utc)
        assert comment.timestamp == "2024-05-01T12:00:00.000Z"
        assert comment.anchor is None
        assert comment.resolved is False

    def test_datetime_input_has_no_provider_timestamp(self) -> None:
        created = datetime(2024, 5, 1, 12, tzinfo=timezone.utc)
        comment = Comment(id=1, created_at=created, author=Author(name="Jane"))
        assert comment.timestamp == ""

    def test_is_frozen(self) -> None:
        comment = Comment(id=1, created_at="2024-05-01T12:00:00Z", author=Author(name="Jane"))
        with pytest.raises(ValidationError):
            comment.body = "edited"

    def test_anchor_is_frozen(self) -> None:
        anchor = Anchor(file_path="a.py", line_number=1)
        with pytest.raises(ValidationError):
            anchor.line_number = 2


class TestLineRange:
    def test_lines_are_one_based(self) -> None:
        with pytest.raises(ValidationError):
            LineRange(start_line=0, end_line=3)


class TestBranchContext:
    def test_all_fields_default_to_none(self) -> None:
        context = BranchContext()
        assert context.branch_name is None
        assert context.project is None


class TestReviewLookup:
    def test_found(self) -> None:
        assert ReviewLookup(review=Review(id=42, project_id=7)).found
        assert not ReviewLookup().found
        assert not ReviewLookup(error={"message": "404 Not Found"}).found


class TestLocationGroup:
    def test_general_sentinel(self) -> None:
        assert LocationGroup().is_general
        assert not LocationGroup(file_path="general").is_general


class TestIssueSummary:
    def test_title(self) -> None:
        assert IssueSummary(id="1", key="CORE-1", summary="Fix it").title == "CORE-1: Fix it"
