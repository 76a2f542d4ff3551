"""
Upload schemas.

One upload per ingested usage report. Owns its line items and carries the
batch-level counters written by the matching pipeline.
"""

from pydantic import Field, field_validator
from typing import Any, Optional
from enum import Enum
from datetime import datetime

from models.base import BaseSchema
from models.line_item import LineItem
from models.product import ProductResponse


class UploadStatus(str, Enum):
    """Upload lifecycle."""
    MATCHING = "matching"
    REVIEW = "review"
    FAILED = "failed"


class UploadResponse(BaseSchema):
    """Upload row."""

    id: str
    filename: str
    original_filename: Optional[str] = None
    row_count: int = 0
    status: UploadStatus = UploadStatus.MATCHING
    matched_count: int = 0
    review_count: int = 0
    created_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def id_as_str(cls, v: Any) -> str:
        return str(v)

    @field_validator("row_count", "matched_count", "review_count", mode="before")
    @classmethod
    def count_or_zero(cls, v: Any) -> Any:
        return 0 if v is None else v


class MatchRunSummary(BaseSchema):
    """Counters from one matching pipeline run."""

    upload_id: str
    total: int = 0
    exact: int = 0
    pre_approved: int = 0
    fuzzy: int = 0
    no_match: int = 0

    @property
    def matched_count(self) -> int:
        """Confirmed without human review."""
        return self.exact + self.pre_approved

    @property
    def review_count(self) -> int:
        """Fuzzy and unmatched items both go to review."""
        return self.fuzzy + self.no_match


class MatchStats(BaseSchema):
    """Per-bucket counts for an upload's results."""

    total: int = 0
    exact_count: int = 0
    pre_approved_count: int = 0
    fuzzy_count: int = 0
    no_match_count: int = 0
    needs_review_count: int = 0
    approved_count: int = 0
    rejected_count: int = 0
    matched_count: int = 0


class LineItemResult(LineItem):
    """Line item with its matched product attached."""

    matched_product: Optional[ProductResponse] = None


class MatchResultsResponse(BaseSchema):
    """Line items of an upload grouped by match status."""

    upload_id: str
    items: list[LineItemResult] = Field(default_factory=list)
    exact_matches: list[LineItemResult] = Field(default_factory=list)
    pre_approved: list[LineItemResult] = Field(default_factory=list)
    fuzzy_matches: list[LineItemResult] = Field(default_factory=list)
    no_match: list[LineItemResult] = Field(default_factory=list)
    needs_review: list[LineItemResult] = Field(default_factory=list)
    approved: list[LineItemResult] = Field(default_factory=list)
    rejected: list[LineItemResult] = Field(default_factory=list)
    stats: MatchStats = Field(default_factory=MatchStats)
