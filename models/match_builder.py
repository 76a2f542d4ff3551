"""
Match builder schemas.
"""

from pydantic import Field
from typing import Optional
from enum import Enum

from models.base import BaseSchema
from models.catalog import CatalogEntry
from models.product import ProductResponse


class AlignmentStatus(str, Enum):
    """Per-attribute comparison of two spec sets."""
    MATCH = "match"
    MISMATCH = "mismatch"
    PARTIAL = "partial"    # Only one side has a value
    MISSING = "missing"    # Neither side has a value


class SpecChip(BaseSchema):
    """Attribute badge shown on a suggestion card."""

    label: str
    value: str
    match: bool


class SpecAlignmentRow(BaseSchema):
    """One attribute of the source/candidate comparison table."""

    key: str
    label: str
    source_value: Optional[str] = None
    candidate_value: Optional[str] = None
    status: AlignmentStatus


class Suggestion(BaseSchema):
    """Scored candidate product for a catalog entry."""

    product: ProductResponse
    specs: dict[str, str] = Field(default_factory=dict)
    score: int
    chips: list[SpecChip] = Field(default_factory=list)


class SuggestionResponse(BaseSchema):
    """Suggestions for one catalog entry."""

    entry: CatalogEntry
    specs: dict[str, str] = Field(default_factory=dict)
    suggestions: list[Suggestion] = Field(default_factory=list)


class MatchPreviewResponse(BaseSchema):
    """Side-by-side review before creating an override."""

    entry: CatalogEntry
    product: ProductResponse
    source_specs: dict[str, str] = Field(default_factory=dict)
    candidate_specs: dict[str, str] = Field(default_factory=dict)
    score: int
    alignment: list[SpecAlignmentRow] = Field(default_factory=list)
    already_matched: bool = False


class CreateMatchRequest(BaseSchema):
    """Create an override from the match builder."""

    catalog_id: int
    product_id: str = Field(..., min_length=1)
    approval_notes: Optional[str] = Field(None, max_length=1000)
    approved_by: str = Field("admin", max_length=100)
