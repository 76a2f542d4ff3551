"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.line_item import (
    MatchStatus,
    COMPARABLE_STATUSES,
    UNMATCHED_STATUSES,
    LineItemCreate,
    LineItem,
    MatchOutcome,
    ApproveItemRequest,
)
from models.product import ProductResponse, ProductSearchResponse
from models.catalog import CatalogEntry, CatalogSearchResult, CatalogSearchResponse
from models.approved_match import (
    ApprovedMatchCreate,
    ApprovedMatchUpdate,
    ApprovedMatchResponse,
    ApprovedMatchListResponse,
)
from models.upload import (
    UploadStatus,
    UploadResponse,
    MatchRunSummary,
    MatchStats,
    LineItemResult,
    MatchResultsResponse,
)
from models.comparison import (
    ComparisonRequest,
    ItemComparison,
    ComparisonResponse,
    ProposalResponse,
)
from models.match_builder import (
    AlignmentStatus,
    SpecChip,
    SpecAlignmentRow,
    Suggestion,
    SuggestionResponse,
    MatchPreviewResponse,
    CreateMatchRequest,
)

__all__ = [
    # Base
    "BaseSchema",
    # Line items
    "MatchStatus",
    "COMPARABLE_STATUSES",
    "UNMATCHED_STATUSES",
    "LineItemCreate",
    "LineItem",
    "MatchOutcome",
    "ApproveItemRequest",
    # Products / catalog
    "ProductResponse",
    "ProductSearchResponse",
    "CatalogEntry",
    "CatalogSearchResult",
    "CatalogSearchResponse",
    # Approved matches
    "ApprovedMatchCreate",
    "ApprovedMatchUpdate",
    "ApprovedMatchResponse",
    "ApprovedMatchListResponse",
    # Uploads
    "UploadStatus",
    "UploadResponse",
    "MatchRunSummary",
    "MatchStats",
    "LineItemResult",
    "MatchResultsResponse",
    # Comparison
    "ComparisonRequest",
    "ItemComparison",
    "ComparisonResponse",
    "ProposalResponse",
    # Match builder
    "AlignmentStatus",
    "SpecChip",
    "SpecAlignmentRow",
    "Suggestion",
    "SuggestionResponse",
    "MatchPreviewResponse",
    "CreateMatchRequest",
]
