"""
Business logic services.

Each service handles one domain area. The spec extractor and matcher are
plain function modules with no store access.
"""

from services.product_service import ProductService, get_product_service
from services.catalog_service import CatalogService, get_catalog_service
from services.approved_match_service import ApprovedMatchService, get_approved_match_service
from services.upload_service import UploadService, get_upload_service
from services.enrichment_service import EnrichmentService, get_enrichment_service
from services.matching_service import (
    MatchingService,
    get_matching_service,
    MatchContext,
    evaluate_item,
)
from services.ingestion_service import IngestionService, get_ingestion_service
from services.review_service import ReviewService, get_review_service
from services.match_builder_service import MatchBuilderService, get_match_builder_service
from services.comparison_service import ComparisonService, get_comparison_service

__all__ = [
    "ProductService",
    "get_product_service",
    "CatalogService",
    "get_catalog_service",
    "ApprovedMatchService",
    "get_approved_match_service",
    "UploadService",
    "get_upload_service",
    "EnrichmentService",
    "get_enrichment_service",
    "MatchingService",
    "get_matching_service",
    "MatchContext",
    "evaluate_item",
    "IngestionService",
    "get_ingestion_service",
    "ReviewService",
    "get_review_service",
    "MatchBuilderService",
    "get_match_builder_service",
    "ComparisonService",
    "get_comparison_service",
]
