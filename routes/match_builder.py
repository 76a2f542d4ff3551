"""
Match builder API routes.

Pair master catalog entries with internal products before they show up
on a report.
"""

from fastapi import APIRouter, Query
from typing import Optional
import structlog

from models.approved_match import ApprovedMatchResponse
from models.catalog import CatalogSearchResponse
from models.match_builder import CreateMatchRequest, MatchPreviewResponse, SuggestionResponse
from services.match_builder_service import get_match_builder_service
from routes.errors import handle_error

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/catalog", response_model=CatalogSearchResponse)
async def search_catalog(
    q: str = Query("", description="Name, manufacturer SKU or brand"),
    category: Optional[str] = Query(None, description="Category contains"),
    manufacturer: Optional[str] = Query(None, description="Manufacturer contains"),
    unmatched_only: bool = Query(False, description="Hide entries that already have an override"),
    limit: int = Query(50, ge=1, le=200)
):
    """Search the master catalog."""
    try:
        return get_match_builder_service().search_catalog(
            term=q,
            category=category,
            manufacturer=manufacturer,
            unmatched_only=unmatched_only,
            limit=limit
        )

    except Exception as e:
        return handle_error(e)


@router.get("/catalog/{catalog_id}/suggestions", response_model=SuggestionResponse)
async def get_suggestions(catalog_id: int):
    """
    Products ranked by spec score for a catalog entry.

    Raises:
        404: Catalog entry not found
    """
    try:
        return get_match_builder_service().get_suggestions(catalog_id)

    except Exception as e:
        return handle_error(e)


@router.get("/catalog/{catalog_id}/preview/{product_id}", response_model=MatchPreviewResponse)
async def preview_match(catalog_id: int, product_id: str):
    """Attribute-by-attribute comparison of an entry and a product."""
    try:
        return get_match_builder_service().preview(catalog_id, product_id)

    except Exception as e:
        return handle_error(e)


@router.post("/matches", response_model=ApprovedMatchResponse, status_code=201)
async def create_match(data: CreateMatchRequest):
    """
    Save the pairing as an approved match.

    Raises:
        404: Catalog entry or product not found
        422: Catalog entry has no manufacturer SKU
    """
    try:
        return get_match_builder_service().create_match(data)

    except Exception as e:
        return handle_error(e)
