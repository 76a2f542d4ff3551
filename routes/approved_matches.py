"""
Approved match API routes.

Admin maintenance of manufacturer SKU → product overrides.
"""

from fastapi import APIRouter, Query
from typing import Optional
import structlog

from models.approved_match import (
    ApprovedMatchCreate,
    ApprovedMatchUpdate,
    ApprovedMatchResponse,
    ApprovedMatchListResponse,
)
from services.approved_match_service import get_approved_match_service
from routes.errors import handle_error

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("", response_model=ApprovedMatchListResponse)
async def list_approved_matches(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="SKU, description or item code")
):
    """List overrides, most recently updated first."""
    try:
        return get_approved_match_service().get_all(page=page, page_size=page_size, search=search)

    except Exception as e:
        return handle_error(e)


@router.put("", response_model=ApprovedMatchResponse)
async def upsert_approved_match(data: ApprovedMatchCreate):
    """
    Create or replace the override for a SKU.

    The last write for a SKU wins.
    """
    try:
        return get_approved_match_service().upsert(data)

    except Exception as e:
        return handle_error(e)


@router.get("/{match_id}", response_model=ApprovedMatchResponse)
async def get_approved_match(match_id: str):
    """
    Get one override.

    Raises:
        404: Approved match not found
    """
    try:
        return get_approved_match_service().get_by_id(match_id)

    except Exception as e:
        return handle_error(e)


@router.patch("/{match_id}", response_model=ApprovedMatchResponse)
async def update_approved_match(match_id: str, data: ApprovedMatchUpdate):
    """
    Point an override at a different product.

    Raises:
        404: Approved match or product not found
    """
    try:
        return get_approved_match_service().update_product(match_id, data)

    except Exception as e:
        return handle_error(e)


@router.delete("/{match_id}", status_code=204)
async def delete_approved_match(match_id: str):
    """
    Delete an override.

    Raises:
        404: Approved match not found
    """
    try:
        get_approved_match_service().delete(match_id)
        return None

    except Exception as e:
        return handle_error(e)
