"""
Upload API routes.

Report ingestion, match results, review decisions, cost comparison and
proposal figures.
"""

from fastapi import APIRouter, UploadFile, File
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.comparison import ComparisonRequest, ComparisonResponse, ProposalResponse
from models.line_item import ApproveItemRequest, LineItem
from models.upload import MatchResultsResponse, MatchRunSummary, UploadResponse
from services.comparison_service import get_comparison_service
from services.ingestion_service import get_ingestion_service
from services.review_service import get_review_service
from services.upload_service import get_upload_service
from routes.errors import handle_error

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# INGESTION
# ===================

@router.post("", response_model=UploadResponse, status_code=201)
async def upload_report(file: UploadFile = File(..., description="Usage report (.xlsx, .xls, .csv)")):
    """
    Upload a distributor usage report and run matching on it.

    Raises:
        422: Unsupported file type or unreadable file
        500: Matching could not complete (upload marked failed)
    """
    logger.info(
        "report_upload_started",
        filename=file.filename,
        content_type=file.content_type
    )

    try:
        content = await file.read()
        upload = get_ingestion_service().process_file(content, file.filename or "")
        return JSONResponse(status_code=201, content=upload.model_dump(mode="json"))

    except Exception as e:
        return handle_error(e)


@router.get("/recent", response_model=Optional[UploadResponse])
async def get_recent_upload():
    """Most recent upload, or null when nothing has been uploaded."""
    try:
        return get_upload_service().get_most_recent()

    except Exception as e:
        return handle_error(e)


@router.get("/{upload_id}", response_model=UploadResponse)
async def get_upload(upload_id: str):
    """
    Get an upload.

    Raises:
        404: Upload not found
    """
    try:
        return get_upload_service().get_by_id(upload_id)

    except Exception as e:
        return handle_error(e)


@router.post("/{upload_id}/match", response_model=MatchRunSummary)
async def rerun_matching(upload_id: str):
    """
    Recompute enrichment and match results for an upload.

    Safe to repeat after a failed run.
    """
    try:
        return get_ingestion_service().rematch(upload_id)

    except Exception as e:
        return handle_error(e)


# ===================
# RESULTS & REVIEW
# ===================

@router.get("/{upload_id}/results", response_model=MatchResultsResponse)
async def get_match_results(upload_id: str):
    """Line items grouped by match status, with stats."""
    try:
        return get_upload_service().get_match_results(upload_id)

    except Exception as e:
        return handle_error(e)


@router.post("/items/{item_id}/approve", response_model=LineItem)
async def approve_item(item_id: str, data: ApproveItemRequest):
    """
    Approve a line item against a product.

    Also stores the pairing as an approved match for future reports.

    Raises:
        404: Line item or product not found
    """
    try:
        return get_review_service().approve(item_id, data)

    except Exception as e:
        return handle_error(e)


@router.post("/items/{item_id}/reject", response_model=LineItem)
async def reject_item(item_id: str):
    """
    Mark a line item as having no matching product.

    Raises:
        404: Line item not found
    """
    try:
        return get_review_service().reject(item_id)

    except Exception as e:
        return handle_error(e)


# ===================
# COMPARISON
# ===================

@router.post("/{upload_id}/comparison", response_model=ComparisonResponse)
async def get_comparison(upload_id: str, data: Optional[ComparisonRequest] = None):
    """
    Distributor spend vs. our pricing for confirmed matches.

    Body is optional: default markup and per-item markup overrides.
    """
    try:
        return get_comparison_service().get_comparison(upload_id, data)

    except Exception as e:
        return handle_error(e)


@router.post("/{upload_id}/proposal", response_model=ProposalResponse)
async def get_proposal(upload_id: str, data: Optional[ComparisonRequest] = None):
    """Annualized savings and a draft proposal email."""
    try:
        return get_comparison_service().get_proposal(upload_id, data)

    except Exception as e:
        return handle_error(e)
