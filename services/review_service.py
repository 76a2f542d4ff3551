"""
Review service: human decisions on line items.

Approving an item also stores an approved match for its manufacturer
SKU, so the next report containing that SKU resolves at the first tier.
"""

from typing import Optional
import structlog

from models.approved_match import ApprovedMatchCreate
from models.line_item import ApproveItemRequest, LineItem, MatchStatus
from services.approved_match_service import ApprovedMatchService, get_approved_match_service
from services.product_service import ProductService, get_product_service
from services.upload_service import UploadService, get_upload_service

logger = structlog.get_logger(__name__)


class ReviewService:
    """
    Approve / reject transitions for line items.
    """

    def __init__(
        self,
        upload_service: UploadService,
        product_service: ProductService,
        approved_match_service: ApprovedMatchService
    ):
        self.upload_service = upload_service
        self.product_service = product_service
        self.approved_match_service = approved_match_service

    def approve(self, item_id: str, request: ApproveItemRequest) -> LineItem:
        """
        Approve a line item against a product.

        Args:
            item_id: Line item UUID
            request: Chosen product and approver

        Returns:
            The updated line item

        Raises:
            LineItemNotFoundError: If the item doesn't exist
            ProductNotFoundError: If the product doesn't exist
        """
        item = self.upload_service.get_item(item_id)
        product = self.product_service.get_by_id(request.product_id)

        update = {
            "match_status": MatchStatus.APPROVED.value,
            "matched_product_id": product.id,
            "match_confidence": 100,
            "match_notes": f"Manually approved by {request.approved_by}",
        }
        self.upload_service.update_item(item.id, update)

        sku = item.effective_mfr
        if sku:
            self.approved_match_service.upsert(ApprovedMatchCreate(
                external_mfr_number=sku,
                external_description=item.description or item.enriched_name,
                product_id=product.id,
                product_item_code=product.manufacturer_item_code,
                approved_by=request.approved_by,
                approval_notes="Approved via review",
            ))
        else:
            logger.warning("approved_match_skipped", item_id=item.id, reason="no_manufacturer_sku")

        logger.info(
            "line_item_approved",
            item_id=item.id,
            product_id=product.id,
            approved_by=request.approved_by
        )
        return item.model_copy(update={**update, "match_status": MatchStatus.APPROVED})

    def reject(self, item_id: str) -> LineItem:
        """
        Confirm that no product fits a line item.

        Raises:
            LineItemNotFoundError: If the item doesn't exist
        """
        item = self.upload_service.get_item(item_id)

        update = {
            "match_status": MatchStatus.REJECTED.value,
            "matched_product_id": None,
            "match_confidence": 0,
            "match_notes": "No matching product available",
        }
        self.upload_service.update_item(item.id, update)

        logger.info("line_item_rejected", item_id=item.id)
        return item.model_copy(update={**update, "match_status": MatchStatus.REJECTED})


# Singleton instance
_review_service: Optional[ReviewService] = None


def get_review_service() -> ReviewService:
    """Get or create review service instance."""
    global _review_service
    if _review_service is None:
        _review_service = ReviewService(
            get_upload_service(),
            get_product_service(),
            get_approved_match_service()
        )
    return _review_service
