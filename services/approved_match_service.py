"""
Approved match service.

Approved matches are admin overrides: an external manufacturer SKU pinned
to one internal product. The matching pipeline reads them as its first
tier; review and the match builder write them.

One row per SKU. Every create goes through an upsert on
external_mfr_number, so the last write wins.
"""

from datetime import datetime
from typing import Optional
import math
import structlog

from config import get_supabase_client, get_admin_client, settings
from models.approved_match import (
    ApprovedMatchCreate,
    ApprovedMatchUpdate,
    ApprovedMatchResponse,
    ApprovedMatchListResponse,
)
from exceptions import ApprovedMatchNotFoundError, DatabaseError
from services.product_service import ProductService, get_product_service
from utils.batch_utils import chunked

logger = structlog.get_logger(__name__)


class ApprovedMatchService:
    """
    Approved match reads and writes.
    """

    def __init__(self, product_service: ProductService):
        self.db = get_supabase_client()
        # Service role client bypasses row level security when configured
        self.write_db = get_admin_client() or self.db
        self.table = "approved_matches"
        self.product_service = product_service

    # ===================
    # READ OPERATIONS
    # ===================

    def get_by_id(self, match_id: str) -> ApprovedMatchResponse:
        """
        Get one approved match.

        Raises:
            ApprovedMatchNotFoundError: If it doesn't exist
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", match_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_approved_match_failed", match_id=match_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise ApprovedMatchNotFoundError(match_id)

        return ApprovedMatchResponse(**result.data[0])

    def get_by_skus(self, skus: list[str]) -> dict[str, ApprovedMatchResponse]:
        """
        Batch lookup by external manufacturer SKU.

        Args:
            skus: Manufacturer SKUs from uploaded items

        Returns:
            Dict of SKU → approved match
        """
        unique_skus = sorted({s for s in skus if s})
        if not unique_skus:
            return {}

        logger.info("getting_approved_matches", count=len(unique_skus))

        matches: dict[str, ApprovedMatchResponse] = {}
        try:
            for chunk in chunked(unique_skus, settings.lookup_chunk_size):
                result = (
                    self.db.table(self.table)
                    .select("*")
                    .in_("external_mfr_number", list(chunk))
                    .execute()
                )
                for row in result.data or []:
                    match = ApprovedMatchResponse(**row)
                    matches[match.external_mfr_number] = match
        except Exception as e:
            logger.error("get_approved_matches_failed", error=str(e))
            raise DatabaseError("select", str(e))

        logger.info("approved_matches_retrieved", found=len(matches))
        return matches

    def get_matched_skus(self) -> set[str]:
        """Every SKU that already has an override."""
        page_size = settings.product_page_size
        skus: set[str] = set()
        offset = 0

        try:
            while True:
                result = (
                    self.db.table(self.table)
                    .select("external_mfr_number")
                    .order("external_mfr_number")
                    .range(offset, offset + page_size - 1)
                    .execute()
                )
                rows = result.data or []
                skus.update(row["external_mfr_number"] for row in rows if row.get("external_mfr_number"))
                if len(rows) < page_size:
                    break
                offset += page_size
        except Exception as e:
            logger.error("get_matched_skus_failed", error=str(e))
            raise DatabaseError("select", str(e))

        return skus

    def get_all(
        self,
        page: int = 1,
        page_size: int = 20,
        search: Optional[str] = None
    ) -> ApprovedMatchListResponse:
        """
        List approved matches, most recently updated first.

        Args:
            page: Page number (1-indexed)
            page_size: Items per page
            search: Matches SKU, external description or internal item code

        Returns:
            ApprovedMatchListResponse
        """
        logger.info("getting_approved_matches_page", page=page, page_size=page_size, search=search)

        try:
            query = self.db.table(self.table).select("*", count="exact")

            term = (search or "").strip()
            if term:
                term = term.replace(",", " ").replace("(", " ").replace(")", " ")
                query = query.or_(
                    f"external_mfr_number.ilike.%{term}%,"
                    f"external_description.ilike.%{term}%,"
                    f"product_item_code.ilike.%{term}%"
                )

            offset = (page - 1) * page_size
            result = (
                query.order("updated_at", desc=True)
                .range(offset, offset + page_size - 1)
                .execute()
            )
        except Exception as e:
            logger.error("get_approved_matches_page_failed", error=str(e))
            raise DatabaseError("select", str(e))

        matches = [ApprovedMatchResponse(**row) for row in result.data or []]
        total = result.count or 0

        return ApprovedMatchListResponse(
            data=matches,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size) if total > 0 else 1,
        )

    # ===================
    # WRITE OPERATIONS
    # ===================

    def upsert(self, data: ApprovedMatchCreate) -> ApprovedMatchResponse:
        """
        Create or replace the override for a SKU.

        Args:
            data: Override to store

        Returns:
            The stored row
        """
        logger.info(
            "upserting_approved_match",
            external_mfr_number=data.external_mfr_number,
            product_id=data.product_id,
            approved_by=data.approved_by
        )

        row = data.model_dump(mode="json")
        row["updated_at"] = datetime.utcnow().isoformat()

        try:
            result = (
                self.write_db.table(self.table)
                .upsert(row, on_conflict="external_mfr_number")
                .execute()
            )
        except Exception as e:
            logger.error(
                "upsert_approved_match_failed",
                external_mfr_number=data.external_mfr_number,
                error=str(e)
            )
            raise DatabaseError("upsert", str(e))

        if not result.data:
            raise DatabaseError("upsert", "No data returned")

        logger.info("approved_match_upserted", external_mfr_number=data.external_mfr_number)
        return ApprovedMatchResponse(**result.data[0])

    def update_product(self, match_id: str, data: ApprovedMatchUpdate) -> ApprovedMatchResponse:
        """
        Point an override at a different product.

        The notes are rewritten to record the new target.

        Raises:
            ApprovedMatchNotFoundError: If the override doesn't exist
            ProductNotFoundError: If the new product doesn't exist
        """
        logger.info("updating_approved_match", match_id=match_id, product_id=data.product_id)

        self.get_by_id(match_id)
        product = self.product_service.get_by_id(data.product_id)

        update = {
            "product_id": product.id,
            "product_item_code": product.manufacturer_item_code,
            "approval_notes": f"Updated mapping to {product.product_name}",
            "updated_at": datetime.utcnow().isoformat(),
        }

        try:
            result = (
                self.write_db.table(self.table)
                .update(update)
                .eq("id", match_id)
                .execute()
            )
        except Exception as e:
            logger.error("update_approved_match_failed", match_id=match_id, error=str(e))
            raise DatabaseError("update", str(e))

        if not result.data:
            raise ApprovedMatchNotFoundError(match_id)

        logger.info("approved_match_updated", match_id=match_id, product_id=product.id)
        return ApprovedMatchResponse(**result.data[0])

    def delete(self, match_id: str) -> bool:
        """
        Delete an override.

        Returns:
            True if deleted

        Raises:
            ApprovedMatchNotFoundError: If it doesn't exist
        """
        logger.info("deleting_approved_match", match_id=match_id)

        self.get_by_id(match_id)

        try:
            self.write_db.table(self.table).delete().eq("id", match_id).execute()
        except Exception as e:
            logger.error("delete_approved_match_failed", match_id=match_id, error=str(e))
            raise DatabaseError("delete", str(e))

        logger.info("approved_match_deleted", match_id=match_id)
        return True


# Singleton instance
_approved_match_service: Optional[ApprovedMatchService] = None


def get_approved_match_service() -> ApprovedMatchService:
    """Get or create approved match service instance."""
    global _approved_match_service
    if _approved_match_service is None:
        _approved_match_service = ApprovedMatchService(get_product_service())
    return _approved_match_service
