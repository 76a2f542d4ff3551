"""
Upload service: uploads and their line items.

Owns the two tables the pipeline writes to. Every other service reads and
updates line items through here.
"""

from typing import Any, Optional
import structlog

from config import get_supabase_client, settings
from models.line_item import LineItem, LineItemCreate, MatchStatus
from models.upload import (
    UploadStatus,
    UploadResponse,
    LineItemResult,
    MatchStats,
    MatchResultsResponse,
)
from exceptions import UploadNotFoundError, LineItemNotFoundError, DatabaseError
from services.product_service import ProductService, get_product_service
from utils.batch_utils import chunked

logger = structlog.get_logger(__name__)


class UploadService:
    """
    Upload and line item persistence.
    """

    def __init__(self, product_service: ProductService):
        self.db = get_supabase_client()
        self.table = "uploads"
        self.items_table = "upload_items"
        self.product_service = product_service

    # ===================
    # UPLOADS
    # ===================

    def create_upload(self, filename: str, row_count: int) -> UploadResponse:
        """
        Create the upload row in `matching` status.

        Args:
            filename: Original filename
            row_count: Data rows below the header (blank rows included)
        """
        logger.info("creating_upload", filename=filename, row_count=row_count)

        try:
            result = self.db.table(self.table).insert({
                "filename": filename,
                "original_filename": filename,
                "row_count": row_count,
                "status": UploadStatus.MATCHING.value,
            }).execute()
        except Exception as e:
            logger.error("create_upload_failed", filename=filename, error=str(e))
            raise DatabaseError("insert", str(e))

        if not result.data:
            raise DatabaseError("insert", "No data returned")

        upload = UploadResponse(**result.data[0])
        logger.info("upload_created", upload_id=upload.id)
        return upload

    def get_by_id(self, upload_id: str) -> UploadResponse:
        """
        Get an upload.

        Raises:
            UploadNotFoundError: If it doesn't exist
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", upload_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_upload_failed", upload_id=upload_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise UploadNotFoundError(upload_id)

        return UploadResponse(**result.data[0])

    def get_most_recent(self) -> Optional[UploadResponse]:
        """Latest upload by creation time, or None if there are none."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .order("created_at", desc=True)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_recent_upload_failed", error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return UploadResponse(**result.data[0])

    def update_counters(self, upload_id: str, matched_count: int, review_count: int) -> None:
        """Store the batch counters of a matching run."""
        try:
            self.db.table(self.table).update({
                "matched_count": matched_count,
                "review_count": review_count,
            }).eq("id", upload_id).execute()
        except Exception as e:
            logger.error("update_upload_counters_failed", upload_id=upload_id, error=str(e))
            raise DatabaseError("update", str(e))

    def set_status(self, upload_id: str, status: UploadStatus) -> UploadResponse:
        """Move an upload to another lifecycle status."""
        try:
            result = (
                self.db.table(self.table)
                .update({"status": status.value})
                .eq("id", upload_id)
                .execute()
            )
        except Exception as e:
            logger.error("set_upload_status_failed", upload_id=upload_id, status=status.value, error=str(e))
            raise DatabaseError("update", str(e))

        if not result.data:
            raise UploadNotFoundError(upload_id)

        logger.info("upload_status_changed", upload_id=upload_id, status=status.value)
        return UploadResponse(**result.data[0])

    def mark_failed(self, upload_id: str, reason: str) -> None:
        """Flag an upload as failed without masking the original error."""
        try:
            self.db.table(self.table).update(
                {"status": UploadStatus.FAILED.value}
            ).eq("id", upload_id).execute()
            logger.info("upload_marked_failed", upload_id=upload_id, reason=reason[:200])
        except Exception as mark_err:
            logger.warning(
                "failed_to_mark_upload_failed",
                upload_id=upload_id,
                mark_error=str(mark_err)
            )

    # ===================
    # LINE ITEMS
    # ===================

    def insert_items(self, upload_id: str, items: list[LineItemCreate]) -> int:
        """
        Insert an upload's line items in batches.

        Items start as `pending` with confidence 0.

        Returns:
            Number of items inserted
        """
        rows = [
            {
                **item.model_dump(),
                "upload_id": upload_id,
                "match_status": MatchStatus.PENDING.value,
                "match_confidence": 0,
            }
            for item in items
        ]

        logger.info("inserting_line_items", upload_id=upload_id, count=len(rows))

        try:
            for batch in chunked(rows, settings.item_insert_batch_size):
                self.db.table(self.items_table).insert(list(batch)).execute()
        except Exception as e:
            logger.error("insert_line_items_failed", upload_id=upload_id, error=str(e))
            raise DatabaseError("insert", str(e))

        return len(rows)

    def get_items(self, upload_id: str) -> list[LineItem]:
        """
        All line items of an upload, ordered by id.
        """
        page_size = settings.product_page_size
        items: list[LineItem] = []
        offset = 0

        try:
            while True:
                result = (
                    self.db.table(self.items_table)
                    .select("*")
                    .eq("upload_id", upload_id)
                    .order("id")
                    .range(offset, offset + page_size - 1)
                    .execute()
                )
                rows = result.data or []
                items.extend(LineItem(**row) for row in rows)
                if len(rows) < page_size:
                    break
                offset += page_size
        except Exception as e:
            logger.error("get_line_items_failed", upload_id=upload_id, error=str(e))
            raise DatabaseError("select", str(e))

        logger.debug("line_items_retrieved", upload_id=upload_id, count=len(items))
        return items

    def get_item(self, item_id: str) -> LineItem:
        """
        Get one line item.

        Raises:
            LineItemNotFoundError: If it doesn't exist
        """
        try:
            result = (
                self.db.table(self.items_table)
                .select("*")
                .eq("id", item_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_line_item_failed", item_id=item_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise LineItemNotFoundError(item_id)

        return LineItem(**result.data[0])

    def update_item(self, item_id: str, fields: dict[str, Any]) -> None:
        """Write a partial update to one line item."""
        try:
            self.db.table(self.items_table).update(fields).eq("id", item_id).execute()
        except Exception as e:
            logger.error("update_line_item_failed", item_id=item_id, error=str(e))
            raise DatabaseError("update", str(e))

    # ===================
    # RESULTS
    # ===================

    def get_match_results(self, upload_id: str) -> MatchResultsResponse:
        """
        Line items of an upload grouped by status, with matched products.

        `pending` items are grouped with `no_match`; fuzzy and unmatched
        items together form the review queue.

        Raises:
            UploadNotFoundError: If the upload doesn't exist
        """
        self.get_by_id(upload_id)

        items = self.get_items(upload_id)
        products = self.product_service.get_by_ids(
            [item.matched_product_id for item in items if item.matched_product_id]
        )

        results = [
            LineItemResult(
                **item.model_dump(),
                matched_product=products.get(item.matched_product_id) if item.matched_product_id else None
            )
            for item in items
        ]

        def with_status(*statuses: MatchStatus) -> list[LineItemResult]:
            return [r for r in results if r.match_status in statuses]

        exact = with_status(MatchStatus.EXACT)
        pre_approved = with_status(MatchStatus.PRE_APPROVED)
        fuzzy = with_status(MatchStatus.FUZZY)
        no_match = with_status(MatchStatus.NO_MATCH, MatchStatus.PENDING)
        approved = with_status(MatchStatus.APPROVED)
        rejected = with_status(MatchStatus.REJECTED)
        needs_review = [r for r in results if r.match_status.needs_review]

        stats = MatchStats(
            total=len(results),
            exact_count=len(exact),
            pre_approved_count=len(pre_approved),
            fuzzy_count=len(fuzzy),
            no_match_count=len(no_match),
            needs_review_count=len(needs_review),
            approved_count=len(approved),
            rejected_count=len(rejected),
            matched_count=sum(1 for r in results if r.match_status.is_matched),
        )

        return MatchResultsResponse(
            upload_id=upload_id,
            items=results,
            exact_matches=exact,
            pre_approved=pre_approved,
            fuzzy_matches=fuzzy,
            no_match=no_match,
            needs_review=needs_review,
            approved=approved,
            rejected=rejected,
            stats=stats,
        )


# Singleton instance
_upload_service: Optional[UploadService] = None


def get_upload_service() -> UploadService:
    """Get or create upload service instance."""
    global _upload_service
    if _upload_service is None:
        _upload_service = UploadService(get_product_service())
    return _upload_service
