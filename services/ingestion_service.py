"""
Usage report ingestion.

Turns an uploaded report into a matched upload:

    decode → infer columns → create upload → insert items
           → enrich → match → status "review"

Any failure after the upload row exists marks it `failed` and is
re-raised; the caller reports a single aggregate error.
"""

from typing import Optional, Sequence
import structlog

from exceptions import EmptyUploadError, MatchingRunError
from models.upload import MatchRunSummary, UploadResponse, UploadStatus
from parsers.usage_report_parser import RawRow, parse_usage_rows, read_report_rows
from services.enrichment_service import EnrichmentService, get_enrichment_service
from services.matching_service import MatchingService, get_matching_service
from services.upload_service import UploadService, get_upload_service

logger = structlog.get_logger(__name__)


class IngestionService:
    """
    Orchestrates report ingestion.
    """

    def __init__(
        self,
        upload_service: UploadService,
        enrichment_service: EnrichmentService,
        matching_service: MatchingService
    ):
        self.upload_service = upload_service
        self.enrichment_service = enrichment_service
        self.matching_service = matching_service

    def process_upload(self, filename: str, rows: Sequence[RawRow]) -> UploadResponse:
        """
        Ingest decoded report rows.

        Args:
            filename: Original filename
            rows: Sheet rows, header somewhere in the first 20

        Returns:
            The upload in `review` status with its counters set

        Raises:
            EmptyUploadError: The sheet has no rows at all
            MatchingRunError: Matching aborted
            DatabaseError: Upload or item writes failed
        """
        if not rows:
            raise EmptyUploadError(filename)

        report = parse_usage_rows(rows)
        upload = self.upload_service.create_upload(filename, report.data_row_count)

        logger.info(
            "ingestion_started",
            upload_id=upload.id,
            filename=filename,
            header_row=report.header_row_index,
            items=len(report.items)
        )

        try:
            self.upload_service.insert_items(upload.id, report.items)
            items = self.enrichment_service.enrich_upload(upload.id)
            summary = self.matching_service.run_matching(upload.id, items)
        except MatchingRunError:
            # Already marked failed by the pipeline
            raise
        except Exception as e:
            logger.error("ingestion_failed", upload_id=upload.id, error=str(e))
            self.upload_service.mark_failed(upload.id, str(e))
            raise

        upload = self.upload_service.set_status(upload.id, UploadStatus.REVIEW)

        logger.info(
            "ingestion_complete",
            upload_id=upload.id,
            matched=summary.matched_count,
            review=summary.review_count
        )
        return upload

    def rematch(self, upload_id: str) -> MatchRunSummary:
        """
        Re-run enrichment and matching for an existing upload.

        Every match field is recomputed, including on items a human has
        already reviewed.

        Raises:
            UploadNotFoundError: If the upload doesn't exist
            MatchingRunError: Matching aborted
        """
        self.upload_service.get_by_id(upload_id)

        try:
            items = self.enrichment_service.enrich_upload(upload_id)
        except Exception as e:
            logger.error("rematch_enrichment_failed", upload_id=upload_id, error=str(e))
            self.upload_service.mark_failed(upload_id, str(e))
            raise

        summary = self.matching_service.run_matching(upload_id, items)
        self.upload_service.set_status(upload_id, UploadStatus.REVIEW)
        return summary

    def process_file(self, content: bytes, filename: str) -> UploadResponse:
        """Decode a report file and ingest it."""
        rows = read_report_rows(content, filename)
        return self.process_upload(filename, rows)


# Singleton instance
_ingestion_service: Optional[IngestionService] = None


def get_ingestion_service() -> IngestionService:
    """Get or create ingestion service instance."""
    global _ingestion_service
    if _ingestion_service is None:
        _ingestion_service = IngestionService(
            get_upload_service(),
            get_enrichment_service(),
            get_matching_service()
        )
    return _ingestion_service
