"""
Unit tests for IngestionService.

Run: pytest tests/unit/test_ingestion_service.py -v
"""

import pytest
from unittest.mock import MagicMock

from exceptions import DatabaseError, EmptyUploadError, MatchingRunError, UploadNotFoundError
from models.upload import MatchRunSummary, UploadResponse, UploadStatus
from services.ingestion_service import IngestionService


ROWS = [
    ["Item Number", "Mfr #", "Description", "UOM", "Qty", "Cost Per Unit"],
    ["1042", "NDL-18G", "NEEDLE HYPO 18G X 1", "BX", 4, 12.0],
    [None, None, None, None, None, None],
    ["2001", "GLV-NIT-M", "GLOVE NITRILE MED", "BX", 10, 6.0],
]


@pytest.fixture
def collaborators():
    upload_service = MagicMock()
    upload_service.create_upload.return_value = UploadResponse(id="upload-1", filename="report.xlsx")
    upload_service.set_status.return_value = UploadResponse(
        id="upload-1", filename="report.xlsx", status=UploadStatus.REVIEW, matched_count=1, review_count=1
    )

    enrichment_service = MagicMock()
    enrichment_service.enrich_upload.return_value = []

    matching_service = MagicMock()
    matching_service.run_matching.return_value = MatchRunSummary(upload_id="upload-1", total=2, exact=1, fuzzy=1)

    return upload_service, enrichment_service, matching_service


class TestProcessUpload:
    """Tests for IngestionService.process_upload()"""

    def test_runs_pipeline_in_order(self, collaborators):
        """Should create, insert, enrich, match and move to review."""
        # Arrange
        upload_service, enrichment_service, matching_service = collaborators
        service = IngestionService(upload_service, enrichment_service, matching_service)

        # Act
        upload = service.process_upload("report.xlsx", ROWS)

        # Assert
        upload_service.create_upload.assert_called_once_with("report.xlsx", 3)
        inserted = upload_service.insert_items.call_args[0][1]
        assert [item.mfr_number for item in inserted] == ["NDL-18G", "GLV-NIT-M"]
        enrichment_service.enrich_upload.assert_called_once_with("upload-1")
        matching_service.run_matching.assert_called_once_with("upload-1", [])
        upload_service.set_status.assert_called_once_with("upload-1", UploadStatus.REVIEW)
        assert upload.status == UploadStatus.REVIEW

    def test_empty_file_rejected(self, collaborators):
        """Should refuse a file with no rows before creating an upload."""
        upload_service, enrichment_service, matching_service = collaborators
        service = IngestionService(upload_service, enrichment_service, matching_service)

        with pytest.raises(EmptyUploadError):
            service.process_upload("empty.csv", [])

        upload_service.create_upload.assert_not_called()

    def test_insert_failure_marks_failed(self, collaborators):
        """Should mark the upload failed and re-raise."""
        # Arrange
        upload_service, enrichment_service, matching_service = collaborators
        upload_service.insert_items.side_effect = DatabaseError("insert", "boom")
        service = IngestionService(upload_service, enrichment_service, matching_service)

        # Act & Assert
        with pytest.raises(DatabaseError):
            service.process_upload("report.xlsx", ROWS)

        upload_service.mark_failed.assert_called_once()
        upload_service.set_status.assert_not_called()

    def test_matching_failure_not_marked_twice(self, collaborators):
        """Should leave failure marking to the matching pipeline."""
        upload_service, enrichment_service, matching_service = collaborators
        matching_service.run_matching.side_effect = MatchingRunError("upload-1", "evaluate", "bad")
        service = IngestionService(upload_service, enrichment_service, matching_service)

        with pytest.raises(MatchingRunError):
            service.process_upload("report.xlsx", ROWS)

        upload_service.mark_failed.assert_not_called()


class TestRematch:
    """Tests for IngestionService.rematch()"""

    def test_rematch_reenriches_and_matches(self, collaborators):
        """Should re-run enrichment and matching, then return to review."""
        upload_service, enrichment_service, matching_service = collaborators
        service = IngestionService(upload_service, enrichment_service, matching_service)

        summary = service.rematch("upload-1")

        assert summary.exact == 1
        upload_service.get_by_id.assert_called_once_with("upload-1")
        upload_service.set_status.assert_called_once_with("upload-1", UploadStatus.REVIEW)

    def test_rematch_unknown_upload(self, collaborators):
        """Should raise when the upload doesn't exist."""
        upload_service, enrichment_service, matching_service = collaborators
        upload_service.get_by_id.side_effect = UploadNotFoundError("missing")
        service = IngestionService(upload_service, enrichment_service, matching_service)

        with pytest.raises(UploadNotFoundError):
            service.rematch("missing")

        matching_service.run_matching.assert_not_called()


class TestProcessFile:
    """Tests for IngestionService.process_file()"""

    def test_decodes_csv(self, collaborators):
        """Should decode a CSV file and ingest its rows."""
        upload_service, enrichment_service, matching_service = collaborators
        service = IngestionService(upload_service, enrichment_service, matching_service)
        content = b"Item Number,Mfr #,Description,UOM\n1042,NDL-18G,NEEDLE,BX\n"

        service.process_file(content, "Acme Clinic REPORT.csv")

        upload_service.create_upload.assert_called_once_with("Acme Clinic REPORT.csv", 1)
