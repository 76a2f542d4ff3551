"""
Custom exception classes for the application.

Every error carries a stable code, an HTTP status and a details dict so
routes can return the same JSON shape for all failures.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "UPLOAD_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# UPLOAD ERRORS
# ===================

class UploadNotFoundError(NotFoundError):
    """Upload not found."""

    def __init__(self, upload_id: str):
        super().__init__(
            resource="Upload",
            identifier=upload_id,
            code="UPLOAD_NOT_FOUND"
        )


class LineItemNotFoundError(NotFoundError):
    """Upload line item not found."""

    def __init__(self, item_id: str):
        super().__init__(
            resource="Line item",
            identifier=item_id,
            code="LINE_ITEM_NOT_FOUND"
        )


class EmptyUploadError(ValidationError):
    """Report has no data rows below the header."""

    def __init__(self, filename: str):
        super().__init__(
            code="EMPTY_UPLOAD",
            message="Report contains no line items",
            details={"filename": filename}
        )


# ===================
# EXCEL PARSER ERRORS
# ===================

class ExcelParseError(ValidationError):
    """Spreadsheet could not be decoded."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="EXCEL_PARSE_ERROR",
            message=message,
            details=details
        )


class InvalidFileTypeError(ValidationError):
    """Uploaded file is not a supported spreadsheet."""

    def __init__(self, filename: str):
        super().__init__(
            code="INVALID_FILE_TYPE",
            message="File must be an Excel or CSV file (.xlsx, .xls, .csv)",
            details={"filename": filename}
        )


# ===================
# CATALOG / PRODUCT ERRORS
# ===================

class ProductNotFoundError(NotFoundError):
    """Internal product not found."""

    def __init__(self, product_id: str):
        super().__init__(
            resource="Product",
            identifier=product_id,
            code="PRODUCT_NOT_FOUND"
        )


class CatalogEntryNotFoundError(NotFoundError):
    """External master catalog entry not found."""

    def __init__(self, catalog_id: str):
        super().__init__(
            resource="Catalog entry",
            identifier=catalog_id,
            code="CATALOG_ENTRY_NOT_FOUND"
        )


# ===================
# APPROVED MATCH ERRORS
# ===================

class ApprovedMatchNotFoundError(NotFoundError):
    """Approved match not found."""

    def __init__(self, match_id: str):
        super().__init__(
            resource="Approved match",
            identifier=match_id,
            code="APPROVED_MATCH_NOT_FOUND"
        )


class MissingManufacturerSKUError(ValidationError):
    """An override needs an external manufacturer SKU to key on."""

    def __init__(self, source_id: str):
        super().__init__(
            code="MISSING_MANUFACTURER_SKU",
            message="Cannot create an approved match without a manufacturer SKU",
            details={"source_id": source_id}
        )


# ===================
# MATCHING ERRORS
# ===================

class MatchingRunError(AppError):
    """Matching pipeline aborted for an upload."""

    def __init__(self, upload_id: str, stage: str, message: str):
        self.upload_id = upload_id
        self.stage = stage
        super().__init__(
            code="MATCHING_RUN_FAILED",
            message="Could not complete matching",
            status_code=500,
            details={"upload_id": upload_id, "stage": stage, "reason": message}
        )
