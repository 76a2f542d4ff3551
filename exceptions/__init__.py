"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    DatabaseError,

    # Uploads
    UploadNotFoundError,
    LineItemNotFoundError,
    EmptyUploadError,

    # Excel parser
    ExcelParseError,
    InvalidFileTypeError,

    # Catalog / products
    ProductNotFoundError,
    CatalogEntryNotFoundError,

    # Approved matches
    ApprovedMatchNotFoundError,
    MissingManufacturerSKUError,

    # Matching
    MatchingRunError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "DatabaseError",

    # Uploads
    "UploadNotFoundError",
    "LineItemNotFoundError",
    "EmptyUploadError",

    # Excel parser
    "ExcelParseError",
    "InvalidFileTypeError",

    # Catalog / products
    "ProductNotFoundError",
    "CatalogEntryNotFoundError",

    # Approved matches
    "ApprovedMatchNotFoundError",
    "MissingManufacturerSKUError",

    # Matching
    "MatchingRunError",
]
