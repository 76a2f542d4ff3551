"""
Approved match schemas.

An approved match pins an external manufacturer SKU to one internal
product. At most one row exists per SKU; writes upsert on the SKU.
"""

from pydantic import Field, field_validator
from typing import Any, Optional
from datetime import datetime

from models.base import BaseSchema


class ApprovedMatchCreate(BaseSchema):
    """
    Create or replace the override for a manufacturer SKU.

    Required: external_mfr_number, product_id
    """

    external_mfr_number: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Manufacturer SKU as it appears on distributor reports"
    )
    external_description: Optional[str] = Field(None, description="Distributor description")
    product_id: str = Field(..., min_length=1, description="Internal product id")
    product_item_code: Optional[str] = Field(None, description="Internal manufacturer item code")
    approved_by: str = Field("admin", max_length=100)
    approval_notes: Optional[str] = Field(None, max_length=1000)


class ApprovedMatchUpdate(BaseSchema):
    """Point an existing override at a different product."""

    product_id: str = Field(..., min_length=1)


class ApprovedMatchResponse(BaseSchema):
    """Approved match row."""

    id: str
    external_mfr_number: str
    external_description: Optional[str] = None
    product_id: str
    product_item_code: Optional[str] = None
    approved_by: Optional[str] = None
    approval_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", "product_id", mode="before")
    @classmethod
    def id_as_str(cls, v: Any) -> str:
        return str(v)


class ApprovedMatchListResponse(BaseSchema):
    """Paginated approved matches."""

    data: list[ApprovedMatchResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
