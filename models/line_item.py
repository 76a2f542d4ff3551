"""
Line item schemas: one row of a distributor usage report.

A line item is created at ingestion, enriched from the master catalog,
then stamped with a match outcome by the matching pipeline.
"""

from pydantic import Field, field_validator, model_validator
from typing import Any, Optional
from enum import Enum

from models.base import BaseSchema


class MatchStatus(str, Enum):
    """Match status of a line item."""
    PENDING = "pending"            # Ingested, not matched yet
    EXACT = "exact"                # Manufacturer code + UOM verified
    PRE_APPROVED = "pre_approved"  # Admin override hit
    FUZZY = "fuzzy"                # Spec match or downgraded code match
    NO_MATCH = "no_match"          # Nothing found, needs review
    APPROVED = "approved"          # Human approved a product
    REJECTED = "rejected"          # Human confirmed there is no product

    @property
    def is_matched(self) -> bool:
        """Counts toward the upload's matched total and the comparison."""
        return _bucket(self) == "matched"

    @property
    def needs_review(self) -> bool:
        """Waiting on a human decision."""
        return _bucket(self) == "review"

    @property
    def has_product(self) -> bool:
        """A linked product is required (and only allowed) in these states."""
        return self not in (MatchStatus.NO_MATCH, MatchStatus.PENDING, MatchStatus.REJECTED)


def _bucket(status: MatchStatus) -> str:
    """Classify a status; every member must be handled here."""
    if status in (MatchStatus.EXACT, MatchStatus.PRE_APPROVED, MatchStatus.APPROVED):
        return "matched"
    if status in (MatchStatus.FUZZY, MatchStatus.NO_MATCH, MatchStatus.PENDING):
        return "review"
    if status == MatchStatus.REJECTED:
        return "closed"
    raise ValueError(f"Unhandled match status: {status}")


# Statuses that carry a confirmed product into cost comparison
COMPARABLE_STATUSES = [status for status in MatchStatus if status.is_matched]

# Statuses whose spend is reported as unmatched
UNMATCHED_STATUSES = [status for status in MatchStatus if not status.is_matched]


class LineItemCreate(BaseSchema):
    """
    Line item as produced by column inference.

    Text fields default to "" when the column was not found;
    numeric fields default to 0.
    """

    item_number: str = Field("", description="Distributor item number")
    manufacturer: str = Field("", description="Manufacturer name as reported")
    mfr_number: str = Field("", description="Manufacturer part number / SKU")
    description: str = Field("", description="Free-text item description")
    contents: str = Field("", description="Pack contents text, e.g. '100/BX'")
    uom: str = Field("", description="Unit of measure")
    ship_qty: float = Field(0, description="Quantity shipped in the period")
    cost_per_unit: float = Field(0, description="Distributor cost per UOM")
    total_ext_purchase: float = Field(0, description="Extended total")
    percent_total_purchases: float = Field(0, description="Share of total spend")
    invoice_count: int = Field(0, description="Invoices the item appeared on")

    @field_validator(
        "item_number", "manufacturer", "mfr_number", "description", "contents", "uom",
        mode="before"
    )
    @classmethod
    def text_or_empty(cls, v: Any) -> str:
        """Stored rows may carry null or numeric cells."""
        return "" if v is None else str(v)

    @field_validator(
        "ship_qty", "cost_per_unit", "total_ext_purchase", "percent_total_purchases", "invoice_count",
        mode="before"
    )
    @classmethod
    def number_or_zero(cls, v: Any) -> Any:
        return 0 if v is None else v


class LineItem(LineItemCreate):
    """
    Persisted line item with enrichment and match outcome fields.
    """

    id: str = Field(..., description="Line item UUID")
    upload_id: str = Field(..., description="Owning upload UUID")

    # Enrichment (null until the catalog lookup resolves the item number)
    catalog_id: Optional[int] = Field(None, description="Master catalog item id")
    enriched_name: Optional[str] = None
    enriched_description: Optional[str] = None
    enriched_manufacturer: Optional[str] = None
    enriched_brand: Optional[str] = None
    enriched_category: Optional[str] = None
    enriched_specs: Optional[dict[str, Any]] = None
    enriched_mfr_sku: Optional[str] = Field(
        None,
        description="Catalog manufacturer SKU, kept apart from mfr_number"
    )

    # Match outcome
    match_status: MatchStatus = Field(MatchStatus.PENDING)
    match_confidence: int = Field(0, ge=0, le=100)
    matched_product_id: Optional[str] = None
    match_notes: Optional[str] = None

    @field_validator("id", "upload_id", "matched_product_id", mode="before")
    @classmethod
    def id_as_str(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)

    @property
    def effective_mfr(self) -> Optional[str]:
        """Manufacturer code used for lookups: raw value, else catalog SKU."""
        return (self.mfr_number or "").strip() or (self.enriched_mfr_sku or "").strip() or None


class MatchOutcome(BaseSchema):
    """Result of running the tiers for one line item."""

    status: MatchStatus
    confidence: int = Field(0, ge=0, le=100)
    matched_product_id: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_product_link(self) -> "MatchOutcome":
        """A product is linked exactly when the status calls for one."""
        if self.status.has_product != bool(self.matched_product_id):
            raise ValueError(
                f"Status {self.status.value} "
                f"{'requires' if self.status.has_product else 'forbids'} a matched product"
            )
        return self

    def to_update(self) -> dict:
        """Column values for the upload_items update."""
        return {
            "match_status": self.status.value,
            "match_confidence": self.confidence,
            "matched_product_id": self.matched_product_id,
            "match_notes": self.notes,
        }


class ApproveItemRequest(BaseSchema):
    """Approve a line item against a chosen product."""

    product_id: str = Field(..., min_length=1)
    approved_by: str = Field("admin", max_length=100)
