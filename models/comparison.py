"""
Cost comparison and proposal schemas.
"""

from pydantic import Field
from typing import Optional

from models.base import BaseSchema


class ComparisonRequest(BaseSchema):
    """Markup inputs for a comparison run."""

    default_markup: Optional[float] = Field(
        None,
        ge=0,
        le=500,
        description="Markup % on product unit price (defaults to settings)"
    )
    item_markups: dict[str, float] = Field(
        default_factory=dict,
        description="Per line item markup % overrides, keyed by line item id"
    )


class ItemComparison(BaseSchema):
    """One matched line item priced both ways."""

    item_id: str
    product_id: str
    mfr_number: str = ""
    description: str = ""
    product_name: str = ""
    uom: str = ""
    package_type: Optional[str] = None
    qty: float
    converted_qty: Optional[float] = Field(
        None,
        description="Quantity expressed in the product's package type"
    )
    uom_ratio: Optional[float] = None
    comparable: bool = True
    distributor_unit_price: float
    distributor_total: float
    our_unit_price: float
    our_total: float = 0
    savings: float = 0
    savings_percent: float = 0
    item_markup: float
    has_custom_markup: bool = False
    distributor_per_unit: Optional[str] = Field(None, description="e.g. '$0.05/ea (2000 units)'")
    our_per_unit: Optional[str] = None


class ComparisonResponse(BaseSchema):
    """Spend comparison for an upload."""

    upload_id: str
    customer_name: str
    default_markup: float
    current_spend: float = 0
    our_total: float = 0
    total_savings: float = 0
    savings_percent: float = 0
    unmatched_spend: float = 0
    unmatched_count: int = 0
    not_comparable_count: int = 0
    items: list[ItemComparison] = Field(default_factory=list)


class ProposalResponse(BaseSchema):
    """Figures for the sales proposal."""

    upload_id: str
    customer_name: str
    matched_count: int = 0
    current_spend: float = 0
    our_total: float = 0
    annual_current_spend: float = 0
    annual_our_total: float = 0
    annual_savings: float = 0
    savings_percent: float = 0
    top_items: list[ItemComparison] = Field(default_factory=list)
    email_subject: str = ""
    email_body: str = ""
