"""
Cost comparison and proposal figures.

Only confirmed matches (exact, pre_approved, approved) with a positive
distributor cost are priced. Our price is the product's unit price plus
markup, applied to the reported quantity expressed in the product's
package type. When that conversion is impossible the item is listed as
not comparable and kept out of every total.
"""

from typing import Optional
import structlog

from config import settings
from models.comparison import ComparisonRequest, ItemComparison, ComparisonResponse, ProposalResponse
from models.line_item import LineItem, COMPARABLE_STATUSES, UNMATCHED_STATUSES
from models.product import ProductResponse
from services.product_service import ProductService, get_product_service
from services.upload_service import UploadService, get_upload_service
from utils.packaging_utils import canonical_uom, convert_qty, format_unit_price
from utils.text_utils import customer_name_from_filename

logger = structlog.get_logger(__name__)


def _percent(part: float, whole: float) -> float:
    return (part / whole) * 100 if whole > 0 else 0.0


def compare_item(item: LineItem, product: ProductResponse, markup: float, custom: bool = False) -> ItemComparison:
    """
    Price one matched line item both ways.

    Args:
        item: Matched line item (cost_per_unit > 0)
        product: Its matched product
        markup: Markup percent on the product's unit price
        custom: Whether the markup is a per-item override
    """
    qty = item.ship_qty or 1
    distributor_total = item.cost_per_unit * qty
    our_unit_price = product.unit_price * (1 + markup / 100)

    comparison = ItemComparison(
        item_id=item.id,
        product_id=product.id,
        mfr_number=item.mfr_number,
        description=item.description or item.enriched_name or "",
        product_name=product.product_name,
        uom=item.uom,
        package_type=product.package_type,
        qty=qty,
        distributor_unit_price=item.cost_per_unit,
        distributor_total=distributor_total,
        our_unit_price=our_unit_price,
        item_markup=markup,
        has_custom_markup=custom,
        distributor_per_unit=format_unit_price(
            item.cost_per_unit, f"{item.contents} {item.description}", item.uom or None
        ),
        our_per_unit=format_unit_price(
            our_unit_price, product.packaging_text, product.package_type
        ),
    )

    if canonical_uom(item.uom) and canonical_uom(product.package_type):
        conversion = convert_qty(qty, item.uom, product.package_type, product.packaging_text)
        if conversion is None:
            comparison.comparable = False
            return comparison
        converted_qty, ratio = conversion.converted_qty, conversion.ratio
    else:
        # Nothing to convert between; compare as reported
        converted_qty, ratio = qty, None

    our_total = our_unit_price * converted_qty
    comparison.converted_qty = converted_qty
    comparison.uom_ratio = ratio
    comparison.our_total = our_total
    comparison.savings = distributor_total - our_total
    comparison.savings_percent = _percent(comparison.savings, distributor_total)
    return comparison


class ComparisonService:
    """
    Spend comparison and sales proposal for an upload.
    """

    def __init__(self, upload_service: UploadService, product_service: ProductService):
        self.upload_service = upload_service
        self.product_service = product_service

    def get_comparison(self, upload_id: str, request: Optional[ComparisonRequest] = None) -> ComparisonResponse:
        """
        Compare distributor spend with our pricing.

        Args:
            upload_id: Upload UUID
            request: Default markup and per-item overrides

        Returns:
            ComparisonResponse, comparable items sorted by savings (highest first)

        Raises:
            UploadNotFoundError: If the upload doesn't exist
        """
        request = request or ComparisonRequest()
        default_markup = (
            request.default_markup
            if request.default_markup is not None
            else settings.default_markup_percent
        )

        upload = self.upload_service.get_by_id(upload_id)
        items = self.upload_service.get_items(upload_id)

        matched = [
            item for item in items
            if item.match_status in COMPARABLE_STATUSES
            and item.matched_product_id
            and item.cost_per_unit > 0
        ]
        products = self.product_service.get_by_ids([item.matched_product_id for item in matched])

        comparable: list[ItemComparison] = []
        not_comparable: list[ItemComparison] = []
        for item in matched:
            product = products.get(item.matched_product_id)
            if product is None:
                logger.warning("matched_product_missing", item_id=item.id, product_id=item.matched_product_id)
                continue

            custom = item.id in request.item_markups
            markup = request.item_markups[item.id] if custom else default_markup
            row = compare_item(item, product, markup, custom)
            (comparable if row.comparable else not_comparable).append(row)

        comparable.sort(key=lambda r: r.savings, reverse=True)

        current_spend = sum(r.distributor_total for r in comparable)
        our_total = sum(r.our_total for r in comparable)
        total_savings = current_spend - our_total

        unmatched = [item for item in items if item.match_status in UNMATCHED_STATUSES]
        unmatched_spend = sum(
            item.cost_per_unit * item.ship_qty
            for item in unmatched
            if item.cost_per_unit and item.ship_qty
        )

        logger.info(
            "comparison_calculated",
            upload_id=upload_id,
            comparable=len(comparable),
            not_comparable=len(not_comparable),
            unmatched=len(unmatched),
            default_markup=default_markup
        )

        return ComparisonResponse(
            upload_id=upload_id,
            customer_name=customer_name_from_filename(upload.original_filename or upload.filename),
            default_markup=default_markup,
            current_spend=current_spend,
            our_total=our_total,
            total_savings=total_savings,
            savings_percent=_percent(total_savings, current_spend),
            unmatched_spend=unmatched_spend,
            unmatched_count=len(unmatched),
            not_comparable_count=len(not_comparable),
            items=comparable + not_comparable,
        )

    def get_proposal(self, upload_id: str, request: Optional[ComparisonRequest] = None) -> ProposalResponse:
        """
        Annualized proposal figures and a draft email.

        The report covers one period; annual figures multiply by the
        configured periods per year.
        """
        comparison = self.get_comparison(upload_id, request)
        factor = settings.annualization_factor

        annual_current = comparison.current_spend * factor
        annual_ours = comparison.our_total * factor
        comparable = [r for r in comparison.items if r.comparable]

        subject = f"Partnership Proposal - {comparison.customer_name}"
        body = (
            "Dear Team,\n\n"
            "Thank you for the opportunity to present our proposal. Attached you'll find "
            "a comprehensive analysis showing potential savings of "
            f"{comparison.savings_percent:.1f}% on your medical supply spend.\n\n"
            "I'd love to schedule a call to discuss further.\n\n"
            f"Best regards,\n{settings.company_name}"
        )

        return ProposalResponse(
            upload_id=upload_id,
            customer_name=comparison.customer_name,
            matched_count=len(comparable),
            current_spend=comparison.current_spend,
            our_total=comparison.our_total,
            annual_current_spend=annual_current,
            annual_our_total=annual_ours,
            annual_savings=annual_current - annual_ours,
            savings_percent=comparison.savings_percent,
            top_items=comparable[:settings.proposal_top_items],
            email_subject=subject,
            email_body=body,
        )


# Singleton instance
_comparison_service: Optional[ComparisonService] = None


def get_comparison_service() -> ComparisonService:
    """Get or create comparison service instance."""
    global _comparison_service
    if _comparison_service is None:
        _comparison_service = ComparisonService(get_upload_service(), get_product_service())
    return _comparison_service
