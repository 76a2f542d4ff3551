"""
Matching pipeline.

Assigns every line item of an upload a status, a confidence and (when
found) an internal product. Tiers are tried in order and the first hit
wins:

    0. pre_approved  admin override on the manufacturer SKU      100
    1. exact         manufacturer item code + UOM verified       100
                     code hit, UOM differs                fuzzy   90
                     code hit, manufacturer name differs  fuzzy   85
    2. fuzzy         best spec score over all active products  40-95
    3. no_match                                                     0

A run has three phases with a hard barrier between them: load every
reference set, evaluate every item (pure, no I/O), then write. Each run
recomputes all match fields from scratch, so re-running is safe.
"""

from dataclasses import dataclass, field
from typing import Optional
import structlog

from config import settings
from exceptions import MatchingRunError
from models.approved_match import ApprovedMatchResponse
from models.line_item import LineItem, MatchOutcome, MatchStatus
from models.product import ProductResponse
from models.upload import MatchRunSummary
from services.approved_match_service import ApprovedMatchService, get_approved_match_service
from services.product_service import ProductService, get_product_service
from services.spec_extractor import APPLICATION, SpecSet, build_spec_set, parse_specs_from_text
from services.spec_matcher import matched_attributes, score_spec_match
from services.upload_service import UploadService, get_upload_service
from utils.packaging_utils import canonical_uom
from utils.text_utils import manufacturer_names_overlap

logger = structlog.get_logger(__name__)

EXACT_CONFIDENCE = 100
UOM_MISMATCH_CONFIDENCE = 90
MANUFACTURER_MISMATCH_CONFIDENCE = 85


@dataclass
class MatchContext:
    """
    Reference data for one pipeline run.

    Built once before any item is evaluated and read-only afterwards.
    """
    approved_by_sku: dict[str, ApprovedMatchResponse] = field(default_factory=dict)
    products_by_code: dict[str, list[ProductResponse]] = field(default_factory=dict)
    product_specs: list[tuple[ProductResponse, SpecSet]] = field(default_factory=list)
    fuzzy_threshold: int = 40


def lookup_keys(item: LineItem) -> list[str]:
    """Effective manufacturer code first, then the catalog SKU if it differs."""
    keys = []
    effective = item.effective_mfr
    if effective:
        keys.append(effective)
    enriched = (item.enriched_mfr_sku or "").strip()
    if enriched and enriched not in keys:
        keys.append(enriched)
    return keys


def item_spec_text(item: LineItem) -> str:
    """Text the spec extractor reads for a line item."""
    parts = [item.enriched_name, item.enriched_description, item.description]
    return " ".join(part for part in parts if part)


def item_specs(item: LineItem) -> SpecSet:
    """Spec set for a line item: catalog attributes first, then text."""
    return build_spec_set(item.enriched_specs, item_spec_text(item))


# ===================
# TIERS
# ===================

def _match_approved(item: LineItem, context: MatchContext) -> Optional[MatchOutcome]:
    for key in lookup_keys(item):
        approved = context.approved_by_sku.get(key)
        if approved:
            return MatchOutcome(
                status=MatchStatus.PRE_APPROVED,
                confidence=EXACT_CONFIDENCE,
                matched_product_id=approved.product_id,
                notes=f"Pre-approved match on {key}",
            )
    return None


def _match_code(item: LineItem, context: MatchContext) -> Optional[MatchOutcome]:
    code = None
    candidates: list[ProductResponse] = []
    for key in lookup_keys(item):
        candidates = context.products_by_code.get(key, [])
        if candidates:
            code = key
            break
    if not candidates:
        return None

    item_manufacturer = (item.enriched_manufacturer or "").strip()
    if item_manufacturer:
        # Products with no recorded manufacturer cannot contradict the item
        same_maker = [
            p for p in candidates
            if not (p.manufacturer_name or "").strip()
            or manufacturer_names_overlap(item_manufacturer, p.manufacturer_name)
        ]
        if not same_maker:
            product = candidates[0]
            return MatchOutcome(
                status=MatchStatus.FUZZY,
                confidence=MANUFACTURER_MISMATCH_CONFIDENCE,
                matched_product_id=product.id,
                notes=(
                    f"Manufacturer code {code} matches but manufacturer differs "
                    f"(report: {item_manufacturer}, product: {product.manufacturer_name})"
                ),
            )
        candidates = same_maker

    item_uom = canonical_uom(item.uom)
    for product in candidates:
        if item_uom and canonical_uom(product.package_type) == item_uom:
            return MatchOutcome(
                status=MatchStatus.EXACT,
                confidence=EXACT_CONFIDENCE,
                matched_product_id=product.id,
                notes=f"Exact manufacturer code match on {code} ({product.package_type})",
            )

    product = candidates[0]
    return MatchOutcome(
        status=MatchStatus.FUZZY,
        confidence=UOM_MISMATCH_CONFIDENCE,
        matched_product_id=product.id,
        notes=(
            f"Manufacturer code {code} matches but UOM differs "
            f"(report: {item.uom.strip() or 'none'}, product: {product.package_type or 'none'})"
        ),
    )


def _match_specs(item: LineItem, context: MatchContext) -> Optional[MatchOutcome]:
    source = item_specs(item)
    if not source.get(APPLICATION):
        return None

    best_product: Optional[ProductResponse] = None
    best_specs: SpecSet = {}
    best_score = 0
    for product, specs in context.product_specs:
        score = score_spec_match(source, specs)
        # Strict comparison keeps the first candidate on ties
        if score > best_score:
            best_product, best_specs, best_score = product, specs, score

    if best_product is None or best_score < context.fuzzy_threshold:
        return None

    matched = matched_attributes(source, best_specs)
    detail = ", ".join(matched) if matched else "product type only"
    return MatchOutcome(
        status=MatchStatus.FUZZY,
        confidence=best_score,
        matched_product_id=best_product.id,
        notes=f"Spec match on {source[APPLICATION]} ({best_score}% confidence): {detail}",
    )


def evaluate_item(item: LineItem, context: MatchContext) -> MatchOutcome:
    """
    Run the tiers for one line item.

    Pure: depends only on the item and the run context.
    """
    return (
        _match_approved(item, context)
        or _match_code(item, context)
        or _match_specs(item, context)
        or MatchOutcome(status=MatchStatus.NO_MATCH, confidence=0, notes=None)
    )


def summarize(upload_id: str, outcomes: list[MatchOutcome]) -> MatchRunSummary:
    """Batch counters, summed after evaluation."""
    statuses = [o.status for o in outcomes]
    return MatchRunSummary(
        upload_id=upload_id,
        total=len(outcomes),
        exact=statuses.count(MatchStatus.EXACT),
        pre_approved=statuses.count(MatchStatus.PRE_APPROVED),
        fuzzy=statuses.count(MatchStatus.FUZZY),
        no_match=statuses.count(MatchStatus.NO_MATCH),
    )


# ===================
# SERVICE
# ===================

class MatchingService:
    """
    Runs the matching pipeline for an upload.
    """

    def __init__(
        self,
        product_service: ProductService,
        approved_match_service: ApprovedMatchService,
        upload_service: UploadService
    ):
        self.product_service = product_service
        self.approved_match_service = approved_match_service
        self.upload_service = upload_service

    def build_context(self, items: list[LineItem]) -> MatchContext:
        """
        Load every reference set the tiers need.

        Args:
            items: Line items about to be matched

        Returns:
            MatchContext with product specs precomputed once for the run
        """
        keys = sorted({key for item in items for key in lookup_keys(item)})

        approved = self.approved_match_service.get_by_skus(keys)
        by_code = self.product_service.get_by_codes(keys)
        active = self.product_service.get_all_active()

        product_specs = [(p, parse_specs_from_text(p.spec_text)) for p in active]

        logger.info(
            "match_context_built",
            lookup_keys=len(keys),
            approved_matches=len(approved),
            codes_found=len(by_code),
            active_products=len(active)
        )

        return MatchContext(
            approved_by_sku=approved,
            products_by_code=by_code,
            product_specs=product_specs,
            fuzzy_threshold=settings.fuzzy_match_threshold,
        )

    def run_matching(self, upload_id: str, items: Optional[list[LineItem]] = None) -> MatchRunSummary:
        """
        Match every line item of an upload and store the outcomes.

        Args:
            upload_id: Upload UUID
            items: Already-loaded (and enriched) items; loaded when omitted

        Returns:
            MatchRunSummary

        Raises:
            MatchingRunError: Any load or write failed; the upload is marked failed
        """
        logger.info("matching_started", upload_id=upload_id)

        stage = "load_items"
        try:
            if items is None:
                items = self.upload_service.get_items(upload_id)

            stage = "load_reference_data"
            context = self.build_context(items)

            stage = "evaluate"
            outcomes = [evaluate_item(item, context) for item in items]

            stage = "write_results"
            for item, outcome in zip(items, outcomes):
                self.upload_service.update_item(item.id, outcome.to_update())

            summary = summarize(upload_id, outcomes)
            self.upload_service.update_counters(
                upload_id,
                matched_count=summary.matched_count,
                review_count=summary.review_count
            )
        except Exception as e:
            logger.error("matching_failed", upload_id=upload_id, stage=stage, error=str(e))
            self.upload_service.mark_failed(upload_id, str(e))
            raise MatchingRunError(upload_id, stage, str(e)) from e

        logger.info(
            "matching_complete",
            upload_id=upload_id,
            total=summary.total,
            exact=summary.exact,
            pre_approved=summary.pre_approved,
            fuzzy=summary.fuzzy,
            no_match=summary.no_match
        )
        return summary


# Singleton instance
_matching_service: Optional[MatchingService] = None


def get_matching_service() -> MatchingService:
    """Get or create matching service instance."""
    global _matching_service
    if _matching_service is None:
        _matching_service = MatchingService(
            get_product_service(),
            get_approved_match_service(),
            get_upload_service()
        )
    return _matching_service
