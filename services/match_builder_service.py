"""
Match builder service.

Admin workflow for creating overrides ahead of time:
1. Find a master catalog entry (optionally only those without an override)
2. Get internal products ranked by spec score
3. Compare the two spec sets attribute by attribute
4. Save the pairing as an approved match
"""

from typing import Optional
import structlog

from config import settings
from exceptions import MissingManufacturerSKUError
from models.approved_match import ApprovedMatchCreate, ApprovedMatchResponse
from models.catalog import CatalogEntry, CatalogSearchResult, CatalogSearchResponse
from models.match_builder import (
    CreateMatchRequest,
    MatchPreviewResponse,
    Suggestion,
    SuggestionResponse,
)
from services.approved_match_service import ApprovedMatchService, get_approved_match_service
from services.catalog_service import CatalogService, get_catalog_service
from services.product_service import ProductService, get_product_service
from services.spec_extractor import APPLICATION, SpecSet, build_spec_set, parse_specs_from_text
from services.spec_matcher import matched_chips, score_spec_match, spec_alignment

logger = structlog.get_logger(__name__)


def catalog_entry_specs(entry: CatalogEntry) -> SpecSet:
    """Spec set for a catalog entry: its attributes, then its name."""
    return build_spec_set(entry.all_specifications, entry.name)


class MatchBuilderService:
    """
    Catalog-to-product override builder.
    """

    def __init__(
        self,
        catalog_service: CatalogService,
        product_service: ProductService,
        approved_match_service: ApprovedMatchService
    ):
        self.catalog_service = catalog_service
        self.product_service = product_service
        self.approved_match_service = approved_match_service

    def search_catalog(
        self,
        term: str = "",
        category: Optional[str] = None,
        manufacturer: Optional[str] = None,
        unmatched_only: bool = False,
        limit: int = 50
    ) -> CatalogSearchResponse:
        """
        Search catalog entries, flagging those that already have an override.

        With `unmatched_only` the flagged entries are dropped and the total
        becomes the number of entries left.
        """
        entries, total = self.catalog_service.search(term, category, manufacturer, limit)
        if not entries:
            return CatalogSearchResponse(data=[], total=0)

        matched_skus = self.approved_match_service.get_matched_skus()
        results = [
            CatalogSearchResult(
                **entry.model_dump(),
                already_matched=bool(entry.manufacturer_sku) and entry.manufacturer_sku in matched_skus
            )
            for entry in entries
        ]

        if unmatched_only:
            results = [r for r in results if not r.already_matched]
            total = len(results)

        return CatalogSearchResponse(data=results, total=total)

    def get_suggestions(self, catalog_id: int) -> SuggestionResponse:
        """
        Rank active products against a catalog entry.

        Candidates below the minimum score are dropped; ordering is by
        score, highest first, keeping product order among equal scores.
        """
        entry = self.catalog_service.get_by_id(catalog_id)
        specs = catalog_entry_specs(entry)

        if not specs.get(APPLICATION):
            logger.info("suggestions_skipped", catalog_id=catalog_id, reason="no_application")
            return SuggestionResponse(entry=entry, specs=specs, suggestions=[])

        scored = []
        for product in self.product_service.get_all_active():
            product_specs = parse_specs_from_text(product.spec_text)
            score = score_spec_match(specs, product_specs)
            if score >= settings.suggestion_min_score:
                scored.append(Suggestion(
                    product=product,
                    specs=product_specs,
                    score=score,
                    chips=matched_chips(specs, product_specs),
                ))

        scored.sort(key=lambda s: s.score, reverse=True)
        suggestions = scored[:settings.suggestion_limit]

        logger.info(
            "suggestions_generated",
            catalog_id=catalog_id,
            application=specs[APPLICATION],
            candidates=len(scored),
            returned=len(suggestions)
        )
        return SuggestionResponse(entry=entry, specs=specs, suggestions=suggestions)

    def preview(self, catalog_id: int, product_id: str) -> MatchPreviewResponse:
        """Side-by-side spec comparison of a catalog entry and a product."""
        entry = self.catalog_service.get_by_id(catalog_id)
        product = self.product_service.get_by_id(product_id)

        source = catalog_entry_specs(entry)
        candidate = parse_specs_from_text(product.spec_text)

        already_matched = False
        if entry.manufacturer_sku:
            already_matched = bool(self.approved_match_service.get_by_skus([entry.manufacturer_sku]))

        return MatchPreviewResponse(
            entry=entry,
            product=product,
            source_specs=source,
            candidate_specs=candidate,
            score=score_spec_match(source, candidate),
            alignment=spec_alignment(source, candidate),
            already_matched=already_matched,
        )

    def create_match(self, request: CreateMatchRequest) -> ApprovedMatchResponse:
        """
        Save a catalog entry → product pairing as an approved match.

        Raises:
            CatalogEntryNotFoundError: Unknown catalog entry
            ProductNotFoundError: Unknown product
            MissingManufacturerSKUError: The entry has no SKU to key on
        """
        entry = self.catalog_service.get_by_id(request.catalog_id)
        sku = (entry.manufacturer_sku or "").strip()
        if not sku:
            raise MissingManufacturerSKUError(str(request.catalog_id))

        product = self.product_service.get_by_id(request.product_id)

        match = self.approved_match_service.upsert(ApprovedMatchCreate(
            external_mfr_number=sku,
            external_description=entry.name,
            product_id=product.id,
            product_item_code=product.manufacturer_item_code,
            approved_by=request.approved_by,
            approval_notes=request.approval_notes or "Created via match builder",
        ))

        logger.info(
            "match_builder_match_created",
            catalog_id=request.catalog_id,
            external_mfr_number=sku,
            product_id=product.id
        )
        return match


# Singleton instance
_match_builder_service: Optional[MatchBuilderService] = None


def get_match_builder_service() -> MatchBuilderService:
    """Get or create match builder service instance."""
    global _match_builder_service
    if _match_builder_service is None:
        _match_builder_service = MatchBuilderService(
            get_catalog_service(),
            get_product_service(),
            get_approved_match_service()
        )
    return _match_builder_service
