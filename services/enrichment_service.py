"""
Enrichment step.

Cross-references uploaded line items with the distributor master catalog
by item number and copies canonical attributes onto them. Items whose
number is not numeric or not in the catalog stay un-enriched; that is an
expected outcome, not an error.
"""

from typing import Any, Optional
import structlog

from models.catalog import CatalogEntry
from models.line_item import LineItem
from services.catalog_service import CatalogService, get_catalog_service
from services.upload_service import UploadService, get_upload_service

logger = structlog.get_logger(__name__)


def parse_item_number(value: Optional[str]) -> Optional[int]:
    """
    Catalog id from a reported item number.

    - "1042"   → 1042
    - " 1042 " → 1042
    - "1042.0" → 1042
    - "A-17"   → None
    """
    text = (value or "").strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return int(number) if number.is_integer() else None


def enrichment_fields(item: LineItem, entry: CatalogEntry) -> dict[str, Any]:
    """
    Columns to write onto a line item from its catalog entry.

    The catalog SKU is always kept in enriched_mfr_sku. It also backfills
    mfr_number, but only when the report left that blank.
    """
    fields: dict[str, Any] = {
        "catalog_id": entry.catalog_id,
        "enriched_name": entry.name,
        "enriched_description": entry.short_description,
        "enriched_manufacturer": entry.manufacturer,
        "enriched_brand": entry.brand,
        "enriched_category": entry.category,
        "enriched_specs": entry.all_specifications,
        "enriched_mfr_sku": entry.manufacturer_sku,
    }
    if not item.mfr_number.strip() and entry.manufacturer_sku:
        fields["mfr_number"] = entry.manufacturer_sku.strip()
    return fields


class EnrichmentService:
    """
    Copies master catalog attributes onto line items.
    """

    def __init__(self, catalog_service: CatalogService, upload_service: UploadService):
        self.catalog_service = catalog_service
        self.upload_service = upload_service

    def enrich_items(self, items: list[LineItem]) -> list[LineItem]:
        """
        Enrich line items in place and persist the new fields.

        Args:
            items: Line items of one upload

        Returns:
            The same items with enrichment applied (un-enriched ones unchanged)
        """
        numbers = {
            item.id: parse_item_number(item.item_number)
            for item in items
        }
        catalog_ids = sorted({n for n in numbers.values() if n is not None})

        if not catalog_ids:
            logger.info("enrichment_skipped", reason="no_numeric_item_numbers", items=len(items))
            return items

        entries = self.catalog_service.get_by_ids(catalog_ids)

        enriched: list[LineItem] = []
        enriched_count = 0
        for item in items:
            entry = entries.get(numbers[item.id]) if numbers[item.id] is not None else None
            if entry is None:
                enriched.append(item)
                continue

            fields = enrichment_fields(item, entry)
            self.upload_service.update_item(item.id, fields)
            enriched.append(item.model_copy(update=fields))
            enriched_count += 1

        logger.info(
            "enrichment_complete",
            items=len(items),
            catalog_ids=len(catalog_ids),
            enriched=enriched_count
        )
        return enriched

    def enrich_upload(self, upload_id: str) -> list[LineItem]:
        """Enrich every line item of an upload."""
        items = self.upload_service.get_items(upload_id)
        return self.enrich_items(items)


# Singleton instance
_enrichment_service: Optional[EnrichmentService] = None


def get_enrichment_service() -> EnrichmentService:
    """Get or create enrichment service instance."""
    global _enrichment_service
    if _enrichment_service is None:
        _enrichment_service = EnrichmentService(get_catalog_service(), get_upload_service())
    return _enrichment_service
