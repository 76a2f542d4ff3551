"""
Master catalog service.

Read-only access to the distributor's master catalog, used to enrich
uploaded line items and to browse entries in the match builder.
"""

from typing import Optional
import structlog

from config import get_supabase_client, settings
from models.catalog import CatalogEntry
from exceptions import CatalogEntryNotFoundError, DatabaseError
from utils.batch_utils import chunked

logger = structlog.get_logger(__name__)

CATALOG_COLUMNS = (
    "catalog_id, manufacturer_sku, name, short_description, "
    "manufacturer, brand, category, all_specifications"
)


class CatalogService:
    """
    Master catalog lookups.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "master_catalog"

    def get_by_id(self, catalog_id: int) -> CatalogEntry:
        """
        Get one catalog entry.

        Raises:
            CatalogEntryNotFoundError: If the id is unknown
        """
        try:
            result = (
                self.db.table(self.table)
                .select(CATALOG_COLUMNS)
                .eq("catalog_id", catalog_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_catalog_entry_failed", catalog_id=catalog_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise CatalogEntryNotFoundError(str(catalog_id))

        return CatalogEntry(**result.data[0])

    def get_by_ids(self, catalog_ids: list[int]) -> dict[int, CatalogEntry]:
        """
        Batch fetch catalog entries by numeric id.

        Args:
            catalog_ids: Distributor item ids (duplicates are ignored)

        Returns:
            Dict of id → entry; unknown ids are simply absent
        """
        ids = sorted(set(catalog_ids))
        if not ids:
            return {}

        logger.info("fetching_catalog_entries", count=len(ids))

        entries: dict[int, CatalogEntry] = {}
        try:
            for chunk in chunked(ids, settings.catalog_batch_size):
                result = (
                    self.db.table(self.table)
                    .select(CATALOG_COLUMNS)
                    .in_("catalog_id", list(chunk))
                    .execute()
                )
                for row in result.data or []:
                    entry = CatalogEntry(**row)
                    entries[entry.catalog_id] = entry
        except Exception as e:
            logger.error("fetch_catalog_entries_failed", count=len(ids), error=str(e))
            raise DatabaseError("select", str(e))

        logger.info("catalog_entries_fetched", requested=len(ids), found=len(entries))
        return entries

    def search(
        self,
        term: str = "",
        category: Optional[str] = None,
        manufacturer: Optional[str] = None,
        limit: int = 50
    ) -> tuple[list[CatalogEntry], int]:
        """
        Search the catalog by name / SKU / brand with optional filters.

        Nothing is searched unless the term has 2+ characters or a
        filter is given.

        Returns:
            Tuple of (entries, total matching count)
        """
        term = (term or "").strip()
        category = (category or "").strip()
        manufacturer = (manufacturer or "").strip()

        if len(term) < 2 and not category and not manufacturer:
            return [], 0

        logger.debug(
            "searching_catalog",
            term=term,
            category=category,
            manufacturer=manufacturer
        )

        try:
            query = self.db.table(self.table).select(CATALOG_COLUMNS, count="exact")

            if len(term) >= 2:
                safe = term.replace(",", " ").replace("(", " ").replace(")", " ")
                query = query.or_(
                    f"name.ilike.%{safe}%,"
                    f"manufacturer_sku.ilike.%{safe}%,"
                    f"brand.ilike.%{safe}%"
                )
            if category:
                query = query.ilike("category", f"%{category}%")
            if manufacturer:
                query = query.ilike("manufacturer", f"%{manufacturer}%")

            result = query.limit(limit).execute()
        except Exception as e:
            logger.error("search_catalog_failed", term=term, error=str(e))
            raise DatabaseError("select", str(e))

        entries = [CatalogEntry(**row) for row in result.data or []]
        return entries, result.count or len(entries)


# Singleton instance
_catalog_service: Optional[CatalogService] = None


def get_catalog_service() -> CatalogService:
    """Get or create catalog service instance."""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService()
    return _catalog_service
