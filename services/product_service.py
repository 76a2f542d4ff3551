"""
Product service: read access to the internal product master.

Products are never written here. Matching needs two views of the table:
code lookups for tier 1 and the full active list for spec scoring.
"""

from typing import Optional
import structlog

from config import get_supabase_client, settings
from models.product import ProductResponse
from exceptions import ProductNotFoundError, DatabaseError
from utils.batch_utils import chunked

logger = structlog.get_logger(__name__)

PRODUCT_COLUMNS = (
    "id, manufacturer_item_code, product_name, item_description, "
    "packing_list_description, unit_price, package_type, manufacturer_name, is_active"
)


class ProductService:
    """
    Product lookups.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "products"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_by_id(self, product_id: str) -> ProductResponse:
        """
        Get a single product by ID.

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        logger.debug("getting_product", product_id=product_id)

        try:
            result = (
                self.db.table(self.table)
                .select(PRODUCT_COLUMNS)
                .eq("id", product_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_product_failed", product_id=product_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise ProductNotFoundError(product_id)

        return ProductResponse(**result.data[0])

    def get_by_ids(self, product_ids: list[str]) -> dict[str, ProductResponse]:
        """
        Batch lookup by id.

        Returns:
            Dict of product id → product (missing ids are absent)
        """
        ids = sorted({str(pid) for pid in product_ids if pid})
        if not ids:
            return {}

        products: dict[str, ProductResponse] = {}
        try:
            for chunk in chunked(ids, settings.lookup_chunk_size):
                result = (
                    self.db.table(self.table)
                    .select(PRODUCT_COLUMNS)
                    .in_("id", chunk)
                    .execute()
                )
                for row in result.data or []:
                    product = ProductResponse(**row)
                    products[product.id] = product
        except Exception as e:
            logger.error("get_products_by_ids_failed", count=len(ids), error=str(e))
            raise DatabaseError("select", str(e))

        return products

    def get_by_codes(self, codes: list[str]) -> dict[str, list[ProductResponse]]:
        """
        Batch lookup by manufacturer item code.

        A code can map to several products (one per package type), so each
        code maps to a list, kept in the order the store returned them.

        Args:
            codes: Manufacturer item codes

        Returns:
            Dict of code → products
        """
        unique_codes = sorted({c for c in codes if c})
        if not unique_codes:
            return {}

        logger.info("getting_products_by_codes", count=len(unique_codes))

        by_code: dict[str, list[ProductResponse]] = {}
        try:
            for chunk in chunked(unique_codes, settings.lookup_chunk_size):
                result = (
                    self.db.table(self.table)
                    .select(PRODUCT_COLUMNS)
                    .in_("manufacturer_item_code", chunk)
                    .order("id")
                    .execute()
                )
                for row in result.data or []:
                    product = ProductResponse(**row)
                    by_code.setdefault(product.manufacturer_item_code, []).append(product)
        except Exception as e:
            logger.error("get_products_by_codes_failed", error=str(e))
            raise DatabaseError("select", str(e))

        logger.info("products_by_codes_retrieved", codes_found=len(by_code))
        return by_code

    def get_all_active(self) -> list[ProductResponse]:
        """
        Full scan of active products, paged and ordered by id.

        The order is stable between runs, which keeps fuzzy tie-breaking
        deterministic.
        """
        page_size = settings.product_page_size
        products: list[ProductResponse] = []
        offset = 0

        try:
            while True:
                result = (
                    self.db.table(self.table)
                    .select(PRODUCT_COLUMNS)
                    .eq("is_active", True)
                    .order("id")
                    .range(offset, offset + page_size - 1)
                    .execute()
                )
                rows = result.data or []
                products.extend(ProductResponse(**row) for row in rows)

                if len(rows) < page_size:
                    break
                offset += page_size
        except Exception as e:
            logger.error("get_active_products_failed", error=str(e))
            raise DatabaseError("select", str(e))

        logger.info("active_products_retrieved", count=len(products))
        return products

    def search(self, term: str, limit: int = 50) -> list[ProductResponse]:
        """
        Search active products by name, code or description.

        Args:
            term: Search text (at least 2 characters to search)
            limit: Maximum results

        Returns:
            Products ordered by name
        """
        term = (term or "").strip()
        if len(term) < 2:
            return []

        # PostgREST or-filter syntax breaks on commas and parentheses
        safe = term.replace(",", " ").replace("(", " ").replace(")", " ")

        logger.debug("searching_products", term=safe, limit=limit)

        try:
            result = (
                self.db.table(self.table)
                .select(PRODUCT_COLUMNS)
                .eq("is_active", True)
                .or_(
                    f"product_name.ilike.%{safe}%,"
                    f"manufacturer_item_code.ilike.%{safe}%,"
                    f"item_description.ilike.%{safe}%"
                )
                .order("product_name")
                .limit(limit)
                .execute()
            )
        except Exception as e:
            logger.error("search_products_failed", term=safe, error=str(e))
            raise DatabaseError("select", str(e))

        return [ProductResponse(**row) for row in result.data or []]


# Singleton instance
_product_service: Optional[ProductService] = None


def get_product_service() -> ProductService:
    """Get or create product service instance."""
    global _product_service
    if _product_service is None:
        _product_service = ProductService()
    return _product_service
