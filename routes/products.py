"""
Product API routes.

Read-only: products are maintained outside this service.
"""

from fastapi import APIRouter, Query
import structlog

from models.product import ProductResponse, ProductSearchResponse
from services.product_service import get_product_service
from routes.errors import handle_error

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/search", response_model=ProductSearchResponse)
async def search_products(
    q: str = Query("", description="Name, manufacturer code or description"),
    limit: int = Query(50, ge=1, le=200, description="Max results")
):
    """
    Search active products.

    Terms shorter than 2 characters return nothing.
    """
    try:
        products = get_product_service().search(q, limit=limit)
        return ProductSearchResponse(data=products, total=len(products))

    except Exception as e:
        return handle_error(e)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str):
    """
    Get a single product by ID.

    Raises:
        404: Product not found
    """
    try:
        return get_product_service().get_by_id(product_id)

    except Exception as e:
        return handle_error(e)
