"""
External master catalog schemas.
"""

from pydantic import Field, field_validator
from typing import Any, Optional
import json

from models.base import BaseSchema


class CatalogEntry(BaseSchema):
    """
    One entry of the distributor's master catalog.

    Read-only. Looked up by numeric item id (enrichment)
    and searched by name / SKU / brand (match builder).
    """

    catalog_id: int = Field(..., description="Distributor item id")
    manufacturer_sku: Optional[str] = Field(None, description="Manufacturer SKU")
    name: Optional[str] = Field(None, description="Catalog product name")
    short_description: Optional[str] = None
    manufacturer: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    all_specifications: Optional[dict[str, Any]] = Field(
        None,
        description="Named attributes, e.g. {'Gauge': '18 Gauge', 'Length': '1 Inch Length'}"
    )

    @field_validator("all_specifications", mode="before")
    @classmethod
    def decode_specs(cls, v: Any) -> Optional[dict]:
        """Specs may arrive as a JSON string from older imports."""
        if v is None or v == "":
            return None
        if isinstance(v, str):
            try:
                decoded = json.loads(v)
            except ValueError:
                return None
            return decoded if isinstance(decoded, dict) else None
        return v


class CatalogSearchResult(CatalogEntry):
    """Catalog entry flagged with whether an override already exists."""

    already_matched: bool = False


class CatalogSearchResponse(BaseSchema):
    """Match builder catalog search."""

    data: list[CatalogSearchResult]
    total: int
