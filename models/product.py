"""
Internal product schemas.

Products are read-only to the matching core. A manufacturer item code is
not unique: the same code can be listed once per package type.
"""

from pydantic import Field, field_validator
from typing import Any, Optional

from models.base import BaseSchema


class ProductResponse(BaseSchema):
    """
    Internal catalog product.

    Used for matching, review and comparison.
    """

    id: str = Field(..., description="Product id")
    manufacturer_item_code: Optional[str] = Field(None, description="Manufacturer item code")
    product_name: str = Field("", description="Display name")
    item_description: Optional[str] = Field(None, description="Text description")
    packing_list_description: Optional[str] = Field(
        None,
        description="Packing text, often with hierarchy like '200/BX 10BX/CS'"
    )
    unit_price: float = Field(0, description="Price for one package_type unit")
    package_type: Optional[str] = Field(None, description="Package type / UOM")
    manufacturer_name: Optional[str] = Field(None, description="Manufacturer name")
    is_active: bool = Field(True, description="Whether product is active")

    @field_validator("id", mode="before")
    @classmethod
    def id_as_str(cls, v: Any) -> str:
        return str(v)

    @field_validator("product_name", mode="before")
    @classmethod
    def name_or_empty(cls, v: Any) -> str:
        return v or ""

    @field_validator("unit_price", mode="before")
    @classmethod
    def price_or_zero(cls, v: Any) -> Any:
        return 0 if v is None else v

    @property
    def spec_text(self) -> str:
        """Text the specification extractor reads for this product."""
        return f"{self.product_name} {self.item_description or ''} {self.packing_list_description or ''}"

    @property
    def packaging_text(self) -> str:
        """Text the packaging hierarchy parser reads for this product."""
        return f"{self.packing_list_description or ''} {self.item_description or ''}"


class ProductSearchResponse(BaseSchema):
    """Product search results."""

    data: list[ProductResponse]
    total: int
