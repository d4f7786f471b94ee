"""Barcode lookup models (Open Food Facts)."""

from typing import Optional

from pydantic import BaseModel, Field


class ProductInfo(BaseModel):
    """Product information from Open Food Facts."""

    barcode: str
    name: str
    brand: Optional[str] = None
    quantity: Optional[str] = None  # "500g", "12 oz"
    categories: list[str] = Field(default_factory=list)
    image_url: Optional[str] = None
