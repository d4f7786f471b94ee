"""
Product lookup for pantry barcode scans, backed by Open Food Facts.

Only the fields the pantry needs are requested. A product Open Food Facts
knows but cannot name is treated as unknown, so the client falls back to
asking the user for a name.
"""

import logging
from functools import lru_cache
from typing import Optional

import httpx

from larder.config import get_settings
from larder.models.barcode import ProductInfo

logger = logging.getLogger(__name__)
settings = get_settings()

OFF_BASE_URL = "https://world.openfoodfacts.org/api/v2"
OFF_FIELDS = "code,product_name,product_name_en,generic_name,brands,quantity,categories_tags,image_url"

# EAN-8 through GTIN-14
MIN_BARCODE_DIGITS = 8
MAX_BARCODE_DIGITS = 14

MAX_CATEGORIES = 5


def normalize_barcode(barcode: Optional[str]) -> str:
    """Digits only; "" when the result cannot be a retail barcode."""
    digits = "".join(c for c in (barcode or "") if c.isdigit())
    if not MIN_BARCODE_DIGITS <= len(digits) <= MAX_BARCODE_DIGITS:
        return ""
    return digits


def category_label(tag: str) -> str:
    """"en:fermented-milk-products" -> "Fermented Milk Products"."""
    return tag.split(":", 1)[-1].replace("-", " ").strip().title()


def parse_product(barcode: str, product: dict) -> Optional[ProductInfo]:
    """Build ProductInfo from an Open Food Facts product object."""
    name = next(
        (
            value.strip()
            for value in (product.get("product_name"), product.get("product_name_en"), product.get("generic_name"))
            if isinstance(value, str) and value.strip()
        ),
        None,
    )
    if name is None:
        return None

    categories = []
    for tag in product.get("categories_tags") or []:
        label = category_label(tag)
        if label and label not in categories:
            categories.append(label)

    return ProductInfo(
        barcode=barcode,
        name=name,
        brand=(product.get("brands") or "").split(",")[0].strip() or None,
        quantity=product.get("quantity") or None,
        categories=categories[:MAX_CATEGORIES],
        image_url=product.get("image_url"),
    )


class BarcodeService:
    """Shared HTTP client for Open Food Facts product lookups."""

    def __init__(self, http: Optional[httpx.AsyncClient] = None):
        self.http = http

    async def init(self):
        if self.http is None:
            self.http = httpx.AsyncClient(
                timeout=15.0,
                headers={"User-Agent": settings.off_user_agent},
            )

    async def close(self):
        if self.http is not None:
            await self.http.aclose()
            self.http = None

    async def lookup(self, barcode: str) -> Optional[ProductInfo]:
        """
        Find a product by barcode.

        Returns:
            The product, or None when the barcode is malformed, unknown, or
            names no product.

        Raises:
            httpx.HTTPError: Open Food Facts failed (anything but a 404).
        """
        code = normalize_barcode(barcode)
        if not code:
            logger.info(f"Ignoring malformed barcode {barcode!r}")
            return None

        await self.init()
        try:
            response = await self.http.get(f"{OFF_BASE_URL}/product/{code}", params={"fields": OFF_FIELDS})
            if response.status_code == 404:
                return None
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Open Food Facts lookup failed for {code}: {e}")
            raise

        data = response.json()
        if data.get("status") != 1:
            return None

        product = parse_product(code, data.get("product") or {})
        if product is None:
            logger.info(f"Open Food Facts has no name for {code}")
        return product


@lru_cache
def get_barcode_service() -> BarcodeService:
    return BarcodeService()
