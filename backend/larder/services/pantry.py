"""Pantry service - what the user already has at home."""

import logging
from typing import Optional, Sequence

import httpx

from larder.config import get_settings
from larder.models.ingredients import Ingredient, PantryItem
from larder.services.aggregator import merge_into_pantry
from larder.services.barcode import BarcodeService, normalize_barcode
from larder.services.errors import NotFoundError, ServiceUnavailable, ValidationError
from larder.services.normalizer import normalize
from larder.services.store import PANTRY, ListStore, load_groups, mutate_groups, require_user_id

logger = logging.getLogger(__name__)
settings = get_settings()


class PantryService:
    """Reads and writes a user's pantry document."""

    def __init__(
        self,
        store: ListStore,
        barcode_service: Optional[BarcodeService] = None,
        max_attempts: Optional[int] = None,
    ):
        self.store = store
        self.barcode_service = barcode_service
        self.max_attempts = max_attempts or settings.persistence_max_attempts

    async def _mutate(self, user_id: str, transform) -> list[PantryItem]:
        return await mutate_groups(
            self.store, PANTRY, user_id, PantryItem, transform, self.max_attempts
        )

    async def get_pantry(self, user_id: str) -> list[PantryItem]:
        require_user_id(user_id, "get_pantry")
        items, _ = await load_groups(self.store, PANTRY, user_id, PantryItem)
        return items

    async def add_items(self, user_id: str, items: Sequence[Ingredient]) -> list[PantryItem]:
        """Merge items into the pantry by normalized name."""
        require_user_id(user_id, "add_items")
        incoming = [item for item in items if normalize(item.name)]
        if not incoming:
            return await self.get_pantry(user_id)

        result = await self._mutate(user_id, lambda current: merge_into_pantry(current, incoming))
        logger.info(f"Added {len(incoming)} item(s) to pantry for {user_id[:8]} ({len(result)} total)")
        return result

    async def add_barcode_item(
        self,
        user_id: str,
        barcode: str,
        amount: str = "1",
        name: Optional[str] = None,
    ) -> list[PantryItem]:
        """
        Add a scanned product to the pantry.

        When no name is given the product is looked up on Open Food Facts.

        Raises:
            NotFoundError: The barcode is unknown.
            ValidationError: No name given and lookup is disabled.
            ServiceUnavailable: No name given and Open Food Facts failed.
        """
        require_user_id(user_id, "add_barcode_item")
        category = None

        if not name:
            if self.barcode_service is None or not settings.feature_barcode_lookup:
                raise ValidationError("A product name is required when barcode lookup is disabled")

            try:
                product = await self.barcode_service.lookup(barcode)
            except httpx.HTTPError as e:
                logger.warning(f"Barcode lookup unavailable for {barcode}: {e}")
                raise ServiceUnavailable("Product lookup is unavailable; enter the product name") from e
            if product is None:
                raise NotFoundError(f"Product {barcode} not found")
            name = product.name
            category = product.categories[0] if product.categories else None

        ingredient = Ingredient(
            name=name,
            amount=amount,
            barcode=normalize_barcode(barcode) or barcode,
            category=category,
        )
        return await self.add_items(user_id, [ingredient])

    async def remove_item(self, user_id: str, name: str) -> list[PantryItem]:
        """Remove a pantry line. Missing names are ignored."""
        require_user_id(user_id, "remove_item")
        key = normalize(name)

        def transform(current: list[PantryItem]) -> Optional[list[PantryItem]]:
            remaining = [item for item in current if item.key != key]
            return remaining if len(remaining) != len(current) else None

        return await self._mutate(user_id, transform)

    async def cook_recipe(self, user_id: str, ingredients: Sequence[Ingredient]) -> list[PantryItem]:
        """Consume a cooked recipe: its ingredients leave the pantry."""
        require_user_id(user_id, "cook_recipe")
        used = {normalize(ingredient.name) for ingredient in ingredients}

        def transform(current: list[PantryItem]) -> Optional[list[PantryItem]]:
            remaining = [item for item in current if item.key not in used]
            return remaining if len(remaining) != len(current) else None

        result = await self._mutate(user_id, transform)
        logger.info(f"Cooked recipe for {user_id[:8]}; {len(result)} pantry item(s) left")
        return result

    async def annotate_in_pantry(
        self,
        user_id: str,
        ingredients: Sequence[Ingredient],
    ) -> list[Ingredient]:
        """Return copies of ingredients with in_pantry set."""
        pantry = await self.get_pantry(user_id)
        keys = {item.key for item in pantry}
        return [
            ingredient.model_copy(update={"in_pantry": normalize(ingredient.name) in keys})
            for ingredient in ingredients
        ]
