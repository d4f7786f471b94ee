"""
Active shopping list service.

All writes go through a versioned read-merge-write cycle (see
``larder.services.store``), so concurrent adds from different screens are
merged rather than overwriting each other. A failed cycle leaves the last
committed list untouched; the whole logical operation is retried, never
resumed halfway.
"""

import logging
from typing import Any, Optional, Sequence

from larder.config import get_settings
from larder.models.ingredients import Ingredient, IngredientGroup, ListItem, PantryItem
from larder.models.shopping import FinishShoppingResult, RestoreMode
from larder.services.aggregator import aggregate, merge_into_pantry, remove_entries, remove_provenance
from larder.services.errors import PersistenceConflict, ValidationError
from larder.services.normalizer import normalize
from larder.services.reconciler import flatten_plan
from larder.services.store import (
    PANTRY,
    SHOPPING_LIST,
    ListStore,
    load_document,
    load_groups,
    mutate_groups,
    require_user_id,
)

logger = logging.getLogger(__name__)
settings = get_settings()


def _entry_count(groups: Sequence[IngredientGroup]) -> int:
    return sum(len(group.amounts) for group in groups)


def _new_lines(ingredients: Sequence[Any]) -> list[ListItem]:
    """Group incoming ingredients; anything newly added starts unchecked."""
    lines = aggregate([ingredients])
    for line in lines:
        line.is_checked = False
    return lines


class ShoppingListService:
    """Mutations of a user's active shopping list."""

    def __init__(self, store: ListStore, max_attempts: Optional[int] = None):
        self.store = store
        self.max_attempts = max_attempts or settings.persistence_max_attempts

    async def _mutate(self, user_id: str, transform) -> list[ListItem]:
        return await mutate_groups(
            self.store, SHOPPING_LIST, user_id, ListItem, transform, self.max_attempts
        )

    async def get_list(self, user_id: str) -> list[ListItem]:
        """Get the active list."""
        require_user_id(user_id, "get_list")
        items, _ = await load_groups(self.store, SHOPPING_LIST, user_id, ListItem)
        return items

    # =========================================================================
    # Adding
    # =========================================================================

    async def add_ingredients(self, user_id: str, ingredients: Sequence[Any]) -> list[ListItem]:
        """
        Merge ingredients into the active list.

        Ingredients with the same normalized name as an existing line join
        that line as extra amount entries.
        """
        require_user_id(user_id, "add_ingredients")
        incoming = _new_lines(ingredients)
        if not incoming:
            return await self.get_list(user_id)

        def transform(current: list[ListItem]) -> list[ListItem]:
            return aggregate([current, incoming])

        result = await self._mutate(user_id, transform)
        logger.info(
            f"Added {_entry_count(incoming)} ingredient(s) to shopping list for "
            f"{user_id[:8]} ({len(result)} lines)"
        )
        return result

    async def add_recipe(
        self,
        user_id: str,
        recipe_title: str,
        ingredients: Sequence[Ingredient],
    ) -> list[ListItem]:
        """Add one recipe's ingredients, tagged with the recipe title."""
        tagged = [ingredient.model_copy(update={"recipe_title": recipe_title}) for ingredient in ingredients]
        return await self.add_ingredients(user_id, tagged)

    async def remove_recipe(self, user_id: str, recipe_title: str) -> list[ListItem]:
        """Remove every amount that came from a recipe."""
        require_user_id(user_id, "remove_recipe")

        def transform(current: list[ListItem]) -> Optional[list[ListItem]]:
            remaining = remove_provenance(current, recipe_title)
            if _entry_count(remaining) == _entry_count(current) and len(remaining) == len(current):
                return None
            return remaining

        result = await self._mutate(user_id, transform)
        logger.info(f"Removed '{recipe_title}' from shopping list for {user_id[:8]}")
        return result

    async def add_meal_plan_to_active_list(self, user_id: str, plan: Any) -> list[ListItem]:
        """Flatten a meal plan (either shape) and add its ingredients."""
        require_user_id(user_id, "add_meal_plan_to_active_list")
        ingredients = flatten_plan(plan)
        if not ingredients:
            logger.warning(f"No ingredients found in meal plan for {user_id[:8]}")
            return await self.get_list(user_id)

        logger.info(f"Extracted {len(ingredients)} ingredients from meal plan")
        return await self.add_ingredients(user_id, ingredients)

    async def restore_list_to_active(
        self,
        user_id: str,
        items: Sequence[Any],
        mode: RestoreMode | str = RestoreMode.MERGE,
    ) -> list[ListItem]:
        """
        Apply saved items to the active list.

        Args:
            mode: "merge" adds to the current list, "overwrite" replaces it
                with the saved items (all unchecked).
        """
        require_user_id(user_id, "restore_list_to_active")
        try:
            mode = RestoreMode(mode)
        except ValueError:
            raise ValidationError(f"Unknown restore mode {mode!r}")

        if mode is RestoreMode.MERGE:
            return await self.add_ingredients(user_id, items)

        replacement = _new_lines(items)
        result = await self._mutate(user_id, lambda current: replacement)
        logger.info(f"Overwrote shopping list for {user_id[:8]} with {len(result)} lines")
        return result

    # =========================================================================
    # Checking / clearing
    # =========================================================================

    async def toggle_checked(self, user_id: str, item_name: str, checked: bool) -> list[ListItem]:
        """Set the checked flag of a line. Missing lines are ignored."""
        require_user_id(user_id, "toggle_checked")
        key = normalize(item_name)

        def transform(current: list[ListItem]) -> Optional[list[ListItem]]:
            for item in current:
                if item.key == key:
                    if item.is_checked == checked:
                        return None
                    item.is_checked = checked
                    return current
            logger.info(f"Toggle of '{item_name}' ignored; not on list for {user_id[:8]}")
            return None

        return await self._mutate(user_id, transform)

    async def clear(self, user_id: str) -> list[ListItem]:
        """Remove everything from the active list."""
        require_user_id(user_id, "clear")
        return await self._mutate(user_id, lambda current: [] if current else None)

    # =========================================================================
    # Finish shopping
    # =========================================================================

    async def finish_shopping(self, user_id: str) -> FinishShoppingResult:
        """
        Move checked lines into the pantry and remove them from the list.

        The pantry is written first, then the list. If either write loses a
        race the whole operation starts over from a fresh read. Pantry merges
        skip entries already transferred, so a retry (or a second call) never
        duplicates pantry lines. Entries this call put in the pantry that are
        no longer checked on a retry are taken back out, so the pantry and the
        list always reflect the same checked set.
        """
        require_user_id(user_id, "finish_shopping")
        transferred: set[str] = set()  # Entry ids this call has written to the pantry

        for attempt in range(1, self.max_attempts + 1):
            shopping = await load_document(self.store, SHOPPING_LIST, user_id, ListItem)
            items = shopping.groups
            checked = [item for item in items if item.is_checked]

            if not checked and not transferred:
                pantry_items, _ = await load_groups(self.store, PANTRY, user_id, PantryItem)
                return FinishShoppingResult(
                    moved=[],
                    remaining_count=len(items),
                    pantry_count=len(pantry_items),
                )

            try:
                list_version = shopping.version
                if any(not entry.entry_id for item in checked for entry in item.amounts):
                    # Persist entry ids first so a retry transfers the same entries
                    list_version = await self.store.commit(
                        SHOPPING_LIST, user_id, shopping.dump(items), list_version
                    )

                checked_ids = {entry.entry_id for item in checked for entry in item.amounts}
                withdrawn = transferred - checked_ids

                pantry = await load_document(self.store, PANTRY, user_id, PantryItem)
                held = {entry.entry_id for item in pantry.groups for entry in item.amounts if entry.entry_id}
                merged = merge_into_pantry(remove_entries(pantry.groups, withdrawn), checked)
                if withdrawn or not checked_ids <= held:
                    await self.store.commit(PANTRY, user_id, pantry.dump(merged), pantry.version)
                transferred = (transferred & checked_ids) | (checked_ids - held)

                checked_keys = {item.key for item in checked}
                remaining = [item for item in items if item.key not in checked_keys]
                await self.store.commit(SHOPPING_LIST, user_id, shopping.dump(remaining), list_version)

            except PersistenceConflict:
                logger.warning(
                    f"finish_shopping conflict for {user_id[:8]} "
                    f"(attempt {attempt}/{self.max_attempts})"
                )
                continue

            if withdrawn:
                logger.info(f"Took {len(withdrawn)} unchecked entries back out of the pantry for {user_id[:8]}")
            logger.info(f"Moved {len(checked)} checked item(s) to pantry for {user_id[:8]}")
            return FinishShoppingResult(
                moved=[item.name for item in checked],
                remaining_count=len(remaining),
                pantry_count=len(merged),
            )

        if transferred:
            # Undo the pantry side so it does not hold items still on the list
            await mutate_groups(
                self.store, PANTRY, user_id, PantryItem,
                lambda current: remove_entries(current, transferred),
                self.max_attempts,
            )

        raise PersistenceConflict(
            f"Could not finish shopping after {self.max_attempts} attempts",
            attempts=self.max_attempts,
        )
