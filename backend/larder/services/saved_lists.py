"""
Saved lists service.

A saved list is an immutable-content snapshot of a shopping list or a meal
plan. Only its title, description and visibility can change after creation.
Saving never touches the active shopping list; restoring goes through
ShoppingListService.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from larder.models.ingredients import Ingredient
from larder.models.saved_lists import SavedList, SavedListType, SavedListUpdate
from larder.services.errors import AuthorizationError, NotFoundError, ValidationError
from larder.services.reconciler import flatten_plan, ingest_plan
from larder.services.store import ListStore, require_user_id

logger = logging.getLogger(__name__)


class SavedListService:
    """CRUD for saved list templates and meal plans."""

    def __init__(self, store: ListStore):
        self.store = store

    async def save_list_template(
        self,
        user_id: str,
        title: str,
        items: Sequence[Ingredient],
        is_public: bool = False,
        list_type: SavedListType | str = SavedListType.SHOPPING_LIST,
        description: str = "",
        plan_details: Optional[Sequence[Any]] = None,
    ) -> SavedList:
        """
        Snapshot a list or plan under a title.

        Items are stored unchecked. For meal plans saved without items, the
        items are derived from the plan.
        """
        require_user_id(user_id, "save_list_template")
        if not title or not title.strip():
            raise ValidationError("Missing plan title")

        try:
            list_type = SavedListType(list_type)
        except ValueError:
            raise ValidationError(f"Unknown saved list type {list_type!r}")

        days = None
        if list_type is SavedListType.MEAL_PLAN:
            days = ingest_plan(plan_details)
        elif plan_details:
            logger.warning("Ignoring planDetails on a shopping_list save")

        snapshot = [item.model_copy(update={"is_checked": False}) for item in items]
        if days and not snapshot:
            snapshot = flatten_plan(days)

        row = {
            "user_id": user_id,
            "title": title.strip(),
            "description": (description or "").strip(),
            "is_public": bool(is_public),
            "type": list_type.value,
            "items": [item.model_dump(mode="json", by_alias=True, exclude_none=True) for item in snapshot],
            "plan_details": (
                [day.model_dump(mode="json", by_alias=True, exclude_none=True) for day in days]
                if days is not None else None
            ),
            "item_count": len(snapshot),
        }

        saved = await self.store.insert_saved_list(row)
        logger.info(f"Saved {list_type.value} '{row['title']}' ({len(snapshot)} items) for {user_id[:8]}")
        return SavedList.model_validate(saved)

    async def get_user_saved_lists(self, user_id: str) -> list[SavedList]:
        """All of a user's saved lists, newest first."""
        require_user_id(user_id, "get_user_saved_lists")
        rows = await self.store.list_saved_lists(user_id)
        return [SavedList.model_validate(row) for row in rows]

    async def get_public_lists(self, owner_id: str) -> list[SavedList]:
        """Another user's public lists, newest first."""
        require_user_id(owner_id, "get_public_lists")
        rows = await self.store.list_saved_lists(owner_id, public_only=True)
        return [SavedList.model_validate(row) for row in rows]

    async def get_saved_list(self, user_id: str, list_id: str) -> SavedList:
        """Read a list the user owns or that is public."""
        require_user_id(user_id, "get_saved_list")
        row = await self.store.get_saved_list(list_id)
        if row is None:
            raise NotFoundError(f"Saved list {list_id} not found")

        saved = SavedList.model_validate(row)
        if saved.user_id != user_id and not saved.is_public:
            raise AuthorizationError(f"Saved list {list_id} is private")
        return saved

    async def _owned(self, user_id: str, list_id: str, context: str) -> SavedList:
        require_user_id(user_id, context)
        row = await self.store.get_saved_list(list_id)
        if row is None:
            raise NotFoundError(f"Saved list {list_id} not found")

        saved = SavedList.model_validate(row)
        if saved.user_id != user_id:
            logger.warning(f"Blocked {context} of {list_id} by non-owner {user_id[:8]}")
            raise AuthorizationError(f"Saved list {list_id} belongs to another user")
        return saved

    async def update_plan(
        self,
        user_id: str,
        list_id: str,
        updates: SavedListUpdate | dict,
    ) -> SavedList:
        """Change title, description or visibility of an owned list."""
        saved = await self._owned(user_id, list_id, "update_plan")

        if isinstance(updates, dict):
            updates = SavedListUpdate.model_validate(updates)
        changes = updates.model_dump(exclude_none=True)

        if "title" in changes:
            changes["title"] = changes["title"].strip()
            if not changes["title"]:
                raise ValidationError("Missing plan title")

        if not changes:
            return saved

        changes["updated_at"] = datetime.now(timezone.utc).isoformat()
        row = await self.store.update_saved_list(list_id, changes)
        if row is None:
            raise NotFoundError(f"Saved list {list_id} not found")

        logger.info(f"Updated saved list {list_id}: {sorted(changes)}")
        return SavedList.model_validate(row)

    async def delete_plan(self, user_id: str, list_id: str) -> None:
        """Delete an owned list."""
        await self._owned(user_id, list_id, "delete_plan")
        await self.store.delete_saved_list(list_id)
        logger.info(f"Deleted saved list {list_id} for {user_id[:8]}")
