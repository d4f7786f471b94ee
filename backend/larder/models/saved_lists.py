"""Saved list (template / meal plan snapshot) models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import Field

from .ingredients import CamelModel, Ingredient
from .plans import DayPlan
from .shopping import RestoreMode


class SavedListType(str, Enum):
    """Which payload of a saved list is authoritative."""

    SHOPPING_LIST = "shopping_list"
    MEAL_PLAN = "meal_plan"


class SavedList(CamelModel):
    """A saved list record from the database."""

    id: str
    user_id: str
    title: str
    description: str = ""
    is_public: bool = False
    type: SavedListType = SavedListType.SHOPPING_LIST
    items: list[Ingredient] = Field(default_factory=list)
    plan_details: Optional[list[DayPlan]] = None
    item_count: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None


class SaveListRequest(CamelModel):
    """Request to snapshot a list or plan."""

    title: str
    items: list[Ingredient] = Field(default_factory=list)
    is_public: bool = False
    type: SavedListType = SavedListType.SHOPPING_LIST
    description: str = ""
    plan_details: Optional[list[Any]] = None  # Either plan shape


class SavedListUpdate(CamelModel):
    """Mutable metadata of a saved list. Type and contents are fixed."""

    title: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = None


class RestoreSavedListRequest(CamelModel):
    """Request to apply a saved list to the active list."""

    mode: RestoreMode = RestoreMode.MERGE
