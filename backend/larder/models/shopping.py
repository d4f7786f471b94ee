"""Shopping list and pantry request/response models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import Field

from .ingredients import CamelModel, Ingredient, PantryItem


class RestoreMode(str, Enum):
    """How a saved list is applied to the active list."""

    MERGE = "merge"
    OVERWRITE = "overwrite"


class ScanSource(str, Enum):
    """Kind of photo submitted for a pantry scan."""

    RECEIPT = "receipt"
    FRIDGE = "fridge"


class AddIngredientsRequest(CamelModel):
    """Request to add ingredients to the active list."""

    ingredients: list[Ingredient]


class AddRecipeRequest(CamelModel):
    """Request to add one recipe's ingredients to the active list."""

    recipe_title: str
    ingredients: list[Ingredient]


class AddMealPlanRequest(CamelModel):
    """Request to add a whole meal plan to the active list.

    Days are kept as raw dicts so both plan shapes are accepted.
    """

    plan: list[Any]


class RestoreRequest(CamelModel):
    """Request to restore items into the active list."""

    items: list[Ingredient]
    mode: RestoreMode = RestoreMode.MERGE


class CheckItemRequest(CamelModel):
    """Request to check/uncheck a shopping list item."""

    checked: bool


class GenerateListRequest(CamelModel):
    """Request to generate a shopping list with AI and add it."""

    diet: str
    days: int = Field(7, ge=1, le=14)
    notes: Optional[str] = None


class FinishShoppingResult(CamelModel):
    """Outcome of moving checked items into the pantry."""

    moved: list[str] = Field(default_factory=list)  # Display names
    remaining_count: int = 0
    pantry_count: int = 0


class PantryAddRequest(CamelModel):
    """Request to add items to the pantry."""

    items: list[Ingredient]


class BarcodeAddRequest(CamelModel):
    """Request to add a scanned product to the pantry."""

    barcode: str
    amount: str = "1"
    name: Optional[str] = None


class PantryScanRequest(CamelModel):
    """Request to read pantry items from a receipt or fridge photo."""

    image_base64: str
    source: ScanSource = ScanSource.RECEIPT
    mime_type: str = "image/jpeg"


class CookRequest(CamelModel):
    """Request to consume a cooked recipe's ingredients from the pantry."""

    ingredients: list[Ingredient]


class PantryAnnotationRequest(CamelModel):
    """Request to mark which ingredients are already in the pantry."""

    ingredients: list[Ingredient]


class PantryView(CamelModel):
    """Pantry contents."""

    items: list[PantryItem] = Field(default_factory=list)
    count: int = 0
