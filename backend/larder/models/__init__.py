"""Pydantic models for the larder API."""

from .ingredients import (
    CamelModel,
    Ingredient,
    AmountEntry,
    IngredientGroup,
    ListItem,
    PantryItem,
)
from .plans import (
    PlanOrigin,
    Nutrition,
    NutritionGoals,
    MealSlot,
    DayPlan,
    MealSummary,
    SmartShoppingList,
    MealPlanRequest,
)
from .shopping import (
    RestoreMode,
    ScanSource,
    FinishShoppingResult,
)
from .saved_lists import (
    SavedListType,
    SavedList,
    SaveListRequest,
    SavedListUpdate,
)
from .barcode import ProductInfo

__all__ = [
    # Ingredients
    "CamelModel",
    "Ingredient",
    "AmountEntry",
    "IngredientGroup",
    "ListItem",
    "PantryItem",
    # Plans
    "PlanOrigin",
    "Nutrition",
    "NutritionGoals",
    "MealSlot",
    "DayPlan",
    "MealSummary",
    "SmartShoppingList",
    "MealPlanRequest",
    # Shopping
    "RestoreMode",
    "ScanSource",
    "FinishShoppingResult",
    # Saved lists
    "SavedListType",
    "SavedList",
    "SaveListRequest",
    "SavedListUpdate",
    # Barcode
    "ProductInfo",
]
