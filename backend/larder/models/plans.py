"""Meal plan Pydantic models.

AI-generated plans nest meals under a ``meals`` object while plans built by
hand put the slots directly on the day. Both are ingested into the single
canonical ``DayPlan`` below (see ``larder.services.reconciler``).
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import ConfigDict, Field, field_validator

from .ingredients import CamelModel, Ingredient


class PlanOrigin(str, Enum):
    """Where a day plan came from."""

    AI = "ai"
    MANUAL = "manual"


class Nutrition(CamelModel):
    """Calories and macros for a meal or a day."""

    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0

    @field_validator("calories", "protein", "carbs", "fat", mode="before")
    @classmethod
    def _number_or_zero(cls, value):
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0


class NutritionGoals(CamelModel):
    """Daily targets used when generating a plan."""

    calories: float = 2000
    protein: float = 150
    carbs: float = 200
    fat: float = 70


class MealSlot(CamelModel):
    """One meal within a day, recipe-backed or free text."""

    # Keep generator extras (prepTime, difficulty, ...) through round trips
    model_config = ConfigDict(extra="allow")

    recipe_id: Optional[str] = None
    recipe_title: Optional[str] = None
    custom_name: Optional[str] = None
    title: Optional[str] = None
    image_url: Optional[str] = None
    description: Optional[str] = None
    ingredients: list[Ingredient] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    nutrition: Optional[Nutrition] = None

    @property
    def provenance(self) -> str:
        """Title attached to this slot's ingredients on a shopping list."""
        return self.recipe_title or self.custom_name or self.title or "Meal Plan"


class DayPlan(CamelModel):
    """Canonical day of a meal plan."""

    day: str
    origin: PlanOrigin = PlanOrigin.MANUAL
    breakfast: Optional[MealSlot] = None
    lunch: Optional[MealSlot] = None
    dinner: Optional[MealSlot] = None
    snacks: Optional[MealSlot] = None
    daily_nutrition: Optional[Nutrition] = None

    def slot(self, meal: str) -> Optional[MealSlot]:
        return getattr(self, meal)


class MealSummary(CamelModel):
    """Day summary returned alongside an AI shopping list."""

    day: str
    meals: list[str] = Field(default_factory=list)


class SmartShoppingList(CamelModel):
    """Result of AI shopping-list generation."""

    meal_plan: list[MealSummary] = Field(default_factory=list)
    shopping_list: list[Ingredient] = Field(default_factory=list)


class MealPlanRequest(CamelModel):
    """Request to generate a meal plan."""

    days: int = Field(7, ge=1, le=14)
    dietary_preferences: list[str] = Field(default_factory=list)
    custom_prompt: str = ""
    include_recipes: list[str] = Field(default_factory=list)  # Recipe titles
    goals: NutritionGoals = Field(default_factory=NutritionGoals)
