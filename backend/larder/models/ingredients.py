"""Ingredient and ingredient-group Pydantic models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON (app clients)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Ingredient(CamelModel):
    """A single ingredient line as submitted by a recipe, plan, scan or user."""

    name: str
    amount: str = ""  # Free text: "1/2 cup", "2 cloves"
    recipe_title: Optional[str] = None
    in_pantry: Optional[bool] = None
    is_checked: Optional[bool] = None
    barcode: Optional[str] = None
    category: Optional[str] = None
    is_ai_generated: Optional[bool] = None

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_as_text(cls, value):
        if value is None:
            return ""
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            text = str(value)
            return text[:-2] if text.endswith(".0") else text
        return value


class AmountEntry(CamelModel):
    """One amount inside a group, tagged with where it came from."""

    amount: str = ""
    recipe_title: Optional[str] = None
    entry_id: Optional[str] = None  # Stamped on first write


class IngredientGroup(CamelModel):
    """All amounts of one ingredient, keyed by normalized name."""

    key: str
    name: str  # First-seen casing
    amounts: list[AmountEntry] = Field(default_factory=list)
    category: Optional[str] = None
    barcode: Optional[str] = None
    is_ai_generated: bool = False

    @computed_field
    @property
    def display_amount(self) -> str:
        from larder.services.aggregator import combine_amounts

        return combine_amounts(self.amounts)

    @computed_field
    @property
    def recipe_titles(self) -> list[str]:
        titles: list[str] = []
        for entry in self.amounts:
            if entry.recipe_title and entry.recipe_title not in titles:
                titles.append(entry.recipe_title)
        return titles


class ListItem(IngredientGroup):
    """A line on the active shopping list."""

    is_checked: bool = False


class PantryItem(IngredientGroup):
    """A line in the pantry."""

    pass
