"""
Meal plan reconciliation.

Plans arrive in two shapes:

- AI-generated days nest their meals: ``{"day", "meals": {"breakfast": ...}}``
- Plans built by hand put slots on the day: ``{"day", "breakfast": ...}``

Each day is disambiguated once, on ingestion, into the canonical ``DayPlan``.
Everything downstream (flattening, saving, restoring) works on that shape.
Malformed slot data degrades to "no ingredients" instead of failing the
whole plan.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

import pydantic
from pydantic.alias_generators import to_camel

from larder.models.ingredients import Ingredient
from larder.models.plans import DayPlan, MealSlot, Nutrition, PlanOrigin
from larder.services.errors import ValidationError

logger = logging.getLogger(__name__)

MEAL_SLOTS = ("breakfast", "lunch", "dinner", "snacks")


# ============================================================================
# Ingestion
# ============================================================================


def _coerce_ingredients(raw: Any) -> list[Ingredient]:
    """Parse a slot's ingredient array, raising ValidationError if it isn't one."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError(f"ingredients must be a list, got {type(raw).__name__}")

    ingredients = []
    for value in raw:
        if isinstance(value, Ingredient):
            ingredients.append(value)
        elif isinstance(value, str) and value.strip():
            ingredients.append(Ingredient(name=value))
        elif isinstance(value, dict):
            try:
                ingredients.append(Ingredient.model_validate(value))
            except pydantic.ValidationError:
                logger.warning(f"Dropping malformed plan ingredient: {value!r}")
        else:
            logger.warning(f"Dropping malformed plan ingredient: {value!r}")
    return ingredients


def _ingest_slot(raw: Any, day_name: str, meal: str) -> Optional[MealSlot]:
    if raw is None:
        return None
    if isinstance(raw, MealSlot):
        return raw
    if not isinstance(raw, dict):
        logger.warning(f"{day_name}/{meal}: slot is not an object, treating as absent")
        return None

    try:
        ingredients = _coerce_ingredients(raw.get("ingredients"))
    except ValidationError as e:
        logger.warning(f"{day_name}/{meal}: {e}; treating as empty")
        ingredients = []

    fields = {k: v for k, v in raw.items() if k != "ingredients"}
    try:
        return MealSlot.model_validate({**fields, "ingredients": ingredients})
    except pydantic.ValidationError as e:
        logger.warning(f"{day_name}/{meal}: malformed slot ({e.error_count()} errors); keeping title only")
        slot = MealSlot(ingredients=ingredients)
        for name in ("recipe_title", "custom_name", "title"):
            value = raw.get(name) or raw.get(to_camel(name))
            if isinstance(value, str):
                setattr(slot, name, value)
        return slot


def _nutrition(raw: Any) -> Optional[Nutrition]:
    if isinstance(raw, Nutrition):
        return raw
    if isinstance(raw, dict):
        return Nutrition.model_validate(raw)
    return None


def ingest_day(raw: Any) -> Optional[DayPlan]:
    """
    Convert one day in either shape into a canonical DayPlan.

    Returns None for values that are not days at all.
    """
    if isinstance(raw, DayPlan):
        return raw
    if not isinstance(raw, dict):
        logger.warning(f"Skipping plan day of type {type(raw).__name__}")
        return None

    day_name = str(raw.get("day") or "Day")

    if "meals" in raw:
        origin = PlanOrigin.AI
        container = raw.get("meals")
        if not isinstance(container, dict):
            logger.warning(f"{day_name}: 'meals' is not an object, treating all slots as absent")
            container = {}
    else:
        try:
            origin = PlanOrigin(raw.get("origin") or PlanOrigin.MANUAL)
        except ValueError:
            origin = PlanOrigin.MANUAL
        container = raw

    slots = {meal: _ingest_slot(container.get(meal), day_name, meal) for meal in MEAL_SLOTS}

    return DayPlan(
        day=day_name,
        origin=origin,
        daily_nutrition=_nutrition(raw.get("dailyNutrition", raw.get("daily_nutrition"))),
        **slots,
    )


def ingest_plan(raw: Any) -> list[DayPlan]:
    """Convert a whole plan (either shape, per day) into canonical days."""
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        logger.warning(f"Plan is not a list ({type(raw).__name__}); treating as empty")
        return []

    days = [day for day in (ingest_day(value) for value in raw) if day is not None]

    origins = plan_origins(days)
    if len(origins) > 1:
        logger.warning("Plan mixes AI-shaped and manual days; leaving as-is")

    return days


def plan_origins(plan: Iterable[DayPlan]) -> set[PlanOrigin]:
    """Origins present in a canonical plan; more than one means mixed input."""
    return {day.origin for day in plan}


# ============================================================================
# Flattening
# ============================================================================


def flatten_plan(plan: Any) -> list[Ingredient]:
    """
    Extract every ingredient of a plan, tagged with the meal it belongs to.

    Days are visited in order and slots in breakfast, lunch, dinner, snacks
    order. Absent slots and slots without ingredients contribute nothing.
    """
    days = list(plan) if _is_canonical(plan) else ingest_plan(plan)

    flattened: list[Ingredient] = []
    for day in days:
        for meal in MEAL_SLOTS:
            slot = day.slot(meal)
            if slot is None:
                continue
            for ingredient in slot.ingredients:
                flattened.append(ingredient.model_copy(update={
                    "recipe_title": slot.provenance,
                    "is_checked": False,
                }))

    return flattened


def _is_canonical(plan: Any) -> bool:
    return isinstance(plan, (list, tuple)) and all(isinstance(d, DayPlan) for d in plan)
