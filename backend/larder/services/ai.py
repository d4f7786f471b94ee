"""AI service - OpenAI integration for shopping lists, meal plans and pantry scans."""

import json
import logging
from functools import lru_cache
from typing import Any, Optional, Sequence

import pydantic
from openai import AsyncOpenAI, OpenAIError

from larder.config import get_settings
from larder.models.ingredients import Ingredient
from larder.models.plans import DayPlan, MealSummary, NutritionGoals, SmartShoppingList
from larder.models.shopping import ScanSource
from larder.services.errors import GenerationFailure
from larder.services.reconciler import MEAL_SLOTS, ingest_day

logger = logging.getLogger(__name__)
settings = get_settings()

AI_SUGGESTED = "AI Suggested"

DEFAULT_MEAL_TITLES = {
    "breakfast": "Breakfast",
    "lunch": "Lunch",
    "dinner": "Dinner",
    "snacks": "Snack",
}


class AIService:
    """OpenAI-powered generation for larder."""

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        self.client = client or AsyncOpenAI(api_key=settings.openai_api_key)

    async def _complete_json(
        self,
        model: str,
        system_prompt: str,
        user_content: Any,
        temperature: float = 0.5,
    ) -> Any:
        """Run a JSON-mode completion and parse the result."""
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content},
                ],
                temperature=temperature,
                response_format={"type": "json_object"},
                timeout=settings.ai_timeout_seconds,
            )
        except OpenAIError as e:
            logger.error(f"AI request to {model} failed: {e}")
            raise GenerationFailure("AI generation failed") from e

        content = response.choices[0].message.content or ""
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse AI response from {model}: {e}")
            raise GenerationFailure("Failed to parse AI response") from e

    # =========================================================================
    # Shopping list
    # =========================================================================

    async def generate_smart_shopping_list(
        self,
        diet: str,
        days: int,
        notes: Optional[str] = None,
    ) -> SmartShoppingList:
        """Generate a shopping list plus a short meal plan summary."""
        system_prompt = """Act as a professional nutritionist and chef.
Return JSON only:
{
  "mealPlan": [{"day": "string", "meals": ["meal name", ...]}],
  "shoppingList": [{"name": "string", "amount": "string", "category": "string"}]
}

Rules:
- One mealPlan entry per day
- Use simple, generic ingredient names (e.g., "chicken breast" not "Brand X chicken")
- amount is free text with a unit ("2 lbs", "1 dozen")
- Combine the same ingredient across meals into one shoppingList line"""

        user_prompt = f"""Create a shopping list and basic meal plan for a user with these preferences:
- Diet: {diet}
- Duration: {days} days
- Notes: {notes or 'None'}"""

        data = await self._complete_json(settings.openai_model, system_prompt, user_prompt)

        if not isinstance(data, dict) or not isinstance(data.get("shoppingList"), list):
            logger.error("AI shopping list response has no shoppingList array")
            raise GenerationFailure("AI response missing shoppingList")

        shopping_list = []
        for raw in data["shoppingList"]:
            if not isinstance(raw, dict) or not str(raw.get("name") or "").strip():
                logger.warning(f"Dropping malformed AI shopping list item: {raw!r}")
                continue
            try:
                shopping_list.append(Ingredient(
                    name=str(raw["name"]),
                    amount=raw.get("amount"),
                    category=raw.get("category") or None,
                    recipe_title=AI_SUGGESTED,
                    is_ai_generated=True,
                ))
            except pydantic.ValidationError:
                logger.warning(f"Dropping malformed AI shopping list item: {raw!r}")

        meal_plan = []
        for index, raw in enumerate(data.get("mealPlan") or []):
            if not isinstance(raw, dict):
                continue
            meals = raw.get("meals") if isinstance(raw.get("meals"), list) else []
            meal_plan.append(MealSummary(
                day=str(raw.get("day") or f"Day {index + 1}"),
                meals=[str(meal) for meal in meals if meal],
            ))

        logger.info(f"Generated AI shopping list: {len(shopping_list)} items for {days} day(s) ({diet})")
        return SmartShoppingList(meal_plan=meal_plan, shopping_list=shopping_list)

    # =========================================================================
    # Meal plan
    # =========================================================================

    async def get_meal_plan(
        self,
        days: int,
        dietary_preferences: Sequence[str] = (),
        custom_prompt: str = "",
        include_recipes: Sequence[str] = (),
        goals: Optional[NutritionGoals] = None,
    ) -> list[DayPlan]:
        """
        Generate a multi-day meal plan.

        The result always has exactly ``days`` days with all four meals;
        anything the model leaves out is filled with a titled empty meal.
        """
        goals = goals or NutritionGoals()
        system_prompt = self._build_plan_system_prompt(days, goals)

        user_prompt = f"Create a {days}-day meal plan."
        if dietary_preferences:
            user_prompt += f"\nConstraints: {', '.join(dietary_preferences)}"
        if include_recipes:
            user_prompt += f"\nInclude these recipes somewhere in the plan: {', '.join(include_recipes)}"
        if custom_prompt:
            user_prompt += f'\nUser note: "{custom_prompt}"'

        data = await self._complete_json(
            settings.openai_plan_model, system_prompt, user_prompt, temperature=0.4
        )

        raw_days = data.get("days") if isinstance(data, dict) else data
        if not isinstance(raw_days, list):
            logger.error("AI meal plan response has no days array")
            raise GenerationFailure("Invalid format: expected a list of days")

        if len(raw_days) != days:
            logger.warning(f"AI returned {len(raw_days)} day(s), expected {days}")

        raw_days = raw_days[:days]
        raw_days += [{}] * (days - len(raw_days))

        plan = [self._safe_day(raw, index) for index, raw in enumerate(raw_days)]
        logger.info(f"Generated {days}-day meal plan")
        return plan

    def _safe_day(self, raw: Any, index: int) -> DayPlan:
        """Fill a generated day with defaults, then ingest it."""
        raw = raw if isinstance(raw, dict) else {}
        meals = raw.get("meals") if isinstance(raw.get("meals"), dict) else {}

        day = {
            "day": raw.get("day") or f"Day {index + 1}",
            "meals": {
                meal: self._safe_meal(meals.get(meal), DEFAULT_MEAL_TITLES[meal])
                for meal in MEAL_SLOTS
            },
            "dailyNutrition": raw.get("dailyNutrition") if isinstance(raw.get("dailyNutrition"), dict) else {},
        }
        return ingest_day(day)

    def _safe_meal(self, raw: Any, default_title: str) -> dict:
        raw = raw if isinstance(raw, dict) else {}
        instructions = raw.get("instructions")
        return {
            **raw,
            "title": raw.get("title") or default_title,
            "description": raw.get("description") or "Delicious meal.",
            "ingredients": raw.get("ingredients") if isinstance(raw.get("ingredients"), list) else [],
            "instructions": [str(step) for step in instructions] if isinstance(instructions, list) else [],
            "nutrition": raw.get("nutrition") if isinstance(raw.get("nutrition"), dict) else {},
        }

    def _build_plan_system_prompt(self, days: int, goals: NutritionGoals) -> str:
        """Build the system prompt for meal plan generation."""
        return f"""You are a precision nutrition engine.
Return JSON only:
{{
  "days": [
    {{
      "day": "Day 1",
      "meals": {{
        "breakfast": <meal>, "lunch": <meal>, "dinner": <meal>, "snacks": <meal>
      }},
      "dailyNutrition": {{"calories": number, "protein": number, "carbs": number, "fat": number}}
    }}
  ]
}}

Each <meal> is:
{{
  "title": "string",
  "description": "string",
  "prepTime": "string",
  "cookTime": "string",
  "servings": number,
  "difficulty": "Easy|Medium|Hard",
  "ingredients": [{{"name": "string", "amount": "string"}}],
  "instructions": ["1-3 brief steps"],
  "nutrition": {{"calories": number, "protein": number, "carbs": number, "fat": number}}
}}

Rules:
- Exactly {days} entries in "days"
- dailyNutrition MUST be the sum of that day's meals. Numbers only
- Every meal needs numeric nutrition, an ingredient list and instructions
- Aim for ~{goals.calories:g} kcal, ~{goals.protein:g}g protein, ~{goals.carbs:g}g carbs, ~{goals.fat:g}g fat per day"""

    # =========================================================================
    # Pantry scan
    # =========================================================================

    async def parse_pantry_image(
        self,
        image_base64: str,
        source: ScanSource | str = ScanSource.RECEIPT,
        mime_type: str = "image/jpeg",
    ) -> list[Ingredient]:
        """
        Read food items from a receipt or fridge photo.

        Results are for the user to review; nothing is stored here.
        """
        source = ScanSource(source)
        if source is ScanSource.RECEIPT:
            instruction = "Extract the grocery items bought on this receipt."
        else:
            instruction = "Identify the food items visible in this fridge or pantry photo."

        system_prompt = """You read food items from photos.
Return JSON only:
{"items": [{"name": "string", "amount": "string", "category": "string"}]}

Use simple, generic names ("milk", not "2% Organic Valley Milk"). Skip non-food items."""

        user_content = [
            {"type": "text", "text": instruction},
            {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{image_base64}"}},
        ]

        data = await self._complete_json(settings.openai_model, system_prompt, user_content, temperature=0.2)

        raw_items = data.get("items") if isinstance(data, dict) else data
        if not isinstance(raw_items, list):
            raise GenerationFailure(f"{source.value.title()} scan failed")

        items = []
        for raw in raw_items:
            if isinstance(raw, str) and raw.strip():
                items.append(Ingredient(name=raw))
            elif isinstance(raw, dict) and str(raw.get("name") or "").strip():
                try:
                    items.append(Ingredient(
                        name=str(raw["name"]),
                        amount=raw.get("amount"),
                        category=raw.get("category") or None,
                    ))
                except pydantic.ValidationError:
                    logger.warning(f"Dropping malformed scanned item: {raw!r}")

        logger.info(f"{source.value} scan found {len(items)} item(s)")
        return items


@lru_cache
def get_ai_service() -> AIService:
    """Get cached AI service instance."""
    return AIService()
