"""AI endpoints - meal plan and shopping list generation (no persistence)."""

from fastapi import APIRouter, Depends, HTTPException

from larder.api.deps import get_ai, http_error
from larder.models.plans import DayPlan, MealPlanRequest, SmartShoppingList
from larder.models.shopping import GenerateListRequest
from larder.services.ai import AIService
from larder.services.errors import LarderError

router = APIRouter()


@router.post("/meal-plan", response_model=list[DayPlan])
async def generate_meal_plan(
    request: MealPlanRequest,
    ai: AIService = Depends(get_ai),
):
    """Generate a meal plan. Save it via /api/saved-lists."""
    try:
        return await ai.get_meal_plan(
            request.days,
            request.dietary_preferences,
            request.custom_prompt,
            request.include_recipes,
            request.goals,
        )
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/shopping-list", response_model=SmartShoppingList)
async def preview_shopping_list(
    request: GenerateListRequest,
    ai: AIService = Depends(get_ai),
):
    """Generate a shopping list for review without adding it."""
    try:
        return await ai.generate_smart_shopping_list(request.diet, request.days, request.notes)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
