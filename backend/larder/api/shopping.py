"""
Active shopping list API endpoints.

Every mutation returns the list as committed.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from larder.api.deps import (
    get_ai,
    get_current_user_id,
    get_shopping_list_service,
    http_error,
)
from larder.models.ingredients import ListItem
from larder.models.shopping import (
    AddIngredientsRequest,
    AddMealPlanRequest,
    AddRecipeRequest,
    CheckItemRequest,
    FinishShoppingResult,
    GenerateListRequest,
    RestoreRequest,
)
from larder.services.ai import AIService
from larder.services.errors import LarderError
from larder.services.shopping_lists import ShoppingListService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/shopping-list", tags=["shopping-list"])


@router.get("", response_model=list[ListItem])
async def get_shopping_list(
    user_id: str = Depends(get_current_user_id),
    service: ShoppingListService = Depends(get_shopping_list_service),
):
    """Get the active shopping list."""
    try:
        return await service.get_list(user_id)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/items", response_model=list[ListItem])
async def add_items(
    request: AddIngredientsRequest,
    user_id: str = Depends(get_current_user_id),
    service: ShoppingListService = Depends(get_shopping_list_service),
):
    """Add ingredients; same-named lines are merged."""
    try:
        return await service.add_ingredients(user_id, request.ingredients)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/recipes", response_model=list[ListItem])
async def add_recipe(
    request: AddRecipeRequest,
    user_id: str = Depends(get_current_user_id),
    service: ShoppingListService = Depends(get_shopping_list_service),
):
    """Add a recipe's ingredients, tagged with its title."""
    try:
        return await service.add_recipe(user_id, request.recipe_title, request.ingredients)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/recipes/{recipe_title}", response_model=list[ListItem])
async def remove_recipe(
    recipe_title: str,
    user_id: str = Depends(get_current_user_id),
    service: ShoppingListService = Depends(get_shopping_list_service),
):
    """Remove everything a recipe contributed."""
    try:
        return await service.remove_recipe(user_id, recipe_title)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/meal-plan", response_model=list[ListItem])
async def add_meal_plan(
    request: AddMealPlanRequest,
    user_id: str = Depends(get_current_user_id),
    service: ShoppingListService = Depends(get_shopping_list_service),
):
    """Add every ingredient of a meal plan (AI or manual shape)."""
    try:
        return await service.add_meal_plan_to_active_list(user_id, request.plan)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/restore", response_model=list[ListItem])
async def restore_items(
    request: RestoreRequest,
    user_id: str = Depends(get_current_user_id),
    service: ShoppingListService = Depends(get_shopping_list_service),
):
    """Merge items into, or overwrite, the active list."""
    try:
        return await service.restore_list_to_active(user_id, request.items, request.mode)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/items/{item_name}", response_model=list[ListItem])
async def check_item(
    item_name: str,
    request: CheckItemRequest,
    user_id: str = Depends(get_current_user_id),
    service: ShoppingListService = Depends(get_shopping_list_service),
):
    """Check or uncheck a line."""
    try:
        return await service.toggle_checked(user_id, item_name, request.checked)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/finish", response_model=FinishShoppingResult)
async def finish_shopping(
    user_id: str = Depends(get_current_user_id),
    service: ShoppingListService = Depends(get_shopping_list_service),
):
    """Move checked lines to the pantry."""
    try:
        return await service.finish_shopping(user_id)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("", response_model=list[ListItem])
async def clear_list(
    user_id: str = Depends(get_current_user_id),
    service: ShoppingListService = Depends(get_shopping_list_service),
):
    """Empty the active list."""
    try:
        return await service.clear(user_id)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/generate")
async def generate_and_add(
    request: GenerateListRequest,
    user_id: str = Depends(get_current_user_id),
    service: ShoppingListService = Depends(get_shopping_list_service),
    ai: AIService = Depends(get_ai),
) -> dict:
    """
    Generate a shopping list with AI and add it to the active list.

    Nothing is written if generation fails.
    """
    try:
        generated = await ai.generate_smart_shopping_list(request.diet, request.days, request.notes)
        items = await service.add_ingredients(user_id, generated.shopping_list)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "mealPlan": [day.model_dump(by_alias=True) for day in generated.meal_plan],
        "items": [item.model_dump(mode="json", by_alias=True) for item in items],
    }
