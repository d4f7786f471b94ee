"""
Saved lists API endpoints.

Saved lists are titled snapshots of a shopping list or a meal plan. They can
be restored into the active shopping list at any time.
"""

from fastapi import APIRouter, Depends, HTTPException

from larder.api.deps import (
    get_current_user_id,
    get_saved_list_service,
    get_shopping_list_service,
    http_error,
)
from larder.models.ingredients import ListItem
from larder.models.saved_lists import (
    RestoreSavedListRequest,
    SavedList,
    SavedListType,
    SavedListUpdate,
    SaveListRequest,
)
from larder.services.errors import LarderError
from larder.services.saved_lists import SavedListService
from larder.services.shopping_lists import ShoppingListService

router = APIRouter(prefix="/api/saved-lists", tags=["saved-lists"])


@router.post("", response_model=SavedList)
async def save_list(
    request: SaveListRequest,
    user_id: str = Depends(get_current_user_id),
    service: SavedListService = Depends(get_saved_list_service),
):
    """Save a list or meal plan under a title."""
    try:
        return await service.save_list_template(
            user_id,
            request.title,
            request.items,
            is_public=request.is_public,
            list_type=request.type,
            description=request.description,
            plan_details=request.plan_details,
        )
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("", response_model=list[SavedList])
async def list_saved(
    user_id: str = Depends(get_current_user_id),
    service: SavedListService = Depends(get_saved_list_service),
):
    """The user's saved lists, newest first."""
    try:
        return await service.get_user_saved_lists(user_id)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/public/{owner_id}", response_model=list[SavedList])
async def list_public(
    owner_id: str,
    service: SavedListService = Depends(get_saved_list_service),
):
    """Another user's public lists (profile page)."""
    try:
        return await service.get_public_lists(owner_id)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{list_id}", response_model=SavedList)
async def get_saved(
    list_id: str,
    user_id: str = Depends(get_current_user_id),
    service: SavedListService = Depends(get_saved_list_service),
):
    """Get one saved list (own or public)."""
    try:
        return await service.get_saved_list(user_id, list_id)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/{list_id}", response_model=SavedList)
async def update_saved(
    list_id: str,
    request: SavedListUpdate,
    user_id: str = Depends(get_current_user_id),
    service: SavedListService = Depends(get_saved_list_service),
):
    """Rename, describe or change visibility of an owned list."""
    try:
        return await service.update_plan(user_id, list_id, request)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{list_id}")
async def delete_saved(
    list_id: str,
    user_id: str = Depends(get_current_user_id),
    service: SavedListService = Depends(get_saved_list_service),
) -> dict:
    """Delete an owned list."""
    try:
        await service.delete_plan(user_id, list_id)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"success": True, "id": list_id}


@router.post("/{list_id}/restore", response_model=list[ListItem])
async def restore_saved(
    list_id: str,
    request: RestoreSavedListRequest,
    user_id: str = Depends(get_current_user_id),
    saved_lists: SavedListService = Depends(get_saved_list_service),
    shopping: ShoppingListService = Depends(get_shopping_list_service),
):
    """Apply a saved list's items to the active list (merge or overwrite)."""
    try:
        saved = await saved_lists.get_saved_list(user_id, list_id)
        return await shopping.restore_list_to_active(user_id, saved.items, request.mode)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{list_id}/add-plan", response_model=list[ListItem])
async def add_saved_plan(
    list_id: str,
    user_id: str = Depends(get_current_user_id),
    saved_lists: SavedListService = Depends(get_saved_list_service),
    shopping: ShoppingListService = Depends(get_shopping_list_service),
):
    """Add a saved meal plan's ingredients to the active list."""
    try:
        saved = await saved_lists.get_saved_list(user_id, list_id)
        if saved.type is SavedListType.MEAL_PLAN and saved.plan_details:
            return await shopping.add_meal_plan_to_active_list(user_id, saved.plan_details)
        return await shopping.add_ingredients(user_id, saved.items)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
