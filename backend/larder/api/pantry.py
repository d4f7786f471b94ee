"""Pantry API endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from larder.api.deps import get_ai, get_current_user_id, get_pantry_service, http_error
from larder.models.ingredients import Ingredient
from larder.models.shopping import (
    BarcodeAddRequest,
    CookRequest,
    PantryAddRequest,
    PantryAnnotationRequest,
    PantryScanRequest,
    PantryView,
)
from larder.services.ai import AIService
from larder.services.errors import LarderError
from larder.services.pantry import PantryService

router = APIRouter(prefix="/api/pantry", tags=["pantry"])


@router.get("", response_model=PantryView)
async def get_pantry(
    user_id: str = Depends(get_current_user_id),
    service: PantryService = Depends(get_pantry_service),
):
    """Get pantry contents."""
    try:
        items = await service.get_pantry(user_id)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    return PantryView(items=items, count=len(items))


@router.post("/items", response_model=PantryView)
async def add_items(
    request: PantryAddRequest,
    user_id: str = Depends(get_current_user_id),
    service: PantryService = Depends(get_pantry_service),
):
    """Add items manually or confirm scanned items."""
    try:
        items = await service.add_items(user_id, request.items)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    return PantryView(items=items, count=len(items))


@router.post("/barcode", response_model=PantryView)
async def add_barcode_item(
    request: BarcodeAddRequest,
    user_id: str = Depends(get_current_user_id),
    service: PantryService = Depends(get_pantry_service),
):
    """Add a scanned product, looking up its name on Open Food Facts."""
    try:
        items = await service.add_barcode_item(user_id, request.barcode, request.amount, request.name)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    return PantryView(items=items, count=len(items))


@router.post("/scan", response_model=list[Ingredient])
async def scan_image(
    request: PantryScanRequest,
    user_id: str = Depends(get_current_user_id),
    ai: AIService = Depends(get_ai),
):
    """
    Read items from a receipt or fridge photo.

    Results are returned for review; confirm them with POST /items.
    """
    try:
        return await ai.parse_pantry_image(request.image_base64, request.source, request.mime_type)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/items/{name}", response_model=PantryView)
async def remove_item(
    name: str,
    user_id: str = Depends(get_current_user_id),
    service: PantryService = Depends(get_pantry_service),
):
    """Remove a pantry item."""
    try:
        items = await service.remove_item(user_id, name)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    return PantryView(items=items, count=len(items))


@router.post("/cook", response_model=PantryView)
async def cook_recipe(
    request: CookRequest,
    user_id: str = Depends(get_current_user_id),
    service: PantryService = Depends(get_pantry_service),
):
    """Mark a recipe as cooked; its ingredients leave the pantry."""
    try:
        items = await service.cook_recipe(user_id, request.ingredients)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    return PantryView(items=items, count=len(items))


@router.post("/check", response_model=list[Ingredient])
async def check_in_pantry(
    request: PantryAnnotationRequest,
    user_id: str = Depends(get_current_user_id),
    service: PantryService = Depends(get_pantry_service),
):
    """Mark which of a recipe's ingredients are already at home."""
    try:
        return await service.annotate_in_pantry(user_id, request.ingredients)
    except LarderError as e:
        raise http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
