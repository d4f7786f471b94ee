"""
Common dependencies for API endpoints.
"""

import logging

from fastapi import Depends, HTTPException, Query

from larder.services.ai import AIService, get_ai_service
from larder.services.barcode import BarcodeService, get_barcode_service
from larder.services.errors import (
    AuthorizationError,
    GenerationFailure,
    LarderError,
    NotFoundError,
    PersistenceConflict,
    ServiceUnavailable,
    ValidationError,
)
from larder.services.pantry import PantryService
from larder.services.saved_lists import SavedListService
from larder.services.shopping_lists import ShoppingListService
from larder.services.store import INVALID_USER_IDS, ListStore
from larder.services.supabase import get_store

logger = logging.getLogger(__name__)

# Status codes for domain errors; anything else is a 500
ERROR_STATUS = {
    ValidationError: 422,
    GenerationFailure: 502,
    PersistenceConflict: 409,
    AuthorizationError: 403,
    NotFoundError: 404,
    ServiceUnavailable: 503,
}


async def get_current_user_id(user_id: str = Query(..., description="User ID")) -> str:
    """
    Extract user_id from query parameter.

    In this architecture, the frontend authenticates via Supabase
    and passes the authenticated user_id directly to API calls.
    """
    if not user_id or user_id.strip().lower() in INVALID_USER_IDS:
        raise HTTPException(status_code=400, detail="user_id is required")
    return user_id


def http_error(e: LarderError) -> HTTPException:
    """Translate a domain error into an HTTPException."""
    for error_cls, status_code in ERROR_STATUS.items():
        if isinstance(e, error_cls):
            return HTTPException(status_code=status_code, detail=str(e))
    logger.error(f"Unmapped domain error: {e!r}")
    return HTTPException(status_code=500, detail=str(e))


def get_shopping_list_service(store: ListStore = Depends(get_store)) -> ShoppingListService:
    return ShoppingListService(store)


def get_pantry_service(
    store: ListStore = Depends(get_store),
    barcode_service: BarcodeService = Depends(get_barcode_service),
) -> PantryService:
    return PantryService(store, barcode_service)


def get_saved_list_service(store: ListStore = Depends(get_store)) -> SavedListService:
    return SavedListService(store)


def get_ai() -> AIService:
    return get_ai_service()
