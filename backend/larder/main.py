"""
larder: shopping list, pantry and meal plan backend.

    uvicorn larder.main:app --reload

The active shopping list and pantry are one versioned row per user; every
mutation is a read-merge-write that is retried on a lost race. Saved lists
are immutable snapshots that can be restored into the active list.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from larder.api import ai as ai_api
from larder.api import health
from larder.api import pantry as pantry_api
from larder.api import saved_lists as saved_lists_api
from larder.api import shopping as shopping_api
from larder.config import get_settings
from larder.services.barcode import get_barcode_service
from larder.services.healthcheck import VERSION

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)-7s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Reachable without X-API-Key
OPEN_PATHS = {"/", "/docs", "/redoc", "/openapi.json"}
OPEN_PREFIXES = ("/health",)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"larder {VERSION} starting ({settings.environment}, "
        f"barcode lookup {'on' if settings.feature_barcode_lookup else 'off'}, "
        f"api key {'required' if settings.api_key else 'not set'})"
    )
    barcode_service = get_barcode_service()
    await barcode_service.init()

    yield

    await barcode_service.close()
    logger.info("larder stopped")


app = FastAPI(
    title="larder",
    description="Shopping lists, pantry and saved meal plans",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def require_api_key(request: Request, call_next):
    """Reject requests without the shared X-API-Key, when one is configured."""
    path = request.url.path
    if not settings.api_key or path in OPEN_PATHS or path.startswith(OPEN_PREFIXES):
        return await call_next(request)

    if request.headers.get("X-API-Key") != settings.api_key:
        host = request.client.host if request.client else "unknown"
        logger.warning(f"Rejected {request.method} {path} from {host}: bad or missing API key")
        return JSONResponse(status_code=401, content={"detail": "Invalid or missing API key"})

    return await call_next(request)


app.include_router(health.router)
app.include_router(shopping_api.router)
app.include_router(pantry_api.router)
app.include_router(saved_lists_api.router)
app.include_router(ai_api.router, prefix="/api/ai", tags=["ai"])


@app.get("/")
async def root():
    return {
        "name": "larder",
        "version": VERSION,
        "docs": "/docs",
        "endpoints": {
            "health": "/health",
            "shopping-list": shopping_api.router.prefix,
            "pantry": pantry_api.router.prefix,
            "saved-lists": saved_lists_api.router.prefix,
            "ai": "/api/ai",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "larder.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=not settings.is_production,
    )
