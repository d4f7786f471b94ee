"""
Pytest configuration and shared fixtures.

Fixtures defined here are available to all tests.
"""

import asyncio
import copy
import os
import sys
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add backend to path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Set test environment (before any larder import reads settings)
os.environ["TESTING"] = "true"
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("OPENAI_API_KEY", "sk-test")

from larder.services.errors import PersistenceConflict  # noqa: E402
from larder.services.store import VersionedDocument  # noqa: E402


# =============================================================================
# In-memory store
# =============================================================================


class InMemoryStore:
    """ListStore double with the same version check as the Supabase store.

    Every call yields to the event loop once, so concurrent service calls
    interleave the way they would against a real database.
    """

    def __init__(self):
        self.documents: dict[tuple[str, str], VersionedDocument] = {}
        self.saved: dict[str, dict] = {}
        self.forced_conflicts: dict[str, int] = {}
        self.commit_count = 0
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def force_conflicts(self, collection: str, count: int = 1):
        """Make the next `count` commits to a collection lose a race."""
        self.forced_conflicts[collection] = count

    def items(self, collection: str, user_id: str) -> list[dict]:
        document = self.documents.get((collection, user_id))
        return copy.deepcopy(document.items) if document else []

    def version(self, collection: str, user_id: str) -> int:
        document = self.documents.get((collection, user_id))
        return document.version if document else 0

    async def load(self, collection: str, user_id: str) -> VersionedDocument:
        await asyncio.sleep(0)
        document = self.documents.get((collection, user_id))
        if document is None:
            return VersionedDocument()
        return VersionedDocument(items=copy.deepcopy(document.items), version=document.version)

    async def commit(self, collection: str, user_id: str, items: list[dict], expected_version: int) -> int:
        await asyncio.sleep(0)
        if self.forced_conflicts.get(collection):
            self.forced_conflicts[collection] -= 1
            raise PersistenceConflict(f"forced conflict on {collection}")

        current = self.version(collection, user_id)
        if current != expected_version:
            raise PersistenceConflict(f"{collection} at v{current}, expected v{expected_version}")

        self.documents[(collection, user_id)] = VersionedDocument(
            items=copy.deepcopy(items),
            version=expected_version + 1,
        )
        self.commit_count += 1
        return expected_version + 1

    async def insert_saved_list(self, row: dict) -> dict:
        self._clock += timedelta(minutes=1)
        saved = {
            "id": str(uuid.uuid4()),
            "created_at": self._clock.isoformat(),
            "updated_at": None,
            **copy.deepcopy(row),
        }
        self.saved[saved["id"]] = saved
        return copy.deepcopy(saved)

    async def get_saved_list(self, list_id: str) -> Optional[dict]:
        row = self.saved.get(list_id)
        return copy.deepcopy(row) if row else None

    async def list_saved_lists(self, user_id: str, public_only: bool = False) -> list[dict]:
        rows = [
            row for row in self.saved.values()
            if row["user_id"] == user_id and (row["is_public"] or not public_only)
        ]
        rows.sort(key=lambda row: row["created_at"], reverse=True)
        return copy.deepcopy(rows)

    async def update_saved_list(self, list_id: str, updates: dict) -> Optional[dict]:
        row = self.saved.get(list_id)
        if row is None:
            return None
        row.update(copy.deepcopy(updates))
        return copy.deepcopy(row)

    async def delete_saved_list(self, list_id: str) -> bool:
        return self.saved.pop(list_id, None) is not None


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def store():
    """Fresh in-memory store."""
    return InMemoryStore()


@pytest.fixture
def test_user_id():
    """Test user ID for database operations."""
    return "test-user-00000000-0000-0000-0000-000000000000"


@pytest.fixture
def other_user_id():
    return "other-user-11111111-1111-1111-1111-111111111111"


@pytest.fixture
def shopping_service(store):
    from larder.services.shopping_lists import ShoppingListService
    return ShoppingListService(store, max_attempts=5)


@pytest.fixture
def mock_barcode_service():
    """Barcode service that knows one product."""
    from larder.models.barcode import ProductInfo
    from larder.services.barcode import normalize_barcode

    known = {
        "012345678905": ProductInfo(
            barcode="012345678905",
            name="Organic Whole Milk",
            brand="Test Dairy",
            categories=["Dairies", "Milks"],
        ),
    }

    async def lookup(barcode):
        return known.get(normalize_barcode(barcode))

    mock = AsyncMock()
    mock.lookup.side_effect = lookup
    return mock


@pytest.fixture
def pantry_service(store, mock_barcode_service):
    from larder.services.pantry import PantryService
    return PantryService(store, mock_barcode_service, max_attempts=5)


@pytest.fixture
def saved_list_service(store):
    from larder.services.saved_lists import SavedListService
    return SavedListService(store)


@pytest.fixture
def mock_ai_service():
    """AI service double; set return values per test."""
    from larder.services.ai import AIService
    return AsyncMock(spec=AIService)


@pytest.fixture
def mock_openai():
    """Mock AsyncOpenAI client returning a configurable JSON string."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock()

    def respond(content: str):
        response = MagicMock()
        response.choices = [MagicMock()]
        response.choices[0].message.content = content
        client.chat.completions.create.return_value = response

    client.respond = respond
    respond("{}")
    return client


# =============================================================================
# App Fixtures
# =============================================================================


@pytest.fixture
def app(store, mock_barcode_service, mock_ai_service):
    """FastAPI application wired to the in-memory store and mocks."""
    from larder.api.deps import get_ai
    from larder.main import app
    from larder.services.barcode import get_barcode_service
    from larder.services.supabase import get_store

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_barcode_service] = lambda: mock_barcode_service
    app.dependency_overrides[get_ai] = lambda: mock_ai_service
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Sync test client for API tests."""
    from fastapi.testclient import TestClient
    return TestClient(app)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def mock_supabase():
    """Mock Supabase client for unit tests."""

    mock = MagicMock()
    mock.table.return_value.select.return_value.eq.return_value.limit.return_value.execute.return_value.data = []
    mock.table.return_value.insert.return_value.execute.return_value.data = [{"id": "test-uuid"}]
    mock.table.return_value.update.return_value.eq.return_value.eq.return_value.execute.return_value.data = [{}]
    mock.table.return_value.delete.return_value.eq.return_value.execute.return_value.data = [{}]
    return mock


# =============================================================================
# Sample Data Fixtures
# =============================================================================


@pytest.fixture
def ai_day():
    """One AI-shaped plan day (meals nested under `meals`)."""
    return {
        "day": "Monday",
        "meals": {
            "breakfast": {
                "title": "Omelette",
                "ingredients": [
                    {"name": "Eggs", "amount": "3"},
                    {"name": "Milk", "amount": "1/4 cup"},
                ],
                "nutrition": {"calories": 320, "protein": 21, "carbs": 4, "fat": 24},
            },
            "lunch": {
                "title": "Chicken Salad",
                "ingredients": [{"name": "Chicken breast", "amount": "200g"}],
            },
            "dinner": None,
        },
        "dailyNutrition": {"calories": 1800, "protein": 120, "carbs": 150, "fat": 70},
    }


@pytest.fixture
def manual_day():
    """One manually built plan day (slots directly on the day)."""
    return {
        "day": "Tuesday",
        "breakfast": {"customName": "Overnight oats", "ingredients": [{"name": "Oats", "amount": "1 cup"}]},
        "dinner": {
            "recipeId": "recipe-123",
            "recipeTitle": "Pasta Bake",
            "ingredients": [
                {"name": "Pasta", "amount": "500g"},
                {"name": "milk", "amount": "1 cup"},
            ],
        },
    }
