"""Supabase client service and the Supabase-backed list store."""

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional

from postgrest.exceptions import APIError
from supabase import create_client, Client

from larder.config import get_settings
from larder.services.errors import LarderError, PersistenceConflict
from larder.services.store import PANTRY, SHOPPING_LIST, VersionedDocument

logger = logging.getLogger(__name__)
settings = get_settings()

# Postgres unique_violation: another writer created the row first
UNIQUE_VIOLATION = "23505"


@lru_cache
def get_supabase_client() -> Client:
    """Get Supabase client with service role key (admin access)."""
    return create_client(
        settings.supabase_url,
        settings.supabase_service_role_key,
    )


# Table names (match the mobile/web app)
TABLES = {
    SHOPPING_LIST: "active_shopping_lists",
    PANTRY: "active_pantries",
    "saved_lists": "saved_lists",
}


class SupabaseStore:
    """ListStore backed by Supabase tables.

    Active lists and pantries live in one row per user with an integer
    ``version`` column; writes are conditional on that version.
    """

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    @property
    def client(self) -> Client:
        return self._client or get_supabase_client()

    # =========================================================================
    # Versioned per-user documents
    # =========================================================================

    async def load(self, collection: str, user_id: str) -> VersionedDocument:
        result = (
            self.client.table(TABLES[collection])
            .select("items, version")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        rows = result.data or []
        if not rows:
            return VersionedDocument()

        row = rows[0]
        return VersionedDocument(
            items=row.get("items") or [],
            version=int(row.get("version") or 0),
        )

    async def commit(
        self,
        collection: str,
        user_id: str,
        items: list[dict],
        expected_version: int,
    ) -> int:
        table = TABLES[collection]
        now = datetime.now(timezone.utc).isoformat()

        if expected_version == 0:
            try:
                self.client.table(table).insert({
                    "user_id": user_id,
                    "items": items,
                    "version": 1,
                    "updated_at": now,
                }).execute()
            except APIError as e:
                if e.code == UNIQUE_VIOLATION:
                    raise PersistenceConflict(f"{collection} for {user_id} was created concurrently") from e
                raise
            return 1

        result = (
            self.client.table(table)
            .update({
                "items": items,
                "version": expected_version + 1,
                "updated_at": now,
            })
            .eq("user_id", user_id)
            .eq("version", expected_version)
            .execute()
        )
        if not result.data:
            raise PersistenceConflict(
                f"{collection} for {user_id} changed since version {expected_version}"
            )

        logger.debug(f"Committed {collection} v{expected_version + 1} ({len(items)} items)")
        return expected_version + 1

    # =========================================================================
    # Saved lists
    # =========================================================================

    async def insert_saved_list(self, row: dict) -> dict:
        result = self.client.table(TABLES["saved_lists"]).insert(row).execute()
        if not result.data:
            raise LarderError("Failed to create saved list")
        return result.data[0]

    async def get_saved_list(self, list_id: str) -> Optional[dict]:
        result = (
            self.client.table(TABLES["saved_lists"])
            .select("*")
            .eq("id", list_id)
            .limit(1)
            .execute()
        )
        rows = result.data or []
        return rows[0] if rows else None

    async def list_saved_lists(self, user_id: str, public_only: bool = False) -> list[dict]:
        query = self.client.table(TABLES["saved_lists"]).select("*").eq("user_id", user_id)
        if public_only:
            query = query.eq("is_public", True)
        result = query.order("created_at", desc=True).execute()
        return result.data or []

    async def update_saved_list(self, list_id: str, updates: dict) -> Optional[dict]:
        result = (
            self.client.table(TABLES["saved_lists"])
            .update(updates)
            .eq("id", list_id)
            .execute()
        )
        rows = result.data or []
        return rows[0] if rows else None

    async def delete_saved_list(self, list_id: str) -> bool:
        result = self.client.table(TABLES["saved_lists"]).delete().eq("id", list_id).execute()
        return bool(result.data)


@lru_cache
def get_store() -> SupabaseStore:
    """Get cached Supabase store instance."""
    return SupabaseStore()
