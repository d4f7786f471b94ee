"""
Persistence contract for active lists, pantries and saved lists.

The active shopping list and the pantry are each stored as one versioned
document per user. Every mutation is a read-merge-write cycle whose write
only succeeds if the version read is still current; a lost race raises
PersistenceConflict and the whole cycle is retried from a fresh read.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Callable, Generic, Optional, Protocol, Sequence, TypeVar

import pydantic

from larder.models.ingredients import IngredientGroup
from larder.services.errors import AuthorizationError, PersistenceConflict

logger = logging.getLogger(__name__)

G = TypeVar("G", bound=IngredientGroup)

# Document collections
SHOPPING_LIST = "shopping_list"
PANTRY = "pantry"

# Placeholder ids clients have been seen sending before auth resolves
INVALID_USER_IDS = {"", "current", "undefined", "null", "none"}


@dataclass
class VersionedDocument:
    """Items of a per-user document and the version they were read at."""

    items: list[dict] = field(default_factory=list)
    version: int = 0  # 0 = document does not exist yet


class ListStore(Protocol):
    """Persistence collaborator used by the list, pantry and saved-list services."""

    async def load(self, collection: str, user_id: str) -> VersionedDocument:
        ...

    async def commit(
        self,
        collection: str,
        user_id: str,
        items: list[dict],
        expected_version: int,
    ) -> int:
        """Write items if the stored version is still expected_version.

        Returns the new version; raises PersistenceConflict otherwise.
        """
        ...

    async def insert_saved_list(self, row: dict) -> dict:
        ...

    async def get_saved_list(self, list_id: str) -> Optional[dict]:
        ...

    async def list_saved_lists(self, user_id: str, public_only: bool = False) -> list[dict]:
        ...

    async def update_saved_list(self, list_id: str, updates: dict) -> Optional[dict]:
        ...

    async def delete_saved_list(self, list_id: str) -> bool:
        ...


def require_user_id(user_id: Optional[str], context: str) -> str:
    """Reject missing or placeholder user ids before any read or write."""
    if not user_id or user_id.strip().lower() in INVALID_USER_IDS:
        logger.error(f"Blocked {context} for invalid user id {user_id!r}")
        raise AuthorizationError(f"Invalid user id {user_id!r} in {context}")
    return user_id


# ============================================================================
# Group (de)serialization
# ============================================================================


def parse_groups(rows: Sequence[dict], group_cls: type[G]) -> tuple[list[G], list[dict]]:
    """
    Parse stored rows.

    Returns:
        The parsed groups and the raw rows that no longer validate. Callers
        that write the document back must pass the raw rows to dump_groups
        so they are not lost.
    """
    groups = []
    unreadable = []
    for row in rows:
        try:
            groups.append(group_cls.model_validate(row))
        except pydantic.ValidationError as e:
            logger.warning(f"Keeping unreadable stored {group_cls.__name__} as-is ({e.error_count()} errors)")
            unreadable.append(row)
    return groups, unreadable


def stamp_entries(groups: Sequence[IngredientGroup]) -> None:
    """Give every amount entry a stable id before it is persisted."""
    for group in groups:
        for entry in group.amounts:
            if not entry.entry_id:
                entry.entry_id = uuid.uuid4().hex


def dump_groups(groups: Sequence[IngredientGroup], unreadable: Sequence[dict] = ()) -> list[dict]:
    """Stamp and serialize groups for storage (camelCase, like the clients).

    Unreadable rows are appended unchanged.
    """
    stamp_entries(groups)
    return [group.model_dump(mode="json", by_alias=True) for group in groups] + list(unreadable)


# ============================================================================
# Read-merge-write
# ============================================================================


@dataclass
class GroupDocument(Generic[G]):
    """A loaded document: parsed groups, rows kept raw, and the version read."""

    groups: list[G]
    unreadable: list[dict]
    version: int

    def dump(self, groups: Sequence[IngredientGroup]) -> list[dict]:
        """Serialize replacement groups, carrying the unreadable rows along."""
        return dump_groups(groups, self.unreadable)


async def load_document(
    store: ListStore,
    collection: str,
    user_id: str,
    group_cls: type[G],
) -> GroupDocument[G]:
    document = await store.load(collection, user_id)
    groups, unreadable = parse_groups(document.items, group_cls)
    return GroupDocument(groups=groups, unreadable=unreadable, version=document.version)


async def load_groups(
    store: ListStore,
    collection: str,
    user_id: str,
    group_cls: type[G],
) -> tuple[list[G], int]:
    """Load a document as parsed groups plus its version (read-only use)."""
    document = await load_document(store, collection, user_id, group_cls)
    return document.groups, document.version


async def mutate_groups(
    store: ListStore,
    collection: str,
    user_id: str,
    group_cls: type[G],
    transform: Callable[[list[G]], Optional[list[G]]],
    max_attempts: int,
) -> list[G]:
    """
    Apply transform to a per-user document with optimistic concurrency.

    Args:
        transform: Receives the current groups and returns the new groups,
            or None when nothing needs to be written.
        max_attempts: Read-merge-write cycles to try before giving up.

    Returns:
        The groups as committed (or as read, when transform returned None).

    Raises:
        PersistenceConflict: Every attempt lost a race with another writer.
    """
    for attempt in range(1, max_attempts + 1):
        document = await load_document(store, collection, user_id, group_cls)
        updated = transform(document.groups)
        if updated is None:
            return document.groups

        try:
            await store.commit(collection, user_id, document.dump(updated), document.version)
            return updated
        except PersistenceConflict:
            logger.warning(
                f"Write conflict on {collection} for {user_id[:8]} "
                f"(attempt {attempt}/{max_attempts})"
            )

    raise PersistenceConflict(
        f"Could not update {collection} after {max_attempts} attempts",
        attempts=max_attempts,
    )
