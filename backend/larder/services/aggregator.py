"""
List aggregation.

Merges any number of ingredient sources (recipes, flattened meal plans, AI
output, manual entries, the current list itself) into one line per
normalized name. Amounts are never summed into each other: each line keeps
its amount entries together with the recipe they came from, and only the
display summary combines them.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence, TypeVar

import pydantic

from larder.models.ingredients import (
    AmountEntry,
    Ingredient,
    IngredientGroup,
    ListItem,
    PantryItem,
)
from larder.services.normalizer import normalize

logger = logging.getLogger(__name__)

G = TypeVar("G", bound=IngredientGroup)

_PLAIN_NUMBER = re.compile(r"^\d+(\.\d+)?$")


def _coerce(element: Any) -> Optional[Ingredient | IngredientGroup]:
    """Turn a raw source element into a model, or None if unusable."""
    if isinstance(element, (Ingredient, IngredientGroup)):
        return element
    if isinstance(element, str):
        return Ingredient(name=element)
    if isinstance(element, dict):
        try:
            if "amounts" in element:
                data = {"key": normalize(element.get("name")), **element}
                return ListItem.model_validate(data)
            return Ingredient.model_validate(element)
        except pydantic.ValidationError as e:
            logger.warning(f"Skipping malformed ingredient ({e.error_count()} errors): {element!r}")
            return None
    logger.warning(f"Skipping unsupported ingredient value of type {type(element).__name__}")
    return None


def aggregate(
    sources: Iterable[Optional[Iterable[Any]]],
    group_cls: type[G] = ListItem,
) -> list[G]:
    """
    Merge ingredient sources into grouped lines.

    Args:
        sources: Lists of Ingredient, IngredientGroup or raw dicts, in
            priority order. The order decides display casing and line order.
        group_cls: ListItem for the shopping list, PantryItem for the pantry.

    Returns:
        One group per normalized name, in order of first appearance.
    """
    groups: dict[str, G] = {}

    for source in sources:
        if not source:
            continue

        for element in source:
            item = _coerce(element)
            if item is None:
                continue

            key = normalize(item.name)
            if not key:
                logger.warning("Skipping ingredient with a blank name")
                continue

            if isinstance(item, IngredientGroup):
                entries = [entry.model_copy() for entry in item.amounts]
                checked = bool(getattr(item, "is_checked", False))
                ai_generated = item.is_ai_generated
            else:
                entries = [AmountEntry(amount=item.amount, recipe_title=item.recipe_title)]
                checked = bool(item.is_checked)
                ai_generated = bool(item.is_ai_generated)

            group = groups.get(key)
            if group is None:
                group = group_cls(
                    key=key,
                    name=item.name.strip(),
                    category=item.category or None,
                    barcode=item.barcode or None,
                    is_ai_generated=ai_generated,
                )
                if isinstance(group, ListItem):
                    group.is_checked = checked
                groups[key] = group
            else:
                # Checked / AI-only as long as every contributor is
                if isinstance(group, ListItem):
                    group.is_checked = group.is_checked and checked
                group.is_ai_generated = group.is_ai_generated and ai_generated
                group.category = group.category or item.category or None
                group.barcode = group.barcode or item.barcode or None

            seen = {entry.entry_id for entry in group.amounts if entry.entry_id}
            for entry in entries:
                if entry.entry_id and entry.entry_id in seen:
                    continue
                group.amounts.append(entry)
                if entry.entry_id:
                    seen.add(entry.entry_id)

    return list(groups.values())


def combine_amounts(entries: Sequence[AmountEntry]) -> str:
    """
    Build a display string for a group's amounts.

    Plain numbers ("2", "1.5") are summed. Anything else ("1/2 cup",
    "2 cloves") is listed as-is, joined with " + ".
    """
    amounts = [entry.amount.strip() for entry in entries if entry.amount and entry.amount.strip()]
    if not amounts:
        return ""

    if all(_PLAIN_NUMBER.match(amount) for amount in amounts):
        total = sum((Decimal(amount) for amount in amounts), Decimal(0))
        return f"{total.normalize():f}"

    return " + ".join(amounts)


def merge_into_pantry(
    pantry: Sequence[PantryItem],
    incoming: Sequence[Ingredient | IngredientGroup],
) -> list[PantryItem]:
    """Merge new items into the pantry; stamped entries are applied once."""
    return aggregate([pantry, incoming], group_cls=PantryItem)


def remove_provenance(items: Sequence[ListItem], recipe_title: str) -> list[ListItem]:
    """Drop every amount that came from one recipe; empty lines disappear."""
    target = normalize(recipe_title)
    result: list[ListItem] = []

    for item in items:
        kept = [entry for entry in item.amounts if normalize(entry.recipe_title) != target]
        if len(kept) == len(item.amounts):
            result.append(item)
        elif kept:
            result.append(item.model_copy(update={"amounts": kept}))

    return result


def remove_entries(groups: Sequence[G], entry_ids: set[str]) -> list[G]:
    """Drop amount entries by id; groups left with no entries are removed."""
    result: list[G] = []

    for group in groups:
        kept = [entry for entry in group.amounts if entry.entry_id not in entry_ids]
        if len(kept) == len(group.amounts):
            result.append(group)
        elif kept:
            result.append(group.model_copy(update={"amounts": kept}))

    return result
