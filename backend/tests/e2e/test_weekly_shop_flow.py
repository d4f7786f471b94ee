"""
End-to-end tests for the weekly shopping flow.

These tests walk a user from a generated meal plan to a stocked pantry:
1. Generate a plan
2. Save it and add it to the active list
3. Tick items off and finish shopping
4. Cook a recipe from the pantry
"""

import pytest

from larder.models.ingredients import Ingredient
from larder.models.plans import DayPlan, MealSlot, PlanOrigin


@pytest.mark.e2e
class TestWeeklyShopFlow:
    """Plan to pantry, through the public API only."""

    def test_plan_to_pantry(self, client, mock_ai_service, test_user_id):
        params = {"user_id": test_user_id}
        mock_ai_service.get_meal_plan.return_value = [
            DayPlan(
                day="Day 1",
                origin=PlanOrigin.AI,
                breakfast=MealSlot(title="Pancakes", ingredients=[
                    Ingredient(name="Milk", amount="2 cups"),
                    Ingredient(name="Eggs", amount="2"),
                ]),
                dinner=MealSlot(title="Frittata", ingredients=[Ingredient(name="eggs", amount="6")]),
            ),
        ]

        # Step 1: Generate
        plan = client.post("/api/ai/meal-plan", json={"days": 1}).json()
        assert plan[0]["origin"] == "ai"

        # Step 2: Save and add to list
        saved = client.post("/api/saved-lists", params=params, json={
            "title": "This week",
            "type": "meal_plan",
            "planDetails": plan,
        }).json()
        assert saved["itemCount"] == 3

        items = client.post(f"/api/saved-lists/{saved['id']}/add-plan", params=params).json()
        eggs = next(item for item in items if item["key"] == "eggs")
        assert eggs["displayAmount"] == "8"
        assert eggs["recipeTitles"] == ["Pancakes", "Frittata"]

        # Adding the same plan twice keeps one line per ingredient
        items = client.post(f"/api/saved-lists/{saved['id']}/add-plan", params=params).json()
        assert len(items) == 2

        # Step 3: Shop
        client.patch("/api/shopping-list/items/Eggs", params=params, json={"checked": True})
        result = client.post("/api/shopping-list/finish", params=params).json()
        assert result["moved"] == ["Eggs"]
        assert result["remainingCount"] == 1

        # Finishing again moves nothing
        assert client.post("/api/shopping-list/finish", params=params).json()["moved"] == []

        # Step 4: Cook
        checked = client.post("/api/pantry/check", params=params, json={
            "ingredients": [{"name": "Eggs"}, {"name": "Milk"}],
        }).json()
        assert [item["inPantry"] for item in checked] == [True, False]

        pantry = client.post("/api/pantry/cook", params=params, json={
            "ingredients": [{"name": "eggs", "amount": "6"}],
        }).json()
        assert pantry["count"] == 0
