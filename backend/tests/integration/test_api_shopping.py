"""
Integration tests for the shopping list and pantry endpoints.

The app runs against the in-memory store and mocked AI/barcode services.
"""

import httpx
import pytest

from larder.models.ingredients import Ingredient
from larder.models.plans import MealSummary, SmartShoppingList
from larder.services.errors import GenerationFailure
from larder.services.store import PANTRY, SHOPPING_LIST


@pytest.fixture
def params(test_user_id):
    return {"user_id": test_user_id}


class TestShoppingListAPI:
    """Tests for /api/shopping-list."""

    @pytest.mark.integration
    def test_add_and_get(self, client, params):
        response = client.post("/api/shopping-list/items", params=params, json={
            "ingredients": [
                {"name": "Milk", "amount": "1L"},
                {"name": "milk", "amount": "2 cups", "recipeTitle": "Pancakes"},
            ],
        })
        assert response.status_code == 200

        data = client.get("/api/shopping-list", params=params).json()
        assert len(data) == 1
        assert data[0]["name"] == "Milk"
        assert data[0]["displayAmount"] == "1L + 2 cups"
        assert data[0]["recipeTitles"] == ["Pancakes"]
        assert data[0]["isChecked"] is False

    @pytest.mark.integration
    def test_meal_plan_scenario(self, client, params):
        client.post("/api/shopping-list/items", params=params, json={
            "ingredients": [{"name": "Milk", "amount": "1L"}],
        })

        response = client.post("/api/shopping-list/meal-plan", params=params, json={"plan": [{
            "day": "Monday",
            "meals": {
                "breakfast": {
                    "title": "Pancakes",
                    "ingredients": [{"name": "milk", "amount": "2 cups"}, {"name": "Eggs", "amount": "2"}],
                },
                "lunch": None,
            },
        }]})

        assert response.status_code == 200
        data = response.json()
        assert [item["name"] for item in data] == ["Milk", "Eggs"]
        assert sum(len(item["amounts"]) for item in data) == 3

    @pytest.mark.integration
    def test_recipe_add_and_remove(self, client, params):
        client.post("/api/shopping-list/recipes", params=params, json={
            "recipeTitle": "Guacamole",
            "ingredients": [{"name": "Avocado", "amount": "3"}, {"name": "Lime"}],
        })

        response = client.delete("/api/shopping-list/recipes/Guacamole", params=params)

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.integration
    def test_check_and_finish(self, client, params):
        client.post("/api/shopping-list/items", params=params, json={
            "ingredients": [{"name": "Milk"}, {"name": "Bread"}],
        })

        response = client.patch("/api/shopping-list/items/milk", params=params, json={"checked": True})
        assert response.json()[0]["isChecked"] is True

        result = client.post("/api/shopping-list/finish", params=params).json()
        assert result == {"moved": ["Milk"], "remainingCount": 1, "pantryCount": 1}

        pantry = client.get("/api/pantry", params=params).json()
        assert pantry["count"] == 1
        assert pantry["items"][0]["name"] == "Milk"

    @pytest.mark.integration
    def test_restore_overwrite(self, client, params):
        client.post("/api/shopping-list/items", params=params, json={"ingredients": [{"name": "Bread"}]})

        response = client.post("/api/shopping-list/restore", params=params, json={
            "items": [{"name": "Eggs", "amount": "12", "isChecked": True}],
            "mode": "overwrite",
        })

        assert [(i["name"], i["isChecked"]) for i in response.json()] == [("Eggs", False)]

    @pytest.mark.integration
    def test_restore_bad_mode(self, client, params):
        response = client.post("/api/shopping-list/restore", params=params, json={"items": [], "mode": "replace"})
        assert response.status_code == 422

    @pytest.mark.integration
    def test_clear(self, client, params):
        client.post("/api/shopping-list/items", params=params, json={"ingredients": [{"name": "Bread"}]})
        assert client.delete("/api/shopping-list", params=params).json() == []

    @pytest.mark.integration
    def test_conflict_maps_to_409(self, client, store, params):
        store.force_conflicts(SHOPPING_LIST, 100)
        response = client.post("/api/shopping-list/items", params=params, json={"ingredients": [{"name": "Milk"}]})
        assert response.status_code == 409

    @pytest.mark.integration
    def test_generate_adds_ai_items(self, client, mock_ai_service, params):
        mock_ai_service.generate_smart_shopping_list.return_value = SmartShoppingList(
            meal_plan=[MealSummary(day="Day 1", meals=["Tofu stir fry"])],
            shopping_list=[Ingredient(name="Tofu", amount="400g", is_ai_generated=True)],
        )

        response = client.post("/api/shopping-list/generate", params=params, json={"diet": "vegan", "days": 1})

        assert response.status_code == 200
        data = response.json()
        assert data["mealPlan"][0]["meals"] == ["Tofu stir fry"]
        assert data["items"][0]["isAiGenerated"] is True

    @pytest.mark.integration
    def test_generate_failure_writes_nothing(self, client, store, mock_ai_service, params, test_user_id):
        mock_ai_service.generate_smart_shopping_list.side_effect = GenerationFailure("AI generation failed")

        response = client.post("/api/shopping-list/generate", params=params, json={"diet": "vegan"})

        assert response.status_code == 502
        assert store.items(SHOPPING_LIST, test_user_id) == []


class TestPantryAPI:
    """Tests for /api/pantry."""

    @pytest.mark.integration
    def test_barcode_add(self, client, params):
        response = client.post("/api/pantry/barcode", params=params, json={"barcode": "012345678905"})
        assert response.status_code == 200
        assert response.json()["items"][0]["name"] == "Organic Whole Milk"

    @pytest.mark.integration
    def test_unknown_barcode(self, client, params):
        response = client.post("/api/pantry/barcode", params=params, json={"barcode": "999"})
        assert response.status_code == 404

    @pytest.mark.integration
    def test_barcode_lookup_outage(self, client, store, mock_barcode_service, params, test_user_id):
        mock_barcode_service.lookup.side_effect = httpx.ReadTimeout("timed out")

        response = client.post("/api/pantry/barcode", params=params, json={"barcode": "012345678905"})

        assert response.status_code == 503
        assert "enter the product name" in response.json()["detail"]
        assert store.items(PANTRY, test_user_id) == []

    @pytest.mark.integration
    def test_scan_returns_items_for_review(self, client, mock_ai_service, params):
        mock_ai_service.parse_pantry_image.return_value = [Ingredient(name="Eggs", amount="12")]

        response = client.post("/api/pantry/scan", params=params, json={
            "imageBase64": "aGVsbG8=",
            "source": "fridge",
        })

        assert response.status_code == 200
        assert response.json()[0]["name"] == "Eggs"
        assert client.get("/api/pantry", params=params).json()["count"] == 0

    @pytest.mark.integration
    def test_cook_and_check(self, client, params):
        client.post("/api/pantry/items", params=params, json={"items": [{"name": "Eggs"}, {"name": "Flour"}]})

        checked = client.post("/api/pantry/check", params=params, json={
            "ingredients": [{"name": "eggs"}, {"name": "Sugar"}],
        }).json()
        assert [i["inPantry"] for i in checked] == [True, False]

        pantry = client.post("/api/pantry/cook", params=params, json={"ingredients": [{"name": "Eggs"}]}).json()
        assert [item["name"] for item in pantry["items"]] == ["Flour"]

    @pytest.mark.integration
    def test_remove_item(self, client, params):
        client.post("/api/pantry/items", params=params, json={"items": [{"name": "Eggs"}]})
        response = client.delete("/api/pantry/items/eggs", params=params)
        assert response.json()["count"] == 0
