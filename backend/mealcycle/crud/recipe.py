from typing import Dict, Optional, Any

from sqlalchemy.orm import Session

from mealcycle.models.recipe import Recipe

"""
Recipe nutrition lookups
------------------------
Recipes are owned by the recipe service; the planner only reads their per-serving
nutrition. Anything with a `get(recipe_id) -> dict | None` method can be passed to
the aggregator.
"""


class RecipeNutritionLookup:
    def get(self, recipe_id) -> Optional[Dict[str, Any]]:
        raise NotImplementedError


class SQLRecipeNutritionLookup(RecipeNutritionLookup):
    """Reads the recipes table, caching rows for the lifetime of one request."""

    def __init__(self, db: Session):
        self.db = db
        self._cache: Dict[Any, Optional[Dict[str, Any]]] = {}

    def get(self, recipe_id) -> Optional[Dict[str, Any]]:
        if recipe_id in self._cache:
            return self._cache[recipe_id]
        try:
            key = int(recipe_id)
        except (TypeError, ValueError):
            self._cache[recipe_id] = None
            return None
        recipe = self.db.query(Recipe).filter(Recipe.id == key).first()
        nutrition = dict(recipe.nutrition) if recipe and recipe.nutrition else None
        self._cache[recipe_id] = nutrition
        return nutrition


class InMemoryRecipeNutritionLookup(RecipeNutritionLookup):
    def __init__(self, recipes: Optional[Dict[Any, Dict[str, Any]]] = None):
        self.recipes = dict(recipes or {})

    def get(self, recipe_id) -> Optional[Dict[str, Any]]:
        return self.recipes.get(recipe_id)
