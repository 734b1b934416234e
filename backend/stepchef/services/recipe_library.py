import logging
from typing import Dict, List, Optional

from pydantic import ValidationError

from ..models.recipe import Recipe
from .storage import KeyValueStore

log = logging.getLogger(__name__)

CHICKEN_CURRY = Recipe.model_validate({
    "id": "chicken-curry-builtin",
    "name": "Chicken Curry",
    "emoji": "🍗",
    "description": "A rich and aromatic chicken curry with whole spices, ginger, and fried potatoes.",
    "steps": [
        {"id": 1, "emoji": "🔥", "description": "Heat 4 tbsp cooking oil."},
        {"id": 2, "emoji": "🧂", "description": "Add 1/4 tsp salt and 1/4 tsp turmeric to the oil."},
        {"id": 3, "emoji": "🥔", "description": "Fry 2 medium potatoes (cut into chunks), then remove and set aside."},
        {"id": 4, "emoji": "🧅", "description": "Add 2 medium thinly sliced onions to the oil."},
        {"id": 5, "emoji": "🌿", "description": "Add 1/2 tsp salt, 7 cardamoms, 2 small cinnamon sticks, 8 cloves, 3 bay leaves, and 8-10 peppercorns. Fry until brown."},
        {"id": 6, "emoji": "🫚", "description": "Add 1 tbsp ginger paste."},
        {"id": 7, "emoji": "🍗", "description": "Add 1 kg chicken."},
        {"id": 8, "emoji": "🌶️", "description": "Add 3/4 tsp turmeric, 1/2 tsp red chili powder, 1 tsp Kashmiri red chili, and 1 tsp salt (to taste)."},
        {"id": 9, "emoji": "⏱️", "description": "Sauté for 5 minutes on medium heat.", "timerDuration": 300},
        {"id": 10, "emoji": "🫕", "description": "Cover and cook for 5 minutes on low heat.", "timerDuration": 300},
        {"id": 11, "emoji": "🌿", "description": "Uncover and add 1½ tsp coriander powder, 1 tsp cumin powder, and 1/2 tsp garam masala."},
        {"id": 12, "emoji": "🔥", "description": "Cover and cook for 10 minutes on low heat, stirring occasionally.", "timerDuration": 600},
        {"id": 13, "emoji": "🥔", "description": "Uncover and add the fried potatoes."},
        {"id": 14, "emoji": "💧", "description": "Pour in 2 cups hot water."},
        {"id": 15, "emoji": "🫕", "description": "Cover and cook for 12-15 minutes on low heat.", "timerDuration": 780},
        {"id": 16, "emoji": "✅", "description": "Add 1/4 tsp roasted cumin and a small pinch of sugar. Serve hot."},
    ],
})


class RecipeLibrary:
    """Recipes the user can cook from, seeded with the built-in curry."""

    def __init__(self, store: Optional[KeyValueStore] = None, key: str = "recipe-library"):
        self.store = store
        self.key = key
        self._recipes: Dict[str, Recipe] = {CHICKEN_CURRY.id: CHICKEN_CURRY}

    def load(self) -> None:
        if self.store is None:
            return
        raw = self.store.read(self.key)
        if raw is None:
            return

        recipes: Dict[str, Recipe] = {}
        for item in raw.get("recipes", []) if isinstance(raw, dict) else []:
            try:
                recipe = Recipe.model_validate(item)
            except ValidationError as e:
                log.error(f"Skipping invalid stored recipe: {e}")
                continue
            recipes[recipe.id] = recipe
        self._recipes = recipes
        log.debug(f"Loaded {len(recipes)} recipes")

    def list(self) -> List[Recipe]:
        return list(self._recipes.values())

    def get(self, recipe_id: str) -> Optional[Recipe]:
        return self._recipes.get(recipe_id)

    def add(self, recipe: Recipe) -> None:
        if recipe.id in self._recipes:
            log.info(f"Recipe '{recipe.id}' already exists, replacing")
        self._recipes[recipe.id] = recipe
        self._save()

    def delete(self, recipe_id: str) -> bool:
        if self._recipes.pop(recipe_id, None) is None:
            return False
        self._save()
        return True

    def _save(self) -> None:
        if self.store is None:
            return
        try:
            self.store.write(self.key, {"recipes": [r.model_dump(mode="json") for r in self._recipes.values()]})
        except Exception as e:
            log.error(f"Could not persist recipe library: {e}")
