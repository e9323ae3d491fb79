"""Unit tests for prompt builders."""

from src.models.models import (
    CuisineType,
    DietType,
    DirectRecipeRequest,
    Language,
    MealType,
    RecipePreferences,
)
from src.prompts.prompts import (
    ANY_CUISINE,
    ANY_INGREDIENTS,
    build_direct_recipe_prompt,
    build_prompt,
    build_recipe_prompt,
)


def _preferences(**overrides) -> RecipePreferences:
    values = {
        "meal_type": MealType.LUNCH,
        "diet_type": DietType.VEGETARIAN,
        "cuisine": CuisineType.NORTH_INDIAN,
        "ingredients": ("Rice", "Onion"),
    }
    values.update(overrides)
    return RecipePreferences(**values)


class TestBuildRecipePrompt:
    """Test the guided-flow prompt."""

    def test_is_deterministic(self):
        assert build_recipe_prompt(_preferences()) == build_recipe_prompt(_preferences())

    def test_mentions_preferences(self):
        prompt = build_recipe_prompt(_preferences())

        assert "exactly 3 vegetarian lunch recipes" in prompt
        assert "north indian cuisine" in prompt
        assert "Rice, Onion" in prompt
        assert '"cookingTime"' in prompt

    def test_no_ingredients_uses_any_available(self):
        assert ANY_INGREDIENTS in build_recipe_prompt(_preferences(ingredients=()))

    def test_surprise_me_leaves_cuisine_open(self):
        assert ANY_CUISINE in build_recipe_prompt(_preferences(cuisine=CuisineType.SURPRISE_ME))

    def test_custom_ingredient_is_required(self):
        prompt = build_recipe_prompt(_preferences(custom_ingredient="Tofu"))
        assert "specifically include Tofu" in prompt

    def test_non_vegetarian_is_humanized(self):
        assert "non vegetarian" in build_recipe_prompt(_preferences(diet_type=DietType.NON_VEGETARIAN))

    def test_language_instruction(self):
        assert "Devanagari" in build_recipe_prompt(_preferences(language=Language.HI))
        assert "Latin script" in build_recipe_prompt(_preferences(language=Language.HINGLISH))


class TestBuildDirectRecipePrompt:
    def test_asks_for_one_named_recipe(self):
        prompt = build_direct_recipe_prompt(DirectRecipeRequest(dish_name="Rajma Chawal"))

        assert 'exactly 1 recipe for "Rajma Chawal"' in prompt

    def test_build_prompt_dispatches_on_type(self):
        direct = DirectRecipeRequest(dish_name="Poha")

        assert build_prompt(direct) == build_direct_recipe_prompt(direct)
        assert build_prompt(_preferences()) == build_recipe_prompt(_preferences())
