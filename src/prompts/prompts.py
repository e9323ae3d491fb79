"""Prompt builders for recipe generation.

Prompts are pure functions of the request: the same preferences always
produce the same text. Both builders share the JSON output contract so the
generator can parse guided and direct responses the same way.
"""

from src.models.models import (
    CuisineType,
    DirectRecipeRequest,
    Language,
    RecipePreferences,
    RecipeRequest,
)

GUIDED_RECIPE_COUNT = 3
DIRECT_RECIPE_COUNT = 1
MAX_RECIPES = 3

ANY_INGREDIENTS = "any available ingredients (use your judgment)"
ANY_CUISINE = "any cuisine (surprise me: pick one that plausibly fits the ingredients)"

_LANGUAGE_INSTRUCTIONS = {
    Language.EN: "Write all recipe text in English.",
    Language.HI: (
        "Write recipe names, ingredients and steps in Hindi (Devanagari script). "
        "Keep JSON keys and the search_query in English."
    ),
    Language.HINGLISH: (
        "Write recipe names, ingredients and steps in Hinglish (Hindi written in Latin script). "
        "Keep JSON keys and the search_query in English."
    ),
}

OUTPUT_CONTRACT = """Output format:
Return ONLY a valid JSON array with this exact structure (no extra text):
[
  {
    "name": "Recipe Name",
    "search_query": "Search keywords for a YouTube video of this recipe",
    "ingredients": [
      "2 cups rice",
      "1 tbsp oil",
      "1 large onion, chopped"
    ],
    "steps": [
      "Heat 1 tbsp oil in a pan over medium heat (2 minutes)",
      "Add chopped onions and saute until golden brown (5-7 minutes)"
    ],
    "macros": {
      "calories": 400,
      "protein": 25,
      "carbs": 45,
      "fat": 12
    },
    "cookingTime": "25 minutes",
    "servings": 2
  }
]

Important:
- Output must be valid JSON, no markdown, no extra text
- Numbers in "macros" and "servings" must be plain numbers, not strings
- Steps must include timing and temperatures where needed
- Nutritional values should be realistic and per serving"""


def _humanize(value: str) -> str:
    return value.replace("_", " ")


def _describe_cuisine(cuisine: CuisineType) -> str:
    if cuisine == CuisineType.SURPRISE_ME:
        return ANY_CUISINE
    return f"{_humanize(cuisine.value)} cuisine"


def build_recipe_prompt(preferences: RecipePreferences) -> str:
    """Build the guided-flow prompt asking for exactly 3 recipes.

    Args:
        preferences: Meal, diet, cuisine, ingredients, language and optional custom ingredient.

    Returns:
        Deterministic prompt text.
    """
    ingredients = ", ".join(preferences.ingredients) if preferences.ingredients else ANY_INGREDIENTS
    custom = (
        f", and specifically include {preferences.custom_ingredient}"
        if preferences.custom_ingredient
        else ""
    )
    diet = _humanize(preferences.diet_type.value)

    return f"""You are a helpful meal planner assistant.

Generate exactly {GUIDED_RECIPE_COUNT} {diet} {preferences.meal_type.value} recipes for {_describe_cuisine(preferences.cuisine)} using these ingredients: {ingredients}{custom}.

Requirements:
- Every recipe must be strictly {diet}
- Each recipe must use at least 1 of the provided ingredients
- Include ALL necessary ingredients with exact quantities (not just the user's ingredients)
- Provide detailed step-by-step instructions with timing and quantities
- Calculate accurate nutritional values per serving
- Make recipes practical for home cooking
- Keep the cuisine authentic (don't mix incompatible ingredients with the wrong cuisine)
- Include the best possible search query for a YouTube video of the same recipe
- {_LANGUAGE_INSTRUCTIONS[preferences.language]}

{OUTPUT_CONTRACT}
- If you cannot generate {GUIDED_RECIPE_COUNT} recipes, return as many as possible in the same format."""


def build_direct_recipe_prompt(request: DirectRecipeRequest) -> str:
    """Build the direct-flow prompt asking for one recipe of a named dish.

    Args:
        request: Dish name and language.

    Returns:
        Deterministic prompt text.
    """
    return f"""You are a helpful meal planner assistant.

Generate exactly {DIRECT_RECIPE_COUNT} recipe for "{request.dish_name}".

Requirements:
- Follow the traditional, most widely known way of cooking this dish
- Include ALL necessary ingredients with exact quantities
- Provide detailed step-by-step instructions with timing and quantities
- Calculate accurate nutritional values per serving
- Include the best possible search query for a YouTube video of the same recipe
- {_LANGUAGE_INSTRUCTIONS[request.language]}

{OUTPUT_CONTRACT}"""


def build_prompt(request: RecipeRequest) -> str:
    """Dispatch to the builder matching the request type."""
    if isinstance(request, DirectRecipeRequest):
        return build_direct_recipe_prompt(request)
    return build_recipe_prompt(request)
