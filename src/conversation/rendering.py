"""Pure text formatting for recipes (Telegram-style Markdown)."""

from src.constants.messages import get_message
from src.models.models import Language, Recipe


def format_number(value: float) -> str:
    """350.0 → "350", 12.5 → "12.5"."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def format_recipe(recipe: Recipe, language: Language = Language.EN) -> str:
    """Full recipe card: header, time, ingredients, steps, nutrition, optional video."""
    macros = recipe.macros
    lines = [
        f"🍽️ *{recipe.name}* ({get_message('serves', language)} {recipe.servings})",
        f"⏱️ *{get_message('cooking_time_label', language)}* {recipe.cooking_time}",
        "",
        f"*{get_message('ingredients_label', language)}*",
    ]
    lines += [f"   {i}. {ingredient}" for i, ingredient in enumerate(recipe.ingredients, start=1)]

    lines += ["", f"*{get_message('steps_label', language)}*"]
    for i, step in enumerate(recipe.steps, start=1):
        lines += [f"   *{i}.* {step}", ""]

    lines += [
        f"*{get_message('macros_label', language)}*",
        f"🔥 *{format_number(macros.calories)} {get_message('calories', language)}*",
        f"💪 {get_message('protein', language)}: {format_number(macros.protein)}g",
        f"🌾 {get_message('carbs', language)}: {format_number(macros.carbs)}g",
        f"🥑 {get_message('fat', language)}: {format_number(macros.fat)}g",
    ]

    if recipe.video_url:
        lines += ["", f"*{get_message('video_label', language)}* {recipe.video_url}"]

    return "\n".join(lines)


def format_recipe_list(recipes: list[Recipe], language: Language = Language.EN) -> str:
    """Numbered summary with calories per recipe."""
    lines = [get_message("recipe_list_header", language), ""]
    lines += [
        f"{i}. *{recipe.name}* ({format_number(recipe.macros.calories)} cal)"
        for i, recipe in enumerate(recipes, start=1)
    ]
    lines += ["", get_message("recipe_list_footer", language)]
    return "\n".join(lines)
