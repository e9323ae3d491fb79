"""Unit tests for the callback data codec."""

import pytest
from pydantic import ValidationError

from src.conversation.commands import (
    MAX_INGREDIENT_BYTES,
    BackToRecipes,
    CancelCustomIngredient,
    IngredientsDone,
    IngredientsSkip,
    PickChoice,
    PickCuisine,
    PickDiet,
    PickLanguage,
    PickMeal,
    RegenerateRecipes,
    Reply,
    ReplyOption,
    RequestCustomIngredient,
    Reset,
    SelectRecipe,
    ToggleIngredient,
    encode_command,
    parse_callback_data,
)
from src.models.models import CuisineType, DietType, FlowChoice, Language, MealType
from src.utils.errors import InvalidCommandError


class TestParseCallbackData:
    """Test decoding of every callback the bot emits."""

    @pytest.mark.parametrize(
        "data,expected",
        [
            ("lang_en", PickLanguage(language=Language.EN)),
            ("lang_hinglish", PickLanguage(language=Language.HINGLISH)),
            ("choice_suggestions", PickChoice(choice=FlowChoice.SUGGESTION)),
            ("choice_direct", PickChoice(choice=FlowChoice.DIRECT)),
            ("meal_snacks", PickMeal(meal_type=MealType.SNACKS)),
            ("diet_non_vegetarian", PickDiet(diet_type=DietType.NON_VEGETARIAN)),
            ("cuisine_south_indian", PickCuisine(cuisine=CuisineType.SOUTH_INDIAN)),
            ("cuisine_surprise_me", PickCuisine(cuisine=CuisineType.SURPRISE_ME)),
            ("ingredient_Paneer", ToggleIngredient(ingredient="Paneer")),
            ("ingredient_Green Chili", ToggleIngredient(ingredient="Green Chili")),
            ("ingredient_custom", RequestCustomIngredient()),
            ("ingredient_cancel", CancelCustomIngredient()),
            ("ingredient_done", IngredientsDone()),
            ("ingredient_skip", IngredientsSkip()),
            ("recipe_0", SelectRecipe(index=0)),
            ("recipe_2", SelectRecipe(index=2)),
            ("recipe_regenerate", RegenerateRecipes()),
            ("recipe_back", BackToRecipes()),
            ("/start", Reset()),
        ],
    )
    def test_known_callbacks(self, data, expected):
        assert parse_callback_data(data) == expected

    @pytest.mark.parametrize(
        "data",
        ["", "   ", "lang", "lang_", "lang_fr", "choice_maybe", "meal_brunch", "recipe_x", "recipe_-1", "dessert_cake"],
    )
    def test_invalid_callbacks_raise(self, data):
        with pytest.raises(InvalidCommandError):
            parse_callback_data(data)

    def test_overlong_ingredient_rejected(self):
        with pytest.raises(InvalidCommandError):
            parse_callback_data("ingredient_" + "x" * (MAX_INGREDIENT_BYTES + 1))

    def test_ingredient_limit_counts_utf8_bytes(self):
        # 18 Devanagari letters: 18 characters, 54 bytes
        with pytest.raises(ValidationError):
            ToggleIngredient(ingredient="क" * 18)

    def test_longest_ingredient_fits_callback_limit(self):
        command = ToggleIngredient(ingredient="x" * MAX_INGREDIENT_BYTES)

        assert len(encode_command(command).encode("utf-8")) == 64
        assert parse_callback_data(encode_command(command)) == command


class TestEncodeCommand:
    """Encoding is the inverse of parsing for the emitted callbacks."""

    @pytest.mark.parametrize(
        "data",
        ["lang_hi", "choice_suggestions", "meal_dinner", "diet_eggitarian", "cuisine_thai",
         "ingredient_Rice", "ingredient_done", "recipe_1", "recipe_back", "/start"],
    )
    def test_encode_reverses_parse(self, data):
        assert encode_command(parse_callback_data(data)) == data

    def test_reply_option_exposes_callback_data(self):
        option = ReplyOption(label="🍛 Lunch", command=PickMeal(meal_type=MealType.LUNCH))
        assert option.callback_data == "meal_lunch"

    def test_reply_flat_options(self):
        reply = Reply(
            text="Pick",
            options=[
                [ReplyOption(label="A", command=SelectRecipe(index=0))],
                [ReplyOption(label="B", command=SelectRecipe(index=1)), ReplyOption(label="C", command=Reset())],
            ],
        )

        assert [o.label for o in reply.flat_options()] == ["A", "B", "C"]
