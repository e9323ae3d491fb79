"""Structured conversation commands and replies.

A transport decodes each button press into exactly one ``Command`` at its
boundary; the conversation engine never sees raw callback strings. The
compact callback encoding (``lang_en``, ``meal_lunch``, ``ingredient_Rice``,
``recipe_0`` ...) stays within Telegram's 64-byte callback data limit, which
is why ingredient names are capped in UTF-8 bytes rather than characters.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.models.models import CuisineType, DietType, FlowChoice, Language, MealType
from src.utils.errors import InvalidCommandError

MAX_CALLBACK_BYTES = 64
INGREDIENT_CALLBACK_PREFIX = "ingredient_"
MAX_INGREDIENT_BYTES = MAX_CALLBACK_BYTES - len(INGREDIENT_CALLBACK_PREFIX)


class _Command(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)


class PickLanguage(_Command):
    kind: Literal["pick_language"] = "pick_language"
    language: Language


class PickChoice(_Command):
    kind: Literal["pick_choice"] = "pick_choice"
    choice: FlowChoice


class PickMeal(_Command):
    kind: Literal["pick_meal"] = "pick_meal"
    meal_type: MealType


class PickDiet(_Command):
    kind: Literal["pick_diet"] = "pick_diet"
    diet_type: DietType


class ToggleIngredient(_Command):
    kind: Literal["toggle_ingredient"] = "toggle_ingredient"
    ingredient: Annotated[str, Field(min_length=1)]

    @field_validator("ingredient")
    @classmethod
    def _fits_callback(cls, v: str) -> str:
        if len(v.encode("utf-8")) > MAX_INGREDIENT_BYTES:
            raise ValueError(f"ingredient must be at most {MAX_INGREDIENT_BYTES} bytes in UTF-8")
        return v


class RequestCustomIngredient(_Command):
    kind: Literal["request_custom_ingredient"] = "request_custom_ingredient"


class CancelCustomIngredient(_Command):
    kind: Literal["cancel_custom_ingredient"] = "cancel_custom_ingredient"


class IngredientsDone(_Command):
    kind: Literal["ingredients_done"] = "ingredients_done"


class IngredientsSkip(_Command):
    kind: Literal["ingredients_skip"] = "ingredients_skip"


class PickCuisine(_Command):
    kind: Literal["pick_cuisine"] = "pick_cuisine"
    cuisine: CuisineType


class SelectRecipe(_Command):
    kind: Literal["select_recipe"] = "select_recipe"
    index: Annotated[int, Field(ge=0)]


class RegenerateRecipes(_Command):
    kind: Literal["regenerate_recipes"] = "regenerate_recipes"


class BackToRecipes(_Command):
    kind: Literal["back_to_recipes"] = "back_to_recipes"


class Reset(_Command):
    kind: Literal["reset"] = "reset"


Command = Annotated[
    Union[
        PickLanguage,
        PickChoice,
        PickMeal,
        PickDiet,
        ToggleIngredient,
        RequestCustomIngredient,
        CancelCustomIngredient,
        IngredientsDone,
        IngredientsSkip,
        PickCuisine,
        SelectRecipe,
        RegenerateRecipes,
        BackToRecipes,
        Reset,
    ],
    Field(discriminator="kind"),
]


class ReplyOption(BaseModel):
    """A selectable button: display label plus the command it sends back."""

    model_config = ConfigDict(frozen=True)

    label: str
    command: Command

    @property
    def callback_data(self) -> str:
        return encode_command(self.command)


class Reply(BaseModel):
    """Text to show plus rows of options."""

    text: str
    options: list[list[ReplyOption]] = Field(default_factory=list)

    def flat_options(self) -> list[ReplyOption]:
        return [option for row in self.options for option in row]


# ============================================================================
# Callback data codec
# ============================================================================

_CHOICE_WIRE = {"suggestions": FlowChoice.SUGGESTION, "direct": FlowChoice.DIRECT}
_CHOICE_WIRE_REVERSE = {v: k for k, v in _CHOICE_WIRE.items()}

_SIMPLE_CALLBACKS = {
    "/start": Reset(),
    "ingredient_custom": RequestCustomIngredient(),
    "ingredient_cancel": CancelCustomIngredient(),
    "ingredient_done": IngredientsDone(),
    "ingredient_skip": IngredientsSkip(),
    "recipe_regenerate": RegenerateRecipes(),
    "recipe_back": BackToRecipes(),
}
_SIMPLE_CALLBACKS_REVERSE = {type(cmd): data for data, cmd in _SIMPLE_CALLBACKS.items()}


def _decode(data: str) -> Command:
    if data in _SIMPLE_CALLBACKS:
        return _SIMPLE_CALLBACKS[data]

    prefix, sep, value = data.partition("_")
    if not sep or not value:
        raise InvalidCommandError(f"Unrecognized callback data: {data!r}")

    if prefix == "lang":
        return PickLanguage(language=value)
    if prefix == "choice":
        if value not in _CHOICE_WIRE:
            raise InvalidCommandError(f"Unknown flow choice: {value!r}")
        return PickChoice(choice=_CHOICE_WIRE[value])
    if prefix == "meal":
        return PickMeal(meal_type=value)
    if prefix == "diet":
        return PickDiet(diet_type=value)
    if prefix == "cuisine":
        return PickCuisine(cuisine=value)
    if prefix == "ingredient":
        return ToggleIngredient(ingredient=value)
    if prefix == "recipe":
        if not value.isdigit():
            raise InvalidCommandError(f"Invalid recipe index: {value!r}")
        return SelectRecipe(index=int(value))

    raise InvalidCommandError(f"Unrecognized callback data: {data!r}")


def parse_callback_data(data: str) -> Command:
    """Decode transport callback data into a command.

    Args:
        data: Raw callback string such as ``"meal_lunch"``.

    Returns:
        The decoded command.

    Raises:
        InvalidCommandError: Unknown prefix or invalid payload.
    """
    if not isinstance(data, str) or not data.strip():
        raise InvalidCommandError("Empty callback data")
    try:
        return _decode(data.strip())
    except ValidationError as e:
        raise InvalidCommandError(f"Invalid callback payload {data!r}: {e.errors()[0]['msg']}") from e


def encode_command(command: Command) -> str:
    """Inverse of ``parse_callback_data``."""
    if type(command) in _SIMPLE_CALLBACKS_REVERSE:
        return _SIMPLE_CALLBACKS_REVERSE[type(command)]
    if isinstance(command, PickLanguage):
        return f"lang_{command.language.value}"
    if isinstance(command, PickChoice):
        return f"choice_{_CHOICE_WIRE_REVERSE[command.choice]}"
    if isinstance(command, PickMeal):
        return f"meal_{command.meal_type.value}"
    if isinstance(command, PickDiet):
        return f"diet_{command.diet_type.value}"
    if isinstance(command, PickCuisine):
        return f"cuisine_{command.cuisine.value}"
    if isinstance(command, ToggleIngredient):
        return f"{INGREDIENT_CALLBACK_PREFIX}{command.ingredient}"
    if isinstance(command, SelectRecipe):
        return f"recipe_{command.index}"
    raise InvalidCommandError(f"Cannot encode command: {command!r}")
