"""Data models and schemas for the meal planner conversation.

Defines Pydantic models for the per-user session, the step-specific views
derived from it, recipe requests and generated recipes.
All models use Pydantic v2 for validation and JSON round-tripping.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from src.utils.errors import contract_violation
from src.utils.logger import logger


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Enumerations
# ============================================================================


class ConversationStep(str, Enum):
    LANGUAGE = "language"
    CHOICE = "choice"
    MEAL = "meal"
    DIET = "diet"
    INGREDIENTS = "ingredients"
    CUISINE = "cuisine"
    RECIPES = "recipes"


class Language(str, Enum):
    EN = "en"
    HI = "hi"
    HINGLISH = "hinglish"


class FlowChoice(str, Enum):
    """Guided suggestions or a dish the user already has in mind."""

    SUGGESTION = "suggestion"
    DIRECT = "direct"


class MealType(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    SNACKS = "snacks"
    DINNER = "dinner"


class DietType(str, Enum):
    VEGETARIAN = "vegetarian"
    EGGITARIAN = "eggitarian"
    NON_VEGETARIAN = "non_vegetarian"


class CuisineType(str, Enum):
    NORTH_INDIAN = "north_indian"
    SOUTH_INDIAN = "south_indian"
    THAI = "thai"
    MEXICAN = "mexican"
    ITALIAN = "italian"
    CONTINENTAL = "continental"
    MEDITERRANEAN = "mediterranean"
    CHINESE = "chinese"
    SURPRISE_ME = "surprise_me"


# ============================================================================
# Recipes
# ============================================================================


class Macros(BaseModel):
    """Nutrition per serving."""

    calories: Annotated[float, Field(ge=0, description="Energy per serving (kcal)")]
    protein: Annotated[float, Field(0, ge=0, description="Protein in grams")]
    carbs: Annotated[float, Field(0, ge=0, description="Carbohydrates in grams")]
    fat: Annotated[float, Field(0, ge=0, description="Fat in grams")]


class Recipe(BaseModel):
    """A validated recipe ready for display.

    Accepts both ``cooking_time`` and the model's ``cookingTime`` spelling on
    input; always serializes as ``cooking_time``.
    """

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    name: Annotated[str, Field(min_length=1, max_length=200)]
    search_query: Annotated[str, Field("", description="Keywords for a matching cooking video")]
    ingredients: Annotated[list[str], Field(min_length=1)]
    steps: Annotated[list[str], Field(min_length=1)]
    macros: Macros
    cooking_time: Annotated[
        str,
        Field("30 minutes", validation_alias=AliasChoices("cooking_time", "cookingTime")),
    ]
    servings: Annotated[int, Field(2, ge=1)]
    video_url: Annotated[
        Optional[str],
        Field(None, validation_alias=AliasChoices("video_url", "youtubeUrl")),
    ]

    @model_validator(mode="after")
    def validate_calories(self) -> "Recipe":
        """A recipe with no energy value is treated as garbage output."""
        if self.macros.calories <= 0:
            raise ValueError("macros.calories must be greater than 0")
        return self


_recipe_list_adapter = TypeAdapter(list[Recipe])


def dump_recipes(recipes: list[Recipe]) -> str:
    """Serialize recipes for storage in ``Session.recipes``."""
    return _recipe_list_adapter.dump_json(recipes).decode("utf-8")


def load_recipes(raw: Optional[str]) -> list[Recipe]:
    """Parse ``Session.recipes`` back into recipes.

    Malformed JSON yields an empty list; individual malformed entries are skipped.
    """
    if not raw:
        return []
    try:
        items = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Stored recipes are not valid JSON: {e}")
        return []
    if not isinstance(items, list):
        return []

    recipes = []
    for item in items:
        try:
            recipes.append(Recipe.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping malformed stored recipe: {e.error_count()} error(s)")
    return recipes


# ============================================================================
# Generation requests
# ============================================================================


class RecipePreferences(BaseModel):
    """Guided-flow request: 3 recipes matching the collected preferences."""

    model_config = ConfigDict(frozen=True)

    meal_type: MealType
    diet_type: DietType
    cuisine: CuisineType
    ingredients: tuple[str, ...] = ()
    language: Language = Language.EN
    custom_ingredient: Optional[str] = None


class DirectRecipeRequest(BaseModel):
    """Direct-flow request: 1 recipe for a named dish."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    dish_name: Annotated[str, Field(min_length=1, max_length=200)]
    language: Language = Language.EN


RecipeRequest = Union[RecipePreferences, DirectRecipeRequest]


# ============================================================================
# Session
# ============================================================================


class Session(BaseModel):
    """Per-user conversation record, persisted as one flat JSON document.

    ``step`` is always a valid ``ConversationStep``. ``ingredients`` behaves as an
    ordered set: duplicates and blanks are dropped, selection order is kept.
    ``recipes`` holds the last generated list as a JSON string.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: Annotated[str, Field(min_length=1)]
    step: ConversationStep = ConversationStep.LANGUAGE
    language: Language = Language.EN
    choice: Optional[FlowChoice] = None
    meal_type: Optional[MealType] = None
    diet_type: Optional[DietType] = None
    cuisine: Optional[CuisineType] = None
    ingredients: list[str] = Field(default_factory=list)
    custom_ingredient: Optional[str] = None
    direct_meal_name: Optional[str] = None
    recipes: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)

    @field_validator("ingredients", mode="before")
    @classmethod
    def dedupe_ingredients(cls, value):
        """Normalize to an ordered set of non-empty strings."""
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            raise ValueError("ingredients must be a list")
        seen: list[str] = []
        for item in value:
            name = str(item).strip()
            if name and name not in seen:
                seen.append(name)
        return seen

    @field_validator("timestamp")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        """Naive timestamps are interpreted as UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @classmethod
    def default(cls, user_id: str, language: Language = Language.EN) -> "Session":
        """Fresh session at the first step."""
        return cls(user_id=user_id, language=language)

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, raw: str) -> "Session":
        return cls.model_validate_json(raw)

    def stored_recipes(self) -> list[Recipe]:
        return load_recipes(self.recipes)

    def toggled_ingredients(self, ingredient: str) -> list[str]:
        """Ingredient list with ``ingredient`` removed if present, appended otherwise."""
        name = ingredient.strip()
        if name in self.ingredients:
            return [i for i in self.ingredients if i != name]
        return [*self.ingredients, name]

    def view(self, strict: Optional[bool] = None) -> "SessionView":
        """Project the session onto the view for its current step.

        Missing required fields are a contract violation: raised in strict mode,
        otherwise logged and replaced with safe defaults.
        """
        data = self.model_dump()
        data["recipes"] = [r.model_dump() for r in self.stored_recipes()]

        required = list(_REQUIRED_FIELDS[self.step])
        if self.step == ConversationStep.RECIPES:
            if data.get("choice") is None:
                contract_violation(f"user {self.user_id}: step recipes without a flow choice", strict)
                data["choice"] = _STEP_DEFAULTS["choice"]
            if data["choice"] == FlowChoice.SUGGESTION:
                required += ["meal_type", "diet_type", "cuisine"]

        missing = [name for name in required if data.get(name) is None]
        if missing:
            contract_violation(
                f"user {self.user_id}: step {self.step.value} is missing {', '.join(missing)}", strict
            )
            for name in missing:
                data[name] = _STEP_DEFAULTS[name]

        return _session_view_adapter.validate_python(data)


# ============================================================================
# Step views
# ============================================================================


class _StepView(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    user_id: str
    language: Language


class LanguageStepView(_StepView):
    step: Literal[ConversationStep.LANGUAGE]


class ChoiceStepView(_StepView):
    step: Literal[ConversationStep.CHOICE]


class MealStepView(_StepView):
    step: Literal[ConversationStep.MEAL]


class DietStepView(_StepView):
    step: Literal[ConversationStep.DIET]
    meal_type: MealType


class IngredientsStepView(_StepView):
    step: Literal[ConversationStep.INGREDIENTS]
    meal_type: MealType
    diet_type: DietType
    ingredients: list[str]
    custom_ingredient: Optional[str] = None


class CuisineStepView(_StepView):
    step: Literal[ConversationStep.CUISINE]
    meal_type: MealType
    diet_type: DietType
    ingredients: list[str]
    custom_ingredient: Optional[str] = None


class RecipesStepView(_StepView):
    step: Literal[ConversationStep.RECIPES]
    choice: FlowChoice
    meal_type: Optional[MealType] = None
    diet_type: Optional[DietType] = None
    cuisine: Optional[CuisineType] = None
    ingredients: list[str] = Field(default_factory=list)
    custom_ingredient: Optional[str] = None
    direct_meal_name: Optional[str] = None
    recipes: list[Recipe] = Field(default_factory=list)

    def generation_request(self) -> Optional[RecipeRequest]:
        """Request that (re)produces this view's recipes.

        Returns None in direct mode before a dish name has been given.
        """
        if self.choice == FlowChoice.DIRECT:
            if not self.direct_meal_name:
                return None
            return DirectRecipeRequest(dish_name=self.direct_meal_name, language=self.language)
        return RecipePreferences(
            meal_type=self.meal_type,
            diet_type=self.diet_type,
            cuisine=self.cuisine,
            ingredients=tuple(self.ingredients),
            language=self.language,
            custom_ingredient=self.custom_ingredient,
        )


SessionView = Annotated[
    Union[
        LanguageStepView,
        ChoiceStepView,
        MealStepView,
        DietStepView,
        IngredientsStepView,
        CuisineStepView,
        RecipesStepView,
    ],
    Field(discriminator="step"),
]

_session_view_adapter = TypeAdapter(SessionView)

_REQUIRED_FIELDS: dict[ConversationStep, tuple[str, ...]] = {
    ConversationStep.LANGUAGE: (),
    ConversationStep.CHOICE: (),
    ConversationStep.MEAL: (),
    ConversationStep.DIET: ("meal_type",),
    ConversationStep.INGREDIENTS: ("meal_type", "diet_type"),
    ConversationStep.CUISINE: ("meal_type", "diet_type"),
    ConversationStep.RECIPES: (),
}

# Degrade values used when a required field is missing outside strict mode
_STEP_DEFAULTS = {
    "meal_type": MealType.LUNCH,
    "diet_type": DietType.VEGETARIAN,
    "cuisine": CuisineType.SURPRISE_ME,
    "choice": FlowChoice.SUGGESTION,
}
