"""Recipe generation: prompt → model → validated recipes.

The model is treated as an untrusted text source. Its output goes through:

1. Extraction of the first ``[...]`` span (models like to add prose or code fences)
2. JSON parsing; anything but an array is a failure
3. Structural check: every element needs ``name``, ``ingredients``, ``steps``
   and a ``macros`` object, otherwise the whole batch is rejected
4. Repair: numbers coerce to 0, lists to list-of-strings, defaults for
   ``cookingTime`` and ``servings``
5. Validation through ``Recipe``; elements that are still invalid are dropped
6. Truncation to 3

Any failure (adapter error, timeout, malformed output, nothing valid left)
returns the static fallback set. ``generate`` never raises.
"""

import asyncio
import json
import math
import re
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from src.models.models import Macros, Recipe, RecipeRequest
from src.prompts.prompts import MAX_RECIPES, build_prompt
from src.utils.config import config
from src.utils.errors import GenerationError
from src.utils.logger import logger
from src.utils.safe_execute import capture_async

_JSON_ARRAY_PATTERN = re.compile(r"\[.*\]", re.DOTALL)
_REQUIRED_KEYS = ("name", "ingredients", "steps", "macros")
_TRANSIENT_KEYWORDS = ("timeout", "timed out", "connection", "unavailable", "retryable")
_TRANSIENT_STATUS_CODES = {429, 500, 502, 503, 504}
# Status codes quoted in error text; whole numbers only, so "1500 tokens" is not a 500
_TRANSIENT_STATUS_PATTERN = re.compile(r"\b(?:429|500|502|503|504)\b")

DEFAULT_COOKING_TIME = "30 minutes"
DEFAULT_SERVINGS = 2


class CompletionAdapter(Protocol):
    async def complete(self, prompt: str) -> str: ...


class RecipeParseError(ValueError):
    """Model output could not be turned into recipes."""


_FALLBACK_TEMPLATE = {
    "name": "Simple Vegetable Rice",
    "search_query": "Simple Vegetable Rice",
    "ingredients": ["rice", "mixed vegetables", "oil", "spices"],
    "steps": ["Cook rice", "Sauté vegetables", "Mix together", "Serve hot"],
    "macros": {"calories": 350, "protein": 8, "carbs": 65, "fat": 8},
    "cooking_time": "20 minutes",
    "servings": 2,
}

FALLBACK_RECIPES: tuple[Recipe, ...] = (
    Recipe.model_validate(_FALLBACK_TEMPLATE),
    Recipe.model_validate({**_FALLBACK_TEMPLATE, "name": "Simple Vegetable Rice (Variation 1)"}),
    Recipe.model_validate({**_FALLBACK_TEMPLATE, "name": "Simple Vegetable Rice (Variation 2)"}),
)


def fallback_recipes() -> list[Recipe]:
    """Fresh copies of the static fallback set (3 recipes)."""
    return [recipe.model_copy(deep=True) for recipe in FALLBACK_RECIPES]


# ============================================================================
# Parsing helpers
# ============================================================================


def _to_number(value: Any) -> float:
    """Coerce to a finite, non-negative number; anything else becomes 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


def _to_str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    items = []
    for item in value:
        if item is None or isinstance(item, (dict, list)):
            continue
        text = str(item).strip()
        if text:
            items.append(text)
    return items


def extract_json_array(text: str) -> list:
    """Return the first bracketed JSON array found in ``text``.

    Raises:
        RecipeParseError: No array-shaped span, invalid JSON, or not an array.
    """
    match = _JSON_ARRAY_PATTERN.search(text or "")
    if not match:
        raise RecipeParseError("No JSON array found in model response")
    try:
        parsed = json.loads(match.group())
    except json.JSONDecodeError as e:
        raise RecipeParseError(f"Model response is not valid JSON: {e}") from e
    if not isinstance(parsed, list):
        raise RecipeParseError("Model response is not an array")
    return parsed


def coerce_recipe(raw: Any, index: int) -> dict[str, Any]:
    """Repair one raw element into ``Recipe`` input.

    Raises:
        RecipeParseError: Element is not an object or lacks a required key.
    """
    if not isinstance(raw, dict) or any(key not in raw for key in _REQUIRED_KEYS):
        raise RecipeParseError(f"Invalid recipe structure at index {index}")
    macros = raw["macros"]
    if not isinstance(macros, dict):
        raise RecipeParseError(f"Invalid macros at index {index}")

    servings = int(_to_number(raw.get("servings")))
    return {
        "name": str(raw["name"] or "").strip(),
        "search_query": str(raw.get("search_query") or "").strip(),
        "ingredients": _to_str_list(raw["ingredients"]),
        "steps": _to_str_list(raw["steps"]),
        "macros": {field: _to_number(macros.get(field)) for field in Macros.model_fields},
        "cooking_time": str(raw.get("cookingTime") or raw.get("cooking_time") or DEFAULT_COOKING_TIME),
        "servings": servings if servings >= 1 else DEFAULT_SERVINGS,
    }


def parse_recipes(text: str, limit: int = MAX_RECIPES) -> list[Recipe]:
    """Parse model output into at most ``limit`` valid recipes.

    Raises:
        RecipeParseError: The batch is structurally unusable.
    """
    candidates = [coerce_recipe(raw, i) for i, raw in enumerate(extract_json_array(text))]

    recipes = []
    for i, candidate in enumerate(candidates):
        try:
            recipes.append(Recipe.model_validate(candidate))
        except ValidationError as e:
            logger.warning(f"Dropping invalid recipe at index {i}: {e.error_count()} validation error(s)")
    return recipes[:limit]


def is_transient_error(error: BaseException) -> bool:
    """Timeouts, connection problems, rate limits and 5xx are worth retrying."""
    if isinstance(error, asyncio.TimeoutError):
        return True
    cause = error.__cause__
    if getattr(cause, "code", None) in _TRANSIENT_STATUS_CODES:
        return True
    error_str = str(error).lower()
    if _TRANSIENT_STATUS_PATTERN.search(error_str):
        return True
    return any(keyword in error_str for keyword in _TRANSIENT_KEYWORDS)


# ============================================================================
# Generator
# ============================================================================


class RecipeGenerator:
    """Generate recipes through a completion adapter with retries and fallback."""

    def __init__(
        self,
        adapter: CompletionAdapter,
        timeout_seconds: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay_seconds: Optional[float] = None,
    ) -> None:
        """Initialize generator.

        Args:
            adapter: Object with ``async complete(prompt) -> str``.
            timeout_seconds: Per-attempt timeout. Defaults to ``config.GENERATION_TIMEOUT_SECONDS``.
            max_retries: Total attempts. Defaults to ``config.MAX_RETRIES``.
            retry_delay_seconds: Initial backoff, doubled per retry. Defaults to ``config.DELAY_BETWEEN_RETRIES``.
        """
        self.adapter = adapter
        self.timeout_seconds = timeout_seconds or config.GENERATION_TIMEOUT_SECONDS
        self.max_retries = max_retries or config.MAX_RETRIES
        self.retry_delay_seconds = (
            config.DELAY_BETWEEN_RETRIES if retry_delay_seconds is None else retry_delay_seconds
        )

    async def _complete_with_retries(self, prompt: str) -> str:
        """Call the adapter with a timeout, retrying transient failures with exponential backoff.

        Raises:
            GenerationError: Permanent failure or retries exhausted.
        """
        delay_seconds = self.retry_delay_seconds
        for attempt in range(1, self.max_retries + 1):
            try:
                return await asyncio.wait_for(self.adapter.complete(prompt), timeout=self.timeout_seconds)
            except Exception as e:
                if not is_transient_error(e) or attempt >= self.max_retries:
                    if isinstance(e, asyncio.TimeoutError):
                        raise GenerationError(f"Model call timed out after {self.timeout_seconds}s") from e
                    if isinstance(e, GenerationError):
                        raise
                    raise GenerationError(str(e)) from e
                logger.debug(
                    f"Transient generation error, retrying (attempt {attempt + 1}/{self.max_retries}) "
                    f"after {delay_seconds}s: {e!r}"
                )
                await asyncio.sleep(delay_seconds)
                delay_seconds *= 2
        raise GenerationError("Generation retries exhausted")

    async def generate(self, request: RecipeRequest) -> list[Recipe]:
        """Generate up to 3 validated recipes for ``request``.

        Returns:
            Parsed recipes, or the static fallback set on any failure.
        """
        prompt = build_prompt(request)
        result = await capture_async(
            self._complete_with_retries(prompt),
            "Recipe generation",
            log_level="error",
        )
        if not result.ok:
            logger.warning("Using fallback recipes after generation failure")
            return fallback_recipes()

        try:
            recipes = parse_recipes(result.value)
        except RecipeParseError as e:
            logger.error(f"Failed to parse model recipe response: {e}")
            return fallback_recipes()

        if not recipes:
            logger.warning("Model returned no usable recipes, using fallback recipes")
            return fallback_recipes()

        logger.info(f"Generated {len(recipes)} recipes")
        return recipes
