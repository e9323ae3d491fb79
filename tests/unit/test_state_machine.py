"""Unit tests for the conversation state machine."""

import asyncio
import gc

import pytest

from src.constants.messages import get_message
from src.conversation.commands import (
    MAX_INGREDIENT_BYTES,
    BackToRecipes,
    IngredientsDone,
    IngredientsSkip,
    PickChoice,
    PickCuisine,
    PickDiet,
    PickLanguage,
    PickMeal,
    RegenerateRecipes,
    RequestCustomIngredient,
    SelectRecipe,
    ToggleIngredient,
)
from src.models.models import (
    ConversationStep,
    CuisineType,
    DietType,
    FlowChoice,
    Language,
    MealType,
    Session,
)
from src.services.generator import FALLBACK_RECIPES
from src.utils.errors import SessionContractError
from tests.unit.fakes import (
    FailingCompletionAdapter,
    FakeCompletionAdapter,
    FakeVideoAdapter,
    build_engine,
    make_raw_recipe,
    model_response,
)

USER = "user-1"


async def _walk_to_ingredients(engine, user_id=USER):
    await engine.handle_reset(user_id)
    await engine.handle_command(user_id, PickLanguage(language=Language.EN))
    await engine.handle_command(user_id, PickChoice(choice=FlowChoice.SUGGESTION))
    await engine.handle_command(user_id, PickMeal(meal_type=MealType.LUNCH))
    return await engine.handle_command(user_id, PickDiet(diet_type=DietType.VEGETARIAN))


async def _walk_to_recipes(engine, user_id=USER):
    await _walk_to_ingredients(engine, user_id)
    await engine.handle_command(user_id, ToggleIngredient(ingredient="Rice"))
    await engine.handle_command(user_id, IngredientsDone())
    return await engine.handle_command(user_id, PickCuisine(cuisine=CuisineType.NORTH_INDIAN))


class TestGuidedFlow:
    """Test the full suggestion flow through every step."""

    @pytest.mark.asyncio
    async def test_happy_path_ends_with_recipes(self, three_recipe_response):
        adapter = FakeCompletionAdapter(three_recipe_response)
        video = FakeVideoAdapter()
        engine = build_engine(adapter, video)

        reply = await engine.handle_reset(USER)
        assert [o.callback_data for o in reply.flat_options()] == ["lang_en", "lang_hi", "lang_hinglish"]

        reply = await engine.handle_callback(USER, "lang_en")
        assert [o.callback_data for o in reply.flat_options()] == ["choice_suggestions", "choice_direct"]

        reply = await engine.handle_callback(USER, "choice_suggestions")
        assert "meal_lunch" in [o.callback_data for o in reply.flat_options()]

        await engine.handle_callback(USER, "meal_lunch")
        reply = await engine.handle_callback(USER, "diet_vegetarian")
        assert "ingredient_Rice" in [o.callback_data for o in reply.flat_options()]

        await engine.handle_callback(USER, "ingredient_Rice")
        await engine.handle_callback(USER, "ingredient_Onion")
        reply = await engine.handle_callback(USER, "ingredient_done")
        assert "cuisine_surprise_me" in [o.callback_data for o in reply.flat_options()]

        reply = await engine.handle_callback(USER, "cuisine_north_indian")

        session = await engine.store.get(USER)
        assert session.step == ConversationStep.RECIPES
        assert session.ingredients == ["Rice", "Onion"]
        stored = session.stored_recipes()
        assert 1 <= len(stored) <= 3
        assert [r.name for r in stored] == ["Jeera Rice", "Onion Pulao", "Tomato Rice"]
        assert all(r.video_url for r in stored)

        assert "1. *Jeera Rice* (420 cal)" in reply.text
        assert [o.callback_data for o in reply.flat_options()] == ["recipe_0", "recipe_1", "recipe_2", "recipe_regenerate"]
        assert "Rice, Onion" in adapter.prompts[0]
        assert "north indian" in adapter.prompts[0]

    @pytest.mark.asyncio
    async def test_model_failure_stores_fallback_recipes(self):
        engine = build_engine(FailingCompletionAdapter(), FakeVideoAdapter(has_credential=False))

        await _walk_to_recipes(engine)

        session = await engine.store.get(USER)
        assert session.step == ConversationStep.RECIPES
        assert session.stored_recipes() == list(FALLBACK_RECIPES)

    @pytest.mark.asyncio
    async def test_progress_callback_announces_generation(self, three_recipe_response):
        engine = build_engine(FakeCompletionAdapter(three_recipe_response))
        progress = []

        async def on_progress(user_id, text):
            progress.append((user_id, text))

        engine.progress_callback = on_progress
        await _walk_to_recipes(engine)

        assert progress == [(USER, get_message("generating_recipes", Language.EN))]

    @pytest.mark.asyncio
    async def test_zero_ingredients_allowed(self, three_recipe_response):
        adapter = FakeCompletionAdapter(three_recipe_response)
        engine = build_engine(adapter)
        await _walk_to_ingredients(engine)

        await engine.handle_command(USER, IngredientsDone())
        await engine.handle_command(USER, PickCuisine(cuisine=CuisineType.SURPRISE_ME))

        assert (await engine.store.get(USER)).step == ConversationStep.RECIPES
        assert "any available ingredients" in adapter.prompts[0]


class TestIngredientSelection:
    """Test toggling, custom entries and skipping."""

    @pytest.mark.asyncio
    async def test_toggle_twice_deselects(self):
        engine = build_engine(FakeCompletionAdapter("[]"))
        await _walk_to_ingredients(engine)

        reply = await engine.handle_command(USER, ToggleIngredient(ingredient="Paneer"))
        assert "✅ Paneer" in [o.label for o in reply.flat_options()]
        assert (await engine.store.get(USER)).ingredients == ["Paneer"]

        reply = await engine.handle_command(USER, ToggleIngredient(ingredient="Paneer"))
        assert "Paneer" in [o.label for o in reply.flat_options()]
        assert (await engine.store.get(USER)).ingredients == []

    @pytest.mark.asyncio
    async def test_skip_clears_selection(self):
        engine = build_engine(FakeCompletionAdapter("[]"))
        await _walk_to_ingredients(engine)
        await engine.handle_command(USER, ToggleIngredient(ingredient="Rice"))

        await engine.handle_command(USER, IngredientsSkip())

        session = await engine.store.get(USER)
        assert session.step == ConversationStep.CUISINE
        assert session.ingredients == []

    @pytest.mark.asyncio
    async def test_custom_ingredient_text(self):
        engine = build_engine(FakeCompletionAdapter("[]"))
        await _walk_to_ingredients(engine)

        reply = await engine.handle_command(USER, RequestCustomIngredient())
        assert reply.text == get_message("custom_ingredient_prompt", Language.EN)

        reply = await engine.handle_text(USER, "  Tofu  ")

        session = await engine.store.get(USER)
        assert session.step == ConversationStep.INGREDIENTS
        assert session.ingredients == ["Tofu"]
        assert session.custom_ingredient == "Tofu"
        assert "✅ Tofu" in [o.label for o in reply.flat_options()]

    @pytest.mark.asyncio
    async def test_custom_ingredient_not_duplicated(self):
        engine = build_engine(FakeCompletionAdapter("[]"))
        await _walk_to_ingredients(engine)
        await engine.handle_command(USER, ToggleIngredient(ingredient="Rice"))

        await engine.handle_text(USER, "Rice")

        assert (await engine.store.get(USER)).ingredients == ["Rice"]

    @pytest.mark.asyncio
    async def test_overlong_custom_ingredient_rejected(self):
        engine = build_engine(FakeCompletionAdapter("[]"))
        await _walk_to_ingredients(engine)

        reply = await engine.handle_text(USER, "x" * (MAX_INGREDIENT_BYTES + 1))

        assert reply.text.startswith(get_message("use_buttons", Language.EN))
        assert (await engine.store.get(USER)).ingredients == []

    @pytest.mark.asyncio
    async def test_custom_ingredient_capped_in_bytes_not_characters(self):
        engine = build_engine(FakeCompletionAdapter("[]"))
        await _walk_to_ingredients(engine)

        # 18 Devanagari letters are 54 bytes in UTF-8
        reply = await engine.handle_text(USER, "क" * 18)

        assert reply.text.startswith(get_message("use_buttons", Language.EN))
        assert (await engine.store.get(USER)).ingredients == []

    @pytest.mark.asyncio
    async def test_longest_custom_ingredient_button_fits_callback_limit(self):
        engine = build_engine(FakeCompletionAdapter("[]"))
        await _walk_to_ingredients(engine)
        name = "y" * MAX_INGREDIENT_BYTES

        reply = await engine.handle_text(USER, name)

        assert (await engine.store.get(USER)).ingredients == [name]
        assert all(len(o.callback_data.encode("utf-8")) <= 64 for o in reply.flat_options())


class TestInvalidInput:
    """Invalid input gets guidance and leaves the session untouched."""

    @pytest.mark.asyncio
    async def test_free_text_at_cuisine_step_keeps_state(self):
        engine = build_engine(FakeCompletionAdapter("[]"))
        await _walk_to_ingredients(engine)
        await engine.handle_command(USER, IngredientsDone())
        before = await engine.store.get(USER)

        reply = await engine.handle_text(USER, "anything spicy")

        after = await engine.store.get(USER)
        assert after.step == ConversationStep.CUISINE
        assert after.model_dump(exclude={"timestamp"}) == before.model_dump(exclude={"timestamp"})
        assert get_message("use_buttons", Language.EN) in reply.text
        assert "cuisine_thai" in [o.callback_data for o in reply.flat_options()]

    @pytest.mark.asyncio
    async def test_out_of_sequence_command_rejected(self):
        engine = build_engine(FakeCompletionAdapter("[]"))
        await engine.handle_reset(USER)

        reply = await engine.handle_command(USER, PickMeal(meal_type=MealType.DINNER))

        session = await engine.store.get(USER)
        assert session.step == ConversationStep.LANGUAGE
        assert session.meal_type is None
        assert [o.callback_data for o in reply.flat_options()] == ["lang_en", "lang_hi", "lang_hinglish"]

    @pytest.mark.asyncio
    async def test_garbage_callback_rejected(self):
        engine = build_engine(FakeCompletionAdapter("[]"))
        await engine.handle_reset(USER)

        reply = await engine.handle_callback(USER, "meal_brunch")

        assert get_message("use_buttons", Language.EN) in reply.text
        assert (await engine.store.get(USER)).step == ConversationStep.LANGUAGE

    @pytest.mark.asyncio
    async def test_select_out_of_range_rejected(self, three_recipe_response):
        engine = build_engine(FakeCompletionAdapter(three_recipe_response))
        await _walk_to_recipes(engine)

        reply = await engine.handle_command(USER, SelectRecipe(index=7))

        assert get_message("use_buttons", Language.EN) in reply.text


class TestRecipesStep:
    """Test browsing and regeneration."""

    @pytest.mark.asyncio
    async def test_select_and_back_do_not_call_model(self, three_recipe_response):
        adapter = FakeCompletionAdapter(three_recipe_response)
        engine = build_engine(adapter)
        await _walk_to_recipes(engine)

        detail = await engine.handle_command(USER, SelectRecipe(index=1))
        assert "🍽️ *Onion Pulao*" in detail.text
        assert [o.callback_data for o in detail.flat_options()] == ["recipe_back", "recipe_regenerate"]

        listing = await engine.handle_command(USER, BackToRecipes())
        assert "2. *Onion Pulao*" in listing.text
        assert len(adapter.prompts) == 1

    @pytest.mark.asyncio
    async def test_regenerate_replaces_recipes(self, three_recipe_response):
        adapter = FakeCompletionAdapter(three_recipe_response, model_response(make_raw_recipe("Veg Biryani")))
        engine = build_engine(adapter)
        await _walk_to_recipes(engine)

        reply = await engine.handle_command(USER, RegenerateRecipes())

        assert len(adapter.prompts) == 2
        assert adapter.prompts[0] == adapter.prompts[1]
        assert "1. *Veg Biryani*" in reply.text
        assert [r.name for r in (await engine.store.get(USER)).stored_recipes()] == ["Veg Biryani"]

    @pytest.mark.asyncio
    async def test_current_prompt_shows_stored_recipes_without_generating(self, three_recipe_response):
        adapter = FakeCompletionAdapter(three_recipe_response)
        engine = build_engine(adapter)
        await _walk_to_recipes(engine)

        reply = await engine.current_prompt(USER)

        assert "1. *Jeera Rice*" in reply.text
        assert len(adapter.prompts) == 1


class TestDirectFlow:
    """Test the 'I know what to cook' flow."""

    @pytest.mark.asyncio
    async def test_dish_name_generates_single_recipe_detail(self):
        adapter = FakeCompletionAdapter(
            model_response(make_raw_recipe("Rajma Chawal"), make_raw_recipe("Extra One"))
        )
        engine = build_engine(adapter)
        await engine.handle_reset(USER)
        await engine.handle_command(USER, PickLanguage(language=Language.EN))

        prompt = await engine.handle_command(USER, PickChoice(choice=FlowChoice.DIRECT))
        assert prompt.text == get_message("direct_recipe_prompt", Language.EN)

        reply = await engine.handle_text(USER, "Rajma Chawal")

        assert "🍽️ *Rajma Chawal*" in reply.text
        assert "Extra One" not in reply.text
        assert 'recipe for "Rajma Chawal"' in adapter.prompts[0]
        session = await engine.store.get(USER)
        assert session.step == ConversationStep.RECIPES
        assert session.direct_meal_name == "Rajma Chawal"

    @pytest.mark.asyncio
    async def test_regenerate_before_dish_name_asks_again(self):
        adapter = FakeCompletionAdapter("[]")
        engine = build_engine(adapter)
        await engine.handle_reset(USER)
        await engine.handle_command(USER, PickLanguage(language=Language.HI))
        await engine.handle_command(USER, PickChoice(choice=FlowChoice.DIRECT))

        reply = await engine.handle_command(USER, RegenerateRecipes())

        assert reply.text == get_message("direct_recipe_prompt", Language.HI)
        assert adapter.prompts == []


class TestResetAndErrors:
    """Test reset at any step and recovery from unexpected failures."""

    @pytest.mark.asyncio
    async def test_start_text_resets_from_any_step(self):
        engine = build_engine(FakeCompletionAdapter("[]"))
        await _walk_to_ingredients(engine)

        reply = await engine.handle_text(USER, "/start")

        session = await engine.store.get(USER)
        assert session.step == ConversationStep.LANGUAGE
        assert session.meal_type is None
        assert reply.text == get_message("welcome", Language.EN)

    @pytest.mark.asyncio
    async def test_start_callback_resets(self):
        engine = build_engine(FakeCompletionAdapter("[]"))
        await _walk_to_ingredients(engine)

        await engine.handle_callback(USER, "/start")

        assert (await engine.store.get(USER)).step == ConversationStep.LANGUAGE

    @pytest.mark.asyncio
    async def test_unexpected_error_restores_snapshot(self):
        engine = build_engine(FakeCompletionAdapter("[]"))

        async def explode(request, user_id=None):
            raise RuntimeError("pipeline crashed")

        engine.recipe_service.generate_recipes = explode
        await _walk_to_ingredients(engine)
        await engine.handle_command(USER, IngredientsDone())

        reply = await engine.handle_command(USER, PickCuisine(cuisine=CuisineType.THAI))

        assert reply.text == get_message("error_message", Language.EN)
        session = await engine.store.get(USER)
        assert session.step == ConversationStep.CUISINE
        assert session.cuisine is None

    @pytest.mark.asyncio
    async def test_contract_violation_raises_in_strict_mode(self):
        engine = build_engine(FakeCompletionAdapter("[]"), strict=True)
        await engine.store.set(USER, Session(user_id=USER, step=ConversationStep.INGREDIENTS))

        with pytest.raises(SessionContractError):
            await engine.handle_command(USER, ToggleIngredient(ingredient="Rice"))

        assert (await engine.store.get(USER)).ingredients == []

    @pytest.mark.asyncio
    async def test_contract_violation_degrades_when_not_strict(self):
        engine = build_engine(FakeCompletionAdapter("[]"), strict=False)
        await engine.store.set(USER, Session(user_id=USER, step=ConversationStep.INGREDIENTS))

        reply = await engine.handle_command(USER, ToggleIngredient(ingredient="Rice"))

        assert "✅ Rice" in [o.label for o in reply.flat_options()]


class TestConcurrency:
    """Events for one user are serialized; users are isolated."""

    @pytest.mark.asyncio
    async def test_concurrent_toggles_are_all_applied(self):
        engine = build_engine(FakeCompletionAdapter("[]"))
        await _walk_to_ingredients(engine)
        names = ["Rice", "Onion", "Tomato", "Garlic", "Ginger"]

        await asyncio.gather(*(engine.handle_command(USER, ToggleIngredient(ingredient=n)) for n in names))

        assert sorted((await engine.store.get(USER)).ingredients) == sorted(names)

    @pytest.mark.asyncio
    async def test_users_do_not_share_sessions(self):
        engine = build_engine(FakeCompletionAdapter("[]"))
        await _walk_to_ingredients(engine, "alice")
        await engine.handle_reset("bob")

        assert (await engine.store.get("alice")).step == ConversationStep.INGREDIENTS
        assert (await engine.store.get("bob")).step == ConversationStep.LANGUAGE

    @pytest.mark.asyncio
    async def test_event_locks_released_after_events_finish(self):
        engine = build_engine(FakeCompletionAdapter("[]"))
        users = [f"user-{i}" for i in range(50)]

        await asyncio.gather(*(engine.handle_reset(u) for u in users))
        await asyncio.gather(*(engine.handle_text(u, "hello") for u in users))
        gc.collect()

        assert len(engine._event_locks) == 0
        assert len(engine.store._locks) == 0
