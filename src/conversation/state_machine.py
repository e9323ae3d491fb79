"""Per-user conversation state machine.

Flow::

    LANGUAGE    --pick language-->  CHOICE
    CHOICE      --suggestions-->    MEAL
                --direct-->         RECIPES (asks for a dish name)
    MEAL        --pick meal-->      DIET
    DIET        --pick diet-->      INGREDIENTS
    INGREDIENTS --toggle-->         INGREDIENTS
                --done / skip-->    CUISINE
    CUISINE     --pick cuisine-->   RECIPES (generates)
    RECIPES     --select / back / regenerate--> RECIPES

``/start`` (``Reset``) is accepted at every step. Events for one user are
processed strictly in arrival order; different users never block each other.

Invalid input (a command that does not belong to the current step, or free
text where none is expected) gets a guidance reply and leaves the session
untouched. Any unexpected exception restores the pre-event session and
returns the localized error message.
"""

import asyncio
import weakref
from typing import Awaitable, Callable, Optional

from src.constants.ingredients import get_ingredients_for
from src.constants.messages import (
    CHOICE_MESSAGE_KEYS,
    CUISINE_LABELS,
    DIET_LABELS,
    LANGUAGE_LABELS,
    MEAL_LABELS,
    get_message,
)
from src.conversation.commands import (
    MAX_INGREDIENT_BYTES,
    BackToRecipes,
    CancelCustomIngredient,
    Command,
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
    parse_callback_data,
)
from src.conversation.rendering import format_recipe, format_recipe_list
from src.models.models import (
    ConversationStep,
    DirectRecipeRequest,
    FlowChoice,
    IngredientsStepView,
    Recipe,
    RecipeRequest,
    RecipesStepView,
    Session,
    dump_recipes,
)
from src.services.recipe_service import RecipeService
from src.services.session_store import SessionStore
from src.utils.errors import InvalidCommandError, SessionContractError
from src.utils.logger import logger

MAX_DISH_NAME_LENGTH = 200
INGREDIENT_BUTTONS_PER_ROW = 3

ProgressCallback = Callable[[str, str], Awaitable[None]]
_Handler = Callable[[Session, Command], Awaitable[Optional[Reply]]]


class ConversationEngine:
    """Interpret user events against their session and produce replies."""

    def __init__(
        self,
        session_store: SessionStore,
        recipe_service: RecipeService,
        progress_callback: Optional[ProgressCallback] = None,
        strict: Optional[bool] = None,
    ) -> None:
        """Initialize engine.

        Args:
            session_store: Per-user session persistence.
            recipe_service: Generation + enrichment pipeline.
            progress_callback: Optional ``async (user_id, text)`` hook used to show
                interim messages such as "Generating recipes...".
            strict: Raise on session contract violations. Defaults to ``config.STRICT_CONTRACTS``.
        """
        self.store = session_store
        self.recipe_service = recipe_service
        self.progress_callback = progress_callback
        self.strict = strict
        self._event_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()
        self._command_handlers: dict[ConversationStep, _Handler] = {
            ConversationStep.LANGUAGE: self._on_language_step,
            ConversationStep.CHOICE: self._on_choice_step,
            ConversationStep.MEAL: self._on_meal_step,
            ConversationStep.DIET: self._on_diet_step,
            ConversationStep.INGREDIENTS: self._on_ingredients_step,
            ConversationStep.CUISINE: self._on_cuisine_step,
            ConversationStep.RECIPES: self._on_recipes_step,
        }

    def _event_lock(self, user_id: str) -> asyncio.Lock:
        lock = self._event_locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._event_locks[user_id] = lock
        return lock

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def handle_reset(self, user_id: str) -> Reply:
        """Forget the conversation and start again at language selection."""
        async with self._event_lock(user_id):
            return await self._reset(user_id)

    async def current_prompt(self, user_id: str) -> Reply:
        """Prompt for wherever the user currently is, without changing state."""
        async with self._event_lock(user_id):
            return self._prompt_for(await self.store.get(user_id))

    async def handle_callback(self, user_id: str, data: str) -> Reply:
        """Decode transport callback data and handle the resulting command."""
        try:
            command = parse_callback_data(data)
        except InvalidCommandError as e:
            logger.warning(f"Rejected callback: {e}", extra={"user_id": user_id})
            async with self._event_lock(user_id):
                return self._reject(await self.store.get(user_id))
        return await self.handle_command(user_id, command)

    async def handle_command(self, user_id: str, command: Command) -> Reply:
        """Handle a structured command for ``user_id``."""
        async with self._event_lock(user_id):
            if isinstance(command, Reset):
                return await self._reset(user_id)
            return await self._dispatch(user_id, lambda session: self._on_command(session, command))

    async def handle_text(self, user_id: str, text: str) -> Reply:
        """Handle free text. ``/start`` resets; other text is only valid in some steps."""
        if text.strip().lower() == "/start":
            return await self.handle_reset(user_id)
        async with self._event_lock(user_id):
            return await self._dispatch(user_id, lambda session: self._on_text(session, text))

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def _reset(self, user_id: str) -> Reply:
        try:
            await self.store.clear(user_id)
            session = await self.store.set(user_id, self.store.default_session(user_id))
        except Exception as e:
            logger.error(f"Reset failed: {e}", exc_info=True, extra={"user_id": user_id})
            return Reply(text=get_message("error_message", self.store.default_language))
        logger.info("Conversation reset", extra={"user_id": user_id, "step": session.step.value})
        return self._language_prompt()

    async def _dispatch(self, user_id: str, handler: Callable[[Session], Awaitable[Reply]]) -> Reply:
        snapshot = await self.store.get(user_id)
        try:
            return await handler(snapshot)
        except SessionContractError:
            await self.store.set(user_id, snapshot)
            raise
        except Exception as e:
            logger.error(
                f"Failed to handle event: {e}",
                exc_info=True,
                extra={"user_id": user_id, "step": snapshot.step.value},
            )
            await self.store.set(user_id, snapshot)
            return Reply(text=get_message("error_message", snapshot.language))

    async def _on_command(self, session: Session, command: Command) -> Reply:
        reply = await self._command_handlers[session.step](session, command)
        if reply is None:
            logger.info(
                f"Ignoring out-of-sequence command {command.kind}",
                extra={"user_id": session.user_id, "step": session.step.value},
            )
            return self._reject(session)
        return reply

    async def _on_text(self, session: Session, text: str) -> Reply:
        value = text.strip()
        if session.step == ConversationStep.INGREDIENTS and 0 < len(value.encode("utf-8")) <= MAX_INGREDIENT_BYTES:
            return await self._add_custom_ingredient(session, value)
        if (
            session.step == ConversationStep.RECIPES
            and session.choice == FlowChoice.DIRECT
            and 0 < len(value) <= MAX_DISH_NAME_LENGTH
        ):
            updated = await self.store.update(session.user_id, {"direct_meal_name": value})
            logger.info(f"Direct recipe requested: {value}", extra={"user_id": session.user_id})
            return await self._generate(updated, DirectRecipeRequest(dish_name=value, language=updated.language))

        logger.info("Ignoring free text", extra={"user_id": session.user_id, "step": session.step.value})
        return self._reject(session)

    def _reject(self, session: Session) -> Reply:
        """Guidance message followed by the current step's prompt."""
        prompt = self._prompt_for(session)
        return Reply(
            text=f"{get_message('use_buttons', session.language)}\n\n{prompt.text}",
            options=prompt.options,
        )

    # ------------------------------------------------------------------
    # Step handlers: return None when the command does not belong to the step
    # ------------------------------------------------------------------

    async def _on_language_step(self, session: Session, command: Command) -> Optional[Reply]:
        if not isinstance(command, PickLanguage):
            return None
        updated = await self.store.update(
            session.user_id, {"language": command.language, "step": ConversationStep.CHOICE}
        )
        return self._choice_prompt(updated)

    async def _on_choice_step(self, session: Session, command: Command) -> Optional[Reply]:
        if not isinstance(command, PickChoice):
            return None
        if command.choice == FlowChoice.SUGGESTION:
            updated = await self.store.update(
                session.user_id, {"choice": command.choice, "step": ConversationStep.MEAL}
            )
            return self._meal_prompt(updated)

        updated = await self.store.update(
            session.user_id,
            {
                "choice": command.choice,
                "step": ConversationStep.RECIPES,
                "direct_meal_name": None,
                "recipes": None,
            },
        )
        return self._direct_prompt(updated)

    async def _on_meal_step(self, session: Session, command: Command) -> Optional[Reply]:
        if not isinstance(command, PickMeal):
            return None
        updated = await self.store.update(
            session.user_id, {"meal_type": command.meal_type, "step": ConversationStep.DIET}
        )
        return self._diet_prompt(updated)

    async def _on_diet_step(self, session: Session, command: Command) -> Optional[Reply]:
        if not isinstance(command, PickDiet):
            return None
        updated = await self.store.update(
            session.user_id, {"diet_type": command.diet_type, "step": ConversationStep.INGREDIENTS}
        )
        return self._ingredients_prompt(updated)

    async def _on_ingredients_step(self, session: Session, command: Command) -> Optional[Reply]:
        if isinstance(command, ToggleIngredient):
            updated = await self.store.update(
                session.user_id, {"ingredients": session.toggled_ingredients(command.ingredient)}
            )
            return self._ingredients_prompt(updated)
        if isinstance(command, RequestCustomIngredient):
            return self._custom_ingredient_prompt(session)
        if isinstance(command, CancelCustomIngredient):
            return self._ingredients_prompt(session)
        if isinstance(command, IngredientsDone):
            updated = await self.store.update(session.user_id, {"step": ConversationStep.CUISINE})
            return self._cuisine_prompt(updated)
        if isinstance(command, IngredientsSkip):
            updated = await self.store.update(
                session.user_id, {"ingredients": [], "step": ConversationStep.CUISINE}
            )
            return self._cuisine_prompt(updated)
        return None

    async def _on_cuisine_step(self, session: Session, command: Command) -> Optional[Reply]:
        if not isinstance(command, PickCuisine):
            return None
        updated = await self.store.update(
            session.user_id, {"cuisine": command.cuisine, "step": ConversationStep.RECIPES}
        )
        view = updated.view(self.strict)
        return await self._generate(updated, view.generation_request())

    async def _on_recipes_step(self, session: Session, command: Command) -> Optional[Reply]:
        view: RecipesStepView = session.view(self.strict)

        if isinstance(command, SelectRecipe):
            if command.index >= len(view.recipes):
                return None
            return self._recipe_detail(session, view.recipes[command.index], with_back=True)

        if isinstance(command, BackToRecipes):
            if not view.recipes:
                return None
            return self._recipes_reply(session, view.recipes)

        if isinstance(command, RegenerateRecipes):
            request = view.generation_request()
            if request is None:
                return self._direct_prompt(session)
            return await self._generate(session, request)

        return None

    async def _add_custom_ingredient(self, session: Session, ingredient: str) -> Reply:
        ingredients = session.ingredients if ingredient in session.ingredients else [*session.ingredients, ingredient]
        updated = await self.store.update(
            session.user_id, {"ingredients": ingredients, "custom_ingredient": ingredient}
        )
        logger.info(f"Custom ingredient added: {ingredient}", extra={"user_id": session.user_id})
        return self._ingredients_prompt(updated)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def _generate(self, session: Session, request: RecipeRequest) -> Reply:
        if self.progress_callback is not None:
            await self.progress_callback(session.user_id, get_message("generating_recipes", session.language))

        recipes = await self.recipe_service.generate_recipes(request, user_id=session.user_id)
        updated = await self.store.update(session.user_id, {"recipes": dump_recipes(recipes)})
        return self._recipes_reply(updated, recipes)

    def _recipes_reply(self, session: Session, recipes: list[Recipe]) -> Reply:
        language = session.language
        try_again = ReplyOption(label=get_message("try_again", language), command=RegenerateRecipes())

        if not recipes:
            return Reply(text=get_message("no_recipes", language), options=[[try_again]])

        if session.choice == FlowChoice.DIRECT:
            return self._recipe_detail(session, recipes[0], with_back=False)

        rows = [
            [ReplyOption(label=f"{i + 1}. {recipe.name}", command=SelectRecipe(index=i))]
            for i, recipe in enumerate(recipes)
        ]
        rows.append([try_again])
        return Reply(text=format_recipe_list(recipes, language), options=rows)

    def _recipe_detail(self, session: Session, recipe: Recipe, with_back: bool) -> Reply:
        language = session.language
        rows = []
        if with_back:
            rows.append([ReplyOption(label=get_message("back", language), command=BackToRecipes())])
        rows.append([ReplyOption(label=get_message("try_again", language), command=RegenerateRecipes())])
        return Reply(text=format_recipe(recipe, language), options=rows)

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------

    def _prompt_for(self, session: Session) -> Reply:
        """Prompt for the session's current step (used to re-prompt after invalid input)."""
        step = session.step
        if step == ConversationStep.LANGUAGE:
            return self._language_prompt()
        if step == ConversationStep.CHOICE:
            return self._choice_prompt(session)
        if step == ConversationStep.MEAL:
            return self._meal_prompt(session)
        if step == ConversationStep.DIET:
            return self._diet_prompt(session)
        if step == ConversationStep.INGREDIENTS:
            return self._ingredients_prompt(session)
        if step == ConversationStep.CUISINE:
            return self._cuisine_prompt(session)

        view: RecipesStepView = session.view(self.strict)
        if view.choice == FlowChoice.DIRECT and not view.recipes:
            return self._direct_prompt(session)
        return self._recipes_reply(session, view.recipes)

    def _language_prompt(self) -> Reply:
        rows = [
            [ReplyOption(label=label, command=PickLanguage(language=language))]
            for language, label in LANGUAGE_LABELS.items()
        ]
        return Reply(text=get_message("welcome", "en"), options=rows)

    def _choice_prompt(self, session: Session) -> Reply:
        rows = [
            [ReplyOption(label=get_message(key, session.language), command=PickChoice(choice=choice))]
            for choice, key in CHOICE_MESSAGE_KEYS.items()
        ]
        return Reply(text=get_message("choice_selection", session.language), options=rows)

    def _meal_prompt(self, session: Session) -> Reply:
        rows = [[ReplyOption(label=label, command=PickMeal(meal_type=meal))] for meal, label in MEAL_LABELS.items()]
        return Reply(text=get_message("meal_selection", session.language), options=rows)

    def _diet_prompt(self, session: Session) -> Reply:
        rows = [[ReplyOption(label=label, command=PickDiet(diet_type=diet))] for diet, label in DIET_LABELS.items()]
        return Reply(text=get_message("diet_selection", session.language), options=rows)

    def _ingredients_prompt(self, session: Session) -> Reply:
        view: IngredientsStepView = session.view(self.strict)
        language = view.language
        catalog = get_ingredients_for(view.meal_type, view.diet_type)
        # Custom ingredients get their own buttons so they can be toggled off
        names = catalog + [i for i in view.ingredients if i not in catalog]

        buttons = [
            ReplyOption(
                label=f"✅ {name}" if name in view.ingredients else name,
                command=ToggleIngredient(ingredient=name),
            )
            for name in names
        ]
        rows = [buttons[i:i + INGREDIENT_BUTTONS_PER_ROW] for i in range(0, len(buttons), INGREDIENT_BUTTONS_PER_ROW)]
        rows.append([ReplyOption(label=get_message("custom_ingredient", language), command=RequestCustomIngredient())])
        rows.append([
            ReplyOption(label=get_message("done", language), command=IngredientsDone()),
            ReplyOption(label=get_message("skip_ingredients", language), command=IngredientsSkip()),
        ])

        text = get_message("ingredient_selection", language)
        if view.ingredients:
            text += f"\n\n{get_message('selected', language)}: {', '.join(view.ingredients)}"
        return Reply(text=text, options=rows)

    def _custom_ingredient_prompt(self, session: Session) -> Reply:
        return Reply(
            text=get_message("custom_ingredient_prompt", session.language),
            options=[[ReplyOption(label=get_message("cancel", session.language), command=CancelCustomIngredient())]],
        )

    def _cuisine_prompt(self, session: Session) -> Reply:
        rows = [
            [ReplyOption(label=label, command=PickCuisine(cuisine=cuisine))]
            for cuisine, label in CUISINE_LABELS.items()
        ]
        return Reply(text=get_message("cuisine_selection", session.language), options=rows)

    def _direct_prompt(self, session: Session) -> Reply:
        return Reply(text=get_message("direct_recipe_prompt", session.language))
