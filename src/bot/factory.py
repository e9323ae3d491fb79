"""Conversation engine initialization.

Wires storage, adapters and services into a ``ConversationEngine``. Each
collaborator is built in its own helper so tests and transports can swap
any of them.
"""

from typing import Optional

from src.adapters.gemini import GeminiCompletionAdapter
from src.adapters.session_backends import InMemorySessionBackend, MongoSessionBackend, SessionBackend
from src.adapters.youtube import YouTubeSearchAdapter
from src.conversation.state_machine import ConversationEngine, ProgressCallback
from src.services.enrichment import VideoEnricher
from src.services.generator import RecipeGenerator
from src.services.recipe_service import RecipeService
from src.services.session_store import SessionStore
from src.utils.config import config
from src.utils.errors import SessionStorageError
from src.utils.logger import logger


def _configure_session_backend(use_db: bool) -> SessionBackend:
    """Pick the session backend.

    Uses MongoDB when ``use_db`` is set and ``MONGO_URI`` is configured, falling
    back to in-memory storage when MongoDB is unreachable.
    """
    logger.info("Step 1/4: Configuring session storage...")

    if not use_db:
        logger.info("✓ Stateless mode: in-memory sessions")
        return InMemorySessionBackend()

    if not config.MONGO_URI:
        logger.info("✓ MONGO_URI not set: in-memory sessions")
        return InMemorySessionBackend()

    try:
        backend = MongoSessionBackend.from_uri(
            config.MONGO_URI, config.MONGO_DB, config.MONGO_SESSIONS_COLLECTION
        )
    except SessionStorageError as e:
        logger.warning(f"{e}. Falling back to in-memory sessions")
        return InMemorySessionBackend()

    logger.info(f"✓ MongoDB sessions: {config.MONGO_DB}.{config.MONGO_SESSIONS_COLLECTION}")
    return backend


def _create_generator() -> RecipeGenerator:
    logger.info("Step 2/4: Configuring recipe generation...")
    adapter = GeminiCompletionAdapter()
    if adapter.has_credential:
        logger.info(f"✓ Gemini model: {adapter.model} (temperature={adapter.temperature}, top_p={adapter.top_p})")
    else:
        logger.warning("GEMINI_API_KEY not set: every request will get fallback recipes")
    return RecipeGenerator(adapter)


def _create_enricher() -> VideoEnricher:
    logger.info("Step 3/4: Configuring video enrichment...")
    adapter = YouTubeSearchAdapter()
    if adapter.has_credential:
        logger.info("✓ YouTube search enabled")
    else:
        logger.warning("YOUTUBE_API_KEY not set: recipes will have no video links")
    return VideoEnricher(adapter)


def initialize_conversation_engine(
    use_db: bool = True,
    progress_callback: Optional[ProgressCallback] = None,
) -> tuple[ConversationEngine, SessionStore]:
    """Build a fully wired conversation engine.

    Args:
        use_db: Use MongoDB sessions when configured. False forces in-memory sessions.
        progress_callback: Optional interim-message hook passed to the engine.

    Returns:
        ``(engine, session_store)``; the store is returned so the caller can run
        the expiry sweeper and close the backend on shutdown.
    """
    logger.info("=== Initializing Meal Planner Bot ===")

    session_store = SessionStore(_configure_session_backend(use_db))
    recipe_service = RecipeService(_create_generator(), _create_enricher())

    logger.info("Step 4/4: Creating conversation engine...")
    engine = ConversationEngine(session_store, recipe_service, progress_callback=progress_callback)
    logger.info("=== Initialization complete ===")
    return engine, session_store
