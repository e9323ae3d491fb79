"""Recipe orchestration: generation followed by video enrichment."""

from typing import Optional

from src.models.models import Recipe, RecipeRequest
from src.services.enrichment import VideoEnricher
from src.services.generator import RecipeGenerator
from src.utils.logger import logger


class RecipeService:
    """Produce display-ready recipes for a request."""

    def __init__(self, generator: RecipeGenerator, enricher: VideoEnricher) -> None:
        self.generator = generator
        self.enricher = enricher

    async def generate_recipes(self, request: RecipeRequest, user_id: Optional[str] = None) -> list[Recipe]:
        """Generate recipes and attach a video link to each.

        Args:
            request: Guided preferences or a direct dish request.
            user_id: For log context only.

        Returns:
            0-3 recipes; ``video_url`` is None where no video was found.
        """
        extra = {"user_id": user_id} if user_id else None
        recipes = await self.generator.generate(request)
        logger.info(f"Generated {len(recipes)} recipes", extra=extra)

        urls = await self.enricher.enrich([recipe.name for recipe in recipes])
        enriched = [
            recipe.model_copy(update={"video_url": url}) for recipe, url in zip(recipes, urls)
        ]
        logger.info(
            f"Enriched {sum(1 for r in enriched if r.video_url)}/{len(enriched)} recipes with video links",
            extra=extra,
        )
        return enriched
