"""YouTube Data API v3 search adapter (async, aiohttp)."""

from typing import Optional

import aiohttp

from src.utils.config import config
from src.utils.errors import VideoSearchError
from src.utils.logger import logger

YOUTUBE_SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v={video_id}"


def build_video_query(recipe_name: str) -> str:
    return f"{recipe_name} recipe cooking tutorial"


class YouTubeSearchAdapter:
    """Find the most relevant medium-length cooking video for a recipe."""

    def __init__(self, api_key: Optional[str] = None, timeout_seconds: Optional[float] = None) -> None:
        self.api_key = config.YOUTUBE_API_KEY if api_key is None else api_key
        self.timeout_seconds = timeout_seconds or config.YOUTUBE_TIMEOUT_SECONDS

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)

    def _params(self, query: str, max_results: int = 1) -> dict[str, str]:
        return {
            "part": "snippet",
            "q": query,
            "type": "video",
            "maxResults": str(max_results),
            "order": "relevance",
            # 4-20 minutes
            "videoDuration": "medium",
            "key": self.api_key,
        }

    async def _get(self, params: dict[str, str], timeout_seconds: float) -> dict:
        async with aiohttp.ClientSession() as session:
            async with session.get(
                YOUTUBE_SEARCH_URL,
                params=params,
                timeout=aiohttp.ClientTimeout(total=timeout_seconds),
            ) as response:
                if response.status != 200:
                    body = await response.text()
                    raise VideoSearchError(f"YouTube search returned HTTP {response.status}: {body[:200]}")
                return await response.json()

    async def search(self, recipe_name: str) -> Optional[str]:
        """Return a watch URL for the best match, or None when nothing is found.

        Args:
            recipe_name: Recipe name; expanded to "<name> recipe cooking tutorial".

        Returns:
            ``https://www.youtube.com/watch?v=<id>`` or None.

        Raises:
            VideoSearchError: Missing credential, transport failure or non-200 response.
        """
        if not self.has_credential:
            raise VideoSearchError("YOUTUBE_API_KEY is not configured")

        try:
            data = await self._get(self._params(build_video_query(recipe_name)), self.timeout_seconds)
        except VideoSearchError:
            raise
        except Exception as e:
            raise VideoSearchError(f"YouTube search failed for '{recipe_name}': {e}") from e

        items = data.get("items") or []
        video_id = (items[0].get("id") or {}).get("videoId") if items else None
        if not video_id:
            logger.warning(f"No videos found for recipe: {recipe_name}")
            return None

        url = YOUTUBE_WATCH_URL.format(video_id=video_id)
        logger.debug(f"Found video for '{recipe_name}': {url}")
        return url

    async def is_api_key_valid(self) -> bool:
        """Probe the API with a minimal query (5s timeout)."""
        if not self.has_credential:
            return False
        try:
            await self._get(self._params("test"), 5)
            return True
        except Exception as e:
            logger.error(f"YouTube API key validation failed: {e}")
            return False
