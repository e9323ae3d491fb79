"""Bounded, staggered video-link fan-out.

``VideoEnricher.enrich`` issues one search per recipe. Lookup ``i`` starts
``i * stagger`` after the call, all lookups run concurrently under a
semaphore, and results come back in input order. A failing lookup yields
``None`` for its slot only.
"""

import asyncio
from typing import Optional, Protocol

from src.utils.config import config
from src.utils.logger import logger
from src.utils.safe_execute import capture_async


class VideoSearchAdapter(Protocol):
    has_credential: bool

    async def search(self, query: str) -> Optional[str]: ...


class VideoEnricher:
    """Look up one video link per recipe name."""

    def __init__(
        self,
        adapter: VideoSearchAdapter,
        stagger_ms: Optional[int] = None,
        max_concurrency: Optional[int] = None,
    ) -> None:
        self.adapter = adapter
        self.stagger_seconds = (config.ENRICHMENT_STAGGER_MS if stagger_ms is None else stagger_ms) / 1000
        self.max_concurrency = max_concurrency or config.ENRICHMENT_MAX_CONCURRENCY

    async def _lookup(self, index: int, query: str, semaphore: asyncio.Semaphore) -> Optional[str]:
        if index and self.stagger_seconds:
            await asyncio.sleep(index * self.stagger_seconds)
        async with semaphore:
            result = await capture_async(self.adapter.search(query), f"Video search for '{query}'")
        return result.unwrap_or(None)

    async def enrich(self, queries: list[str]) -> list[Optional[str]]:
        """Return one video URL (or None) per query, in the same order.

        Args:
            queries: Recipe names to search for.

        Returns:
            List with ``len(queries)`` entries. All None when no credential is configured.
        """
        if not queries:
            return []
        if not self.adapter.has_credential:
            logger.warning("YouTube API key not configured, skipping video links")
            return [None] * len(queries)

        semaphore = asyncio.Semaphore(self.max_concurrency)
        urls = await asyncio.gather(
            *(self._lookup(i, query, semaphore) for i, query in enumerate(queries))
        )
        found = sum(1 for url in urls if url)
        logger.debug(f"Video enrichment found {found}/{len(queries)} links")
        return list(urls)
