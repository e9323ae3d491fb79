"""Gemini text-completion adapter.

Wraps the synchronous google-genai client in ``asyncio.to_thread`` so model
calls do not block the event loop. The adapter makes a single attempt; retries,
timeouts and fallbacks belong to the recipe generator.
"""

import asyncio
from typing import Optional

from google import genai
from google.genai import types

from src.utils.config import config
from src.utils.errors import GenerationError
from src.utils.logger import logger


class GeminiCompletionAdapter:
    """Send a prompt to Gemini and return the raw response text."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
        client: Optional[genai.Client] = None,
    ) -> None:
        """Initialize adapter.

        Args:
            api_key: Gemini API key. Defaults to ``config.GEMINI_API_KEY``.
            model: Model name. Defaults to ``config.GEMINI_MODEL``.
            temperature: Sampling temperature. Defaults to ``config.TEMPERATURE``.
            top_p: Nucleus sampling cutoff. Defaults to ``config.TOP_P``.
            client: Pre-built client (tests). Created lazily otherwise.
        """
        self.api_key = config.GEMINI_API_KEY if api_key is None else api_key
        self.model = model or config.GEMINI_MODEL
        self.temperature = config.TEMPERATURE if temperature is None else temperature
        self.top_p = config.TOP_P if top_p is None else top_p
        self._client = client

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key) or self._client is not None

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self.api_key:
                raise GenerationError("GEMINI_API_KEY is not configured")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def complete(self, prompt: str) -> str:
        """Run one completion.

        Args:
            prompt: Full prompt text.

        Returns:
            Response text, unparsed.

        Raises:
            GenerationError: Missing credential, API failure or empty response.
        """
        client = self._get_client()
        try:
            response = await asyncio.to_thread(
                client.models.generate_content,
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=self.temperature,
                    top_p=self.top_p,
                    candidate_count=1,
                ),
            )
        except Exception as e:
            raise GenerationError(f"Gemini request failed: {e}") from e

        text = getattr(response, "text", None)
        if not text or not text.strip():
            raise GenerationError("No content received from Gemini")

        logger.debug(f"Gemini returned {len(text)} characters")
        return text
