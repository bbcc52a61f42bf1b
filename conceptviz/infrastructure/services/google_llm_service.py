"""
Name: Google Gemini LLM Service Implementation

Responsibilities:
  - Implement LLMService for Gemini (google-genai async client)
  - Pass an optional system instruction through the generation config
  - Retry transient errors with exponential backoff + jitter
  - Translate provider failures into LLMError

Collaborators:
  - domain.services.LLMService: Interface implementation
  - google.genai: Gemini SDK (client.aio for coroutine calls)
  - retry: Resilience helper for transient errors

Constraints:
  - No streaming support
  - No control over sampling parameters (SDK defaults)
  - Empty model output is an error, never an empty string

Notes:
  - Shared by concept extraction, chunk formatting, Gemini SVG rendering and
    the assistant; every caller brings its own prompt
"""

from typing import Optional

from google import genai
from google.genai import types

from ...exceptions import LLMError
from ...logger import logger
from .retry import create_retry_decorator


class GoogleLLMService:
    """
    R: Google Gemini implementation of LLMService.
    """

    def __init__(
        self,
        api_key: str,
        model_id: str = "gemini-2.0-flash",
        client: Optional[genai.Client] = None,
    ):
        """
        R: Initialize Google LLM Service.

        Args:
            api_key: Google API key
            model_id: Gemini model name
            client: Prebuilt genai client (tests)

        Raises:
            LLMError: If API key not configured and no client given
        """
        if not api_key and client is None:
            logger.error("GoogleLLMService: GOOGLE_API_KEY not configured")
            raise LLMError("GOOGLE_API_KEY not configured")

        self._client = client or genai.Client(api_key=api_key)
        self._model_id = model_id
        self._generate_content = create_retry_decorator()(
            self._client.aio.models.generate_content
        )

        logger.info("GoogleLLMService initialized", extra={"model_id": model_id})

    @property
    def model_id(self) -> str:
        return self._model_id

    async def generate_text(self, prompt: str, *, system: Optional[str] = None) -> str:
        """
        R: Generate text for a prompt.

        Raises:
            LLMError: If generation fails or returns no text
        """
        config = (
            types.GenerateContentConfig(system_instruction=system) if system else None
        )
        try:
            response = await self._generate_content(
                model=self._model_id, contents=prompt, config=config
            )
        except Exception as e:
            logger.error(
                "GoogleLLMService: Generation failed",
                extra={"model_id": self._model_id, "error_type": type(e).__name__},
            )
            raise LLMError(f"Failed to generate response: {e}", original_error=e) from e

        text = (response.text or "").strip()
        if not text:
            raise LLMError("Gemini returned an empty response")
        return text
