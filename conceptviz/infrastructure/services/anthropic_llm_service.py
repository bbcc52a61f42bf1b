"""
Name: Anthropic Claude LLM Service Implementation

Responsibilities:
  - Implement LLMService for Claude (anthropic AsyncAnthropic)
  - Send the system prompt as the Messages API `system` field
  - Retry transient errors (429, 5xx, overloaded)

Collaborators:
  - domain.services.LLMService: Interface implementation
  - anthropic: Claude SDK
  - retry: Resilience helper for transient errors

Constraints:
  - Single user message per call, no conversation state
  - Output is the first content block's text

Notes:
  - Used by the Claude SVG renderer only
"""

from typing import Optional

from anthropic import AsyncAnthropic

from ...exceptions import LLMError
from ...logger import logger
from .retry import create_retry_decorator


class AnthropicLLMService:
    """R: Claude implementation of LLMService."""

    def __init__(
        self,
        api_key: str,
        model_id: str = "claude-3-7-sonnet-20250219",
        max_tokens: int = 4000,
        client: Optional[AsyncAnthropic] = None,
    ):
        if not api_key and client is None:
            logger.error("AnthropicLLMService: ANTHROPIC_API_KEY not configured")
            raise LLMError("ANTHROPIC_API_KEY not configured")

        self._client = client or AsyncAnthropic(api_key=api_key)
        self._model_id = model_id
        self._max_tokens = max_tokens
        self._create_message = create_retry_decorator()(self._client.messages.create)

        logger.info("AnthropicLLMService initialized", extra={"model_id": model_id})

    @property
    def model_id(self) -> str:
        return self._model_id

    async def generate_text(self, prompt: str, *, system: Optional[str] = None) -> str:
        """
        R: Generate text for a prompt.

        Raises:
            LLMError: If the call fails or the reply has no text block
        """
        kwargs = {
            "model": self._model_id,
            "max_tokens": self._max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system

        try:
            response = await self._create_message(**kwargs)
        except Exception as e:
            logger.error(
                "AnthropicLLMService: Generation failed",
                extra={"model_id": self._model_id, "error_type": type(e).__name__},
            )
            raise LLMError(f"Failed to generate response: {e}", original_error=e) from e

        text = next(
            (block.text for block in response.content if getattr(block, "text", None)),
            "",
        ).strip()
        if not text:
            raise LLMError("Claude returned an empty response")
        return text

    async def aclose(self) -> None:
        await self._client.close()
