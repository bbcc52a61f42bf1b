"""
Model-backed service implementations (Gemini, Claude, fakes).
"""

from .anthropic_llm_service import AnthropicLLMService
from .concept_extractor import FakeConceptExtractor, LLMConceptExtractor
from .fake_llm_service import FakeLLMService
from .google_llm_service import GoogleLLMService
from .svg_renderers import ClaudeSvgRenderer, GeminiSvgRenderer

__all__ = [
    "AnthropicLLMService",
    "ClaudeSvgRenderer",
    "FakeConceptExtractor",
    "FakeLLMService",
    "GeminiSvgRenderer",
    "GoogleLLMService",
    "LLMConceptExtractor",
]
