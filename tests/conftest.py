"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Configure the test environment (fake models, no .env file)
  - Provide reusable domain fixtures (texts, concepts, sessions)
  - Provide mock collaborators (LLM, extractor, renderers)

Collaborators:
  - pytest: Test framework
  - unittest.mock: Mocking library
  - conceptviz.domain: Domain entities and protocols

Notes:
  - Fixtures are auto-discovered by pytest
  - FAKE_LLM=1 is set before any settings object is built, so container
    factories never reach a real provider
"""

import os
import sys
from pathlib import Path
from typing import List
from unittest.mock import AsyncMock, Mock

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

os.environ["FAKE_LLM"] = "1"

from conceptviz import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None

from conceptviz.domain.entities import (  # noqa: E402
    Concept,
    IndexedConcept,
    VisualizationResult,
    VisualizationSession,
)
from conceptviz.domain.services import LLMService  # noqa: E402
from conceptviz.infrastructure.prompts import PromptLoader  # noqa: E402
from conceptviz.infrastructure.repositories import (  # noqa: E402
    InMemorySessionRepository,
)


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )


# ============================================================================
# Domain Fixtures
# ============================================================================

PHOTOSYNTHESIS_TEXT = (
    "Photosynthesis converts light into energy. Respiration releases that energy."
)


@pytest.fixture
def photosynthesis_text() -> str:
    return PHOTOSYNTHESIS_TEXT


@pytest.fixture
def sentence_concepts() -> List[Concept]:
    """R: Two concepts, each exactly one sentence of PHOTOSYNTHESIS_TEXT."""
    first_end = PHOTOSYNTHESIS_TEXT.index(".") + 1
    second_start = first_end + 1
    return [
        Concept(
            title="Photosynthesis",
            description="Plants turn light into chemical energy.",
            start_offset=0,
            end_offset=first_end,
        ),
        Concept(
            title="Respiration",
            description="Cells release stored energy.",
            start_offset=second_start,
            end_offset=len(PHOTOSYNTHESIS_TEXT),
        ),
    ]


def make_indexed(text: str, spans: List[tuple[str, str]]) -> List[IndexedConcept]:
    """R: Build IndexedConcepts from (title, verbatim text) pairs in text order."""
    concepts = []
    for index, (title, needle) in enumerate(spans):
        start = text.index(needle)
        concepts.append(
            IndexedConcept(
                index=index,
                title=title,
                description=f"About {title}.",
                start_offset=start,
                end_offset=start + len(needle),
                text=needle,
            )
        )
    return concepts


@pytest.fixture
def visualized_session() -> VisualizationSession:
    """R: A session in the visualization phase with three results."""
    text = "Alpha text here.\n\nBeta text here.\n\nGamma text here."
    concepts = make_indexed(text, [("Alpha", "Alpha"), ("Beta", "Beta"), ("Gamma", "Gamma")])
    session = VisualizationSession(id="session-1")
    session.reset(text)
    session.concepts = concepts
    session.results = [
        VisualizationResult.for_concept(c, f"<svg>{c.title}</svg>") for c in concepts
    ]
    session.formatted_html = "<div><p>formatted</p></div>"
    return session


# ============================================================================
# Mock Collaborator Fixtures
# ============================================================================


@pytest.fixture
def session_repository() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def mock_llm_service() -> Mock:
    """R: LLMService mock whose generate_text is an AsyncMock."""
    service = Mock(spec=LLMService)
    service.generate_text = AsyncMock(return_value="<p>ok</p>")
    service.model_id = "mock-model"
    return service


@pytest.fixture
def prompt_loader() -> PromptLoader:
    return PromptLoader(version="v1")


@pytest.fixture
def mock_renderer() -> Mock:
    """R: Renderer returning an SVG naming the concept title."""
    renderer = Mock()
    renderer.name = "gemini"
    renderer.render = AsyncMock(
        side_effect=lambda title, description: f"<svg><text>{title}</text></svg>"
    )
    return renderer


@pytest.fixture
def make_concepts():
    """R: Factory fixture wrapping make_indexed."""
    return make_indexed
