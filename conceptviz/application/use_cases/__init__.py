"""Application use cases"""

from .answer_question import (
    AnswerQuestionInput,
    AnswerQuestionOutput,
    AnswerQuestionUseCase,
)
from .extract_concepts import (
    ExtractConceptsInput,
    ExtractConceptsOutput,
    ExtractConceptsUseCase,
)
from .extract_pdf_text import (
    ExtractPdfTextInput,
    ExtractPdfTextOutput,
    ExtractPdfTextUseCase,
)
from .fetch_url_text import FetchUrlTextOutput, FetchUrlTextUseCase
from .format_text import FormatTextInput, FormatTextOutput, FormatTextUseCase
from .navigate_concept import (
    NavigateConceptInput,
    NavigateConceptOutput,
    NavigateConceptUseCase,
)
from .refresh_formatting import RefreshFormattingOutput, RefreshFormattingUseCase
from .regenerate_visualization import (
    RegenerateVisualizationInput,
    RegenerateVisualizationOutput,
    RegenerateVisualizationUseCase,
)
from .reset_session import ResetSessionUseCase
from .visualize_text import (
    VisualizeTextInput,
    VisualizeTextOutput,
    VisualizeTextUseCase,
)

__all__ = [
    "AnswerQuestionInput",
    "AnswerQuestionOutput",
    "AnswerQuestionUseCase",
    "ExtractConceptsInput",
    "ExtractConceptsOutput",
    "ExtractConceptsUseCase",
    "ExtractPdfTextInput",
    "ExtractPdfTextOutput",
    "ExtractPdfTextUseCase",
    "FetchUrlTextOutput",
    "FetchUrlTextUseCase",
    "FormatTextInput",
    "FormatTextOutput",
    "FormatTextUseCase",
    "NavigateConceptInput",
    "NavigateConceptOutput",
    "NavigateConceptUseCase",
    "RefreshFormattingOutput",
    "RefreshFormattingUseCase",
    "RegenerateVisualizationInput",
    "RegenerateVisualizationOutput",
    "RegenerateVisualizationUseCase",
    "ResetSessionUseCase",
    "VisualizeTextInput",
    "VisualizeTextOutput",
    "VisualizeTextUseCase",
]
