"""
Name: Answer Question Use Case

Responsibilities:
  - Answer a question about the session text, aware of the conversation
  - Convert the answer's markdown into HTML
  - Append question and answer to the session conversation

Collaborators:
  - domain.services.LLMService: answer generation
  - infrastructure.prompts.PromptLoader: "answer" template
  - application.conversations / application.answer_formatting

Constraints:
  - Context is the whole session source text
  - History window: max_conversation_messages (most recent)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List

from ...domain.entities import ConversationMessage
from ...domain.repositories import SessionRepository
from ...domain.services import LLMService
from ...exceptions import InvalidInputError
from ...infrastructure.prompts import PromptLoader
from ...logger import logger
from ...metrics import record_stage_metrics
from ...timing import StageTimings
from ..answer_formatting import markdown_to_html
from ..conversations import format_conversation_history, trim_history
from .session_access import load_session


@dataclass
class AnswerQuestionInput:
    session_id: str
    question: str


@dataclass
class AnswerQuestionOutput:
    answer_html: str
    conversation: List[ConversationMessage]
    timings: Dict[str, float] = field(default_factory=dict)


class AnswerQuestionUseCase:
    """R: Conversational assistant over the session text."""

    def __init__(
        self,
        repository: SessionRepository,
        llm_service: LLMService,
        prompt_loader: PromptLoader,
        max_conversation_messages: int = 12,
    ):
        self.repository = repository
        self.llm_service = llm_service
        self.prompt_loader = prompt_loader
        self.max_conversation_messages = max_conversation_messages

    async def execute(self, input_data: AnswerQuestionInput) -> AnswerQuestionOutput:
        """
        Raises:
            SessionNotFoundError: Unknown session
            InvalidInputError: Empty question or no text to ask about
            LLMError: The model call failed
        """
        question = input_data.question.strip()
        if not question:
            raise InvalidInputError("Please enter a question")

        session = load_session(self.repository, input_data.session_id)
        if not session.source_text.strip():
            raise InvalidInputError("There is no text to ask about yet")

        generation = session.generation
        history = trim_history(session.conversation, self.max_conversation_messages)
        prompt = self.prompt_loader.format(
            "answer",
            previous_conversation=format_conversation_history(history),
            context=session.source_text,
            question=question,
        )

        timings = StageTimings()
        with timings.measure("answer"):
            raw_answer = await self.llm_service.generate_text(prompt)
        record_stage_metrics(answer_seconds=timings.seconds("answer"))
        answer_html = markdown_to_html(raw_answer)

        if session.is_current(generation):
            now = datetime.now(timezone.utc)
            session.conversation.append(
                ConversationMessage(role="user", content=question, created_at=now)
            )
            session.conversation.append(
                ConversationMessage(role="assistant", content=answer_html, created_at=now)
            )
            session.conversation = trim_history(
                session.conversation, self.max_conversation_messages
            )
            self.repository.save_session(session)

        logger.info(
            "Question answered",
            extra={
                "session_id": session.id,
                "history_messages": len(history),
                **timings.to_dict(),
            },
        )
        return AnswerQuestionOutput(
            answer_html=answer_html,
            conversation=list(session.conversation),
            timings=timings.to_dict(),
        )
