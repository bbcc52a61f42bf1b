"""
Name: Assistant Tests

Responsibilities:
  - Markdown-to-HTML conversion of answers
  - Conversation history trimming and prompt rendering
  - AnswerQuestion use case (history-aware prompt, stale guard, validation)
"""

from unittest.mock import AsyncMock

import pytest

from conceptviz.application.answer_formatting import markdown_to_html
from conceptviz.application.conversations import (
    format_conversation_history,
    trim_history,
)
from conceptviz.application.use_cases import AnswerQuestionInput, AnswerQuestionUseCase
from conceptviz.domain.entities import ConversationMessage
from conceptviz.exceptions import InvalidInputError, LLMError

pytestmark = pytest.mark.unit


class TestMarkdownToHtml:
    def test_inline_markup(self):
        assert markdown_to_html("Hello *world* and **bold** `code`") == (
            '<p class="mb-3">Hello <em>world</em> and <strong>bold</strong> '
            "<code>code</code></p>"
        )

    def test_label_prefix_is_bold(self):
        assert markdown_to_html("Summary: it works") == (
            '<p class="mb-3"><strong>Summary:</strong> it works</p>'
        )

    def test_bullets_become_one_list(self):
        html = markdown_to_html("Intro\n\n* one\n* two\n\nOutro")

        assert html.startswith('<p class="mb-3">Intro</p>')
        assert "<ul>\n<li>one</li>\n<li>two</li>\n</ul>" in html
        assert html.endswith('<p class="mb-3">Outro</p>')

    def test_single_newlines_become_line_breaks(self):
        html = markdown_to_html("line one\nline two\n\n- item")

        assert '<p class="mb-3">line one<br />\nline two</p>' in html
        assert "<li>item</li>" in html

    def test_label_needs_whitespace_after_colon(self):
        assert markdown_to_html("see http://x") == '<p class="mb-3">see http://x</p>'

    def test_model_html_is_escaped(self):
        assert markdown_to_html("<script>alert(1)</script>") == (
            '<p class="mb-3">&lt;script&gt;alert(1)&lt;/script&gt;</p>'
        )

    def test_blank_answer(self):
        assert markdown_to_html("  \n\n ") == ""


class TestConversationHelpers:
    def test_trim_keeps_most_recent(self):
        messages = [ConversationMessage(role="user", content=str(i)) for i in range(5)]
        assert [m.content for m in trim_history(messages, 2)] == ["3", "4"]
        assert len(trim_history(messages, 0)) == 5

    def test_history_section(self):
        messages = [
            ConversationMessage(role="user", content="What is ATP?"),
            ConversationMessage(role="assistant", content="<p>Energy currency.</p>"),
        ]
        assert format_conversation_history(messages) == (
            "\nPREVIOUS CONVERSATION:\nUSER: What is ATP?\n"
            "ASSISTANT: <p>Energy currency.</p>\n"
        )
        assert format_conversation_history([]) == ""


@pytest.fixture
def answer_use_case(session_repository, mock_llm_service, prompt_loader):
    mock_llm_service.generate_text = AsyncMock(return_value="**ATP** stores energy.")
    return AnswerQuestionUseCase(
        session_repository, mock_llm_service, prompt_loader, max_conversation_messages=4
    )


@pytest.fixture
def text_session(session_repository):
    session = session_repository.create_session()
    session.reset("Mitochondria produce ATP.")
    return session


class TestAnswerQuestionUseCase:
    @pytest.mark.asyncio
    async def test_answer_is_html_and_recorded(self, answer_use_case, text_session):
        output = await answer_use_case.execute(
            AnswerQuestionInput(session_id=text_session.id, question="  What is ATP?  ")
        )

        assert output.answer_html == '<p class="mb-3"><strong>ATP</strong> stores energy.</p>'
        assert [(m.role, m.content) for m in output.conversation] == [
            ("user", "What is ATP?"),
            ("assistant", output.answer_html),
        ]
        assert "answer_ms" in output.timings

    @pytest.mark.asyncio
    async def test_prompt_contains_context_and_history(
        self, answer_use_case, mock_llm_service, text_session
    ):
        await answer_use_case.execute(
            AnswerQuestionInput(session_id=text_session.id, question="What is ATP?")
        )
        await answer_use_case.execute(
            AnswerQuestionInput(session_id=text_session.id, question="And where?")
        )

        first_prompt = mock_llm_service.generate_text.await_args_list[0].args[0]
        second_prompt = mock_llm_service.generate_text.await_args_list[1].args[0]
        assert "PREVIOUS CONVERSATION" not in first_prompt
        assert "Mitochondria produce ATP." in first_prompt
        assert "USER: What is ATP?" in second_prompt
        assert "QUESTION:\nAnd where?" in second_prompt

    @pytest.mark.asyncio
    async def test_history_window_is_bounded(self, answer_use_case, text_session):
        for question in ("one", "two", "three"):
            output = await answer_use_case.execute(
                AnswerQuestionInput(session_id=text_session.id, question=question)
            )

        assert len(output.conversation) == 4
        assert output.conversation[0].content == "two"

    @pytest.mark.asyncio
    async def test_empty_question_and_empty_text_are_rejected(
        self, answer_use_case, session_repository, text_session
    ):
        with pytest.raises(InvalidInputError):
            await answer_use_case.execute(
                AnswerQuestionInput(session_id=text_session.id, question="   ")
            )

        empty = session_repository.create_session()
        with pytest.raises(InvalidInputError):
            await answer_use_case.execute(
                AnswerQuestionInput(session_id=empty.id, question="Anything?")
            )

    @pytest.mark.asyncio
    async def test_model_failure_leaves_conversation_untouched(
        self, answer_use_case, mock_llm_service, text_session
    ):
        mock_llm_service.generate_text = AsyncMock(side_effect=LLMError("quota"))

        with pytest.raises(LLMError):
            await answer_use_case.execute(
                AnswerQuestionInput(session_id=text_session.id, question="What is ATP?")
            )

        assert text_session.conversation == []
