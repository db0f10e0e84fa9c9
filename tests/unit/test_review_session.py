"""
Unit tests for app/modules/review/session.py
The API client is an AsyncMock spy; redirects use a short delay.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.modules.review.api_client import (
    SESSION_EXPIRED,
    ApiRequestError,
    FlashcardsApiClient,
)
from app.modules.review.models import (
    CreateFlashcardsResultDTO,
    ErrorState,
    GenerationDTO,
    GenerationResultDTO,
    ProposalDTO,
    ViewState,
)
from app.modules.review.session import REDIRECT_DELAY_SECONDS, ReviewSession
from app.modules.review.state import TransitionRejected

VALID_TEXT = "a" * 1000

RESULT = GenerationResultDTO(
    generation=GenerationDTO(id=9),
    flashcards_proposals=[
        ProposalDTO(id=1, question="What is ATP?", answer="Energy currency.", generation_id=9),
        ProposalDTO(id=2, question="What is ADP?", answer="Spent ATP.", generation_id=9),
    ],
    saved=True,
)


def _client():
    client = AsyncMock(spec=FlashcardsApiClient)
    client.generate.return_value = RESULT
    client.save_flashcards.return_value = CreateFlashcardsResultDTO(created_count=2)
    return client


async def _reviewing_session(client=None, **kw):
    session = ReviewSession(client or _client(), **kw)
    session.set_source_text(VALID_TEXT)
    await session.generate()
    return session


class TestGenerate:

    async def test_generate_reaches_reviewing(self):
        client = _client()
        session = await _reviewing_session(client)
        assert session.state.view_state is ViewState.REVIEWING
        assert session.state.selected_count == 2
        client.generate.assert_awaited_once_with(VALID_TEXT)

    async def test_invalid_text_never_calls_api(self):
        client = _client()
        session = ReviewSession(client)
        session.set_source_text("too short")
        with pytest.raises(TransitionRejected):
            await session.generate()
        client.generate.assert_not_awaited()
        assert session.state.view_state is ViewState.IDLE

    async def test_failure_enters_error(self):
        client = _client()
        client.generate.side_effect = ApiRequestError(
            ErrorState("AI service is currently unavailable.", True), 503
        )
        session = ReviewSession(client)
        session.set_source_text(VALID_TEXT)
        await session.generate()
        assert session.state.view_state is ViewState.ERROR
        assert session.state.can_retry


class TestSave:

    async def test_zero_selected_never_calls_save(self):
        client = _client()
        session = await _reviewing_session(client)
        session.toggle(1)
        session.toggle(2)
        state = await session.save()
        assert state.view_state is ViewState.REVIEWING
        client.save_flashcards.assert_not_called()

    async def test_only_selected_proposals_sent(self):
        client = _client()
        session = await _reviewing_session(client)
        session.toggle(2)
        session.edit(1, "answer", "The energy currency of cells.")
        await session.save()

        sent, generation_id = client.save_flashcards.await_args.args
        assert [p.id for p in sent] == [1]
        assert sent[0].to_payload() == {
            "question": "What is ATP?",
            "answer": "The energy currency of cells.",
            "source": "ai-edited",
        }
        assert generation_id == 9
        assert session.state.view_state is ViewState.IDLE
        assert session.last_created_count == 2

    async def test_failed_save_keeps_proposals(self):
        client = _client()
        client.save_flashcards.side_effect = ApiRequestError(
            ErrorState("Database unavailable", True), 500
        )
        session = await _reviewing_session(client)
        before = session.state.proposals
        await session.save()
        assert session.state.view_state is ViewState.ERROR
        assert session.state.proposals == before
        session.dismiss()
        assert session.state.view_state is ViewState.REVIEWING

    async def test_retry_reissues_save(self):
        client = _client()
        client.save_flashcards.side_effect = [
            ApiRequestError(ErrorState("Database unavailable", True), 500),
            CreateFlashcardsResultDTO(created_count=2),
        ]
        session = await _reviewing_session(client)
        await session.save()
        await session.retry()
        assert client.save_flashcards.await_count == 2
        assert session.state.view_state is ViewState.IDLE


class TestCancellation:

    async def test_late_generation_after_cancel_ignored(self):
        gate = asyncio.Event()
        client = _client()

        async def slow_generate(text):
            await gate.wait()
            return RESULT

        client.generate.side_effect = slow_generate
        session = ReviewSession(client)
        session.set_source_text(VALID_TEXT)
        task = asyncio.create_task(session.generate())
        await asyncio.sleep(0)
        assert session.state.view_state is ViewState.GENERATING

        session.cancel()
        gate.set()
        await task

        assert session.state.view_state is ViewState.IDLE
        assert session.state.proposals == ()
        assert session.state.source_text == ""

    async def test_late_save_failure_after_cancel_ignored(self):
        gate = asyncio.Event()
        client = _client()

        async def slow_save(proposals, generation_id):
            await gate.wait()
            raise ApiRequestError(SESSION_EXPIRED, 401)

        client.save_flashcards.side_effect = slow_save
        navigate = MagicMock()
        session = await _reviewing_session(client, navigate=navigate, redirect_delay=0.01)
        task = asyncio.create_task(session.save())
        await asyncio.sleep(0)
        session.cancel()
        gate.set()
        await task
        await asyncio.sleep(0.05)

        assert session.state.view_state is ViewState.IDLE
        navigate.assert_not_called()


class TestRedirect:

    def test_default_delay_is_two_seconds(self):
        assert REDIRECT_DELAY_SECONDS == 2.0

    async def test_unauthenticated_failure_schedules_redirect(self):
        client = _client()
        client.save_flashcards.side_effect = ApiRequestError(SESSION_EXPIRED, 401)
        navigate = MagicMock()
        session = await _reviewing_session(client, navigate=navigate, redirect_delay=0.01)
        await session.save()

        assert session.redirect_pending
        navigate.assert_not_called()
        await asyncio.sleep(0.05)
        navigate.assert_called_once_with("/login")

    async def test_cancel_drops_pending_redirect(self):
        client = _client()
        client.generate.side_effect = ApiRequestError(SESSION_EXPIRED, 401)
        navigate = MagicMock()
        session = ReviewSession(client, navigate=navigate, redirect_delay=0.01)
        session.set_source_text(VALID_TEXT)
        await session.generate()
        session.cancel()
        await asyncio.sleep(0.05)
        navigate.assert_not_called()

    async def test_retryable_error_does_not_redirect(self):
        client = _client()
        client.generate.side_effect = ApiRequestError(ErrorState("Server error", True), 500)
        navigate = MagicMock()
        session = ReviewSession(client, navigate=navigate, redirect_delay=0.01)
        session.set_source_text(VALID_TEXT)
        await session.generate()
        await asyncio.sleep(0.05)
        navigate.assert_not_called()
