from __future__ import annotations

import asyncio
from typing import Callable, Optional

from app.core.logging import get_logger
from app.modules.review.api_client import ApiRequestError, FlashcardsApiClient
from app.modules.review.models import ErrorState, ViewState
from app.modules.review.state import (
    Cancel,
    Dismiss,
    Edit,
    Event,
    GenerationFailed,
    GenerationSucceeded,
    Retry,
    ReviewState,
    Save,
    SaveFailed,
    SaveSucceeded,
    SetEditing,
    SourceTextChanged,
    Submit,
    Toggle,
    transition,
)

logger = get_logger(__name__)

REDIRECT_DELAY_SECONDS = 2.0


class ReviewSession:
    """Drives one review session against the API.

    Network calls are issued only after ``transition`` has moved the state
    into ``generating`` or ``saving``, and their outcome is fed back as an
    event tagged with the epoch the request started in.
    """

    def __init__(
        self,
        client: FlashcardsApiClient,
        *,
        navigate: Optional[Callable[[str], None]] = None,
        redirect_delay: float = REDIRECT_DELAY_SECONDS,
    ) -> None:
        self.client = client
        self.state = ReviewState()
        self.last_created_count: Optional[int] = None
        self._navigate = navigate
        self._redirect_delay = redirect_delay
        self._redirect: Optional[asyncio.TimerHandle] = None

    def dispatch(self, event: Event) -> ReviewState:
        self.state = transition(self.state, event)
        return self.state

    # -- local edits ------------------------------------------------------

    def set_source_text(self, text: str) -> ReviewState:
        return self.dispatch(SourceTextChanged(text))

    def toggle(self, proposal_id: int) -> ReviewState:
        return self.dispatch(Toggle(proposal_id))

    def edit(self, proposal_id: int, field: str, value: str) -> ReviewState:
        return self.dispatch(Edit(proposal_id, field, value))  # type: ignore[arg-type]

    def set_editing(self, proposal_id: int, editing: bool) -> ReviewState:
        return self.dispatch(SetEditing(proposal_id, editing))

    def dismiss(self) -> ReviewState:
        return self.dispatch(Dismiss())

    def cancel(self) -> ReviewState:
        self._cancel_redirect()
        return self.dispatch(Cancel())

    # -- requests ---------------------------------------------------------

    async def generate(self) -> ReviewState:
        self.dispatch(Submit())
        await self._run_generate(self.state.epoch)
        return self.state

    async def save(self) -> ReviewState:
        self.dispatch(Save())
        if self.state.view_state is not ViewState.SAVING:
            # Nothing selected
            return self.state
        await self._run_save(self.state.epoch)
        return self.state

    async def retry(self) -> ReviewState:
        self.dispatch(Retry())
        if self.state.view_state is ViewState.SAVING:
            await self._run_save(self.state.epoch)
        else:
            await self._run_generate(self.state.epoch)
        return self.state

    async def _run_generate(self, epoch: int) -> None:
        try:
            result = await self.client.generate(self.state.source_text)
        except ApiRequestError as e:
            self._fail(GenerationFailed(epoch, e.error_state))
            return
        self.dispatch(GenerationSucceeded(epoch, result))

    async def _run_save(self, epoch: int) -> None:
        selected = self.state.selected_proposals
        try:
            result = await self.client.save_flashcards(selected, self.state.generation_id)
        except ApiRequestError as e:
            self._fail(SaveFailed(epoch, e.error_state))
            return
        before = self.state
        self.dispatch(SaveSucceeded(epoch, result.created_count))
        if self.state is not before:
            self.last_created_count = result.created_count
            logger.info("Saved %s flashcards", result.created_count)

    def _fail(self, event: GenerationFailed | SaveFailed) -> None:
        before = self.state
        self.dispatch(event)
        if self.state is before:
            # Late response for a cancelled request
            return
        self._schedule_redirect(event.error)

    # -- redirects --------------------------------------------------------

    def _schedule_redirect(self, error: ErrorState) -> None:
        if not (error.should_redirect and error.redirect_url):
            return
        if self._navigate is None:
            return
        self._cancel_redirect()
        loop = asyncio.get_running_loop()
        self._redirect = loop.call_later(
            self._redirect_delay, self._navigate, error.redirect_url
        )

    def _cancel_redirect(self) -> None:
        if self._redirect is not None:
            self._redirect.cancel()
            self._redirect = None

    @property
    def redirect_pending(self) -> bool:
        return self._redirect is not None and not self._redirect.cancelled()
