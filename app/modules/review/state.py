"""Review session state machine.

One immutable ``ReviewState`` and a single ``transition(state, event)``
function. Guards live here rather than in any caller: an event that is not
allowed from the current state raises ``TransitionRejected``.

Completion events (``GenerationSucceeded`` and friends) carry the epoch of
the request they answer. ``Submit``, ``Save``, ``Retry`` and ``Cancel`` all
move to a new epoch, so a response that arrives after the session moved on
is ignored instead of resurrecting stale proposals.

    idle --submit--> generating --ok--> reviewing --save--> saving --ok--> idle
                         |                  ^                 |
                         +------fail----> error <----fail-----+
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal, Optional, Union

from app.modules.flashcards.validation import (
    CharacterValidation,
    validate_proposal,
    validate_source_text,
)
from app.modules.review.models import (
    ErrorState,
    GenerationResultDTO,
    ProposalViewModel,
    ViewState,
)


class TransitionRejected(Exception):
    def __init__(self, state: "ReviewState", event: "Event", reason: str):
        super().__init__(
            f"{type(event).__name__} rejected in {state.view_state.value}: {reason}"
        )
        self.state = state
        self.event = event
        self.reason = reason


@dataclass(frozen=True)
class ReviewState:
    view_state: ViewState = ViewState.IDLE
    source_text: str = ""
    proposals: tuple[ProposalViewModel, ...] = ()
    generation_id: Optional[int] = None
    error: Optional[ErrorState] = None
    epoch: int = 0

    @property
    def selected_count(self) -> int:
        return sum(1 for p in self.proposals if p.is_selected)

    @property
    def selected_proposals(self) -> list[ProposalViewModel]:
        return [p for p in self.proposals if p.is_selected]

    @property
    def source_validation(self) -> CharacterValidation:
        return validate_source_text(self.source_text)

    @property
    def can_submit(self) -> bool:
        return self.view_state is ViewState.IDLE and self.source_validation.is_valid

    @property
    def can_save(self) -> bool:
        return self.view_state is ViewState.REVIEWING and self.selected_count > 0

    @property
    def can_retry(self) -> bool:
        return (
            self.view_state is ViewState.ERROR
            and self.error is not None
            and self.error.can_retry
        )

    def proposal(self, proposal_id: int) -> Optional[ProposalViewModel]:
        for p in self.proposals:
            if p.id == proposal_id:
                return p
        return None


# -- events -----------------------------------------------------------------


@dataclass(frozen=True)
class SourceTextChanged:
    text: str


@dataclass(frozen=True)
class Submit:
    pass


@dataclass(frozen=True)
class GenerationSucceeded:
    epoch: int
    result: GenerationResultDTO


@dataclass(frozen=True)
class GenerationFailed:
    epoch: int
    error: ErrorState


@dataclass(frozen=True)
class Toggle:
    proposal_id: int


@dataclass(frozen=True)
class Edit:
    proposal_id: int
    field: Literal["question", "answer"]
    value: str


@dataclass(frozen=True)
class SetEditing:
    proposal_id: int
    editing: bool


@dataclass(frozen=True)
class Save:
    pass


@dataclass(frozen=True)
class SaveSucceeded:
    epoch: int
    created_count: int = 0


@dataclass(frozen=True)
class SaveFailed:
    epoch: int
    error: ErrorState


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class Dismiss:
    pass


@dataclass(frozen=True)
class Retry:
    pass


Event = Union[
    SourceTextChanged,
    Submit,
    GenerationSucceeded,
    GenerationFailed,
    Toggle,
    Edit,
    SetEditing,
    Save,
    SaveSucceeded,
    SaveFailed,
    Cancel,
    Dismiss,
    Retry,
]

_BUSY = (ViewState.GENERATING, ViewState.SAVING)


# -- transition -------------------------------------------------------------


def transition(state: ReviewState, event: Event) -> ReviewState:
    if isinstance(event, SourceTextChanged):
        if state.view_state in _BUSY:
            raise TransitionRejected(state, event, "a request is in flight")
        return replace(state, source_text=event.text)

    if isinstance(event, Submit):
        _require(state, event, ViewState.IDLE)
        check = state.source_validation
        if not check.is_valid:
            raise TransitionRejected(state, event, check.message)
        return _start_generating(state)

    if isinstance(event, GenerationSucceeded):
        if _is_stale(state, event.epoch, ViewState.GENERATING):
            return state
        proposals = tuple(
            ProposalViewModel.from_proposal(p, i)
            for i, p in enumerate(event.result.flashcards_proposals)
        )
        generation = event.result.generation
        return replace(
            state,
            view_state=ViewState.REVIEWING,
            proposals=proposals,
            generation_id=generation.id if generation is not None else None,
            error=None,
        )

    if isinstance(event, GenerationFailed):
        if _is_stale(state, event.epoch, ViewState.GENERATING):
            return state
        return replace(state, view_state=ViewState.ERROR, error=event.error)

    if isinstance(event, Toggle):
        _require(state, event, ViewState.REVIEWING)
        target = _existing(state, event, event.proposal_id)
        selected = not target.is_selected
        return _put(
            state,
            replace(
                target,
                is_selected=selected,
                is_editing=target.is_editing and selected,
            ),
        )

    if isinstance(event, Edit):
        _require(state, event, ViewState.REVIEWING)
        target = _existing(state, event, event.proposal_id)
        if not target.is_selected:
            raise TransitionRejected(state, event, "proposal is not selected")
        if event.field not in ("question", "answer"):
            raise TransitionRejected(state, event, f"unknown field {event.field!r}")
        return _put(state, target.with_field(event.field, event.value))

    if isinstance(event, SetEditing):
        _require(state, event, ViewState.REVIEWING)
        target = _existing(state, event, event.proposal_id)
        if event.editing and not target.is_selected:
            raise TransitionRejected(state, event, "proposal is not selected")
        return _put(state, replace(target, is_editing=event.editing))

    if isinstance(event, Save):
        _require(state, event, ViewState.REVIEWING)
        if state.selected_count == 0:
            return state
        _require_valid_selection(state, event)
        return _start_saving(state)

    if isinstance(event, SaveSucceeded):
        if _is_stale(state, event.epoch, ViewState.SAVING):
            return state
        return ReviewState(epoch=state.epoch)

    if isinstance(event, SaveFailed):
        if _is_stale(state, event.epoch, ViewState.SAVING):
            return state
        return replace(state, view_state=ViewState.ERROR, error=event.error)

    if isinstance(event, Cancel):
        return ReviewState(epoch=state.epoch + 1)

    if isinstance(event, Dismiss):
        _require(state, event, ViewState.ERROR)
        return replace(
            state,
            view_state=ViewState.REVIEWING if state.proposals else ViewState.IDLE,
            error=None,
        )

    if isinstance(event, Retry):
        _require(state, event, ViewState.ERROR)
        if not state.can_retry:
            raise TransitionRejected(state, event, "error is not retryable")
        if state.proposals:
            if state.selected_count == 0:
                raise TransitionRejected(state, event, "no proposals selected")
            _require_valid_selection(state, event)
            return _start_saving(state)
        check = state.source_validation
        if not check.is_valid:
            raise TransitionRejected(state, event, check.message)
        return _start_generating(state)

    raise TransitionRejected(state, event, "unknown event")


def _start_generating(state: ReviewState) -> ReviewState:
    return replace(
        state,
        view_state=ViewState.GENERATING,
        proposals=(),
        generation_id=None,
        error=None,
        epoch=state.epoch + 1,
    )


def _start_saving(state: ReviewState) -> ReviewState:
    return replace(
        state, view_state=ViewState.SAVING, error=None, epoch=state.epoch + 1
    )


def _require(state: ReviewState, event: Event, *allowed: ViewState) -> None:
    if state.view_state not in allowed:
        raise TransitionRejected(
            state, event, f"not allowed from {state.view_state.value}"
        )


def _existing(state: ReviewState, event: Event, proposal_id: int) -> ProposalViewModel:
    target = state.proposal(proposal_id)
    if target is None:
        raise TransitionRejected(state, event, f"unknown proposal {proposal_id}")
    return target


def _require_valid_selection(state: ReviewState, event: Event) -> None:
    for p in state.selected_proposals:
        check = validate_proposal(p.question, p.answer)
        if not check.is_valid:
            reason = check.question.error or check.answer.error or "invalid proposal"
            raise TransitionRejected(state, event, f"proposal {p.id}: {reason}")


def _is_stale(state: ReviewState, epoch: int, expected: ViewState) -> bool:
    return epoch != state.epoch or state.view_state is not expected


def _put(state: ReviewState, updated: ProposalViewModel) -> ReviewState:
    return replace(
        state,
        proposals=tuple(updated if p.id == updated.id else p for p in state.proposals),
    )
