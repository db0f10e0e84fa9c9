"""
Unit tests for app/modules/review/state.py
Pure transitions only; no network or event loop required.
"""

import pytest

from app.modules.flashcards.models.flashcards import FlashcardSource
from app.modules.review.models import (
    ErrorState,
    GenerationDTO,
    GenerationResultDTO,
    ProposalDTO,
    ViewState,
)
from app.modules.review.state import (
    Cancel,
    Dismiss,
    Edit,
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
    TransitionRejected,
    transition,
)

VALID_TEXT = "a" * 1000


def _result(n=2, generation_id=9, with_ids=True):
    return GenerationResultDTO(
        generation=GenerationDTO(id=generation_id) if generation_id else None,
        flashcards_proposals=[
            ProposalDTO(
                id=(10 + i) if with_ids else None,
                question=f"Question {i}?",
                answer=f"Answer {i}.",
                generation_id=generation_id,
            )
            for i in range(n)
        ],
        saved=with_ids,
    )


def _run(state, *events):
    for e in events:
        state = transition(state, e)
    return state


def _reviewing(n=2, **kw):
    s = _run(ReviewState(), SourceTextChanged(VALID_TEXT), Submit())
    return transition(s, GenerationSucceeded(s.epoch, _result(n, **kw)))


DB_DOWN = ErrorState(message="Database unavailable", can_retry=True)


class TestSubmit:

    def test_submit_enters_generating(self):
        s = _run(ReviewState(), SourceTextChanged(VALID_TEXT), Submit())
        assert s.view_state is ViewState.GENERATING
        assert s.epoch == 1

    def test_submit_rejected_for_short_text(self):
        s = transition(ReviewState(), SourceTextChanged("a" * 999))
        with pytest.raises(TransitionRejected) as ei:
            transition(s, Submit())
        assert ei.value.reason == "Minimum 1000 characters required"

    def test_no_resubmit_while_generating(self):
        s = _run(ReviewState(), SourceTextChanged(VALID_TEXT), Submit())
        with pytest.raises(TransitionRejected):
            transition(s, Submit())

    def test_source_text_locked_while_generating(self):
        s = _run(ReviewState(), SourceTextChanged(VALID_TEXT), Submit())
        with pytest.raises(TransitionRejected):
            transition(s, SourceTextChanged("other"))


class TestScenarioC:

    def test_two_proposals_all_selected_ai_full(self):
        s = _reviewing(2)
        assert s.view_state is ViewState.REVIEWING
        assert len(s.proposals) == 2
        assert s.selected_count == 2
        assert all(p.source is FlashcardSource.AI_FULL for p in s.proposals)
        assert s.generation_id == 9

    def test_anonymous_proposals_use_index_as_id(self):
        s = _reviewing(3, generation_id=None, with_ids=False)
        assert [p.id for p in s.proposals] == [0, 1, 2]
        assert s.generation_id is None


class TestToggle:

    def test_double_toggle_restores_selection(self):
        s = _reviewing(3)
        s2 = _run(s, Toggle(11), Toggle(11))
        assert s2.proposals == s.proposals

    @pytest.mark.parametrize(
        "toggles, expected",
        [([], 3), ([10], 2), ([10, 11], 1), ([10, 10, 12], 2), ([10, 11, 12, 11], 1)],
    )
    def test_selected_count_follows_odd_toggles(self, toggles, expected):
        s = _run(_reviewing(3), *[Toggle(i) for i in toggles])
        assert s.selected_count == expected
        assert s.selected_count == sum(1 for p in s.proposals if p.is_selected)

    def test_unknown_id_rejected(self):
        with pytest.raises(TransitionRejected):
            transition(_reviewing(2), Toggle(999))

    def test_toggle_only_while_reviewing(self):
        with pytest.raises(TransitionRejected):
            transition(ReviewState(), Toggle(10))


class TestEdit:

    def test_edit_marks_modified_and_ai_edited(self):
        s = transition(_reviewing(), Edit(10, "question", "A better question?"))
        p = s.proposal(10)
        assert p.question == "A better question?"
        assert p.is_modified is True
        assert p.source is FlashcardSource.AI_EDITED
        assert s.proposal(11).source is FlashcardSource.AI_FULL

    def test_edit_back_to_original_restores_ai_full(self):
        s = _run(
            _reviewing(),
            Edit(10, "answer", "Changed."),
            Edit(10, "answer", "Answer 0."),
        )
        p = s.proposal(10)
        assert p.is_modified is False
        assert p.source is FlashcardSource.AI_FULL

    def test_revert_one_field_keeps_other_modification(self):
        s = _run(
            _reviewing(),
            Edit(10, "question", "New?"),
            Edit(10, "answer", "New answer."),
            Edit(10, "question", "Question 0?"),
        )
        assert s.proposal(10).is_modified is True
        assert s.proposal(10).source is FlashcardSource.AI_EDITED

    def test_edit_on_deselected_rejected(self):
        s = transition(_reviewing(), Toggle(10))
        with pytest.raises(TransitionRejected) as ei:
            transition(s, Edit(10, "question", "Sneaky?"))
        assert ei.value.reason == "proposal is not selected"

    def test_editing_flag_cleared_on_deselect(self):
        s = _run(_reviewing(), SetEditing(10, True), Toggle(10))
        assert s.proposal(10).is_editing is False
        with pytest.raises(TransitionRejected):
            transition(s, SetEditing(10, True))


class TestSave:

    def test_save_with_nothing_selected_is_noop(self):
        s = _run(_reviewing(2), Toggle(10), Toggle(11))
        assert transition(s, Save()) is s

    def test_save_enters_saving_with_new_epoch(self):
        s = _reviewing(2)
        s2 = transition(s, Save())
        assert s2.view_state is ViewState.SAVING
        assert s2.epoch == s.epoch + 1

    def test_save_rejects_invalid_selected_proposal(self):
        s = transition(_reviewing(2), Edit(10, "answer", "no"))
        with pytest.raises(TransitionRejected):
            transition(s, Save())

    def test_invalid_deselected_proposal_does_not_block(self):
        s = _run(_reviewing(2), Edit(10, "answer", "no"), Toggle(10))
        assert transition(s, Save()).view_state is ViewState.SAVING

    def test_success_clears_session(self):
        s = transition(_reviewing(2), Save())
        done = transition(s, SaveSucceeded(s.epoch, 2))
        assert done.view_state is ViewState.IDLE
        assert done.source_text == ""
        assert done.proposals == ()
        assert done.generation_id is None


class TestScenarioD:

    def test_failed_save_keeps_proposals_and_dismiss_returns_to_reviewing(self):
        s = _run(_reviewing(2), Toggle(11))
        saving = transition(s, Save())
        failed = transition(saving, SaveFailed(saving.epoch, DB_DOWN))
        assert failed.view_state is ViewState.ERROR
        assert failed.error == DB_DOWN
        assert failed.proposals == s.proposals
        assert failed.can_retry

        back = transition(failed, Dismiss())
        assert back.view_state is ViewState.REVIEWING
        assert back.error is None
        assert back.proposals == s.proposals

    def test_dismiss_without_proposals_goes_idle(self):
        s = _run(ReviewState(), SourceTextChanged(VALID_TEXT), Submit())
        failed = transition(s, GenerationFailed(s.epoch, DB_DOWN))
        assert transition(failed, Dismiss()).view_state is ViewState.IDLE


class TestScenarioE:

    @pytest.mark.parametrize("toggles", [[], [10], [10, 11]])
    def test_cancel_discards_everything(self, toggles):
        s = _run(_reviewing(2), *[Toggle(i) for i in toggles])
        c = transition(s, Cancel())
        assert c.source_text == ""
        assert c.proposals == ()
        assert c.generation_id is None
        assert c.view_state is ViewState.IDLE
        assert c.error is None


class TestStaleResponses:

    def test_generation_after_cancel_ignored(self):
        s = _run(ReviewState(), SourceTextChanged(VALID_TEXT), Submit())
        request_epoch = s.epoch
        c = transition(s, Cancel())
        assert transition(c, GenerationSucceeded(request_epoch, _result())) is c
        assert transition(c, GenerationFailed(request_epoch, DB_DOWN)) is c

    def test_save_result_after_cancel_ignored(self):
        s = transition(_reviewing(), Save())
        c = transition(s, Cancel())
        assert transition(c, SaveSucceeded(s.epoch, 2)) is c
        assert transition(c, SaveFailed(s.epoch, DB_DOWN)) is c

    def test_old_generation_after_resubmit_ignored(self):
        s = _run(ReviewState(), SourceTextChanged(VALID_TEXT), Submit())
        old = s.epoch
        s = _run(s, Cancel(), SourceTextChanged(VALID_TEXT), Submit())
        assert transition(s, GenerationSucceeded(old, _result())) is s


class TestRetry:

    def test_retry_save_when_proposals_exist(self):
        saving = transition(_reviewing(), Save())
        failed = transition(saving, SaveFailed(saving.epoch, DB_DOWN))
        again = transition(failed, Retry())
        assert again.view_state is ViewState.SAVING
        assert again.epoch == failed.epoch + 1

    def test_retry_generate_without_proposals(self):
        s = _run(ReviewState(), SourceTextChanged(VALID_TEXT), Submit())
        failed = transition(s, GenerationFailed(s.epoch, DB_DOWN))
        assert transition(failed, Retry()).view_state is ViewState.GENERATING

    def test_retry_rejected_when_not_retryable(self):
        s = _run(ReviewState(), SourceTextChanged(VALID_TEXT), Submit())
        expired = ErrorState("Session expired", False, True, "/login")
        failed = transition(s, GenerationFailed(s.epoch, expired))
        with pytest.raises(TransitionRejected):
            transition(failed, Retry())
