"""
Unit tests for app/core/db/schemas/flashcards.py
Inspects table metadata only; no database required.
"""

from app.core.db.schemas.flashcards import Flashcard, FlashcardProposal, Generation


def _generation_fk(model):
    (fk,) = model.__table__.c.generation_id.foreign_keys
    return fk


class TestFlashcardTable:

    def test_generation_delete_is_restricted(self):
        # SET NULL would break (source = 'manual') = (generation_id IS NULL)
        assert _generation_fk(Flashcard).ondelete == "RESTRICT"

    def test_orm_does_not_null_library_cards(self):
        assert Generation.flashcards.property.passive_deletes == "all"

    def test_source_generation_check_present(self):
        names = {c.name for c in Flashcard.__table__.constraints}
        assert "ck_flashcards_source_generation" in names


class TestProposalTable:

    def test_proposals_follow_their_generation(self):
        assert _generation_fk(FlashcardProposal).ondelete == "CASCADE"
