"""
Unit tests for app/modules/flashcards/validation.py
Tests: source text bounds on the trimmed value, field bounds, the
source/generation_id rule over whole batches.
"""

import pytest

from app.modules.flashcards.models.flashcards import FlashcardSource
from app.modules.flashcards.validation import (
    SOURCE_GENERATION_MESSAGE,
    validate_answer,
    validate_proposal,
    validate_question,
    validate_source_text,
    violates_source_generation_rule,
)


class TestValidateSourceText:

    def test_exactly_min_is_valid(self):
        r = validate_source_text("a" * 1000)
        assert r.count == 1000
        assert r.state == "valid"
        assert r.is_valid is True
        assert r.message == "1000 / 10000 characters"

    def test_one_below_min(self):
        r = validate_source_text("a" * 999)
        assert r.state == "below-min"
        assert r.is_valid is False
        assert r.message == "Minimum 1000 characters required"

    def test_whitespace_does_not_count(self):
        r = validate_source_text("   " + "a" * 999 + "\n\n")
        assert r.count == 999
        assert r.is_valid is False

    def test_padding_around_valid_text(self):
        r = validate_source_text("\t" + "a" * 1000 + "   ")
        assert r.is_valid is True

    def test_exactly_max_is_valid(self):
        assert validate_source_text("b" * 10000).is_valid is True

    def test_above_max(self):
        r = validate_source_text("b" * 10001)
        assert r.state == "above-max"
        assert r.is_valid is False
        assert r.message == "Maximum 10000 characters allowed"

    @pytest.mark.parametrize("n", [0, 1, 500, 999, 1000, 5000, 10000, 10001, 12000])
    def test_validity_matches_bounds(self, n):
        assert validate_source_text("x" * n).is_valid == (1000 <= n <= 10000)


class TestFieldValidation:

    def test_question_bounds(self):
        assert validate_question("abc").is_valid
        assert not validate_question("ab").is_valid
        assert validate_question("q" * 200).is_valid
        r = validate_question("q" * 201)
        assert not r.is_valid
        assert r.error == "Question must not exceed 200 characters"
        assert (r.min, r.max, r.count) == (3, 200, 201)

    def test_answer_bounds(self):
        assert validate_answer("a" * 2000).is_valid
        r = validate_answer("  a ")
        assert not r.is_valid
        assert r.count == 1
        assert r.error == "Answer must be at least 3 characters"

    def test_proposal_combines_fields(self):
        ok = validate_proposal("What is ATP?", "Energy currency of the cell")
        assert ok.is_valid
        bad = validate_proposal("What is ATP?", "")
        assert not bad.is_valid
        assert bad.question.is_valid
        assert not bad.answer.is_valid


class TestSourceGenerationRule:

    M = FlashcardSource.MANUAL
    F = FlashcardSource.AI_FULL
    E = FlashcardSource.AI_EDITED

    def test_manual_without_generation_ok(self):
        assert not violates_source_generation_rule([self.M, self.M], None)

    def test_ai_with_generation_ok(self):
        assert not violates_source_generation_rule([self.F, self.E], 3)

    def test_ai_without_generation_violates(self):
        assert violates_source_generation_rule([self.F], None)

    def test_manual_with_generation_violates(self):
        assert violates_source_generation_rule([self.M], 3)

    @pytest.mark.parametrize("generation_id", [None, 3])
    def test_mixed_batch_always_violates(self, generation_id):
        assert violates_source_generation_rule([self.M, self.F], generation_id)
        assert violates_source_generation_rule([self.E, self.M], generation_id)

    def test_accepts_raw_strings(self):
        assert not violates_source_generation_rule(["ai-full"], 1)
        assert violates_source_generation_rule(["manual"], 1)

    def test_message_names_both_halves(self):
        assert "required for AI sources" in SOURCE_GENERATION_MESSAGE
        assert "must not be present for manual sources" in SOURCE_GENERATION_MESSAGE
