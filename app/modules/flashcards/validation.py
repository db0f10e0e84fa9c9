"""Length checks for source text and card fields.

Counts are taken on the stripped value. These are used by the review client
before a generation request and before accepting edited proposals; the API
enforces its own bounds through the request schemas.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

SOURCE_TEXT_MIN = 1000
SOURCE_TEXT_MAX = 10000
QUESTION_MIN = 3
QUESTION_MAX = 200
ANSWER_MIN = 3
ANSWER_MAX = 2000

ValidationState = Literal["below-min", "valid", "above-max"]


@dataclass(frozen=True)
class CharacterValidation:
    count: int
    state: ValidationState
    is_valid: bool
    message: str


@dataclass(frozen=True)
class FieldValidation:
    is_valid: bool
    count: int
    min: int
    max: int
    error: Optional[str] = None


@dataclass(frozen=True)
class ProposalValidation:
    is_valid: bool
    question: FieldValidation
    answer: FieldValidation


def validate_source_text(text: str) -> CharacterValidation:
    count = len(text.strip())

    if count < SOURCE_TEXT_MIN:
        state: ValidationState = "below-min"
        message = f"Minimum {SOURCE_TEXT_MIN} characters required"
    elif count > SOURCE_TEXT_MAX:
        state = "above-max"
        message = f"Maximum {SOURCE_TEXT_MAX} characters allowed"
    else:
        state = "valid"
        message = f"{count} / {SOURCE_TEXT_MAX} characters"

    return CharacterValidation(
        count=count, state=state, is_valid=state == "valid", message=message
    )


def _validate_field(label: str, value: str, lo: int, hi: int) -> FieldValidation:
    count = len(value.strip())
    if count < lo:
        return FieldValidation(
            is_valid=False,
            count=count,
            min=lo,
            max=hi,
            error=f"{label} must be at least {lo} characters",
        )
    if count > hi:
        return FieldValidation(
            is_valid=False,
            count=count,
            min=lo,
            max=hi,
            error=f"{label} must not exceed {hi} characters",
        )
    return FieldValidation(is_valid=True, count=count, min=lo, max=hi)


def validate_question(question: str) -> FieldValidation:
    return _validate_field("Question", question, QUESTION_MIN, QUESTION_MAX)


def validate_answer(answer: str) -> FieldValidation:
    return _validate_field("Answer", answer, ANSWER_MIN, ANSWER_MAX)


def validate_proposal(question: str, answer: str) -> ProposalValidation:
    q = validate_question(question)
    a = validate_answer(answer)
    return ProposalValidation(is_valid=q.is_valid and a.is_valid, question=q, answer=a)


SOURCE_GENERATION_MESSAGE = (
    "generation_id is required for AI sources (ai-full, ai-edited) "
    "and must not be present for manual sources"
)


def violates_source_generation_rule(sources, generation_id: Optional[int]) -> bool:
    """True when a batch breaks ``source == manual <=> generation_id is None``.

    Every entry must agree with ``generation_id``, so a batch mixing manual
    and AI sources always violates the rule.
    """
    has_generation = generation_id is not None
    for source in sources:
        is_manual = str(getattr(source, "value", source)) == "manual"
        if is_manual == has_generation:
            return True
    return False
