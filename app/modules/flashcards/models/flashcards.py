"""Pydantic models shared by the provider contract, the API and the review client.

``ProposalBatch`` is the structured-output schema sent to the model. Its JSON
schema is embedded in the system prompt, so constraints are kept to what the
model can reasonably honour; lengths are enforced later by the API layer.
"""

from __future__ import annotations

import enum
from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints


class FlashcardSource(str, enum.Enum):
    MANUAL = "manual"
    AI_FULL = "ai-full"
    AI_EDITED = "ai-edited"

    @property
    def is_ai(self) -> bool:
        return self is not FlashcardSource.MANUAL


NonEmptyText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class ProposalItem(BaseModel):
    """Simple question/answer flashcard proposal."""

    question: NonEmptyText
    answer: NonEmptyText


class ProposalBatch(BaseModel):
    """A non-empty list of proposals returned by the model."""

    flashcards: list[ProposalItem] = Field(min_length=1)
