"""View models and wire DTOs used by the review client.

Kept free of server imports so the client runs without database settings.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.modules.flashcards.models.flashcards import FlashcardSource


class ViewState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    REVIEWING = "reviewing"
    SAVING = "saving"
    ERROR = "error"


@dataclass(frozen=True)
class ErrorState:
    """User-facing failure: message plus retry and redirect hints."""

    message: str
    can_retry: bool
    should_redirect: bool = False
    redirect_url: Optional[str] = None


class ProposalDTO(BaseModel):
    id: Optional[int] = None
    question: str
    answer: str
    source: FlashcardSource = FlashcardSource.AI_FULL
    generation_id: Optional[int] = None
    created_at: Optional[datetime] = None


class GenerationDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    model: Optional[str] = None
    generated_count: Optional[int] = None


class GenerationResultDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    generation: Optional[GenerationDTO] = None
    flashcards_proposals: list[ProposalDTO] = Field(
        default_factory=list, alias="flashcardsProposals"
    )
    saved: bool = False


class CreateFlashcardsResultDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    created_count: int
    flashcards: list[dict] = Field(default_factory=list)


@dataclass(frozen=True)
class ProposalViewModel:
    id: int
    question: str
    answer: str
    original_question: str
    original_answer: str
    source: FlashcardSource = FlashcardSource.AI_FULL
    generation_id: Optional[int] = None
    is_selected: bool = True
    is_editing: bool = False
    is_modified: bool = False

    @classmethod
    def from_proposal(cls, proposal: ProposalDTO, index: int) -> "ProposalViewModel":
        # Unsaved proposals have no id; their position stands in for it
        return cls(
            id=proposal.id if proposal.id is not None else index,
            question=proposal.question,
            answer=proposal.answer,
            original_question=proposal.question,
            original_answer=proposal.answer,
            source=proposal.source,
            generation_id=proposal.generation_id,
        )

    def with_field(self, field: str, value: str) -> "ProposalViewModel":
        question = value if field == "question" else self.question
        answer = value if field == "answer" else self.answer
        modified = question != self.original_question or answer != self.original_answer
        return replace(
            self,
            question=question,
            answer=answer,
            is_modified=modified,
            source=FlashcardSource.AI_EDITED if modified else FlashcardSource.AI_FULL,
        )

    def to_payload(self) -> dict[str, str]:
        return {
            "question": self.question,
            "answer": self.answer,
            "source": self.source.value,
        }
