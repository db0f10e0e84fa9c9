from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.modules.flashcards.main import GenerationOutcome
from app.modules.flashcards.models.flashcards import FlashcardSource
from app.modules.flashcards.validation import SOURCE_TEXT_MAX, SOURCE_TEXT_MIN


class GenerationCreateRequest(BaseModel):
    source_text: str = Field(..., description="Study material to turn into flashcards")

    @field_validator("source_text")
    @classmethod
    def _check_length(cls, v: str) -> str:
        # Bounds apply to the trimmed text; the raw value is kept for hashing
        n = len(v.strip())
        if n < SOURCE_TEXT_MIN:
            raise ValueError(
                f"source_text must contain at least {SOURCE_TEXT_MIN} characters"
            )
        if n > SOURCE_TEXT_MAX:
            raise ValueError(
                f"source_text must not exceed {SOURCE_TEXT_MAX} characters"
            )
        return v


class ProposalRead(BaseModel):
    id: Optional[int] = None
    question: str
    answer: str
    source: FlashcardSource
    generation_id: Optional[int] = None
    created_at: Optional[datetime] = None


class GenerationRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    user_id: int
    model: str
    source_text_length: int
    source_text_hash: str
    generated_count: int
    generation_duration: int
    created_at: datetime
    flashcards_proposals: list[ProposalRead] = Field(
        default_factory=list, alias="flashcardsProposals"
    )


class GenerationResultRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    generation: Optional[GenerationRead] = None
    flashcards_proposals: list[ProposalRead] = Field(
        default_factory=list, alias="flashcardsProposals"
    )
    saved: bool = False

    @classmethod
    def from_outcome(cls, outcome: GenerationOutcome) -> "GenerationResultRead":
        proposals = [
            ProposalRead(
                id=p.id,
                question=p.question,
                answer=p.answer,
                source=p.source,
                generation_id=p.generation_id,
                created_at=p.created_at,
            )
            for p in outcome.proposals
        ]
        generation = None
        g = outcome.generation
        if g is not None:
            generation = GenerationRead(
                id=g.id,
                user_id=g.user_id,
                model=g.model,
                source_text_length=g.source_text_length,
                source_text_hash=g.source_text_hash,
                generated_count=g.generated_count,
                generation_duration=g.generation_duration,
                created_at=g.created_at,
                flashcards_proposals=proposals,
            )
        return cls(
            generation=generation,
            flashcards_proposals=proposals,
            saved=outcome.saved,
        )
