from __future__ import annotations

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from app.modules.flashcards.models.flashcards import FlashcardSource


Question = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
Answer = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)]


class FlashcardCreate(BaseModel):
    question: Question
    answer: Answer
    source: FlashcardSource


class CreateFlashcardsRequest(BaseModel):
    flashcards: list[FlashcardCreate] = Field(..., min_length=1, max_length=100)
    generation_id: Optional[int] = Field(default=None, gt=0)


class FlashcardRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    question: str
    answer: str
    source: FlashcardSource
    generation_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class CreateFlashcardsResponse(BaseModel):
    created_count: int
    flashcards: list[FlashcardRead] = Field(default_factory=list)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int


class FlashcardListResponse(BaseModel):
    data: list[FlashcardRead] = Field(default_factory=list)
    pagination: Pagination
