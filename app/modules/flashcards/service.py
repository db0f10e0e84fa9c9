"""Flashcard library operations with ownership checks.

Raises ``FlashcardServiceError`` for every failure so the API layer can map
codes to responses without inspecting database exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db.schemas.flashcards import Flashcard
from app.core.db_services import (
    FlashcardDBService,
    FlashcardSortField,
    GenerationDBService,
    SortOrder,
)
from app.core.logging import get_logger
from app.modules.flashcards.errors import FlashcardErrorCode, FlashcardServiceError
from app.modules.flashcards.models.flashcards import FlashcardSource
from app.modules.flashcards.validation import (
    SOURCE_GENERATION_MESSAGE,
    violates_source_generation_rule,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class NewFlashcard:
    question: str
    answer: str
    source: FlashcardSource


class FlashcardService:
    def __init__(self, session: AsyncSession):
        self.cards = FlashcardDBService(session)
        self.generations = GenerationDBService(session)

    async def _check_generation_owner(self, generation_id: int, user_id: int) -> None:
        try:
            generation = await self.generations.get_generation(generation_id)
        except SQLAlchemyError as e:
            logger.error("Failed to load generation %s: %s", generation_id, e)
            raise FlashcardServiceError(
                FlashcardErrorCode.DATABASE_ERROR, "Failed to validate generation", 500
            ) from e

        if generation is None:
            raise FlashcardServiceError(
                FlashcardErrorCode.NOT_FOUND,
                f"Generation with ID {generation_id} not found",
                404,
            )
        if generation.user_id != user_id:
            logger.warning(
                "Generation ownership mismatch: generation=%s owner=%s",
                generation_id,
                generation.user_id,
                extra={"user_id": user_id},
            )
            raise FlashcardServiceError(
                FlashcardErrorCode.FORBIDDEN,
                "Generation does not belong to the current user",
                403,
            )

    async def create_flashcards(
        self,
        *,
        user_id: int,
        generation_id: Optional[int],
        cards: list[NewFlashcard],
    ) -> list[Flashcard]:
        if not cards:
            raise FlashcardServiceError(
                FlashcardErrorCode.VALIDATION_ERROR,
                "At least one flashcard is required",
                400,
            )
        if violates_source_generation_rule([c.source for c in cards], generation_id):
            raise FlashcardServiceError(
                FlashcardErrorCode.VALIDATION_ERROR, SOURCE_GENERATION_MESSAGE, 400
            )

        if generation_id is not None:
            await self._check_generation_owner(generation_id, user_id)

        try:
            rows = await self.cards.insert_flashcards(
                user_id=user_id,
                generation_id=generation_id,
                cards=[(c.question.strip(), c.answer.strip(), c.source) for c in cards],
            )
        except SQLAlchemyError as e:
            logger.error(
                "Failed to create %s flashcards: %s", len(cards), e, extra={"user_id": user_id}
            )
            raise FlashcardServiceError(
                FlashcardErrorCode.DATABASE_ERROR, "Failed to create flashcards", 500
            ) from e

        logger.info(
            "Created %s flashcards (generation=%s)",
            len(rows),
            generation_id,
            extra={"user_id": user_id},
        )
        return rows

    async def list_flashcards(
        self,
        *,
        user_id: int,
        page: int = 1,
        limit: int = 50,
        source: Optional[FlashcardSource] = None,
        generation_id: Optional[int] = None,
        sort: FlashcardSortField = "created_at",
        order: SortOrder = "desc",
    ) -> tuple[list[Flashcard], int]:
        try:
            return await self.cards.list_flashcards(
                user_id=user_id,
                page=page,
                limit=limit,
                source=source,
                generation_id=generation_id,
                sort=sort,
                order=order,
            )
        except SQLAlchemyError as e:
            logger.error("Failed to list flashcards: %s", e, extra={"user_id": user_id})
            raise FlashcardServiceError(
                FlashcardErrorCode.DATABASE_ERROR, "Failed to list flashcards", 500
            ) from e

    async def delete_flashcard(self, *, user_id: int, flashcard_id: int) -> None:
        """Delete an owned flashcard; deleting a missing id is not an error."""
        try:
            deleted = await self.cards.delete_flashcard(
                user_id=user_id, flashcard_id=flashcard_id
            )
        except SQLAlchemyError as e:
            logger.error(
                "Failed to delete flashcard %s: %s", flashcard_id, e, extra={"user_id": user_id}
            )
            raise FlashcardServiceError(
                FlashcardErrorCode.DATABASE_ERROR, "Failed to delete flashcard", 500
            ) from e
        logger.info(
            "Delete flashcard %s affected %s row(s)",
            flashcard_id,
            deleted,
            extra={"user_id": user_id},
        )
