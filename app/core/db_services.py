"""Database service classes for generations and the flashcard library."""

from __future__ import annotations

from typing import Literal, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import delete, func, select

from app.core.db.schemas.flashcards import (
    Flashcard,
    FlashcardProposal,
    Generation,
    GenerationErrorLog,
)
from app.modules.flashcards.models.flashcards import FlashcardSource, ProposalItem


FlashcardSortField = Literal["created_at", "updated_at", "question"]
SortOrder = Literal["asc", "desc"]


class GenerationDBService:
    """Persists generations, their proposals and provider error logs.

    ``insert_generation`` and ``insert_proposals`` only flush; the caller
    decides when the unit is complete and calls ``commit`` or ``rollback``.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert_generation(
        self,
        *,
        user_id: int,
        model: str,
        source_text_length: int,
        source_text_hash: str,
        generated_count: int,
        generation_duration: int,
    ) -> Generation:
        generation = Generation(
            user_id=user_id,
            model=model,
            source_text_length=source_text_length,
            source_text_hash=source_text_hash,
            generated_count=generated_count,
            generation_duration=generation_duration,
        )
        self.session.add(generation)
        await self.session.flush()
        return generation

    async def insert_proposals(
        self, *, generation_id: int, proposals: list[ProposalItem]
    ) -> list[FlashcardProposal]:
        rows = [
            FlashcardProposal(
                generation_id=generation_id,
                question=p.question,
                answer=p.answer,
                source=FlashcardSource.AI_FULL,
            )
            for p in proposals
        ]
        self.session.add_all(rows)
        await self.session.flush()
        return rows

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    async def get_generation(self, generation_id: int) -> Optional[Generation]:
        return await self.session.get(Generation, generation_id)

    async def log_error(
        self,
        *,
        user_id: Optional[int],
        error_code: str,
        error_message: str,
        model: str,
        source_text_length: int,
        source_text_hash: str,
    ) -> None:
        self.session.add(
            GenerationErrorLog(
                user_id=user_id,
                error_code=error_code,
                error_message=error_message,
                model=model,
                source_text_length=source_text_length,
                source_text_hash=source_text_hash,
            )
        )
        await self.session.commit()


class FlashcardDBService:
    """Owner-scoped reads and writes on the ``flashcards`` table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert_flashcards(
        self,
        *,
        user_id: int,
        generation_id: Optional[int],
        cards: list[tuple[str, str, FlashcardSource]],
    ) -> list[Flashcard]:
        rows = [
            Flashcard(
                user_id=user_id,
                generation_id=generation_id,
                question=question,
                answer=answer,
                source=source,
            )
            for question, answer, source in cards
        ]
        self.session.add_all(rows)
        await self.session.flush()
        await self.session.commit()
        return rows

    async def list_flashcards(
        self,
        *,
        user_id: int,
        page: int,
        limit: int,
        source: Optional[FlashcardSource] = None,
        generation_id: Optional[int] = None,
        sort: FlashcardSortField = "created_at",
        order: SortOrder = "desc",
    ) -> tuple[list[Flashcard], int]:
        filters = [Flashcard.user_id == user_id]
        if source is not None:
            filters.append(Flashcard.source == source)
        if generation_id is not None:
            filters.append(Flashcard.generation_id == generation_id)

        total = (
            await self.session.execute(
                select(func.count(Flashcard.id)).where(*filters)
            )
        ).scalar() or 0

        column = getattr(Flashcard, sort)
        ordering = column.asc() if order == "asc" else column.desc()
        rows = await self.session.execute(
            select(Flashcard)
            .where(*filters)
            .order_by(ordering, Flashcard.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(rows.scalars().all()), int(total)

    async def delete_flashcard(self, *, user_id: int, flashcard_id: int) -> int:
        result = await self.session.execute(
            delete(Flashcard).where(
                Flashcard.id == flashcard_id, Flashcard.user_id == user_id
            )
        )
        await self.session.commit()
        return result.rowcount or 0
