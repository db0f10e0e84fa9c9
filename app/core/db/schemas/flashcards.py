from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional
from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
    Enum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db.base import Base
from app.modules.flashcards.models.flashcards import FlashcardSource

if TYPE_CHECKING:
    from .auth import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


flashcard_source_enum = Enum(
    FlashcardSource,
    name="flashcard_source",
    values_callable=lambda e: [m.value for m in e],
)


class Generation(Base):
    """One successful invocation of the proposal pipeline. Never mutated."""

    __tablename__ = "generations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    model: Mapped[str] = mapped_column(String, nullable=False)
    source_text_length: Mapped[int] = mapped_column(Integer, nullable=False)
    source_text_hash: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    generated_count: Mapped[int] = mapped_column(Integer, nullable=False)
    generation_duration: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
        index=True,
    )

    user: Mapped["User"] = relationship("User", back_populates="generations")
    proposals: Mapped[list["FlashcardProposal"]] = relationship(
        "FlashcardProposal",
        back_populates="generation",
        cascade="all, delete-orphan",
    )
    # Library cards keep their generation; the database refuses the delete
    flashcards: Mapped[list["Flashcard"]] = relationship(
        "Flashcard", back_populates="generation", passive_deletes="all"
    )


class FlashcardProposal(Base):
    """Proposal returned by the model, owned by its generation."""

    __tablename__ = "flashcard_proposals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    generation_id: Mapped[int] = mapped_column(
        ForeignKey("generations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[FlashcardSource] = mapped_column(
        flashcard_source_enum, nullable=False, default=FlashcardSource.AI_FULL
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )

    generation: Mapped["Generation"] = relationship(
        "Generation", back_populates="proposals"
    )


class Flashcard(Base):
    """A flashcard accepted into the user's library."""

    __tablename__ = "flashcards"
    __table_args__ = (
        CheckConstraint(
            "(source = 'manual') = (generation_id IS NULL)",
            name="ck_flashcards_source_generation",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    generation_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("generations.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    question: Mapped[str] = mapped_column(String(200), nullable=False)
    answer: Mapped[str] = mapped_column(String(500), nullable=False)
    source: Mapped[FlashcardSource] = mapped_column(flashcard_source_enum, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.now(),
    )

    user: Mapped["User"] = relationship("User", back_populates="flashcards")
    generation: Mapped[Optional["Generation"]] = relationship(
        "Generation", back_populates="flashcards"
    )


class GenerationErrorLog(Base):
    __tablename__ = "generation_error_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    # Null for anonymous callers
    user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"), nullable=True, index=True
    )
    error_code: Mapped[str] = mapped_column(String(64), nullable=False)
    error_message: Mapped[str] = mapped_column(Text, nullable=False)
    model: Mapped[str] = mapped_column(String, nullable=False)
    source_text_length: Mapped[int] = mapped_column(Integer, nullable=False)
    source_text_hash: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
        index=True,
    )


__all__ = [
    "Generation",
    "FlashcardProposal",
    "Flashcard",
    "GenerationErrorLog",
]
