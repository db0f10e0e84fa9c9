"""Generation orchestrator.

``FlashcardsGenerator.generate`` fingerprints the source text, asks the
provider for proposals and, for signed-in callers, stores the generation and
its proposals as one unit. Provider failures are written to the error log on
a best-effort basis and re-raised as ``GenerationServiceError``.
"""

from __future__ import annotations

import hashlib
import math
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from app.core.db.schemas.flashcards import Generation
from app.core.db_services import GenerationDBService
from app.core.logging import get_logger
from app.modules.flashcards.errors import (
    ConfigurationError,
    GenerationErrorCode,
    GenerationServiceError,
    InvalidResponseJsonError,
    NetworkError,
    ProviderApiError,
    ProviderError,
    SchemaValidationError,
)
from app.modules.flashcards.generator import generate_proposals
from app.modules.flashcards.models.flashcards import FlashcardSource
from app.modules.flashcards.provider import ProviderClient

logger = get_logger(__name__)


@dataclass
class ProposalRecord:
    question: str
    answer: str
    source: FlashcardSource = FlashcardSource.AI_FULL
    id: Optional[int] = None
    generation_id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass
class GenerationOutcome:
    generation: Optional[Generation]
    proposals: list[ProposalRecord] = field(default_factory=list)
    saved: bool = False


def source_text_hash(text: str) -> str:
    """128-bit fingerprint of the UTF-8 bytes, for auditing and dedup only."""
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def elapsed_seconds(started: float, now: Optional[float] = None) -> int:
    elapsed = (time.monotonic() if now is None else now) - started
    return int(math.floor(elapsed + 0.5))


def map_provider_error(err: ProviderError) -> tuple[str, int]:
    """Return ``(error_log_code, http_status)`` for a provider failure."""
    if isinstance(err, ConfigurationError):
        return "AI_CONFIGURATION_ERROR", 500
    if isinstance(err, NetworkError):
        return "AI_TIMEOUT", 504
    if isinstance(err, (InvalidResponseJsonError, SchemaValidationError)):
        return "AI_INVALID_RESPONSE", 422
    if isinstance(err, ProviderApiError):
        if err.status_code == 429:
            return "AI_RATE_LIMITED", 429
        if err.status_code in (401, 403):
            return "AI_SERVICE_ERROR", 502
        if err.status_code >= 500:
            return "AI_SERVICE_ERROR", 503
        return "AI_SERVICE_ERROR", 422
    return "AI_SERVICE_ERROR", 500


_USER_MESSAGES = {
    500: "An error occurred while generating flashcards",
    504: "AI service did not respond in time",
    422: "AI could not produce valid flashcards for this text",
    429: "AI service is rate limited, please try again shortly",
    503: "AI service is currently unavailable",
    502: "AI service rejected the request credentials",
}


class FlashcardsGenerator:
    """Runs the proposal pipeline for one request."""

    def __init__(self, provider: ProviderClient, *, model: Optional[str] = None) -> None:
        self.provider = provider
        self.model = model or provider.default_model

    async def generate(
        self,
        source_text: str,
        *,
        db: GenerationDBService,
        user_id: Optional[int],
    ) -> GenerationOutcome:
        started = time.monotonic()

        text_length = len(source_text)
        text_hash = source_text_hash(source_text)

        try:
            batch = await generate_proposals(self.provider, source_text, model=self.model)
        except ProviderError as e:
            log_code, status_code = map_provider_error(e)
            logger.warning(
                "Generation failed: %s (%s) length=%s hash=%s",
                log_code,
                type(e).__name__,
                text_length,
                text_hash,
                extra={"user_id": user_id if user_id is not None else "anonymous"},
            )
            await self._log_error(
                db,
                user_id=user_id,
                error_code=log_code,
                error_message=str(e),
                source_text_length=text_length,
                source_text_hash=text_hash,
            )
            raise GenerationServiceError(
                GenerationErrorCode.AI_ERROR,
                _USER_MESSAGES.get(status_code, "AI service error"),
                status_code,
                {"code": log_code},
            ) from e

        duration = elapsed_seconds(started)

        if user_id is None:
            return GenerationOutcome(
                generation=None,
                proposals=[
                    ProposalRecord(question=c.question, answer=c.answer)
                    for c in batch.flashcards
                ],
                saved=False,
            )

        try:
            generation = await db.insert_generation(
                user_id=user_id,
                model=self.model,
                source_text_length=text_length,
                source_text_hash=text_hash,
                generated_count=len(batch.flashcards),
                generation_duration=duration,
            )
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error (generations): %s", e)
            raise GenerationServiceError(
                GenerationErrorCode.DATABASE_ERROR,
                "Failed to save generation metadata",
                500,
            ) from e

        try:
            rows = await db.insert_proposals(
                generation_id=generation.id, proposals=batch.flashcards
            )
            await db.commit()
        except SQLAlchemyError as e:
            # Rolling back discards the flushed generation row with the proposals
            await db.rollback()
            logger.error("Database error (flashcard_proposals): %s", e)
            raise GenerationServiceError(
                GenerationErrorCode.DATABASE_ERROR,
                "Failed to save flashcard proposals",
                500,
            ) from e

        logger.info(
            "Generation %s stored with %s proposals in %ss",
            generation.id,
            len(rows),
            duration,
            extra={"user_id": user_id},
        )
        return GenerationOutcome(
            generation=generation,
            proposals=[
                ProposalRecord(
                    id=r.id,
                    question=r.question,
                    answer=r.answer,
                    source=r.source,
                    generation_id=r.generation_id,
                    created_at=r.created_at,
                )
                for r in rows
            ],
            saved=True,
        )

    async def _log_error(self, db: GenerationDBService, **fields) -> None:
        try:
            await db.log_error(model=self.model, **fields)
        except Exception as e:  # noqa: BLE001
            logger.error("Could not write generation error log: %s", e)
            try:
                await db.rollback()
            except Exception:  # noqa: BLE001
                logger.exception("Rollback after failed error log also failed")
