from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.apis.deps import OptionalUser, get_generation_db, get_generator
from app.core.config import settings
from app.core.db_services import GenerationDBService
from app.core.logging import get_logger
from app.modules.flashcards.main import FlashcardsGenerator
from .schemas import GenerationCreateRequest, GenerationResultRead


router = APIRouter()
logger = get_logger(__name__)


@router.post(
    f"/{settings.app.version}/generations",
    response_model=GenerationResultRead,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
    tags=["generations"],
)
async def create_generation(
    req: GenerationCreateRequest,
    user: OptionalUser,
    generator: FlashcardsGenerator = Depends(get_generator),
    db: GenerationDBService = Depends(get_generation_db),
) -> GenerationResultRead:
    """Generate flashcard proposals. Signed-in callers get them stored."""
    user_id = user.id if user is not None else None
    outcome = await generator.generate(req.source_text, db=db, user_id=user_id)
    logger.info(
        "Generated %s proposals (saved=%s)",
        len(outcome.proposals),
        outcome.saved,
        extra={"user_id": user_id if user_id is not None else "anonymous"},
    )
    return GenerationResultRead.from_outcome(outcome)
