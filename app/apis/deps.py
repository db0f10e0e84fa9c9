from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db.base import get_session
from app.core.db.schemas.auth import User
from app.core.db_services import GenerationDBService
from app.modules.auth import current_active_user, optional_current_user
from app.modules.flashcards.main import FlashcardsGenerator
from app.modules.flashcards.provider import ProviderClient
from app.modules.flashcards.service import FlashcardService


CurrentUser = Annotated[User, Depends(current_active_user)]
OptionalUser = Annotated[Optional[User], Depends(optional_current_user)]


def get_provider_client() -> ProviderClient:
    """A fresh provider client per request, built from the resolved settings."""
    return ProviderClient(settings.provider)


def get_generator(
    provider: ProviderClient = Depends(get_provider_client),
) -> FlashcardsGenerator:
    return FlashcardsGenerator(provider)


def get_generation_db(
    session: AsyncSession = Depends(get_session),
) -> GenerationDBService:
    return GenerationDBService(session)


def get_flashcard_service(
    session: AsyncSession = Depends(get_session),
) -> FlashcardService:
    return FlashcardService(session)
