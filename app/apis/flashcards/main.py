from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from app.apis.deps import CurrentUser, get_flashcard_service
from app.core.config import settings
from app.modules.flashcards.errors import FlashcardErrorCode, FlashcardServiceError
from app.modules.flashcards.models.flashcards import FlashcardSource
from app.modules.flashcards.service import FlashcardService, NewFlashcard
from .schemas import (
    CreateFlashcardsRequest,
    CreateFlashcardsResponse,
    FlashcardListResponse,
    FlashcardRead,
    Pagination,
)


router = APIRouter()


async def _parse_create_request(request: Request) -> CreateFlashcardsRequest:
    # Parsed in the handler body so authentication is checked first
    try:
        payload = await request.json()
    except ValueError:
        raise FlashcardServiceError(
            FlashcardErrorCode.VALIDATION_ERROR, "Request body must be valid JSON", 400
        )
    try:
        return CreateFlashcardsRequest.model_validate(payload)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False)) from e


@router.post(
    f"/{settings.app.version}/flashcards",
    response_model=CreateFlashcardsResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["flashcards"],
)
async def create_flashcards(
    request: Request,
    user: CurrentUser,
    service: FlashcardService = Depends(get_flashcard_service),
) -> CreateFlashcardsResponse:
    req = await _parse_create_request(request)
    rows = await service.create_flashcards(
        user_id=user.id,
        generation_id=req.generation_id,
        cards=[
            NewFlashcard(question=c.question, answer=c.answer, source=c.source)
            for c in req.flashcards
        ],
    )
    return CreateFlashcardsResponse(
        created_count=len(rows),
        flashcards=[FlashcardRead.model_validate(r) for r in rows],
    )


@router.get(
    f"/{settings.app.version}/flashcards",
    response_model=FlashcardListResponse,
    tags=["flashcards"],
)
async def list_flashcards(
    user: CurrentUser,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    source: Optional[FlashcardSource] = Query(None),
    generation_id: Optional[int] = Query(None, gt=0),
    sort: Literal["created_at", "updated_at", "question"] = Query("created_at"),
    order: Literal["asc", "desc"] = Query("desc"),
    service: FlashcardService = Depends(get_flashcard_service),
) -> FlashcardListResponse:
    rows, total = await service.list_flashcards(
        user_id=user.id,
        page=page,
        limit=limit,
        source=source,
        generation_id=generation_id,
        sort=sort,
        order=order,
    )
    return FlashcardListResponse(
        data=[FlashcardRead.model_validate(r) for r in rows],
        pagination=Pagination(page=page, limit=limit, total=total),
    )


@router.delete(
    f"/{settings.app.version}/flashcards/{{flashcard_id:int}}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    tags=["flashcards"],
)
async def delete_flashcard(
    flashcard_id: int,
    user: CurrentUser,
    service: FlashcardService = Depends(get_flashcard_service),
) -> Response:
    await service.delete_flashcard(user_id=user.id, flashcard_id=flashcard_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
