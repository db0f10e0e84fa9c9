"""HTTP client for the generation and flashcard endpoints.

Every failure is raised as ``ApiRequestError`` carrying the ``ErrorState``
the review session shows to the user. Generation and save use separate
status tables because the same status means different things to each.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
from pydantic import ValidationError

from app.core.logging import get_logger
from app.modules.review.models import (
    CreateFlashcardsResultDTO,
    ErrorState,
    GenerationResultDTO,
    ProposalViewModel,
)

logger = get_logger(__name__)

LOGIN_URL = "/login"

SESSION_EXPIRED = ErrorState(
    message="Your session has expired. Please log in again.",
    can_retry=False,
    should_redirect=True,
    redirect_url=LOGIN_URL,
)
NETWORK_ERROR = ErrorState(
    message="Network error. Please check your connection and try again.",
    can_retry=True,
)
UNEXPECTED_ERROR = ErrorState(
    message="An unexpected error occurred. Please try again.",
    can_retry=True,
)

GENERATE_ERRORS: dict[int, ErrorState] = {
    400: ErrorState(
        "Invalid data provided. Please check your input and try again.", True
    ),
    401: SESSION_EXPIRED,
    422: ErrorState(
        "AI couldn't process this text. Please try with different content.", True
    ),
    429: ErrorState(
        "Too many requests to the AI service. Please wait a moment and try again.",
        True,
    ),
    500: ErrorState("Server error occurred. Please try again.", True),
    502: ErrorState(
        "AI service is not accepting requests from this server. Please contact support.",
        False,
    ),
    503: ErrorState(
        "AI service is currently unavailable. Please try again or use shorter text.",
        True,
    ),
    504: ErrorState(
        "AI service did not respond in time. Please try again or use shorter text.",
        True,
    ),
}

SAVE_ERRORS: dict[int, ErrorState] = {
    400: ErrorState("Invalid flashcard data. Please check and try again.", True),
    401: SESSION_EXPIRED,
    403: ErrorState(
        "This generation belongs to another account. Please generate flashcards again.",
        False,
    ),
    404: ErrorState(
        "Generation not found. Please try generating flashcards again.", False
    ),
    500: ErrorState("Server error occurred while saving. Please try again.", True),
}


class ApiRequestError(Exception):
    def __init__(self, error_state: ErrorState, status_code: Optional[int] = None):
        super().__init__(error_state.message)
        self.error_state = error_state
        self.status_code = status_code


def map_status(
    table: dict[int, ErrorState],
    status_code: int,
    message: Optional[str] = None,
    fallback: str = UNEXPECTED_ERROR.message,
) -> ErrorState:
    if status_code in table:
        return table[status_code]
    return ErrorState(message=message or fallback, can_retry=True)


def _server_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return None


class FlashcardsApiClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        *,
        api_version: str = "v1",
        timeout: float = 90.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.api_version = api_version
        self.timeout = timeout
        self._transport = transport

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{self.api_version}/{path}"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _post(
        self,
        path: str,
        payload: dict[str, Any],
        table: dict[int, ErrorState],
        fallback: str,
    ) -> Any:
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout), transport=self._transport
            ) as client:
                response = await client.post(
                    self._url(path), json=payload, headers=self._headers()
                )
        except httpx.TransportError as e:
            logger.warning("POST %s failed: %s", path, type(e).__name__)
            raise ApiRequestError(NETWORK_ERROR) from e

        if not response.is_success:
            logger.info("POST %s returned %s", path, response.status_code)
            state = map_status(
                table, response.status_code, _server_message(response), fallback
            )
            raise ApiRequestError(state, response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise ApiRequestError(UNEXPECTED_ERROR, response.status_code) from e

    async def generate(self, source_text: str) -> GenerationResultDTO:
        """Request proposals; the token is sent when present but not required."""
        body = await self._post(
            "generations",
            {"source_text": source_text},
            GENERATE_ERRORS,
            UNEXPECTED_ERROR.message,
        )
        try:
            return GenerationResultDTO.model_validate(body)
        except ValidationError as e:
            raise ApiRequestError(UNEXPECTED_ERROR) from e

    async def save_flashcards(
        self,
        proposals: list[ProposalViewModel],
        generation_id: Optional[int],
    ) -> CreateFlashcardsResultDTO:
        if not self.token:
            raise ApiRequestError(SESSION_EXPIRED, 401)
        body = await self._post(
            "flashcards",
            {
                "flashcards": [p.to_payload() for p in proposals],
                "generation_id": generation_id,
            },
            SAVE_ERRORS,
            "Failed to save flashcards. Please try again.",
        )
        try:
            return CreateFlashcardsResultDTO.model_validate(body)
        except ValidationError as e:
            raise ApiRequestError(UNEXPECTED_ERROR) from e
