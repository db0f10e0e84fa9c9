"""Structured-output client for an OpenRouter-compatible chat completion API.

Turns ``(output_type, messages, model, params)`` into a validated instance of
``output_type`` or raises one of the ``ProviderError`` subclasses. The JSON
schema of ``output_type`` is appended to the system message and the model is
asked for raw JSON; the reply is then parsed and validated locally.

There are no retries here. Retry policy belongs to the caller.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Literal, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from app.core.config import ProviderSettings
from app.core.logging import get_logger
from app.modules.flashcards.errors import (
    ConfigurationError,
    InvalidResponseJsonError,
    NetworkError,
    ProviderApiError,
    SchemaValidationError,
)

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)

JSON_ONLY_INSTRUCTION = (
    "\n\nIMPORTANT: You must respond with ONLY valid JSON that matches this exact schema:\n"
    "{schema}\n\n"
    "Do not include any explanatory text, markdown formatting, or code blocks. "
    "Return only raw JSON."
)


@dataclass(frozen=True)
class ChatMessage:
    role: Literal["system", "user", "assistant"]
    content: str

    def to_payload(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


def _schema_for(output_type: type[BaseModel]) -> str:
    return json.dumps(output_type.model_json_schema(), indent=2)


def build_messages(
    messages: list[ChatMessage], output_type: type[BaseModel]
) -> list[dict[str, str]]:
    """Embed the output schema into the leading system message."""
    out = [m.to_payload() for m in messages]
    if out and out[0]["role"] == "system":
        out[0] = {
            "role": "system",
            "content": out[0]["content"]
            + JSON_ONLY_INSTRUCTION.format(schema=_schema_for(output_type)),
        }
    return out


class ProviderClient:
    def __init__(
        self,
        settings: ProviderSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self._transport = transport

    @property
    def default_model(self) -> str:
        return self.settings.model

    async def structured_chat_completion(
        self,
        output_type: type[T],
        messages: list[ChatMessage],
        model: Optional[str] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> T:
        api_key = self.settings.api_key
        if not api_key:
            raise ConfigurationError("OPENROUTER_API_KEY is not set.")

        payload: dict[str, Any] = {
            "model": model or self.settings.model,
            "messages": build_messages(messages, output_type),
            "response_format": {"type": "json_object"},
            "temperature": self.settings.temperature,
            "max_tokens": self.settings.max_tokens,
        }
        if params:
            payload.update(params)

        body = await self._post(payload, api_key)
        return self._parse(body, output_type)

    async def _post(self, payload: dict[str, Any], api_key: str) -> Any:
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.settings.site_url,
            "X-Title": self.settings.site_name,
        }
        limit = self.settings.timeout_seconds
        timeout = httpx.Timeout(limit)

        try:
            # httpx timeouts apply per read; the deadline bounds the whole call
            async with asyncio.timeout(limit):
                async with httpx.AsyncClient(
                    timeout=timeout, transport=self._transport
                ) as client:
                    response = await client.post(
                        self.settings.base_url, headers=headers, json=payload
                    )
        except TimeoutError as e:
            raise NetworkError(f"Provider request timed out after {limit:g}s") from e
        except httpx.TimeoutException as e:
            raise NetworkError(
                f"Provider request timed out after {self.settings.timeout_seconds:g}s"
            ) from e
        except httpx.TransportError as e:
            raise NetworkError(f"Failed to connect to provider API: {e}") from e

        if not response.is_success:
            try:
                error_body: Any = response.json()
            except ValueError:
                error_body = response.text
            logger.warning(
                "Provider API error: status=%s model=%s",
                response.status_code,
                payload.get("model"),
            )
            raise ProviderApiError(
                f"Provider API error: {response.status_code} {response.reason_phrase}",
                response.status_code,
                error_body,
            )

        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponseJsonError("Failed to parse API response as JSON") from e

    def _parse(self, body: Any, output_type: type[T]) -> T:
        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        if not content or not isinstance(content, str):
            raise InvalidResponseJsonError(
                "Invalid response structure: no message content found"
            )

        try:
            data = json.loads(content)
        except ValueError as e:
            raise InvalidResponseJsonError(
                f"Failed to parse model response as JSON. Content: {content[:200]}"
            ) from e

        try:
            return output_type.model_validate(data)
        except ValidationError as e:
            issues = e.errors(include_url=False, include_context=False, include_input=False)
            logger.warning("Provider output failed schema validation: %s", issues)
            raise SchemaValidationError(issues) from e
