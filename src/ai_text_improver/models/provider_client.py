"""
Text improvement provider clients.

Provides a unified interface for rewriting text through the Anthropic
Messages API or the OpenAI Chat Completions API.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx
from pydantic import BaseModel, Field

from ai_text_improver.config import get_settings
from ai_text_improver.models.http import decode_json, send_request
from ai_text_improver.models.schemas import ErrorKind, Provider, ServiceError, WritingStyle

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


class Message(BaseModel):
    """A message in a chat request."""

    role: str = Field(..., description="Role of the speaker (system, user, assistant)")
    content: str = Field(..., description="Message content")


class ProviderClientBase(ABC):
    """Abstract base class for text improvement providers."""

    provider: Provider

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        max_tokens: int | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the provider client.

        Args:
            api_key: Provider API key.
            base_url: API base URL.
            model: Model name sent with every request.
            max_tokens: Maximum tokens to generate (uses config if not provided).
            timeout: Request timeout in seconds (uses config if not provided).
            transport: Optional httpx transport, used by tests.
        """
        settings = get_settings()
        self._api_key = api_key
        self._base_url = base_url
        self._model = model
        self._max_tokens = max_tokens or settings.max_tokens
        self._timeout = timeout or settings.request_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def model(self) -> str:
        """Get the model name."""
        return self._model

    @property
    def is_configured(self) -> bool:
        """Whether an API key is present."""
        return bool(self._api_key.strip())

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _build_payload(self, text: str, style: WritingStyle) -> dict[str, Any]:
        message = Message(role="user", content=style.build_prompt(text))
        return {
            "model": self._model,
            "messages": [message.model_dump()],
            "max_tokens": self._max_tokens,
        }

    async def improve(self, text: str, style: WritingStyle) -> str:
        """
        Rewrite text in the given style.

        Exactly one request is sent; failures are never retried.

        Args:
            text: Raw user text. May be empty.
            style: Writing style whose prefix is prepended to the text.

        Returns:
            The rewritten text.

        Raises:
            ServiceError: NETWORK_FAILURE, INVALID_CREDENTIAL or MALFORMED_RESPONSE.
        """
        client = await self._get_client()
        service = self.provider.display_name
        logger.debug(f"Sending {style.value} rewrite to {service} ({len(text)} chars)")

        response = await send_request(
            client,
            "POST",
            self._endpoint,
            service=service,
            headers=self._headers(),
            json=self._build_payload(text, style),
        )
        data = decode_json(response, service=service)
        result = self._extract_text(data)

        logger.debug(f"{service} response length: {len(result)} chars")
        return result

    @property
    @abstractmethod
    def _endpoint(self) -> str:
        """Path of the completion endpoint, relative to the base URL."""
        ...

    @abstractmethod
    def _headers(self) -> dict[str, str]:
        """Authentication and versioning headers."""
        ...

    @abstractmethod
    def _extract_text(self, data: Any) -> str:
        """
        Normalize the provider's response envelope to plain text.

        Raises:
            ServiceError: MALFORMED_RESPONSE if the envelope is not recognised.
        """
        ...


class AnthropicClient(ProviderClientBase):
    """Anthropic Messages API client."""

    provider = Provider.ANTHROPIC

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        base_url: str | None = None,
        **kwargs: Any,
    ) -> None:
        settings = get_settings()
        super().__init__(
            api_key=api_key,
            base_url=base_url or settings.anthropic_base_url,
            model=model or settings.anthropic_model,
            **kwargs,
        )

    @property
    def _endpoint(self) -> str:
        return "/messages"

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self._api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

    def _extract_text(self, data: Any) -> str:
        content = data.get("content") if isinstance(data, dict) else None

        if isinstance(content, str):
            return content

        # Current API versions return a list of typed content blocks.
        if isinstance(content, list):
            parts = [
                block["text"]
                for block in content
                if isinstance(block, dict)
                and block.get("type", "text") == "text"
                and isinstance(block.get("text"), str)
            ]
            if parts:
                return "".join(parts)

        raise ServiceError(ErrorKind.MALFORMED_RESPONSE, "Anthropic response has no text content")


class OpenAIClient(ProviderClientBase):
    """OpenAI Chat Completions API client."""

    provider = Provider.OPENAI

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        base_url: str | None = None,
        **kwargs: Any,
    ) -> None:
        settings = get_settings()
        super().__init__(
            api_key=api_key,
            base_url=base_url or settings.openai_base_url,
            model=model or settings.openai_model,
            **kwargs,
        )

    @property
    def _endpoint(self) -> str:
        return "/chat/completions"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "content-type": "application/json",
        }

    def _extract_text(self, data: Any) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ServiceError(
                ErrorKind.MALFORMED_RESPONSE, "OpenAI response has no choices[0].message.content"
            ) from e

        if not isinstance(content, str):
            raise ServiceError(ErrorKind.MALFORMED_RESPONSE, "OpenAI message content is not text")
        return content


def build_provider_client(provider: Provider, api_key: str, **kwargs: Any) -> ProviderClientBase:
    """
    Create the client for a provider.

    Args:
        provider: Which provider to target.
        api_key: API key for that provider.
        **kwargs: Extra client options (model, base_url, timeout, transport).

    Returns:
        A configured provider client.
    """
    if provider is Provider.ANTHROPIC:
        return AnthropicClient(api_key, **kwargs)
    return OpenAIClient(api_key, **kwargs)
