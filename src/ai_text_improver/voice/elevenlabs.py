"""Text-to-speech through the ElevenLabs HTTP API.

One request per call, no retries. Synthesized audio is written to a fresh
temporary file that the caller owns.
"""

from __future__ import annotations

import asyncio
import logging
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
from pydantic import ValidationError

from ai_text_improver.config import get_settings
from ai_text_improver.models.http import decode_json, send_request
from ai_text_improver.models.schemas import ErrorKind, ServiceError
from ai_text_improver.voice.schemas import AudioResource, Voice, VoiceSettings

logger = logging.getLogger(__name__)

_SERVICE = "ElevenLabs"


@dataclass(frozen=True)
class VoiceClientConfig:
    base_url: str = "https://api.elevenlabs.io/v1"
    model_id: str = "eleven_monolingual_v1"
    timeout_s: float = 60.0
    audio_dir: str | None = None  # defaults to the system temp dir

    @classmethod
    def from_settings(cls) -> VoiceClientConfig:
        settings = get_settings()
        return cls(
            base_url=settings.elevenlabs_base_url,
            model_id=settings.elevenlabs_model_id,
            timeout_s=settings.request_timeout,
        )


class VoiceClient:
    """ElevenLabs voice catalog and synthesis client."""

    def __init__(
        self,
        api_key: str,
        config: VoiceClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._config = config or VoiceClientConfig.from_settings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def config(self) -> VoiceClientConfig:
        return self._config

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key.strip())

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout_s,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _require_key(self, api_key: str | None = None) -> str:
        key = self._api_key if api_key is None else api_key
        if not key.strip():
            raise ServiceError(ErrorKind.NOT_CONFIGURED, "ElevenLabs API key not configured")
        return key

    async def list_voices(self, api_key: str | None = None) -> list[Voice]:
        """
        Fetch the voice catalog.

        Args:
            api_key: Key to use instead of the client's own (for validation).

        Returns:
            Available voices, possibly empty.
        """
        key = self._require_key(api_key)
        client = await self._get_client()
        response = await send_request(
            client,
            "GET",
            "/voices",
            service=_SERVICE,
            headers={"xi-api-key": key},
        )
        data = decode_json(response, service=_SERVICE)
        return self._parse_voices(data)

    def _parse_voices(self, data: Any) -> list[Voice]:
        raw = data.get("voices") if isinstance(data, dict) else None
        if not isinstance(raw, list):
            raise ServiceError(ErrorKind.MALFORMED_RESPONSE, "ElevenLabs response has no voices list")
        try:
            return [Voice.model_validate(item) for item in raw]
        except ValidationError as e:
            raise ServiceError(ErrorKind.MALFORMED_RESPONSE, f"Invalid voice entry: {e}") from e

    async def validate_key(self, api_key: str) -> bool:
        """
        Check a key by listing voices with it.

        A successful call counts as valid even when the catalog is empty.
        """
        try:
            voices = await self.list_voices(api_key=api_key)
        except ServiceError as e:
            logger.info(f"ElevenLabs key validation failed: {e.kind.value}")
            return False
        logger.debug(f"ElevenLabs key valid ({len(voices)} voices)")
        return True

    def _build_payload(self, text: str, settings: VoiceSettings) -> dict[str, Any]:
        return {
            "text": text,
            "model_id": self._config.model_id,
            "voice_settings": {
                "stability": settings.stability,
                "similarity_boost": settings.similarity_boost,
            },
        }

    def _store_audio(self, audio: bytes) -> Path:
        out_dir = Path(self._config.audio_dir or tempfile.gettempdir())
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / f"{uuid.uuid4()}.mp3"
        path.write_bytes(audio)
        return path

    async def synthesize(self, text: str, settings: VoiceSettings) -> AudioResource:
        """
        Convert text to speech.

        Args:
            text: Text to speak. Must not be empty; whitespace-only counts as empty.
            settings: Voice id and synthesis parameters.

        Returns:
            A new AudioResource; the caller must discard it.

        Raises:
            ServiceError: EMPTY_INPUT, NOT_CONFIGURED, NETWORK_FAILURE,
                INVALID_CREDENTIAL or MALFORMED_RESPONSE. NETWORK_FAILURE also
                covers failing to write the audio file.
        """
        if not text.strip():
            raise ServiceError(ErrorKind.EMPTY_INPUT, "No text to speak")
        key = self._require_key()

        client = await self._get_client()
        logger.debug(f"Synthesizing {len(text)} chars with voice {settings.voice_id}")
        response = await send_request(
            client,
            "POST",
            f"/text-to-speech/{settings.voice_id}/stream",
            service=_SERVICE,
            headers={"xi-api-key": key, "content-type": "application/json"},
            json=self._build_payload(text, settings),
        )

        audio = response.content
        if not audio:
            raise ServiceError(ErrorKind.MALFORMED_RESPONSE, "ElevenLabs returned no audio")

        try:
            path = await asyncio.to_thread(self._store_audio, audio)
        except OSError as e:
            logger.error(f"Could not store synthesized audio: {e}")
            raise ServiceError(ErrorKind.NETWORK_FAILURE, f"Could not store audio: {e}") from e
        logger.debug(f"Wrote {len(audio)} bytes of audio to {path}")
        return AudioResource(path=path, content_type=response.headers.get("content-type", "audio/mpeg"))
