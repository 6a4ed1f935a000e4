"""
Improve/speak session orchestrator.

Coordinates the text providers and the voice client behind the two
user actions, keeping busy and error bookkeeping consistent.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Iterator
from contextlib import contextmanager
from typing import Any, Protocol

from ai_text_improver.config import Settings, get_settings
from ai_text_improver.models.provider_client import ProviderClientBase, build_provider_client
from ai_text_improver.models.schemas import ErrorKind, Provider, ServiceError, WritingStyle
from ai_text_improver.orchestrator.schemas import (
    ActionResult,
    CredentialService,
    Credentials,
    OperationKind,
    SpeakSource,
)
from ai_text_improver.orchestrator.session_state import SessionState
from ai_text_improver.voice.elevenlabs import VoiceClient
from ai_text_improver.voice.schemas import Voice, VoiceSettings

logger = logging.getLogger(__name__)

ProviderClientFactory = Callable[[Provider, str], ProviderClientBase]


class TranscriptSource(Protocol):
    """Speech recognizer yielding successive best transcriptions."""

    def transcripts(self) -> AsyncIterator[str]: ...


class ImproverSession:
    """
    Orchestrates one user's improve/speak workflow.

    ``improve()`` and ``speak()`` are the only actions that touch the network.
    At most one of them is in flight at a time; overlapping calls are
    rejected, not queued. Failures are recorded in ``state.last_error``
    and returned, never raised.
    """

    def __init__(
        self,
        credentials: Credentials | None = None,
        state: SessionState | None = None,
        provider_clients: dict[Provider, ProviderClientBase] | None = None,
        voice_client: VoiceClient | None = None,
        client_factory: ProviderClientFactory | None = None,
    ) -> None:
        """
        Initialize the session.

        Args:
            credentials: API keys. Empty credentials if None.
            state: Session state. A fresh default state if None.
            provider_clients: Fixed clients per provider. Missing providers are
                built on demand from the credentials.
            voice_client: Fixed voice client. Built on demand if None.
            client_factory: Builds provider clients (defaults to build_provider_client).
        """
        self._credentials = credentials or Credentials()
        self._state = state or SessionState()
        self._fixed_clients = dict(provider_clients or {})
        self._fixed_voice_client = voice_client
        self._client_factory = client_factory or build_provider_client

        self._built_clients: dict[Provider, ProviderClientBase] = {}
        self._built_voice_client: VoiceClient | None = None

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **kwargs: Any) -> ImproverSession:
        """Create a session whose keys and defaults come from application settings."""
        settings = settings or get_settings()
        credentials = Credentials(
            anthropic_key=settings.anthropic_api_key,
            openai_key=settings.openai_api_key,
            elevenlabs_key=settings.elevenlabs_api_key,
        )
        state = SessionState(
            provider=Provider(settings.default_provider),
            style=WritingStyle.parse(settings.default_style),
            voice_settings=VoiceSettings(
                voice_id=settings.default_voice_id,
                stability=settings.default_stability,
                similarity_boost=settings.default_similarity_boost,
            ),
            speak_source=SpeakSource(settings.speak_source),
        )
        return cls(credentials=credentials, state=state, **kwargs)

    @property
    def state(self) -> SessionState:
        """Get the session state."""
        return self._state

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    def is_configured(self, service: CredentialService) -> bool:
        return self._credentials.is_configured(service)

    # Client management
    def _provider_client(self, provider: Provider) -> ProviderClientBase:
        if provider in self._fixed_clients:
            return self._fixed_clients[provider]
        if provider not in self._built_clients:
            key = self._credentials.key(CredentialService.for_provider(provider))
            self._built_clients[provider] = self._client_factory(provider, key)
        return self._built_clients[provider]

    def _voice_client(self) -> VoiceClient:
        if self._fixed_voice_client is not None:
            return self._fixed_voice_client
        if self._built_voice_client is None:
            self._built_voice_client = VoiceClient(self._credentials.elevenlabs_key)
        return self._built_voice_client

    async def _drop_built_clients(self) -> None:
        for client in self._built_clients.values():
            await client.close()
        self._built_clients.clear()
        if self._built_voice_client is not None:
            await self._built_voice_client.close()
            self._built_voice_client = None

    async def update_credentials(self, credentials: Credentials) -> bool:
        """
        Replace the API keys.

        Clients built from the previous keys are closed and the last error is
        cleared. While an operation is in flight the update is rejected, so
        the client it is awaiting stays open.

        Returns:
            True if the keys were replaced, False if an operation was in flight.
        """
        current = self._state.busy_operation
        if current is not None:
            logger.info(f"Rejected credential update: {current.value} still in flight")
            return False
        await self._drop_built_clients()
        self._credentials = credentials
        self._state.clear_error()
        logger.info(f"Credentials updated: {credentials!r}")
        return True

    async def close(self) -> None:
        """Close every HTTP client owned by the session."""
        await self._drop_built_clients()
        for client in self._fixed_clients.values():
            await client.close()
        if self._fixed_voice_client is not None:
            await self._fixed_voice_client.close()

    # Busy bookkeeping
    @contextmanager
    def _busy(self, operation: OperationKind) -> Iterator[None]:
        """Hold the busy flag for the duration of one operation."""
        self._state.begin(operation)
        try:
            yield
        finally:
            self._state.end()

    def _reject_if_busy(self, operation: OperationKind) -> ActionResult | None:
        current = self._state.busy_operation
        if current is None:
            return None
        logger.info(f"Rejected {operation.value}: {current.value} still in flight")
        return ActionResult(operation=operation, error=ErrorKind.OPERATION_IN_PROGRESS)

    def _fail(self, operation: OperationKind, error: ErrorKind) -> ActionResult:
        self._state.set_error(error)
        return ActionResult(operation=operation, error=error)

    # Actions
    async def improve(self) -> ActionResult:
        """
        Rewrite the input text with the selected provider and style.

        Whitespace-only input counts as empty and fails with EMPTY_INPUT.

        Returns:
            ActionResult carrying the rewritten text, or the error kind.
        """
        operation = OperationKind.IMPROVE
        rejected = self._reject_if_busy(operation)
        if rejected:
            return rejected

        text = self._state.input_text
        if not text.strip():
            return self._fail(operation, ErrorKind.EMPTY_INPUT)

        provider = self._state.provider
        if not self._credentials.is_configured(CredentialService.for_provider(provider)):
            logger.info(f"{provider.display_name} API key not configured")
            return self._fail(operation, ErrorKind.NOT_CONFIGURED)

        style = self._state.style
        client = self._provider_client(provider)

        with self._busy(operation):
            logger.info(f"Improving {len(text)} chars with {provider.display_name} ({style.display_name})")
            try:
                improved = await client.improve(text, style)
            except ServiceError as e:
                logger.warning(f"Improve failed: {e.kind.value}: {e}")
                return self._fail(operation, e.kind)
            except Exception as e:
                logger.error(f"Unexpected error while improving text: {e}", exc_info=True)
                return self._fail(operation, ErrorKind.NETWORK_FAILURE)

            self._state.set_output_text(improved)

        return ActionResult(operation=operation, text=improved)

    async def speak(self) -> ActionResult:
        """
        Synthesize the speak-source text with the current voice settings.

        Whitespace-only text counts as empty and fails with EMPTY_INPUT.

        Returns:
            ActionResult carrying the AudioResource. The caller plays it and
            then discards it.
        """
        operation = OperationKind.SPEAK
        rejected = self._reject_if_busy(operation)
        if rejected:
            return rejected

        text = self._state.speak_text
        if not text.strip():
            return self._fail(operation, ErrorKind.EMPTY_INPUT)

        if not self._credentials.is_configured(CredentialService.ELEVENLABS):
            logger.info("ElevenLabs API key not configured")
            return self._fail(operation, ErrorKind.NOT_CONFIGURED)

        settings = self._state.voice_settings
        client = self._voice_client()

        with self._busy(operation):
            logger.info(f"Speaking {len(text)} chars with voice {settings.voice_id}")
            try:
                audio = await client.synthesize(text, settings)
            except ServiceError as e:
                logger.warning(f"Speak failed: {e.kind.value}: {e}")
                return self._fail(operation, e.kind)
            except Exception as e:
                logger.error(f"Unexpected error while synthesizing speech: {e}", exc_info=True)
                return self._fail(operation, ErrorKind.NETWORK_FAILURE)

        return ActionResult(operation=operation, text=text, audio=audio)

    # Voice catalog
    async def list_voices(self) -> list[Voice]:
        """
        Fetch the voice catalog for the picker.

        Returns:
            Voices, or an empty list with ``last_error`` set on failure.
        """
        if not self._credentials.is_configured(CredentialService.ELEVENLABS):
            self._state.set_error(ErrorKind.NOT_CONFIGURED)
            return []
        try:
            return await self._voice_client().list_voices()
        except ServiceError as e:
            logger.warning(f"Listing voices failed: {e.kind.value}")
            self._state.set_error(e.kind)
            return []
        except Exception as e:
            logger.error(f"Unexpected error while listing voices: {e}", exc_info=True)
            self._state.set_error(ErrorKind.NETWORK_FAILURE)
            return []

    async def validate_voice_key(self, key: str) -> bool:
        """
        Check an ElevenLabs key before storing it.

        Sets ``last_error`` to INVALID_CREDENTIAL when the key is rejected and
        to NETWORK_FAILURE when the check itself fails unexpectedly.
        """
        try:
            valid = await self._voice_client().validate_key(key)
        except Exception as e:
            logger.error(f"Unexpected error while validating voice key: {e}", exc_info=True)
            self._state.set_error(ErrorKind.NETWORK_FAILURE)
            return False
        if not valid:
            self._state.set_error(ErrorKind.INVALID_CREDENTIAL)
        return valid

    # Speech input
    def apply_transcript(self, text: str) -> None:
        """Replace the input text with the recognizer's latest best transcription."""
        self._state.set_input_text(text)

    async def follow_transcripts(self, source: TranscriptSource) -> None:
        """Apply every transcription from a source until it is exhausted."""
        async for text in source.transcripts():
            self.apply_transcript(text)
