"""
Smoke tests for the improve/speak session.

Exercises the state machine with fake provider and voice clients.
"""

import asyncio

import pytest

from ai_text_improver.config import Settings
from ai_text_improver.models.schemas import ErrorKind, Provider, ServiceError, WritingStyle
from ai_text_improver.orchestrator import (
    Credentials,
    CredentialService,
    ImproverSession,
    OperationKind,
    SessionState,
    SpeakSource,
)
from ai_text_improver.voice.schemas import AudioResource, Voice, VoiceSettings


class EchoProvider:
    def __init__(self) -> None:
        self.calls: list[tuple[str, WritingStyle]] = []
        self.closed = False

    async def improve(self, text: str, style: WritingStyle) -> str:
        self.calls.append((text, style))
        return f"Improved {text} using {style.display_name}"

    async def close(self) -> None:
        self.closed = True


class FailingProvider(EchoProvider):
    def __init__(self, error: BaseException) -> None:
        super().__init__()
        self._error = error

    async def improve(self, text: str, style: WritingStyle) -> str:
        self.calls.append((text, style))
        raise self._error


class GatedProvider(EchoProvider):
    """Blocks inside improve() until released."""

    def __init__(self) -> None:
        super().__init__()
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def improve(self, text: str, style: WritingStyle) -> str:
        self.calls.append((text, style))
        self.started.set()
        await self.release.wait()
        return "slow result"


class FakeVoiceClient:
    def __init__(self, tmp_path, voices: list[Voice] | None = None, error: BaseException | None = None) -> None:
        self._tmp_path = tmp_path
        self._voices = voices or []
        self._error = error
        self.synthesized: list[tuple[str, VoiceSettings]] = []
        self.validated: list[str] = []

    async def list_voices(self) -> list[Voice]:
        if self._error:
            raise self._error
        return self._voices

    async def validate_key(self, api_key: str) -> bool:
        self.validated.append(api_key)
        return self._error is None

    async def synthesize(self, text: str, settings: VoiceSettings) -> AudioResource:
        self.synthesized.append((text, settings))
        if self._error:
            raise self._error
        path = self._tmp_path / f"audio_{len(self.synthesized)}.mp3"
        path.write_bytes(b"mp3")
        return AudioResource(path=path)

    async def close(self) -> None:
        pass


def _session(
    provider_client=None,
    voice_client=None,
    credentials: Credentials | None = None,
    provider: Provider = Provider.ANTHROPIC,
) -> ImproverSession:
    return ImproverSession(
        credentials=credentials or Credentials(anthropic_key="ak", openai_key="ok", elevenlabs_key="xk"),
        state=SessionState(provider=provider),
        provider_clients={provider: provider_client or EchoProvider()},
        voice_client=voice_client,
    )


class TestSessionState:
    """Tests for SessionState class."""

    def test_initial_state(self) -> None:
        state = SessionState()

        assert state.input_text == ""
        assert state.output_text == ""
        assert state.provider == Provider.ANTHROPIC
        assert state.style == WritingStyle.PROFESSIONAL
        assert state.voice_settings == VoiceSettings()
        assert state.speak_source == SpeakSource.OUTPUT
        assert not state.is_busy
        assert state.last_error is None

    def test_observers_receive_changes(self) -> None:
        state = SessionState()
        changes: list[tuple[str, object]] = []
        unsubscribe = state.subscribe(lambda field, value: changes.append((field, value)))

        state.set_input_text("hi")
        state.set_input_text("hi")  # unchanged values are not re-announced
        state.set_style(WritingStyle.CREATIVE)
        unsubscribe()
        state.set_input_text("ignored")

        assert changes == [("input_text", "hi"), ("style", WritingStyle.CREATIVE)]

    def test_failing_observer_does_not_break_state(self) -> None:
        state = SessionState()

        def broken(field: str, value: object) -> None:
            raise RuntimeError("observer bug")

        state.subscribe(broken)
        state.set_input_text("still set")
        assert state.input_text == "still set"

    def test_voice_settings_are_copied(self) -> None:
        state = SessionState()
        settings = VoiceSettings(voice_id="v", stability=0.2)
        state.set_voice_settings(settings)
        settings.stability = 0.9

        assert state.voice_settings.stability == 0.2

    def test_speak_text_follows_source(self) -> None:
        state = SessionState()
        state.set_input_text("in")
        state.set_output_text("out")

        assert state.speak_text == "out"
        state.set_speak_source(SpeakSource.INPUT)
        assert state.speak_text == "in"


class TestCredentials:
    """Tests for Credentials class."""

    def test_configured_flags_follow_assignment(self) -> None:
        credentials = Credentials(anthropic_key="key", openai_key="   ")

        assert credentials.is_configured(CredentialService.ANTHROPIC)
        assert not credentials.is_configured(CredentialService.OPENAI)
        assert not credentials.is_configured(CredentialService.ELEVENLABS)

        credentials.set_key(CredentialService.ELEVENLABS, "xi")
        assert credentials.is_configured(CredentialService.ELEVENLABS)
        credentials.set_key(CredentialService.ANTHROPIC, "")
        assert not credentials.is_configured(CredentialService.ANTHROPIC)

    def test_repr_hides_keys(self) -> None:
        assert "secret" not in repr(Credentials(anthropic_key="secret"))


class TestImprove:
    """Tests for ImproverSession.improve()."""

    @pytest.mark.asyncio
    async def test_echo_round_trip(self) -> None:
        provider = EchoProvider()
        session = _session(provider)
        session.state.set_input_text("hello")
        session.state.set_style(WritingStyle.ACADEMIC)

        result = await session.improve()

        assert result.ok
        assert result.operation == OperationKind.IMPROVE
        assert session.state.output_text == "Improved hello using Academic"
        assert result.text == session.state.output_text
        assert session.state.input_text == "hello"
        assert provider.calls == [("hello", WritingStyle.ACADEMIC)]

    @pytest.mark.asyncio
    async def test_busy_flag_transitions(self) -> None:
        session = _session()
        session.state.set_input_text("hello")
        busy_history: list[object] = []
        session.state.subscribe(
            lambda field, value: busy_history.append(value) if field == "busy_operation" else None
        )

        await session.improve()

        assert busy_history == [OperationKind.IMPROVE, None]
        assert not session.state.is_busy

    @pytest.mark.asyncio
    async def test_empty_input_never_calls_provider(self) -> None:
        provider = EchoProvider()
        session = _session(provider)
        busy_seen: list[object] = []
        session.state.subscribe(lambda field, value: busy_seen.append(field) if field == "busy_operation" else None)

        result = await session.improve()

        assert result.error == ErrorKind.EMPTY_INPUT
        assert session.state.last_error == ErrorKind.EMPTY_INPUT
        assert provider.calls == []
        assert busy_seen == []

    @pytest.mark.asyncio
    async def test_missing_key_is_not_configured(self) -> None:
        provider = EchoProvider()
        session = _session(provider, credentials=Credentials(openai_key="ok"))
        session.state.set_input_text("hello")

        result = await session.improve()

        assert result.error == ErrorKind.NOT_CONFIGURED
        assert session.state.last_error == ErrorKind.NOT_CONFIGURED
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_provider_error_is_recorded_and_busy_cleared(self) -> None:
        session = _session(FailingProvider(ServiceError(ErrorKind.MALFORMED_RESPONSE)))
        session.state.set_input_text("hello")
        session.state.set_output_text("previous")

        result = await session.improve()

        assert result.error == ErrorKind.MALFORMED_RESPONSE
        assert session.state.last_error == ErrorKind.MALFORMED_RESPONSE
        assert session.state.output_text == "previous"
        assert not session.state.is_busy

    @pytest.mark.asyncio
    async def test_unexpected_exception_clears_busy(self) -> None:
        session = _session(FailingProvider(KeyError("surprise")))
        session.state.set_input_text("hello")

        result = await session.improve()

        assert result.error == ErrorKind.NETWORK_FAILURE
        assert not session.state.is_busy

    @pytest.mark.asyncio
    async def test_success_clears_previous_error(self) -> None:
        session = _session()
        await session.improve()
        assert session.state.last_error == ErrorKind.EMPTY_INPUT

        session.state.set_input_text("hello")
        result = await session.improve()

        assert result.ok
        assert session.state.last_error is None

    @pytest.mark.asyncio
    async def test_overlapping_call_is_rejected(self) -> None:
        provider = GatedProvider()
        session = _session(provider)
        session.state.set_input_text("hello")

        first = asyncio.create_task(session.improve())
        await provider.started.wait()
        assert session.state.is_busy

        second = await session.improve()
        assert second.error == ErrorKind.OPERATION_IN_PROGRESS
        assert session.state.output_text == ""
        assert len(provider.calls) == 1

        provider.release.set()
        first_result = await first

        assert first_result.ok
        assert session.state.output_text == "slow result"
        assert session.state.last_error is None
        assert not session.state.is_busy

    @pytest.mark.asyncio
    async def test_cancellation_clears_busy(self) -> None:
        provider = GatedProvider()
        session = _session(provider)
        session.state.set_input_text("hello")

        task = asyncio.create_task(session.improve())
        await provider.started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert not session.state.is_busy

    @pytest.mark.asyncio
    async def test_selected_provider_is_used(self) -> None:
        anthropic, openai = EchoProvider(), EchoProvider()
        session = ImproverSession(
            credentials=Credentials(anthropic_key="a", openai_key="o"),
            provider_clients={Provider.ANTHROPIC: anthropic, Provider.OPENAI: openai},
        )
        session.state.set_input_text("x")
        session.state.set_provider(Provider.OPENAI)

        await session.improve()

        assert anthropic.calls == []
        assert len(openai.calls) == 1

    @pytest.mark.asyncio
    async def test_clients_are_built_from_credentials(self) -> None:
        built: list[tuple[Provider, str]] = []

        def factory(provider: Provider, key: str) -> EchoProvider:
            built.append((provider, key))
            return EchoProvider()

        session = ImproverSession(credentials=Credentials(anthropic_key="first"), client_factory=factory)
        session.state.set_input_text("x")
        await session.improve()
        await session.improve()

        await session.update_credentials(Credentials(anthropic_key="second"))
        await session.improve()

        assert built == [(Provider.ANTHROPIC, "first"), (Provider.ANTHROPIC, "second")]


    @pytest.mark.asyncio
    async def test_whitespace_only_input_is_empty(self) -> None:
        provider = EchoProvider()
        session = _session(provider)
        session.state.set_input_text(" \n\t ")

        result = await session.improve()

        assert result.error == ErrorKind.EMPTY_INPUT
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_credential_update_waits_for_in_flight_improve(self) -> None:
        class TrackedGatedProvider(GatedProvider):
            def __init__(self) -> None:
                super().__init__()
                self.closed_while_in_flight = False

            async def close(self) -> None:
                if self.started.is_set() and not self.release.is_set():
                    self.closed_while_in_flight = True
                await super().close()

        built: list[TrackedGatedProvider] = []

        def factory(provider: Provider, key: str) -> TrackedGatedProvider:
            built.append(TrackedGatedProvider())
            return built[-1]

        session = ImproverSession(credentials=Credentials(anthropic_key="first"), client_factory=factory)
        session.state.set_input_text("hello")

        task = asyncio.create_task(session.improve())
        await built[0].started.wait()

        updated = await session.update_credentials(Credentials(anthropic_key="second"))

        assert updated is False
        assert session.credentials.anthropic_key == "first"
        assert not built[0].closed

        built[0].release.set()
        result = await task

        assert result.ok
        assert not built[0].closed_while_in_flight
        assert await session.update_credentials(Credentials(anthropic_key="second")) is True
        assert built[0].closed
        assert session.credentials.anthropic_key == "second"


class TestSpeak:
    """Tests for ImproverSession.speak()."""

    @pytest.mark.asyncio
    async def test_speak_returns_audio_for_output_text(self, tmp_path) -> None:
        voice = FakeVoiceClient(tmp_path)
        session = _session(voice_client=voice)
        session.state.set_output_text("Read me")
        session.state.set_voice_settings(VoiceSettings(voice_id="v9", stability=0.8, similarity_boost=0.9))

        result = await session.speak()

        assert result.ok
        assert result.operation == OperationKind.SPEAK
        assert result.audio is not None and result.audio.exists
        text, settings = voice.synthesized[0]
        assert text == "Read me"
        assert (settings.voice_id, settings.stability, settings.similarity_boost) == ("v9", 0.8, 0.9)
        assert not session.state.is_busy
        result.audio.discard()

    @pytest.mark.asyncio
    async def test_speak_can_read_input_text(self, tmp_path) -> None:
        voice = FakeVoiceClient(tmp_path)
        session = _session(voice_client=voice)
        session.state.set_speak_source(SpeakSource.INPUT)
        session.state.set_input_text("raw words")

        await session.speak()

        assert voice.synthesized[0][0] == "raw words"

    @pytest.mark.asyncio
    async def test_speak_empty_text_skips_voice_client(self, tmp_path) -> None:
        voice = FakeVoiceClient(tmp_path)
        session = _session(voice_client=voice)
        session.state.set_input_text("only input")

        result = await session.speak()

        assert result.error == ErrorKind.EMPTY_INPUT
        assert voice.synthesized == []

    @pytest.mark.asyncio
    async def test_speak_requires_voice_key(self, tmp_path) -> None:
        voice = FakeVoiceClient(tmp_path)
        session = _session(voice_client=voice, credentials=Credentials(anthropic_key="a"))
        session.state.set_output_text("text")

        result = await session.speak()

        assert result.error == ErrorKind.NOT_CONFIGURED
        assert voice.synthesized == []

    @pytest.mark.asyncio
    async def test_speak_failure_is_recorded(self, tmp_path) -> None:
        voice = FakeVoiceClient(tmp_path, error=ServiceError(ErrorKind.INVALID_CREDENTIAL))
        session = _session(voice_client=voice)
        session.state.set_output_text("text")

        result = await session.speak()

        assert result.error == ErrorKind.INVALID_CREDENTIAL
        assert session.state.last_error == ErrorKind.INVALID_CREDENTIAL
        assert not session.state.is_busy

    @pytest.mark.asyncio
    async def test_speak_rejected_while_improving(self, tmp_path) -> None:
        provider = GatedProvider()
        voice = FakeVoiceClient(tmp_path)
        session = _session(provider, voice_client=voice)
        session.state.set_input_text("hello")
        session.state.set_output_text("old output")

        task = asyncio.create_task(session.improve())
        await provider.started.wait()
        result = await session.speak()
        provider.release.set()
        await task

        assert result.error == ErrorKind.OPERATION_IN_PROGRESS
        assert voice.synthesized == []


class TestVoiceCatalog:
    """Tests for voice listing and key validation."""

    @pytest.mark.asyncio
    async def test_list_voices(self, tmp_path) -> None:
        voices = [Voice(voice_id="v1", name="Rachel")]
        session = _session(voice_client=FakeVoiceClient(tmp_path, voices=voices))

        assert await session.list_voices() == voices
        assert session.state.last_error is None

    @pytest.mark.asyncio
    async def test_list_voices_failure_sets_error(self, tmp_path) -> None:
        session = _session(voice_client=FakeVoiceClient(tmp_path, error=ServiceError(ErrorKind.NETWORK_FAILURE)))

        assert await session.list_voices() == []
        assert session.state.last_error == ErrorKind.NETWORK_FAILURE

    @pytest.mark.asyncio
    async def test_invalid_voice_key_sets_error(self, tmp_path) -> None:
        voice = FakeVoiceClient(tmp_path, error=ServiceError(ErrorKind.INVALID_CREDENTIAL))
        session = _session(voice_client=voice)

        assert await session.validate_voice_key("bad") is False
        assert voice.validated == ["bad"]
        assert session.state.last_error == ErrorKind.INVALID_CREDENTIAL


    @pytest.mark.asyncio
    async def test_unexpected_catalog_error_is_network_failure(self, tmp_path) -> None:
        session = _session(voice_client=FakeVoiceClient(tmp_path, error=KeyError("voices")))

        assert await session.list_voices() == []
        assert session.state.last_error == ErrorKind.NETWORK_FAILURE

    @pytest.mark.asyncio
    async def test_unexpected_key_check_error_is_network_failure(self, tmp_path) -> None:
        class BrokenVoiceClient(FakeVoiceClient):
            async def validate_key(self, api_key: str) -> bool:
                raise RuntimeError("boom")

        session = _session(voice_client=BrokenVoiceClient(tmp_path))

        assert await session.validate_voice_key("key") is False
        assert session.state.last_error == ErrorKind.NETWORK_FAILURE


class TestTranscripts:
    """Tests for speech input."""

    @pytest.mark.asyncio
    async def test_follow_transcripts_keeps_latest(self) -> None:
        class FakeRecognizer:
            async def transcripts(self):
                for text in ("hel", "hello wor", "hello world"):
                    yield text

        session = _session()
        await session.follow_transcripts(FakeRecognizer())

        assert session.state.input_text == "hello world"


def test_from_settings_applies_defaults() -> None:
    settings = Settings(
        anthropic_api_key="",
        openai_api_key="sk",
        elevenlabs_api_key="",
        default_provider="openai",
        default_style="Concise & Clear",
        default_voice_id="voice-x",
        default_stability=0.3,
        speak_source="input",
    )

    session = ImproverSession.from_settings(settings)

    assert session.state.provider == Provider.OPENAI
    assert session.state.style == WritingStyle.CONCISE
    assert session.state.voice_settings.voice_id == "voice-x"
    assert session.state.voice_settings.stability == 0.3
    assert session.state.speak_source == SpeakSource.INPUT
    assert session.is_configured(CredentialService.OPENAI)
    assert not session.is_configured(CredentialService.ELEVENLABS)
