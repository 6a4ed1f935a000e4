"""
Session state management.

Tracks the mutable fields of one improve/speak session and notifies
observers whenever a field changes.
"""

import logging
from collections.abc import Callable
from typing import Any

from ai_text_improver.models.schemas import ErrorKind, Provider, WritingStyle
from ai_text_improver.orchestrator.schemas import OperationKind, SpeakSource
from ai_text_improver.voice.schemas import VoiceSettings

logger = logging.getLogger(__name__)

StateObserver = Callable[[str, Any], None]


class SessionState:
    """
    Manages the mutable state of a session.

    Owned by a single ImproverSession; the busy flag and last error are only
    changed by the session's actions.
    """

    def __init__(
        self,
        provider: Provider = Provider.ANTHROPIC,
        style: WritingStyle = WritingStyle.PROFESSIONAL,
        voice_settings: VoiceSettings | None = None,
        speak_source: SpeakSource = SpeakSource.OUTPUT,
    ) -> None:
        """
        Initialize session state with empty texts.

        Args:
            provider: Initially selected provider.
            style: Initially selected writing style.
            voice_settings: Initial voice settings (defaults if None).
            speak_source: Text that speak() reads aloud.
        """
        self._input_text: str = ""
        self._output_text: str = ""
        self._provider = provider
        self._style = style
        self._voice_settings = voice_settings or VoiceSettings()
        self._speak_source = speak_source
        self._busy_operation: OperationKind | None = None
        self._last_error: ErrorKind | None = None
        self._observers: list[StateObserver] = []

    # Observation
    def subscribe(self, observer: StateObserver) -> Callable[[], None]:
        """
        Register a change observer.

        Args:
            observer: Called with ``(field_name, new_value)`` after each change.

        Returns:
            A callable that removes the observer.
        """
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def _set(self, field: str, value: Any) -> None:
        attr = f"_{field}"
        if getattr(self, attr) == value:
            return
        setattr(self, attr, value)
        for observer in list(self._observers):
            try:
                observer(field, value)
            except Exception:
                logger.exception(f"State observer failed for field {field!r}")

    # Read access
    @property
    def input_text(self) -> str:
        return self._input_text

    @property
    def output_text(self) -> str:
        return self._output_text

    @property
    def provider(self) -> Provider:
        return self._provider

    @property
    def style(self) -> WritingStyle:
        return self._style

    @property
    def voice_settings(self) -> VoiceSettings:
        """Get a copy of the voice settings."""
        return self._voice_settings.model_copy()

    @property
    def speak_source(self) -> SpeakSource:
        return self._speak_source

    @property
    def busy_operation(self) -> OperationKind | None:
        """Get the operation currently in flight, if any."""
        return self._busy_operation

    @property
    def is_busy(self) -> bool:
        return self._busy_operation is not None

    @property
    def last_error(self) -> ErrorKind | None:
        return self._last_error

    @property
    def speak_text(self) -> str:
        """Text that speak() would read, per the speak source."""
        return self._output_text if self._speak_source is SpeakSource.OUTPUT else self._input_text

    # User-facing setters
    def set_input_text(self, text: str) -> None:
        self._set("input_text", text)

    def set_provider(self, provider: Provider) -> None:
        self._set("provider", provider)

    def set_style(self, style: WritingStyle) -> None:
        self._set("style", style)

    def set_voice_settings(self, settings: VoiceSettings) -> None:
        self._set("voice_settings", settings.model_copy())

    def set_speak_source(self, source: SpeakSource) -> None:
        self._set("speak_source", source)

    def clear_error(self) -> None:
        self._set("last_error", None)

    # Transitions used by the session
    def set_output_text(self, text: str) -> None:
        self._set("output_text", text)

    def set_error(self, error: ErrorKind | None) -> None:
        self._set("last_error", error)

    def begin(self, operation: OperationKind) -> None:
        """
        Enter the busy state.

        Raises:
            RuntimeError: If an operation is already in flight.
        """
        if self._busy_operation is not None:
            raise RuntimeError(f"{self._busy_operation.value} already in flight")
        self._set("busy_operation", operation)
        self._set("last_error", None)

    def end(self) -> None:
        """Return to idle."""
        self._set("busy_operation", None)

    def snapshot(self) -> dict[str, Any]:
        """Get a plain-dict view of the state, for display and logging."""
        return {
            "input_text": self._input_text,
            "output_text": self._output_text,
            "provider": self._provider.value,
            "style": self._style.value,
            "voice_settings": self._voice_settings.model_dump(),
            "speak_source": self._speak_source.value,
            "is_busy": self.is_busy,
            "last_error": self._last_error.value if self._last_error else None,
        }
