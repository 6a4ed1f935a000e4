"""
Schemas for the orchestrator module.

Defines credentials, operation kinds, and action results.
"""

from dataclasses import dataclass
from enum import Enum

from ai_text_improver.models.schemas import ErrorKind, Provider
from ai_text_improver.voice.schemas import AudioResource


class OperationKind(str, Enum):
    """Network actions a session can run."""

    IMPROVE = "improve"
    SPEAK = "speak"


class SpeakSource(str, Enum):
    """Which session text speak() reads aloud."""

    OUTPUT = "output"
    INPUT = "input"


class CredentialService(str, Enum):
    """Services that need an API key."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    ELEVENLABS = "elevenlabs"

    @classmethod
    def for_provider(cls, provider: Provider) -> "CredentialService":
        return cls(provider.value)


class Credentials:
    """
    API keys for the three services.

    The configured flag of each key is computed when the key is assigned;
    empty or whitespace-only keys are not configured.
    """

    def __init__(
        self,
        anthropic_key: str | None = None,
        openai_key: str | None = None,
        elevenlabs_key: str | None = None,
    ) -> None:
        self._keys: dict[CredentialService, str] = {}
        self._configured: dict[CredentialService, bool] = {}
        self.set_key(CredentialService.ANTHROPIC, anthropic_key)
        self.set_key(CredentialService.OPENAI, openai_key)
        self.set_key(CredentialService.ELEVENLABS, elevenlabs_key)

    def set_key(self, service: CredentialService, key: str | None) -> None:
        """Assign a key and refresh its configured flag."""
        value = (key or "").strip()
        self._keys[service] = value
        self._configured[service] = bool(value)

    def key(self, service: CredentialService) -> str:
        return self._keys[service]

    def is_configured(self, service: CredentialService) -> bool:
        return self._configured[service]

    @property
    def anthropic_key(self) -> str:
        return self._keys[CredentialService.ANTHROPIC]

    @property
    def openai_key(self) -> str:
        return self._keys[CredentialService.OPENAI]

    @property
    def elevenlabs_key(self) -> str:
        return self._keys[CredentialService.ELEVENLABS]

    def __repr__(self) -> str:
        flags = ", ".join(f"{s.value}={self._configured[s]}" for s in CredentialService)
        return f"Credentials({flags})"


@dataclass(frozen=True)
class ActionResult:
    """Outcome of one improve() or speak() call."""

    operation: OperationKind
    error: ErrorKind | None = None
    text: str | None = None
    audio: AudioResource | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> str | None:
        return self.error.message if self.error else None
