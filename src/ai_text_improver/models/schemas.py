"""
Shared schemas for text improvement providers.

Defines providers, writing styles, and the error taxonomy surfaced by
every network adapter.
"""

from enum import Enum


class Provider(str, Enum):
    """Remote text-rewriting services."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"

    @property
    def display_name(self) -> str:
        return "Anthropic" if self is Provider.ANTHROPIC else "OpenAI"


_STYLE_DISPLAY_NAMES: dict[str, str] = {
    "professional": "Professional",
    "academic": "Academic",
    "casual": "Casual & Friendly",
    "creative": "Creative & Playful",
    "technical": "Technical",
    "persuasive": "Persuasive",
    "concise": "Concise & Clear",
    "storytelling": "Storytelling",
}

_STYLE_PROMPTS: dict[str, str] = {
    "professional": (
        "Please improve the following text to be more professional, polished, "
        "and business-appropriate while maintaining its core message: "
    ),
    "academic": (
        "Please improve the following text to meet academic writing standards with "
        "proper scholarly tone, clarity, and analytical depth while maintaining its "
        "core argument: "
    ),
    "casual": (
        "Please improve the following text to be more conversational, friendly, "
        "and engaging while keeping its main message: "
    ),
    "creative": (
        "Please improve the following text to be more creative, vibrant, and "
        "playful while preserving its essential meaning: "
    ),
    "technical": (
        "Please improve the following text to be more technically precise, detailed, "
        "and well-structured while maintaining its core information: "
    ),
    "persuasive": (
        "Please improve the following text to be more persuasive and compelling "
        "while keeping its main argument: "
    ),
    "concise": (
        "Please improve the following text to be more concise and clear while "
        "preserving its key points: "
    ),
    "storytelling": (
        "Please improve the following text to be more narrative and engaging, using "
        "storytelling techniques while maintaining its core message: "
    ),
}


class WritingStyle(str, Enum):
    """Instruction templates applied to user text before submission."""

    PROFESSIONAL = "professional"
    ACADEMIC = "academic"
    CASUAL = "casual"
    CREATIVE = "creative"
    TECHNICAL = "technical"
    PERSUASIVE = "persuasive"
    CONCISE = "concise"
    STORYTELLING = "storytelling"

    @property
    def display_name(self) -> str:
        """Human-readable label, e.g. "Casual & Friendly"."""
        return _STYLE_DISPLAY_NAMES[self.value]

    @property
    def prompt(self) -> str:
        """Fixed instruction prefix for this style."""
        return _STYLE_PROMPTS[self.value]

    def build_prompt(self, text: str) -> str:
        """
        Prepend this style's instruction prefix to the raw text.

        Args:
            text: User text, possibly empty.

        Returns:
            The prompt sent to the provider.
        """
        return self.prompt + text

    @classmethod
    def parse(cls, value: str) -> "WritingStyle":
        """Resolve a style from its value or display name (case-insensitive)."""
        needle = value.strip().lower()
        for style in cls:
            if needle in (style.value, style.display_name.lower()):
                return style
        raise ValueError(f"Unknown writing style: {value!r}")


class ErrorKind(str, Enum):
    """Failure categories surfaced to the caller."""

    EMPTY_INPUT = "empty_input"
    NOT_CONFIGURED = "not_configured"
    NETWORK_FAILURE = "network_failure"
    MALFORMED_RESPONSE = "malformed_response"
    OPERATION_IN_PROGRESS = "operation_in_progress"
    INVALID_CREDENTIAL = "invalid_credential"

    @property
    def message(self) -> str:
        """User-facing description of the failure."""
        return _ERROR_MESSAGES[self]


_ERROR_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.EMPTY_INPUT: "Please enter some text first.",
    ErrorKind.NOT_CONFIGURED: "The API key for this service is not configured.",
    ErrorKind.NETWORK_FAILURE: "The service could not be reached. Please try again.",
    ErrorKind.MALFORMED_RESPONSE: "The service returned a response that could not be read.",
    ErrorKind.OPERATION_IN_PROGRESS: "Another request is still running.",
    ErrorKind.INVALID_CREDENTIAL: "The service rejected the API key.",
}


class AITextImproverError(Exception):
    """Base exception for the application."""


class ServiceError(AITextImproverError):
    """Exception raised by a network adapter, tagged with an ErrorKind."""

    def __init__(self, kind: ErrorKind, detail: str = "", status_code: int | None = None) -> None:
        super().__init__(detail or kind.message)
        self.kind = kind
        self.detail = detail
        self.status_code = status_code
