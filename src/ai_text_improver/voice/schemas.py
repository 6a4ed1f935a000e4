"""Voice catalog, synthesis settings and audio resources."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_VOICE_ID = "21m00Tcm4TlvDq8ikWAM"  # Rachel


class Voice(BaseModel):
    """A synthetic voice offered by the voice provider."""

    model_config = ConfigDict(frozen=True)

    voice_id: str = Field(..., description="Provider identifier of the voice")
    name: str = Field(..., description="Display name")
    preview_url: str | None = Field(default=None, description="Sample audio URL")
    category: str | None = Field(default=None, description="Provider category, e.g. premade")

    @property
    def id(self) -> str:
        return self.voice_id

    @property
    def display_name(self) -> str:
        return self.name


class VoiceSettings(BaseModel):
    """User-tunable synthesis parameters."""

    model_config = ConfigDict(validate_assignment=True)

    voice_id: str = Field(default=DEFAULT_VOICE_ID, min_length=1)
    stability: float = Field(default=0.5, ge=0.0, le=1.0)
    similarity_boost: float = Field(default=0.75, ge=0.0, le=1.0)


@dataclass
class AudioResource:
    """Synthesized audio stored in a temporary file.

    The caller owns the file and must call ``discard()`` once it has been played.
    """

    path: Path
    content_type: str = "audio/mpeg"

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()

    @property
    def exists(self) -> bool:
        return self.path.exists()

    def discard(self) -> None:
        """Delete the backing file. Safe to call more than once."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove audio file {self.path}: {e}")
