"""Audio playback via an external command-line player.

Defaults to macOS ``afplay``; any binary accepting a file path works.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import subprocess
from typing import Protocol

from ai_text_improver.voice.schemas import AudioResource

logger = logging.getLogger(__name__)


class AudioPlayer(Protocol):
    async def play(self, audio: AudioResource) -> None: ...


class CommandAudioPlayer:
    def __init__(self, player_bin: str = "afplay", timeout_s: float = 300.0) -> None:
        self._player_bin = player_bin
        self._timeout_s = timeout_s
        self._validated_path: str | None = None

    def is_available(self) -> tuple[bool, str]:
        try:
            _ = self._require_player()
            return True, "ok"
        except RuntimeError as e:
            return False, str(e)

    def _require_player(self) -> str:
        if self._validated_path:
            return self._validated_path

        p = shutil.which(self._player_bin)
        if not p:
            raise RuntimeError(
                f"Audio player {self._player_bin!r} not found on PATH. "
                "Set PLAYER_BIN to a command that plays an audio file."
            )
        self._validated_path = p
        return p

    async def play(self, audio: AudioResource) -> None:
        player = self._require_player()
        cmd = [player, str(audio.path)]

        def _call() -> None:
            try:
                subprocess.run(
                    cmd,
                    check=True,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.PIPE,
                    text=True,
                    timeout=self._timeout_s,
                )
            except subprocess.TimeoutExpired as e:
                raise RuntimeError(f"{self._player_bin} timed out after {self._timeout_s:.1f}s") from e
            except subprocess.CalledProcessError as e:
                stderr = (e.stderr or "").strip()
                raise RuntimeError(
                    f"{self._player_bin} failed (exit={e.returncode}). stderr={stderr or '<empty>'}"
                ) from e

        logger.debug(f"Playing {audio.path} with {player}")
        await asyncio.to_thread(_call)
