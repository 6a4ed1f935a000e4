"""
Text-based session interface.

Provides a command-line REPL that drives an ImproverSession: lines of
text become the input, slash commands trigger actions and settings.
"""

import logging
from abc import ABC, abstractmethod

from pydantic import ValidationError

from ai_text_improver.models.schemas import Provider, WritingStyle
from ai_text_improver.orchestrator.improver_session import ImproverSession
from ai_text_improver.orchestrator.schemas import ActionResult, SpeakSource
from ai_text_improver.updates.update_checker import UpdateChecker
from ai_text_improver.voice.player import AudioPlayer
from ai_text_improver.voice.schemas import AudioResource, VoiceSettings

logger = logging.getLogger(__name__)

HELP_TEXT = """Commands:
  /improve                 Rewrite the current input
  /speak                   Read the text aloud
  /style <name>            Select a writing style
  /provider <name>         Select anthropic or openai
  /voices                  List available voices
  /voice <id>              Select a voice
  /stability <0-1>         Set voice stability
  /similarity <0-1>        Set voice similarity boost
  /source <input|output>   Choose which text /speak reads
  /status                  Show the session state
  /quit                    Leave
Any other line replaces the input text."""


class SessionInterface(ABC):
    """Abstract base class for session front ends."""

    @abstractmethod
    async def run(self) -> None:
        """Run the interface."""
        ...

    @abstractmethod
    async def send_message(self, message: str) -> None:
        """
        Send a message to the user.

        Args:
            message: Message to display.
        """
        ...

    @abstractmethod
    async def receive_input(self) -> str:
        """
        Receive input from the user.

        Returns:
            User's input string.
        """
        ...


class TextInterface(SessionInterface):
    """
    Command-line text interface.

    Provides a simple REPL for improving and speaking text via terminal.
    """

    def __init__(
        self,
        session: ImproverSession,
        player: AudioPlayer | None = None,
        update_checker: UpdateChecker | None = None,
    ) -> None:
        """
        Initialize the text interface.

        Args:
            session: Session to drive.
            player: Plays synthesized audio. If None, audio is saved and removed on exit.
            update_checker: Checked once at startup if given.
        """
        self._session = session
        self._player = player
        self._update_checker = update_checker
        self._saved_audio: list[AudioResource] = []

    async def run(self) -> None:
        """Run the interactive session."""
        print("\n" + "=" * 60)
        print("AI Text Improver")
        print("=" * 60 + "\n")
        print(HELP_TEXT + "\n")

        await self._announce_update()

        try:
            while True:
                line = await self.receive_input()
                if line.strip().lower() in ("/quit", "/exit", "quit", "exit"):
                    break
                await self.handle_line(line)
        finally:
            for audio in self._saved_audio:
                audio.discard()
            self._saved_audio.clear()
            await self._session.close()

    async def send_message(self, message: str) -> None:
        """
        Display a message to the terminal.

        Args:
            message: Message to display.
        """
        print(f"\n{message}\n")

    async def receive_input(self) -> str:
        """
        Get input from the terminal.

        Returns:
            User's input string.
        """
        return await self._get_input("> ")

    async def _get_input(self, prompt: str) -> str:
        try:
            return input(prompt)
        except EOFError:
            return "/quit"

    async def _announce_update(self) -> None:
        if self._update_checker is None:
            return
        update = await self._update_checker.check_for_updates()
        if update:
            await self.send_message(
                f"Version {update.version} is available"
                + (f": {update.download_url}" if update.download_url else "")
            )

    async def handle_line(self, line: str) -> None:
        """
        Dispatch one line of user input.

        Args:
            line: Raw input line.
        """
        if not line.startswith("/"):
            self._session.state.set_input_text(line)
            return

        command, _, arg = line[1:].partition(" ")
        command = command.lower()
        arg = arg.strip()
        state = self._session.state

        try:
            if command == "improve":
                await self._show_result(await self._session.improve())
            elif command == "speak":
                await self._speak()
            elif command == "style":
                state.set_style(WritingStyle.parse(arg))
                await self.send_message(f"Style: {state.style.display_name}")
            elif command == "provider":
                state.set_provider(Provider(arg.lower()))
                await self.send_message(f"Provider: {state.provider.display_name}")
            elif command == "voices":
                await self._show_voices()
            elif command == "voice":
                self._update_voice(voice_id=arg)
            elif command == "stability":
                self._update_voice(stability=float(arg))
            elif command == "similarity":
                self._update_voice(similarity_boost=float(arg))
            elif command == "source":
                state.set_speak_source(SpeakSource(arg.lower()))
            elif command == "status":
                await self._show_status()
            else:
                await self.send_message(HELP_TEXT)
        except (ValueError, ValidationError) as e:
            await self.send_message(f"Invalid value for /{command}: {e}")

    def _update_voice(self, **changes: object) -> None:
        current = self._session.state.voice_settings
        updated = VoiceSettings.model_validate({**current.model_dump(), **changes})
        self._session.state.set_voice_settings(updated)

    async def _show_result(self, result: ActionResult) -> None:
        if result.ok:
            await self.send_message(result.text or "")
        else:
            await self.send_message(f"Error: {result.message}")

    async def _speak(self) -> None:
        result = await self._session.speak()
        if not result.ok or result.audio is None:
            await self._show_result(result)
            return

        if self._player is None:
            self._saved_audio.append(result.audio)
            await self.send_message(f"Audio saved to {result.audio.path} (removed on exit)")
            return

        try:
            await self._player.play(result.audio)
        except RuntimeError as e:
            logger.error(f"Playback failed: {e}")
            await self.send_message(f"Playback failed: {e}")
        finally:
            result.audio.discard()

    async def _show_voices(self) -> None:
        self._session.state.clear_error()
        voices = await self._session.list_voices()
        error = self._session.state.last_error
        if error:
            await self.send_message(f"Error: {error.message}")
            return
        if not voices:
            await self.send_message("No voices available.")
            return
        lines = [f"  {v.voice_id}  {v.display_name}" + (f" ({v.category})" if v.category else "") for v in voices]
        await self.send_message("Voices:\n" + "\n".join(lines))

    async def _show_status(self) -> None:
        snapshot = self._session.state.snapshot()
        lines = [f"  {key}: {value}" for key, value in snapshot.items()]
        await self.send_message("Session:\n" + "\n".join(lines))
