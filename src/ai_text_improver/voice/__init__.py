"""Voice subsystem.

This package provides the speech side of the workflow:

improved text -> ElevenLabs synthesis -> temporary audio file -> player
"""

from ai_text_improver.voice.elevenlabs import VoiceClient, VoiceClientConfig
from ai_text_improver.voice.player import AudioPlayer, CommandAudioPlayer
from ai_text_improver.voice.schemas import DEFAULT_VOICE_ID, AudioResource, Voice, VoiceSettings

__all__ = [
    "AudioPlayer",
    "AudioResource",
    "CommandAudioPlayer",
    "DEFAULT_VOICE_ID",
    "Voice",
    "VoiceClient",
    "VoiceClientConfig",
    "VoiceSettings",
]
