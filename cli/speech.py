"""Local narration for the console client."""

import logging

import numpy as np
import sounddevice as sd

from core.interfaces import SpeechSynthesizer, AudioPlayer
from core.narration import NarrationQueue
from core.config import SPEECH_SAMPLE_RATE
from cli.api_client import QuickMathAPIClient

logger = logging.getLogger(__name__)


class ApiSpeechSynthesizer(SpeechSynthesizer):
    """Synthesizes speech through the server's /api/speech endpoint."""

    def __init__(self, client: QuickMathAPIClient, sample_rate: int = SPEECH_SAMPLE_RATE):
        self.client = client
        self.sample_rate = sample_rate

    def synthesize(self, text: str) -> bytes | None:
        audio, sample_rate = self.client.synthesize_speech(text)
        if sample_rate != self.sample_rate:
            logger.warning(f"Server audio is {sample_rate} Hz, player expects {self.sample_rate} Hz")
        return audio


class SoundDevicePlayer(AudioPlayer):
    """Plays 16-bit mono PCM through the default output device."""

    def __init__(self, sample_rate: int = SPEECH_SAMPLE_RATE):
        self.sample_rate = sample_rate

    def play(self, audio: bytes) -> None:
        samples = np.frombuffer(audio, dtype=np.int16)
        sd.play(samples, samplerate=self.sample_rate)
        sd.wait()


class SilentNarrator:
    """Stands in for a NarrationQueue when voice is turned off."""

    def speak(self, text: str) -> None:
        return None

    def close(self, timeout: float | None = None) -> None:
        return None


def create_narrator(client: QuickMathAPIClient, enabled: bool = True):
    """Build the narration queue used by the console UI."""
    if not enabled:
        return SilentNarrator()
    return NarrationQueue(ApiSpeechSynthesizer(client), SoundDevicePlayer())
