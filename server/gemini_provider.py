"""Gemini text-to-speech provider implementation."""

import logging
import time
from google import genai
from google.genai import types

from core.interfaces import SpeechSynthesizer
from core.config import NARRATION_STYLE_PROMPT, SPEECH_MODEL, SPEECH_VOICE

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class GeminiSpeechProvider(SpeechSynthesizer):
    """Gemini speech synthesis. Returns raw 16-bit mono PCM audio."""

    def __init__(self, api_key: str, model_name: str = SPEECH_MODEL, voice_name: str = SPEECH_VOICE):
        self.client = genai.Client(api_key=api_key)
        self.model_name = model_name
        self.voice_name = voice_name
        self.stats = {
            'calls': 0,
            'failures': 0,
            'empty_responses': 0,
            'total_ms': 0
        }

    def _speech_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            response_modalities=['AUDIO'],
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=self.voice_name)
                )
            )
        )

    @staticmethod
    def _extract_audio(response) -> bytes | None:
        candidates = getattr(response, 'candidates', None)
        if not candidates:
            return None
        content = candidates[0].content
        if content is None or not content.parts:
            return None
        inline_data = content.parts[0].inline_data
        if inline_data is None:
            return None
        return inline_data.data or None

    def synthesize(self, text: str) -> bytes | None:
        start_time = time.time()
        self.stats['calls'] += 1
        try:
            response = self.client.models.generate_content(
                model=self.model_name,
                contents=NARRATION_STYLE_PROMPT.format(text=text),
                config=self._speech_config()
            )
        except Exception:
            self.stats['failures'] += 1
            raise
        finally:
            self.stats['total_ms'] += int((time.time() - start_time) * 1000)

        audio = self._extract_audio(response)
        if audio is None:
            self.stats['empty_responses'] += 1
            logger.warning(f"No audio data in speech response for: {text[:60]}")
        return audio

    def get_stats(self) -> dict:
        calls = self.stats['calls']
        return {
            'model': self.model_name,
            'voice': self.voice_name,
            **self.stats,
            'avg_ms': int(self.stats['total_ms'] / calls) if calls else 0
        }
