"""Abstract base classes for dependency injection."""

from abc import ABC, abstractmethod


class SpeechSynthesizer(ABC):
    """Abstract base class for a text-to-speech provider."""

    @abstractmethod
    def synthesize(self, text: str) -> bytes | None:
        """Synthesize speech for text. Returns raw audio bytes or None when
        the provider answered without audio. Raises on transport failure."""
        pass


class AudioPlayer(ABC):
    """Abstract base class for audio playback."""

    @abstractmethod
    def play(self, audio: bytes) -> None:
        """Play raw audio, returning once playback has finished."""
        pass


class Storage(ABC):
    """Abstract base class for config, history and leaderboard storage."""

    @abstractmethod
    def load_config(self) -> dict:
        """Load configuration. Returns config dict."""
        pass

    @abstractmethod
    def load_history(self) -> list[dict]:
        """Load every history entry, in insertion order."""
        pass

    @abstractmethod
    def append_history(self, entry: dict) -> None:
        """Append one history entry."""
        pass

    @abstractmethod
    def load_scores(self) -> list[dict]:
        """Load the leaderboard, in insertion order."""
        pass

    @abstractmethod
    def append_score(self, entry: dict) -> None:
        """Append one leaderboard entry."""
        pass
