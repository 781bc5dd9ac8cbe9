"""Domain models for quickmath application."""

from dataclasses import dataclass, field
from enum import Enum

from .utils import format_number


class Topic(str, Enum):
    INTEGER = 'integer'
    FRACTION = 'fraction'
    PERCENTAGE = 'percentage'
    EXPRESSION = 'expression'


class Difficulty(str, Enum):
    EASY = 'easy'
    MEDIUM = 'medium'
    HARD = 'hard'


class PracticeMode(str, Enum):
    PRACTICE = 'practice'
    QUIZ = 'quiz'


@dataclass(frozen=True)
class Problem:
    """A generated problem with its correct answer."""

    question_text: str
    speakable_text: str
    answer: float
    answer_display: str | None = None

    def correct_answer_display(self) -> str:
        """Exact display when available, otherwise the formatted number."""
        if self.answer_display is not None:
            return self.answer_display
        return format_number(self.answer)

    def to_dict(self) -> dict:
        return {
            'question_text': self.question_text,
            'speakable_text': self.speakable_text,
            'answer': self.answer,
            'answer_display': self.answer_display
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Problem':
        return cls(
            data['question_text'],
            data['speakable_text'],
            float(data['answer']),
            data.get('answer_display')
        )


@dataclass(frozen=True)
class Attempt:
    """One answered problem."""

    question_text: str
    user_answer: str
    correct_answer_display: str
    is_correct: bool

    def to_dict(self) -> dict:
        return {
            'question_text': self.question_text,
            'user_answer': self.user_answer,
            'correct_answer_display': self.correct_answer_display,
            'is_correct': self.is_correct
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Attempt':
        return cls(
            data['question_text'],
            data['user_answer'],
            data['correct_answer_display'],
            bool(data['is_correct'])
        )


@dataclass(frozen=True)
class HistoryEntry:
    """A finished session, as stored in the user's history."""

    user: str
    topic: Topic
    difficulty: Difficulty
    mode: PracticeMode
    score: int
    timestamp: int  # epoch milliseconds
    attempts: tuple[Attempt, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            'user': self.user,
            'topic': self.topic.value,
            'difficulty': self.difficulty.value,
            'mode': self.mode.value,
            'score': self.score,
            'timestamp': self.timestamp,
            'attempts': [a.to_dict() for a in self.attempts]
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'HistoryEntry':
        return cls(
            user=data['user'],
            topic=Topic(data['topic']),
            difficulty=Difficulty(data['difficulty']),
            mode=PracticeMode(data['mode']),
            score=int(data.get('score', 0)),
            timestamp=int(data['timestamp']),
            attempts=tuple(Attempt.from_dict(a) for a in data.get('attempts', []))
        )


@dataclass(frozen=True)
class ScoreEntry:
    """A leaderboard row, created for quiz sessions only."""

    user: str
    score: int
    topic: Topic
    difficulty: Difficulty
    timestamp: int  # epoch milliseconds

    def to_dict(self) -> dict:
        return {
            'user': self.user,
            'score': self.score,
            'topic': self.topic.value,
            'difficulty': self.difficulty.value,
            'timestamp': self.timestamp
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ScoreEntry':
        return cls(
            user=data['user'],
            score=int(data['score']),
            topic=Topic(data['topic']),
            difficulty=Difficulty(data['difficulty']),
            timestamp=int(data['timestamp'])
        )
