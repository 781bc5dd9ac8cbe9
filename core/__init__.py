from .models import (
    Topic, Difficulty, PracticeMode, Problem, Attempt, HistoryEntry, ScoreEntry
)
from .interfaces import SpeechSynthesizer, AudioPlayer, Storage
from .expression import evaluate, ExpressionError
from .generator import generate_problem, speak_answer
from .checker import check_answer, parse_answer
from .narration import NarrationQueue
from .session import PracticeSession, SessionError
from .utils import format_number, user_history, sort_scores
from .config import (
    QUIZ_LENGTH, BLANK_ANSWER, ANSWER_TOLERANCE, NARRATION_MIN_INTERVAL_MS
)

__all__ = [
    'Topic', 'Difficulty', 'PracticeMode', 'Problem', 'Attempt',
    'HistoryEntry', 'ScoreEntry',
    'SpeechSynthesizer', 'AudioPlayer', 'Storage',
    'evaluate', 'ExpressionError',
    'generate_problem', 'speak_answer',
    'check_answer', 'parse_answer',
    'NarrationQueue',
    'PracticeSession', 'SessionError',
    'format_number', 'user_history', 'sort_scores',
    'QUIZ_LENGTH', 'BLANK_ANSWER', 'ANSWER_TOLERANCE', 'NARRATION_MIN_INTERVAL_MS'
]
