"""Practice and quiz sessions."""

import time

from .checker import check_answer
from .config import QUIZ_LENGTH, BLANK_ANSWER
from .generator import generate_problem, speak_answer
from .models import (
    Topic, Difficulty, PracticeMode, Problem, Attempt, HistoryEntry, ScoreEntry
)

CORRECT_FEEDBACK = 'Correct, well done!'


class SessionError(ValueError):
    """Raised when a session operation is not valid in its current state."""


class PracticeSession:
    """One run of problems for a user, in practice or quiz mode.

    Attempts accumulate in memory until ``finish`` copies them into a
    HistoryEntry (and, for quizzes, a ScoreEntry).
    """

    def __init__(self, user: str, topic: Topic, difficulty: Difficulty,
                 mode: PracticeMode, generator=generate_problem, clock=time.time):
        self.user = user
        self.topic = Topic(topic)
        self.difficulty = Difficulty(difficulty)
        self.mode = PracticeMode(mode)
        self._generator = generator
        self._clock = clock
        self.current_problem = None
        self.question_count = 0
        self.score = 0
        self.attempts = []
        self.finished = False
        self._result = None

    @property
    def is_quiz(self) -> bool:
        return self.mode == PracticeMode.QUIZ

    def next_problem(self) -> Problem | None:
        """Draw the next problem. Returns None once a quiz is over."""
        if self.finished:
            return None
        if self.is_quiz and self.question_count >= QUIZ_LENGTH:
            self.finished = True
            self.current_problem = None
            return None
        self.current_problem = self._generator(self.topic, self.difficulty)
        self.question_count += 1
        return self.current_problem

    def submit_answer(self, user_answer: str) -> Attempt:
        """Check an answer against the current problem and record it."""
        if self.finished:
            raise SessionError("Session is already finished")
        problem = self.current_problem
        if problem is None:
            raise SessionError("No problem to answer")

        is_correct = check_answer(user_answer, problem.answer)
        attempt = Attempt(
            question_text=problem.question_text,
            user_answer=user_answer.strip() or BLANK_ANSWER,
            correct_answer_display=problem.correct_answer_display(),
            is_correct=is_correct
        )
        self.attempts.append(attempt)
        if is_correct and self.is_quiz:
            self.score += 1
        self.current_problem = None
        return attempt

    @staticmethod
    def feedback_text(attempt: Attempt, problem: Problem) -> str:
        """Narration line after an answer."""
        if attempt.is_correct:
            return CORRECT_FEEDBACK
        return f'Not quite, the answer is {speak_answer(problem)}'

    def summary_text(self) -> str:
        """Narration line at the end of a quiz."""
        return f'You finished the quiz with {self.score} out of {QUIZ_LENGTH} points. Great job!'

    def finish(self) -> tuple[HistoryEntry, ScoreEntry | None]:
        """End the session and build its history and leaderboard entries."""
        if self._result is not None:
            return self._result

        self.finished = True
        self.current_problem = None
        timestamp = int(self._clock() * 1000)
        history_entry = HistoryEntry(
            user=self.user,
            topic=self.topic,
            difficulty=self.difficulty,
            mode=self.mode,
            score=self.score,
            timestamp=timestamp,
            attempts=tuple(self.attempts)
        )
        score_entry = None
        if self.is_quiz:
            score_entry = ScoreEntry(
                user=self.user,
                score=self.score,
                topic=self.topic,
                difficulty=self.difficulty,
                timestamp=timestamp
            )
        self._result = (history_entry, score_entry)
        return self._result
