"""FastAPI server for quickmath application."""

import asyncio
import base64
import logging
import os
import time
import uuid

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import Optional

logger = logging.getLogger(__name__)

from core.models import Topic, Difficulty, PracticeMode, Problem, HistoryEntry, ScoreEntry
from core.session import PracticeSession, SessionError
from core.utils import user_history, sort_scores
from core.config import APP_NAME, QUIZ_LENGTH, SESSION_IDLE_TIMEOUT, SPEECH_SAMPLE_RATE

from server.gemini_provider import GeminiSpeechProvider
from server.file_storage import FileStorage
from server.postgres_storage import PostgresStorage


# Pydantic models for API
class LoginRequest(BaseModel):
    user_id: str


class StartSessionRequest(BaseModel):
    user_id: str
    topic: Topic
    difficulty: Difficulty
    mode: PracticeMode = PracticeMode.PRACTICE


class AnswerRequest(BaseModel):
    answer: str


class SpeechRequest(BaseModel):
    text: str


class ProblemResponse(BaseModel):
    question_text: str
    speakable_text: str


class SessionResponse(BaseModel):
    session_id: str
    user_id: str
    topic: Topic
    difficulty: Difficulty
    mode: PracticeMode
    question_count: int
    quiz_length: Optional[int]
    score: int
    finished: bool
    problem: Optional[ProblemResponse]
    summary_text: Optional[str] = None


class AnswerResponse(BaseModel):
    is_correct: bool
    user_answer: str
    correct_answer_display: str
    feedback_text: str
    score: int
    finished: bool
    summary_text: Optional[str]
    next_problem: Optional[ProblemResponse]


class SpeechResponse(BaseModel):
    audio: str  # base64 encoded 16-bit mono PCM
    sample_rate: int


# Global state (in production, use proper DI)
storage: FileStorage = None
speech_provider: GeminiSpeechProvider = None
sessions: dict[str, PracticeSession] = {}
session_touched: dict[str, float] = {}


def problem_response(problem: Problem | None) -> ProblemResponse | None:
    if problem is None:
        return None
    return ProblemResponse(question_text=problem.question_text,
                           speakable_text=problem.speakable_text)


def session_response(session_id: str, session: PracticeSession) -> SessionResponse:
    return SessionResponse(
        session_id=session_id,
        user_id=session.user,
        topic=session.topic,
        difficulty=session.difficulty,
        mode=session.mode,
        question_count=session.question_count,
        quiz_length=QUIZ_LENGTH if session.is_quiz else None,
        score=session.score,
        finished=session.finished,
        problem=problem_response(session.current_problem),
        summary_text=session.summary_text() if session.is_quiz and session.finished else None
    )


def get_session(session_id: str) -> PracticeSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    session_touched[session_id] = time.time()
    return session


def evict_idle_sessions(now: float = None) -> None:
    """Drop sessions nobody has touched for SESSION_IDLE_TIMEOUT seconds."""
    now = time.time() if now is None else now
    for session_id, touched in list(session_touched.items()):
        if now - touched > SESSION_IDLE_TIMEOUT:
            sessions.pop(session_id, None)
            del session_touched[session_id]
            logger.info(f"Session {session_id} evicted after being idle")


def clean_user_id(user_id: str) -> str:
    user_id = user_id.strip()
    if not user_id:
        raise HTTPException(status_code=400, detail="User name must not be empty")
    return user_id


def load_entries(rows: list[dict], model) -> list:
    """Parse stored rows, skipping any that are malformed."""
    entries = []
    for row in rows:
        try:
            entries.append(model.from_dict(row))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed {model.__name__} row: {e}")
    return entries


app = FastAPI(title="QuickMath API", description="Arithmetic practice API")


@app.on_event("startup")
async def startup():
    """Initialize storage and speech provider on startup."""
    global storage, speech_provider

    # File storage by default, set QUICKMATH_STORAGE=postgres to use PostgreSQL
    storage_type = os.environ.get('QUICKMATH_STORAGE', 'file')
    if storage_type == 'postgres':
        storage = PostgresStorage()
        logger.info("Using PostgreSQL storage")
    else:
        storage = FileStorage()
        logger.info("Using file storage")

    # Get API key from environment variable first, then fall back to config file
    api_key = os.environ.get('GEMINI_API_KEY')
    if not api_key:
        try:
            config = storage.load_config()
            api_key = config.get('gemini_api_key')
        except FileNotFoundError:
            pass

    if api_key:
        speech_provider = GeminiSpeechProvider(api_key)
        logger.info(f"Speech provider initialized: {speech_provider.model_name}")
    else:
        # Practice still works, narration requests get 503
        logger.warning(
            "GEMINI_API_KEY environment variable not set and config file not found; "
            "speech synthesis is disabled"
        )


@app.get("/")
async def root():
    """Health check."""
    return {"service": APP_NAME, "ok": True}


@app.get("/api/options")
async def get_options():
    """List the available topics, difficulties and modes."""
    return {
        "topics": [t.value for t in Topic],
        "difficulties": [d.value for d in Difficulty],
        "modes": [m.value for m in PracticeMode],
        "quiz_length": QUIZ_LENGTH
    }


@app.post("/api/login")
async def login(request: LoginRequest):
    """Log in by name. Names are trusted, there are no passwords."""
    user_id = clean_user_id(request.user_id)
    logger.info(f"User logged in: {user_id}")
    return {"user_id": user_id}


@app.post("/api/sessions", response_model=SessionResponse)
async def start_session(request: StartSessionRequest):
    """Start a practice or quiz session and draw its first problem."""
    evict_idle_sessions()
    user_id = clean_user_id(request.user_id)
    session = PracticeSession(user_id, request.topic, request.difficulty, request.mode)
    session.next_problem()
    session_id = str(uuid.uuid4())[:8]
    sessions[session_id] = session
    session_touched[session_id] = time.time()
    logger.info(f"Session {session_id} started for {user_id}: "
                f"{session.mode.value} {session.topic.value} ({session.difficulty.value})")
    return session_response(session_id, session)


@app.get("/api/sessions/{session_id}", response_model=SessionResponse)
async def get_session_state(session_id: str):
    return session_response(session_id, get_session(session_id))


@app.post("/api/sessions/{session_id}/answer", response_model=AnswerResponse)
async def submit_answer(session_id: str, request: AnswerRequest):
    """Check an answer, then draw the next problem (or end the quiz)."""
    session = get_session(session_id)
    problem = session.current_problem
    try:
        attempt = session.submit_answer(request.answer)
    except SessionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    next_problem = session.next_problem()
    return AnswerResponse(
        is_correct=attempt.is_correct,
        user_answer=attempt.user_answer,
        correct_answer_display=attempt.correct_answer_display,
        feedback_text=session.feedback_text(attempt, problem),
        score=session.score,
        finished=session.finished,
        summary_text=session.summary_text() if session.is_quiz and session.finished else None,
        next_problem=problem_response(next_problem)
    )


@app.post("/api/sessions/{session_id}/finish")
async def finish_session(session_id: str):
    """Finish a session and persist its history (and quiz score)."""
    session = get_session(session_id)
    history_entry, score_entry = session.finish()
    storage.append_history(history_entry.to_dict())
    if score_entry is not None:
        storage.append_score(score_entry.to_dict())
    del sessions[session_id]
    session_touched.pop(session_id, None)
    logger.info(f"Session {session_id} finished for {session.user}: score {session.score}")
    return {
        "history_entry": history_entry.to_dict(),
        "score_entry": score_entry.to_dict() if score_entry else None
    }


@app.get("/api/history")
async def get_history(user_id: str):
    """Finished sessions for a user, most recent first."""
    entries = load_entries(storage.load_history(), HistoryEntry)
    return {"history": [e.to_dict() for e in user_history(entries, user_id.strip())]}


@app.get("/api/leaderboard")
async def get_leaderboard(sort: str = 'score', direction: str = 'descending'):
    """Quiz scores across all users."""
    scores = load_entries(storage.load_scores(), ScoreEntry)
    try:
        ordered = sort_scores(scores, sort, direction)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"scores": [s.to_dict() for s in ordered]}


@app.post("/api/speech", response_model=SpeechResponse)
async def synthesize_speech(request: SpeechRequest):
    """Synthesize speech for a line of narration."""
    if speech_provider is None:
        raise HTTPException(status_code=503, detail="Speech synthesis is not configured")
    try:
        # Run in executor to not block the event loop
        loop = asyncio.get_event_loop()
        audio = await loop.run_in_executor(None, lambda: speech_provider.synthesize(request.text))
    except Exception as e:
        logger.error(f"Speech synthesis failed: {e}")
        raise HTTPException(status_code=502, detail="Speech synthesis failed")
    if not audio:
        raise HTTPException(status_code=502, detail="No audio data received")
    return SpeechResponse(audio=base64.b64encode(audio).decode('ascii'),
                          sample_rate=SPEECH_SAMPLE_RATE)


@app.get("/api/stats")
async def get_stats():
    """Speech provider usage stats."""
    if speech_provider is None:
        return {"speech": None}
    return {"speech": speech_provider.get_stats()}
