"""REST API client for quickmath server."""

import base64

import requests


class QuickMathAPIClient:
    """Client for communicating with the quickmath REST API."""

    def __init__(self, base_url: str = "http://localhost:8000", user_id: str = "guest"):
        self.base_url = base_url.rstrip('/')
        self.user_id = user_id
        self.session = requests.Session()

    def _get(self, endpoint: str, params: dict = None) -> dict:
        """Make a GET request."""
        response = self.session.get(f"{self.base_url}{endpoint}", params=params or {})
        response.raise_for_status()
        return response.json()

    def _post(self, endpoint: str, data: dict = None) -> dict:
        """Make a POST request."""
        response = self.session.post(f"{self.base_url}{endpoint}", json=data or {})
        response.raise_for_status()
        return response.json()

    def health_check(self) -> dict:
        """Check if the server is running."""
        return self._get("/")

    def get_options(self) -> dict:
        """Get topics, difficulties, modes and quiz length."""
        return self._get("/api/options")

    def login(self, user_id: str) -> dict:
        """Log in and remember the cleaned user name."""
        result = self._post("/api/login", {'user_id': user_id})
        self.user_id = result['user_id']
        return result

    def start_session(self, topic: str, difficulty: str, mode: str) -> dict:
        """Start a session. The response carries the first problem."""
        return self._post("/api/sessions", {
            'user_id': self.user_id,
            'topic': topic,
            'difficulty': difficulty,
            'mode': mode
        })

    def submit_answer(self, session_id: str, answer: str) -> dict:
        """Submit an answer for the current problem."""
        return self._post(f"/api/sessions/{session_id}/answer", {'answer': answer})

    def finish_session(self, session_id: str) -> dict:
        """Finish a session and save it to history."""
        return self._post(f"/api/sessions/{session_id}/finish")

    def get_history(self) -> dict:
        """Get the user's finished sessions, newest first."""
        return self._get("/api/history", {'user_id': self.user_id})

    def get_leaderboard(self, sort: str = 'score', direction: str = 'descending') -> dict:
        """Get quiz scores across all users."""
        return self._get("/api/leaderboard", {'sort': sort, 'direction': direction})

    def synthesize_speech(self, text: str) -> tuple[bytes, int]:
        """Synthesize speech on the server. Returns (pcm_audio, sample_rate)."""
        result = self._post("/api/speech", {'text': text})
        return base64.b64decode(result['audio']), result['sample_rate']
