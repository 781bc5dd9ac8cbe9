"""File-based storage implementation."""

import json
import logging
import os

from core.interfaces import Storage
from core.config import CONFIG_FILE, HISTORY_FILE_NAME, SCORES_FILE_NAME

logger = logging.getLogger(__name__)


class FileStorage(Storage):
    """File-based storage implementation: one JSON list per collection."""

    def __init__(self, config_file: str = None, state_dir: str = None):
        self.config_file = config_file or os.path.expanduser(CONFIG_FILE)
        # Project root is one level up from server/
        project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        self.state_dir = state_dir or os.environ.get('QUICKMATH_STATE_DIR') or project_root

    def _get_history_file(self) -> str:
        return os.path.join(self.state_dir, HISTORY_FILE_NAME)

    def _get_scores_file(self) -> str:
        return os.path.join(self.state_dir, SCORES_FILE_NAME)

    def _load_list(self, path: str) -> list[dict]:
        if os.path.exists(path):
            try:
                with open(path, 'r') as f:
                    data = json.load(f)
            except (OSError, ValueError) as e:
                logger.error(f"Could not read {path}: {e}")
                return []
            if isinstance(data, list):
                return data
            logger.error(f"Ignoring {path}: expected a JSON list")
        return []

    def _append(self, path: str, entry: dict) -> None:
        entries = self._load_list(path)
        entries.append(entry)
        os.makedirs(self.state_dir, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(entries, f, indent=2)

    def load_config(self) -> dict:
        if not os.path.exists(self.config_file):
            raise FileNotFoundError(
                f"Config file not found at {self.config_file}\n"
                f'Please create it with: {{"gemini_api_key": "YOUR_API_KEY_HERE"}}'
            )
        with open(self.config_file, 'r') as f:
            return json.load(f)

    def load_history(self) -> list[dict]:
        return self._load_list(self._get_history_file())

    def append_history(self, entry: dict) -> None:
        self._append(self._get_history_file(), entry)

    def load_scores(self) -> list[dict]:
        return self._load_list(self._get_scores_file())

    def append_score(self, entry: dict) -> None:
        self._append(self._get_scores_file(), entry)
