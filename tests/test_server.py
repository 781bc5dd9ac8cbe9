"""Tests for the quickmath API server and its backends."""

import base64
import json
import os
import tempfile
import unittest
from unittest.mock import MagicMock
import sys

# Mock third-party SDKs before importing
google_mock = MagicMock()
sys.modules['google'] = google_mock
sys.modules['google.genai'] = google_mock.genai
sys.modules['psycopg2'] = MagicMock()
sys.modules['psycopg2.extras'] = MagicMock()

from fastapi.testclient import TestClient

import server.app as server_app
from server.file_storage import FileStorage
from server.gemini_provider import GeminiSpeechProvider
from core.interfaces import Storage, SpeechSynthesizer
from core.config import QUIZ_LENGTH, SESSION_IDLE_TIMEOUT, SPEECH_SAMPLE_RATE


# ============================================================================
# Mock Implementations
# ============================================================================

class MockStorage(Storage):
    """In-memory storage for testing."""

    def __init__(self):
        self.config = {'gemini_api_key': 'test-api-key'}
        self.history = []
        self.scores = []

    def load_config(self) -> dict:
        return self.config

    def load_history(self) -> list[dict]:
        return list(self.history)

    def append_history(self, entry: dict) -> None:
        self.history.append(entry)

    def load_scores(self) -> list[dict]:
        return list(self.scores)

    def append_score(self, entry: dict) -> None:
        self.scores.append(entry)


class MockSpeechProvider(SpeechSynthesizer):
    def __init__(self, audio: bytes | None = b'\x01\x00\x02\x00', error: Exception = None):
        self.audio = audio
        self.error = error
        self.calls = []

    def synthesize(self, text: str) -> bytes | None:
        self.calls.append(text)
        if self.error:
            raise self.error
        return self.audio

    def get_stats(self) -> dict:
        return {'calls': len(self.calls)}


def score_entry(user: str, score: int, timestamp: int) -> dict:
    return {'user': user, 'score': score, 'topic': 'integer',
            'difficulty': 'easy', 'timestamp': timestamp}


def history_entry(user: str, timestamp: int) -> dict:
    return {'user': user, 'topic': 'integer', 'difficulty': 'easy', 'mode': 'practice',
            'score': 0, 'timestamp': timestamp, 'attempts': []}


# ============================================================================
# Test Cases
# ============================================================================

class ServerTestCase(unittest.TestCase):

    def setUp(self):
        self.storage = MockStorage()
        server_app.storage = self.storage
        server_app.speech_provider = None
        server_app.sessions.clear()
        server_app.session_touched.clear()
        self.client = TestClient(server_app.app)

    def start(self, mode: str = 'quiz', topic: str = 'integer', difficulty: str = 'easy') -> dict:
        r = self.client.post('/api/sessions', json={
            'user_id': ' ana ', 'topic': topic, 'difficulty': difficulty, 'mode': mode
        })
        self.assertEqual(r.status_code, 200)
        return r.json()

    def correct_answer(self, session_id: str) -> str:
        return server_app.sessions[session_id].current_problem.correct_answer_display()


class TestBasics(ServerTestCase):

    def test_health(self):
        r = self.client.get('/')
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {'service': 'quickmath', 'ok': True})

    def test_options(self):
        data = self.client.get('/api/options').json()
        self.assertEqual(data['topics'], ['integer', 'fraction', 'percentage', 'expression'])
        self.assertEqual(data['difficulties'], ['easy', 'medium', 'hard'])
        self.assertEqual(data['modes'], ['practice', 'quiz'])
        self.assertEqual(data['quiz_length'], QUIZ_LENGTH)

    def test_login_trims_name(self):
        r = self.client.post('/api/login', json={'user_id': '  Ana  '})
        self.assertEqual(r.json(), {'user_id': 'Ana'})

    def test_login_rejects_blank_name(self):
        r = self.client.post('/api/login', json={'user_id': '   '})
        self.assertEqual(r.status_code, 400)


class TestSessions(ServerTestCase):

    def test_start_session(self):
        data = self.start()
        self.assertEqual(data['user_id'], 'ana')
        self.assertEqual(data['question_count'], 1)
        self.assertEqual(data['quiz_length'], QUIZ_LENGTH)
        self.assertFalse(data['finished'])
        self.assertTrue(data['problem']['question_text'])
        self.assertTrue(data['problem']['speakable_text'].endswith('equals what?'))
        self.assertNotIn('answer', data['problem'])

    def test_unknown_topic_rejected(self):
        r = self.client.post('/api/sessions', json={
            'user_id': 'ana', 'topic': 'calculus', 'difficulty': 'easy', 'mode': 'quiz'
        })
        self.assertEqual(r.status_code, 422)

    def test_unknown_session(self):
        self.assertEqual(self.client.get('/api/sessions/nope').status_code, 404)
        r = self.client.post('/api/sessions/nope/answer', json={'answer': '1'})
        self.assertEqual(r.status_code, 404)
        self.assertEqual(self.client.post('/api/sessions/nope/finish').status_code, 404)

    def test_full_quiz(self):
        session_id = self.start()['session_id']
        results = []
        for i in range(QUIZ_LENGTH):
            answer = self.correct_answer(session_id) if i % 2 == 0 else 'wrong'
            r = self.client.post(f'/api/sessions/{session_id}/answer', json={'answer': answer})
            self.assertEqual(r.status_code, 200)
            results.append(r.json())

        self.assertTrue(results[0]['is_correct'])
        self.assertEqual(results[0]['feedback_text'], 'Correct, well done!')
        self.assertFalse(results[1]['is_correct'])
        self.assertTrue(results[1]['feedback_text'].startswith('Not quite, the answer is'))
        self.assertIsNotNone(results[0]['next_problem'])

        last = results[-1]
        self.assertTrue(last['finished'])
        self.assertIsNone(last['next_problem'])
        self.assertEqual(last['score'], 3)
        self.assertIn('3 out of 5', last['summary_text'])

        r = self.client.post(f'/api/sessions/{session_id}/answer', json={'answer': '1'})
        self.assertEqual(r.status_code, 409)

        r = self.client.post(f'/api/sessions/{session_id}/finish')
        data = r.json()
        self.assertEqual(data['history_entry']['score'], 3)
        self.assertEqual(len(data['history_entry']['attempts']), QUIZ_LENGTH)
        self.assertEqual(data['score_entry']['score'], 3)
        self.assertEqual(len(self.storage.history), 1)
        self.assertEqual(len(self.storage.scores), 1)
        self.assertNotIn(session_id, server_app.sessions)

    def test_practice_finish_saves_history_only(self):
        session_id = self.start(mode='practice')['session_id']
        r = self.client.post(f'/api/sessions/{session_id}/answer', json={'answer': ''})
        result = r.json()
        self.assertFalse(result['is_correct'])
        self.assertEqual(result['user_answer'], '(blank)')
        self.assertFalse(result['finished'])

        data = self.client.post(f'/api/sessions/{session_id}/finish').json()
        self.assertIsNone(data['score_entry'])
        self.assertEqual(data['history_entry']['mode'], 'practice')
        self.assertEqual(len(self.storage.history), 1)
        self.assertEqual(self.storage.scores, [])

    def test_fraction_answer_display(self):
        session_id = self.start(topic='fraction', mode='practice')['session_id']
        answer = self.correct_answer(session_id)
        result = self.client.post(f'/api/sessions/{session_id}/answer', json={'answer': answer}).json()
        self.assertTrue(result['is_correct'])
        self.assertEqual(result['correct_answer_display'], answer)

    def test_session_state(self):
        session_id = self.start(mode='practice')['session_id']
        data = self.client.get(f'/api/sessions/{session_id}').json()
        self.assertEqual(data['session_id'], session_id)
        self.assertIsNone(data['quiz_length'])
        self.assertIsNotNone(data['problem'])

    def test_idle_session_evicted_on_next_start(self):
        idle_id = self.start(mode='practice')['session_id']
        server_app.session_touched[idle_id] -= SESSION_IDLE_TIMEOUT + 1
        active_id = self.start(mode='practice')['session_id']

        self.assertEqual(self.client.get(f'/api/sessions/{idle_id}').status_code, 404)
        self.assertEqual(self.client.get(f'/api/sessions/{active_id}').status_code, 200)
        self.assertNotIn(idle_id, server_app.session_touched)

    def test_touch_keeps_session_alive(self):
        session_id = self.start(mode='practice')['session_id']
        server_app.session_touched[session_id] -= SESSION_IDLE_TIMEOUT - 60
        self.client.get(f'/api/sessions/{session_id}')
        server_app.evict_idle_sessions(server_app.session_touched[session_id] + 120)
        self.assertIn(session_id, server_app.sessions)

    def test_finish_forgets_touch_time(self):
        session_id = self.start(mode='practice')['session_id']
        self.client.post(f'/api/sessions/{session_id}/finish')
        self.assertNotIn(session_id, server_app.session_touched)


class TestHistoryAndLeaderboard(ServerTestCase):

    def test_history_filtered_and_newest_first(self):
        self.storage.history = [history_entry('ana', 1), history_entry('bo', 2),
                                history_entry('ana', 3)]
        data = self.client.get('/api/history', params={'user_id': 'ana'}).json()
        self.assertEqual([e['timestamp'] for e in data['history']], [3, 1])

    def test_history_skips_malformed_rows(self):
        self.storage.history = [history_entry('ana', 1), {'user': 'ana'}]
        with self.assertLogs('server.app', level='WARNING'):
            data = self.client.get('/api/history', params={'user_id': 'ana'}).json()
        self.assertEqual(len(data['history']), 1)

    def test_leaderboard_sorting(self):
        self.storage.scores = [score_entry('bo', 3, 1), score_entry('Ana', 5, 2),
                               score_entry('cy', 1, 3)]
        data = self.client.get('/api/leaderboard').json()
        self.assertEqual([s['score'] for s in data['scores']], [5, 3, 1])

        data = self.client.get('/api/leaderboard',
                               params={'sort': 'user', 'direction': 'ascending'}).json()
        self.assertEqual([s['user'] for s in data['scores']], ['Ana', 'bo', 'cy'])

    def test_leaderboard_bad_sort(self):
        r = self.client.get('/api/leaderboard', params={'sort': 'topic'})
        self.assertEqual(r.status_code, 400)


class TestSpeech(ServerTestCase):

    def test_speech_disabled(self):
        r = self.client.post('/api/speech', json={'text': 'hello'})
        self.assertEqual(r.status_code, 503)
        self.assertEqual(self.client.get('/api/stats').json(), {'speech': None})

    def test_speech_returns_base64_audio(self):
        provider = MockSpeechProvider()
        server_app.speech_provider = provider
        r = self.client.post('/api/speech', json={'text': '2 plus 2 equals what?'})
        self.assertEqual(r.status_code, 200)
        data = r.json()
        self.assertEqual(base64.b64decode(data['audio']), b'\x01\x00\x02\x00')
        self.assertEqual(data['sample_rate'], SPEECH_SAMPLE_RATE)
        self.assertEqual(provider.calls, ['2 plus 2 equals what?'])
        self.assertEqual(self.client.get('/api/stats').json(), {'speech': {'calls': 1}})

    def test_speech_provider_failure(self):
        server_app.speech_provider = MockSpeechProvider(error=ConnectionError('quota'))
        with self.assertLogs('server.app', level='ERROR'):
            r = self.client.post('/api/speech', json={'text': 'hello'})
        self.assertEqual(r.status_code, 502)

    def test_speech_empty_audio(self):
        server_app.speech_provider = MockSpeechProvider(audio=None)
        r = self.client.post('/api/speech', json={'text': 'hello'})
        self.assertEqual(r.status_code, 502)


class TestFileStorage(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.storage = FileStorage(
            config_file=os.path.join(self.tmp.name, 'missing.json'),
            state_dir=self.tmp.name
        )

    def test_empty_by_default(self):
        self.assertEqual(self.storage.load_history(), [])
        self.assertEqual(self.storage.load_scores(), [])

    def test_appends_persist_in_order(self):
        self.storage.append_history(history_entry('ana', 1))
        self.storage.append_history(history_entry('bo', 2))
        self.storage.append_score(score_entry('ana', 4, 1))

        reopened = FileStorage(state_dir=self.tmp.name)
        self.assertEqual([e['user'] for e in reopened.load_history()], ['ana', 'bo'])
        self.assertEqual(reopened.load_scores(), [score_entry('ana', 4, 1)])

    def test_corrupt_file_reads_empty(self):
        with open(os.path.join(self.tmp.name, 'quickmath_history.json'), 'w') as f:
            f.write('{not json')
        with self.assertLogs('server.file_storage', level='ERROR'):
            self.assertEqual(self.storage.load_history(), [])

    def test_non_list_file_reads_empty(self):
        with open(os.path.join(self.tmp.name, 'quickmath_scores.json'), 'w') as f:
            json.dump({'user': 'ana'}, f)
        with self.assertLogs('server.file_storage', level='ERROR'):
            self.assertEqual(self.storage.load_scores(), [])

    def test_missing_config(self):
        with self.assertRaises(FileNotFoundError):
            self.storage.load_config()

    def test_config(self):
        path = os.path.join(self.tmp.name, 'config.json')
        with open(path, 'w') as f:
            json.dump({'gemini_api_key': 'abc'}, f)
        storage = FileStorage(config_file=path, state_dir=self.tmp.name)
        self.assertEqual(storage.load_config(), {'gemini_api_key': 'abc'})


class TestGeminiSpeechProvider(unittest.TestCase):

    def make_response(self, data):
        part = MagicMock()
        part.inline_data.data = data
        candidate = MagicMock()
        candidate.content.parts = [part]
        response = MagicMock()
        response.candidates = [candidate]
        return response

    def test_synthesize_wraps_text_in_style_prompt(self):
        provider = GeminiSpeechProvider('key')
        provider.client = MagicMock()
        provider.client.models.generate_content.return_value = self.make_response(b'pcm')

        self.assertEqual(provider.synthesize('2 plus 2 equals what?'), b'pcm')
        kwargs = provider.client.models.generate_content.call_args.kwargs
        self.assertEqual(kwargs['contents'],
                         'Say with a friendly and encouraging tone: 2 plus 2 equals what?')
        self.assertEqual(kwargs['model'], 'gemini-2.5-flash-preview-tts')
        self.assertEqual(provider.get_stats()['calls'], 1)

    def test_missing_audio_returns_none(self):
        provider = GeminiSpeechProvider('key')
        provider.client = MagicMock()
        response = MagicMock()
        response.candidates = []
        provider.client.models.generate_content.return_value = response

        with self.assertLogs('server.gemini_provider', level='WARNING'):
            self.assertIsNone(provider.synthesize('hello'))
        self.assertEqual(provider.get_stats()['empty_responses'], 1)

    def test_empty_payload_returns_none(self):
        provider = GeminiSpeechProvider('key')
        provider.client = MagicMock()
        provider.client.models.generate_content.return_value = self.make_response(b'')
        with self.assertLogs('server.gemini_provider', level='WARNING'):
            self.assertIsNone(provider.synthesize('hello'))

    def test_failure_is_counted_and_raised(self):
        provider = GeminiSpeechProvider('key')
        provider.client = MagicMock()
        provider.client.models.generate_content.side_effect = ConnectionError('down')

        with self.assertRaises(ConnectionError):
            provider.synthesize('hello')
        self.assertEqual(provider.get_stats()['failures'], 1)


if __name__ == '__main__':
    unittest.main()
