"""Configuration constants for quickmath application."""

APP_NAME = 'quickmath'

# Sessions
QUIZ_LENGTH = 5               # Number of problems in a quiz
SESSION_IDLE_TIMEOUT = 2 * 60 * 60  # Seconds before an untouched session is dropped
BLANK_ANSWER = '(blank)'      # Stored in place of an empty answer

# Answer checking
ANSWER_TOLERANCE = 0.001      # Absolute difference still counted as correct

# Narration
NARRATION_MIN_INTERVAL_MS = 6000   # Provider quota: 10 requests per minute
NARRATION_STYLE_PROMPT = 'Say with a friendly and encouraging tone: {text}'
SPEECH_MODEL = 'gemini-2.5-flash-preview-tts'
SPEECH_VOICE = 'Zephyr'
SPEECH_SAMPLE_RATE = 24000    # Gemini TTS returns 16-bit mono PCM at 24 kHz

# Storage
CONFIG_FILE = '~/.config/quickmath/config.json'
HISTORY_FILE_NAME = 'quickmath_history.json'
SCORES_FILE_NAME = 'quickmath_scores.json'
