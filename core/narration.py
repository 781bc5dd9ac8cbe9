"""Sequential, rate-limited narration.

Every ``speak`` call is queued on one FIFO and executed by a single worker
thread, so at most one synthesis request is in flight and requests start in
submission order. Consecutive request *starts* are spaced at least
``min_interval_ms`` apart. Failures are logged and never reach the caller.
"""

import logging
import queue
import threading
import time
from concurrent.futures import Future

from .config import NARRATION_MIN_INTERVAL_MS
from .interfaces import SpeechSynthesizer, AudioPlayer

logger = logging.getLogger(__name__)

_STOP = object()


class NarrationQueue:
    """Single-worker task queue in front of a speech synthesizer."""

    def __init__(self, synthesizer: SpeechSynthesizer, player: AudioPlayer,
                 min_interval_ms: int = NARRATION_MIN_INTERVAL_MS,
                 clock=time.monotonic, sleep=time.sleep):
        self.synthesizer = synthesizer
        self.player = player
        self.min_interval = min_interval_ms / 1000
        self._clock = clock
        self._sleep = sleep
        self._last_call_start = None
        self._tasks = queue.Queue()
        self._closed = False
        self._lock = threading.Lock()
        self._worker = threading.Thread(target=self._run, name='narration', daemon=True)
        self._worker.start()

    def speak(self, text: str) -> Future:
        """Queue text for narration.

        The returned future resolves to None once this task, and every task
        queued before it, has finished. It never carries an exception.
        """
        future = Future()
        with self._lock:
            if self._closed:
                raise RuntimeError("Narration queue is closed")
            self._tasks.put((text, future))
        return future

    def close(self, timeout: float | None = None) -> None:
        """Stop accepting work, let queued tasks finish and join the worker."""
        with self._lock:
            if not self._closed:
                self._closed = True
                self._tasks.put(_STOP)
        self._worker.join(timeout)

    def _run(self) -> None:
        while True:
            item = self._tasks.get()
            if item is _STOP:
                return
            text, future = item
            # A future cancelled while queued still gets narrated, it just
            # receives no result
            pending = future.set_running_or_notify_cancel()
            try:
                self._narrate(text)
            finally:
                if pending:
                    future.set_result(None)

    def _wait_for_slot(self) -> None:
        if self._last_call_start is None:
            return
        elapsed = self._clock() - self._last_call_start
        if elapsed < self.min_interval:
            self._sleep(self.min_interval - elapsed)

    def _narrate(self, text: str) -> None:
        self._wait_for_slot()
        try:
            self._last_call_start = self._clock()
            audio = self.synthesizer.synthesize(text)
            if not audio:
                logger.error("No audio data received from speech provider")
                return
            self.player.play(audio)
        except Exception as e:
            logger.error(f"Error in text-to-speech narration: {e}")
