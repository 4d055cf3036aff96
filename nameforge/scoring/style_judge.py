"""Pluggable asynchronous style scoring."""

import asyncio
import logging
import math
import threading
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Protocol

logger = logging.getLogger(__name__)


class StyleJudge(Protocol):
    """External scorer rating how well names fit an intended style."""

    async def score(self, names: list[str]) -> float:
        """Return a style score in [0, 1] for a sample of names."""
        ...


class StyleJudgeRunner:
    """Runs a StyleJudge on a private event loop with a timeout.

    Synchronous callers (the fitness evaluator) submit the coroutine to a
    background loop thread and wait at most ``timeout`` seconds. A timed-out
    call is cancelled; any failure yields None so the metric is skipped.
    """

    def __init__(self, judge: StyleJudge, timeout: float = 20.0):
        self.judge = judge
        self.timeout = timeout
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is None:
                self._loop = asyncio.new_event_loop()
                self._thread = threading.Thread(
                    target=self._loop.run_forever, name="style-judge", daemon=True
                )
                self._thread.start()
            return self._loop

    def score(self, names: list[str]) -> float | None:
        """Score names, or return None when the judge fails or times out."""
        loop = self._ensure_loop()
        future = asyncio.run_coroutine_threadsafe(self.judge.score(list(names)), loop)
        try:
            value = future.result(timeout=self.timeout)
        except FuturesTimeoutError:
            future.cancel()
            logger.warning("Style judge timed out after %.1fs, skipping style metric", self.timeout)
            return None
        except Exception as e:
            logger.warning("Style judge failed (%s), skipping style metric", e)
            return None

        try:
            value = float(value)
        except (TypeError, ValueError):
            logger.warning("Style judge returned %r, skipping style metric", value)
            return None
        if math.isnan(value):
            logger.warning("Style judge returned NaN, skipping style metric")
            return None
        return min(1.0, max(0.0, value))

    def close(self) -> None:
        """Stop the loop thread."""
        with self._lock:
            if self._loop is None:
                return
            self._loop.call_soon_threadsafe(self._loop.stop)
            if self._thread is not None:
                self._thread.join(timeout=5)
            if not self._loop.is_running():
                self._loop.close()
            self._loop = None
            self._thread = None

    def __enter__(self) -> "StyleJudgeRunner":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
