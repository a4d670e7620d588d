"""
Background retrainer for the novelty scorer.

Trains a fresh scorer on a snapshot of the feature buffer in a single worker
thread and swaps it in once training succeeds, so predictions keep using the
previous scorer while a retrain is running.
"""

import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor

import structlog

from .methods.base import FeatureVector, NoveltyScorer

logger = structlog.get_logger(__name__)

ScorerFactory = Callable[[], NoveltyScorer]


class ModelRetrainer:
    """Owns the current novelty scorer and retrains it off the prediction path"""

    def __init__(self, scorer_factory: ScorerFactory, background: bool = True):
        self._factory = scorer_factory
        self.background = background

        self._lock = threading.Lock()
        self._scorer = scorer_factory()
        self._generation = 0
        self._pending: Future | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._closed = False

        self.stats = {
            "submitted": 0,
            "successful": 0,
            "failed": 0,
            "skipped": 0,
            "discarded": 0,
        }

        logger.info(
            "Retrainer initialized",
            scorer=self._scorer.name,
            background=background,
        )

    @property
    def scorer(self) -> NoveltyScorer:
        with self._lock:
            return self._scorer

    @property
    def is_busy(self) -> bool:
        pending = self._pending
        return pending is not None and not pending.done()

    def submit(self, samples: Sequence[FeatureVector]) -> bool:
        """Schedule a retrain on a snapshot of the samples

        Args:
            samples: Training vectors; copied before training starts

        Returns:
            True if training was started (or completed, in inline mode)
        """
        if self._closed:
            logger.warning("Retrain requested after close, ignoring")
            return False

        snapshot = [list(vector) for vector in samples]

        if not self.background:
            with self._lock:
                self.stats["submitted"] += 1
                generation = self._generation
            return self._train(snapshot, generation)

        if self.is_busy:
            self._count("skipped")
            logger.debug("Retrain already in progress, skipping", samples=len(snapshot))
            return False

        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="novelty-retrain")

        with self._lock:
            self.stats["submitted"] += 1
            generation = self._generation

        self._pending = self._executor.submit(self._train, snapshot, generation)
        return True

    def _train(self, samples: list[list[float]], generation: int) -> bool:
        start_time = time.time()
        try:
            scorer = self._factory()
            scorer.fit(samples)
        except Exception as e:
            self._count("failed")
            logger.error(
                "Failed to retrain novelty scorer",
                samples=len(samples),
                error=str(e),
                exc_info=True,
            )
            return False

        with self._lock:
            if generation != self._generation:
                self.stats["discarded"] += 1
                logger.debug("Discarding retrain started before reset", samples=len(samples))
                return False
            self._scorer = scorer
            self.stats["successful"] += 1

        logger.info(
            "Novelty scorer retrained",
            scorer=scorer.name,
            samples=len(samples),
            elapsed_sec=round(time.time() - start_time, 3),
        )
        return True

    def _count(self, key: str) -> None:
        with self._lock:
            self.stats[key] += 1

    def get_stats(self) -> dict[str, int]:
        """Copy of the counters, safe to read while a retrain is running"""
        with self._lock:
            return dict(self.stats)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the in-flight retrain finishes

        Returns:
            The outcome of the last retrain, or False if none was pending
        """
        pending = self._pending
        if pending is None:
            return False
        return pending.result(timeout=timeout)

    def reset(self) -> None:
        """Replace the scorer with a fresh untrained one

        A retrain still running is left to finish, but its result is discarded.
        """
        with self._lock:
            self._generation += 1
            self._scorer = self._factory()

    def close(self, wait: bool = True) -> None:
        """Shut the worker thread down"""
        self._closed = True
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
        logger.info("Retrainer closed", stats=self.get_stats())
