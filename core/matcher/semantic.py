#!/usr/bin/env python3
"""
Semantic Matching - Contract and guards for AI-backed text similarity.

The engine never trusts a collaborator to honour its own timeout:
GuardedSemanticMatcher runs every call on a bounded worker pool and stops
waiting at the deadline. Timeouts and failures come back as outcomes, not
exceptions, so callers have to handle the "AI unavailable" path explicitly.
"""

import logging
import math
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout, wait
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from core.llm.interfaces import LLMProvider
from core.matcher.similarity import SimilarityCalculator

logger = logging.getLogger(__name__)

# Granularity of the cancellation check while waiting on a semantic call
_CANCEL_POLL_SECONDS = 0.05


class SemanticStatus(str, Enum):
    OK = "ok"
    TIMEOUT = "timeout"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class SemanticOutcome:
    status: SemanticStatus
    similarity: Optional[float] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is SemanticStatus.OK

    @classmethod
    def ok(cls, similarity: float) -> 'SemanticOutcome':
        return cls(status=SemanticStatus.OK, similarity=similarity)

    @classmethod
    def timeout(cls, timeout_ms: int) -> 'SemanticOutcome':
        return cls(status=SemanticStatus.TIMEOUT, error=f"no answer within {timeout_ms}ms")

    @classmethod
    def failed(cls, error: str) -> 'SemanticOutcome':
        return cls(status=SemanticStatus.ERROR, error=error)

    @classmethod
    def cancelled(cls) -> 'SemanticOutcome':
        return cls(status=SemanticStatus.CANCELLED, error="cancelled")


class SemanticMatcher(ABC):
    """Given two non-empty texts, return a similarity in [0, 1] or a failure outcome."""

    @abstractmethod
    def similarity(self, text_a: str, text_b: str, timeout_ms: int) -> SemanticOutcome:
        pass


class EmbeddingSemanticMatcher(SemanticMatcher):
    """Cosine similarity of provider embeddings, with a per-text embedding cache."""

    def __init__(self, provider: LLMProvider, max_cached: int = 4096):
        self.provider = provider
        self.similarity_calc = SimilarityCalculator()
        self.max_cached = max_cached
        self._cache: Dict[str, List[float]] = {}
        self._lock = threading.Lock()

    def _embed(self, text: str) -> List[float]:
        with self._lock:
            cached = self._cache.get(text)
        if cached is not None:
            return cached

        embedding = self.provider.generate_embedding(text)
        with self._lock:
            if len(self._cache) >= self.max_cached:
                self._cache.clear()
            self._cache[text] = embedding
        return embedding

    def similarity(self, text_a: str, text_b: str, timeout_ms: int) -> SemanticOutcome:
        try:
            score = self.similarity_calc.calculate(self._embed(text_a), self._embed(text_b))
        except Exception as e:
            logger.warning(f"Embedding similarity failed: {e}")
            return SemanticOutcome.failed(str(e) or type(e).__name__)
        return SemanticOutcome.ok(score)


class LLMJudgeSemanticMatcher(SemanticMatcher):
    """Ask a chat model to rate two texts for semantic equivalence."""

    def __init__(self, provider: LLMProvider, context: Optional[str] = None):
        self.provider = provider
        self.context = context

    def similarity(self, text_a: str, text_b: str, timeout_ms: int) -> SemanticOutcome:
        try:
            score = self.provider.judge_similarity(text_a, text_b, context=self.context)
        except Exception as e:
            logger.warning(f"LLM similarity judgement failed: {e}")
            return SemanticOutcome.failed(str(e) or type(e).__name__)
        return SemanticOutcome.ok(score)


class GuardedSemanticMatcher(SemanticMatcher):
    """
    Enforces deadline, concurrency cap and output range around another matcher.

    At most `max_concurrent_calls` calls run at once; calls beyond that queue
    and their wait counts against their own deadline. A call that overruns is
    abandoned (its thread finishes in the background, the result is dropped).
    """

    def __init__(self, inner: SemanticMatcher, max_concurrent_calls: int = 8,
                 default_timeout_ms: int = 1500):
        if max_concurrent_calls < 1:
            raise ValueError("max_concurrent_calls must be at least 1")
        self.inner = inner
        self.default_timeout_ms = default_timeout_ms
        self._executor = ThreadPoolExecutor(
            max_workers=max_concurrent_calls,
            thread_name_prefix="semantic-match",
        )

    def similarity(self, text_a: str, text_b: str, timeout_ms: Optional[int] = None,
                   cancel_event: Optional[threading.Event] = None) -> SemanticOutcome:
        timeout_ms = self.default_timeout_ms if timeout_ms is None else timeout_ms
        if cancel_event is not None and cancel_event.is_set():
            return SemanticOutcome.cancelled()

        try:
            future = self._executor.submit(self.inner.similarity, text_a, text_b, timeout_ms)
        except RuntimeError as e:
            # Executor already shut down
            return SemanticOutcome.failed(str(e))

        deadline = timeout_ms / 1000.0
        try:
            if cancel_event is None:
                outcome = future.result(timeout=deadline)
            else:
                outcome = self._wait_cancellable(future, deadline, cancel_event)
                if outcome is None:
                    future.cancel()
                    return SemanticOutcome.cancelled()
        except FutureTimeout:
            future.cancel()
            logger.warning(f"Semantic match timed out after {timeout_ms}ms")
            return SemanticOutcome.timeout(timeout_ms)
        except Exception as e:
            logger.warning(f"Semantic matcher raised: {e}")
            return SemanticOutcome.failed(str(e) or type(e).__name__)

        return self._validate(outcome)

    @staticmethod
    def _wait_cancellable(future, deadline: float, cancel_event: threading.Event):
        remaining = deadline
        while remaining > 0:
            step = min(_CANCEL_POLL_SECONDS, remaining)
            done, _ = wait([future], timeout=step)
            if done:
                return future.result()
            if cancel_event.is_set():
                return None
            remaining -= step
        raise FutureTimeout()

    @staticmethod
    def _validate(outcome) -> SemanticOutcome:
        if not isinstance(outcome, SemanticOutcome):
            return SemanticOutcome.failed(f"matcher returned {type(outcome).__name__}, expected SemanticOutcome")
        if not outcome.succeeded:
            return outcome

        value = outcome.similarity
        if value is None or isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
            return SemanticOutcome.failed(f"invalid similarity {value!r}")
        if not 0.0 <= value <= 1.0:
            return SemanticOutcome.failed(f"similarity {value!r} outside [0, 1]")
        return SemanticOutcome.ok(float(value))

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> 'GuardedSemanticMatcher':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
