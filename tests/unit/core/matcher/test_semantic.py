#!/usr/bin/env python3
"""
Test suite for semantic matchers and the timeout guard.
"""

import threading
import time
import unittest
from unittest.mock import Mock

import pytest

from core.matcher.semantic import (
    EmbeddingSemanticMatcher, GuardedSemanticMatcher, LLMJudgeSemanticMatcher,
    SemanticOutcome, SemanticStatus
)
from tests.mocks.matcher_mocks import (
    FailingSemanticMatcher, FakeSemanticMatcher, MockLLMProvider,
    OutOfRangeSemanticMatcher, SlowSemanticMatcher
)


class TestEmbeddingSemanticMatcher(unittest.TestCase):

    def test_01_identical_texts_score_one(self):
        matcher = EmbeddingSemanticMatcher(MockLLMProvider())
        outcome = matcher.similarity("luxury homes", "luxury homes", 1000)

        self.assertTrue(outcome.succeeded)
        self.assertAlmostEqual(outcome.similarity, 1.0, places=6)

    def test_02_embeddings_are_cached(self):
        provider = MockLLMProvider()
        matcher = EmbeddingSemanticMatcher(provider)

        matcher.similarity("a", "b", 1000)
        matcher.similarity("b", "a", 1000)
        self.assertEqual(sorted(provider.embedding_calls), ["a", "b"])

    def test_03_provider_error_becomes_outcome(self):
        provider = Mock()
        provider.generate_embedding.side_effect = ConnectionError("boom")
        outcome = EmbeddingSemanticMatcher(provider).similarity("a", "b", 1000)

        self.assertEqual(outcome.status, SemanticStatus.ERROR)
        self.assertEqual(outcome.error, "boom")


class TestLLMJudgeSemanticMatcher(unittest.TestCase):

    def test_01_passes_context(self):
        provider = MockLLMProvider(judge_score=0.65)
        matcher = LLMJudgeSemanticMatcher(provider, context="agent specialties")
        outcome = matcher.similarity("condos", "apartments", 1000)

        self.assertAlmostEqual(outcome.similarity, 0.65)
        self.assertEqual(provider.judge_calls, [("condos", "apartments", "agent specialties")])

    def test_02_judge_error(self):
        provider = Mock()
        provider.judge_similarity.side_effect = ValueError("bad json")
        outcome = LLMJudgeSemanticMatcher(provider).similarity("a", "b", 1000)
        self.assertFalse(outcome.succeeded)


class TestGuardedSemanticMatcher:
    """Deadline, validation and cancellation around an inner matcher."""

    def test_passes_through_valid_result(self):
        with GuardedSemanticMatcher(FakeSemanticMatcher(default=0.4)) as guarded:
            outcome = guarded.similarity("a", "b", 500)
        assert outcome == SemanticOutcome.ok(0.4)

    def test_timeout_is_enforced_by_guard(self):
        slow = SlowSemanticMatcher(delay_seconds=5.0)
        guarded = GuardedSemanticMatcher(slow)
        try:
            started = time.monotonic()
            outcome = guarded.similarity("a", "b", 100)
            elapsed = time.monotonic() - started
        finally:
            slow.release.set()
            guarded.close()

        assert outcome.status is SemanticStatus.TIMEOUT
        assert elapsed < 2.0

    def test_exception_becomes_error(self):
        with GuardedSemanticMatcher(FailingSemanticMatcher()) as guarded:
            outcome = guarded.similarity("a", "b", 500)
        assert outcome.status is SemanticStatus.ERROR
        assert "provider unavailable" in outcome.error

    @pytest.mark.parametrize("value", [1.5, -0.1, float('nan')])
    def test_out_of_range_is_error(self, value):
        with GuardedSemanticMatcher(OutOfRangeSemanticMatcher(value)) as guarded:
            outcome = guarded.similarity("a", "b", 500)
        assert outcome.status is SemanticStatus.ERROR

    def test_non_outcome_is_error(self):
        inner = Mock()
        inner.similarity.return_value = 0.7
        with GuardedSemanticMatcher(inner) as guarded:
            outcome = guarded.similarity("a", "b", 500)
        assert outcome.status is SemanticStatus.ERROR

    def test_cancel_while_waiting(self):
        slow = SlowSemanticMatcher(delay_seconds=5.0)
        cancel = threading.Event()
        guarded = GuardedSemanticMatcher(slow)
        try:
            timer = threading.Timer(0.1, cancel.set)
            timer.start()
            outcome = guarded.similarity("a", "b", 3000, cancel_event=cancel)
            timer.join()
        finally:
            slow.release.set()
            guarded.close()

        assert outcome.status is SemanticStatus.CANCELLED

    def test_rejects_zero_concurrency(self):
        with pytest.raises(ValueError):
            GuardedSemanticMatcher(FakeSemanticMatcher(), max_concurrent_calls=0)

    def test_closed_guard_reports_error(self):
        guarded = GuardedSemanticMatcher(FakeSemanticMatcher())
        guarded.close()
        assert guarded.similarity("a", "b", 500).status is SemanticStatus.ERROR
