"""
OpenAI Service - Semantic similarity backed by an OpenAI-compatible API.

Two ways to compare texts:
- embeddings, compared by cosine similarity in the matcher
- a chat model returning a JSON {score, reasoning} verdict

Both calls run behind the semantic guard's deadline, so retries are few
and short: a call that cannot finish in time is abandoned by the guard.
"""
from typing import Dict, Any, List, Optional
import json
import os
import logging

import openai
from openai import OpenAI
from tenacity import Retrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_random_exponential

from core.llm.interfaces import LLMProvider
from core.llm.system_prompts import (
    SEMANTIC_MATCH_SYSTEM_PROMPT,
    SEMANTIC_MATCH_SCHEMA,
    build_semantic_match_message,
)

logger = logging.getLogger(__name__)

# Errors worth a second attempt; anything else surfaces immediately
TRANSIENT_API_ERRORS = (
    openai.RateLimitError,
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.InternalServerError,
)

# Backoff bounds in seconds
RETRY_WAIT_MIN = 0.1
RETRY_WAIT_MAX = 1.0


def _before_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception()
    logger.warning(
        f"{type(error).__name__} from LLM endpoint on attempt {retry_state.attempt_number}, retrying: {error}"
    )


def _backoff(retry_state: RetryCallState) -> float:
    return wait_random_exponential(multiplier=RETRY_WAIT_MIN, max=RETRY_WAIT_MAX)(retry_state)


def _parse_judge_score(content: str) -> float:
    """Parse the judge response into a similarity in [0, 1]."""
    data = json.loads(content)
    score = float(data["score"])
    if score != score:  # NaN
        raise ValueError("judge returned NaN score")
    return max(0.0, min(100.0, score)) / 100.0


class OpenAIService(LLMProvider):
    """
    LLMProvider over the OpenAI SDK.

    Works with any OpenAI-compatible endpoint via base_url. The SDK's own
    retries are disabled; transient failures are retried here with a short,
    jittered backoff, at most `max_retries` times.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model_config: Optional[Dict[str, Any]] = None,
        request_timeout_seconds: float = 5.0,
        max_retries: int = 2,
    ):
        self.client = OpenAI(
            # Local OpenAI-compatible servers accept any key
            api_key=api_key or os.environ.get("OPENAI_API_KEY") or "not-needed",
            base_url=base_url or None,
            timeout=request_timeout_seconds,
            max_retries=0,
        )
        self.max_retries = max(0, max_retries)

        models = model_config or {}
        self.embedding_model = models.get('embedding_model', 'text-embedding-3-small')
        self.embedding_dimensions = models.get('embedding_dimensions', 1024)
        self.judge_model = models.get('judge_model', 'gpt-4o-mini')
        self.judge_temperature = models.get('judge_temperature', 0.0)

    def _call(self, fn, **kwargs):
        retrying = Retrying(
            retry=retry_if_exception_type(TRANSIENT_API_ERRORS),
            stop=stop_after_attempt(self.max_retries + 1),
            wait=_backoff,
            before_sleep=_before_retry,
            reraise=True,
        )
        return retrying(fn, **kwargs)

    def generate_embedding(self, text: str) -> List[float]:
        response = self._call(
            self.client.embeddings.create,
            input=text,
            model=self.embedding_model,
            dimensions=self.embedding_dimensions,
        )
        return response.data[0].embedding

    def judge_similarity(self, text_a: str, text_b: str, context: Optional[str] = None) -> float:
        """Ask the judge model for a 0-100 score and return it scaled to [0, 1]."""
        response = self._call(
            self.client.chat.completions.create,
            model=self.judge_model,
            messages=[
                {"role": "system", "content": SEMANTIC_MATCH_SYSTEM_PROMPT},
                {"role": "user", "content": build_semantic_match_message(text_a, text_b, context)},
            ],
            temperature=self.judge_temperature,
            max_tokens=200,
            response_format={"type": "json_schema", "json_schema": SEMANTIC_MATCH_SCHEMA},
        )

        try:
            similarity = _parse_judge_score(response.choices[0].message.content)
        except (json.JSONDecodeError, KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"Unusable verdict from {self.judge_model}: {e}")
            raise

        logger.debug(f"{self.judge_model} scored pair at {similarity:.2f}")
        return similarity
