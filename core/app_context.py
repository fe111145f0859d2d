import logging
from dataclasses import dataclass
from typing import Optional

from core.cache.match_cache import MatchResultCache
from core.config_loader import AppConfig, CacheConfig, LlmConfig, SemanticConfig
from core.coverage import CompetitiveDensityIndex, CoverageScorer
from core.llm.openai_service import OpenAIService
from core.matcher.semantic import EmbeddingSemanticMatcher, LLMJudgeSemanticMatcher, SemanticMatcher
from core.matcher.service import MatchScorer

logger = logging.getLogger(__name__)


@dataclass
class EngineContext:
    """Application context container that holds all wired scoring dependencies.

    This provides a single source of truth for service instantiation.
    DB access stays with the caller: registry snapshots and density
    indexes are built from a session and passed in per operation.
    """
    config: AppConfig
    match_scorer: MatchScorer
    coverage_scorer: CoverageScorer
    ai_service: Optional[OpenAIService] = None
    cache: Optional[MatchResultCache] = None

    @classmethod
    def build(
        cls,
        config: AppConfig,
        density_index: Optional[CompetitiveDensityIndex] = None,
    ) -> "EngineContext":
        """Build an EngineContext from config.

        Args:
            config: Loaded application configuration
            density_index: Optional competitor-count source for CoverageScorer.score_area

        Returns:
            Fully wired EngineContext instance
        """
        ai_service = None
        semantic_matcher = None
        if config.matching.semantic.enabled:
            ai_service = cls._build_ai_service(config.llm)
            if ai_service is not None:
                semantic_matcher = cls._build_semantic_matcher(config.matching.semantic, ai_service)

        cache = None
        if config.cache.enabled:
            cache = cls._build_cache(config.cache)

        match_scorer = MatchScorer(
            config=config.matching,
            semantic_matcher=semantic_matcher,
            cache=cache,
        )
        coverage_scorer = CoverageScorer(config=config.coverage, density_index=density_index)

        return cls(
            config=config,
            match_scorer=match_scorer,
            coverage_scorer=coverage_scorer,
            ai_service=ai_service,
            cache=cache,
        )

    @staticmethod
    def _build_ai_service(llm_config: LlmConfig) -> Optional[OpenAIService]:
        """Build OpenAI service from LLM configuration."""
        if not llm_config.api_key and not llm_config.base_url:
            logger.warning("Semantic matching enabled but no LLM endpoint configured; AI fields fall back to exact match")
            return None

        model_config = {
            'embedding_model': llm_config.embedding_model,
            'embedding_dimensions': llm_config.embedding_dimensions,
            'judge_model': llm_config.judge_model,
            'judge_temperature': llm_config.judge_temperature,
        }

        return OpenAIService(
            api_key=llm_config.api_key,
            base_url=llm_config.base_url,
            model_config=model_config,
            request_timeout_seconds=llm_config.request_timeout_seconds,
            max_retries=llm_config.max_retries,
        )

    @staticmethod
    def _build_semantic_matcher(semantic_config: SemanticConfig, ai_service: OpenAIService) -> SemanticMatcher:
        if semantic_config.provider == "llm_judge":
            return LLMJudgeSemanticMatcher(ai_service)
        return EmbeddingSemanticMatcher(ai_service)

    @staticmethod
    def _build_cache(cache_config: CacheConfig) -> Optional[MatchResultCache]:
        cache = MatchResultCache(
            redis_url=cache_config.redis_url,
            password=cache_config.password,
            ttl_seconds=cache_config.ttl_seconds,
        )
        if not cache.is_available:
            logger.warning("Match cache enabled but Redis is unavailable; scoring without cache")
            return None
        return cache

    def close(self) -> None:
        self.match_scorer.close()
