#!/usr/bin/env python3
"""
Match Scorer - Weighted field-by-field compatibility between two entities.

For each field applicable to both entity kinds with matching_weight > 0:
- unset / malformed / failed fields are excluded (no numerator, no denominator)
- remaining fields contribute weight * similarity

overall = 100 * sum(weight * similarity) / sum(weight), or INSUFFICIENT_DATA
when nothing was comparable.

Stateless: the same scorer can be shared across threads.
"""
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
import logging
import threading

from core.cache.match_cache import MatchResultCache
from core.config_loader import MatcherConfig
from core.exceptions import MalformedAllowedValues, MatchCancelled, UnknownField
from core.matcher.comparators import FieldComparator
from core.matcher.models import (
    CandidateEntity, FieldScore, INSUFFICIENT_DATA, MatchResult, MatchType, RankedMatch
)
from core.matcher.semantic import GuardedSemanticMatcher, SemanticMatcher
from core.registry.models import FieldDefinition
from core.registry.snapshot import RegistrySnapshot
from core.utils import MatchFingerprinter

logger = logging.getLogger(__name__)


class MatchScorer:
    """
    Compares two entities under an immutable registry snapshot.

    The only blocking point is the semantic matcher, which is always wrapped
    in a GuardedSemanticMatcher so its timeout is enforced here.
    """

    def __init__(
        self,
        config: Optional[MatcherConfig] = None,
        semantic_matcher: Optional[SemanticMatcher] = None,
        cache: Optional[MatchResultCache] = None,
    ):
        """
        Initialize match scorer with dependencies.

        Args:
            config: MatcherConfig with comparison and fan-out settings
            semantic_matcher: Optional AI text matcher; wrapped in a guard if needed
            cache: Optional result cache keyed by content fingerprint
        """
        self.config = config or MatcherConfig()
        self.cache = cache

        guarded = None
        if semantic_matcher is not None and self.config.semantic.enabled:
            if isinstance(semantic_matcher, GuardedSemanticMatcher):
                guarded = semantic_matcher
            else:
                guarded = GuardedSemanticMatcher(
                    semantic_matcher,
                    max_concurrent_calls=self.config.semantic.max_concurrent_calls,
                    default_timeout_ms=self.config.semantic.timeout_ms,
                )
        self.semantic_matcher = guarded

        self.comparator = FieldComparator(
            config=self.config.comparator,
            semantic_matcher=guarded,
            semantic_timeout_ms=self.config.semantic.timeout_ms,
        )
        self._geographic = frozenset(self.config.geographic_fields)
        self._performance = frozenset(self.config.performance_fields)

    def _category(self, field_name: str, match_type: MatchType) -> str:
        if field_name in self._geographic:
            return 'geographic'
        if field_name in self._performance:
            return 'performance'
        if match_type is MatchType.SEMANTIC:
            return 'semantic'
        return 'other'

    def _comparable_fields(
        self,
        kind_a: str,
        kind_b: str,
        registry: RegistrySnapshot,
        fields: Optional[Iterable[str]],
        warnings: List[str],
    ) -> List[FieldDefinition]:
        names_b = {d.field_name for d in registry.active_fields_for(kind_b, matchable_only=True)}
        shared = [
            d for d in registry.active_fields_for(kind_a, matchable_only=True)
            if d.field_name in names_b
        ]
        if fields is None:
            return shared

        requested = set()
        for name in fields:
            try:
                registry.get(name)
            except UnknownField as e:
                logger.warning(f"{e}; skipping")
                warnings.append(f"{name}: unknown field")
                continue
            requested.add(name)
        return [d for d in shared if d.field_name in requested]

    def score(
        self,
        entity_a: Mapping[str, Any],
        kind_a: str,
        entity_b: Mapping[str, Any],
        kind_b: str,
        registry: RegistrySnapshot,
        fields: Optional[Iterable[str]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> MatchResult:
        """
        Score two entities against each other.

        Args:
            entity_a: Attribute mapping of the first entity
            kind_a: Entity-kind tag of the first entity
            entity_b: Attribute mapping of the second entity
            kind_b: Entity-kind tag of the second entity
            registry: Registry snapshot to score under
            fields: Optional subset of field names to consider
            cancel_event: Set to abort pending semantic calls

        Returns:
            MatchResult with overall score (or INSUFFICIENT_DATA) and per-field breakdown

        Raises:
            MatchCancelled: if cancel_event fired before the result was complete
        """
        cache_key = None
        if self.cache is not None and fields is None:
            cache_key = MatchFingerprinter.match(entity_a, kind_a, entity_b, kind_b, registry.fingerprint())
            cached = self.cache.get_result(cache_key)
            if cached is not None:
                # Fingerprint covers registry content only, not its version
                return replace(MatchResult.from_dict(cached), registry_version=registry.version)

        warnings: List[str] = []
        breakdown: Dict[str, FieldScore] = {}
        excluded: Dict[str, str] = {}
        transient: List[str] = []
        categories: Dict[str, float] = {}
        weighted_sum = 0.0
        total_weight = 0

        for definition in self._comparable_fields(kind_a, kind_b, registry, fields, warnings):
            name = definition.field_name
            issue = definition.allowed_values_issue()
            if issue:
                malformed = MalformedAllowedValues(name, issue)
                logger.warning(f"Malformed allowed_values on '{name}' ({issue}); excluding field")
                warnings.append(f"{name}: {malformed.label} ({issue})")
                excluded[name] = str(malformed)
                continue

            if cancel_event is not None and cancel_event.is_set():
                raise MatchCancelled("match cancelled")

            comparison = self.comparator.compare(
                definition, entity_a.get(name), entity_b.get(name), cancel_event=cancel_event
            )
            if not comparison.included:
                excluded[name] = comparison.excluded_reason
                if comparison.transient:
                    transient.append(name)
                continue

            weight = definition.matching_weight
            contribution = weight * comparison.similarity
            breakdown[name] = FieldScore(
                field_name=name,
                weight=weight,
                similarity=comparison.similarity,
                contribution=contribution,
                match_type=comparison.match_type,
                details=comparison.details,
                low_confidence=comparison.low_confidence,
            )
            category = self._category(name, comparison.match_type)
            categories[category] = categories.get(category, 0.0) + contribution
            weighted_sum += contribution
            total_weight += weight

        if total_weight == 0:
            overall = INSUFFICIENT_DATA
        else:
            overall = 100.0 * weighted_sum / total_weight

        result = MatchResult(
            overall=overall,
            breakdown=breakdown,
            total_weight_used=total_weight,
            excluded=excluded,
            warnings=tuple(warnings),
            category_scores=categories,
            registry_version=registry.version,
            transient_exclusions=tuple(transient),
        )

        if cache_key is not None and result.is_cacheable:
            self.cache.set_result(cache_key, result.to_dict())
        return result

    def rank_candidates(
        self,
        target: Mapping[str, Any],
        target_kind: str,
        candidates: Sequence[CandidateEntity],
        candidate_kind: str,
        registry: RegistrySnapshot,
        max_workers: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[RankedMatch]:
        """
        Score one target against many candidates and rank the results.

        Pairs run in parallel on a bounded pool. If cancel_event is set, pending
        pairs are cancelled and only pairs that completed are returned.

        Returns:
            Ranked matches: overall desc, total_weight_used desc, entity_id asc,
            with INSUFFICIENT_DATA results last
        """
        workers = max(1, min(max_workers or self.config.max_workers, len(candidates) or 1))
        ranked: List[RankedMatch] = []
        cancelled = 0

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="match-pair") as executor:
            futures = {
                executor.submit(
                    self.score, target, target_kind, candidate.attributes, candidate_kind,
                    registry, None, cancel_event
                ): candidate.entity_id
                for candidate in candidates
            }

            for future in as_completed(futures):
                entity_id = futures[future]
                if cancel_event is not None and cancel_event.is_set():
                    for pending in futures:
                        pending.cancel()
                if future.cancelled():
                    cancelled += 1
                    continue
                try:
                    result = future.result()
                except MatchCancelled:
                    cancelled += 1
                    continue
                ranked.append(RankedMatch(entity_id=entity_id, result=result))

        if cancelled:
            logger.info(f"Ranking cancelled: {len(ranked)} of {len(candidates)} pairs completed")

        ranked.sort(key=RankedMatch.sort_key)
        return ranked

    def filter_by_threshold(
        self,
        ranked: Iterable[RankedMatch],
        min_score: Optional[float] = None,
    ) -> List[RankedMatch]:
        """Keep matches scoring at least min_score (default from config)."""
        threshold = self.config.min_score_threshold if min_score is None else min_score
        return [
            m for m in ranked
            if not m.result.is_insufficient and m.result.overall >= threshold
        ]

    def close(self) -> None:
        if self.semantic_matcher is not None:
            self.semantic_matcher.close()
