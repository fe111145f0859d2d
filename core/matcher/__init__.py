"""Matcher Module - Weighted attribute matching between entities."""
from core.matcher.models import (
    MatchType, Comparison, FieldScore, MatchResult,
    CandidateEntity, RankedMatch, INSUFFICIENT_DATA, InsufficientData
)
from core.matcher.comparators import FieldComparator, is_unset
from core.matcher.semantic import (
    SemanticMatcher, SemanticOutcome, SemanticStatus,
    EmbeddingSemanticMatcher, LLMJudgeSemanticMatcher, GuardedSemanticMatcher
)
from core.matcher.service import MatchScorer
from core.matcher.similarity import SimilarityCalculator

__all__ = [
    'MatchScorer', 'FieldComparator', 'SimilarityCalculator', 'is_unset',
    'SemanticMatcher', 'SemanticOutcome', 'SemanticStatus',
    'EmbeddingSemanticMatcher', 'LLMJudgeSemanticMatcher', 'GuardedSemanticMatcher',
    'MatchType', 'Comparison', 'FieldScore', 'MatchResult',
    'CandidateEntity', 'RankedMatch', 'INSUFFICIENT_DATA', 'InsufficientData'
]
